import pytest
from django.core.cache import cache

from foodcourt.celery import app as celery_app


@pytest.fixture(autouse=True, scope='session')
def celery_eager():
    # Task dijalankan langsung di proses test, tanpa broker
    celery_app.conf.task_always_eager = True
    yield
    celery_app.conf.task_always_eager = False


@pytest.fixture(autouse=True)
def clear_settings_cache():
    # Cache lokal tidak ikut di-rollback bersama database test
    cache.clear()
    yield
    cache.clear()
