"""
Celery app for the food court backend.

The only tasks today are the realtime broadcasts in notifications/tasks.py,
queued from transaction.on_commit so a request never waits on the channel
layer.
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'foodcourt.settings')

app = Celery('foodcourt')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
