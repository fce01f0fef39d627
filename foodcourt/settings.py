"""
Django settings for the foodcourt project.

Values come from the environment (or an optional .env file next to
manage.py). Business configuration such as revenue percentages lives in the
``configuration`` app, not here.
"""

from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parent.parent

env = environ.Env(
    DJANGO_DEBUG=(bool, False),
)

environ.Env.read_env(BASE_DIR / ".env")

SECRET_KEY = env("DJANGO_SECRET_KEY", default="unsafe-dev-key")
DEBUG = env("DJANGO_DEBUG")

ALLOWED_HOSTS = [host.strip() for host in env("DJANGO_ALLOWED_HOSTS", default="localhost,127.0.0.1,testserver").split(",") if host.strip()]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'rest_framework.authtoken',
    'drf_spectacular',
    'channels',
    'common',
    'users',
    'tenants',
    'orders',
    'payments',
    'qrcodes',
    'revenue',
    'configuration',
    'notifications',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'common.middleware.RequestLoggingMiddleware',
]

ROOT_URLCONF = 'foodcourt.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'foodcourt.wsgi.application'
ASGI_APPLICATION = 'foodcourt.asgi.application'

DATABASES = {
    'default': env.db('DATABASE_URL', default=f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
}

# Settings values are cached here and invalidated explicitly on write.
CACHES = {
    'default': env.cache('CACHE_URL', default='locmemcache://foodcourt-cache'),
}
SETTINGS_CACHE_TIMEOUT = env.int('SETTINGS_CACHE_TIMEOUT', default=300)

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'id'
TIME_ZONE = env('TIME_ZONE', default='Asia/Jakarta')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.TokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'EXCEPTION_HANDLER': 'common.exceptions.api_exception_handler',
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'Food Court POS API',
    'DESCRIPTION': 'Orders, payments, QR pickup codes and tenant settlements.',
    'VERSION': '1.0.0',
}

# Channels: Redis in production, in-memory for development and tests.
REDIS_URL = env('REDIS_URL', default='')
if REDIS_URL:
    CHANNEL_LAYERS = {
        'default': {
            'BACKEND': 'channels_redis.core.RedisChannelLayer',
            'CONFIG': {'hosts': [REDIS_URL]},
        },
    }
else:
    CHANNEL_LAYERS = {
        'default': {'BACKEND': 'channels.layers.InMemoryChannelLayer'},
    }

CELERY_BROKER_URL = env('CELERY_BROKER_URL', default='memory://')
CELERY_RESULT_BACKEND = env('CELERY_RESULT_BACKEND', default=None)
# Broadcast berjalan di worker; test menyalakan mode eager lewat conftest.py
CELERY_TASK_ALWAYS_EAGER = env.bool('CELERY_TASK_ALWAYS_EAGER', default=False)
CELERY_TASK_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TIMEZONE = TIME_ZONE

# Base URL used to build QR code access links.
APP_URL = env('APP_URL', default='http://localhost:3000')
# Fallback when the qr_expiry_hours setting row does not exist.
QR_EXPIRY_HOURS = env.int('QR_EXPIRY_HOURS', default=24)

LOG_LEVEL = env('LOG_LEVEL', default='INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'WARNING', 'propagate': False},
        'security': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'requests': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'common': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'orders': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'payments': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'qrcodes': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'revenue': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'configuration': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'notifications': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}
