"""
Django settings for skillmon project.

For more information, see:
https://docs.djangoproject.com/en/5.1/topics/settings/
"""

from pathlib import Path
from decouple import config

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY
SECRET_KEY = config('SECRET_KEY', default='django-insecure-change-this-in-production')
DEBUG = config('DEBUG', default=True, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=lambda v: [s.strip() for s in v.split(',')])

# Application definition
INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django_q',
    'planner',
]

# Database
# https://docs.djangoproject.com/en/5.1/ref/settings/#databases
DATABASES = {
    'default': {
        'ENGINE': config('DB_ENGINE', default='django.db.backends.sqlite3'),
        'NAME': config('DB_NAME', default=BASE_DIR / 'db.sqlite3'),
        'USER': config('DB_USER', default=''),
        'PASSWORD': config('DB_PASSWORD', default=''),
        'HOST': config('DB_HOST', default=''),
        'PORT': config('DB_PORT', default=''),
    }
}
# Default auto-increment for SQLite
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Skill plan engine
SKILL_PLAN_MAX_REMAPS = config('SKILL_PLAN_MAX_REMAPS', default=1, cast=int)
SKILL_PLAN_OPTIMIZER_TIMEOUT = config('SKILL_PLAN_OPTIMIZER_TIMEOUT', default=30, cast=int)

# django-q2 Configuration
Q_CLUSTER = {
    'name': 'skillmon',
    'workers': config('Q_WORKERS', default=1, cast=int),
    'timeout': config('Q_TIMEOUT', default=60, cast=int),
    'retry': config('Q_RETRY', default=120, cast=int),
    'queue_limit': config('Q_QUEUE_LIMIT', default=50, cast=int),
    'bulk': config('Q_BULK', default=1, cast=int),
    'save_limit': config('Q_SAVE_LIMIT', default=250, cast=int),
    'cpu_affinity': config('Q_CPU_AFFINITY', default=1, cast=int),
    'sync': config('Q_SYNC', default=False, cast=bool),
    'label': 'Django Q2',
    'orm': 'default',  # Database broker
}

# Logging
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': BASE_DIR / 'logs' / 'skillmon.log',
            'maxBytes': 10 * 1024 * 1024,  # 10MB
            'backupCount': 5,
            'formatter': 'verbose',
            'delay': True,
        },
    },
    'root': {
        'handlers': ['console', 'file'] if not DEBUG else ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {'handlers': ['console'], 'level': config('DJANGO_LOG_LEVEL', default='INFO'), 'propagate': False},
        'skillmon': {'handlers': ['console', 'file'] if not DEBUG else ['console'], 'level': 'DEBUG', 'propagate': False},
    },
}
