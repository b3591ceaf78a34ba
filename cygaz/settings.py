"""
Django settings for cygaz.

Everything is configured from environment variables; a `.env` file in the
project root is loaded first if present. The price cache lives in process
memory, so no database is configured.
"""

import os
import uuid
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env', override=False)


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-cygaz-development-key')

DEBUG = env_bool('DJANGO_DEBUG')

ALLOWED_HOSTS = [host.strip() for host in os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',') if host.strip()]

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'drf_spectacular',
    'prices',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'cygaz.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
            ],
        },
    },
]

WSGI_APPLICATION = 'cygaz.wsgi.application'

DATABASES = {}

LANGUAGE_CODE = 'en-us'

TIME_ZONE = 'Asia/Nicosia'

USE_I18N = False

USE_TZ = True

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [],
    'UNAUTHENTICATED_USER': None,
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'COERCE_DECIMAL_TO_STRING': False,
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'cygaz',
    'DESCRIPTION': 'Cyprus petroleum prices by district, scraped from the government price portal',
    'VERSION': '0.2.0',
    'SERVE_INCLUDE_SCHEMA': False,
}

# Price cache
CYGAZ_PORTAL_ENDPOINT = os.environ.get(
    'CYGAZ_PORTAL_ENDPOINT',
    'https://eforms.eservices.cyprus.gov.cy/MCIT/MCIT/PetroleumPrices',
)
CYGAZ_AREAS_ENDPOINT = os.environ.get(
    'CYGAZ_AREAS_ENDPOINT',
    'https://eforms.eservices.cyprus.gov.cy/MCIT/MCIT/PetroleumPrices/GetStationCities',
)
CYGAZ_HTTP_TIMEOUT = float(os.environ.get('CYGAZ_HTTP_TIMEOUT', '30'))
CYGAZ_REFRESH_INTERVAL = int(os.environ.get('CYGAZ_REFRESH_INTERVAL', '3600'))
CYGAZ_SCHEDULER_ENABLED = env_bool('CYGAZ_SCHEDULER_ENABLED', True)
CYGAZ_KEEP_UNRESOLVED = env_bool('CYGAZ_KEEP_UNRESOLVED')
# Token for PATCH /api/prices/refresh/; random per process when unset
CYGAZ_SECRET = os.environ.get('CYGAZ_SECRET') or str(uuid.uuid4())

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} [{threadName}] {name}: {message}',
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
        'level': os.environ.get('CYGAZ_LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'urllib3': {
            'level': 'WARNING',
        },
    },
}
