import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_list(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return [part.strip() for part in value.split(',') if part.strip()]


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'insecure-dev-key')
DEBUG = _env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = _env_list('DJANGO_ALLOWED_HOSTS', [])

INSTALLED_APPS = [
    'catalog_sync',
]

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.environ.get('DB_USER', ''),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', ''),
        'PORT': os.environ.get('DB_PORT', ''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
USE_TZ = True
TIME_ZONE = 'UTC'

# Celery
CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True

# External catalog service
CATALOG_API_BASE_URL = os.environ.get('CATALOG_API_BASE_URL', 'https://connect.squareup.com/v2')
CATALOG_API_TOKEN = os.environ.get('CATALOG_API_TOKEN', '')
CATALOG_API_TIMEOUT = float(os.environ.get('CATALOG_API_TIMEOUT', '30'))
CATALOG_API_RATE_LIMIT = float(os.environ.get('CATALOG_API_RATE_LIMIT', '5'))  # requests per second
CATALOG_FETCH_LIMIT = int(os.environ.get('CATALOG_FETCH_LIMIT', '1000'))

# Filtered sync defaults
CATALOG_SYNC_BATCH_SIZE = int(os.environ.get('CATALOG_SYNC_BATCH_SIZE', '50'))
CATALOG_SYNC_BATCH_DELAY = float(os.environ.get('CATALOG_SYNC_BATCH_DELAY', '0.1'))  # seconds
CATALOG_SYNC_ENABLE_IMAGES = _env_bool('CATALOG_SYNC_ENABLE_IMAGES', True)
CATALOG_SYNC_PRODUCT_NAME_PATTERNS = _env_list(
    'CATALOG_SYNC_PRODUCT_NAME_PATTERNS', [r'alfajor', r'empanada'],
)
CATALOG_SYNC_ALLOWED_CATEGORIES = _env_list(
    'CATALOG_SYNC_ALLOWED_CATEGORIES', ['ALFAJORES', 'EMPANADAS'],
)
CATALOG_SYNC_PROTECTED_CATEGORIES = _env_list(
    'CATALOG_SYNC_PROTECTED_CATEGORIES',
    [
        'CATERING- APPETIZERS',
        'CATERING- BUFFET, STARTERS',
        'CATERING- BUFFET, ENTREES',
        'CATERING- BUFFET, SIDES',
        'CATERING- SHARE PLATTERS',
        'CATERING- DESSERTS',
        'CATERING- LUNCH, STARTERS',
        'CATERING- LUNCH, ENTREES',
        'CATERING- BOXED LUNCHES',
        'CATERING- LUNCH, SIDES',
    ],
)
CATALOG_SYNC_LOG_LEVEL = os.environ.get('CATALOG_SYNC_LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
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
        'catalog_sync': {
            'level': CATALOG_SYNC_LOG_LEVEL,
        },
    },
}
