"""Django settings for the newsboard project.

Everything deployment-specific comes from NEWSBOARD_* environment variables; the defaults give a
local SQLite database that is good enough for development and for the test suite.
"""

import os
import sys
from pathlib import Path


BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(key, default='0'):
    return os.getenv(key, default).strip().lower() not in ('0', 'false', 'no', 'off', '')


SECRET_KEY = os.getenv('NEWSBOARD_SECRET_KEY', 'newsboard-development-key-do-not-use-in-production')

DEBUG = _env_bool('NEWSBOARD_DEBUG')

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    'graphene_django',
    'django_filters',
    'users',
    'content',
]

DATABASES = {
    'default': {
        'ENGINE': os.getenv('NEWSBOARD_DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.getenv('NEWSBOARD_DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.getenv('NEWSBOARD_DB_USER', ''),
        'PASSWORD': os.getenv('NEWSBOARD_DB_PASSWORD', ''),
        'HOST': os.getenv('NEWSBOARD_DB_HOST', ''),
        'PORT': os.getenv('NEWSBOARD_DB_PORT', ''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

USE_TZ = True
TIME_ZONE = 'UTC'

# Hashing with the default PBKDF2 iteration count makes every test that creates a user slow.
if len(sys.argv) > 1 and sys.argv[1] == 'test':
    PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

GRAPHENE = {
    'SCHEMA': 'newsboard.schema.schema',
}

LOG_LEVEL = os.getenv('NEWSBOARD_LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'console': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'console',
        },
    },
    'loggers': {
        'newsboard': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'users': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'content': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}
