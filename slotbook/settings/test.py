import os

os.environ.setdefault('SECRET_KEY', 'slotbook-test-secret-key')
os.environ.setdefault('DATABASE_URL', 'sqlite:///slotbook-test.sqlite3')

from .base import *  # noqa: E402

DEBUG = False

STORAGES['staticfiles'] = {
    'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

LOGGING['loggers']['apps']['level'] = 'WARNING'
