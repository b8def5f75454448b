from .base import *

DEBUG = True

INTERNAL_IPS = ['127.0.0.1']

LOGGING['loggers']['apps']['level'] = 'DEBUG'

SITE_URL = 'http://127.0.0.1:8000'
