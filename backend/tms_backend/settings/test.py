"""Settings used by the test suite: in-memory database, channel layer and mail."""

from .base import *  # noqa: F401,F403

DEBUG = False
SECRET_KEY = 'test-only-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
SMS_PROVIDER = 'notifications.providers.ConsoleSmsProvider'

OFFER_NOTIFICATIONS_ASYNC = False
OFFER_EXPIRY_SWEEP_ENABLED = False
CELERY_BEAT_SCHEDULE = {}
