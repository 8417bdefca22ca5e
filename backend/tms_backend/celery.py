"""Celery application for background offer processing."""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'tms_backend.settings.base')

app = Celery('tms_backend')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
