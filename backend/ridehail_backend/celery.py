"""Celery application for background ride processing (offer expiry sweeps)."""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "ridehail_backend.settings")

app = Celery("ridehail_backend")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
