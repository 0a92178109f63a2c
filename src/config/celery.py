"""
Celery application for the storefront backend.

DJANGO_SETTINGS_MODULE is set before the app is created so Celery reads
the Django settings (``CELERY_`` prefix), including the beat schedule that
drains the transactional outbox.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("storefront")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Discover tasks.py in every installed app
app.autodiscover_tasks()
