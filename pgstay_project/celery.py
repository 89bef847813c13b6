"""Celery application running the periodic booking sweep."""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "pgstay_project.settings")

app = Celery("pgstay_project")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
