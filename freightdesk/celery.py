"""
Celery application.
Beat schedule and broker come from Django settings (CELERY_* namespace).
"""

import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "freightdesk.settings")

app = Celery("freightdesk")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
