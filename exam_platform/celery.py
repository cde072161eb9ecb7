# exam_platform/celery.py
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'exam_platform.settings')

app = Celery('exam_platform')

# All CELERY_* names in Django settings configure the worker
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()
