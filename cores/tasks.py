# cores/tasks.py
import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


@shared_task(
    autoretry_for=(Exception,),
    retry_backoff=5,
    retry_kwargs={"max_retries": 3},
)
def deliver_email(to, subject, body):
    """Hand one message to the mail backend; the worker retries on failure."""
    send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [to], fail_silently=False)
    logger.info("Email delivered to %s (subject=%r)", to, subject)
