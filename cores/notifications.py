"""
Best-effort outbound email.

Messages are queued on the Celery task ``cores.tasks.deliver_email`` once
the surrounding transaction commits. Queueing and delivery failures are
logged and never reach the request that triggered them.
"""
import logging

from django.db import transaction

from .tasks import deliver_email

logger = logging.getLogger(__name__)


def _enqueue(to, subject, body):
    try:
        deliver_email.delay(to, subject, body)
    except Exception:
        logger.warning("Could not queue email to %s (subject=%r)", to, subject, exc_info=True)


def send(to, subject, body):
    if not to:
        logger.warning("Skipping email with no recipient (subject=%r)", subject)
        return
    transaction.on_commit(lambda: _enqueue(to, subject, body))


def notify_test_invitation(test, students):
    subject = f"You have been invited to the exam: {test.title}"
    for student in students:
        body = (
            f"Dear {student.get_full_name() or student.email},\n\n"
            f"You have been scheduled for \"{test.title}\".\n"
            f"It opens at {test.start_date:%Y-%m-%d %H:%M %Z} and closes at {test.end_date:%Y-%m-%d %H:%M %Z}.\n"
            f"Once started you will have {test.duration_minutes} minutes to submit.\n"
        )
        send(student.email, subject, body)


def notify_attempt_submitted(attempt):
    student = attempt.student
    body = (
        f"Dear {student.get_full_name() or student.email},\n\n"
        f"Your attempt at \"{attempt.test.title}\" was received at {attempt.end_time:%Y-%m-%d %H:%M %Z}.\n"
        f"Status: {attempt.get_status_display()}.\n"
    )
    send(student.email, f"Submission received: {attempt.test.title}", body)
