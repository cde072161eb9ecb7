"""
Attempt state machine.

    (no row) --start--> in-progress --submit--> completed | expired

There is no in-process lock: ``start`` converges on the row keyed by
(student, test) through the unique constraint, and ``submit`` is a
conditional update that only fires while the attempt is still open.
Expiry is lazy; see ``Attempt.effective_status``.
"""
import logging
from datetime import timedelta

from django.db import transaction

from exams import clock
from exams.clock import TestStatus
from exams.exceptions import DomainNotInTest, InvalidSection, NotEligible, TestNotActive

from .exceptions import AlreadyCompleted, AttemptNotFound
from .models import Attempt

logger = logging.getLogger(__name__)


def start_attempt(student, test, domain_id, section, now=None):
    """
    Open (or resume) the student's attempt at ``test``.

    Returns ``(attempt, created)``. Re-opening an in-progress attempt hands
    back the stored row untouched, so the clock is never reset.
    """
    now = now or clock.now()

    if test.status_at(now) != TestStatus.ACTIVE:
        raise TestNotActive()
    if not test.is_open_to(student):
        raise NotEligible()
    if not test.has_domain(domain_id):
        raise DomainNotInTest()
    if section not in (test.sections or []):
        raise InvalidSection()

    window = {
        'start_time': now,
        'due_time': now + timedelta(minutes=test.duration_minutes),
        'status': Attempt.Status.IN_PROGRESS,
        'selected_domain_id': domain_id,
        'selected_section': section,
    }

    with transaction.atomic():
        attempt, created = Attempt.objects.select_for_update().get_or_create(
            student=student, test=test, defaults=window,
        )
        if created:
            logger.info("Attempt %s started: student=%s test=%s due=%s",
                        attempt.pk, student.pk, test.pk, attempt.due_time)
            return attempt, True

        if attempt.is_terminal:
            raise AlreadyCompleted()

    logger.debug("Attempt %s resumed by student %s", attempt.pk, student.pk)
    return attempt, False


def submit_attempt(student, test, now=None):
    """
    Close the attempt. Returns ``(attempt, transitioned)``.

    Retrying on a terminal attempt re-confirms the stored status and end
    time instead of reopening anything.
    """
    now = now or clock.now()

    try:
        attempt = Attempt.objects.get(student=student, test=test)
    except Attempt.DoesNotExist:
        raise AttemptNotFound()

    if attempt.is_terminal:
        logger.debug("Attempt %s already %s; submit ignored", attempt.pk, attempt.status)
        return attempt, False

    late = attempt.due_time is not None and now > attempt.due_time
    new_status = Attempt.Status.EXPIRED if late else Attempt.Status.COMPLETED

    updated = Attempt.objects.filter(
        pk=attempt.pk, status__in=Attempt.OPEN_STATUSES,
    ).update(end_time=now, status=new_status, updated_at=now)
    attempt.refresh_from_db()

    if updated:
        logger.info("Attempt %s submitted: status=%s", attempt.pk, attempt.status)
    return attempt, bool(updated)


def get_attempt(student, test):
    try:
        return Attempt.objects.select_related('test', 'selected_domain').get(student=student, test=test)
    except Attempt.DoesNotExist:
        raise AttemptNotFound()


def categorize_attempts(student, now=None):
    """The student's own attempts, bucketed the way the dashboard shows them."""
    now = now or clock.now()
    # Attempts only exist once their test has opened, so nothing is upcoming
    buckets = {'upcoming': [], 'active': [], 'completed': []}

    attempts = (
        Attempt.objects.filter(student=student)
        .select_related('test', 'selected_domain')
        .order_by('-start_time')
    )
    for attempt in attempts:
        test_status = attempt.test.status_at(now)
        status = attempt.effective_status(now)
        if status in Attempt.TERMINAL_STATUSES or test_status == TestStatus.FINISHED:
            buckets['completed'].append(attempt)
        else:
            buckets['active'].append(attempt)
    return buckets
