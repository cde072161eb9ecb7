"""
Test catalog operations.

Views stay thin: they validate the payload shape, call into here, and
serialize the result. Everything that depends on "now" takes it as an
argument so a request can use one consistent clock reading.
"""
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Q

from . import clock
from .clock import TestStatus
from .exceptions import (
    DuplicateTitle, InvalidDomainReference, InvalidEligibility, InvalidSection,
    InvalidWindow, TestNotFound,
)
from .models import Domain, Test

logger = logging.getLogger(__name__)

User = get_user_model()


def title_exists(title, exclude_id=None):
    qs = Test.objects.filter(title=title.strip())
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


def get_test(test_id):
    try:
        return Test.objects.get(pk=test_id)
    except (Test.DoesNotExist, ValueError, TypeError):
        raise TestNotFound()


def _resolve_domains(domain_ids):
    # Keep the administrator's order, drop repeats
    ordered_ids = list(dict.fromkeys(domain_ids))
    if not ordered_ids:
        raise InvalidWindow()
    found = Domain.objects.in_bulk(ordered_ids)
    if len(found) != len(ordered_ids):
        raise InvalidDomainReference()
    return [found[pk] for pk in ordered_ids]


def _resolve_students(student_ids):
    ids = set(student_ids)
    students = list(User.objects.filter(pk__in=ids, role=User.Role.STUDENT))
    if len(students) != len(ids):
        raise InvalidEligibility()
    return students


def _check_sections(sections):
    allowed = set(settings.EXAM_SECTIONS)
    if not sections or not set(sections) <= allowed:
        raise InvalidSection(f"Sections must be a non-empty subset of {sorted(allowed)}.")
    return sorted(set(sections))


def _check_window(start, end):
    if end <= start:
        raise InvalidWindow('The end of the test window must be after its start.')


def create_test(title, domain_ids, start_date, end_date, duration_minutes=None,
                sections=None, eligible_ids=None):
    title = title.strip()
    if title_exists(title):
        raise DuplicateTitle()

    domains = _resolve_domains(domain_ids)
    _check_window(start_date, end_date)
    sections = _check_sections(sections if sections is not None else settings.EXAM_SECTIONS)
    students = _resolve_students(eligible_ids or [])

    try:
        with transaction.atomic():
            test = Test.objects.create(
                title=title,
                start_date=start_date,
                end_date=end_date,
                duration_minutes=duration_minutes or settings.EXAM_DEFAULT_DURATION_MINUTES,
                sections=sections,
            )
            test.set_domains(domains)
            if students:
                test.eligible_students.set(students)
    except IntegrityError:
        # Lost a race against a concurrent create with the same title
        raise DuplicateTitle()

    logger.info("Test %s created: %r [%s, %s]", test.pk, test.title, test.start_date, test.end_date)
    return test


def update_test(test, **fields):
    """
    Apply a partial update. In-progress attempts are not re-checked:
    they hold their own frozen copy of the window.
    """
    changes = {}
    if 'title' in fields:
        title = fields['title'].strip()
        if title_exists(title, exclude_id=test.pk):
            raise DuplicateTitle()
        changes['title'] = title

    domains = _resolve_domains(fields['domains']) if 'domains' in fields else None

    start = fields.get('start_date', test.start_date)
    end = fields.get('end_date', test.end_date)
    _check_window(start, end)
    changes['start_date'], changes['end_date'] = start, end

    if fields.get('duration_minutes'):
        changes['duration_minutes'] = fields['duration_minutes']
    if 'sections' in fields:
        changes['sections'] = _check_sections(fields['sections'])
    students = _resolve_students(fields['eligible_students']) if 'eligible_students' in fields else None

    # Nothing touches the instance until every field has been validated
    for field, value in changes.items():
        setattr(test, field, value)

    try:
        with transaction.atomic():
            test.save()
            if domains is not None:
                test.set_domains(domains)
            if students is not None:
                test.eligible_students.set(students)
    except IntegrityError:
        raise DuplicateTitle()

    logger.info("Test %s updated (%s)", test.pk, ", ".join(sorted(fields)))
    return test


def delete_test(test):
    test_id = test.pk
    attempts = test.attempts.count()
    # Attempts and answers referencing the test cascade at the database level
    test.delete()
    logger.info("Test %s deleted along with %d attempt(s)", test_id, attempts)
    return attempts


def tests_open_to(student):
    return (
        Test.objects.filter(Q(eligible_students__isnull=True) | Q(eligible_students=student))
        .distinct()
        .prefetch_related('domain_links__domain')
    )


def list_for_student(student, now=None):
    """Partition the tests a student may see into upcoming/active/completed."""
    from assessments.models import Attempt

    now = now or clock.now()
    finished_ids = {
        attempt.test_id
        for attempt in Attempt.objects.filter(student=student)
        if attempt.effective_status(now) in Attempt.TERMINAL_STATUSES
    }

    upcoming, active, completed = [], [], []
    for test in tests_open_to(student):
        if test.pk in finished_ids:
            completed.append(test)
            continue
        status = test.status_at(now)
        if status == TestStatus.INACTIVE:
            upcoming.append(test)
        elif status == TestStatus.ACTIVE:
            active.append(test)

    return {'upcoming': upcoming, 'active': active, 'completed': completed}
