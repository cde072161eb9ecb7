"""
Clock & status derivation for tests.

A test's status is never stored: it is recomputed from its window and a
single ``now`` taken once per request. Call ``clock.now()`` through the
module (``from exams import clock``) so tests can patch it.
"""
from django.db import models
from django.utils import timezone


class TestStatus(models.TextChoices):
    INACTIVE = "inactive", "Inactive"
    ACTIVE = "active", "Active"
    FINISHED = "finished", "Finished"


def now():
    return timezone.now()


def derive_status(start, end, at):
    if at < start:
        return TestStatus.INACTIVE
    if at > end:
        return TestStatus.FINISHED
    return TestStatus.ACTIVE


def test_status(test, at):
    return derive_status(test.start_date, test.end_date, at)
