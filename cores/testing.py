"""Builders shared by the test suites of every app."""
from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib.auth import get_user_model

from exams.models import Domain, Question, Test

T0 = datetime(2025, 1, 10, 10, 0, tzinfo=dt_timezone.utc)


def at(hour, minute=0):
    """A timestamp on the fixed test day."""
    return T0.replace(hour=hour, minute=minute)


def create_test_user(role="student", **kwargs):
    """Helper function to create a test user with the given role."""
    handle = kwargs.pop('handle', role)
    user_data = {
        'username': f'test_{handle}@example.com',
        'email': f'test_{handle}@example.com',
        'password': 'testpass123',
        'first_name': f'Test {handle.title()}',
        'last_name': 'User',
        'role': role,
        'is_active': True,
    }
    user_data.update(kwargs)
    return get_user_model().objects.create_user(**user_data)


def create_domain(name="Python"):
    return Domain.objects.create(name=name)


def create_question(domain, section="A", title="Explain closures"):
    return Question.objects.create(
        domain=domain, section=section, title=title,
        description=f"{title} in your own words.", answer_text="reference",
    )


def create_exam(title="Midterm", domains=(), start=None, end=None, duration=30, sections=("A", "B"), eligible=()):
    """A test row built directly, bypassing catalog validation."""
    test = Test.objects.create(
        title=title,
        start_date=start or at(10),
        end_date=end or at(12),
        duration_minutes=duration,
        sections=list(sections),
    )
    test.set_domains(list(domains))
    if eligible:
        test.eligible_students.set(eligible)
    return test


def minutes(n):
    return timedelta(minutes=n)
