from django.test import TestCase

from assessments import attempts
from assessments.exceptions import AlreadyCompleted, AttemptNotFound
from assessments.models import Attempt
from cores.testing import at, create_domain, create_exam, create_test_user
from exams.exceptions import DomainNotInTest, InvalidSection, NotEligible, TestNotActive


class StartAttemptTests(TestCase):
    def setUp(self):
        self.student = create_test_user()
        self.python = create_domain("Python")
        self.sql = create_domain("SQL")
        self.test = create_exam(domains=[self.python], duration=30, sections=["A"])

    def test_start_freezes_due_time(self):
        attempt, created = attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(10, 5))
        self.assertTrue(created)
        self.assertEqual(attempt.status, Attempt.Status.IN_PROGRESS)
        self.assertEqual(attempt.start_time, at(10, 5))
        self.assertEqual(attempt.due_time, at(10, 35))
        self.assertEqual(attempt.selected_domain, self.python)
        self.assertEqual(attempt.selected_section, "A")

    def test_restart_keeps_the_clock(self):
        first, _ = attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(10, 5))
        again, created = attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(10, 20))
        self.assertFalse(created)
        self.assertEqual(again.pk, first.pk)
        self.assertEqual((again.start_time, again.due_time), (at(10, 5), at(10, 35)))
        self.assertEqual(Attempt.objects.filter(student=self.student, test=self.test).count(), 1)

    def test_due_time_survives_test_edits(self):
        attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(10, 5))
        self.test.duration_minutes = 5
        self.test.save()
        attempt, _ = attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(10, 6))
        self.assertEqual(attempt.due_time, at(10, 35))

    def test_test_must_be_active(self):
        with self.assertRaises(TestNotActive):
            attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(9, 59))
        with self.assertRaises(TestNotActive):
            attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(12, 1))
        self.assertFalse(Attempt.objects.exists())

    def test_domain_and_section_must_belong_to_test(self):
        with self.assertRaises(DomainNotInTest):
            attempts.start_attempt(self.student, self.test, self.sql.pk, "A", now=at(10, 5))
        with self.assertRaises(InvalidSection):
            attempts.start_attempt(self.student, self.test, self.python.pk, "B", now=at(10, 5))

    def test_eligibility_list_is_enforced(self):
        other = create_test_user(handle="other")
        private = create_exam("Private", domains=[self.python], eligible=[other])
        with self.assertRaises(NotEligible):
            attempts.start_attempt(self.student, private, self.python.pk, "A", now=at(10, 5))

    def test_no_second_attempt_after_submit(self):
        attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(10, 5))
        attempts.submit_attempt(self.student, self.test, now=at(10, 20))
        with self.assertRaises(AlreadyCompleted):
            attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(10, 30))


class SubmitAttemptTests(TestCase):
    def setUp(self):
        self.student = create_test_user()
        self.python = create_domain("Python")
        self.test = create_exam(domains=[self.python], duration=30)
        attempts.start_attempt(self.student, self.test, self.python.pk, "A", now=at(10, 5))

    def test_on_time_submit_completes(self):
        attempt, transitioned = attempts.submit_attempt(self.student, self.test, now=at(10, 35))
        self.assertTrue(transitioned)
        self.assertEqual(attempt.status, Attempt.Status.COMPLETED)
        self.assertEqual(attempt.end_time, at(10, 35))

    def test_late_submit_expires(self):
        attempt, _ = attempts.submit_attempt(self.student, self.test, now=at(10, 40))
        self.assertEqual(attempt.status, Attempt.Status.EXPIRED)

    def test_resubmit_is_a_no_op(self):
        attempts.submit_attempt(self.student, self.test, now=at(10, 20))
        attempt, transitioned = attempts.submit_attempt(self.student, self.test, now=at(11, 50))
        self.assertFalse(transitioned)
        self.assertEqual(attempt.status, Attempt.Status.COMPLETED)
        self.assertEqual(attempt.end_time, at(10, 20))

    def test_submit_without_start(self):
        with self.assertRaises(AttemptNotFound):
            attempts.submit_attempt(create_test_user(handle="late"), self.test, now=at(10, 20))


class EffectiveStatusTests(TestCase):
    def test_unsubmitted_attempt_reads_expired_after_due(self):
        student = create_test_user()
        python = create_domain("Python")
        test = create_exam(domains=[python], duration=30)
        attempt, _ = attempts.start_attempt(student, test, python.pk, "A", now=at(10, 5))

        self.assertEqual(attempt.effective_status(at(10, 35)), Attempt.Status.IN_PROGRESS)
        self.assertEqual(attempt.effective_status(at(10, 36)), Attempt.Status.EXPIRED)
        self.assertEqual(attempt.time_remaining_seconds(at(10, 25)), 600)
        # Stored row is untouched by reads
        attempt.refresh_from_db()
        self.assertEqual(attempt.status, Attempt.Status.IN_PROGRESS)

    def test_categorize_attempts(self):
        student = create_test_user()
        python = create_domain("Python")
        running = create_exam("Running", domains=[python])
        done = create_exam("Done", domains=[python])
        attempts.start_attempt(student, running, python.pk, "A", now=at(10, 5))
        attempts.start_attempt(student, done, python.pk, "A", now=at(10, 5))
        attempts.submit_attempt(student, done, now=at(10, 10))

        buckets = attempts.categorize_attempts(student, now=at(10, 15))
        self.assertEqual([a.test for a in buckets['active']], [running])
        self.assertEqual([a.test for a in buckets['completed']], [done])
