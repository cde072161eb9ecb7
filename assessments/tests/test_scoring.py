from decimal import Decimal

from django.test import TestCase

from assessments import attempts, ledger, scoring
from assessments.models import Attempt
from cores.testing import at, create_domain, create_exam, create_question, create_test_user


class ComputeTotalTests(TestCase):
    def setUp(self):
        self.student = create_test_user()
        self.domain = create_domain("Python")
        self.test = create_exam(domains=[self.domain], duration=60)
        attempts.start_attempt(self.student, self.test, self.domain.pk, "A", now=at(10))

        self.answers = []
        for n, mark in enumerate([5, None, 3]):
            question = create_question(self.domain, title=f"Question {n}")
            answer, _ = ledger.submit_answer(
                self.student, question.pk, self.domain.pk, "A", f"answer {n}",
                test_id=self.test.pk, now=at(10, 10),
            )
            if mark is not None:
                ledger.add_mark(answer.pk, mark)
            self.answers.append(answer)

    def test_unmarked_answers_count_as_zero(self):
        total, persisted = scoring.compute_total(self.student.pk, self.domain.pk, self.test.pk)
        self.assertEqual(total, Decimal("8"))
        self.assertTrue(persisted)
        self.assertEqual(Attempt.objects.get().score, Decimal("8"))

    def test_without_test_nothing_is_stored(self):
        total, persisted = scoring.compute_total(self.student.pk, self.domain.pk)
        self.assertEqual(total, Decimal("8"))
        self.assertFalse(persisted)
        self.assertIsNone(Attempt.objects.get().score)

    def test_no_attempt_is_created(self):
        other = create_test_user(handle="other")
        total, persisted = scoring.compute_total(other.pk, self.domain.pk, self.test.pk)
        self.assertEqual(total, Decimal("0"))
        self.assertFalse(persisted)
        self.assertFalse(Attempt.objects.filter(student=other).exists())

    def test_mark_sheet_groups_per_student(self):
        rows = scoring.domain_mark_sheet(self.domain.pk, self.test.pk)
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['student'], self.student)
        self.assertEqual(len(rows[0]['sections']['A']), 3)
        self.assertEqual(rows[0]['total_mark'], Decimal("8"))
