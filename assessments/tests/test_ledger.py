from decimal import Decimal

from django.test import TestCase, override_settings

from assessments import attempts, ledger
from assessments.exceptions import (
    AnswerNotFound, EmptyAnswer, ExamExpired, InvalidExamStart, InvalidMark,
    MarkAlreadySet, MissingExamStart, NoMarkToEdit,
)
from assessments.models import Answer
from assessments.storage import BlobStore
from cores.testing import at, create_domain, create_exam, create_question, create_test_user
from exams.exceptions import InvalidSection, QuestionNotFound


class RecordingStore(BlobStore):
    def __init__(self, fail=False):
        self.fail = fail
        self.destroyed = []

    def destroy(self, public_id):
        self.destroyed.append(public_id)
        if self.fail:
            raise ConnectionError("bucket unreachable")


class SubmitAnswerTests(TestCase):
    def setUp(self):
        self.student = create_test_user()
        self.domain = create_domain("Python")
        self.question = create_question(self.domain)
        self.test = create_exam(domains=[self.domain], duration=30)

    def submit(self, text="First draft", when=at(10, 10), **kwargs):
        kwargs.setdefault('exam_start_time', at(10))
        return ledger.submit_answer(
            self.student, self.question.pk, self.domain.pk, "A", text, now=when, **kwargs,
        )

    def test_first_submit_stores_fallback_window(self):
        answer, created = self.submit()
        self.assertTrue(created)
        self.assertEqual(answer.exam_start_time, at(10))
        self.assertEqual(answer.exam_end_time, at(12))
        self.assertTrue(answer.is_submitted)
        self.assertIsNone(answer.mark)

    def test_resubmit_updates_in_place_and_keeps_mark(self):
        answer, _ = self.submit()
        ledger.add_mark(answer.pk, 4)

        again, created = self.submit("Second draft", when=at(10, 30), exam_start_time=at(10, 20))
        self.assertFalse(created)
        self.assertEqual(again.pk, answer.pk)
        self.assertEqual(again.text, "Second draft")
        self.assertEqual(again.mark, Decimal("4"))
        # The window stored with the first answer still governs
        self.assertEqual(again.exam_start_time, at(10))
        self.assertEqual(Answer.objects.count(), 1)

    def test_blank_text_is_rejected(self):
        with self.assertRaises(EmptyAnswer):
            self.submit("   ")
        self.assertFalse(Answer.objects.exists())

    def test_unknown_question_and_section(self):
        with self.assertRaises(QuestionNotFound):
            ledger.submit_answer(self.student, 9999, self.domain.pk, "A", "text",
                                 exam_start_time=at(10), now=at(10, 10))
        with self.assertRaises(InvalidSection):
            ledger.submit_answer(self.student, self.question.pk, self.domain.pk, "C", "text",
                                 exam_start_time=at(10), now=at(10, 10))

    def test_first_answer_needs_a_start(self):
        with self.assertRaises(MissingExamStart):
            ledger.submit_answer(self.student, self.question.pk, self.domain.pk, "A", "text", now=at(10, 10))

    def test_answers_after_window_are_rejected(self):
        self.submit()
        with self.assertRaises(ExamExpired):
            self.submit("Too late", when=at(12, 1))
        self.assertEqual(Answer.objects.get().text, "First draft")

    def test_attempt_due_time_governs(self):
        attempts.start_attempt(self.student, self.test, self.domain.pk, "A", now=at(10, 5))

        answer, _ = self.submit(when=at(10, 20), test_id=self.test.pk, exam_start_time=None)
        self.assertEqual((answer.exam_start_time, answer.exam_end_time), (at(10, 5), at(10, 35)))

        with self.assertRaises(ExamExpired):
            self.submit("After due", when=at(10, 40), test_id=self.test.pk)

        attempt, _ = attempts.submit_attempt(self.student, self.test, now=at(10, 40))
        self.assertEqual(attempt.status, "expired")

    def test_submitted_attempt_closes_the_window(self):
        attempts.start_attempt(self.student, self.test, self.domain.pk, "A", now=at(10, 5))
        attempts.submit_attempt(self.student, self.test, now=at(10, 15))
        with self.assertRaises(ExamExpired):
            self.submit(when=at(10, 20), test_id=self.test.pk)

    def test_leaving_out_test_does_not_reopen_an_expired_answer(self):
        attempts.start_attempt(self.student, self.test, self.domain.pk, "A", now=at(10, 5))
        self.submit(when=at(10, 30), test_id=self.test.pk)

        with self.assertRaises(ExamExpired):
            self.submit("late rewrite", when=at(10, 40), exam_start_time=at(10, 39))

        stored = Answer.objects.get()
        self.assertEqual(stored.text, "First draft")
        self.assertEqual(stored.test, self.test)
        self.assertEqual(stored.exam_end_time, at(10, 35))

    def test_attempt_governs_answers_sent_without_test(self):
        attempts.start_attempt(self.student, self.test, self.domain.pk, "A", now=at(10, 5))

        answer, _ = self.submit(when=at(10, 20), exam_start_time=at(10, 19))
        self.assertEqual(answer.test, self.test)
        self.assertEqual((answer.exam_start_time, answer.exam_end_time), (at(10, 5), at(10, 35)))

        other = create_question(self.domain, title="Explain generators")
        with self.assertRaises(ExamExpired):
            ledger.submit_answer(self.student, other.pk, self.domain.pk, "A", "late",
                                 exam_start_time=at(10, 39), now=at(10, 40))
        self.assertFalse(Answer.objects.filter(question=other).exists())

    def test_future_exam_start_is_rejected(self):
        with self.assertRaises(InvalidExamStart):
            self.submit(when=at(10, 10), exam_start_time=at(11))
        self.assertFalse(Answer.objects.exists())

    def test_rewrite_keeps_its_original_test(self):
        final = create_exam("Final", domains=[self.domain], duration=60)
        attempts.start_attempt(self.student, self.test, self.domain.pk, "A", now=at(10, 5))
        self.submit(when=at(10, 20), test_id=self.test.pk)

        answer, created = self.submit("Second draft", when=at(10, 25), test_id=final.pk)
        self.assertFalse(created)
        self.assertEqual(answer.test, self.test)
        self.assertEqual(answer.exam_end_time, at(10, 35))

        with self.assertRaises(ExamExpired):
            self.submit("Third draft", when=at(10, 40), test_id=final.pk)
        self.assertEqual(Answer.objects.get().text, "Second draft")


class ExamWindowTests(TestCase):
    def setUp(self):
        self.student = create_test_user()
        self.domain = create_domain("Python")
        self.question = create_question(self.domain)

    def test_fresh_window_is_not_persisted(self):
        window = ledger.open_exam_window(self.student, self.domain.pk, "A", now=at(10))
        self.assertTrue(window['is_new'])
        self.assertEqual(window['exam_end_time'], at(12))
        self.assertEqual(window['time_remaining_seconds'], 7200)
        self.assertFalse(Answer.objects.exists())

    @override_settings(EXAM_ANSWER_WINDOW_MINUTES=30)
    def test_existing_window_is_reused(self):
        ledger.submit_answer(self.student, self.question.pk, self.domain.pk, "A", "text",
                             exam_start_time=at(10), now=at(10, 5))
        window = ledger.open_exam_window(self.student, self.domain.pk, "A", now=at(10, 20))
        self.assertFalse(window['is_new'])
        self.assertEqual(window['exam_end_time'], at(10, 30))

        with self.assertRaises(ExamExpired):
            ledger.open_exam_window(self.student, self.domain.pk, "A", now=at(10, 31))

    def test_exam_status(self):
        self.assertEqual(ledger.exam_status(self.student, self.domain.pk, "A", now=at(10)), {'has_started': False})
        ledger.submit_answer(self.student, self.question.pk, self.domain.pk, "A", "text",
                             exam_start_time=at(10), now=at(10, 5))
        status = ledger.exam_status(self.student, self.domain.pk, "A", now=at(12, 30))
        self.assertTrue(status['has_started'])
        self.assertTrue(status['has_expired'])
        self.assertEqual(status['time_remaining_seconds'], 0)


class MarkTests(TestCase):
    def setUp(self):
        student = create_test_user()
        domain = create_domain("Python")
        self.answer, _ = ledger.submit_answer(
            student, create_question(domain).pk, domain.pk, "A", "text",
            exam_start_time=at(10), now=at(10, 5),
        )

    def test_add_then_edit(self):
        self.assertEqual(ledger.add_mark(self.answer.pk, "7.5").mark, Decimal("7.50"))
        self.assertTrue(Answer.objects.get().mark_submitted)
        self.assertEqual(ledger.edit_mark(self.answer.pk, 6).mark, Decimal("6"))

    def test_add_twice_conflicts(self):
        ledger.add_mark(self.answer.pk, 5)
        with self.assertRaises(MarkAlreadySet):
            ledger.add_mark(self.answer.pk, 9)
        self.assertEqual(Answer.objects.get().mark, Decimal("5"))

    def test_edit_without_mark_conflicts(self):
        with self.assertRaises(NoMarkToEdit):
            ledger.edit_mark(self.answer.pk, 3)

    def test_mark_must_be_non_negative_number(self):
        for bad in (-1, "abc", None, True):
            with self.assertRaises(InvalidMark):
                ledger.add_mark(self.answer.pk, bad)
        self.assertIsNone(Answer.objects.get().mark)

    def test_zero_is_a_mark(self):
        ledger.add_mark(self.answer.pk, 0)
        with self.assertRaises(MarkAlreadySet):
            ledger.add_mark(self.answer.pk, 1)

    def test_unknown_answer(self):
        with self.assertRaises(AnswerNotFound):
            ledger.add_mark(9999, 1)


@override_settings(BLOB_PUBLIC_BASE_URL="https://cdn.example.com")
class ImageReferenceTests(TestCase):
    url = "https://cdn.example.com/answers/diagram.png"

    def setUp(self):
        student = create_test_user()
        domain = create_domain("Python")
        text = f'See below.\n\n<img alt="d" src="{self.url}">\n\n\nDone.'
        self.answer, _ = ledger.submit_answer(
            student, create_question(domain).pk, domain.pk, "A", text,
            exam_start_time=at(10), now=at(10, 5),
            image_url=self.url, image_public_id="answers/diagram",
        )

    def test_reference_removed_and_blob_destroyed(self):
        store = RecordingStore()
        answer = ledger.remove_image_reference(self.answer.pk, self.url, store=store)
        self.assertNotIn("<img", answer.text)
        self.assertNotIn("\n\n\n", answer.text)
        self.assertEqual(answer.image_url, "")
        self.assertEqual(store.destroyed, ["answers/diagram"])

    def test_store_failure_does_not_block_the_edit(self):
        store = RecordingStore(fail=True)
        ledger.remove_image_reference(self.answer.pk, self.url, store=store)
        stored = Answer.objects.get()
        self.assertNotIn("<img", stored.text)
        self.assertEqual(stored.image_public_id, "")

    def test_delete_answer(self):
        store = RecordingStore()
        ledger.delete_answer(self.answer.pk, store=store)
        self.assertFalse(Answer.objects.exists())
        self.assertEqual(store.destroyed, ["answers/diagram"])

    def test_only_one_matching_reference_is_removed(self):
        other = "https://cdn.example.com/answers/chart.png"
        Answer.objects.filter(pk=self.answer.pk).update(
            text=f'<img src="{self.url}">\nFirst\n<img src="{self.url}">\nSecond\n<img src="{other}">',
        )
        store = RecordingStore()
        answer = ledger.remove_image_reference(self.answer.pk, self.url, store=store)

        self.assertEqual(answer.text.count(f'src="{self.url}"'), 1)
        self.assertIn(f'<img src="{other}">', answer.text)
        self.assertIn("First", answer.text)
        self.assertIn("Second", answer.text)
