from unittest import mock

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from assessments.models import Answer, Attempt
from cores.models import AuditLog
from cores.testing import at, create_domain, create_exam, create_question, create_test_user


class ExamFlowAPITests(APITestCase):
    """A student takes a 30 minute test inside a 10:00-12:00 window."""

    def setUp(self):
        self.student = create_test_user(role="student")
        self.staff = create_test_user(role="staff")
        self.domain = create_domain("Python")
        self.question = create_question(self.domain, section="A")
        self.test = create_exam(domains=[self.domain], duration=30)
        self.client.force_authenticate(user=self.student)

    def at_clock(self, hour, minute=0):
        return mock.patch('exams.clock.now', return_value=at(hour, minute))

    def start(self):
        return self.client.post(
            reverse('tests-start', args=[self.test.pk]),
            {'domain_id': self.domain.pk, 'section': 'a'}, format='json',
        )

    def answer(self, text="def f(): pass"):
        return self.client.post(reverse('answers-submit'), {
            'question_id': self.question.pk,
            'domain_id': self.domain.pk,
            'section': 'A',
            'answer_text': text,
            'test_id': self.test.pk,
        }, format='json')

    def test_late_student_is_expired(self):
        with self.at_clock(10, 5):
            response = self.start()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['attempt']['status'], 'in-progress')
        self.assertEqual(response.data['attempt']['time_remaining_seconds'], 1800)
        self.assertEqual([q['id'] for q in response.data['questions']], [self.question.pk])
        self.assertNotIn('answer_text', response.data['questions'][0])

        with self.at_clock(10, 20):
            response = self.start()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['due_time'], at(10, 35))

        with self.at_clock(10, 30):
            response = self.answer()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        with self.at_clock(10, 40):
            response = self.answer("edited")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'exam_expired')

        with self.at_clock(10, 40):
            response = self.client.get(reverse('attempt-detail', args=[self.test.pk]))
        self.assertEqual(response.data['status'], 'in-progress')
        self.assertEqual(response.data['effective_status'], 'expired')

        with self.at_clock(10, 40):
            response = self.client.post(reverse('tests-submit', args=[self.test.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'expired')

        with self.at_clock(10, 45):
            response = self.start()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'already_completed')
        self.assertEqual(Answer.objects.get().text, "def f(): pass")

    def test_start_outside_window(self):
        with self.at_clock(9, 0):
            response = self.start()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'test_not_active')
        self.assertFalse(Attempt.objects.exists())

    def test_submit_before_start(self):
        with self.at_clock(10, 10):
            response = self.client.post(reverse('tests-submit', args=[self.test.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Not started.')

    def test_blank_answer(self):
        with self.at_clock(10, 5):
            self.start()
            response = self.answer("   ")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'empty_answer')

    def test_staff_cannot_take_tests(self):
        self.client.force_authenticate(user=self.staff)
        with self.at_clock(10, 5):
            response = self.start()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_is_rejected(self):
        self.client.force_authenticate(user=None)
        response = self.client.post(reverse('answers-submit'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class GradingAPITests(APITestCase):
    def setUp(self):
        self.student = create_test_user(role="student")
        self.staff = create_test_user(role="staff")
        self.domain = create_domain("Python")
        self.test = create_exam(domains=[self.domain], duration=60)
        Attempt.objects.create(student=self.student, test=self.test, status=Attempt.Status.COMPLETED)
        self.answer = Answer.objects.create(
            student=self.student, domain=self.domain, test=self.test, section="A",
            question=create_question(self.domain), text="answer",
            exam_start_time=at(10), exam_end_time=at(11), submitted_at=at(10, 30),
        )
        self.client.force_authenticate(user=self.staff)

    def test_students_cannot_grade(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.post(reverse('answers-marks-add'), {'answer_id': self.answer.pk, 'mark': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_add_edit_and_total(self):
        url = reverse('answers-marks-add')
        response = self.client.post(url, {'answer_id': self.answer.pk, 'mark': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['answer']['student']['email'], self.student.email)

        response = self.client.post(url, {'answer_id': self.answer.pk, 'mark': 9}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'mark_already_set')

        response = self.client.put(reverse('answers-marks-edit', args=[self.answer.pk]), {'mark': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post(reverse('answers-calculate-total'), {
            'student_id': self.student.pk, 'domain_id': self.domain.pk, 'test_id': self.test.pk,
        }, format='json')
        self.assertEqual(response.data['total'], 6)
        self.assertTrue(response.data['persisted'])
        self.assertEqual(
            list(AuditLog.objects.order_by('id').values_list('action', flat=True)),
            ['GRADE', 'REGRADE', 'SCORE'],
        )

    def test_negative_mark(self):
        response = self.client.post(reverse('answers-marks-add'), {'answer_id': self.answer.pk, 'mark': -2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_mark')

    def test_edit_missing_answer(self):
        response = self.client.put(reverse('answers-marks-edit', args=[9999]), {'mark': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_domain_mark_sheet(self):
        response = self.client.get(reverse('answers-by-domain', args=[self.domain.pk]), {'test': self.test.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = response.data['answers'][0]
        self.assertEqual(row['student']['id'], self.student.pk)
        self.assertEqual(len(row['sections']['A']), 1)

        response = self.client.get(reverse('answers-by-domain', args=[self.domain.pk]), {'test': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_answer(self):
        response = self.client.delete(reverse('answer-detail', args=[self.answer.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Answer.objects.exists())
