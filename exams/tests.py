from unittest import mock

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from assessments.models import Attempt
from cores.models import AuditLog
from cores.testing import at, create_domain, create_exam, create_test_user, minutes
from exams import clock, services
from exams.clock import TestStatus
from exams.exceptions import DuplicateTitle, InvalidDomainReference, InvalidSection, InvalidWindow
from exams.models import Test


class ClockStatusTests(TestCase):
    """Status is derived from the window and one 'now', never stored."""

    def test_boundaries(self):
        start, end = at(10), at(12)
        self.assertEqual(clock.derive_status(start, end, at(9, 59)), TestStatus.INACTIVE)
        self.assertEqual(clock.derive_status(start, end, start), TestStatus.ACTIVE)
        self.assertEqual(clock.derive_status(start, end, end), TestStatus.ACTIVE)
        self.assertEqual(clock.derive_status(start, end, end + minutes(1)), TestStatus.FINISHED)

    def test_status_never_goes_backwards(self):
        start, end = at(10), at(12)
        order = [TestStatus.INACTIVE, TestStatus.ACTIVE, TestStatus.FINISHED]
        seen = [clock.derive_status(start, end, at(8) + minutes(m)) for m in range(0, 300, 7)]
        ranks = [order.index(s) for s in seen]
        self.assertEqual(ranks, sorted(ranks))
        self.assertEqual(set(seen), set(order))


class TestCatalogTests(TestCase):
    def setUp(self):
        self.python = create_domain("Python")
        self.sql = create_domain("SQL")

    def test_create_keeps_domain_order_and_trims_title(self):
        test = services.create_test("  Midterm ", [self.sql.pk, self.python.pk], at(10), at(12), 30)
        self.assertEqual(test.title, "Midterm")
        self.assertEqual(test.ordered_domains(), [self.sql, self.python])
        self.assertEqual(test.sections, ["A", "B"])
        self.assertEqual(test.status_at(at(9)), TestStatus.INACTIVE)

    def test_default_duration(self):
        test = services.create_test("Quiz", [self.python.pk], at(10), at(12))
        self.assertEqual(test.duration_minutes, 60)

    def test_duplicate_title_rejected(self):
        services.create_test("Midterm", [self.python.pk], at(10), at(12))
        with self.assertRaises(DuplicateTitle):
            services.create_test(" Midterm", [self.python.pk], at(10), at(12))
        self.assertEqual(Test.objects.count(), 1)

    def test_unknown_domain_rejected(self):
        with self.assertRaises(InvalidDomainReference):
            services.create_test("Midterm", [self.python.pk, 9999], at(10), at(12))

    def test_window_and_domains_required(self):
        with self.assertRaises(InvalidWindow):
            services.create_test("Midterm", [self.python.pk], at(12), at(12))
        with self.assertRaises(InvalidWindow):
            services.create_test("Midterm", [], at(10), at(12))

    def test_sections_must_be_known(self):
        with self.assertRaises(InvalidSection):
            services.create_test("Midterm", [self.python.pk], at(10), at(12), sections=["C"])

    def test_update_does_not_touch_running_attempt_window(self):
        student = create_test_user()
        test = create_exam(domains=[self.python], duration=30)
        attempt = Attempt.objects.create(
            student=student, test=test, start_time=at(10, 5), due_time=at(10, 35),
            status=Attempt.Status.IN_PROGRESS,
        )
        services.update_test(test, duration_minutes=5, end_date=at(10, 20))
        attempt.refresh_from_db()
        self.assertEqual(attempt.due_time, at(10, 35))

    def test_update_rejects_inverted_window(self):
        test = create_exam(domains=[self.python])
        with self.assertRaises(InvalidWindow):
            services.update_test(test, end_date=at(9))

    def test_failed_update_leaves_instance_untouched(self):
        test = create_exam(domains=[self.python])
        with self.assertRaises(InvalidSection):
            services.update_test(test, title="Renamed", start_date=at(9), sections=["C"])
        self.assertEqual(test.title, "Midterm")
        self.assertEqual(test.start_date, at(10))
        test.refresh_from_db()
        self.assertEqual(test.title, "Midterm")

    def test_delete_cascades_attempts(self):
        test = create_exam(domains=[self.python])
        for handle in ("ann", "bob"):
            Attempt.objects.create(student=create_test_user(handle=handle), test=test)
        self.assertEqual(services.delete_test(test), 2)
        self.assertFalse(Attempt.objects.exists())

    def test_deleted_domain_leaves_test_in_place(self):
        test = create_exam(domains=[self.python, self.sql])
        self.sql.delete()
        test.refresh_from_db()
        self.assertEqual(test.ordered_domains(), [self.python])

    def test_list_for_student_partitions_and_filters(self):
        student = create_test_user()
        other = create_test_user(handle="other")
        upcoming = create_exam("Later", [self.python], start=at(11), end=at(13))
        running = create_exam("Now", [self.python])
        done = create_exam("Done", [self.python])
        create_exam("Private", [self.python], eligible=[other])
        invited = create_exam("Invited", [self.python], eligible=[student, other])
        Attempt.objects.create(student=student, test=done, status=Attempt.Status.COMPLETED)

        buckets = services.list_for_student(student, now=at(10, 30))

        self.assertEqual(buckets['upcoming'], [upcoming])
        self.assertCountEqual(buckets['active'], [running, invited])
        self.assertEqual(buckets['completed'], [done])


class TestAPITests(APITestCase):
    def setUp(self):
        self.admin = create_test_user(role="admin")
        self.student = create_test_user(role="student")
        self.python = create_domain("Python")
        self.payload = {
            'title': 'Midterm',
            'domains': [self.python.pk],
            'start_date': '2025-01-10T10:00:00Z',
            'end_date': '2025-01-10T12:00:00Z',
            'duration_minutes': 30,
        }

    def test_admin_creates_test_once(self):
        self.client.force_authenticate(user=self.admin)
        with mock.patch('exams.clock.now', return_value=at(9)):
            response = self.client.post(reverse('tests-list'), self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'inactive')
        self.assertEqual(response.data['domains'], [{'id': self.python.pk, 'name': 'Python'}])
        self.assertTrue(AuditLog.objects.filter(action='CREATE', target_model='Test').exists())

        response = self.client.post(reverse('tests-list'), self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'duplicate_title')

    def test_invalid_window_is_a_client_error(self):
        self.client.force_authenticate(user=self.admin)
        self.payload['end_date'] = self.payload['start_date']
        response = self.client.post(reverse('tests-list'), self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_students_cannot_manage_tests(self):
        self.client.force_authenticate(user=self.student)
        response = self.client.post(reverse('tests-list'), self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_check_title(self):
        create_exam("Midterm", [self.python])
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse('tests-check-title', args=['Midterm']))
        self.assertEqual(response.data, {'exists': True})

    def test_retrieve_reports_derived_status(self):
        test = create_exam(domains=[self.python])
        self.client.force_authenticate(user=self.student)
        with mock.patch('exams.clock.now', return_value=at(12, 1)):
            response = self.client.get(reverse('tests-detail', args=[test.pk]))
        self.assertEqual(response.data['status'], 'finished')

    def test_partial_update(self):
        test = create_exam(domains=[self.python])
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(reverse('tests-detail', args=[test.pk]), {'duration_minutes': 45}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['duration_minutes'], 45)
        self.assertEqual(response.data['title'], 'Midterm')

    def test_delete_then_students_get_not_found(self):
        test = create_exam(domains=[self.python])
        other = create_test_user(handle="other")
        Attempt.objects.create(student=self.student, test=test)
        Attempt.objects.create(student=other, test=test)

        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse('tests-detail', args=[test.pk]))
        self.assertEqual(response.data['attempts_removed'], 2)
        self.assertEqual(Attempt.objects.count(), 0)

        for user in (self.student, other):
            self.client.force_authenticate(user=user)
            response = self.client.get(reverse('tests-detail', args=[test.pk]))
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_missing_test(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(reverse('tests-detail', args=[424242]), {'duration_minutes': 45}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'test_not_found')

    def test_student_listing(self):
        create_exam("Now", [self.python])
        create_exam("Later", [self.python], start=at(11), end=at(13))
        self.client.force_authenticate(user=self.student)
        with mock.patch('exams.clock.now', return_value=at(10, 30)):
            response = self.client.get(reverse('tests-student'))
        self.assertEqual([t['title'] for t in response.data['active']], ['Now'])
        self.assertEqual([t['title'] for t in response.data['upcoming']], ['Later'])
        self.assertEqual(response.data['completed'], [])
