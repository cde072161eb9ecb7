from unittest import mock

from django.core import mail
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from cores import notifications, tasks
from cores.exceptions import InvalidRequest, StateConflict, api_exception_handler
from cores.models import AuditLog
from cores.testing import at, create_exam, create_test_user
from exam_platform.celery import app as celery_app


class ExceptionHandlerTests(TestCase):
    def test_domain_errors_render_error_and_code(self):
        response = api_exception_handler(StateConflict('Already there.', code='duplicate'), {})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data, {'error': 'Already there.', 'code': 'duplicate'})

    def test_default_detail_keeps_default_code(self):
        response = api_exception_handler(InvalidRequest(), {})
        self.assertEqual(response.data, {'error': 'Invalid request.', 'code': 'invalid'})

    def test_non_api_errors_fall_through(self):
        self.assertIsNone(api_exception_handler(ValueError('boom'), {}))


class NotificationTests(TestCase):
    def setUp(self):
        # Run the delivery task inline instead of through a broker
        eager = celery_app.conf.task_always_eager
        celery_app.conf.task_always_eager = True
        self.addCleanup(setattr, celery_app.conf, 'task_always_eager', eager)

        self.student = create_test_user()
        self.test = create_exam(start=at(10), end=at(12))

    def test_invitation_sent_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            notifications.notify_test_invitation(self.test, [self.student])
            self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(len(callbacks), 1)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, [self.student.email])
        self.assertIn("Midterm", mail.outbox[0].subject)

    def test_delivery_is_retried_then_given_up(self):
        with mock.patch('cores.tasks.send_mail', side_effect=ConnectionRefusedError) as send_mail:
            with self.captureOnCommitCallbacks(execute=True):
                notifications.send(self.student.email, "Subject", "Body")
        self.assertGreater(send_mail.call_count, 1)
        self.assertEqual(len(mail.outbox), 0)

    def test_queue_failure_is_swallowed(self):
        with mock.patch.object(tasks.deliver_email, 'delay', side_effect=OSError("broker down")):
            with self.captureOnCommitCallbacks(execute=True):
                notifications.send(self.student.email, "Subject", "Body")
        self.assertEqual(len(mail.outbox), 0)

    def test_missing_recipient_is_skipped(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            notifications.send('', "Subject", "Body")
        self.assertEqual(callbacks, [])


class AuditLogAPITests(APITestCase):
    def setUp(self):
        self.admin = create_test_user(role="admin")
        test = create_exam()
        AuditLog.record(self.admin, 'CREATE', test, "Created")
        AuditLog.record(self.admin, 'DELETE', test, "Deleted")

    def test_admin_filters_by_action(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(reverse('audit-logs'), {'action': 'DELETE'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['target_model'], 'Test')

    def test_staff_cannot_read_audit_log(self):
        self.client.force_authenticate(user=create_test_user(role="staff"))
        response = self.client.get(reverse('audit-logs'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
