from django.test import SimpleTestCase, TestCase
from rest_framework import serializers
from rest_framework.exceptions import PermissionDenied

from .exceptions import Gone, InvalidState, NotFound, api_exception_handler


class ErrorEnvelopeTests(SimpleTestCase):
    def _handle(self, exc):
        return api_exception_handler(exc, {'view': None})

    def test_service_error_keeps_status_and_code(self):
        response = self._handle(NotFound("Order not found"))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data, {
            'success': False,
            'error': {'code': 'not_found', 'message': 'Order not found', 'fields': {}},
        })

    def test_gone_is_410(self):
        response = self._handle(Gone("QR code has expired"))
        self.assertEqual(response.status_code, 410)
        self.assertEqual(response.data['error']['code'], 'gone')

    def test_service_error_is_logged(self):
        with self.assertLogs('common.exceptions', level='WARNING') as logs:
            self._handle(InvalidState("Order is already cancelled"))
        self.assertIn("InvalidState", logs.output[0])

    def test_validation_error_lists_fields(self):
        response = self._handle(serializers.ValidationError({'amount': ["This field is required."]}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error']['code'], 'invalid')
        self.assertIn('amount', response.data['error']['fields'])

    def test_drf_permission_error(self):
        response = self._handle(PermissionDenied())
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['error']['code'], 'permission_denied')

    def test_unknown_exception_is_not_handled(self):
        self.assertIsNone(self._handle(ValueError("boom")))


class RequestLoggingTests(TestCase):
    def test_request_is_logged(self):
        with self.assertLogs('requests', level='INFO') as logs:
            self.client.get('/api/orders/')
        self.assertIn("GET /api/orders/ 401", logs.output[0])
        self.assertIn("user=anonymous", logs.output[0])
