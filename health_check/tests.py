from unittest import mock

from django.db import OperationalError
from django.test import TestCase, Client
from django.urls import reverse


class HealthCheckTests(TestCase):

    def setUp(self):
        self.client = Client()

    def test_healthy_when_database_is_reachable(self):
        response = self.client.get(reverse('health_check:health_check'))

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload['status'], 'healthy')
        self.assertEqual(payload['database'], 'connected')
        self.assertIn('timestamp', payload)

    def test_unhealthy_when_database_is_down(self):
        with mock.patch('health_check.views.connection.ensure_connection', side_effect=OperationalError("db down")):
            response = self.client.get(reverse('health_check:health_check'))

        self.assertEqual(response.status_code, 500)
        payload = response.json()
        self.assertEqual(payload['status'], 'unhealthy')
        self.assertEqual(payload['error'], 'db down')
