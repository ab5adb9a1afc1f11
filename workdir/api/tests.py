from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase


class SchemaTests(APITestCase):
    def test_schema_lists_api_paths(self):
        response = self.client.get(reverse('schema'), {'format': 'json'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        paths = response.json()['paths']
        for path in ('/api/spaces/', '/api/plugins/', '/api/user/'):
            with self.subTest(path=path):
                self.assertIn(path, paths)


class RoutingTests(APITestCase):
    def test_api_paths(self):
        self.assertEqual(reverse('space-list'), '/api/spaces/')
        self.assertEqual(reverse('space-leave', kwargs={'pk': 'abc'}), '/api/spaces/abc/user/')
        self.assertEqual(reverse('space-remove-member', kwargs={'pk': 'abc', 'user_id': 7}), '/api/spaces/abc/user/7/')
        self.assertEqual(reverse('plugin-space', kwargs={'space_id': 'abc'}), '/api/plugins/space/abc/')
        self.assertEqual(reverse('invitation-send', kwargs={'pk': 'abc'}), '/api/invitations/abc/send/')
        self.assertEqual(reverse('current-user'), '/api/user/')
