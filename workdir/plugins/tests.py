import uuid

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from core.pagination import parse_limit
from workspaces.models import Space, SpaceUser, SpacePlugin
from .models import PublishedPlugin

User = get_user_model()


class ParseLimitTests(SimpleTestCase):
    def test_valid_values(self):
        self.assertEqual(parse_limit('5'), 5)
        self.assertEqual(parse_limit(7), 7)

    def test_invalid_values_use_default(self):
        for value in (None, '', 'abc', '0', '-3'):
            with self.subTest(value=value):
                self.assertEqual(parse_limit(value, default=10), 10)

    def test_capped_at_maximum(self):
        self.assertEqual(parse_limit('500'), 100)
        self.assertEqual(parse_limit('500', maximum=50), 50)


class PublishedPluginModelTests(SimpleTestCase):
    def test_fits_within_bounds(self):
        plugin = PublishedPlugin(name='Clock', min_width=1, max_width=2, min_height=2, max_height=3)
        self.assertTrue(plugin.fits(1, 2))
        self.assertTrue(plugin.fits(2, 3))
        self.assertFalse(plugin.fits(3, 2))
        self.assertFalse(plugin.fits(1, 1))


class PluginAPITests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.author = User.objects.create_user(username='author', email='author@example.com', password='password123', name='Ada Author')
        cls.user = User.objects.create_user(username='user', email='user@example.com', password='password123', name='Uma User')
        cls.outsider = User.objects.create_user(username='outsider', email='outsider@example.com', password='password123')

        cls.calendar = PublishedPlugin.objects.create(name='Calendar', description='Team calendar', author=cls.author)
        cls.chat = PublishedPlugin.objects.create(name='Chat', max_width=2)
        cls.clock = PublishedPlugin.objects.create(name='World Clock')
        cls.retired = PublishedPlugin.objects.create(name='Old Calendar', is_deleted=True)

        cls.space = Space.objects.create(name='Team Space')
        SpaceUser.objects.create(space=cls.space, user=cls.user, is_owner=True, can_edit=True, can_invite=True)
        SpacePlugin.objects.create(space=cls.space, plugin=cls.chat, left=0, top=0, width=2, height=2)
        SpacePlugin.objects.create(space=cls.space, plugin=cls.retired, left=2, top=0, width=1, height=1)

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def test_list_plugins(self):
        response = self.client.get(reverse('plugin-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([entity['name'] for entity in response.data['entities']], ['Calendar', 'Chat', 'Old Calendar', 'World Clock'])
        self.assertEqual(response.data['pagination'], {'entity_count': 4, 'limit': None})

    def test_list_plugins_with_limit(self):
        response = self.client.get(reverse('plugin-list'), {'limit': 2})
        self.assertEqual(len(response.data['entities']), 2)
        self.assertEqual(response.data['pagination'], {'entity_count': 4, 'limit': 2})

    def test_filter_by_name(self):
        response = self.client.get(reverse('plugin-list'), {'name': 'calendar'})
        self.assertEqual([entity['name'] for entity in response.data['entities']], ['Calendar', 'Old Calendar'])
        self.assertEqual(response.data['pagination']['entity_count'], 2)
        self.assertTrue(response.data['entities'][1]['is_deleted'])

    def test_unauthenticated_cannot_list(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('plugin-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_retrieve_plugin_with_author(self):
        response = self.client.get(reverse('plugin-detail', kwargs={'pk': self.calendar.pk}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['description'], 'Team calendar')
        self.assertEqual(response.data['author'], {'name': 'Ada Author'})

    def test_retrieve_plugin_without_author(self):
        response = self.client.get(reverse('plugin-detail', kwargs={'pk': self.clock.pk}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['author'])

    def test_retrieve_missing_plugin(self):
        for pk in (uuid.uuid4(), 'not-a-uuid'):
            with self.subTest(pk=pk):
                response = self.client.get(reverse('plugin-detail', kwargs={'pk': pk}))
                self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
                self.assertEqual(response.data['detail'], 'The plugin does not exist.')

    def test_space_placements(self):
        response = self.client.get(reverse('plugin-space', kwargs={'space_id': self.space.pk}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        first = response.data[0]
        self.assertEqual(first['plugin_id'], str(self.chat.pk))
        self.assertEqual(first['space_id'], str(self.space.pk))
        self.assertEqual((first['left'], first['top'], first['width'], first['height']), (0, 0, 2, 2))
        self.assertEqual(first['plugin']['name'], 'Chat')
        self.assertEqual(first['plugin']['max_width'], 2)
        self.assertTrue(response.data[1]['plugin']['is_deleted'])

    def test_space_placements_require_membership(self):
        self.client.force_authenticate(user=self.outsider)
        response = self.client.get(reverse('plugin-space', kwargs={'space_id': self.space.pk}))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_space_placements_of_missing_space(self):
        response = self.client.get(reverse('plugin-space', kwargs={'space_id': uuid.uuid4()}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_catalog_is_read_only(self):
        response = self.client.post(reverse('plugin-list'), {'name': 'Sneaky'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
