from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from workspaces.models import Space, SpaceUser
from .adapters import SocialAccountAdapter, display_name_from_email

User = get_user_model()


class DisplayNameTests(SimpleTestCase):
    def test_name_from_email(self):
        self.assertEqual(display_name_from_email('jane.doe@example.com'), 'Jane Doe')
        self.assertEqual(display_name_from_email('john_smith-jr@example.com'), 'John Smith Jr')
        self.assertEqual(display_name_from_email('solo@example.com'), 'Solo')

    def test_empty_email(self):
        self.assertEqual(display_name_from_email(None), '')
        self.assertEqual(display_name_from_email(''), '')


class SocialAccountAdapterTests(SimpleTestCase):
    def populate(self, extra_data, data):
        sociallogin = SimpleNamespace(user=User(), account=SimpleNamespace(extra_data=extra_data))
        return SocialAccountAdapter().populate_user(None, sociallogin, data)

    def test_google_profile_name_and_picture(self):
        user = self.populate(
            {'name': 'Jane Doe', 'picture': 'https://example.com/jane.png'},
            {'email': 'jane@example.com', 'first_name': 'Jane', 'last_name': 'Doe'},
        )
        self.assertEqual(user.name, 'Jane Doe')
        self.assertEqual(user.image, 'https://example.com/jane.png')
        self.assertEqual(user.email, 'jane@example.com')

    def test_falls_back_to_first_and_last_name(self):
        user = self.populate({}, {'email': 'jane@example.com', 'first_name': 'Jane', 'last_name': 'Doe'})
        self.assertEqual(user.name, 'Jane Doe')
        self.assertEqual(user.image, '')

    def test_falls_back_to_email(self):
        user = self.populate({}, {'email': 'jane.doe@example.com'})
        self.assertEqual(user.name, 'Jane Doe')


class CurrentUserAPITests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(username='jane', email='jane@example.com', password='password123', name='Jane Doe')
        cls.owner = User.objects.create_user(username='owner', email='owner@example.com', password='password123', name='Olivia Owner')
        cls.space = Space.objects.create(name='Team Space')
        SpaceUser.objects.create(space=cls.space, user=cls.owner, is_owner=True, can_edit=True, can_invite=True)
        SpaceUser.objects.create(space=cls.space, user=cls.user, can_edit=True)

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        self.url = reverse('current-user')

    def test_get_current_user(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'id': self.user.pk, 'name': 'Jane Doe', 'email': 'jane@example.com', 'image': ''})

    def test_unauthenticated(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_name_and_image(self):
        response = self.client.patch(self.url, {'name': 'Jane D.', 'image': 'https://example.com/me.png'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, 'Jane D.')
        self.assertEqual(self.user.image, 'https://example.com/me.png')

    def test_email_is_read_only(self):
        self.client.patch(self.url, {'email': 'other@example.com'}, format='json')
        self.user.refresh_from_db()
        self.assertEqual(self.user.email, 'jane@example.com')

    def test_blank_name_rejected(self):
        response = self.client.patch(self.url, {'name': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['name'], ['User name is required.'])

    def test_put_not_allowed(self):
        response = self.client.put(self.url, {'name': 'Jane'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_member_deletes_account(self):
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.user.pk).exists())
        self.assertFalse(SpaceUser.objects.filter(user_id=self.user.pk).exists())
        self.assertTrue(Space.objects.filter(pk=self.space.pk).exists())

    def test_owner_cannot_delete_account(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Account cannot be deleted when user owns spaces.')
        self.assertTrue(User.objects.filter(pk=self.owner.pk).exists())

    def test_space_permissions_of_member(self):
        response = self.client.get(reverse('user-space-permissions', kwargs={'space_id': self.space.pk}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_owner'])
        self.assertTrue(response.data['can_edit'])
        self.assertFalse(response.data['can_invite'])
        self.assertEqual(response.data['user']['id'], self.user.pk)

    def test_space_permissions_of_outsider(self):
        outsider = User.objects.create_user(username='outsider', password='password123')
        self.client.force_authenticate(user=outsider)
        response = self.client.get(reverse('user-space-permissions', kwargs={'space_id': self.space.pk}))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class UserModelTests(TestCase):
    def test_email_is_unique(self):
        User.objects.create_user(username='first', email='same@example.com', password='password123')
        with self.assertRaises(IntegrityError), transaction.atomic():
            User.objects.create_user(username='second', email='same@example.com', password='password123')
        self.assertEqual(User.objects.filter(email='same@example.com').count(), 1)

    def test_users_without_email_may_coexist(self):
        User.objects.create_user(username='first', password='password123')
        User.objects.create_user(username='second', password='password123')
        self.assertEqual(User.objects.filter(email='').count(), 2)

    def test_display_name_fallback(self):
        self.assertEqual(User(name='Jane Doe').display_name, 'Jane Doe')
        self.assertEqual(User().display_name, 'Collapp user')


class TokenAuthTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(username='jane', email='jane@example.com', password='password123', name='Jane Doe')

    def test_obtain_token_and_call_api(self):
        response = self.client.post(reverse('token_obtain_pair'), {'username': 'jane', 'password': 'password123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('refresh', response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        response = self.client.get(reverse('current-user'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'jane@example.com')

    def test_wrong_password(self):
        response = self.client.post(reverse('token_obtain_pair'), {'username': 'jane', 'password': 'wrong'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
