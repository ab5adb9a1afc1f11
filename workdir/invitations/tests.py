import smtplib
import uuid
from datetime import timedelta
from unittest.mock import patch

from celery.exceptions import Retry
from django.contrib.auth import get_user_model
from django.core import mail
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from workspaces.models import Space, SpaceUser
from .models import Invite, expiry_for_timeframe
from .tasks import send_invite_email

User = get_user_model()


class InviteModelTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.space = Space.objects.create(name='Team Space')

    def test_known_timeframes_expire_in_days(self):
        now = timezone.now()
        for timeframe, days in (('1', 1), ('3', 3), ('7', 7), (7, 7)):
            with self.subTest(timeframe=timeframe):
                self.assertEqual(expiry_for_timeframe(timeframe, now=now), now + timedelta(days=days))

    def test_other_timeframes_never_expire(self):
        for timeframe in ('never', '0', '30', ''):
            with self.subTest(timeframe=timeframe):
                self.assertIsNone(expiry_for_timeframe(timeframe))

    def test_create_for_timeframe(self):
        invite = Invite.objects.create_for_timeframe(self.space, '1')
        self.assertIsNotNone(invite.expires_at)
        self.assertFalse(invite.is_expired())
        self.assertTrue(invite.is_expired(now=timezone.now() + timedelta(days=2)))

    def test_invite_without_expiry_never_expires(self):
        invite = Invite.objects.create_for_timeframe(self.space, 'never')
        self.assertFalse(invite.is_expired(now=timezone.now() + timedelta(days=3650)))

    @override_settings(COLLAPP_BASE_URL='https://collapp.example.com')
    def test_url_points_at_frontend(self):
        invite = Invite.objects.create(space=self.space)
        self.assertEqual(invite.url, f'https://collapp.example.com/invitations/{invite.pk}')


class InvitationAPITests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.owner = User.objects.create_user(username='owner', email='owner@example.com', password='password123', name='Olivia Owner')
        cls.inviter = User.objects.create_user(username='inviter', email='inviter@example.com', password='password123', name='Ivy Inviter')
        cls.member = User.objects.create_user(username='member', email='member@example.com', password='password123', name='Max Member')
        cls.guest = User.objects.create_user(username='guest', email='guest@example.com', password='password123', name='Gina Guest')

        cls.space = Space.objects.create(name='Team Space', description='Where the team works')
        SpaceUser.objects.create(space=cls.space, user=cls.owner, is_owner=True, can_edit=True, can_invite=True)
        SpaceUser.objects.create(space=cls.space, user=cls.inviter, can_invite=True)
        SpaceUser.objects.create(space=cls.space, user=cls.member)

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)
        self.invite = Invite.objects.create_for_timeframe(self.space, '7', created_by=self.owner)
        self.detail_url = reverse('invitation-detail', kwargs={'pk': self.invite.pk})
        self.space_url = reverse('space-invitations', kwargs={'space_id': self.space.pk})

    def expire(self, invite):
        invite.expires_at = timezone.now() - timedelta(minutes=1)
        invite.save(update_fields=['expires_at'])

    # Space invitations
    def test_inviter_creates_invite(self):
        self.client.force_authenticate(user=self.inviter)
        response = self.client.post(self.space_url, {'timeframe': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        invite = Invite.objects.get(pk=response.data['id'])
        self.assertEqual(invite.created_by, self.inviter)
        self.assertEqual(response.data['space']['name'], 'Team Space')
        self.assertTrue(response.data['url'].endswith(f"/invitations/{invite.pk}"))

    def test_unknown_timeframe_creates_invite_without_expiry(self):
        response = self.client.post(self.space_url, {'timeframe': 'forever'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['expires_at'])

    def test_timeframe_is_required(self):
        response = self.client.post(self.space_url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['timeframe'], ['Timeframe is required'])

    def test_member_without_invite_permission_cannot_create_invite(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post(self.space_url, {'timeframe': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_outsider_cannot_list_invites(self):
        self.client.force_authenticate(user=self.guest)
        response = self.client.get(self.space_url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_inviter_lists_invites(self):
        Invite.objects.create_for_timeframe(self.space, '3', created_by=self.inviter)
        self.client.force_authenticate(user=self.inviter)
        response = self.client.get(self.space_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_invites_of_missing_space(self):
        response = self.client.get(reverse('space-invitations', kwargs={'space_id': uuid.uuid4()}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['detail'], 'The space was not found.')

    # Reading and accepting
    def test_guest_reads_invite(self):
        self.client.force_authenticate(user=self.guest)
        response = self.client.get(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['space']['id'], str(self.space.pk))
        self.assertEqual(response.data['space']['description'], 'Where the team works')

    def test_member_reading_invite_is_rejected(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.get(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'This user is already a member of this space.')

    def test_expired_invite_is_rejected(self):
        self.expire(self.invite)
        self.client.force_authenticate(user=self.guest)
        response = self.client.get(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Invitation is no longer active.')

    def test_missing_invite(self):
        self.client.force_authenticate(user=self.guest)
        for pk in (uuid.uuid4(), 'not-a-uuid'):
            with self.subTest(pk=pk):
                response = self.client.get(reverse('invitation-detail', kwargs={'pk': pk}))
                self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
                self.assertEqual(response.data['detail'], 'The invitation was not found.')

    def test_guest_accepts_invite(self):
        self.client.force_authenticate(user=self.guest)
        response = self.client.post(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        space_user = SpaceUser.objects.get(space=self.space, user=self.guest)
        self.assertFalse(space_user.is_owner or space_user.can_edit or space_user.can_invite)
        self.assertEqual(response.data['user']['email'], 'guest@example.com')
        self.assertFalse(Invite.objects.filter(pk=self.invite.pk).exists())

    def test_accepted_invite_cannot_be_reused(self):
        stranger = User.objects.create_user(username='stranger', email='stranger@example.com', password='password123')
        self.client.force_authenticate(user=self.guest)
        self.client.post(self.detail_url)
        self.client.force_authenticate(user=stranger)
        response = self.client.post(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(SpaceUser.objects.filter(user=stranger).exists())

    def test_member_cannot_accept_again(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.post(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Invite.objects.filter(pk=self.invite.pk).exists())

    def test_expired_invite_cannot_be_accepted(self):
        self.expire(self.invite)
        self.client.force_authenticate(user=self.guest)
        response = self.client.post(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(SpaceUser.objects.filter(space=self.space, user=self.guest).exists())

    def test_unauthenticated_cannot_accept(self):
        self.client.force_authenticate(user=None)
        response = self.client.post(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    # Revoking
    def test_inviter_deletes_invite(self):
        self.client.force_authenticate(user=self.inviter)
        response = self.client.delete(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Invite.objects.filter(pk=self.invite.pk).exists())

    def test_member_cannot_delete_invite(self):
        self.client.force_authenticate(user=self.member)
        response = self.client.delete(self.detail_url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Invite.objects.filter(pk=self.invite.pk).exists())

    # Sending
    @patch('invitations.views.send_invite_email')
    def test_send_invite_queues_email(self, mock_task):
        response = self.client.post(reverse('invitation-send', kwargs={'pk': self.invite.pk}), {'email': 'friend@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mock_task.delay.assert_called_once_with(str(self.invite.pk), 'friend@example.com', 'Olivia Owner')

    @patch('invitations.views.send_invite_email')
    def test_send_invite_requires_valid_email(self, mock_task):
        response = self.client.post(reverse('invitation-send', kwargs={'pk': self.invite.pk}), {'email': 'not-an-email'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        mock_task.delay.assert_not_called()

    @patch('invitations.views.send_invite_email')
    def test_send_expired_invite_rejected(self, mock_task):
        self.expire(self.invite)
        response = self.client.post(reverse('invitation-send', kwargs={'pk': self.invite.pk}), {'email': 'friend@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        mock_task.delay.assert_not_called()

    @patch('invitations.views.send_invite_email')
    def test_member_cannot_send_invite(self, mock_task):
        self.client.force_authenticate(user=self.member)
        response = self.client.post(reverse('invitation-send', kwargs={'pk': self.invite.pk}), {'email': 'friend@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        mock_task.delay.assert_not_called()


@override_settings(COLLAPP_BASE_URL='https://collapp.example.com', DEFAULT_FROM_EMAIL='noreply@collapp.example.com')
class SendInviteEmailTaskTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.space = Space.objects.create(name='Team Space')
        cls.invite = Invite.objects.create_for_timeframe(cls.space, '3')

    def test_sends_email_with_invite_link(self):
        result = send_invite_email(str(self.invite.pk), 'friend@example.com', 'Olivia Owner')
        self.assertEqual(result, str(self.invite.pk))
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, 'Olivia Owner invites you to space Team Space')
        self.assertEqual(message.to, ['friend@example.com'])
        self.assertEqual(message.from_email, 'noreply@collapp.example.com')
        self.assertIn(f'https://collapp.example.com/invitations/{self.invite.pk}', message.body)

    def test_missing_sender_name_falls_back(self):
        send_invite_email(str(self.invite.pk), 'friend@example.com')
        self.assertEqual(mail.outbox[0].subject, 'Collapp user invites you to space Team Space')

    def test_missing_invite_sends_nothing(self):
        result = send_invite_email(str(uuid.uuid4()), 'friend@example.com', 'Olivia Owner')
        self.assertIsNone(result)
        self.assertEqual(len(mail.outbox), 0)

    def test_smtp_failure_is_retried(self):
        with patch('invitations.tasks.send_mail', side_effect=smtplib.SMTPException('server down')), \
                patch.object(send_invite_email, 'retry', side_effect=Retry()) as mock_retry:
            with self.assertRaises(Retry):
                send_invite_email(str(self.invite.pk), 'friend@example.com', 'Olivia Owner')
        mock_retry.assert_called_once()
        self.assertIsInstance(mock_retry.call_args.kwargs['exc'], smtplib.SMTPException)
