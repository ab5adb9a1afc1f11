import uuid
from types import SimpleNamespace
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from invitations.models import Invite
from plugins.models import PublishedPlugin
from .layout import diff_layout
from .models import Space, SpaceUser, SpacePlugin

User = get_user_model()


def make_space(owner, name='Space One'):
    space = Space.objects.create(name=name, description='A space')
    SpaceUser.objects.create(space=space, user=owner, is_owner=True, can_edit=True, can_invite=True)
    return space


class LayoutDiffTests(SimpleTestCase):
    def placement(self, plugin_id, left=0, top=0, width=1, height=1):
        return SimpleNamespace(plugin_id=plugin_id, left=left, top=top, width=width, height=height)

    def item(self, plugin_id, left=0, top=0, width=1, height=1):
        return dict(id=plugin_id, left=left, top=top, width=width, height=height)

    def test_empty_submission_deletes_everything(self):
        existing = [self.placement('a'), self.placement('b')]
        diff = diff_layout(existing, [])
        self.assertEqual(diff.deleted, existing)
        self.assertEqual(diff.created, [])
        self.assertEqual(diff.updated, [])

    def test_new_items_are_created(self):
        diff = diff_layout([], [self.item('a'), self.item('b', left=1)])
        self.assertEqual([item['id'] for item in diff.created], ['a', 'b'])
        self.assertFalse(diff.updated or diff.deleted)

    def test_unchanged_placement_is_left_alone(self):
        diff = diff_layout([self.placement('a', left=2, top=1, width=2, height=3)],
                           [self.item('a', left=2, top=1, width=2, height=3)])
        self.assertFalse(diff)

    def test_any_changed_field_marks_update(self):
        for field in ('left', 'top', 'width', 'height'):
            with self.subTest(field=field):
                placement = self.placement('a', left=1, top=1, width=1, height=1)
                item = self.item('a', left=1, top=1, width=1, height=1)
                item[field] = 2
                diff = diff_layout([placement], [item])
                self.assertEqual(diff.updated, [(placement, item)])
                self.assertEqual(diff.created, [])
                self.assertEqual(diff.deleted, [])

    def test_mixed_layout(self):
        keep, move, drop = self.placement('keep'), self.placement('move'), self.placement('drop')
        submitted = [self.item('keep'), self.item('move', top=4), self.item('new', left=3)]
        diff = diff_layout([keep, move, drop], submitted)
        self.assertEqual(diff.deleted, [drop])
        self.assertEqual(diff.updated, [(move, submitted[1])])
        self.assertEqual(diff.created, [submitted[2]])

    def test_later_duplicate_wins(self):
        diff = diff_layout([], [self.item('a', left=0), self.item('a', left=3)])
        self.assertEqual(len(diff.created), 1)
        self.assertEqual(diff.created[0]['left'], 3)

    def test_ids_are_compared_as_strings(self):
        plugin_id = uuid.uuid4()
        diff = diff_layout([self.placement(plugin_id)], [self.item(str(plugin_id))])
        self.assertFalse(diff)


class SpaceAPITestBase(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.owner = User.objects.create_user(username='owner', email='owner@example.com', password='password123', name='Olivia Owner')
        cls.editor = User.objects.create_user(username='editor', email='editor@example.com', password='password123', name='Eddie Editor')
        cls.inviter = User.objects.create_user(username='inviter', email='inviter@example.com', password='password123', name='Ivy Inviter')
        cls.member = User.objects.create_user(username='member', email='member@example.com', password='password123', name='Max Member')
        cls.outsider = User.objects.create_user(username='outsider', email='outsider@example.com', password='password123', name='Oscar Outsider')

        cls.space = make_space(cls.owner)
        SpaceUser.objects.create(space=cls.space, user=cls.editor, can_edit=True)
        SpaceUser.objects.create(space=cls.space, user=cls.inviter, can_invite=True)
        SpaceUser.objects.create(space=cls.space, user=cls.member)

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.owner)

    def as_user(self, user):
        self.client.force_authenticate(user=user)

    def url(self, name, **kwargs):
        kwargs.setdefault('pk', self.space.pk)
        return reverse(f'space-{name}', kwargs=kwargs)


class SpaceAPITests(SpaceAPITestBase):
    def test_unauthenticated_cannot_list_spaces(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('space-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_only_contains_member_spaces(self):
        make_space(self.outsider, name='Elsewhere')
        response = self.client.get(reverse('space-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([entity['name'] for entity in response.data['entities']], ['Space One'])
        self.assertEqual(response.data['pagination'], dict(pages=1, page=1, limit=20))

    def test_list_previews_up_to_three_other_members(self):
        response = self.client.get(reverse('space-list'))
        users = response.data['entities'][0]['users']
        self.assertEqual(len(users), 3)
        self.assertNotIn(self.owner.pk, [user['id'] for user in users])
        self.assertEqual(set(users[0]), {'id', 'name', 'image'})

    def test_list_pagination(self):
        make_space(self.owner, name='Space Two')
        make_space(self.owner, name='Space Three')
        response = self.client.get(reverse('space-list'), dict(limit=2, page=2))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['entities']), 1)
        self.assertEqual(response.data['pagination'], dict(pages=2, page=2, limit=2))

    def test_page_past_end_is_empty(self):
        response = self.client.get(reverse('space-list'), dict(page=5))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['entities'], [])
        self.assertEqual(response.data['pagination'], dict(pages=1, page=5, limit=20))

    def test_non_positive_or_malformed_page_is_first_page(self):
        for page in ('0', '-2', 'abc'):
            with self.subTest(page=page):
                response = self.client.get(reverse('space-list'), dict(page=page))
                self.assertEqual(response.status_code, status.HTTP_200_OK)
                self.assertEqual([entity['name'] for entity in response.data['entities']], ['Space One'])
                self.assertEqual(response.data['pagination'], dict(pages=1, page=1, limit=20))

    def test_create_space_makes_requester_owner(self):
        self.as_user(self.outsider)
        response = self.client.post(reverse('space-list'), dict(name='New Space', description='Fresh'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['icon'], '')
        space_user = SpaceUser.objects.get(space_id=response.data['id'], user=self.outsider)
        self.assertTrue(space_user.is_owner and space_user.can_edit and space_user.can_invite)

    def test_create_space_requires_name(self):
        response = self.client.post(reverse('space-list'), dict(description='No name'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['name'], ['Space name is required.'])

    def test_member_can_retrieve_space_with_plugins(self):
        plugin = PublishedPlugin.objects.create(name='Clock')
        SpacePlugin.objects.create(space=self.space, plugin=plugin, left=1, top=0, width=2, height=1)
        self.as_user(self.member)
        response = self.client.get(self.url('detail'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['plugins'], [
            dict(plugin_id=str(plugin.pk), left=1, top=0, width=2, height=1, plugin=dict(is_deleted=False))
        ])

    def test_outsider_gets_404_for_space(self):
        self.as_user(self.outsider)
        response = self.client.get(self.url('detail'))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['detail'], 'The space does not exist.')

    def test_malformed_space_id_is_404(self):
        response = self.client.get(self.url('detail', pk='not-a-uuid'))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_editor_can_update_space(self):
        self.as_user(self.editor)
        response = self.client.patch(self.url('detail'), dict(name='Renamed', icon='data:image/png;base64,AAAA'), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.space.refresh_from_db()
        self.assertEqual(self.space.name, 'Renamed')
        self.assertEqual(self.space.icon, 'data:image/png;base64,AAAA')

    def test_member_without_edit_permission_cannot_update_space(self):
        self.as_user(self.member)
        response = self.client.patch(self.url('detail'), dict(name='Nope'), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_outsider_cannot_update_space(self):
        self.as_user(self.outsider)
        response = self.client.patch(self.url('detail'), dict(name='Nope'), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_rejects_blank_name(self):
        response = self.client.patch(self.url('detail'), dict(name=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['name'], ['Space name is required.'])

    def test_owner_can_delete_space(self):
        Invite.objects.create(space=self.space)
        response = self.client.delete(self.url('detail'))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Space.objects.filter(pk=self.space.pk).exists())
        self.assertFalse(SpaceUser.objects.filter(space_id=self.space.pk).exists())
        self.assertFalse(Invite.objects.filter(space_id=self.space.pk).exists())

    def test_non_owner_cannot_delete_space(self):
        for user in (self.editor, self.inviter, self.member, self.outsider):
            with self.subTest(user=user.username):
                self.as_user(user)
                response = self.client.delete(self.url('detail'))
                self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Space.objects.filter(pk=self.space.pk).exists())

    def test_delete_missing_space_is_404(self):
        response = self.client.delete(self.url('detail', pk='00000000-0000-0000-0000-000000000000'))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class SpaceMembershipAPITests(SpaceAPITestBase):
    def test_member_can_list_users(self):
        self.as_user(self.member)
        response = self.client.get(self.url('users'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 4)
        self.assertEqual(response.data[0]['user']['email'], 'owner@example.com')

    def test_outsider_cannot_list_users(self):
        self.as_user(self.outsider)
        response = self.client.get(self.url('users'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_permissions_of_requester(self):
        self.as_user(self.editor)
        response = self.client.get(self.url('permissions'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, dict(is_owner=False, can_edit=True, can_invite=False))

    def test_permissions_of_outsider_forbidden(self):
        self.as_user(self.outsider)
        response = self.client.get(self.url('permissions'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'], 'This user is not a member of this space.')

    def test_owner_updates_member_permissions(self):
        payload = {str(self.member.pk): dict(can_edit=True, can_invite=True), str(self.editor.pk): dict(can_edit=False)}
        response = self.client.patch(self.url('permissions'), payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        member = SpaceUser.objects.get(space=self.space, user=self.member)
        editor = SpaceUser.objects.get(space=self.space, user=self.editor)
        self.assertTrue(member.can_edit and member.can_invite)
        self.assertFalse(editor.can_edit)

    def test_owner_row_is_not_downgraded(self):
        response = self.client.patch(self.url('permissions'), {str(self.owner.pk): dict(can_edit=False)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(SpaceUser.objects.get(space=self.space, user=self.owner).can_edit)

    def test_update_permissions_rejects_non_members(self):
        response = self.client.patch(self.url('permissions'), {str(self.outsider.pk): dict(can_edit=True)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_permissions_validates_flags(self):
        response = self.client.patch(self.url('permissions'), {str(self.member.pk): dict(can_edit='maybe')}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn(str(self.member.pk), response.data)

    def test_only_owner_updates_permissions(self):
        self.as_user(self.inviter)
        response = self.client.patch(self.url('permissions'), {str(self.member.pk): dict(can_edit=True)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(SpaceUser.objects.get(space=self.space, user=self.member).can_edit)

    def test_transfer_ownership(self):
        response = self.client.patch(self.url('transfer-ownership'), dict(user_id=self.member.pk), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        old_owner = SpaceUser.objects.get(space=self.space, user=self.owner)
        new_owner = SpaceUser.objects.get(space=self.space, user=self.member)
        self.assertFalse(old_owner.is_owner)
        self.assertTrue(old_owner.can_edit and old_owner.can_invite)
        self.assertTrue(new_owner.is_owner and new_owner.can_edit and new_owner.can_invite)
        self.assertEqual(SpaceUser.objects.filter(space=self.space, is_owner=True).count(), 1)

    def test_transfer_ownership_to_self_rejected(self):
        response = self.client.patch(self.url('transfer-ownership'), dict(user_id=self.owner.pk), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Cannot transfer ownership to the same user.')

    def test_transfer_ownership_rejects_out_of_range_user_id(self):
        for user_id in (0, 10 ** 25):
            with self.subTest(user_id=user_id):
                response = self.client.patch(self.url('transfer-ownership'), dict(user_id=user_id), format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn('user_id', response.data)
        self.assertTrue(SpaceUser.objects.get(space=self.space, user=self.owner).is_owner)

    def test_remove_member_with_oversized_user_id(self):
        self.as_user(self.inviter)
        response = self.client.delete(self.url('remove-member', user_id='9999999999999999999999999'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Requested user to remove is not a member of this space.')

    def test_transfer_ownership_to_outsider_rejected(self):
        response = self.client.patch(self.url('transfer-ownership'), dict(user_id=self.outsider.pk), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(SpaceUser.objects.get(space=self.space, user=self.owner).is_owner)

    def test_non_owner_cannot_transfer_ownership(self):
        self.as_user(self.editor)
        response = self.client.patch(self.url('transfer-ownership'), dict(user_id=self.editor.pk), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_member_can_leave(self):
        self.as_user(self.member)
        response = self.client.delete(self.url('leave'))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(SpaceUser.objects.filter(space=self.space, user=self.member).exists())

    def test_owner_cannot_leave(self):
        response = self.client.delete(self.url('leave'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Space owner cannot leave their spaces.')

    def test_inviter_can_remove_member(self):
        self.as_user(self.inviter)
        response = self.client.delete(self.url('remove-member', user_id=self.member.pk))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(SpaceUser.objects.filter(space=self.space, user=self.member).exists())

    def test_plain_member_cannot_remove_member(self):
        self.as_user(self.member)
        response = self.client.delete(self.url('remove-member', user_id=self.editor.pk))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_cannot_remove_owner(self):
        self.as_user(self.inviter)
        response = self.client.delete(self.url('remove-member', user_id=self.owner.pk))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Requested user to remove is an owner of the space.')

    def test_cannot_remove_member_of_another_space(self):
        make_space(self.outsider, name='Elsewhere')
        response = self.client.delete(self.url('remove-member', user_id=self.outsider.pk))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(SpaceUser.objects.filter(user=self.outsider).exists())

    def test_inviter_generates_invite_through_space(self):
        self.as_user(self.inviter)
        response = self.client.post(self.url('invite'), dict(timeframe='3'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        invite = Invite.objects.get(pk=response.data['id'])
        self.assertEqual(invite.space, self.space)
        self.assertIsNotNone(invite.expires_at)

    def test_plain_member_cannot_generate_invite(self):
        self.as_user(self.member)
        response = self.client.post(self.url('invite'), dict(timeframe='1'), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SpaceLayoutAPITests(SpaceAPITestBase):
    @classmethod
    def setUpTestData(cls):
        super().setUpTestData()
        cls.clock = PublishedPlugin.objects.create(name='Clock', min_width=1, max_width=2, min_height=1, max_height=2)
        cls.notes = PublishedPlugin.objects.create(name='Notes')
        cls.chat = PublishedPlugin.objects.create(name='Chat')
        cls.retired = PublishedPlugin.objects.create(name='Retired', is_deleted=True)

    def item(self, plugin, left=0, top=0, width=1, height=1):
        return dict(id=str(plugin.pk), left=left, top=top, width=width, height=height)

    def put_layout(self, layout):
        return self.client.put(self.url('plugins'), layout, format='json')

    def test_layout_reconciliation(self):
        SpacePlugin.objects.create(space=self.space, plugin=self.clock, left=0, top=0, width=1, height=1)
        SpacePlugin.objects.create(space=self.space, plugin=self.notes, left=1, top=0, width=2, height=2)
        response = self.put_layout([
            self.item(self.clock, left=3, top=1, width=2, height=2),
            self.item(self.chat, left=0, top=2, width=3, height=1),
        ])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        placements = {p.plugin_id: p for p in SpacePlugin.objects.filter(space=self.space)}
        self.assertEqual(set(placements), {self.clock.pk, self.chat.pk})
        clock = placements[self.clock.pk]
        self.assertEqual((clock.left, clock.top, clock.width, clock.height), (3, 1, 2, 2))
        self.assertEqual(len(response.data['plugins']), 2)

    def test_empty_layout_clears_space(self):
        SpacePlugin.objects.create(space=self.space, plugin=self.notes)
        response = self.put_layout([])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(SpacePlugin.objects.filter(space=self.space).exists())

    def test_editor_can_change_layout(self):
        self.as_user(self.editor)
        response = self.put_layout([self.item(self.notes)])
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_member_without_edit_permission_cannot_change_layout(self):
        self.as_user(self.member)
        response = self.put_layout([self.item(self.notes)])
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(SpacePlugin.objects.filter(space=self.space).exists())

    def test_outsider_gets_404(self):
        self.as_user(self.outsider)
        response = self.put_layout([self.item(self.notes)])
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unknown_plugin_rejected(self):
        response = self.put_layout([dict(id='00000000-0000-0000-0000-000000000000', left=0, top=0, width=1, height=1)])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_item_outside_grid_rejected(self):
        response = self.put_layout([self.item(self.notes, left=4, width=2)])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_negative_position_rejected(self):
        response = self.put_layout([self.item(self.notes, top=-1)])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_size_outside_plugin_bounds_rejected(self):
        response = self.put_layout([self.item(self.clock, width=3)])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(SpacePlugin.objects.filter(space=self.space).exists())

    def test_deleted_plugin_cannot_be_added(self):
        response = self.put_layout([self.item(self.retired)])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_deleted_plugin_already_placed_can_stay(self):
        SpacePlugin.objects.create(space=self.space, plugin=self.retired)
        response = self.put_layout([self.item(self.retired, left=2)])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(SpacePlugin.objects.get(space=self.space, plugin=self.retired).left, 2)

    def test_layout_save_locks_space(self):
        with patch.object(Space.objects, 'select_for_update', wraps=Space.objects.select_for_update) as lock:
            response = self.put_layout([self.item(self.notes)])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        lock.assert_called_once_with()

    def test_non_list_body_rejected(self):
        response = self.put_layout(self.item(self.notes))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
