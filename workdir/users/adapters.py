from allauth.account.adapter import DefaultAccountAdapter
from allauth.socialaccount.adapter import DefaultSocialAccountAdapter


def display_name_from_email(email):
    """'jane.doe@example.com' -> 'Jane Doe'"""
    local_part = (email or '').split('@', 1)[0]
    words = [word for word in local_part.replace('_', '.').replace('-', '.').split('.') if word]
    return ' '.join(word.capitalize() for word in words)


class AccountAdapter(DefaultAccountAdapter):
    """Email sign-ups get a display name derived from their address."""

    def save_user(self, request, user, form, commit=True):
        user = super().save_user(request, user, form, commit=False)
        if not user.name:
            user.name = display_name_from_email(user.email)
        if commit:
            user.save()
        return user


class SocialAccountAdapter(DefaultSocialAccountAdapter):
    """Copies the Google profile name and picture onto the user."""

    def populate_user(self, request, sociallogin, data):
        user = super().populate_user(request, sociallogin, data)
        extra_data = sociallogin.account.extra_data or {}
        full_name = extra_data.get('name') or ' '.join(
            part for part in (data.get('first_name'), data.get('last_name')) if part
        )
        user.name = full_name or display_name_from_email(data.get('email'))
        user.image = extra_data.get('picture') or ''
        return user
