import logging
import smtplib

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

from .models import Invite

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=300)
def send_invite_email(self, invite_id, to, sender_name=None):
    sender_name = sender_name or 'Collapp user'
    try:
        invite = Invite.objects.select_related('space').get(pk=invite_id)
    except Invite.DoesNotExist:
        logger.warning("Invite %s no longer exists; email to %s not sent.", invite_id, to)
        return None

    context = {
        'sender_name': sender_name,
        'space_name': invite.space.name,
        'invite_url': invite.url,
        'expires_at': invite.expires_at,
    }
    subject = f"{sender_name} invites you to space {invite.space.name}"
    body = render_to_string('invitations/invite_email.txt', context)

    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [to])
    except (smtplib.SMTPException, OSError) as exc:
        logger.warning(
            "Sending invite %s to %s failed (attempt %d): %s",
            invite_id, to, self.request.retries + 1, exc
        )
        raise self.retry(exc=exc)

    logger.info("Invite %s for space %s sent to %s.", invite_id, invite.space_id, to)
    return str(invite.pk)
