import logging
import os

from celery import Celery
from celery.signals import task_failure

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'collapp_config.settings')

logger = logging.getLogger('core')

app = Celery('collapp')

# Settings prefixed with CELERY_ in collapp_config.settings configure the app.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Picks up invitations.tasks and any other app's tasks module.
app.autodiscover_tasks()


@task_failure.connect
def log_task_failure(sender=None, task_id=None, exception=None, **kwargs):
    logger.error("Task %s (%s) failed: %s", getattr(sender, 'name', sender), task_id, exception)
