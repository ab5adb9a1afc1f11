from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """
    Account identity. Email sign-in and Google sign-in both land here through
    users.adapters; `name` and `image` are what other members see.
    """
    name = models.CharField(max_length=255, blank=True)
    image = models.TextField(blank=True, help_text="Avatar URL or data URI.")

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        constraints = [
            models.UniqueConstraint(fields=['email'], condition=~models.Q(email=''), name='unique_user_email'),
        ]

    def __str__(self):
        return self.name or self.email or self.username

    @property
    def display_name(self):
        return self.name or 'Collapp user'
