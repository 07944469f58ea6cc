from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Custom User model carrying the registration review state"""
    REGISTRATION_STATUSES = [
        ('needs_form', 'Needs Registration Form'),
        ('awaiting_review', 'Awaiting Review'),
        ('approved', 'Approved'),
    ]

    phone = models.CharField(max_length=20, unique=True, null=True, blank=True)
    registration_status = models.CharField(
        max_length=20, choices=REGISTRATION_STATUSES, default='approved'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.username or self.phone or f"User {self.id}"

    @property
    def is_pending_approval(self):
        """Users whose registration is not approved yet cannot spend points"""
        return self.registration_status != 'approved'
