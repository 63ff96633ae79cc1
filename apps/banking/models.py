from django.conf import settings
from django.db import models
import uuid


class RequisitionStatus(models.TextChoices):
    CREATED = 'CR', 'Created'
    GIVING_CONSENT = 'GC', 'Giving consent'
    UNDERGOING_AUTHENTICATION = 'UA', 'Undergoing authentication'
    REJECTED = 'RJ', 'Rejected'
    SELECTING_ACCOUNTS = 'SA', 'Selecting accounts'
    GRANTING_ACCESS = 'GA', 'Granting access'
    LINKED = 'LN', 'Linked'
    EXPIRED = 'EX', 'Expired'


class BankConnection(models.Model):
    """A GoCardless requisition: consent to read one institution's accounts."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='bank_connections'
    )

    requisition_id = models.CharField(max_length=100, unique=True)
    institution_id = models.CharField(max_length=100)
    institution_name = models.CharField(max_length=200, blank=True)
    reference = models.CharField(max_length=100, unique=True)
    status = models.CharField(max_length=2, choices=RequisitionStatus.choices, default=RequisitionStatus.CREATED)
    link = models.URLField(max_length=500, blank=True)
    account_ids = models.JSONField(default=list, blank=True)
    last_synced_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bank_connections'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='bank_conn_user_status_idx'),
        ]

    def __str__(self):
        return f"{self.institution_name or self.institution_id} ({self.get_status_display()})"

    @property
    def is_linked(self):
        return self.status == RequisitionStatus.LINKED
