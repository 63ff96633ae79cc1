"""
Bank connection service.

A connection starts as a GoCardless requisition (status CR) whose link the
user follows to consent at their bank; the provider then redirects to the
callback with ?ref=<reference>, and refreshing the requisition picks up the
linked account ids.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.accounts.models import User

from .. import gocardless
from ..exceptions import BankingProviderError, ConnectionNotFoundError
from ..models import BankConnection, RequisitionStatus

logger = logging.getLogger(__name__)


def build_reference(user: User, now: Optional[datetime] = None) -> str:
    """Unique requisition reference: user_<id>_<epoch millis>."""
    now = now or timezone.now()
    return f"user_{user.id}_{int(now.timestamp() * 1000)}"


def list_institutions(*, country: str = 'PT') -> list:
    return gocardless.get_client().list_institutions(country=country)


def _institution_name(client, institution_id: str) -> str:
    try:
        return client.get_institution(institution_id).get('name', institution_id)
    except BankingProviderError as e:
        logger.warning("Could not resolve institution %s: %s", institution_id, e)
        return institution_id


@transaction.atomic
def create_connection(
    *,
    user: User,
    institution_id: str,
    redirect_url: Optional[str] = None,
) -> BankConnection:
    """
    Create a requisition at GoCardless and remember it.

    Returns:
        BankConnection whose link starts the bank consent flow

    Raises:
        BankingNotConfiguredError: Missing credentials
        BankingProviderError: GoCardless refused the requisition
    """
    client = gocardless.get_client()
    reference = build_reference(user)

    requisition = client.create_requisition(
        institution_id=institution_id,
        redirect=redirect_url or settings.GOCARDLESS_REDIRECT_URL,
        reference=reference,
    )

    connection = BankConnection.objects.create(
        user=user,
        requisition_id=requisition['id'],
        institution_id=institution_id,
        institution_name=_institution_name(client, institution_id),
        reference=requisition.get('reference', reference),
        status=requisition.get('status', RequisitionStatus.CREATED),
        link=requisition.get('link', ''),
        account_ids=requisition.get('accounts', []),
    )
    logger.info("Bank connection %s created for %s at %s", connection.id, user.email, institution_id)
    return connection


def list_connections(*, user: User) -> QuerySet:
    return BankConnection.objects.filter(user=user)


def get_connection(*, connection_id: UUID, user: User) -> BankConnection:
    try:
        return BankConnection.objects.get(id=connection_id, user=user)
    except BankConnection.DoesNotExist:
        raise ConnectionNotFoundError(f"Bank connection with ID {connection_id} not found")


def refresh_connection(*, connection: BankConnection) -> BankConnection:
    """Pull status and account ids of the requisition from GoCardless."""
    requisition = gocardless.get_client().get_requisition(connection.requisition_id)

    connection.status = requisition.get('status', connection.status)
    connection.account_ids = requisition.get('accounts', connection.account_ids)
    connection.save(update_fields=['status', 'account_ids', 'updated_at'])

    logger.info(
        "Bank connection %s is %s with %d account(s)",
        connection.id, connection.status, len(connection.account_ids),
    )
    return connection


def handle_callback(*, reference: str) -> BankConnection:
    """Refresh the connection the bank redirected back for."""
    try:
        connection = BankConnection.objects.get(reference=reference)
    except BankConnection.DoesNotExist:
        raise ConnectionNotFoundError(f"No bank connection with reference {reference}")

    return refresh_connection(connection=connection)


@transaction.atomic
def delete_connection(*, connection_id: UUID, user: User) -> None:
    connection = get_connection(connection_id=connection_id, user=user)
    gocardless.get_client().delete_requisition(connection.requisition_id)
    connection.delete()


def list_linked_accounts() -> list:
    """
    Every account id of the family's linked connections.

    Returns:
        List of {'account_id', 'connection'} dicts
    """
    accounts = []
    for connection in BankConnection.objects.filter(status=RequisitionStatus.LINKED):
        for account_id in connection.account_ids:
            accounts.append({'account_id': account_id, 'connection': connection})
    return accounts
