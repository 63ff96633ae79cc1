"""Email and password login."""

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

logger = logging.getLogger(__name__)

User = get_user_model()

INVALID_CREDENTIALS = "Invalid email or password"


@transaction.atomic
def authenticate_user(*, email: str, password: str) -> User:
    """
    Check a member's credentials and stamp last_login.

    Emails are matched case-insensitively. The row is locked while
    last_login is written so concurrent logins of one member serialize.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        InactiveAccountError: The member was deactivated by an admin
    """
    user = User.objects.select_for_update().filter(email__iexact=email.strip()).first()

    if user is None or not user.check_password(password):
        logger.warning("Failed login for %s", email)
        raise InvalidCredentialsError(INVALID_CREDENTIALS)

    if not user.is_active:
        logger.warning("Login refused for deactivated user %s", user.id)
        raise InactiveAccountError("Account is deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    return user
