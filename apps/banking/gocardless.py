"""
GoCardless Bank Account Data API client.

Token lifecycle:
    - POST /token/new/ with the secret id/key gives an access and a refresh
      token, each with a lifetime in seconds.
    - A token is used while it expires more than TOKEN_EXPIRY_MARGIN seconds
      ahead; otherwise the refresh token is used, and when refreshing fails a
      new pair is requested.
    - A 401 on an authenticated call clears the tokens and retries once.

Connection errors, 429 and 5xx answers are retried with exponential backoff.

Example:
    client = get_client()
    institutions = client.list_institutions(country='PT')
    booked = client.get_transactions(account_id, date_from=date(2024, 3, 1))
"""

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Optional

import requests
from django.conf import settings
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from .exceptions import BankingNotConfiguredError, BankingProviderError

logger = logging.getLogger(__name__)

BASE_URLS = {
    'live': 'https://bankaccountdata.gocardless.com/api/v2',
    'sandbox': 'https://bankaccountdata.sandbox.gocardless.com/api/v2',
}

TOKEN_EXPIRY_MARGIN = 300


@dataclass
class TokenPair:
    access: str
    access_expires_at: float
    refresh: str
    refresh_expires_at: float


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code == 429 or exc.response.status_code >= 500
    return False


def _token_valid(token: Optional[str], expires_at: float, now: float) -> bool:
    return bool(token) and expires_at > now + TOKEN_EXPIRY_MARGIN


class GoCardlessClient:
    """Thin synchronous wrapper over the Bank Account Data REST API."""

    def __init__(
        self,
        *,
        secret_id: Optional[str] = None,
        secret_key: Optional[str] = None,
        environment: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.secret_id = secret_id if secret_id is not None else settings.GOCARDLESS_SECRET_ID
        self.secret_key = secret_key if secret_key is not None else settings.GOCARDLESS_SECRET_KEY
        self.environment = environment or settings.GOCARDLESS_ENVIRONMENT
        self.base_url = BASE_URLS.get(self.environment, BASE_URLS['sandbox'])
        self.timeout = timeout or settings.GOCARDLESS_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({'accept': 'application/json'})
        self._tokens: Optional[TokenPair] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_id and self.secret_key)

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        if response.status_code == 429 or response.status_code >= 500:
            response.raise_for_status()
        return response

    # -------------------------------------------------------------------------
    # Tokens
    # -------------------------------------------------------------------------

    def get_access_token(self) -> str:
        now = time.time()
        if self._tokens and _token_valid(self._tokens.access, self._tokens.access_expires_at, now):
            return self._tokens.access
        if self._tokens and _token_valid(self._tokens.refresh, self._tokens.refresh_expires_at, now):
            return self._refresh_access_token()
        return self._new_access_token()

    def token_info(self) -> dict:
        if not self._tokens:
            return {'has_token': False}
        return {
            'has_token': True,
            'access_expires_at': self._tokens.access_expires_at,
            'refresh_expires_at': self._tokens.refresh_expires_at,
        }

    def _new_access_token(self) -> str:
        if not self.is_configured:
            raise BankingNotConfiguredError("GoCardless SECRET_ID and SECRET_KEY are required")

        try:
            response = self._send(
                'POST',
                '/token/new/',
                json={'secret_id': self.secret_id, 'secret_key': self.secret_key},
            )
        except requests.RequestException as e:
            logger.error("GoCardless token request failed: %s", e)
            raise BankingProviderError(f"Failed to get access token: {e}") from e

        if not response.ok:
            raise BankingProviderError(
                f"Failed to get access token: {response.status_code}",
                status_code=response.status_code,
            )

        payload = response.json()
        now = time.time()
        self._tokens = TokenPair(
            access=payload['access'],
            access_expires_at=now + payload['access_expires'],
            refresh=payload['refresh'],
            refresh_expires_at=now + payload['refresh_expires'],
        )
        logger.info("GoCardless access token obtained")
        return self._tokens.access

    def _refresh_access_token(self) -> str:
        try:
            response = self._send('POST', '/token/refresh/', json={'refresh': self._tokens.refresh})
        except requests.RequestException as e:
            logger.warning("GoCardless token refresh failed (%s), requesting a new token", e)
            return self._new_access_token()

        if not response.ok:
            logger.warning("GoCardless refresh token rejected, requesting a new token")
            return self._new_access_token()

        payload = response.json()
        self._tokens.access = payload['access']
        self._tokens.access_expires_at = time.time() + payload['access_expires']
        return self._tokens.access

    # -------------------------------------------------------------------------
    # Authenticated requests
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, *, params=None, json=None):
        try:
            response = self._send(
                method, path,
                headers={'Authorization': f"Bearer {self.get_access_token()}"},
                params=params,
                json=json,
            )
            if response.status_code == 401:
                logger.warning("GoCardless access token rejected, retrying with a new one")
                self._tokens = None
                response = self._send(
                    method, path,
                    headers={'Authorization': f"Bearer {self.get_access_token()}"},
                    params=params,
                    json=json,
                )
        except requests.RequestException as e:
            logger.error("GoCardless %s %s failed: %s", method, path, e)
            raise BankingProviderError(f"GoCardless request failed: {e}") from e

        if not response.ok:
            logger.error("GoCardless %s %s returned %s", method, path, response.status_code)
            raise BankingProviderError(
                f"GoCardless {method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    # -------------------------------------------------------------------------
    # Institutions and requisitions
    # -------------------------------------------------------------------------

    def list_institutions(self, country: str = 'PT') -> list:
        return self._request('GET', '/institutions/', params={'country': country})

    def get_institution(self, institution_id: str) -> dict:
        return self._request('GET', f'/institutions/{institution_id}/')

    def create_requisition(
        self,
        *,
        institution_id: str,
        redirect: str,
        reference: str,
        user_language: str = 'EN',
    ) -> dict:
        return self._request('POST', '/requisitions/', json={
            'institution_id': institution_id,
            'redirect': redirect,
            'reference': reference,
            'user_language': user_language,
        })

    def get_requisition(self, requisition_id: str) -> dict:
        return self._request('GET', f'/requisitions/{requisition_id}/')

    def list_requisitions(self) -> list:
        return self._request('GET', '/requisitions/').get('results', [])

    def delete_requisition(self, requisition_id: str) -> None:
        self._request('DELETE', f'/requisitions/{requisition_id}/')

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def get_account(self, account_id: str) -> dict:
        return self._request('GET', f'/accounts/{account_id}/')

    def get_account_details(self, account_id: str) -> dict:
        payload = self._request('GET', f'/accounts/{account_id}/details/')
        return payload.get('account', payload)

    def get_balances(self, account_id: str) -> list:
        return self._request('GET', f'/accounts/{account_id}/balances/').get('balances', [])

    def get_transactions(
        self,
        account_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list:
        """Booked transactions of an account, optionally within a date window."""
        params = {}
        if date_from:
            params['date_from'] = date_from.isoformat()
        if date_to:
            params['date_to'] = date_to.isoformat()

        payload = self._request('GET', f'/accounts/{account_id}/transactions/', params=params or None)
        return payload.get('transactions', {}).get('booked', [])


def get_client() -> GoCardlessClient:
    """Client configured from settings."""
    return GoCardlessClient()
