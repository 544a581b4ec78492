"""
SendPost API client.
Contains all API communication logic - no workflow state.
"""

import logging
from datetime import date
from typing import Dict, List, Optional

import requests

from .models import (
    IP,
    DailyStat,
    Domain,
    EmailMessage,
    EmailResponse,
    IPPool,
    IPPoolCreateRequest,
    CreateWebhookRequest,
    Message,
    StatCounts,
    SubAccount,
    Webhook,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://api.sendpost.io/api/v1'

ACCOUNT_AUTH = 'account'
SUB_ACCOUNT_AUTH = 'sub_account'

_AUTH_HEADERS = {
    ACCOUNT_AUTH: 'X-Account-ApiKey',
    SUB_ACCOUNT_AUTH: 'X-SubAccount-ApiKey',
}


class ApiError(Exception):
    """A SendPost call failed. ``status_code`` is None for transport failures."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ''):
        super().__init__(message)
        self.status_code = status_code
        self.body = body or ''


class SendPostClient:
    """Client for the SendPost REST API.

    Account-scoped resources (sub-accounts, webhooks, IPs, IP pools, stats,
    messages) authenticate with the account key; domains and email sending
    authenticate with the sub-account key.
    """

    def __init__(self, account_api_key: str, sub_account_api_key: str,
                 base_url: str = DEFAULT_BASE_URL, timeout: int = 30):
        self.account_api_key = account_api_key
        self.sub_account_api_key = sub_account_api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def for_sub_account(self, api_key: str) -> 'SendPostClient':
        """Return a client that sends sub-account calls with ``api_key``."""
        return SendPostClient(
            self.account_api_key,
            api_key,
            base_url=self.base_url,
            timeout=self.timeout,
        )

    def _headers(self, auth: str, with_body: bool) -> Dict[str, str]:
        key = self.account_api_key if auth == ACCOUNT_AUTH else self.sub_account_api_key
        headers = {
            _AUTH_HEADERS[auth]: key,
            'Accept': 'application/json',
        }
        if with_body:
            headers['Content-Type'] = 'application/json'
        return headers

    def call(self, endpoint: str, auth: str, method: str = 'GET',
             data: Optional[Dict] = None, params: Optional[Dict] = None):
        """Make one API call and return the decoded JSON body.

        Raises ApiError on transport failure or any non-2xx status.
        """
        url = f"{self.base_url}{endpoint}"
        headers = self._headers(auth, with_body=data is not None)
        logger.debug(f"{method} {url} params={params}")

        try:
            if method == 'GET':
                response = requests.get(url, headers=headers, params=params, timeout=self.timeout)
            elif method == 'POST':
                response = requests.post(url, headers=headers, json=data, params=params, timeout=self.timeout)
            else:
                raise ValueError(f"Unsupported method: {method}")

            response.raise_for_status()
            if not response.content:
                return None
            return response.json()

        except requests.exceptions.RequestException as e:
            status = getattr(getattr(e, 'response', None), 'status_code', None)
            body = getattr(getattr(e, 'response', None), 'text', '') or ''
            if status:
                logger.error(f"API call failed: {method} {endpoint} (status={status}, body={body[:800]})")
            else:
                logger.error(f"API call failed: {method} {endpoint}: {e}")
            raise ApiError(str(e), status_code=status, body=body) from e

    @staticmethod
    def _page_params(offset: Optional[int], limit: Optional[int], search: Optional[str]) -> Dict:
        params = {'offset': offset, 'limit': limit, 'search': search}
        return {k: v for k, v in params.items() if v is not None}

    @staticmethod
    def _window_params(from_date: date, to_date: date) -> Dict[str, str]:
        return {'from': from_date.isoformat(), 'to': to_date.isoformat()}

    # Sub-accounts

    def list_sub_accounts(self, offset: Optional[int] = None, limit: Optional[int] = None,
                          search: Optional[str] = None) -> List[SubAccount]:
        items = self.call('/account/subaccount/', ACCOUNT_AUTH,
                          params=self._page_params(offset, limit, search))
        return [SubAccount.from_dict(item) for item in items or []]

    def create_sub_account(self, name: str) -> SubAccount:
        data = self.call('/account/subaccount/', ACCOUNT_AUTH, method='POST', data={'name': name})
        return SubAccount.from_dict(data or {})

    # Webhooks

    def list_webhooks(self, offset: Optional[int] = None, limit: Optional[int] = None,
                      search: Optional[str] = None) -> List[Webhook]:
        items = self.call('/account/webhook/', ACCOUNT_AUTH,
                          params=self._page_params(offset, limit, search))
        return [Webhook.from_dict(item) for item in items or []]

    def create_webhook(self, request: CreateWebhookRequest) -> Webhook:
        data = self.call('/account/webhook/', ACCOUNT_AUTH, method='POST', data=request.to_dict())
        return Webhook.from_dict(data or {})

    # Domains

    def list_domains(self, offset: Optional[int] = None, limit: Optional[int] = None,
                     search: Optional[str] = None) -> List[Domain]:
        items = self.call('/subaccount/domain/', SUB_ACCOUNT_AUTH,
                          params=self._page_params(offset, limit, search))
        return [Domain.from_dict(item) for item in items or []]

    def add_domain(self, name: str) -> Domain:
        data = self.call('/subaccount/domain/', SUB_ACCOUNT_AUTH, method='POST', data={'name': name})
        return Domain.from_dict(data or {})

    # Email

    def send_email(self, message: EmailMessage) -> List[EmailResponse]:
        """Send one message; the API answers with one entry per recipient."""
        items = self.call('/subaccount/email/', SUB_ACCOUNT_AUTH, method='POST', data=message.to_dict())
        return [EmailResponse.from_dict(item) for item in items or []]

    def get_message(self, message_id: str) -> Message:
        data = self.call(f'/account/message/{message_id}', ACCOUNT_AUTH)
        return Message.from_dict(data or {})

    # Stats

    def get_sub_account_stats(self, sub_account_id: int, from_date: date, to_date: date) -> List[DailyStat]:
        items = self.call(f'/account/subaccount/stat/{sub_account_id}', ACCOUNT_AUTH,
                          params=self._window_params(from_date, to_date))
        return [DailyStat.from_dict(item) for item in items or []]

    def get_sub_account_aggregate_stats(self, sub_account_id: int, from_date: date, to_date: date) -> StatCounts:
        data = self.call(f'/account/subaccount/stat/{sub_account_id}/aggregate', ACCOUNT_AUTH,
                         params=self._window_params(from_date, to_date))
        return StatCounts.from_dict(data or {})

    def get_account_stats(self, from_date: date, to_date: date) -> List[DailyStat]:
        items = self.call('/account/stat/', ACCOUNT_AUTH, params=self._window_params(from_date, to_date))
        return [DailyStat.from_dict(item) for item in items or []]

    # IPs and IP pools

    def list_ips(self, offset: Optional[int] = None, limit: Optional[int] = None,
                 search: Optional[str] = None) -> List[IP]:
        items = self.call('/account/ip/', ACCOUNT_AUTH, params=self._page_params(offset, limit, search))
        return [IP.from_dict(item) for item in items or []]

    def list_ip_pools(self, offset: Optional[int] = None, limit: Optional[int] = None,
                      search: Optional[str] = None) -> List[IPPool]:
        items = self.call('/account/ippool/', ACCOUNT_AUTH, params=self._page_params(offset, limit, search))
        return [IPPool.from_dict(item) for item in items or []]

    def create_ip_pool(self, request: IPPoolCreateRequest) -> IPPool:
        data = self.call('/account/ippool/', ACCOUNT_AUTH, method='POST', data=request.to_dict())
        return IPPool.from_dict(data or {})
