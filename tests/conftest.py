import copy
import json

import pytest
import requests

from esp_client import IP, DailyStat, Domain, EmailResponse, IPPool, Message, StatCounts, SubAccount, Webhook


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text=None):
        self.status_code = status_code
        self._json = json_data
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ""
        self.text = text
        self.content = text.encode()
        self.headers = {}

    def json(self):
        if self._json is None:
            raise ValueError("No JSON")
        return self._json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class FakeClient:
    """Records every call with the sub-account key of the view that made it."""

    def __init__(self, sub_accounts=None, ips=None, send_responses=None, fail=None,
                 sub_account_api_key='configured-sub-key'):
        self.sub_account_api_key = sub_account_api_key
        self.sub_accounts = sub_accounts if sub_accounts is not None else []
        self.ips = ips if ips is not None else []
        self.send_responses = send_responses if send_responses is not None else []
        self.fail = fail or {}
        self.calls = []

    def for_sub_account(self, api_key):
        view = copy.copy(self)
        view.sub_account_api_key = api_key
        return view

    def _record(self, call_name, **kwargs):
        self.calls.append((call_name, self.sub_account_api_key, kwargs))
        if call_name in self.fail:
            raise self.fail[call_name]

    def call_names(self):
        return [c[0] for c in self.calls]

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]

    def list_sub_accounts(self):
        self._record('list_sub_accounts')
        return list(self.sub_accounts)

    def create_sub_account(self, name):
        self._record('create_sub_account', name=name)
        return SubAccount(id=99, name=name, api_key='new-sub-key', type=1)

    def create_webhook(self, request):
        self._record('create_webhook', request=request)
        return Webhook(id=5, url=request.url, enabled=request.enabled)

    def list_webhooks(self):
        self._record('list_webhooks')
        return [Webhook(id=5, url='https://hooks.example.com', enabled=True)]

    def add_domain(self, name):
        self._record('add_domain', name=name)
        return Domain(id=11, name=name, verified=False, dkim_record='k=rsa; p=MIGf')

    def list_domains(self):
        self._record('list_domains')
        return [Domain(id=11, name='yourdomain.com')]

    def send_email(self, message):
        self._record('send_email', message=message)
        if self.send_responses and isinstance(self.send_responses[0], list):
            return self.send_responses.pop(0)
        return list(self.send_responses)

    def get_message(self, message_id):
        self._record('get_message', message_id=message_id)
        return Message(message_id=message_id, subject='Order Confirmation - Transactional Email')

    def get_sub_account_stats(self, sub_account_id, from_date, to_date):
        self._record('get_sub_account_stats', sub_account_id=sub_account_id, from_date=from_date, to_date=to_date)
        return [
            DailyStat(date='2026-10-18', stat=StatCounts(processed=10, delivered=9)),
            DailyStat(date='2026-10-19', stat=StatCounts(processed=5, delivered=None)),
            DailyStat(date='2026-10-17', stat=None),
        ]

    def get_sub_account_aggregate_stats(self, sub_account_id, from_date, to_date):
        self._record('get_sub_account_aggregate_stats', sub_account_id=sub_account_id,
                     from_date=from_date, to_date=to_date)
        return StatCounts(processed=15, delivered=9)

    def get_account_stats(self, from_date, to_date):
        self._record('get_account_stats', from_date=from_date, to_date=to_date)
        return [DailyStat(date='2026-10-19', stat=StatCounts(processed=20, opened=4, clicked=1))]

    def list_ips(self):
        self._record('list_ips')
        return list(self.ips)

    def create_ip_pool(self, request):
        self._record('create_ip_pool', request=request)
        return IPPool(id=7, name=request.name, routing_strategy=int(request.routing_strategy),
                      member_ips=[IP(id=None, public_ip=ip) for ip in request.member_ips])

    def list_ip_pools(self):
        self._record('list_ip_pools')
        return [IPPool(id=7, name='Marketing Pool', routing_strategy=0, member_ips=[IP(id=1, public_ip='203.0.113.10')])]


class RecordingSettle:
    def __init__(self, client=None):
        self.client = client
        self.waits = []

    def wait(self, check=None):
        self.waits.append(len(self.client.calls) if self.client else None)


@pytest.fixture
def make_client():
    return FakeClient


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture
def recording_settle():
    return RecordingSettle


@pytest.fixture
def two_ips():
    return [IP(id=1, public_ip='203.0.113.10'), IP(id=2, public_ip='203.0.113.11')]


@pytest.fixture
def one_sub_account():
    return [SubAccount(id=42, name='Client A', api_key='listed-sub-key', type=0)]


@pytest.fixture
def sent():
    return [EmailResponse(message_id='msg-1', to='to@example.com'),
            EmailResponse(message_id='msg-2', to='other@example.com')]
