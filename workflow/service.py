"""
ESP workflow service.

Holds the session state for one run and exposes one operation per workflow
step. Each step is callable on its own, catches and logs its own failures,
and returns a StepResult so a run always continues to the next step.
"""

import functools
import logging
import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from esp_client import (
    ApiError,
    CreateWebhookRequest,
    EmailAddress,
    EmailMessage,
    IPPoolCreateRequest,
    OverflowStrategy,
    Recipient,
    RoutingStrategy,
    SendPostClient,
    SubAccount,
)
from esp_config import DemoConfig
from .settle import FixedDelay

logger = logging.getLogger(__name__)

IP_POOL_WARMUP_HOURS = 24


class PreconditionError(Exception):
    """A step needs a session value that an earlier step has not produced."""


@dataclass
class SessionState:
    """Identifiers produced by earlier steps. Fields are set once and never cleared."""
    sub_account_id: Optional[int] = None
    sub_account_api_key: Optional[str] = None
    webhook_id: Optional[int] = None
    domain_id: Optional[str] = None
    ip_pool_id: Optional[int] = None
    ip_pool_name: Optional[str] = None
    sent_message_id: Optional[str] = None


@dataclass
class StepResult:
    name: str
    ok: bool
    value: Any = None
    error: Optional[Exception] = None


@dataclass
class RunReport:
    results: List[StepResult] = field(default_factory=list)

    @property
    def failures(self) -> List[StepResult]:
        return [r for r in self.results if not r.ok]

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)


def select_first_sub_account(sub_accounts: Sequence[SubAccount]) -> Optional[SubAccount]:
    """Default selection policy: the first listed sub-account that has an id."""
    for sub_account in sub_accounts:
        if sub_account.id is not None:
            return sub_account
    return None


def stats_window(today: date, days: int = 7) -> Tuple[date, date]:
    """Trailing window ending today: (today - days, today)."""
    return today - timedelta(days=days), today


def build_transactional_email(demo: DemoConfig, ip_pool_name: Optional[str] = None) -> EmailMessage:
    recipient = Recipient(
        email=demo.to_email,
        name='Customer',
        custom_fields={'customer_id': '67890', 'order_value': '99.99'},
    )
    return EmailMessage(
        from_address=EmailAddress(email=demo.from_email, name='Your Company'),
        to=[recipient],
        subject='Order Confirmation - Transactional Email',
        html_body=('<h1>Thank you for your order!</h1>'
                   '<p>Your order has been confirmed and will be processed shortly.</p>'),
        text_body='Thank you for your order! Your order has been confirmed and will be processed shortly.',
        track_opens=True,
        track_clicks=True,
        headers={'X-Order-ID': '12345', 'X-Email-Type': 'transactional'},
        ippool=ip_pool_name or None,
    )


def build_marketing_email(demo: DemoConfig, ip_pool_name: Optional[str] = None,
                          recipients: Optional[Iterable[Recipient]] = None) -> EmailMessage:
    to = list(recipients) if recipients else [Recipient(email=demo.to_email, name='Customer 1')]
    return EmailMessage(
        from_address=EmailAddress(email=demo.from_email, name='Marketing Team'),
        to=to,
        subject='Special Offer - 20% Off Everything!',
        html_body=('<html><body>'
                   '<h1>Special Offer!</h1>'
                   '<p>Get 20% off on all products. Use code: <strong>SAVE20</strong></p>'
                   '<p><a href="https://example.com/shop">Shop Now</a></p>'
                   '</body></html>'),
        text_body='Special Offer! Get 20% off on all products. Use code: SAVE20. Visit: https://example.com/shop',
        track_opens=True,
        track_clicks=True,
        headers={'X-Email-Type': 'marketing', 'X-Campaign-ID': 'campaign-001'},
        groups=['marketing', 'promotional'],
        ippool=ip_pool_name or None,
    )


def workflow_step(title: str):
    """Wrap a runner method so failures are logged and returned, never raised."""
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(self, *args, **kwargs):
            logger.info(f"=== {title} ===")
            try:
                value = fn(self, *args, **kwargs)
            except PreconditionError as e:
                logger.error(f"❌ {e}")
                result = StepResult(fn.__name__, ok=False, error=e)
            except ApiError as e:
                logger.error(f"❌ {title} failed:")
                logger.error(f"   Status code: {e.status_code}")
                logger.error(f"   Response body: {e.body}")
                result = StepResult(fn.__name__, ok=False, error=e)
            except Exception as e:
                logger.exception(f"❌ Unexpected error in '{title}': {type(e).__name__}: {e}")
                result = StepResult(fn.__name__, ok=False, error=e)
            else:
                result = StepResult(fn.__name__, ok=True, value=value)
            self.results.append(result)
            return result
        return wrapper
    return decorator


class WorkflowRunner:
    """Runs the ESP example workflow against a SendPost client."""

    FULL_RUN_ORDER = (
        'list_sub_accounts',
        'create_webhook',
        'list_webhooks',
        'add_domain',
        'list_domains',
        'list_ips',
        'create_ip_pool',
        'list_ip_pools',
        'send_transactional_email',
        'send_marketing_email',
        'get_sub_account_stats',
        'get_aggregate_stats',
        'get_account_stats',
        'get_message_details',
    )

    STEP_NAMES = FULL_RUN_ORDER + ('create_sub_account',)

    def __init__(self, client: SendPostClient, demo: Optional[DemoConfig] = None,
                 settle=None, state: Optional[SessionState] = None,
                 today: Callable[[], date] = date.today,
                 clock: Callable[[], float] = time.time,
                 select_sub_account: Callable[[Sequence[SubAccount]], Optional[SubAccount]] = select_first_sub_account,
                 stats_window_days: int = 7):
        self.client = client
        self.demo = demo or DemoConfig()
        self.settle = settle or FixedDelay()
        self.state = state or SessionState()
        self.today = today
        self.clock = clock
        self.select_sub_account = select_sub_account
        self.stats_window_days = stats_window_days
        self.results: List[StepResult] = []
        self._window: Optional[Tuple[date, date]] = None

    def _sub_account_client(self) -> SendPostClient:
        """Client for domain/email calls, using the adopted sub-account key when there is one."""
        if self.state.sub_account_api_key:
            return self.client.for_sub_account(self.state.sub_account_api_key)
        return self.client

    def _stats_window(self) -> Tuple[date, date]:
        # Computed once so every stats step in a run shares the same dates
        if self._window is None:
            self._window = stats_window(self.today(), self.stats_window_days)
        return self._window

    def _remember(self, field_name: str, value) -> None:
        # Session values are never cleared, so a missing field in a response is ignored
        if value is not None:
            setattr(self.state, field_name, value)

    def _unique_suffix(self) -> int:
        return int(self.clock() * 1000)

    def _require_sub_account(self) -> int:
        if self.state.sub_account_id is None:
            raise PreconditionError("No sub-account ID available. Please create or list sub-accounts first.")
        return self.state.sub_account_id

    # Sub-accounts

    @workflow_step("Listing All Sub-Accounts")
    def list_sub_accounts(self):
        logger.info("Retrieving all sub-accounts...")
        sub_accounts = self.client.list_sub_accounts()
        logger.info(f"✅ Retrieved {len(sub_accounts)} sub-account(s)")
        for sub_account in sub_accounts:
            logger.info(f"  - ID: {sub_account.id}")
            logger.info(f"    Name: {sub_account.name}")
            logger.info(f"    Type: {sub_account.type_label}")
            logger.info(f"    Blocked: {'Yes' if sub_account.blocked else 'No'}")
            if sub_account.created_at is not None:
                logger.info(f"    Created: {sub_account.created_at}")

        if self.state.sub_account_id is None:
            selected = self.select_sub_account(sub_accounts)
            if selected is not None:
                self._remember('sub_account_id', selected.id)
                self._remember('sub_account_api_key', selected.api_key)
                logger.info(f"📌 Using sub-account {selected.id} for sub-account operations")
        return sub_accounts

    @workflow_step("Creating Sub-Account")
    def create_sub_account(self):
        name = f"ESP Client - {self._unique_suffix()}"
        logger.info(f"Creating sub-account: {name}")
        sub_account = self.client.create_sub_account(name)

        self._remember('sub_account_id', sub_account.id)
        self._remember('sub_account_api_key', sub_account.api_key)

        logger.info("✅ Sub-account created successfully!")
        logger.info(f"  ID: {sub_account.id}")
        logger.info(f"  Name: {sub_account.name}")
        logger.info(f"  Type: {sub_account.type_label}")
        return sub_account

    # Webhooks

    @workflow_step("Creating Webhook")
    def create_webhook(self):
        request = CreateWebhookRequest(url=self.demo.webhook_url)
        logger.info(f"Creating webhook for {request.url}")
        webhook = self.client.create_webhook(request)
        self._remember('webhook_id', webhook.id)

        logger.info("✅ Webhook created successfully!")
        logger.info(f"  ID: {webhook.id}")
        logger.info(f"  URL: {webhook.url}")
        logger.info(f"  Enabled: {webhook.enabled}")
        return webhook

    @workflow_step("Listing All Webhooks")
    def list_webhooks(self):
        webhooks = self.client.list_webhooks()
        logger.info(f"✅ Retrieved {len(webhooks)} webhook(s)")
        for webhook in webhooks:
            logger.info(f"  - ID: {webhook.id}  URL: {webhook.url}  Enabled: {webhook.enabled}")
        return webhooks

    # Domains

    @workflow_step("Adding Domain")
    def add_domain(self):
        logger.info(f"Adding domain: {self.demo.domain_name}")
        domain = self._sub_account_client().add_domain(self.demo.domain_name)
        if domain.id is not None:
            self._remember('domain_id', str(domain.id))

        logger.info("✅ Domain added successfully!")
        logger.info(f"  ID: {self.state.domain_id}")
        logger.info(f"  Domain: {domain.name}")
        logger.info(f"  Verified: {'Yes' if domain.verified else 'No'}")
        if domain.dkim_record:
            logger.info(f"  DKIM Record: {domain.dkim_record}")
            logger.warning("⚠️ Add the DNS records shown above to your domain's DNS settings to verify the domain.")
        return domain

    @workflow_step("Listing All Domains")
    def list_domains(self):
        domains = self._sub_account_client().list_domains()
        logger.info(f"✅ Retrieved {len(domains)} domain(s)")
        for domain in domains:
            logger.info(f"  - ID: {domain.id}  Domain: {domain.name}  Verified: {'Yes' if domain.verified else 'No'}")
        return domains

    # Email

    def _send(self, message: EmailMessage):
        if message.ippool:
            logger.info(f"  Using IP Pool: {message.ippool}")
        logger.info(f"  From: {message.from_address.email}")
        logger.info(f"  To: {', '.join(r.email for r in message.to)}")
        logger.info(f"  Subject: {message.subject}")
        return self._sub_account_client().send_email(message)

    @workflow_step("Sending Transactional Email")
    def send_transactional_email(self):
        message = build_transactional_email(self.demo, self.state.ip_pool_name)
        responses = self._send(message)
        if responses:
            first = responses[0]
            self._remember('sent_message_id', first.message_id)
            logger.info("✅ Transactional email sent successfully!")
            logger.info(f"  Message ID: {first.message_id}")
            logger.info(f"  To: {first.to}")
        return responses

    @workflow_step("Sending Marketing Email")
    def send_marketing_email(self, recipients: Optional[Iterable[Recipient]] = None):
        message = build_marketing_email(self.demo, self.state.ip_pool_name, recipients)
        responses = self._send(message)
        if responses:
            first = responses[0]
            # The transactional message id takes priority
            if self.state.sent_message_id is None:
                self._remember('sent_message_id', first.message_id)
            logger.info("✅ Marketing email sent successfully!")
            logger.info(f"  Message ID: {first.message_id}")
            logger.info(f"  To: {first.to}")
        return responses

    @workflow_step("Retrieving Message Details")
    def get_message_details(self):
        if self.state.sent_message_id is None:
            raise PreconditionError("No message ID available. Please send an email first.")

        logger.info(f"Retrieving message with ID: {self.state.sent_message_id}")
        message = self.client.get_message(self.state.sent_message_id)

        logger.info("✅ Message retrieved successfully!")
        logger.info(f"  Message ID: {message.message_id}")
        logger.info(f"  Account ID: {message.account_id}")
        logger.info(f"  Sub-Account ID: {message.sub_account_id}")
        logger.info(f"  IP ID: {message.ip_id}")
        logger.info(f"  Public IP: {message.public_ip}")
        logger.info(f"  Local IP: {message.local_ip}")
        logger.info(f"  Email Type: {message.email_type}")
        if message.submitted_at is not None:
            logger.info(f"  Submitted At: {message.submitted_at}")
        logger.info(f"  From: {message.from_email or 'N/A'}")
        logger.info(f"  To: {message.to_email or 'N/A'}")
        if message.to_name:
            logger.info(f"    Name: {message.to_name}")
        if message.subject:
            logger.info(f"  Subject: {message.subject}")
        if message.ip_pool:
            logger.info(f"  IP Pool: {message.ip_pool}")
        if message.delivery_attempts is not None:
            logger.info(f"  Delivery Attempts: {message.delivery_attempts}")
        return message

    def _message_ready(self) -> bool:
        if self.state.sent_message_id is None:
            return True
        try:
            self.client.get_message(self.state.sent_message_id)
        except ApiError:
            return False
        except Exception as e:
            logger.debug(f"Message readiness check failed: {type(e).__name__}: {e}")
            return False
        return True

    # Stats

    @workflow_step("Getting Sub-Account Statistics")
    def get_sub_account_stats(self):
        sub_account_id = self._require_sub_account()
        from_date, to_date = self._stats_window()
        logger.info(f"Retrieving stats for sub-account ID: {sub_account_id} ({from_date} to {to_date})")

        stats = self.client.get_sub_account_stats(sub_account_id, from_date, to_date)
        logger.info(f"✅ Retrieved {len(stats)} stat record(s)")

        total_processed = 0
        total_delivered = 0
        for record in stats:
            if record.stat is None:
                continue
            counts = record.stat
            logger.info(f"  📊 {record.date}: processed={counts.processed} delivered={counts.delivered} "
                        f"dropped={counts.dropped} hard_bounced={counts.hard_bounced} "
                        f"soft_bounced={counts.soft_bounced} unsubscribed={counts.unsubscribed} spam={counts.spam}")
            total_processed += counts.processed or 0
            total_delivered += counts.delivered or 0

        logger.info(f"  Summary (last {self.stats_window_days} days):")
        logger.info(f"    Total Processed: {total_processed}")
        logger.info(f"    Total Delivered: {total_delivered}")
        return {
            'records': stats,
            'total_processed': total_processed,
            'total_delivered': total_delivered,
        }

    @workflow_step("Getting Aggregate Statistics")
    def get_aggregate_stats(self):
        sub_account_id = self._require_sub_account()
        from_date, to_date = self._stats_window()
        logger.info(f"Retrieving aggregate stats for sub-account ID: {sub_account_id} ({from_date} to {to_date})")

        aggregate = self.client.get_sub_account_aggregate_stats(sub_account_id, from_date, to_date)
        logger.info("✅ Aggregate stats retrieved successfully!")
        logger.info(f"  Processed: {aggregate.processed}")
        logger.info(f"  Delivered: {aggregate.delivered}")
        logger.info(f"  Dropped: {aggregate.dropped}")
        logger.info(f"  Hard Bounced: {aggregate.hard_bounced}")
        logger.info(f"  Soft Bounced: {aggregate.soft_bounced}")
        logger.info(f"  Unsubscribed: {aggregate.unsubscribed}")
        logger.info(f"  Spam: {aggregate.spam}")
        return aggregate

    @workflow_step("Getting Account-Level Statistics")
    def get_account_stats(self):
        from_date, to_date = self._stats_window()
        logger.info(f"Retrieving account-level stats ({from_date} to {to_date})")

        stats = self.client.get_account_stats(from_date, to_date)
        logger.info(f"✅ Retrieved {len(stats)} stat record(s)")
        for record in stats:
            if record.stat is None:
                continue
            counts = record.stat
            logger.info(f"  📊 {record.date}: processed={counts.processed} delivered={counts.delivered} "
                        f"dropped={counts.dropped} hard_bounced={counts.hard_bounced} "
                        f"soft_bounced={counts.soft_bounced} opened={counts.opened} clicked={counts.clicked} "
                        f"unsubscribed={counts.unsubscribed} spam={counts.spam}")
        return stats

    # IPs and IP pools

    @workflow_step("Listing All IPs")
    def list_ips(self):
        ips = self.client.list_ips()
        logger.info(f"✅ Retrieved {len(ips)} IP(s)")
        for ip in ips:
            logger.info(f"  - ID: {ip.id}  IP Address: {ip.public_ip}")
            if ip.reverse_dns_hostname:
                logger.info(f"    Reverse DNS: {ip.reverse_dns_hostname}")
            if ip.created_at is not None:
                logger.info(f"    Created: {ip.created_at}")
        return ips

    @workflow_step("Creating IP Pool")
    def create_ip_pool(self):
        ips = self.client.list_ips()
        if not ips:
            logger.warning("⚠️ No IPs available. Please allocate IPs first.")
            return None

        # Only the first listed IP joins the pool
        request = IPPoolCreateRequest(
            name=f"Marketing Pool {self._unique_suffix()}",
            member_ips=[ips[0].public_ip],
            warmup_interval=IP_POOL_WARMUP_HOURS,
            routing_strategy=RoutingStrategy.ROUND_ROBIN,
            overflow_strategy=OverflowStrategy.NONE,
        )
        logger.info(f"Creating IP pool: {request.name}")
        logger.info("  Routing Strategy: Round Robin")
        logger.info(f"  IPs: {len(request.member_ips)}")
        logger.info(f"  Warmup Interval: {request.warmup_interval} hours")

        pool = self.client.create_ip_pool(request)
        self._remember('ip_pool_id', pool.id)
        if pool.name:
            self._remember('ip_pool_name', pool.name)

        logger.info("✅ IP pool created successfully!")
        logger.info(f"  ID: {pool.id}")
        logger.info(f"  Name: {pool.name}")
        logger.info(f"  Routing Strategy: {pool.routing_label}")
        logger.info(f"  IPs in pool: {len(pool.member_ips)}")
        return pool

    @workflow_step("Listing All IP Pools")
    def list_ip_pools(self):
        pools = self.client.list_ip_pools()
        logger.info(f"✅ Retrieved {len(pools)} IP pool(s)")
        for pool in pools:
            logger.info(f"  - ID: {pool.id}  Name: {pool.name}")
            logger.info(f"    Routing Strategy: {pool.routing_label}")
            logger.info(f"    IPs in pool: {len(pool.member_ips)}")
            for ip in pool.member_ips:
                logger.info(f"      - {ip.public_ip}")
        return pools

    # Orchestration

    def run(self, steps: Optional[Sequence[str]] = None) -> RunReport:
        """Run ``steps`` in order (the full workflow by default), whatever fails along the way."""
        steps = list(steps) if steps is not None else list(self.FULL_RUN_ORDER)
        unknown = [s for s in steps if s not in self.STEP_NAMES]
        if unknown:
            raise ValueError(f"Unknown workflow step(s): {', '.join(unknown)}")

        # Each run computes its own stats window ending today
        self._window = None
        start = len(self.results)
        for index, name in enumerate(steps):
            if name == 'get_message_details' and index > 0:
                self._settle()
            getattr(self, name)()
        return RunReport(results=self.results[start:])

    def _settle(self) -> None:
        try:
            self.settle.wait(self._message_ready)
        except Exception as e:
            logger.warning(f"⚠️ Settle wait failed, continuing: {type(e).__name__}: {e}")

    def summarize(self, report: RunReport) -> Dict[str, Any]:
        summary = {
            'steps': len(report.results),
            'succeeded': report.succeeded,
            'failed': [r.name for r in report.failures],
            'session': self.state,
        }
        logger.info("=" * 60)
        logger.info("✅ WORKFLOW COMPLETE")
        logger.info(f"📊 Results: {summary['succeeded']}/{summary['steps']} steps succeeded")
        for failure in report.failures:
            logger.warning(f"   ❌ {failure.name}: {type(failure.error).__name__}: {failure.error}")
        logger.info("=" * 60)
        return summary
