"""
Data models for the SendPost API client.
Request objects serialize to the API's JSON names; response objects are built
from API payloads and tolerate missing fields.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List, Optional


class RoutingStrategy(IntEnum):
    ROUND_ROBIN = 0
    EMAIL_PROVIDER = 1


class OverflowStrategy(IntEnum):
    NONE = 0
    OVERFLOW_POOL = 1


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class SubAccount:
    """Represents a sub-account returned by the account API."""
    id: Optional[int]
    name: Optional[str] = None
    api_key: Optional[str] = None
    type: Optional[int] = None
    blocked: bool = False
    created_at: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'SubAccount':
        return cls(
            id=data.get('id'),
            name=data.get('name'),
            api_key=data.get('apiKey'),
            type=data.get('type'),
            blocked=bool(data.get('blocked')),
            created_at=data.get('created'),
        )

    @property
    def type_label(self) -> str:
        return 'Plus' if self.type == 1 else 'Regular'


@dataclass
class CreateWebhookRequest:
    url: str
    enabled: bool = True
    processed: bool = True
    delivered: bool = True
    dropped: bool = True
    soft_bounced: bool = True
    hard_bounced: bool = True
    opened: bool = True
    clicked: bool = True
    unsubscribed: bool = True
    spam: bool = True

    def to_dict(self) -> Dict:
        return {
            'url': self.url,
            'enabled': self.enabled,
            'processed': self.processed,
            'delivered': self.delivered,
            'dropped': self.dropped,
            'softBounced': self.soft_bounced,
            'hardBounced': self.hard_bounced,
            'opened': self.opened,
            'clicked': self.clicked,
            'unsubscribed': self.unsubscribed,
            'spam': self.spam,
        }


@dataclass
class Webhook:
    id: Optional[int]
    url: Optional[str] = None
    enabled: Optional[bool] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'Webhook':
        return cls(id=data.get('id'), url=data.get('url'), enabled=data.get('enabled'))


@dataclass
class Domain:
    """A sending domain. ``dkim_record`` is the TXT value to publish in DNS."""
    id: Optional[Any]
    name: Optional[str] = None
    verified: bool = False
    dkim_record: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'Domain':
        dkim = data.get('dkim') or {}
        return cls(
            id=data.get('id'),
            name=data.get('name'),
            verified=bool(data.get('verified')),
            dkim_record=dkim.get('textValue') if isinstance(dkim, dict) else None,
        )


@dataclass
class EmailAddress:
    email: str
    name: Optional[str] = None

    def to_dict(self) -> Dict:
        return _drop_none({'email': self.email, 'name': self.name})


@dataclass
class Recipient:
    email: str
    name: Optional[str] = None
    custom_fields: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict:
        return _drop_none({
            'email': self.email,
            'name': self.name,
            'customFields': self.custom_fields,
        })


@dataclass
class EmailMessage:
    """Outgoing email. Optional fields left as None are omitted from the payload."""
    from_address: EmailAddress
    to: List[Recipient]
    subject: str
    html_body: Optional[str] = None
    text_body: Optional[str] = None
    track_opens: bool = False
    track_clicks: bool = False
    headers: Optional[Dict[str, str]] = None
    groups: Optional[List[str]] = None
    ippool: Optional[str] = None

    def to_dict(self) -> Dict:
        return _drop_none({
            'from': self.from_address.to_dict(),
            'to': [r.to_dict() for r in self.to],
            'subject': self.subject,
            'htmlBody': self.html_body,
            'textBody': self.text_body,
            'trackOpens': self.track_opens,
            'trackClicks': self.track_clicks,
            'headers': self.headers,
            'groups': self.groups,
            'ippool': self.ippool,
        })


@dataclass
class EmailResponse:
    message_id: Optional[str]
    to: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'EmailResponse':
        return cls(message_id=data.get('messageId'), to=data.get('to'))


@dataclass
class Message:
    """Stored message record as returned by the message lookup endpoint."""
    message_id: Optional[str]
    account_id: Optional[int] = None
    sub_account_id: Optional[int] = None
    ip_id: Optional[int] = None
    public_ip: Optional[str] = None
    local_ip: Optional[str] = None
    email_type: Optional[str] = None
    submitted_at: Optional[Any] = None
    from_email: Optional[str] = None
    to_email: Optional[str] = None
    to_name: Optional[str] = None
    subject: Optional[str] = None
    ip_pool: Optional[str] = None
    delivery_attempts: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'Message':
        sender = data.get('from') or {}
        recipient = data.get('to') or {}
        return cls(
            message_id=data.get('messageID'),
            account_id=data.get('accountID'),
            sub_account_id=data.get('subAccountID'),
            ip_id=data.get('ipID'),
            public_ip=data.get('publicIP'),
            local_ip=data.get('localIP'),
            email_type=data.get('emailType'),
            submitted_at=data.get('submittedAt'),
            from_email=sender.get('email'),
            to_email=recipient.get('email'),
            to_name=recipient.get('name'),
            subject=data.get('subject'),
            ip_pool=data.get('ipPool'),
            delivery_attempts=data.get('attempt'),
        )


@dataclass
class StatCounts:
    processed: Optional[int] = None
    delivered: Optional[int] = None
    dropped: Optional[int] = None
    hard_bounced: Optional[int] = None
    soft_bounced: Optional[int] = None
    unsubscribed: Optional[int] = None
    spam: Optional[int] = None
    opened: Optional[int] = None
    clicked: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'StatCounts':
        return cls(
            processed=data.get('processed'),
            delivered=data.get('delivered'),
            dropped=data.get('dropped'),
            hard_bounced=data.get('hardBounced'),
            soft_bounced=data.get('softBounced'),
            unsubscribed=data.get('unsubscribed'),
            spam=data.get('spam'),
            opened=data.get('opened'),
            clicked=data.get('clicked'),
        )


@dataclass
class DailyStat:
    date: Optional[str]
    stat: Optional[StatCounts] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'DailyStat':
        stat = data.get('stat')
        return cls(date=data.get('date'), stat=StatCounts.from_dict(stat) if stat else None)


@dataclass
class IP:
    id: Optional[int]
    public_ip: Optional[str] = None
    reverse_dns_hostname: Optional[str] = None
    created_at: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'IP':
        return cls(
            id=data.get('id'),
            public_ip=data.get('publicIP'),
            reverse_dns_hostname=data.get('reverseDNSHostname'),
            created_at=data.get('created'),
        )


@dataclass
class IPPoolCreateRequest:
    name: str
    member_ips: List[str]
    warmup_interval: int
    routing_strategy: RoutingStrategy = RoutingStrategy.ROUND_ROBIN
    overflow_strategy: OverflowStrategy = OverflowStrategy.NONE

    def __post_init__(self):
        if self.warmup_interval <= 0:
            raise ValueError("warmup_interval must be greater than 0")

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'routingStrategy': int(self.routing_strategy),
            'ips': [{'publicIP': ip} for ip in self.member_ips],
            'warmupInterval': self.warmup_interval,
            'overflowStrategy': int(self.overflow_strategy),
        }


@dataclass
class IPPool:
    id: Optional[int]
    name: Optional[str] = None
    routing_strategy: Optional[int] = None
    member_ips: List[IP] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> 'IPPool':
        return cls(
            id=data.get('id'),
            name=data.get('name'),
            routing_strategy=data.get('routingStrategy'),
            member_ips=[IP.from_dict(ip) for ip in data.get('ips') or []],
        )

    @property
    def routing_label(self) -> str:
        if self.routing_strategy == RoutingStrategy.EMAIL_PROVIDER:
            return 'Email Provider'
        if self.routing_strategy == RoutingStrategy.ROUND_ROBIN:
            return 'Round Robin'
        return str(self.routing_strategy)
