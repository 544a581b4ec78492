"""
SendPost API client for the ESP example workflow.
Contains the HTTP client and the request/response models it speaks.
"""

from .api_client import ApiError, SendPostClient, ACCOUNT_AUTH, SUB_ACCOUNT_AUTH, DEFAULT_BASE_URL
from .models import (
    IP,
    CreateWebhookRequest,
    DailyStat,
    Domain,
    EmailAddress,
    EmailMessage,
    EmailResponse,
    IPPool,
    IPPoolCreateRequest,
    Message,
    OverflowStrategy,
    Recipient,
    RoutingStrategy,
    StatCounts,
    SubAccount,
    Webhook,
)

__all__ = [
    'ApiError',
    'SendPostClient',
    'ACCOUNT_AUTH',
    'SUB_ACCOUNT_AUTH',
    'DEFAULT_BASE_URL',
    'IP',
    'CreateWebhookRequest',
    'DailyStat',
    'Domain',
    'EmailAddress',
    'EmailMessage',
    'EmailResponse',
    'IPPool',
    'IPPoolCreateRequest',
    'Message',
    'OverflowStrategy',
    'Recipient',
    'RoutingStrategy',
    'StatCounts',
    'SubAccount',
    'Webhook',
]
