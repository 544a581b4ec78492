#!/usr/bin/env python3
"""
Centralized Configuration for the SendPost ESP example workflow.
Loads settings from environment variables (and a local .env file) with
placeholder fallbacks so the example always starts.
"""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://api.sendpost.io/api/v1'
ACCOUNT_KEY_PLACEHOLDER = 'YOUR_ACCOUNT_API_KEY_HERE'
SUB_ACCOUNT_KEY_PLACEHOLDER = 'YOUR_SUB_ACCOUNT_API_KEY_HERE'


def load_env_file(path: Optional[Path] = None) -> None:
    """Load KEY=VALUE lines from a .env file without overriding the real environment."""
    env_file = path or Path(__file__).parent / '.env'
    if not env_file.exists():
        return
    with open(env_file) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            key, value = line.split('=', 1)
            os.environ.setdefault(key.strip(), value.strip())


def _mask(secret: str) -> str:
    if len(secret) <= 8:
        return '****'
    return f"{secret[:4]}...{secret[-4:]}"


@dataclass
class ApiConfig:
    """SendPost API credentials and transport settings."""
    account_api_key: str = ACCOUNT_KEY_PLACEHOLDER
    sub_account_api_key: str = SUB_ACCOUNT_KEY_PLACEHOLDER
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: int = 30

    @classmethod
    def load(cls) -> 'ApiConfig':
        """Load API configuration, falling back to placeholders when unset."""
        return cls(
            account_api_key=os.getenv('SENDPOST_ACCOUNT_API_KEY') or ACCOUNT_KEY_PLACEHOLDER,
            sub_account_api_key=os.getenv('SENDPOST_SUB_ACCOUNT_API_KEY') or SUB_ACCOUNT_KEY_PLACEHOLDER,
            base_url=os.getenv('SENDPOST_BASE_URL', DEFAULT_BASE_URL),
            timeout_seconds=int(os.getenv('SENDPOST_TIMEOUT', '30')),
        )

    def has_placeholder_keys(self) -> bool:
        return (self.account_api_key == ACCOUNT_KEY_PLACEHOLDER
                or self.sub_account_api_key == SUB_ACCOUNT_KEY_PLACEHOLDER)


@dataclass
class DemoConfig:
    """Literal values the demo sends. Update these with your verified values."""
    from_email: str = 'from@yourdomain.com'
    to_email: str = 'to@example.com'
    domain_name: str = 'yourdomain.com'
    webhook_url: str = 'https://your-webhook-endpoint.com/webhook'

    @classmethod
    def load(cls) -> 'DemoConfig':
        defaults = cls()
        return cls(
            from_email=os.getenv('ESP_FROM_EMAIL', defaults.from_email),
            to_email=os.getenv('ESP_TO_EMAIL', defaults.to_email),
            domain_name=os.getenv('ESP_DOMAIN_NAME', defaults.domain_name),
            webhook_url=os.getenv('ESP_WEBHOOK_URL', defaults.webhook_url),
        )


@dataclass
class WorkflowConfig:
    """Timing for the workflow run."""
    settle_delay_seconds: float = 3.0  # Before the final message lookup
    settle_strategy: str = 'fixed'  # 'fixed' or 'poll'
    settle_timeout_seconds: float = 30.0
    settle_poll_interval_seconds: float = 1.0
    stats_window_days: int = 7


class SystemConfig:
    """Main configuration class that aggregates all config sections."""

    def __init__(self, load_dotenv: bool = True):
        if load_dotenv:
            load_env_file()
        self.api = ApiConfig.load()
        self.demo = DemoConfig.load()
        self.workflow = WorkflowConfig()
        self._load_environment_overrides()

    def _load_environment_overrides(self):
        """Load workflow overrides from environment variables."""
        if os.getenv('SETTLE_DELAY_SECONDS'):
            self.workflow.settle_delay_seconds = float(os.getenv('SETTLE_DELAY_SECONDS'))

        if os.getenv('SETTLE_STRATEGY'):
            strategy = os.getenv('SETTLE_STRATEGY').lower()
            if strategy not in ('fixed', 'poll'):
                logger.warning(f"⚠️ Unknown SETTLE_STRATEGY '{strategy}', using 'fixed'")
                strategy = 'fixed'
            self.workflow.settle_strategy = strategy

        if os.getenv('SETTLE_TIMEOUT_SECONDS'):
            self.workflow.settle_timeout_seconds = float(os.getenv('SETTLE_TIMEOUT_SECONDS'))

    def log_config_summary(self):
        """Log current configuration summary."""
        logger.info("🔧 System Configuration:")
        logger.info(f"   Base URL: {self.api.base_url}")
        logger.info(f"   Account API Key: {_mask(self.api.account_api_key)}")
        logger.info(f"   Sub-Account API Key: {_mask(self.api.sub_account_api_key)}")
        logger.info(f"   From: {self.demo.from_email}  To: {self.demo.to_email}")
        logger.info(f"   Settle: {self.workflow.settle_strategy} ({self.workflow.settle_delay_seconds}s)")
