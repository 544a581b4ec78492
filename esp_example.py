#!/usr/bin/env python3
"""
SendPost ESP Example Workflow
Walks through what an Email Service Provider typically does with the API:
sub-accounts, webhooks, sending domains, transactional and marketing email,
message lookup, statistics and IP pools.

Set SENDPOST_ACCOUNT_API_KEY and SENDPOST_SUB_ACCOUNT_API_KEY (or a .env file)
and update the demo addresses before running:

    python esp_example.py
    python esp_example.py --step list_ips --step create_ip_pool
"""

import argparse
import logging
import sys
from typing import List, Optional

from esp_client import SendPostClient
from esp_config import SystemConfig
from workflow import WorkflowRunner, build_settle_strategy

log_format = '%(asctime)s - %(levelname)s - %(message)s'


def configure_logging(log_file: Optional[str] = 'sendpost-esp-example.log', level: int = logging.INFO) -> logging.Logger:
    """Send workflow, client and config logs to stdout and an optional log file."""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(log_format))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(log_format))
        root.addHandler(file_handler)

    return logging.getLogger('esp_workflow')


def warn_placeholder_keys(config: SystemConfig, logger: logging.Logger) -> None:
    if not config.api.has_placeholder_keys():
        return
    logger.warning("⚠️ WARNING: Please set your API keys!")
    logger.warning("   Set environment variables:")
    logger.warning("   - SENDPOST_SUB_ACCOUNT_API_KEY")
    logger.warning("   - SENDPOST_ACCOUNT_API_KEY")
    logger.warning("   Or add them to a .env file next to esp_example.py")


def build_runner(config: SystemConfig) -> WorkflowRunner:
    client = SendPostClient(
        config.api.account_api_key,
        config.api.sub_account_api_key,
        base_url=config.api.base_url,
        timeout=config.api.timeout_seconds,
    )
    return WorkflowRunner(
        client,
        demo=config.demo,
        settle=build_settle_strategy(config.workflow),
        stats_window_days=config.workflow.stats_window_days,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Run the SendPost ESP example workflow')
    parser.add_argument('--step', action='append', dest='steps', metavar='NAME',
                        choices=WorkflowRunner.STEP_NAMES,
                        help='Run only this step (repeatable, runs in the given order)')
    parser.add_argument('--list-steps', action='store_true', help='Print step names and exit')
    parser.add_argument('--settle-delay', type=float, metavar='SECONDS',
                        help='Seconds to wait before the message lookup '
                             '(with SETTLE_STRATEGY=poll, the interval between polls)')
    parser.add_argument('--log-file', default='sendpost-esp-example.log',
                        help="Log file path ('' disables file logging)")
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, config: Optional[SystemConfig] = None) -> int:
    """Run the workflow. Always returns 0: step failures are reported, not fatal."""
    args = parse_args(argv)

    if args.list_steps:
        for name in WorkflowRunner.STEP_NAMES:
            print(name)
        return 0

    logger = configure_logging(args.log_file or None, logging.DEBUG if args.verbose else logging.INFO)
    config = config or SystemConfig()
    if args.settle_delay is not None:
        config.workflow.settle_delay_seconds = args.settle_delay
        config.workflow.settle_poll_interval_seconds = args.settle_delay

    warn_placeholder_keys(config, logger)
    config.log_config_summary()

    logger.info("=" * 60)
    logger.info("🚀 SendPost ESP Example Workflow")
    logger.info("=" * 60)

    runner = build_runner(config)
    report = runner.run(args.steps)
    runner.summarize(report)

    for handler in logging.getLogger().handlers:
        handler.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
