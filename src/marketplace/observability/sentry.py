"""Sentry error reporting for the marketplace service.

Contact details are only ever meant for the two parties of a completed
deal, so events are scrubbed of phone numbers and caller ids before they
leave the process.
"""

from __future__ import annotations

import logging
from typing import Any

import sentry_sdk
import structlog
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog_sentry import SentryProcessor

SCRUBBED = "[scrubbed]"
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {"phone_number", "seller_phone", "counterparty_contact", "x-user-id"}
)


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: SCRUBBED if str(k).lower() in SENSITIVE_KEYS else _scrub(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    return value


def scrub_contact_details(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any]:
    """``before_send`` hook: mask phone numbers and caller ids anywhere in *event*."""
    return _scrub(event)


def init_sentry(dsn: str, environment: str = "development") -> bool:
    """Initialize the Sentry SDK.

    Args:
        dsn: Project DSN.  Empty disables reporting.
        environment: Tag attached to every event.

    Returns:
        True if Sentry was initialized.
    """
    if not dsn:
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=0.1,
        send_default_pii=False,
        before_send=scrub_contact_details,
        # structlog-sentry reports errors; the SDK's own logging capture is off.
        integrations=[LoggingIntegration(event_level=None, level=None)],
    )
    return True


def get_sentry_processor() -> structlog.types.Processor:
    """structlog processor forwarding ERROR events to Sentry; place before the renderer."""
    return SentryProcessor(event_level=logging.ERROR)
