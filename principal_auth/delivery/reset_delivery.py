"""
Reset Delivery - Out-of-band delivery of reset tokens

Module: delivery.reset_delivery
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - ResetDelivery boundary
  - Logging, outbox and failing implementations

ARCHITECTURE:
The auth service hands the raw reset token to a ResetDelivery and looks
only at DeliveryResult.success. Real transports (SMTP, SMS gateway)
implement the same deliver() signature.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


@dataclass
class DeliveryResult:
    """Outcome of one delivery attempt"""
    success: bool
    error: Optional[str] = None


@dataclass
class DeliveredMessage:
    """A message captured by OutboxResetDelivery"""
    destination: str
    raw_token: str
    display_name: str
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ResetDelivery(ABC):
    """Delivery boundary for reset tokens"""

    @abstractmethod
    def deliver(self, destination: str, raw_token: str, display_name: str) -> DeliveryResult:
        """Send the raw token to the destination"""


class LoggingResetDelivery(ResetDelivery):
    """Development delivery: logs that a reset was sent, without the token"""

    def __init__(self, reset_url_base: str = "/reset-password"):
        self.logger = logging.getLogger("delivery.logging")
        self.reset_url_base = reset_url_base

    def deliver(self, destination: str, raw_token: str, display_name: str) -> DeliveryResult:
        self.logger.info(
            f"Reset link ({self.reset_url_base}?token=...) sent to {display_name} <{destination}>"
        )
        return DeliveryResult(success=True)


class OutboxResetDelivery(ResetDelivery):
    """Keeps delivered messages in memory"""

    def __init__(self):
        self.outbox: List[DeliveredMessage] = []

    def deliver(self, destination: str, raw_token: str, display_name: str) -> DeliveryResult:
        self.outbox.append(DeliveredMessage(destination, raw_token, display_name))
        return DeliveryResult(success=True)

    def last_token_for(self, destination: str) -> Optional[str]:
        for message in reversed(self.outbox):
            if message.destination == destination:
                return message.raw_token
        return None


class FailingResetDelivery(ResetDelivery):
    """Always fails (exercises the rollback path)"""

    def __init__(self, error: str = "delivery unavailable"):
        self.error = error
        self.attempts = 0

    def deliver(self, destination: str, raw_token: str, display_name: str) -> DeliveryResult:
        self.attempts += 1
        return DeliveryResult(success=False, error=self.error)
