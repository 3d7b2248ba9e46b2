"""
Delivery module - out-of-band reset token delivery

Provides:
- ResetDelivery: delivery boundary
- LoggingResetDelivery / OutboxResetDelivery / FailingResetDelivery
"""

from .reset_delivery import (
    DeliveredMessage,
    DeliveryResult,
    FailingResetDelivery,
    LoggingResetDelivery,
    OutboxResetDelivery,
    ResetDelivery,
)

__all__ = [
    "ResetDelivery",
    "DeliveryResult",
    "DeliveredMessage",
    "LoggingResetDelivery",
    "OutboxResetDelivery",
    "FailingResetDelivery",
]
