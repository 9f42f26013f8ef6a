"""Delivery: the messaging gateway and the retry protocol around it."""

from reportcast.delivery.gateway import HttpMessagingGateway, MessagingGateway
from reportcast.delivery.retry import RetryPolicy, backoff_delay, deliver_with_retry

__all__ = [
    "HttpMessagingGateway",
    "MessagingGateway",
    "RetryPolicy",
    "backoff_delay",
    "deliver_with_retry",
]
