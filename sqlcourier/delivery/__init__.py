"""Destination delivery: ship a built artifact to a configured sink."""

from sqlcourier.delivery.base import Sink
from sqlcourier.delivery.router import DeliveryRouter
from sqlcourier.delivery.slack_sink import SlackSink
from sqlcourier.delivery.webhook_sink import WebhookSink, auth_headers

__all__ = [
    "DeliveryRouter",
    "Sink",
    "SlackSink",
    "WebhookSink",
    "auth_headers",
]
