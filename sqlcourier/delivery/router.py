"""DeliveryRouter: resolves a destination's type to the sink that serves it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, assert_never

from sqlcourier.delivery.slack_sink import SlackSink
from sqlcourier.delivery.webhook_sink import WebhookSink
from sqlcourier.errors import DeliveryError, NotSupportedError
from sqlcourier.models import DestinationType

if TYPE_CHECKING:
    from sqlcourier.codec import Artifact
    from sqlcourier.delivery.base import Sink
    from sqlcourier.models import Destination

logger = logging.getLogger(__name__)


class DeliveryRouter:
    """Dispatches artifacts over the closed set of :class:`DestinationType`.

    Sinks are injectable for tests; by default the real Slack and webhook
    sinks are used.
    """

    def __init__(self, *, slack: Sink | None = None, webhook: Sink | None = None) -> None:
        self._slack = slack or SlackSink()
        self._webhook = webhook or WebhookSink()

    def resolve(self, destination: Destination) -> Sink:
        """Return the sink for *destination* without touching the network.

        Raises:
            DeliveryError: the type is not a known destination kind.
            NotSupportedError: the kind is known but has no implementation.
        """
        try:
            kind = DestinationType(destination.type)
        except ValueError:
            msg = f"destination type {destination.type!r} is not supported"
            raise DeliveryError(msg, sink="unknown") from None

        if kind is DestinationType.SLACK:
            return self._slack
        if kind is DestinationType.WEBHOOK:
            return self._webhook
        if kind is DestinationType.LINEWORKS:
            msg = f"{kind} delivery is not implemented (destination '{destination.name}')"
            raise NotSupportedError(msg)
        assert_never(kind)

    async def deliver(
        self,
        destination: Destination,
        artifact: Artifact,
        message: str | None = None,
    ) -> None:
        """Ship *artifact* to *destination* once. Failures propagate as raised."""
        sink = self.resolve(destination)
        logger.info(
            "Delivering %s to %s destination '%s'",
            artifact.filename,
            sink.kind,
            destination.name,
        )
        await sink.deliver(destination, artifact, message)
