"""Slack implementation of the Sink protocol: uploads the artifact as a file."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from sqlcourier.errors import DeliveryError
from sqlcourier.models import DestinationType

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlcourier.codec import Artifact
    from sqlcourier.models import Destination

logger = logging.getLogger(__name__)


def _default_client(token: str) -> AsyncWebClient:
    return AsyncWebClient(token=token)


class SlackSink:
    """Uploads artifacts to a Slack channel with the destination's bot token.

    Args:
        client_factory: Builds a web client from a token.  A new client is
            made per delivery since each destination carries its own token.
    """

    def __init__(self, client_factory: Callable[[str], AsyncWebClient] | None = None) -> None:
        self._client_factory = client_factory or _default_client

    @property
    def kind(self) -> DestinationType:
        return DestinationType.SLACK

    async def deliver(
        self,
        destination: Destination,
        artifact: Artifact,
        message: str | None = None,
    ) -> None:
        """Upload *artifact* to ``destination.channel`` with an optional comment."""
        if not destination.channel:
            msg = f"slack destination '{destination.name}' has no channel"
            raise DeliveryError(msg, sink="slack")

        client = self._client_factory(destination.credential.secret)
        try:
            await client.files_upload_v2(
                channel=destination.channel,
                file=str(artifact.path),
                filename=artifact.filename,
                initial_comment=message,
            )
        except SlackApiError as exc:
            error = exc.response.get("error", "unknown_error")
            msg = f"failed to upload file to slack: {error}"
            raise DeliveryError(msg, sink="slack", cause=exc) from exc
        except (SlackClientError, aiohttp.ClientError, OSError) as exc:
            msg = f"failed to upload file to slack: {exc}"
            raise DeliveryError(msg, sink="slack", cause=exc) from exc

        logger.info(
            "Uploaded %s to slack channel %s (destination '%s')",
            artifact.filename,
            destination.channel,
            destination.name,
        )
