"""Webhook implementation of the Sink protocol: authenticated HTTP POST."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from sqlcourier.config import settings
from sqlcourier.errors import DeliveryError
from sqlcourier.models import CredentialScheme, DestinationType

if TYPE_CHECKING:
    from sqlcourier.codec import Artifact
    from sqlcourier.models import Credential, Destination

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


def auth_headers(credential: Credential) -> dict[str, str]:
    """Map a credential to the request header that carries it."""
    scheme = credential.scheme
    if scheme is CredentialScheme.BEARER:
        return {"Authorization": f"Bearer {credential.secret}"}
    if scheme is CredentialScheme.BASIC:
        return {"Authorization": f"Basic {credential.secret}"}
    if scheme is CredentialScheme.API_KEY:
        return {API_KEY_HEADER: credential.secret}
    return {}


class WebhookSink:
    """POSTs the artifact body to ``destination.url``.

    One attempt per delivery; any status >= 300 is a failure.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout if timeout is not None else settings.webhook_timeout

    @property
    def kind(self) -> DestinationType:
        return DestinationType.WEBHOOK

    async def deliver(
        self,
        destination: Destination,
        artifact: Artifact,
        message: str | None = None,
    ) -> None:
        """POST the artifact. *message* is not part of the webhook payload."""
        if not destination.url:
            msg = f"webhook destination '{destination.name}' has no url"
            raise DeliveryError(msg, sink="webhook")

        try:
            content = artifact.read_bytes()
        except OSError as exc:
            msg = f"failed to read {artifact.filename}: {exc}"
            raise DeliveryError(msg, sink="webhook", cause=exc) from exc

        headers = {"Content-Type": artifact.content_type, **auth_headers(destination.credential)}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(destination.url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            msg = f"failed to send request: {exc}"
            raise DeliveryError(msg, sink="webhook", cause=exc) from exc

        if resp.status_code >= 300:
            msg = f"received non-success status code: {resp.status_code}"
            raise DeliveryError(msg, sink="webhook", status_code=resp.status_code)

        logger.info(
            "Posted %s (%d bytes) to webhook '%s': %d",
            artifact.filename,
            len(content),
            destination.name,
            resp.status_code,
        )
