"""Sink protocol: interface for every delivery transport."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from sqlcourier.codec import Artifact
    from sqlcourier.models import Destination, DestinationType


@runtime_checkable
class Sink(Protocol):
    """Protocol that all sinks must satisfy."""

    @property
    def kind(self) -> DestinationType:
        """The destination type this sink serves."""
        ...

    async def deliver(
        self,
        destination: Destination,
        artifact: Artifact,
        message: str | None = None,
    ) -> None:
        """Ship *artifact* to *destination*. Raises ``DeliveryError`` on failure."""
        ...
