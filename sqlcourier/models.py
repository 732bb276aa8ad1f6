"""Configuration records: databases, destinations, and tasks.

These are owned by the definition files on disk (see ``store.py``); the
pipeline only ever borrows them read-only.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class DestinationType(StrEnum):
    """Closed set of sink kinds a destination can name."""

    SLACK = "slack"
    WEBHOOK = "webhook"
    LINEWORKS = "lineworks"  # accepted in config, not deliverable yet


class CredentialScheme(StrEnum):
    """How a destination's secret is presented to the sink."""

    NONE = "none"
    BEARER = "bearer"
    BASIC = "basic"
    API_KEY = "api_key"


class OutputFormat(StrEnum):
    CSV = "csv"
    JSON = "json"


class Credential(BaseModel):
    """A ``(scheme, secret)`` pair.

    For ``basic`` the secret is expected to be base64-encoded already.
    """

    model_config = ConfigDict(frozen=True)

    scheme: CredentialScheme = CredentialScheme.NONE
    secret: str = Field(default="", repr=False)


class DatabaseConfig(BaseModel):
    """Connection parameters for one logical database."""

    model_config = ConfigDict(frozen=True)

    name: str
    host: str = "localhost"
    port: int = 5432
    user: str
    password: str = Field(default="", repr=False)
    dbname: str
    sslmode: str = "prefer"


class Destination(BaseModel):
    """Where a task's results go.

    ``type`` is kept as the raw configured string; it is resolved against
    :class:`DestinationType` only at delivery time so that unknown kinds fail
    there rather than when the definitions are loaded.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    credential: Credential = Field(default_factory=Credential)
    channel: str = ""
    url: str = ""


class Task(BaseModel):
    """A named query bound to a database and a destination.

    Attributes:
        name: Logical task name, also used to name artifacts.
        database: Name of a :class:`DatabaseConfig`.
        query: SQL text to execute.
        output_format: ``csv`` or ``json``.
        destination: Name of a :class:`Destination`.
        message: Optional comment sent alongside the artifact.
        schedule: Calendar expression for the external timer generator.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    database: str
    query: str
    output_format: OutputFormat = OutputFormat.CSV
    destination: str
    message: str | None = None
    schedule: str | None = None
