"""Inbound DNSBL lookup request model."""

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class LookupRequest:
    """A lookup request as submitted by a caller.

    Attributes:
        event: Name of the completion event to send the result to.
        address: Dotted-quad IPv4 address to look up.
        target: Optional alternate endpoint (alias or id) for the result.
        zone: Optional DNSBL zone overriding the client's default.
        extra: Caller-defined passthrough keys, echoed back verbatim.
    """

    event: str
    address: str
    target: str | int | None = None
    zone: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)
