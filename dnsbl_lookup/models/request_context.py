"""Per-request lookup state carried across both DNS query phases."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from dnsbl_lookup.models.lookup_request import LookupRequest


# Response value for an address that is not listed in the zone
NOT_LISTED = "NXDOMAIN"

# Outcome keys set only by the lookup itself
_RESULT_KEYS = ("error", "response", "reason")


class LookupPhase(Enum):
    """Lookup state machine states."""

    AWAITING_A = "AWAITING_A"
    AWAITING_TXT = "AWAITING_TXT"
    NXDOMAIN_DONE = "NXDOMAIN_DONE"
    LISTED_DONE = "LISTED_DONE"
    ERROR_DONE = "ERROR_DONE"

    def is_terminal(self) -> bool:
        """Check if no further query is issued from this state.

        Returns:
            bool: True for NXDOMAIN_DONE, LISTED_DONE and ERROR_DONE.
        """
        return self in _TERMINAL_PHASES


_TERMINAL_PHASES = frozenset(
    {LookupPhase.NXDOMAIN_DONE, LookupPhase.LISTED_DONE, LookupPhase.ERROR_DONE}
)


@dataclass
class RequestContext:
    """State of one accepted lookup request.

    Created by the request validator, mutated only by the lookup
    orchestrator, discarded once the result has been dispatched.

    Attributes:
        event: Completion event name.
        address: IPv4 address being looked up.
        zone: DNSBL zone in use for this request.
        requesting_endpoint: Endpoint id owed the final result.
        query_host: Reversed-octet query name, e.g. "2.0.0.127.zen.spamhaus.org".
        extra: Passthrough keys from the request.
        target: Target reference as given by the caller, if any.
        phase: Current state machine state.
        response: A-phase outcome (listing status or NOT_LISTED).
        reason: TXT-phase outcome, only for listed addresses.
        error: Resolver failure description.

    Invariants:
        - After the A phase exactly one of error/response is set.
        - reason is only set while response indicates a listing.
    """

    event: str
    address: str
    zone: str
    requesting_endpoint: int
    query_host: str
    extra: Mapping[str, Any] = field(default_factory=dict)
    target: str | int | None = None
    phase: LookupPhase = LookupPhase.AWAITING_A
    response: str | None = None
    reason: str | None = None
    error: str | None = None

    @classmethod
    def from_request(
        cls, request: LookupRequest, zone: str, requesting_endpoint: int, query_host: str
    ) -> "RequestContext":
        """Build a fresh context in the AWAITING_A state for an accepted request."""
        return cls(
            event=request.event,
            address=request.address,
            zone=zone,
            requesting_endpoint=requesting_endpoint,
            query_host=query_host,
            extra=dict(request.extra),
            target=request.target,
        )

    def is_listed(self) -> bool:
        """Check if the A phase reported a listing.

        Returns:
            bool: True if response is set to something other than NOT_LISTED.
        """
        return self.response is not None and self.response != NOT_LISTED

    def fail(self, error: str) -> None:
        """Record a resolver failure and move to ERROR_DONE."""
        self.error = error
        self.response = None
        self.reason = None
        self.phase = LookupPhase.ERROR_DONE

    def to_payload(self) -> dict[str, Any]:
        """Build the completion event payload.

        Passthrough keys come first so that the lookup's own fields always
        win on a name clash. Passthrough "error", "response" and "reason"
        are dropped: a result carries either an error or a response.

        Returns:
            dict: Result record delivered to the requesting endpoint.
        """
        payload: dict[str, Any] = dict(self.extra)
        for key in _RESULT_KEYS:
            payload.pop(key, None)
        payload["event"] = self.event
        payload["address"] = self.address
        payload["zone"] = self.zone
        if self.error is not None:
            payload["error"] = self.error
            return payload
        if self.response is not None:
            payload["response"] = self.response
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload
