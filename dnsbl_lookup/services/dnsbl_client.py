"""Non-blocking DNSBL lookup client."""

import logging
from typing import Any, Mapping, Optional

from dnsbl_lookup.config import Config
from dnsbl_lookup.services.dns_query import DNSQueryAdapter
from dnsbl_lookup.services.host import Host, current_endpoint, current_sender
from dnsbl_lookup.services.lifetime import CallerLifetimeTracker
from dnsbl_lookup.services.logger import log_rejected_request
from dnsbl_lookup.services.orchestrator import LookupOrchestrator
from dnsbl_lookup.services.validator import ValidationError, validate_request
from dnsbl_lookup.utils.ip_utils import normalize_zone


logger = logging.getLogger(__name__)


class DNSBLClient:
    """Performs DNSBL lookups on behalf of other endpoints.

    The client registers its own endpoint in the host. Other endpoints
    request lookups either by calling lookup() or by posting a "lookup"
    event to it; each accepted request is answered with one event named by
    the request's "event" field, sent to the requesting endpoint (or the
    endpoint given as "session"/"target").

    Result payload keys: every passthrough key of the request, plus
    "event", "address", "zone", and either "error" or "response" (the
    listing status, "NXDOMAIN" when the address is not listed) with
    "reason" for listed addresses.

    Example:
        >>> client = DNSBLClient.spawn(host)
        >>> client.lookup(event="result", address="127.0.0.2", _tag=1)
    """

    def __init__(
        self,
        host: Host,
        zone: Optional[str] = None,
        resolver: Optional[DNSQueryAdapter] = None,
        alias: Optional[str] = None,
        config: Optional[Config] = None,
    ):
        """Initialize client and register its endpoint.

        Args:
            host: Host runtime to register with.
            zone: Default DNSBL zone. Falls back to the configured zone.
            resolver: Externally owned query adapter. When omitted the
                client creates one and shuts it down with the client.
            alias: Name to make the client addressable by. Without an
                alias the client keeps its own endpoint referenced until
                shutdown().
            config: Configuration, defaults to Config().
        """
        self.config = config or Config()
        self.host = host
        self.zone = normalize_zone(zone or self.config.dnsbl_zone)
        self.alias = alias if alias is not None else self.config.dnsbl_alias
        self.owner = f"{type(self).__module__}.{type(self).__name__}"

        self._owns_resolver = resolver is None
        self.resolver = resolver or DNSQueryAdapter(
            timeout=self.config.dns_timeout,
            nameservers=self.config.dns_nameservers,
        )

        self.endpoint = host.register(
            type(self).__name__,
            {"lookup": self._on_lookup, "shutdown": self._on_shutdown},
            alias=self.alias,
        )
        if not self.alias:
            host.refcount_increment(self.endpoint, self.owner)

        self.tracker = CallerLifetimeTracker(host, self.owner)
        self.orchestrator = LookupOrchestrator(
            self.resolver, host, self.tracker, sender=self.endpoint.id
        )
        self._running = True

        logger.debug(
            f"DNSBL client started with zone {self.zone}",
            extra={"endpoint_id": self.endpoint.id, "zone": self.zone, "alias": self.alias},
        )

    @classmethod
    def spawn(cls, host: Host, **options: Any) -> "DNSBLClient":
        """Create a client. Option names are case-insensitive."""
        options = {key.lower(): value for key, value in options.items()}
        if "dnsbl" in options:
            options.setdefault("zone", options.pop("dnsbl"))
        return cls(host, **options)

    @property
    def endpoint_id(self) -> int:
        """Host id of the client's endpoint."""
        return self.endpoint.id

    @property
    def running(self) -> bool:
        """False once shutdown() has been called."""
        return self._running

    def lookup(
        self,
        request: Optional[Mapping[str, Any]] = None,
        /,
        *,
        sender: Optional[int] = None,
        **fields: Any,
    ) -> None:
        """Start a DNSBL lookup.

        Fields may be given as one mapping, as keyword arguments, or both.
        Recognized fields: "event" and "address" (mandatory), "session" or
        "target" to deliver the result elsewhere, "zone" or "dnsbl" to
        override the default zone. Any other key is passed through to the
        result; by convention such keys start with an underscore.

        Malformed requests are logged and dropped: no result event is sent
        for them.

        Args:
            request: Request fields.
            sender: Requesting endpoint id. Defaults to the endpoint whose
                event handler is making the call.
            **fields: Request fields.
        """
        raw = {**(request or {}), **fields}
        self._submit(raw, sender if sender is not None else current_endpoint())

    def shutdown(self) -> None:
        """Stop the client.

        In-flight lookups are not cancelled; their results are still sent.
        A resolver passed in by the owner is left running.
        """
        if not self._running:
            return
        self._running = False

        for alias in self.host.aliases(self.endpoint):
            self.host.remove_alias(alias)
        if not self.alias:
            self.host.refcount_decrement(self.endpoint, self.owner)
        self.host.unregister(self.endpoint)

        if self._owns_resolver:
            self.resolver.close()

        logger.debug(
            "DNSBL client shut down",
            extra={"endpoint_id": self.endpoint.id, "in_flight": self.orchestrator.pending},
        )

    async def wait_idle(self) -> None:
        """Wait until every accepted lookup has been dispatched."""
        await self.orchestrator.wait_idle()

    def _submit(self, raw: Mapping[str, Any], sender: Optional[int]) -> None:
        if not self._running:
            log_rejected_request("DNSBL client has been shut down", raw)
            return

        try:
            context = validate_request(raw, self.zone, self.host, sender)
        except ValidationError as e:
            log_rejected_request(str(e), raw)
            return

        self.tracker.acquire(context.requesting_endpoint)
        try:
            self.orchestrator.start(context)
        except RuntimeError:
            self.tracker.release(context.requesting_endpoint)
            raise
        logger.debug(
            f"Looking up {context.query_host}",
            extra={"address": context.address, "zone": context.zone},
        )

    def _on_lookup(self, payload: Optional[Mapping[str, Any]]) -> None:
        self._submit(dict(payload or {}), current_sender())

    def _on_shutdown(self, payload: Any) -> None:
        self.shutdown()
