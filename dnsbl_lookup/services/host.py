"""Asyncio host runtime: addressable endpoints, reference counts and event delivery.

Endpoints are registered under integer ids and may carry any number of
aliases. Other code posts named events with a payload to an endpoint; the
host delivers them on the running event loop. Reference counts, kept per
endpoint and per owner tag, let a component keep an endpoint's caller
alive while it still owes it a reply.
"""

import asyncio
import contextvars
import inspect
import itertools
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union


logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]
EndpointRef = Union["Endpoint", int, str]

_current_endpoint: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar(
    "current_endpoint", default=None
)
_current_sender: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar(
    "current_sender", default=None
)


def current_endpoint() -> Optional[int]:
    """Id of the endpoint whose handler is running, None outside any handler."""
    return _current_endpoint.get()


def current_sender() -> Optional[int]:
    """Id of the endpoint that posted the event being handled, if any."""
    return _current_sender.get()


@dataclass(eq=False)
class Endpoint:
    """An addressable event receiver.

    Attributes:
        id: Host-assigned identifier.
        name: Descriptive name, not used for addressing.
        handlers: Mapping of event name to handler callable. Handlers take
            the event payload and may be coroutine functions.
        refcounts: Outstanding references per owner tag.
        pending: Events posted to this endpoint and not yet handled.
    """

    id: int
    name: str
    handlers: Dict[str, Handler] = field(default_factory=dict)
    refcounts: Counter = field(default_factory=Counter)
    pending: int = 0
    released: asyncio.Event = field(default_factory=asyncio.Event)

    def is_idle(self) -> bool:
        """Check if nothing holds or is queued for this endpoint.

        Returns:
            bool: True if no references and no pending events remain.
        """
        return sum(self.refcounts.values()) == 0 and self.pending == 0


class Host:
    """Registry and event dispatcher for endpoints.

    Example:
        >>> host = Host()
        >>> reporter = host.register("reporter", {"result": print})
        >>> host.post(reporter, "result", {"address": "192.0.2.5"})
        True
    """

    def __init__(self) -> None:
        self._endpoints: Dict[int, Endpoint] = {}
        self._aliases: Dict[str, int] = {}
        self._ids = itertools.count(1)
        self._tasks: set[asyncio.Task] = set()

    def register(
        self,
        name: str,
        handlers: Optional[Dict[str, Handler]] = None,
        alias: Optional[str] = None,
    ) -> Endpoint:
        """Register a new endpoint.

        Args:
            name: Descriptive name.
            handlers: Event name to handler mapping.
            alias: Optional alias to address the endpoint by.

        Returns:
            Endpoint: The registered endpoint.
        """
        endpoint = Endpoint(id=next(self._ids), name=name, handlers=dict(handlers or {}))
        endpoint.released.set()
        self._endpoints[endpoint.id] = endpoint
        if alias:
            self.set_alias(endpoint, alias)
        logger.debug(f"Registered endpoint {endpoint.id} ({name})")
        return endpoint

    def unregister(self, ref: EndpointRef) -> None:
        """Remove an endpoint and all its aliases. Unknown endpoints are ignored."""
        endpoint = self.resolve(ref)
        if endpoint is None:
            return
        for alias in self.aliases(endpoint):
            del self._aliases[alias]
        del self._endpoints[endpoint.id]
        logger.debug(f"Unregistered endpoint {endpoint.id} ({endpoint.name})")

    def set_alias(self, ref: EndpointRef, alias: str) -> None:
        """Make an endpoint addressable by alias.

        Raises:
            LookupError: If the endpoint is not registered.
            ValueError: If the alias belongs to another endpoint.
        """
        endpoint = self._require(ref)
        owner = self._aliases.get(alias)
        if owner is not None and owner != endpoint.id:
            raise ValueError(f"Alias {alias!r} is already in use by endpoint {owner}")
        self._aliases[alias] = endpoint.id

    def remove_alias(self, alias: str) -> None:
        """Forget an alias. Unknown aliases are ignored."""
        self._aliases.pop(alias, None)

    def aliases(self, ref: EndpointRef) -> List[str]:
        """List the aliases of an endpoint."""
        endpoint = self.resolve(ref)
        if endpoint is None:
            return []
        return [alias for alias, owner in self._aliases.items() if owner == endpoint.id]

    def resolve(self, ref: Optional[EndpointRef]) -> Optional[Endpoint]:
        """Find a registered endpoint by object, id or alias.

        Args:
            ref: Endpoint, endpoint id, or alias.

        Returns:
            Endpoint | None: The endpoint, or None if it is not registered.
        """
        if isinstance(ref, Endpoint):
            return ref if self._endpoints.get(ref.id) is ref else None
        if isinstance(ref, bool):
            return None
        if isinstance(ref, int):
            return self._endpoints.get(ref)
        if isinstance(ref, str):
            endpoint_id = self._aliases.get(ref)
            if endpoint_id is None and ref.isdigit():
                endpoint_id = int(ref)
            return self._endpoints.get(endpoint_id) if endpoint_id is not None else None
        return None

    def refcount_increment(self, ref: EndpointRef, tag: str) -> int:
        """Add a reference to an endpoint under an owner tag.

        Returns:
            int: The tag's new count.

        Raises:
            LookupError: If the endpoint is not registered.
        """
        endpoint = self._require(ref)
        endpoint.refcounts[tag] += 1
        self._update_released(endpoint)
        return endpoint.refcounts[tag]

    def refcount_decrement(self, ref: EndpointRef, tag: str) -> int:
        """Drop a reference previously added under an owner tag.

        Decrementing for an endpoint that has since been unregistered is a
        no-op returning 0.

        Returns:
            int: The tag's new count.

        Raises:
            RuntimeError: If the tag holds no reference on the endpoint.
        """
        endpoint = self.resolve(ref)
        if endpoint is None:
            logger.debug(f"Reference release for unregistered endpoint {ref}")
            return 0
        if endpoint.refcounts[tag] <= 0:
            raise RuntimeError(f"No reference held by {tag} on endpoint {endpoint.id}")
        endpoint.refcounts[tag] -= 1
        if not endpoint.refcounts[tag]:
            del endpoint.refcounts[tag]
        self._update_released(endpoint)
        return endpoint.refcounts[tag]

    def refcount(self, ref: EndpointRef, tag: Optional[str] = None) -> int:
        """Return references held on an endpoint, by one tag or in total."""
        endpoint = self.resolve(ref)
        if endpoint is None:
            return 0
        if tag is not None:
            return endpoint.refcounts[tag]
        return sum(endpoint.refcounts.values())

    def post(
        self,
        target: EndpointRef,
        event: str,
        payload: Any = None,
        sender: Optional[int] = None,
    ) -> bool:
        """Queue an event for delivery on the running loop.

        Args:
            target: Receiving endpoint.
            event: Event name, looked up in the endpoint's handlers.
            payload: Value passed to the handler.
            sender: Posting endpoint id. Defaults to the endpoint whose
                handler is currently running.

        Returns:
            bool: True if the event was queued, False if the target is unknown.
        """
        endpoint = self.resolve(target)
        if endpoint is None:
            logger.warning(f"Cannot post {event!r}: unknown endpoint {target!r}")
            return False

        if sender is None:
            sender = current_endpoint()

        loop = asyncio.get_running_loop()
        endpoint.pending += 1
        self._update_released(endpoint)
        loop.call_soon(self._deliver, endpoint, event, payload, sender)
        return True

    async def wait_released(self, ref: EndpointRef) -> None:
        """Wait until no references or undelivered events remain for an endpoint."""
        endpoint = self.resolve(ref)
        while endpoint is not None and not endpoint.is_idle():
            await endpoint.released.wait()

    def _deliver(self, endpoint: Endpoint, event: str, payload: Any, sender: Optional[int]) -> None:
        _current_endpoint.set(endpoint.id)
        _current_sender.set(sender)

        if self._endpoints.get(endpoint.id) is not endpoint:
            logger.debug(f"Dropping {event!r}: endpoint {endpoint.id} is gone")
            self._handled(endpoint)
            return

        handler = endpoint.handlers.get(event)
        if handler is None:
            logger.warning(f"Dropping {event!r} for endpoint {endpoint.id}: no handler")
            self._handled(endpoint)
            return

        try:
            result = handler(payload)
        except Exception:
            logger.error(f"Handler for {event!r} on endpoint {endpoint.id} failed", exc_info=True)
            self._handled(endpoint)
            return

        if not inspect.isawaitable(result):
            self._handled(endpoint)
            return

        task = asyncio.ensure_future(self._await_handler(event, endpoint, result))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _await_handler(self, event: str, endpoint: Endpoint, result: Any) -> None:
        try:
            await result
        except Exception:
            logger.error(f"Handler for {event!r} on endpoint {endpoint.id} failed", exc_info=True)
        finally:
            self._handled(endpoint)

    def _handled(self, endpoint: Endpoint) -> None:
        endpoint.pending -= 1
        self._update_released(endpoint)

    @staticmethod
    def _update_released(endpoint: Endpoint) -> None:
        if endpoint.is_idle():
            endpoint.released.set()
        else:
            endpoint.released.clear()

    def _require(self, ref: EndpointRef) -> Endpoint:
        endpoint = self.resolve(ref)
        if endpoint is None:
            raise LookupError(f"Unknown endpoint: {ref!r}")
        return endpoint
