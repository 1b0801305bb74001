"""Two-phase DNSBL lookup state machine.

A lookup first queries the A record of the reversed-octet name in the
DNSBL zone. No answer means the address is not listed. An answer means it
is listed, and a TXT query for the same name fetches the listing reason.
Each accepted request is dispatched to its requesting endpoint exactly
once, after which the caller's lifetime reference is released.
"""

import asyncio
import logging

from dnsbl_lookup.models.dns_response import DNSResponse
from dnsbl_lookup.models.request_context import NOT_LISTED, LookupPhase, RequestContext
from dnsbl_lookup.services.dns_query import DNSQueryAdapter
from dnsbl_lookup.services.host import Host
from dnsbl_lookup.services.lifetime import CallerLifetimeTracker


logger = logging.getLogger(__name__)


class LookupOrchestrator:
    """Drives accepted requests through the A and TXT query phases.

    The context must already have been acquired on the tracker; the
    orchestrator owns the matching release.
    """

    def __init__(
        self,
        adapter: DNSQueryAdapter,
        host: Host,
        tracker: CallerLifetimeTracker,
        sender: int | None = None,
    ):
        self._adapter = adapter
        self._host = host
        self._tracker = tracker
        self._sender = sender
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of requests that have not been dispatched yet."""
        return len(self._tasks)

    def start(self, context: RequestContext) -> asyncio.Task:
        """Schedule a lookup on the running loop.

        Args:
            context: Accepted request in the AWAITING_A state.

        Returns:
            asyncio.Task: Task completing once the result has been dispatched.
        """
        task = asyncio.get_running_loop().create_task(self.run(context))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for all in-flight lookups to be dispatched."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def run(self, context: RequestContext) -> RequestContext:
        """Run a lookup to a terminal state and dispatch its result.

        Returns:
            RequestContext: The context in its terminal state.
        """
        try:
            response = await self._query(context, "A")
            self.on_address_response(context, response)

            if context.phase is LookupPhase.AWAITING_TXT:
                response = await self._query(context, "TXT")
                self.on_reason_response(context, response)
        except asyncio.CancelledError:
            context.fail("cancelled")
            raise
        finally:
            if not context.phase.is_terminal():
                context.fail("lookup ended without a result")
            self.dispatch(context)

        return context

    def on_address_response(self, context: RequestContext, response: DNSResponse) -> None:
        """Apply the A query outcome."""
        if response.is_error():
            context.fail(response.error)
            return

        record = response.first()
        context.error = None
        if record is None:
            context.response = NOT_LISTED
            context.phase = LookupPhase.NXDOMAIN_DONE
            return

        if len(response.records) > 1:
            logger.debug(
                f"Ignoring {len(response.records) - 1} extra A records for {context.query_host}"
            )
        context.response = record.data
        context.phase = LookupPhase.AWAITING_TXT

    def on_reason_response(self, context: RequestContext, response: DNSResponse) -> None:
        """Apply the TXT query outcome."""
        if response.is_error():
            context.fail(response.error)
            return

        record = response.first()
        context.reason = record.data if record is not None else ""
        context.phase = LookupPhase.LISTED_DONE

    def dispatch(self, context: RequestContext) -> None:
        """Deliver the result to the requesting endpoint and release it."""
        try:
            self._host.post(
                context.requesting_endpoint,
                context.event,
                context.to_payload(),
                sender=self._sender,
            )
        finally:
            self._tracker.release(context.requesting_endpoint)

        logger.debug(
            f"Dispatched {context.phase.value} for {context.address}",
            extra={"address": context.address, "zone": context.zone, "phase": context.phase.value},
        )

    async def _query(self, context: RequestContext, rdtype: str) -> DNSResponse:
        try:
            return await self._adapter.query(context.query_host, rdtype)
        except Exception as e:
            logger.error(f"Unexpected error querying {rdtype} for {context.query_host}: {e}")
            return DNSResponse(
                name=context.query_host, rdtype=rdtype, error=str(e) or type(e).__name__
            )
