"""pytest fixtures for testing."""

import asyncio
from typing import Any, Dict, List, Tuple

import pytest

from dnsbl_lookup.models.dns_response import DNSRecord, DNSResponse
from dnsbl_lookup.services.dns_query import DNSQueryAdapter
from dnsbl_lookup.services.host import Host


class FakeAdapter(DNSQueryAdapter):
    """Query adapter answering from a script instead of the network.

    Script values are lists of record strings, an Exception instance to
    raise, or a string prefixed with "error:" to return as an error
    response. Unscripted queries return no records.
    """

    def __init__(self, script: Dict[Tuple[str, str], Any] | None = None, delay: float = 0):
        super().__init__(resolver=None)
        self.script = dict(script or {})
        self.delay = delay
        self.calls: List[Tuple[str, str]] = []

    async def query(self, name: str, rdtype: str) -> DNSResponse:
        self.calls.append((name, rdtype))
        await asyncio.sleep(self.delay)
        if self.closed:
            return DNSResponse(name=name, rdtype=rdtype, error="resolver is shut down")

        answer = self.script.get((name, rdtype), [])
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, str) and answer.startswith("error:"):
            return DNSResponse(name=name, rdtype=rdtype, error=answer[len("error:"):])
        return DNSResponse(
            name=name,
            rdtype=rdtype,
            records=[DNSRecord(rdtype=rdtype, data=data) for data in answer],
        )

    def calls_for(self, rdtype: str) -> List[str]:
        return [name for name, kind in self.calls if kind == rdtype]


class Recorder:
    """Endpoint collecting every event delivered to it."""

    def __init__(self, host: Host, name: str = "caller", alias: str | None = None):
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self.endpoint = host.register(
            name,
            {
                "result": lambda payload: self.events.append(("result", payload)),
                "other": lambda payload: self.events.append(("other", payload)),
            },
            alias=alias,
        )

    @property
    def id(self) -> int:
        return self.endpoint.id

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        return [payload for _, payload in self.events]


@pytest.fixture
def host():
    """Fresh host runtime."""
    return Host()


@pytest.fixture
def fake_adapter():
    """Factory for scripted query adapters."""
    return FakeAdapter


@pytest.fixture
def recorder(host):
    """Caller endpoint recording delivered events."""
    return Recorder(host)


@pytest.fixture
def make_recorder(host):
    """Factory for additional recording endpoints."""

    def factory(name: str = "caller", alias: str | None = None) -> Recorder:
        return Recorder(host, name=name, alias=alias)

    return factory
