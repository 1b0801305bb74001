"""DNS query adapter over the dnspython async resolver."""

import logging
from typing import Iterable, Optional

import dns.asyncresolver
import dns.exception
import dns.resolver

from dnsbl_lookup.models.dns_response import DNSRecord, DNSResponse


logger = logging.getLogger(__name__)


def record_text(rdata: object, rdtype: str) -> str:
    """Extract the raw textual data of an answer record.

    TXT records are returned as their concatenated character strings,
    decoded and without the zone-file quoting. Other types use the
    record's presentation format.

    Args:
        rdata: dnspython rdata instance.
        rdtype: Record type the rdata was returned for.

    Returns:
        str: Record data.
    """
    if rdtype == "TXT":
        return b"".join(rdata.strings).decode("utf-8", errors="replace")
    return rdata.to_text()


class DNSQueryAdapter:
    """Uniform async query interface over a dnspython resolver.

    NXDOMAIN and empty answers are not failures: they produce a response
    with no records. Any other resolver exception becomes a response with
    ``error`` set. No retries are made beyond what the resolver itself does
    within its lifetime.

    Example:
        >>> adapter = DNSQueryAdapter(timeout=5)
        >>> response = await adapter.query("2.0.0.127.zen.spamhaus.org", "A")
        >>> response.first().data
        '127.0.0.2'
    """

    def __init__(
        self,
        resolver: Optional[dns.asyncresolver.Resolver] = None,
        timeout: float = 5,
        nameservers: Iterable[str] = (),
    ):
        """Initialize adapter.

        Args:
            resolver: Resolver to use. Built lazily from the system
                configuration when omitted.
            timeout: Total lifetime of a single query in seconds.
            nameservers: Nameserver addresses overriding the system ones.
        """
        self._resolver = resolver
        self.timeout = timeout
        self.nameservers = list(nameservers)
        self.closed = False

    @property
    def resolver(self) -> dns.asyncresolver.Resolver:
        """Resolver used for queries, created on first use."""
        if self._resolver is None:
            self._resolver = dns.asyncresolver.Resolver()
            if self.nameservers:
                self._resolver.nameservers = self.nameservers
            self._resolver.lifetime = self.timeout
        return self._resolver

    async def query(self, name: str, rdtype: str) -> DNSResponse:
        """Resolve a name for one record type.

        Args:
            name: Query name.
            rdtype: Record type, e.g. "A" or "TXT".

        Returns:
            DNSResponse: Answer records or error description.
        """
        rdtype = rdtype.upper()
        if self.closed:
            return DNSResponse(name=name, rdtype=rdtype, error="resolver is shut down")

        try:
            answers = await self.resolver.resolve(name, rdtype, lifetime=self.timeout)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            logger.debug(f"No {rdtype} records for {name}")
            return DNSResponse(name=name, rdtype=rdtype)
        except dns.exception.DNSException as e:
            error = str(e) or type(e).__name__
            logger.debug(f"{rdtype} query for {name} failed: {error}")
            return DNSResponse(name=name, rdtype=rdtype, error=error)

        records = [DNSRecord(rdtype=rdtype, data=record_text(rr, rdtype)) for rr in answers]
        return DNSResponse(name=name, rdtype=rdtype, records=records)

    def close(self) -> None:
        """Stop accepting queries. Queries already awaiting the resolver finish normally."""
        self.closed = True
