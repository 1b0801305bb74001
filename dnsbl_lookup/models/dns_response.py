"""DNS query response models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DNSRecord:
    """A single answer record.

    Attributes:
        rdtype: Record type the record was returned for ("A", "TXT").
        data: Raw textual data of the record. A records carry the dotted
            quad, TXT records the decoded, unquoted character strings.
    """

    rdtype: str
    data: str


@dataclass
class DNSResponse:
    """Outcome of one adapter query.

    Either ``error`` is set (transport or resolver failure) or ``records``
    holds zero or more answers. An empty ``records`` list is a valid answer:
    for DNSBL zones it means the name does not exist.

    Attributes:
        name: Query name that was resolved.
        rdtype: Record type requested.
        records: Answer records in the order the resolver returned them.
        error: Failure description, None on success.
    """

    name: str
    rdtype: str
    records: list[DNSRecord] = field(default_factory=list)
    error: str | None = None

    def is_error(self) -> bool:
        """Check if the query failed.

        Returns:
            bool: True if error is set, False otherwise.
        """
        return self.error is not None

    def first(self) -> DNSRecord | None:
        """Return the first answer record, or None if there are none."""
        return self.records[0] if self.records else None
