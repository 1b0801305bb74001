"""Unit tests for DNS response models."""

from dnsbl_lookup.models.dns_response import DNSRecord, DNSResponse


def test_dns_response_defaults_to_empty_answer():
    """Test a response without records or error is a valid empty answer."""
    response = DNSResponse(name="5.2.0.192.zen.spamhaus.org", rdtype="A")

    assert response.records == []
    assert response.is_error() is False
    assert response.first() is None


def test_dns_response_first_record():
    """Test first() returns the first record in resolver order."""
    response = DNSResponse(
        name="2.0.0.127.zen.spamhaus.org",
        rdtype="A",
        records=[DNSRecord("A", "127.0.0.2"), DNSRecord("A", "127.0.0.4")],
    )

    assert response.first() == DNSRecord(rdtype="A", data="127.0.0.2")


def test_dns_response_is_error():
    """Test is_error() is True only when error is set."""
    response = DNSResponse(
        name="2.0.0.127.zen.spamhaus.org",
        rdtype="TXT",
        error="The DNS operation timed out.",
    )

    assert response.is_error() is True
    assert response.first() is None


def test_dns_response_instances_do_not_share_records():
    """Test the default records list is per instance."""
    first = DNSResponse(name="a", rdtype="A")
    second = DNSResponse(name="b", rdtype="A")
    first.records.append(DNSRecord("A", "127.0.0.2"))

    assert second.records == []
