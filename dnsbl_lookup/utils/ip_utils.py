"""IP address utilities for DNSBL queries."""

import ipaddress


def is_valid_ipv4(ip: object) -> bool:
    """Validate if value is a dotted-quad IPv4 address string.

    Args:
        ip: Value to validate.

    Returns:
        bool: True if valid IPv4, False otherwise.

    Examples:
        >>> is_valid_ipv4("203.0.113.45")
        True
        >>> is_valid_ipv4("256.0.0.1")
        False
        >>> is_valid_ipv4("2001:db8::1")
        False
    """
    # ipaddress also accepts integers and packed bytes
    if not isinstance(ip, str):
        return False
    try:
        addr = ipaddress.ip_address(ip)
        return isinstance(addr, ipaddress.IPv4Address)
    except ValueError:
        return False


def reverse_ip(ip: str) -> str:
    """Convert IPv4 address to reverse DNS format for DNSBL queries.

    DNSBL queries require reversed octets. For example:
    203.0.113.45 becomes 45.113.0.203

    Args:
        ip: IPv4 address in dotted-quad format.

    Returns:
        str: Reversed IP address.

    Raises:
        ValueError: If IP is not a valid IPv4 address.

    Examples:
        >>> reverse_ip("127.0.0.2")
        '2.0.0.127'
    """
    if not is_valid_ipv4(ip):
        raise ValueError(f"Invalid IPv4 address: {ip}")

    return ".".join(reversed(ip.split(".")))


def normalize_zone(zone: str) -> str:
    """Strip surrounding whitespace and trailing dots from a zone name."""
    return zone.strip().rstrip(".")


def build_query_host(ip: str, zone: str) -> str:
    """Build the DNSBL query hostname for an address and zone.

    Args:
        ip: IPv4 address to check.
        zone: DNSBL zone domain (e.g., "zen.spamhaus.org").

    Returns:
        str: DNSBL query hostname (e.g., "2.0.0.127.zen.spamhaus.org").

    Raises:
        ValueError: If IP is invalid or zone is empty.

    Examples:
        >>> build_query_host("127.0.0.2", "zen.spamhaus.org")
        '2.0.0.127.zen.spamhaus.org'
    """
    zone = normalize_zone(zone or "")
    if not zone:
        raise ValueError("DNSBL zone cannot be empty")

    return f"{reverse_ip(ip)}.{zone}"
