"""Configuration module for the DNSBL lookup client.

Loads and validates environment variables.
"""

import ipaddress
import os
from dataclasses import dataclass
from typing import Tuple

from dnsbl_lookup.utils.ip_utils import normalize_zone


DEFAULT_DNSBL_ZONE = "zen.spamhaus.org"


@dataclass(frozen=True)
class Config:
    """Client configuration, immutable once loaded."""

    # DNSBL Configuration
    dnsbl_zone: str = DEFAULT_DNSBL_ZONE
    dnsbl_alias: str | None = None

    # Resolver Configuration
    dns_timeout: int = 5
    dns_nameservers: Tuple[str, ...] = ()

    # Operational Configuration
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ValueError: If variables are invalid.

        Returns:
            Config: Validated configuration instance.
        """
        # DNSBL Configuration
        dnsbl_zone = normalize_zone(os.getenv("DNSBL_ZONE", DEFAULT_DNSBL_ZONE))
        if not dnsbl_zone:
            raise ValueError("DNSBL_ZONE cannot be empty")

        dnsbl_alias = os.getenv("DNSBL_ALIAS") or None

        # Resolver Configuration
        dns_timeout = int(os.getenv("DNS_TIMEOUT", "5"))
        if not 1 <= dns_timeout <= 60:
            raise ValueError("DNS_TIMEOUT must be between 1 and 60 seconds")

        dns_nameservers_str = os.getenv("DNS_NAMESERVERS", "")
        dns_nameservers = tuple(
            server.strip() for server in dns_nameservers_str.split(",") if server.strip()
        )
        for server in dns_nameservers:
            if not cls._is_ip_address(server):
                raise ValueError(f"DNS_NAMESERVERS entry is not an IP address: {server}")

        # Operational Configuration
        verbose_str = os.getenv("VERBOSE", "false").lower()
        verbose = verbose_str in ("true", "1", "yes")

        return cls(
            dnsbl_zone=dnsbl_zone,
            dnsbl_alias=dnsbl_alias,
            dns_timeout=dns_timeout,
            dns_nameservers=dns_nameservers,
            verbose=verbose,
        )

    @staticmethod
    def _is_ip_address(value: str) -> bool:
        try:
            ipaddress.ip_address(value)
        except ValueError:
            return False
        return True
