"""Unit tests for configuration validation."""

import dataclasses

import pytest

from dnsbl_lookup.config import DEFAULT_DNSBL_ZONE, Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove configuration variables inherited from the environment."""
    for key in ("DNSBL_ZONE", "DNSBL_ALIAS", "DNS_TIMEOUT", "DNS_NAMESERVERS", "VERBOSE"):
        monkeypatch.delenv(key, raising=False)


def test_config_defaults():
    """Test configuration defaults when nothing is set."""
    config = Config.from_env()

    assert config.dnsbl_zone == DEFAULT_DNSBL_ZONE == "zen.spamhaus.org"
    assert config.dnsbl_alias is None
    assert config.dns_timeout == 5
    assert config.dns_nameservers == ()
    assert config.verbose is False
    assert config == Config()


def test_config_from_env_valid(monkeypatch):
    """Test loading valid configuration from environment variables."""
    env_vars = {
        "DNSBL_ZONE": "bl.spamcop.net.",
        "DNSBL_ALIAS": "dnsbl",
        "DNS_TIMEOUT": "10",
        "DNS_NAMESERVERS": "1.1.1.1, 8.8.8.8,",
    }

    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)

    config = Config.from_env()

    assert config.dnsbl_zone == "bl.spamcop.net"
    assert config.dnsbl_alias == "dnsbl"
    assert config.dns_timeout == 10
    assert config.dns_nameservers == ("1.1.1.1", "8.8.8.8")


def test_config_is_immutable():
    """Test configuration cannot be changed after loading."""
    config = Config()

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.dnsbl_zone = "bl.spamcop.net"


def test_config_empty_zone(monkeypatch):
    """Test that an empty zone raises ValueError."""
    monkeypatch.setenv("DNSBL_ZONE", " . ")

    with pytest.raises(ValueError, match="DNSBL_ZONE cannot be empty"):
        Config.from_env()


@pytest.mark.parametrize("timeout", ["0", "61"])
def test_config_timeout_range(monkeypatch, timeout):
    """Test that DNS_TIMEOUT outside 1-60 raises ValueError."""
    monkeypatch.setenv("DNS_TIMEOUT", timeout)

    with pytest.raises(ValueError, match="DNS_TIMEOUT must be between 1 and 60"):
        Config.from_env()


def test_config_invalid_nameserver(monkeypatch):
    """Test that a hostname in DNS_NAMESERVERS raises ValueError."""
    monkeypatch.setenv("DNS_NAMESERVERS", "1.1.1.1,dns.google")

    with pytest.raises(ValueError, match="not an IP address: dns.google"):
        Config.from_env()


def test_config_verbose_parsing(monkeypatch):
    """Test that VERBOSE boolean parsing works correctly."""
    for verbose_value in ["true", "True", "TRUE", "1", "yes"]:
        monkeypatch.setenv("VERBOSE", verbose_value)

        config = Config.from_env()
        assert config.verbose is True, f"Expected True for VERBOSE={verbose_value}"

    for verbose_value in ["false", "0", "no", ""]:
        monkeypatch.setenv("VERBOSE", verbose_value)

        config = Config.from_env()
        assert config.verbose is False, f"Expected False for VERBOSE={verbose_value}"
