"""Contract tests for end-to-end lookup results.

Each scenario spawns a client on a fresh host with a scripted resolver and
checks the exact completion event delivered to the caller.
"""

import asyncio

from dnsbl_lookup.services.dnsbl_client import DNSBLClient


def run_scenario(host, adapter, recorder, **request):
    client = DNSBLClient.spawn(host, resolver=adapter)

    async def scenario():
        client.lookup(sender=recorder.id, **request)
        await client.wait_idle()
        await host.wait_released(recorder.endpoint)
        client.shutdown()

    asyncio.run(scenario())
    return recorder.events


def test_not_listed_address(host, fake_adapter, recorder):
    """Zero A records: NXDOMAIN response and no TXT query."""
    adapter = fake_adapter({("5.2.0.192.zen.spamhaus.org", "A"): []})

    events = run_scenario(host, adapter, recorder, event="result", address="192.0.2.5")

    assert events == [
        (
            "result",
            {
                "event": "result",
                "address": "192.0.2.5",
                "response": "NXDOMAIN",
                "zone": "zen.spamhaus.org",
            },
        )
    ]
    assert adapter.calls_for("TXT") == []


def test_listed_address_with_reason(host, fake_adapter, recorder):
    """One A record and one TXT record: response and reason are both delivered."""
    adapter = fake_adapter(
        {
            ("2.0.0.127.zen.spamhaus.org", "A"): ["127.0.0.2"],
            ("2.0.0.127.zen.spamhaus.org", "TXT"): ["Blocked - see https://example/lookup"],
        }
    )

    events = run_scenario(host, adapter, recorder, event="result", address="127.0.0.2")

    payload = events[0][1]
    assert payload["response"] == "127.0.0.2"
    assert payload["reason"] == "Blocked - see https://example/lookup"
    assert "error" not in payload
    assert adapter.calls == [
        ("2.0.0.127.zen.spamhaus.org", "A"),
        ("2.0.0.127.zen.spamhaus.org", "TXT"),
    ]


def test_resolver_timeout(host, fake_adapter, recorder):
    """A-phase failure: only the error is delivered."""
    adapter = fake_adapter(
        {("5.2.0.192.zen.spamhaus.org", "A"): "error:The DNS operation timed out."}
    )

    events = run_scenario(host, adapter, recorder, event="result", address="192.0.2.5")

    payload = events[0][1]
    assert payload["error"] == "The DNS operation timed out."
    assert "response" not in payload
    assert "reason" not in payload


def test_zone_override_and_passthrough(host, fake_adapter, recorder):
    """A per-request zone is queried and reported; passthrough keys come back unchanged."""
    adapter = fake_adapter(
        {
            ("4.3.2.1.bl.spamcop.net", "A"): ["127.0.0.2"],
            ("4.3.2.1.bl.spamcop.net", "TXT"): [],
        }
    )

    events = run_scenario(
        host,
        adapter,
        recorder,
        event="other",
        address="1.2.3.4",
        dnsbl="bl.spamcop.net",
        _ticket={"id": 12, "tags": ["smtp"]},
    )

    name, payload = events[0]
    assert name == "other"
    assert payload == {
        "_ticket": {"id": 12, "tags": ["smtp"]},
        "event": "other",
        "address": "1.2.3.4",
        "zone": "bl.spamcop.net",
        "response": "127.0.0.2",
        "reason": "",
    }


def test_passthrough_error_key_dropped_on_success(host, fake_adapter, recorder):
    """A caller key named like an outcome never reaches a successful result."""
    adapter = fake_adapter({("5.2.0.192.zen.spamhaus.org", "A"): []})

    events = run_scenario(
        host, adapter, recorder, event="result", address="192.0.2.5", error="stale", _id=3
    )

    payload = events[0][1]
    assert payload["response"] == "NXDOMAIN"
    assert "error" not in payload
    assert payload["_id"] == 3


def test_passthrough_response_keys_dropped_on_error(host, fake_adapter, recorder):
    """Caller keys named response and reason never reach an error result."""
    adapter = fake_adapter({("5.2.0.192.zen.spamhaus.org", "A"): "error:timed out"})

    events = run_scenario(
        host, adapter, recorder, event="result", address="192.0.2.5", response="x", reason="y"
    )

    payload = events[0][1]
    assert payload["error"] == "timed out"
    assert "response" not in payload
    assert "reason" not in payload
