"""Lookup request validation."""

from typing import Any, Dict, Mapping, Optional

from dnsbl_lookup.models.lookup_request import LookupRequest
from dnsbl_lookup.models.request_context import RequestContext
from dnsbl_lookup.services.host import Host
from dnsbl_lookup.utils.ip_utils import build_query_host, is_valid_ipv4, normalize_zone


class ValidationError(ValueError):
    """Lookup request rejected before any query was issued."""


class MissingFieldError(ValidationError):
    """A mandatory request field is absent or empty."""

    def __init__(self, field_name: str):
        super().__init__(f"No '{field_name}' specified for lookup")
        self.field_name = field_name


class InvalidAddressError(ValidationError):
    """The address is not a dotted-quad IPv4 address."""

    def __init__(self, address: Any):
        super().__init__(f"Given 'address' is not an IPv4 address: {address!r}")
        self.address = address


class UnresolvableEndpointError(ValidationError):
    """No live endpoint to deliver the result to."""


# Raw request keys and the LookupRequest field they populate
_FIELD_ALIASES = {
    "event": "event",
    "address": "address",
    "session": "target",
    "target": "target",
    "zone": "zone",
    "dnsbl": "zone",
}


def normalize_fields(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Lower-case request keys, leaving underscore-prefixed passthrough keys untouched.

    Raises:
        ValidationError: If a key is not a string.
    """
    fields: Dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            raise ValidationError(f"Request field names must be strings, got {key!r}")
        fields[key if key.startswith("_") else key.lower()] = value
    return fields


def parse_request(raw: Mapping[str, Any]) -> LookupRequest:
    """Split raw request fields into a LookupRequest.

    Args:
        raw: Request fields as submitted by the caller.

    Returns:
        LookupRequest: Parsed request. Unrecognized keys end up in extra.

    Raises:
        MissingFieldError: If event or address is missing.
        InvalidAddressError: If address is not IPv4.
    """
    known: Dict[str, Any] = {}
    extra: Dict[str, Any] = {}
    for key, value in normalize_fields(raw).items():
        field_name = _FIELD_ALIASES.get(key)
        if field_name is None:
            extra[key] = value
        elif value is not None and value != "":
            known[field_name] = value

    for required in ("event", "address"):
        if not known.get(required):
            raise MissingFieldError(required)

    if not is_valid_ipv4(known["address"]):
        raise InvalidAddressError(known["address"])

    zone = known.get("zone")
    return LookupRequest(
        event=known["event"],
        address=known["address"],
        target=known.get("target"),
        zone=normalize_zone(str(zone)) if zone else None,
        extra=extra,
    )


def validate_request(
    raw: Mapping[str, Any],
    default_zone: str,
    host: Host,
    sender: Optional[int],
) -> RequestContext:
    """Validate a raw lookup request and build its context.

    Pure: nothing is registered or acquired here.

    Args:
        raw: Request fields as submitted by the caller.
        default_zone: Zone used when the request names none.
        host: Host used to resolve the target endpoint.
        sender: Endpoint id of the caller, used when no target is given.

    Returns:
        RequestContext: Context in the AWAITING_A state.

    Raises:
        ValidationError: If the request is malformed or has nowhere to
            deliver its result.
    """
    request = parse_request(raw)

    if request.target is not None:
        endpoint = host.resolve(request.target)
        if endpoint is None:
            raise UnresolvableEndpointError(
                f"Could not resolve 'session' {request.target!r} to a live endpoint"
            )
    else:
        endpoint = host.resolve(sender) if sender is not None else None
        if endpoint is None:
            raise UnresolvableEndpointError("No requesting endpoint to send the result to")

    zone = request.zone or default_zone
    return RequestContext.from_request(
        request,
        zone=zone,
        requesting_endpoint=endpoint.id,
        query_host=build_query_host(request.address, zone),
    )
