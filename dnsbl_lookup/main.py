"""Main entry point for the DNSBL lookup client.

Looks up every address given on the command line and logs one result
line per address.
"""

import asyncio
import logging
import sys
import time
from typing import Any, Dict, List, Sequence

from dnsbl_lookup.config import Config
from dnsbl_lookup.services.dnsbl_client import DNSBLClient
from dnsbl_lookup.services.host import Host
from dnsbl_lookup.services.logger import log_lookup_result, setup_logging


logger = logging.getLogger(__name__)

RESULT_EVENT = "_response"


async def lookup_addresses(addresses: Sequence[str], config: Config) -> List[Dict[str, Any]]:
    """Look up addresses concurrently and collect the results.

    Args:
        addresses: IPv4 addresses to check.
        config: Application configuration.

    Returns:
        list[dict]: One result payload per accepted address, in completion order.
    """
    host = Host()
    client = DNSBLClient.spawn(host, config=config)
    results: List[Dict[str, Any]] = []

    def on_response(payload: Dict[str, Any]) -> None:
        log_lookup_result(payload)
        results.append(payload)

    reporter = host.register("reporter", {RESULT_EVENT: on_response})
    try:
        for address in addresses:
            client.lookup(event=RESULT_EVENT, address=address, sender=reporter.id)

        await host.wait_released(reporter)
    finally:
        client.shutdown()
        host.unregister(reporter)

    return results


def main(argv: Sequence[str] | None = None) -> int:
    """Main execution function.

    Args:
        argv: Addresses to look up, defaults to the command line arguments.

    Returns:
        int: Exit code (0 for success, 1 for fatal error, 2 for usage error).
    """
    start_time = time.time()
    addresses = list(sys.argv[1:] if argv is None else argv)

    try:
        config = Config.from_env()
    except ValueError as e:
        setup_logging()
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(config.verbose)

    if not addresses:
        logger.error("Please provide at least one IP address to lookup")
        return 2

    try:
        results = asyncio.run(lookup_addresses(addresses, config))
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    duration_sec = time.time() - start_time
    logger.info(
        f"Completed {len(results)} lookups in {duration_sec:.2f} seconds",
        extra={
            "requested": len(addresses),
            "completed": len(results),
            "listed": sum(1 for r in results if "reason" in r),
            "errors": sum(1 for r in results if "error" in r),
            "zone": config.dnsbl_zone,
            "duration_sec": duration_sec,
        },
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
