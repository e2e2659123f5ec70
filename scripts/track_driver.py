#!/usr/bin/env python3
"""Share a driver's position from the command line.

Signs in with ``COURIER_EMAIL`` / ``COURIER_PASSWORD``, checks that the
account is a registered driver, then reports a fixed position on the
configured interval until the duration elapses or Ctrl+C is pressed.

Example::

    COURIER_SUPABASE_URL=https://xyz.supabase.co COURIER_API_KEY=... \\
    COURIER_EMAIL=driver@example.com COURIER_PASSWORD=... \\
    python scripts/track_driver.py --lat -23.5505 --lng -46.6333 --duration 120
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pycourier import (  # noqa: E402
    CourierClient,
    CourierConfig,
    CourierError,
    DeliveryFeed,
    DriverGuard,
    LocationReporter,
    StaticPositionProvider,
    TrackingToggle,
)
from pycourier.deliveries import pending_deliveries  # noqa: E402
from pycourier.models import Order  # noqa: E402

_logger = logging.getLogger("track_driver")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--lat", type=float, required=True, help="Latitude to report")
    parser.add_argument("--lng", type=float, required=True, help="Longitude to report")
    parser.add_argument("--duration", type=float, default=60.0, help="Seconds to keep tracking (default: 60)")
    parser.add_argument("--interval", type=float, default=None, help="Override the report interval in seconds")
    parser.add_argument("--list-deliveries", action="store_true", help="Print pending deliveries before tracking")
    parser.add_argument(
        "--watch-deliveries",
        action="store_true",
        help="Log the pending delivery count whenever an order changes while tracking",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    overrides = {"report_interval": args.interval} if args.interval else {}
    config = CourierConfig.from_env(**overrides)

    async with CourierClient(config) as client:
        await client.login()

        redirects: list[str] = []
        guard = DriverGuard(client, redirects.append, login_path=config.login_path)
        driver = await guard.check()
        if driver is None:
            _logger.error("Access denied: not a registered driver (redirect to %s)", redirects[-1])
            return 2
        _logger.info("Signed in as %s (%s)", driver.name, driver.id)

        if args.list_deliveries:
            for order in pending_deliveries(await client.get_deliveries()):
                client_name = order.client.name if order.client else "?"
                _logger.info("  #%s %s [%s]", order.short_id, client_name, order.status.value)

        latest = {"driver": driver}

        async def _refresh() -> None:
            profile = await client.fetch_driver_profile()
            if profile is not None:
                latest["driver"] = profile

        def _log_pending(orders: list[Order]) -> None:
            _logger.info("Pending deliveries: %d", len(pending_deliveries(orders)))

        feed = DeliveryFeed(client, on_update=_log_pending)
        watch = client.order_changes(feed.handle_change) if args.watch_deliveries else contextlib.nullcontext()

        provider = StaticPositionProvider(args.lat, args.lng)
        async with watch, LocationReporter(
            config,
            provider,
            client,
            driver_id=driver.id,
            on_reported=_refresh,
        ) as reporter:
            toggle = TrackingToggle(reporter, fresh_threshold=config.fresh_threshold)
            await toggle.press()
            if not reporter.is_tracking:
                return 1
            try:
                await asyncio.sleep(args.duration)
            finally:
                view = toggle.view(latest["driver"])
                _logger.info("Last report: %s (%s)", view.last_reported_at, view.freshness.value)
                reporter.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130
    except CourierError as exc:
        _logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
