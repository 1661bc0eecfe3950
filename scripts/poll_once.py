#!/usr/bin/env python3
"""Run a single poll of one binding and print every channel state.

Usage
-----
Set the binding's environment variables and run::

    export HOMEPOLL_PEGEL_UUID="70272185-b2b3-4178-96b8-43bea330dcae"
    python scripts/poll_once.py pegel

    export HOMEPOLL_SOLAR_LOCATION="54.321,8.765"
    python scripts/poll_once.py solar --declination 15 --azimuth 0 --kwp 5.5

    export HOMEPOLL_BMW_USERNAME="you@example.com"
    export HOMEPOLL_BMW_PASSWORD="your-password"
    python scripts/poll_once.py bmw --vin WBY... --brand bmw --drive-train ELECTRIC

    export HOMEPOLL_MB_CLIENT_ID="..."
    export HOMEPOLL_MB_CLIENT_SECRET="..."
    python scripts/poll_once.py mercedes --vin W1K... --thing-type bev

Options::

    --verbose / -v      Enable debug logging (secrets are redacted)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import aiohttp

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from homepoll import (  # noqa: E402
    BaseHandler,
    ForecastSolarBridgeConfig,
    ForecastSolarBridgeHandler,
    ForecastSolarPlaneConfig,
    ForecastSolarPlaneHandler,
    HttpTransport,
    MercedesAccountHandler,
    MercedesMeConfig,
    MercedesVehicleConfig,
    MercedesVehicleHandler,
    MyBmwBridgeHandler,
    MyBmwConfig,
    MyBmwVehicleConfig,
    MyBmwVehicleHandler,
    PegelOnlineConfig,
    PegelOnlineHandler,
    State,
    ThingStatus,
)

AUTHORIZATION_WAIT_SEC = 300


def _print_state(channel_uid: str, state: State) -> None:
    print(f"{channel_uid} = {state}")


def _print_status(handler: BaseHandler) -> None:
    print(f"# {handler.thing_uid}: {handler.status.value} {handler.status_detail.value} {handler.status_description}")


async def _pegel(transport: HttpTransport, args: argparse.Namespace) -> None:
    handler = PegelOnlineHandler("pegel:station:cli", transport, PegelOnlineConfig.from_env(), on_state=_print_state)
    await handler.initialize()
    await handler.dispose()
    if handler.status is not ThingStatus.OFFLINE:
        await handler.measure()
    _print_status(handler)


async def _solar(transport: HttpTransport, args: argparse.Namespace) -> None:
    bridge = ForecastSolarBridgeHandler("solar:site:cli", ForecastSolarBridgeConfig.from_env(), on_state=_print_state)
    plane_config = ForecastSolarPlaneConfig(declination=args.declination, azimuth=args.azimuth, kwp=args.kwp)
    plane = ForecastSolarPlaneHandler("solar:plane:cli", transport, plane_config, bridge=bridge, on_state=_print_state)
    await bridge.initialize()
    await bridge.dispose()
    await plane.initialize()
    await bridge.refresh()
    _print_status(bridge)
    _print_status(plane)


async def _bmw(transport: HttpTransport, args: argparse.Namespace) -> None:
    bridge = MyBmwBridgeHandler("mybmw:account:cli", transport, MyBmwConfig.from_env(), discovery_delay=0)
    await bridge.initialize()
    await bridge.dispose()
    await bridge.discover()
    _print_status(bridge)
    if args.vin:
        config = MyBmwVehicleConfig(vin=args.vin, vehicle_brand=args.brand, drive_train=args.drive_train)
        vehicle = MyBmwVehicleHandler("mybmw:vehicle:cli", bridge, config, on_state=_print_state)
        await vehicle.update_data()
        _print_status(vehicle)
    else:
        print(bridge.fingerprint)


async def _mercedes(transport: HttpTransport, args: argparse.Namespace) -> None:
    account = MercedesAccountHandler("mercedesme:account:cli", transport, MercedesMeConfig.from_env())
    await account.initialize()
    try:
        if account.status is not ThingStatus.ONLINE:
            print(account.status_description)
            for _ in range(AUTHORIZATION_WAIT_SEC):
                if account.status is ThingStatus.ONLINE:
                    break
                await asyncio.sleep(1)
        _print_status(account)
        config = MercedesVehicleConfig(vin=args.vin)
        vehicle = MercedesVehicleHandler("mercedesme:vehicle:cli", account, config, args.thing_type, on_state=_print_state)
        await vehicle.update_data()
        _print_status(vehicle)
    finally:
        await account.dispose()


async def main() -> None:
    parser = argparse.ArgumentParser(description="Poll one homepoll binding once and print its channel states.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="binding", required=True)

    sub.add_parser("pegel", help="PEGELONLINE station from HOMEPOLL_PEGEL_*")

    solar = sub.add_parser("solar", help="Forecast.Solar site from HOMEPOLL_SOLAR_* with one plane")
    solar.add_argument("--declination", type=int, default=30)
    solar.add_argument("--azimuth", type=int, default=0)
    solar.add_argument("--kwp", type=float, default=5.0)

    bmw = sub.add_parser("bmw", help="MyBMW account from HOMEPOLL_BMW_*")
    bmw.add_argument("--vin", help="Poll this vehicle (default: print the discovery fingerprint)")
    bmw.add_argument("--brand", default="bmw")
    bmw.add_argument("--drive-train", default="CONVENTIONAL")

    mercedes = sub.add_parser("mercedes", help="Mercedes me account from HOMEPOLL_MB_*")
    mercedes.add_argument("--vin", required=True)
    mercedes.add_argument("--thing-type", default="hybrid", choices=["bev", "combustion", "hybrid"])

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    runners = {"pegel": _pegel, "solar": _solar, "bmw": _bmw, "mercedes": _mercedes}
    async with aiohttp.ClientSession() as session:
        await runners[args.binding](HttpTransport(session), args)


if __name__ == "__main__":
    asyncio.run(main())
