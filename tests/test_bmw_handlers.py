from __future__ import annotations

import json
import logging

import pytest
from conftest import FakeTransport, Recorder, json_response, load_fixture, load_json

from homepoll._transport import HttpResponse
from homepoll.config import MyBmwConfig, MyBmwVehicleConfig
from homepoll.exceptions import HomePollTransportError
from homepoll.handlers.bmw import MyBmwBridgeHandler, MyBmwVehicleHandler
from homepoll.models.auth import Token
from homepoll.models.channel import RefreshType, ThingStatus, ThingStatusDetail

CONFIG = MyBmwConfig(username="user@example.com", password="pw", region="ROW")
I3 = MyBmwVehicleConfig(vin="WBY1Z81040V905639", vehicle_brand="bmw", drive_train="ELECTRIC_REX")
THING = "mybmw:electric:i3"


@pytest.fixture(autouse=True)
def logged_in(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _fake_request_token(_transport: object, _config: object) -> Token:
        return Token.issue("Bearer", "token-1", 3600)

    monkeypatch.setattr("homepoll._api.bmw.request_token", _fake_request_token)


def _vehicles() -> HttpResponse:
    return HttpResponse(status=200, reason="OK", url="", body=load_fixture("bmw/vehicles.json").encode())


async def _bridge(transport: FakeTransport) -> MyBmwBridgeHandler:
    bridge = MyBmwBridgeHandler("mybmw:account:home", transport, CONFIG, discovery_delay=3600)
    await bridge.initialize()
    await bridge.dispose()
    return bridge


class TestBridge:
    @pytest.mark.asyncio
    async def test_invalid_configuration(self, transport: FakeTransport) -> None:
        bridge = MyBmwBridgeHandler("mybmw:account:home", transport, MyBmwConfig(username="u"))
        await bridge.initialize()
        assert bridge.status_detail is ThingStatusDetail.CONFIGURATION_ERROR
        assert bridge.proxy is None

    @pytest.mark.asyncio
    async def test_discovery_fingerprint(self, transport: FakeTransport, caplog: pytest.LogCaptureFixture) -> None:
        transport.queue(_vehicles(), json_response([]))
        bridge = await _bridge(transport)

        with caplog.at_level(logging.DEBUG, logger="homepoll.handlers.bmw"):
            await bridge.discover()

        assert bridge.status is ThingStatus.ONLINE
        assert [v.vin for v in bridge.vehicles] == [I3.vin, "WBA5R31050FH52981"]
        assert I3.vin not in bridge.fingerprint
        assert json.loads(bridge.fingerprint)[0]["vin"] == "anonymous"
        assert "Discovery Fingerprint Data - BEGIN" in caplog.text

    @pytest.mark.asyncio
    async def test_discovery_network_error(self, transport: FakeTransport) -> None:
        transport.queue(
            HttpResponse(status=500, reason="Internal Server Error", url=""),
            HttpResponse(status=500, reason="Internal Server Error", url=""),
        )
        bridge = await _bridge(transport)

        await bridge.discover()

        assert bridge.status is ThingStatus.OFFLINE
        assert bridge.status_description == "Internal Server Error"
        assert json.loads(bridge.fingerprint)["status"] == 500

    @pytest.mark.asyncio
    async def test_discovery_keeps_answering_brand(self, transport: FakeTransport) -> None:
        transport.queue(HttpResponse(status=500, reason="Internal Server Error", url=""), _vehicles())
        bridge = await _bridge(transport)

        await bridge.discover()

        assert bridge.status is ThingStatus.ONLINE
        assert [v.vin for v in bridge.vehicles] == [I3.vin, "WBA5R31050FH52981"]


class TestVehicle:
    @pytest.mark.asyncio
    async def test_update_maps_vehicle_and_charging(self, transport: FakeTransport, recorder: Recorder) -> None:
        transport.queue(
            _vehicles(),
            json_response({"description": "December 2021", "statistics": {"totalEnergyCharged": 173, "numberOfChargingSessions": 13}}),
            json_response({"chargingSessions": {"sessions": [{"title": "Yesterday 17:46", "sessionStatus": "FINISHED"}]}}),
        )
        vehicle = MyBmwVehicleHandler(THING, await _bridge(transport), I3, on_state=recorder.on_state)

        await vehicle.update_data()

        assert vehicle.status is ThingStatus.ONLINE
        assert recorder.text(f"{THING}:status#lock") == "Locked"
        assert recorder.text(f"{THING}:range#soc") == "70 %"
        assert recorder.text(f"{THING}:charge-statistics#energy") == "173 kWh"
        assert recorder.text(f"{THING}:charge-session#title") == "Yesterday 17:46"

    @pytest.mark.asyncio
    async def test_malformed_service_date_is_skipped(self, transport: FakeTransport, recorder: Recorder) -> None:
        vehicles = load_json("bmw/vehicles.json")
        vehicles[0]["properties"]["serviceRequired"][1]["dateTime"] = "garbage"
        transport.queue(json_response(vehicles), json_response({}), json_response({}))
        vehicle = MyBmwVehicleHandler(THING, await _bridge(transport), I3, on_state=recorder.on_state)

        await vehicle.update_data()

        assert vehicle.status is ThingStatus.ONLINE
        assert recorder.text(f"{THING}:status#service-date") == "2023-11-01T00:00:00"

    @pytest.mark.asyncio
    async def test_unknown_vin(self, transport: FakeTransport) -> None:
        transport.queue(_vehicles())
        config = MyBmwVehicleConfig(vin="NOPE", vehicle_brand="bmw", drive_train="CONVENTIONAL")
        vehicle = MyBmwVehicleHandler(THING, await _bridge(transport), config)

        await vehicle.update_data()

        assert vehicle.status_detail is ThingStatusDetail.COMMUNICATION_ERROR

    @pytest.mark.asyncio
    async def test_network_error(self, transport: FakeTransport) -> None:
        transport.queue(HomePollTransportError("down", reason="timeout"))
        vehicle = MyBmwVehicleHandler(THING, await _bridge(transport), I3)

        await vehicle.update_data()

        assert vehicle.status is ThingStatus.OFFLINE

    @pytest.mark.asyncio
    async def test_select_service_entry(self, transport: FakeTransport, recorder: Recorder) -> None:
        transport.queue(_vehicles(), json_response({}), json_response({}))
        vehicle = MyBmwVehicleHandler(THING, await _bridge(transport), I3, on_state=recorder.on_state)
        await vehicle.update_data()

        await vehicle.handle_command(f"{THING}:service#name", "2")
        assert recorder.text(f"{THING}:service#name") == "Oil"

        await vehicle.handle_command(f"{THING}:service#name", "not a number")
        assert recorder.text(f"{THING}:service#name") == "Oil"

    @pytest.mark.asyncio
    async def test_remote_command(self, transport: FakeTransport, recorder: Recorder, monkeypatch: pytest.MonkeyPatch) -> None:
        transport.queue(
            json_response({"eventId": "event-1"}),
            json_response({"eventStatus": "EXECUTED"}),
        )
        monkeypatch.setattr("homepoll._api.bmw.asyncio.sleep", _no_sleep)
        vehicle = MyBmwVehicleHandler(THING, await _bridge(transport), I3, on_state=recorder.on_state)

        await vehicle.handle_command(f"{THING}:remote#command", "light")

        assert recorder.text(f"{THING}:remote#command") == "light"
        assert recorder.text(f"{THING}:remote#status") == "EXECUTED"
        assert transport.requests[0].url.endswith(f"/{I3.vin}/light-flash")

    @pytest.mark.asyncio
    async def test_unknown_remote_command(self, transport: FakeTransport, recorder: Recorder) -> None:
        vehicle = MyBmwVehicleHandler(THING, await _bridge(transport), I3, on_state=recorder.on_state)
        await vehicle.handle_command(f"{THING}:remote#command", "self-destruct")
        assert transport.requests == []
        assert recorder.states == {}

    @pytest.mark.asyncio
    async def test_refresh_polls(self, transport: FakeTransport) -> None:
        transport.queue(_vehicles(), json_response({}), json_response({}))
        vehicle = MyBmwVehicleHandler(THING, await _bridge(transport), I3)
        await vehicle.handle_command(f"{THING}:range#soc", RefreshType.REFRESH)
        assert len(transport.requests) == 3


async def _no_sleep(_delay: float) -> None:
    return None
