from __future__ import annotations

import pytest
from conftest import FakeTransport, Recorder, json_response, load_json

from homepoll._transport import HttpResponse
from homepoll.config import MercedesMeConfig, MercedesVehicleConfig
from homepoll.handlers.mercedes import MercedesAccountHandler, MercedesVehicleHandler
from homepoll.models.auth import Token
from homepoll.models.channel import RefreshType, ThingStatus, ThingStatusDetail

CONFIG = MercedesMeConfig(client_id="client", client_secret="secret", callback_port=8090)
VIN = "W1K2938901F123456"
NOW = 1_000_000.0


def _account(transport: FakeTransport, token: Token | None = None, **kwargs: object) -> MercedesAccountHandler:
    return MercedesAccountHandler("mercedesme:account:home", transport, CONFIG, token=token, clock=lambda: NOW, **kwargs)


def _valid_token() -> Token:
    return Token(token_type="Bearer", access_token="at", refresh_token="rt", expires_at=NOW + 3600)


class TestAccount:
    @pytest.mark.asyncio
    async def test_received_code_brings_account_online(self, transport: FakeTransport) -> None:
        transport.queue(json_response({"access_token": "at", "refresh_token": "rt", "token_type": "Bearer", "expires_in": 7199}))
        account = _account(transport)

        await account.receive_code("code-1")

        assert account.status is ThingStatus.ONLINE
        assert account.token.expires_at == pytest.approx(NOW + 7199)

    @pytest.mark.asyncio
    async def test_failed_exchange_is_offline(self, transport: FakeTransport) -> None:
        transport.queue(HttpResponse(status=400, reason="Bad Request", url=""))
        account = _account(transport)

        await account.receive_code("code-1")

        assert account.status is ThingStatus.OFFLINE
        assert account.status_detail is ThingStatusDetail.COMMUNICATION_ERROR
        assert not account.token.is_valid(NOW)

    @pytest.mark.asyncio
    async def test_expired_token_refreshed_once(self, transport: FakeTransport) -> None:
        transport.queue(json_response({"access_token": "at-2", "token_type": "Bearer", "expires_in": 7199}))
        expired = Token(token_type="Bearer", access_token="at-1", refresh_token="rt-1", expires_at=NOW - 1)
        account = _account(transport, expired)

        first = await account.get_token()
        second = await account.get_token()

        assert first.access_token == "at-2"
        assert second is first
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_failed_refresh_returns_stale_token(self, transport: FakeTransport) -> None:
        transport.queue(HttpResponse(status=500, reason="Server Error", url=""))
        expired = Token(token_type="Bearer", access_token="at-1", refresh_token="rt-1", expires_at=NOW - 1)
        account = _account(transport, expired)

        token = await account.get_token()

        assert token.access_token == "at-1"

    @pytest.mark.asyncio
    async def test_invalid_config(self, transport: FakeTransport) -> None:
        account = MercedesAccountHandler("mercedesme:account:x", transport, MercedesMeConfig())
        await account.initialize()
        assert account.status_detail is ThingStatusDetail.CONFIGURATION_ERROR
        assert not account.server.running

    @pytest.mark.asyncio
    async def test_callback_port_in_use(self, transport: FakeTransport, busy_port: int) -> None:
        config = MercedesMeConfig(client_id="client", client_secret="secret", callback_ip="127.0.0.1", callback_port=busy_port)
        account = MercedesAccountHandler("mercedesme:account:home", transport, config, clock=lambda: NOW)

        await account.initialize()

        assert account.status is ThingStatus.OFFLINE
        assert account.status_detail is ThingStatusDetail.CONFIGURATION_ERROR
        assert account.status_description == f"Port {busy_port} already in use"
        assert not account.server.running
        assert transport.requests == []


class TestVehicle:
    @pytest.mark.asyncio
    async def test_polls_relevant_containers(self, transport: FakeTransport, recorder: Recorder) -> None:
        account = _account(transport, _valid_token())
        vehicle = MercedesVehicleHandler(
            "mercedesme:bev:eqa",
            account,
            MercedesVehicleConfig(vin=VIN),
            "bev",
            on_state=recorder.on_state,
        )
        transport.queue(
            json_response(load_json("mercedes/evstatus.json")),
            json_response(load_json("mercedes/eqa-light-sample.json")),
            HttpResponse(status=204, reason="No Content", url=""),
            json_response(load_json("mercedes/odo.json")),
        )

        await vehicle.update_data()

        assert vehicle.containers() == ["electricvehicle", "payasyoudrive", "vehiclelockstatus", "vehiclestatus"]
        assert [r.url.rsplit("/", 1)[-1] for r in transport.requests] == vehicle.containers()
        assert recorder.text("mercedesme:bev:eqa:range#soc") == "78 %"
        assert recorder.text("mercedesme:bev:eqa:range#mileage") == "4131 km"
        assert recorder.text("mercedesme:bev:eqa:lights#reading-left") == "ON"
        assert vehicle.status is ThingStatus.ONLINE
        assert vehicle.last_timestamp == 1655655991000

    def test_combustion_skips_ev_container(self, transport: FakeTransport) -> None:
        account = _account(transport)
        vehicle = MercedesVehicleHandler("mercedesme:combustion:c", account, MercedesVehicleConfig(vin=VIN), "combustion")
        assert "electricvehicle" not in vehicle.containers()
        assert "fuelstatus" in vehicle.containers()

    @pytest.mark.asyncio
    async def test_unauthorized_account(self, transport: FakeTransport) -> None:
        vehicle = MercedesVehicleHandler("mercedesme:bev:eqa", _account(transport), MercedesVehicleConfig(vin=VIN), "bev")
        await vehicle.handle_command("mercedesme:bev:eqa:range#soc", RefreshType.REFRESH)
        assert vehicle.status is ThingStatus.OFFLINE
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_container_error_sets_offline(self, transport: FakeTransport) -> None:
        vehicle = MercedesVehicleHandler(
            "mercedesme:bev:eqa", _account(transport, _valid_token()), MercedesVehicleConfig(vin=VIN), "bev"
        )
        transport.queue(HttpResponse(status=429, reason="Too Many Requests", url=""))

        await vehicle.update_data()

        assert vehicle.status_detail is ThingStatusDetail.COMMUNICATION_ERROR

    @pytest.mark.asyncio
    async def test_unknown_thing_type(self, transport: FakeTransport) -> None:
        vehicle = MercedesVehicleHandler("mercedesme:x:y", _account(transport), MercedesVehicleConfig(vin=VIN), "truck")
        await vehicle.initialize()
        assert vehicle.status_detail is ThingStatusDetail.CONFIGURATION_ERROR
