from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest
from conftest import FakeTransport, json_response, load_fixture

from homepoll._api.bmw import MyBmwProxy, build_vehicle_params
from homepoll._transport import HttpResponse
from homepoll.config import MyBmwConfig
from homepoll.exceptions import HomePollAuthenticationError, HomePollConfigError, HomePollTransportError
from homepoll.models.auth import Token
from homepoll.models.bmw import RemoteService

CONFIG = MyBmwConfig(username="user@example.com", password="pw", region="ROW", language="de")


@pytest.fixture
def logged_in(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    calls: list[int] = []

    async def _fake_request_token(_transport: object, _config: object) -> Token:
        calls.append(1)
        return Token.issue("Bearer", "token-1", 3600)

    monkeypatch.setattr("homepoll._api.bmw.request_token", _fake_request_token)
    return calls


def test_unknown_region_rejected(transport: FakeTransport) -> None:
    with pytest.raises(HomePollConfigError):
        MyBmwProxy(transport, MyBmwConfig(username="u", password="p", region="MARS"))


def test_vehicle_params_use_given_offset() -> None:
    now = datetime(2022, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    params = build_vehicle_params(now)
    assert params["tireGuardMode"] == "ENABLED"
    assert params["apptimezone"] == "120"
    assert params["appDateTime"] == str(int(now.timestamp() * 1000))


@pytest.mark.asyncio
async def test_request_vehicles_sends_auth_headers(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(HttpResponse(status=200, reason="OK", url="", body=load_fixture("bmw/vehicles.json").encode()))
    proxy = MyBmwProxy(transport, CONFIG)

    text = await proxy.request_vehicles("bmw")

    assert text is not None and "WBY1Z81040V905639" in text
    request = transport.requests[0]
    assert request.url == "https://cocoapi.bmwgroup.com/eadrax-vcs/v1/vehicles"
    assert request.headers["Authorization"] == "Bearer token-1"
    assert request.headers["accept-language"] == "de"
    assert request.headers["accept"] == "application/json"
    assert request.headers["x-user-agent"] == "android(v1.07_20200330);bmw;1.7.0(11152)"
    assert request.params["tireGuardMode"] == "ENABLED"
    assert logged_in == [1]


@pytest.mark.asyncio
async def test_token_reused_while_valid(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(json_response([]), json_response([]))
    proxy = MyBmwProxy(transport, CONFIG)

    await proxy.request_vehicles("bmw")
    await proxy.request_vehicles("mini")

    assert logged_in == [1]
    assert transport.requests[1].headers["x-user-agent"].endswith("mini;1.7.0(11152)")


@pytest.mark.asyncio
async def test_unknown_brand_is_skipped(transport: FakeTransport, logged_in: list[int]) -> None:
    proxy = MyBmwProxy(transport, CONFIG)
    assert await proxy.request_vehicles("trabant") is None
    assert transport.requests == []


@pytest.mark.asyncio
async def test_all_vehicles_keyed_by_brand(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(json_response([{"vin": "A"}]), json_response([]))
    proxy = MyBmwProxy(transport, CONFIG)

    result = await proxy.request_all_vehicles()

    assert set(result) == {"bmw", "mini"}
    assert '"A"' in result["bmw"]


@pytest.mark.asyncio
async def test_failing_brand_keeps_other_brands(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(HttpResponse(status=500, reason="Internal Server Error", url=""), json_response([{"vin": "M"}]))
    proxy = MyBmwProxy(transport, CONFIG)

    result = await proxy.request_all_vehicles()

    assert set(result) == {"mini"}


@pytest.mark.asyncio
async def test_all_brands_failing_raises(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(
        HttpResponse(status=500, reason="Internal Server Error", url=""),
        HttpResponse(status=503, reason="Service Unavailable", url=""),
    )
    proxy = MyBmwProxy(transport, CONFIG)

    with pytest.raises(HomePollTransportError) as info:
        await proxy.request_all_vehicles()

    assert info.value.status_code == 503


@pytest.mark.asyncio
async def test_http_error_raises_transport_error(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(HttpResponse(status=403, reason="Forbidden", url=""))
    proxy = MyBmwProxy(transport, CONFIG)

    with pytest.raises(HomePollTransportError) as info:
        await proxy.request_vehicles("bmw")

    assert info.value.status_code == 403
    assert '"status": 403' in info.value.to_json()


@pytest.mark.asyncio
async def test_failed_login_keeps_old_token(
    transport: FakeTransport,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    async def _failing(_transport: object, _config: object) -> Token:
        raise HomePollAuthenticationError("denied", step="login")

    monkeypatch.setattr("homepoll._api.bmw.request_token", _failing)
    proxy = MyBmwProxy(transport, CONFIG)

    with caplog.at_level(logging.WARNING, logger="homepoll._api.bmw"):
        token = await proxy.get_token()

    assert not token.is_valid()
    assert "Authorization Exception" in caplog.text


@pytest.mark.asyncio
async def test_image_request(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(HttpResponse(status=200, reason="OK", url="", body=b"\x89PNG"))
    proxy = MyBmwProxy(transport, CONFIG)

    image = await proxy.request_image("VIN1", "bmw", "VehicleStatus")

    assert image == b"\x89PNG"
    request = transport.requests[0]
    assert request.url.endswith("/eadrax-ics/v3/presentation/vehicles/VIN1/images")
    assert request.params == {"carView": "VehicleStatus"}
    assert request.headers["accept"] == "image/png"


@pytest.mark.asyncio
async def test_charge_statistics_and_sessions(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(
        json_response(
            {
                "description": "December 2021",
                "optStateType": "OPT_IN_WITH_SESSIONS",
                "statistics": {"totalEnergyCharged": 173, "numberOfChargingSessions": 13},
            }
        ),
        json_response(
            {
                "chargingSessions": {
                    "totalValue": "189 kWh",
                    "sessions": [
                        {
                            "id": "2021-12-21T16:46:02Z_128fa4af",
                            "title": "Yesterday 17:46",
                            "subtitle": "Uferstraße 4B • 7h 45min • -- EUR",
                            "energyCharged": "~ 31 kWh",
                            "sessionStatus": "FINISHED",
                            "isPublic": False,
                        }
                    ],
                }
            }
        ),
    )
    proxy = MyBmwProxy(transport, CONFIG)
    now = datetime(2021, 12, 22, 8, 30, 5, 123000, tzinfo=timezone.utc)

    statistics = await proxy.request_charge_statistics("VIN1", "bmw", now=now)
    sessions = await proxy.request_charge_sessions("VIN1", "bmw")

    assert statistics is not None
    assert statistics.statistics.total_energy_charged == 173
    assert statistics.statistics.number_of_charging_sessions == 13
    assert transport.requests[0].params == {"vin": "VIN1", "currentDate": "2021-12-22T08:30:05.000123"}
    assert sessions is not None
    assert sessions.charging_sessions.sessions[0].energy_charged == "~ 31 kWh"
    assert transport.requests[1].params["maxResults"] == "40"


@pytest.mark.asyncio
async def test_remote_service_polls_until_final(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(
        json_response({"eventId": "event-1", "creationTime": "2022-01-01T10:00:00Z"}),
        json_response({"eventStatus": "PENDING"}),
        json_response({"eventStatus": "EXECUTED"}),
    )
    proxy = MyBmwProxy(transport, CONFIG)

    status = await proxy.run_remote_service("VIN1", "bmw", RemoteService.LIGHT_FLASH, poll_interval=0)

    assert status is not None and status.event_status == "EXECUTED"
    execute, first_poll, second_poll = transport.requests
    assert execute.method == "POST"
    assert execute.url == "https://cocoapi.bmwgroup.com/eadrax-vrccs/v2/presentation/remote-commands/VIN1/light-flash"
    assert execute.data == "{}"
    assert first_poll.url.endswith("remote-commands/eventStatus")
    assert first_poll.params == {"eventId": "event-1"}


@pytest.mark.asyncio
async def test_remote_service_gives_up_after_attempts(transport: FakeTransport, logged_in: list[int]) -> None:
    transport.queue(
        json_response({"eventId": "event-2"}),
        json_response({"eventStatus": "PENDING"}),
        json_response({"eventStatus": "PENDING"}),
    )
    proxy = MyBmwProxy(transport, CONFIG)

    status = await proxy.run_remote_service(
        "VIN1", "bmw", RemoteService.DOOR_LOCK, poll_attempts=2, poll_interval=0
    )

    assert status is not None and not status.is_final
    assert len(transport.requests) == 3
