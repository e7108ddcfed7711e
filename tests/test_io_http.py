import json

import aiohttp
import aiohttp.web

from cqbot.exceptions import TransportError
from cqbot.io.http import HttpTransport
from cqbot.session import InboundSession
from tests.base import *

_RealClientSession = aiohttp.ClientSession

_TEST_EVENT_DICT = {
    "time": 1725292489,
    "self_id": 123456,
    "post_type": "message",
    "message_type": "private",
    "sub_type": "friend",
    "message_id": 55,
    "message": "ping",
    "user_id": 1574260633,
}
_TEST_ECHO_DICT = {"status": "ok", "retcode": 0, "data": {"message_id": 10}}


class MockResponse:
    def __init__(self, data) -> None:
        self._data = data

    async def json(self):
        if isinstance(self._data, BaseException):
            raise self._data
        return self._data


class MockClientSession:
    def __init__(self, data=_TEST_ECHO_DICT) -> None:
        self.data = data
        self.posted: list[tuple[str, dict]] = []

    async def post(self, url, *args, **kwargs):
        if isinstance(self.data, aiohttp.ClientConnectionError):
            raise self.data
        self.posted.append((url, kwargs["json"]))
        return MockResponse(self.data)

    async def close(self):
        return


async def test_request(monkeypatch) -> None:
    mock = MockClientSession()
    monkeypatch.setattr(aiohttp, "ClientSession", lambda: mock)
    io = HttpTransport("http://localhost:5700/", send_interval=0)

    with pt.raises(TransportError):
        await io.request("send_private_msg", {})

    async with io:
        resp = await io.request("send_private_msg", {"user_id": 1, "message": "hi"})
        assert resp.data == {"message_id": 10}
        assert mock.posted == [
            ("http://localhost:5700/send_private_msg", {"user_id": 1, "message": "hi"})
        ]


async def test_request_errors(monkeypatch) -> None:
    for data in (
        {"status": "ok", "data": None},
        aiohttp.ClientConnectionError("connection refused"),
    ):
        monkeypatch.setattr(aiohttp, "ClientSession", lambda: MockClientSession(data))
        async with HttpTransport("http://localhost:5700", send_interval=0) as io:
            with pt.raises(TransportError):
                await io.request("get_status", {})


async def post_event(port: int, data) -> tuple[int, dict | None]:
    async with _RealClientSession() as session:
        async with session.post(f"http://127.0.0.1:{port}/", data=json.dumps(data)) as resp:
            if resp.status == 200:
                return resp.status, await resp.json()
            return resp.status, None


async def test_serve_quick_reply() -> None:
    io = HttpTransport("http://localhost:5700", "127.0.0.1", 19090, send_interval=0)
    received: list[InboundSession] = []

    async def handler(session: InboundSession) -> None:
        received.append(session)
        if session.message == "ping":
            await session.respond({"reply": "pong", "autoEscape": False, "atSender": False})
        elif session.message == "boom":
            raise RuntimeError("handler failed")

    io.set_event_handler(handler)
    async with io:
        status, data = await post_event(19090, _TEST_EVENT_DICT)
        assert status == 200
        assert data == {"reply": "pong", "auto_escape": False, "at_sender": False}

        status, data = await post_event(19090, _TEST_EVENT_DICT | {"message": "other"})
        assert status == 204

        status, data = await post_event(19090, _TEST_EVENT_DICT | {"message": "boom"})
        assert status == 204

        status, data = await post_event(19090, {"status": "ok", "retcode": 0})
        assert status == 204

    assert len(received) == 3
    assert all(s.respond is None for s in received)
