from __future__ import annotations

import asyncio
import json
from asyncio import Future

import aiohttp
import aiohttp.web
from pydantic import ValidationError
from typing_extensions import Any, Mapping

from ..exceptions import TransportError
from ..log import LogLevel, get_logger, log_exc
from ..models import ActionResponse
from ..naming import to_wire_case
from ..session import InboundSession
from ..utils import truncate
from .base import AbstractTransport


class HttpTransport(AbstractTransport):
    """HTTP 传输层

    行为操作以 `POST <url>/<action>` 的形式发送。提供 `serve_host` 与 `serve_port` 时，
    同时启动上报事件接收服务：处理上报事件期间，事件的同步回复通道保持打开，
    通过该通道的回复将作为快速操作返回给实现端，否则以 204 响应
    """

    def __init__(
        self,
        url: str,
        serve_host: str | None = None,
        serve_port: int | None = None,
        send_interval: float = 0.2,
        name: str | None = None,
    ) -> None:
        super().__init__(send_interval, name)
        self.url = url.rstrip("/")
        self.host = serve_host
        self.port = serve_port
        self.client_session: aiohttp.ClientSession
        self.serve_runner: aiohttp.web.AppRunner | None = None

        self._tasks: set[asyncio.Task] = set()
        self._opened = False
        self._lock = asyncio.Lock()

    async def open(self) -> None:
        if self._opened:
            return

        async with self._lock:
            if self._opened:
                return

            self.client_session = aiohttp.ClientSession()
            get_logger().info(f"{self.name} 已设置向实现端 ({self.url}) 发送数据")

            if self.host is not None and self.port is not None:
                app = aiohttp.web.Application()
                app.add_routes([aiohttp.web.post("/", self._respond)])
                self.serve_runner = aiohttp.web.AppRunner(app)
                await self.serve_runner.setup()
                site = aiohttp.web.TCPSite(self.serve_runner, self.host, self.port)
                await site.start()
                get_logger().info(f"{self.name} 启动了 http 服务端 (http://{self.host}:{self.port})")

            self._opened = True

    def opened(self) -> bool:
        return self._opened

    async def close(self) -> None:
        if not self._opened:
            return

        async with self._lock:
            if not self._opened:
                return

            self._opened = False
            if self.serve_runner is not None:
                await self.serve_runner.cleanup()
                self.serve_runner = None
            await self.client_session.close()
            for t in tuple(self._tasks):
                t.cancel()
            if len(self._tasks):
                await asyncio.wait(self._tasks)
            self._tasks.clear()
            get_logger().info(f"{self.name} 已停止工作")

    async def request(self, action: str, params: Mapping[str, Any]) -> ActionResponse:
        if not self._opened:
            raise TransportError(f"{self.name} 未开启，无法发送行为操作 {action}")

        await self._throttle()
        try:
            http_resp = await self.client_session.post(f"{self.url}/{action}", json=dict(params))
            raw = await http_resp.json()
        except aiohttp.ContentTypeError as e:
            raise TransportError(f"{self.name} 无法解析行为操作 {action} 的响应") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{self.name} 发送行为操作 {action} 失败：{e}") from e

        try:
            return ActionResponse.model_validate(raw)
        except ValidationError as e:
            raise TransportError(f"{self.name} 无法解析行为操作 {action} 的响应：{e}") from e

    async def _respond(self, request: aiohttp.web.Request) -> aiohttp.web.Response:
        data = await request.content.read()
        if data == b"":
            return aiohttp.web.Response(status=400)

        try:
            raw = json.loads(data.decode())
        except ValueError as e:
            log_exc(e, msg=f"{self.name} 接收数据时抛出异常", obj=truncate(str(data)))
            return aiohttp.web.Response(status=400)

        get_logger().generic_lazy(
            f"{self.name} 收到数据：\n%s", lambda: truncate(str(raw)), level=LogLevel.DEBUG
        )
        if not isinstance(raw, dict) or "post_type" not in raw:
            return aiohttp.web.Response(status=204)

        reply_fut: Future[Mapping[str, Any]] = asyncio.get_running_loop().create_future()

        async def reply(payload: Mapping[str, Any]) -> None:
            if reply_fut.done():
                raise TransportError(f"{self.name} 的同步回复通道已关闭")
            reply_fut.set_result(payload)

        session = InboundSession(raw, reply)
        task = asyncio.create_task(self._dispatch_event(session))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        try:
            await asyncio.wait({task, reply_fut}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            session.close_reply()

        if reply_fut.done() and not reply_fut.cancelled():
            return aiohttp.web.json_response(to_wire_case(reply_fut.result()))
        reply_fut.cancel()
        return aiohttp.web.Response(status=204)
