from __future__ import annotations

import asyncio
import json
from asyncio import Future
from itertools import count

import websockets
from pydantic import ValidationError
from typing_extensions import Any, Mapping
from websockets.exceptions import ConnectionClosed

from ..exceptions import TransportError
from ..log import LogLevel, get_logger, log_exc
from ..models import ActionResponse
from ..session import InboundSession
from ..utils import truncate
from .base import AbstractTransport


class WebSocketTransport(AbstractTransport):
    """正向 WebSocket 传输层

    每个行为操作携带唯一的 echo 标识，通过 echo 标识映射表与响应关联。
    含有 `post_type` 字段的数据帧视为上报事件。只尝试建立一次连接
    """

    def __init__(self, url: str, send_interval: float = 0.2, name: str | None = None) -> None:
        super().__init__(send_interval, name)
        self.url = url
        self.conn: Any = None

        self._tasks: set[asyncio.Task] = set()
        self._echo_table: dict[str, tuple[str, Future[ActionResponse]]] = {}
        self._echo_counter = count(1)
        self._opened = False

    async def open(self) -> None:
        if self._opened:
            return
        try:
            self.conn = await websockets.connect(self.url)
        except Exception as e:
            raise TransportError(f"{self.name} 与 {self.url} 的 ws 连接建立失败：{e}") from e

        self._opened = True
        self._spawn(self._input_loop())
        get_logger().info(f"{self.name} 已连接实现端 ({self.url})")

    def opened(self) -> bool:
        return self._opened

    async def close(self) -> None:
        if not self._opened:
            return
        self._opened = False
        self.conn.close_timeout = 2
        await self.conn.close()
        await self.conn.wait_closed()
        for t in tuple(self._tasks):
            t.cancel()
        self._fail_pending("传输层已关闭")
        get_logger().info(f"{self.name} 已停止运行")

    def _spawn(self, coro: Any) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _fail_pending(self, reason: str) -> None:
        for action, fut in self._echo_table.values():
            if not fut.done():
                fut.set_exception(TransportError(f"{self.name} {reason}，行为操作 {action} 未收到响应"))
        self._echo_table.clear()

    async def _input_loop(self) -> None:
        logger = get_logger()
        while True:
            try:
                raw_str = await self.conn.recv()
                logger.generic_lazy(
                    f"{self.name} 收到数据：\n%s", lambda: truncate(str(raw_str)), level=LogLevel.DEBUG
                )
                if raw_str == "":
                    continue
                raw = json.loads(raw_str)

                if "post_type" in raw:
                    self._spawn(self._dispatch_event(InboundSession(raw)))
                    continue

                echo_id = raw.get("echo")
                if echo_id in (None, ""):
                    continue
                item = self._echo_table.pop(str(echo_id), None)
                if item is None:
                    logger.warning(f"{self.name} 收到了未知 echo 标识的响应：{echo_id}")
                    continue

                _, fut = item
                if fut.done():
                    continue
                try:
                    fut.set_result(ActionResponse.model_validate(raw))
                except ValidationError as e:
                    fut.set_exception(TransportError(f"{self.name} 无法解析响应：{e}"))

            except asyncio.CancelledError:
                raise
            except ConnectionClosed:
                logger.warning(f"{self.name} 的 ws 连接已关闭")
                self._opened = False
                self._fail_pending("ws 连接已关闭")
                break
            except Exception as e:
                log_exc(e, msg=f"{self.name} 接收数据时抛出异常", obj=truncate(str(locals())))

    async def request(self, action: str, params: Mapping[str, Any]) -> ActionResponse:
        if not self._opened:
            raise TransportError(f"{self.name} 未连接，无法发送行为操作 {action}")

        echo_id = str(next(self._echo_counter))
        fut: Future[ActionResponse] = asyncio.get_running_loop().create_future()
        self._echo_table[echo_id] = (action, fut)
        try:
            await self._throttle()
            data = {"action": action, "params": dict(params), "echo": echo_id}
            await self.conn.send(json.dumps(data, ensure_ascii=False))
        except ConnectionClosed as e:
            self._echo_table.pop(echo_id, None)
            raise TransportError(f"{self.name} 的 ws 连接已关闭") from e
        except BaseException:
            self._echo_table.pop(echo_id, None)
            raise

        try:
            return await fut
        finally:
            self._echo_table.pop(echo_id, None)
