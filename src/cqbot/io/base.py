from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod

from typing_extensions import Any, Awaitable, Callable, Mapping, Self

from ..log import log_exc
from ..models import ActionResponse
from ..session import InboundSession

EventHandler = Callable[[InboundSession], Awaitable[None]]


class AbstractTransport(ABC):
    """传输层抽象类

    传输层负责将 wire 格式的行为操作发送给实现端，并返回对应的响应。
    请求与响应的关联（echo 标识映射表等）由传输层自行维护

    :ivar float send_interval: 发送行为操作的最小间隔（防风控）
    """

    def __init__(self, send_interval: float = 0.2, name: str | None = None) -> None:
        self.name = f"[{self.__class__.__name__}]" if name is None else name
        self.send_interval = send_interval if send_interval >= 0 else 0
        self._event_handler: EventHandler | None = None
        self._pre_send_time = time.time_ns()
        self._send_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    @abstractmethod
    async def open(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def opened(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def request(self, action: str, params: Mapping[str, Any]) -> ActionResponse:
        """发送一个行为操作，并等待响应

        :param action: 行为操作名称
        :param params: wire 格式的参数
        :return: 响应
        """
        raise NotImplementedError

    def set_event_handler(self, handler: EventHandler | None) -> None:
        """设置上报事件的处理方法

        :param handler: 接收 :class:`.InboundSession` 的异步函数
        """
        self._event_handler = handler

    async def _throttle(self) -> None:
        async with self._send_lock:
            wait_time = self.send_interval - ((time.time_ns() - self._pre_send_time) / 1e9)
            if wait_time > 0:
                await asyncio.sleep(wait_time)
            self._pre_send_time = time.time_ns()

    async def _dispatch_event(self, session: InboundSession) -> None:
        if self._event_handler is None:
            return
        try:
            await self._event_handler(session)
        except Exception as e:
            log_exc(e, msg=f"{self.name} 处理上报事件时抛出异常", obj=session.raw)
