from __future__ import annotations

from enum import Enum

from typing_extensions import Any, Awaitable, Callable

from .log import LogLevel, get_logger
from .session import OutboundSession
from .utils import to_async

HookFunc = Callable[[OutboundSession], Any | Awaitable[Any]]


class SendHook(Enum):
    """消息发送相关的 hook 类型"""

    BEFORE_SEND = "before-send"
    SEND = "send"


class HookRunner:
    def __init__(self, type: SendHook, func: HookFunc) -> None:
        self.type = type
        self.callback = to_async(func)

    async def run(self, session: OutboundSession) -> Any:
        try:
            return await self.callback(session)
        except Exception:
            logger = get_logger()
            logger.exception(f"{self.type.value} 类型的 hook 方法 {self.callback} 发生异常")
            logger.generic_obj("异常点局部变量：", locals(), level=LogLevel.ERROR)
            return None


class HookBus:
    """消息发送的 hook 总线

    hook 方法均在发送调用内按注册顺序依次等待执行，不会创建新的任务。
    hook 方法发生的异常会被记录，但不会中断发送
    """

    def __init__(self, tag: str | None = None) -> None:
        self._hooks: dict[SendHook, list[HookRunner]] = {t: [] for t in SendHook}
        self._tag = tag

    def register(self, hook_type: SendHook | str, hook_func: HookFunc) -> None:
        """注册 hook 方法

        `before-send` 类型的 hook 方法可原地修改 `session.content`，
        返回真值则取消本次发送

        :param hook_type: hook 类型
        :param hook_func: 同步或异步的 hook 方法
        """
        hook_type = SendHook(hook_type)
        self._hooks[hook_type].append(HookRunner(hook_type, hook_func))

    def on(self, hook_type: SendHook | str) -> Callable[[HookFunc], HookFunc]:
        """注册 hook 方法的装饰器形式

        :param hook_type: hook 类型
        :return: 装饰器
        """

        def wrapped(func: HookFunc) -> HookFunc:
            self.register(hook_type, func)
            return func

        return wrapped

    def _debug(self, hook_type: SendHook) -> None:
        msg = f"<{hook_type.value}>"
        msg = f"开始 {self._tag} 的 hook: {msg}" if self._tag else f"开始 hook: {msg}"
        get_logger().debug(msg)

    async def try_intercept(self, session: OutboundSession) -> bool:
        """依次运行 `before-send` hook 方法

        :param session: 本次发送的会话
        :return: 是否取消本次发送
        """
        self._debug(SendHook.BEFORE_SEND)
        for runner in self._hooks[SendHook.BEFORE_SEND]:
            if await runner.run(session):
                get_logger().debug(f"发送被 hook 方法 {runner.callback} 取消")
                return True
        return False

    async def notify(self, hook_type: SendHook | str, session: OutboundSession) -> None:
        """依次运行指定类型的 hook 方法，忽略返回值

        :param hook_type: hook 类型
        :param session: 相关的会话
        """
        hook_type = SendHook(hook_type)
        self._debug(hook_type)
        for runner in self._hooks[hook_type]:
            await runner.run(session)
