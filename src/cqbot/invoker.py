from __future__ import annotations

from typing_extensions import Any, Mapping

from .exceptions import SenderError
from .io.base import AbstractTransport
from .log import Logger, LogLevel, get_logger
from .naming import to_domain_case, to_wire_case


class ActionInvoker:
    """行为操作调用器

    负责参数与返回值的键名转换，以及 retcode 的分类。不做任何重试
    """

    def __init__(self, transport: AbstractTransport, logger: Logger | None = None) -> None:
        self.transport = transport
        self.self_id: str | int | None = None
        self._logger = logger

    @property
    def logger(self) -> Logger:
        return self._logger if self._logger is not None else get_logger()

    async def invoke(
        self, action: str, params: Mapping[str, Any] | None = None, silent: bool = False
    ) -> Any:
        """调用行为操作

        retcode 为 0 时返回领域格式的数据（静默调用返回 `None`）；
        retcode 为 1 时既不返回数据也不抛出异常；
        retcode 为负数或大于 1 时抛出 :class:`.SenderError`，静默调用也不例外

        :param action: wire 格式的行为操作名称
        :param params: 领域格式的参数
        :param silent: 是否为静默调用
        :return: 领域格式的响应数据
        """
        params = {} if params is None else params
        wire_params = to_wire_case(params)
        self.logger.generic_obj("[request] %s", wire_params, lambda: action, level=LogLevel.DEBUG)

        resp = await self.transport.request(action, wire_params)
        self.logger.generic_obj(
            "[response] %s", resp.model_dump(), lambda: action, level=LogLevel.DEBUG
        )

        retcode = resp.retcode
        if retcode == 0:
            return None if silent else to_domain_case(resp.data)
        if retcode == 1:
            return None
        raise SenderError(params, action, retcode, self.self_id)

    async def invoke_async(self, action: str, params: Mapping[str, Any] | None = None) -> None:
        """以异步方式调用行为操作，实现端接受请求后立即返回

        :param action: wire 格式的行为操作名称（不含 `_async` 后缀）
        :param params: 领域格式的参数
        """
        await self.invoke(f"{action}_async", params, silent=True)
