import json
from types import MappingProxyType

from typing_extensions import Any, Mapping


class BotException(Exception):
    """cqbot 异常基类"""

    def __init__(self, *args: object):
        super().__init__(*args)
        if not len(args):
            self.err = ""
        elif len(args) == 1:
            self.err = str(args[0])
        else:
            self.err = str(args)
        self.pretty_err = f"[{self.__class__.__module__}.{self.__class__.__qualname__}] {self.err}"

    def __str__(self) -> str:
        return self.err


class ConfigError(BotException):
    """cqbot 配置异常"""


class TransportError(BotException):
    """cqbot 传输层异常：连接未建立、连接断开，或响应无法解析"""


class DispatchError(BotException):
    """cqbot 消息分发异常"""


class SenderError(BotException):
    """行为操作的远端执行失败

    由调用者直接捕获。实例构造后只读，所有属性通过只读属性暴露
    """

    def __init__(
        self, params: Mapping[str, Any], action: str, retcode: int, self_id: str | int | None
    ) -> None:
        self._params = MappingProxyType(dict(params))
        self._action = action
        self._code = retcode
        self._self_id = self_id
        super().__init__(
            f"Error when trying to send to {action}, args: {_dump(params)}, retcode: {retcode}"
        )

    @property
    def params(self) -> Mapping[str, Any]:
        """转换为 wire 格式前的原始参数"""
        return self._params

    @property
    def action(self) -> str:
        return self._action

    @property
    def url(self) -> str:
        return self._action

    @property
    def code(self) -> int:
        return self._code

    @property
    def self_id(self) -> str | int | None:
        return self._self_id

    def __reduce__(self) -> tuple:
        return (self.__class__, (dict(self._params), self._action, self._code, self._self_id))


def _dump(params: Mapping[str, Any]) -> str:
    try:
        return json.dumps(params, ensure_ascii=False, default=repr)
    except (TypeError, ValueError):
        return repr(params)
