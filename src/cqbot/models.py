from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict
from typing_extensions import Any, Mapping, TypeAlias


class ActionResponse(BaseModel):
    """行为操作的响应。由传输层构造，调用方只读

    `retcode` 的含义：0 为成功，1 为已接受但未完成（异步调用），其他为失败
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    status: str
    retcode: int
    data: Any = None
    echo: str | int | None = None

    def is_ok(self) -> bool:
        return self.status == "ok"


class BotStatus(Enum):
    """bot 健康状态"""

    GOOD = 0
    BOT_OFFLINE = 1
    SERVER_ERROR = 2
    NET_ERROR = 3
    BOT_IDLE = 4


@dataclass(frozen=True)
class Approve:
    """同意请求

    :ivar remark: 好友请求通过后的备注，群请求不使用该字段
    """

    remark: str | None = None


@dataclass(frozen=True)
class Reject:
    """拒绝请求

    :ivar reason: 拒绝理由，仅群请求可用
    """

    reason: str | None = None


RequestDecision: TypeAlias = Approve | Reject


def to_version(data: Mapping[str, Any]) -> str:
    """从 `get_version_info` 的返回值生成可读的版本字符串

    :param data: 领域格式的版本信息
    :return: 如 `Go-CQHTTP/1.0.0` 或 `CoolQ/Pro CQHTTP/4.15.0`
    """
    if data.get("goCqhttp"):
        return f"Go-CQHTTP/{str(data.get('version', ''))[1:]}"

    edition = str(data.get("coolqEdition", ""))
    return f"CoolQ/{edition[:1].upper() + edition[1:]} CQHTTP/{data.get('pluginVersion', '')}"
