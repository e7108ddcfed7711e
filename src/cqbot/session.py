from __future__ import annotations

from dataclasses import dataclass

from typing_extensions import Any, Awaitable, Callable, Literal, Mapping, TypeAlias

from .exceptions import DispatchError
from .naming import to_domain_case

MessageType: TypeAlias = Literal["group", "private"]
TargetType: TypeAlias = Literal["group", "user"]
ReplyChannel: TypeAlias = Callable[[Mapping[str, Any]], Awaitable[None]]


def parse_channel_id(channel_id: str) -> tuple[str, str]:
    """解析 `<targetType>:<targetId>` 形式的频道标识

    :param channel_id: 频道标识，如 `group:123`、`user:456`
    :return: (目标类型, 目标 id)
    """
    target_type, sep, target_id = channel_id.partition(":")
    if not sep or not target_type or not target_id:
        raise DispatchError(f"无效的频道标识：{channel_id!r}，应形如 '<targetType>:<targetId>'")
    return target_type, target_id


@dataclass
class OutboundSession:
    """一次消息发送尝试

    每次发送都创建新的实例。before-send hook 可以原地修改 `content`，
    `message_id` 仅在同步发送成功后被填充
    """

    message_type: MessageType
    target_type: TargetType
    target_id: str
    content: Any
    message_id: Any = None

    @property
    def channel_id(self) -> str:
        return f"{self.target_type}:{self.target_id}"


class InboundSession:
    """一个收到的上报事件

    当传输层仍持有产生该事件的请求时，`respond` 为可用的同步回复通道（快速操作），
    否则为 `None`
    """

    def __init__(self, raw: Mapping[str, Any], respond: ReplyChannel | None = None) -> None:
        self.raw = raw
        data = to_domain_case(raw)
        self.self_id: int | None = data.get("selfId")
        self.time: int | None = data.get("time")
        self.post_type: str | None = data.get("postType")
        self.message_type: str | None = data.get("messageType")
        self.sub_type: str | None = data.get("subType")
        self.message_id: int | None = data.get("messageId")
        self.user_id: int | None = data.get("userId")
        self.group_id: int | None = data.get("groupId")
        self.message: Any = data.get("message")
        self._respond = respond

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(post_type={self.post_type}, "
            f"message_type={self.message_type}, channel_id={self.channel_id})"
        )

    @property
    def respond(self) -> ReplyChannel | None:
        return self._respond

    def close_reply(self) -> None:
        """关闭同步回复通道。关闭后只能通过新的行为操作回复"""
        self._respond = None

    @property
    def channel_id(self) -> str | None:
        if self.group_id:
            return f"group:{self.group_id}"
        if self.user_id:
            return f"user:{self.user_id}"
        return None
