from __future__ import annotations

from typing_extensions import Any, Awaitable, Callable, Literal, Mapping, Self

from .actions import ActionMethods
from .config import BotConfig
from .exceptions import DispatchError
from .hook import HookBus, SendHook
from .invoker import ActionInvoker
from .io.base import AbstractTransport
from .io.http import HttpTransport
from .io.ws import WebSocketTransport
from .log import Logger, set_global_logger
from .models import Approve, BotStatus, Reject, RequestDecision
from .session import (
    InboundSession,
    MessageType,
    OutboundSession,
    TargetType,
    parse_channel_id,
)
from .utils import to_async

InboundHandler = Callable[[InboundSession], Any | Awaitable[Any]]
RequestInfo = RequestDecision | bool | str


def _friend_decision(info: RequestInfo) -> RequestDecision:
    if isinstance(info, (Approve, Reject)):
        return info
    if isinstance(info, str):
        return Approve(remark=info)
    return Approve() if info else Reject()


def _group_decision(info: RequestInfo) -> RequestDecision:
    if isinstance(info, (Approve, Reject)):
        return info
    if isinstance(info, str):
        return Reject(reason=info)
    return Approve() if info else Reject()


class CQBot(ActionInvoker, ActionMethods):  # type: ignore[misc, valid-type]
    """CQHTTP 协议的 bot

    除了此处定义的方法，所有由描述符表生成的行为操作方法（如 `get_group_list`、
    `delete_msg`、`delete_msg_async`）也可以直接调用
    """

    def __init__(
        self,
        transport: AbstractTransport,
        config: BotConfig | None = None,
        hooks: HookBus | None = None,
        logger: Logger | None = None,
    ) -> None:
        """初始化 bot

        :param transport: 传输层
        :param config: bot 配置，为空则使用默认配置
        :param hooks: 发送 hook 总线，为空则创建新的总线
        :param logger: 日志器，为空则使用全局日志器
        """
        super().__init__(transport, logger)
        self.config = config if config is not None else BotConfig()
        self.hooks = hooks if hooks is not None else HookBus(tag=transport.name)
        self.ready = False
        self._inbound_handler: Callable[[InboundSession], Awaitable[Any]] | None = None
        transport.set_event_handler(self._handle_inbound)

    @classmethod
    def from_config(cls, config: BotConfig, hooks: HookBus | None = None) -> CQBot:
        """根据配置构造传输层与日志器，并创建 bot

        构造的日志器同时被设置为全局日志器，hook 与传输层的日志也会输出到配置的日志目录

        :param config: bot 配置
        :param hooks: 发送 hook 总线
        :return: bot
        """
        transport: AbstractTransport
        if config.connect_mode == "ws":
            transport = WebSocketTransport(config.connect_url, config.send_interval)
        else:
            transport = HttpTransport(
                config.connect_url, config.serve_host, config.serve_port, config.send_interval
            )
        logger = Logger(level=config.level, to_dir=config.log_dir)
        set_global_logger(logger)
        return cls(transport, config, hooks, logger)

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """打开传输层，获取 bot 自身的 id 并标记为就绪

        获取 id 失败时，传输层会被关闭，异常继续抛出
        """
        await self.transport.open()
        try:
            self.self_id = await self.get_self_id()
        except BaseException:
            await self.transport.close()
            raise
        self.ready = True
        self.logger.info(f"bot 已就绪，self_id: {self.self_id}")

    async def stop(self) -> None:
        self.ready = False
        await self.transport.close()
        self.logger.info("bot 已停止运行")

    def on_event(self, handler: InboundHandler) -> InboundHandler:
        """设置上报事件的处理方法，可作为装饰器使用

        :param handler: 接收 :class:`.InboundSession` 的同步或异步函数
        :return: 原函数
        """
        self._inbound_handler = to_async(handler)
        return handler

    async def _handle_inbound(self, session: InboundSession) -> None:
        if self._inbound_handler is not None:
            await self._inbound_handler(session)

    async def send(self, channel_id: str, content: Any) -> Any:
        """向频道同步发送消息

        :param channel_id: `<targetType>:<targetId>` 形式的频道标识
        :param content: 消息内容
        :return: 消息 id，发送被取消或内容为空时返回 `None`
        """
        target_type, target_id = parse_channel_id(channel_id)
        if target_type == "group":
            return await self.send_group_msg(target_id, content)
        return await self.send_private_msg(target_id, content)

    async def send_async(self, channel_id: str, content: Any) -> None:
        """向频道异步发送消息。不会触发 `send` hook

        :param channel_id: `<targetType>:<targetId>` 形式的频道标识
        :param content: 消息内容
        """
        target_type, target_id = parse_channel_id(channel_id)
        if target_type == "group":
            await self.send_group_msg_async(target_id, content)
        else:
            await self.send_private_msg_async(target_id, content)

    async def _prepare(
        self, message_type: MessageType, target_type: TargetType, target_id: Any, content: Any
    ) -> OutboundSession | None:
        if not content:
            return None
        session = OutboundSession(message_type, target_type, str(target_id), content)
        if await self.hooks.try_intercept(session):
            return None
        return session

    @staticmethod
    def _send_params(session: OutboundSession, auto_escape: bool) -> tuple[str, dict[str, Any]]:
        if session.target_type == "group":
            action, id_key = "send_group_msg", "groupId"
        else:
            action, id_key = "send_private_msg", "userId"
        params = {id_key: session.target_id, "message": session.content, "autoEscape": auto_escape}
        return action, params

    async def _send_sync(self, session: OutboundSession, auto_escape: bool) -> Any:
        data = await self.invoke(*self._send_params(session, auto_escape))
        # retcode 1 时没有返回数据，发送结果未知
        if not data:
            return None
        session.message_id = data.get("messageId")
        await self.hooks.notify(SendHook.SEND, session)
        return session.message_id

    async def _send_async(self, session: OutboundSession, auto_escape: bool) -> None:
        await self.invoke_async(*self._send_params(session, auto_escape))

    async def send_group_msg(self, group_id: Any, content: Any, auto_escape: bool = False) -> Any:
        """发送群消息

        `before-send` hook 可以修改消息内容或取消发送。hook 方法抛出异常时，
        异常只会被记录，消息仍会被发送

        :param group_id: 群号
        :param content: 消息内容
        :param auto_escape: 是否将消息内容作为纯文本发送
        :return: 消息 id。发送被取消、内容为空或实现端未返回数据时返回 `None`
        """
        session = await self._prepare("group", "group", group_id, content)
        if session is None:
            return None
        return await self._send_sync(session, auto_escape)

    async def send_group_msg_async(
        self, group_id: Any, content: Any, auto_escape: bool = False
    ) -> None:
        """以异步方式发送群消息。不返回消息 id，也不会触发 `send` hook

        `before-send` hook 抛出异常时，消息仍会被发送

        :param group_id: 群号
        :param content: 消息内容
        :param auto_escape: 是否将消息内容作为纯文本发送
        """
        session = await self._prepare("group", "group", group_id, content)
        if session is not None:
            await self._send_async(session, auto_escape)

    async def send_private_msg(self, user_id: Any, content: Any, auto_escape: bool = False) -> Any:
        """发送私聊消息

        `before-send` hook 可以修改消息内容或取消发送。hook 方法抛出异常时，
        异常只会被记录，消息仍会被发送

        :param user_id: 对方 QQ 号
        :param content: 消息内容
        :param auto_escape: 是否将消息内容作为纯文本发送
        :return: 消息 id。发送被取消、内容为空或实现端未返回数据时返回 `None`
        """
        session = await self._prepare("private", "user", user_id, content)
        if session is None:
            return None
        return await self._send_sync(session, auto_escape)

    async def send_private_msg_async(
        self, user_id: Any, content: Any, auto_escape: bool = False
    ) -> None:
        """以异步方式发送私聊消息。不返回消息 id，也不会触发 `send` hook

        `before-send` hook 抛出异常时，消息仍会被发送

        :param user_id: 对方 QQ 号
        :param content: 消息内容
        :param auto_escape: 是否将消息内容作为纯文本发送
        """
        session = await self._prepare("private", "user", user_id, content)
        if session is not None:
            await self._send_async(session, auto_escape)

    async def reply(self, inbound: InboundSession, content: Any, auto_escape: bool = False) -> None:
        """回复一个上报事件

        配置了 `prefer_sync` 时同步发送；否则优先使用事件的同步回复通道（快速操作），
        回复通道不可用时以异步方式发送。`before-send` hook 抛出异常时，消息仍会被发送

        :param inbound: 需要回复的上报事件
        :param content: 消息内容
        :param auto_escape: 是否将消息内容作为纯文本发送
        """
        if not content:
            return

        if inbound.group_id:
            target_type: TargetType = "group"
            target_id = inbound.group_id
        elif inbound.user_id:
            target_type, target_id = "user", inbound.user_id
        else:
            raise DispatchError(f"无法确定上报事件 {inbound} 的回复目标")

        if self.config.prefer_sync:
            await self.send(f"{target_type}:{target_id}", content)
            return

        default_type = "group" if target_type == "group" else "private"
        message_type: Any = inbound.message_type or default_type
        session = await self._prepare(message_type, target_type, target_id, content)
        if session is None:
            return

        # hook 运行期间回复通道可能已经关闭
        respond = inbound.respond
        if respond is None:
            await self._send_async(session, auto_escape)
            return
        inbound.close_reply()
        await respond({"reply": session.content, "autoEscape": auto_escape, "atSender": False})

    @staticmethod
    def _anonymous_ban_params(
        group_id: Any, anonymous_or_flag: Any, duration: int | None
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"groupId": group_id}
        if duration is not None:
            params["duration"] = duration
        key = "flag" if isinstance(anonymous_or_flag, str) else "anonymous"
        params[key] = anonymous_or_flag
        return params

    async def set_group_anonymous_ban(
        self, group_id: Any, anonymous_or_flag: str | Mapping[str, Any], duration: int | None = None
    ) -> None:
        """禁言群匿名用户

        :param group_id: 群号
        :param anonymous_or_flag: 匿名用户的 flag 字符串，或上报事件中的匿名用户对象
        :param duration: 禁言时长（秒）
        """
        params = self._anonymous_ban_params(group_id, anonymous_or_flag, duration)
        await self.invoke("set_group_anonymous_ban", params)

    async def set_group_anonymous_ban_async(
        self, group_id: Any, anonymous_or_flag: str | Mapping[str, Any], duration: int | None = None
    ) -> None:
        params = self._anonymous_ban_params(group_id, anonymous_or_flag, duration)
        await self.invoke_async("set_group_anonymous_ban", params)

    @staticmethod
    def _friend_request_params(flag: str, info: RequestInfo) -> dict[str, Any]:
        decision = _friend_decision(info)
        if isinstance(decision, Reject):
            return {"flag": flag, "approve": False}
        if decision.remark is not None:
            return {"flag": flag, "approve": True, "remark": decision.remark}
        return {"flag": flag, "approve": True}

    @staticmethod
    def _group_request_params(
        flag: str, sub_type: Literal["add", "invite"], info: RequestInfo
    ) -> dict[str, Any]:
        decision = _group_decision(info)
        if isinstance(decision, Approve):
            return {"flag": flag, "subType": sub_type, "approve": True}
        if decision.reason is not None:
            return {"flag": flag, "subType": sub_type, "approve": False, "reason": decision.reason}
        return {"flag": flag, "subType": sub_type, "approve": False}

    async def set_friend_add_request(self, flag: str, info: RequestInfo = True) -> None:
        """处理加好友请求

        :param flag: 请求的 flag
        :param info: :class:`.Approve` 或 :class:`.Reject`。
            也可以是布尔值（是否同意），或字符串（同意并设置备注）
        """
        await self.invoke("set_friend_add_request", self._friend_request_params(flag, info))

    async def set_friend_add_request_async(self, flag: str, info: RequestInfo = True) -> None:
        await self.invoke_async("set_friend_add_request", self._friend_request_params(flag, info))

    async def set_group_add_request(
        self, flag: str, sub_type: Literal["add", "invite"], info: RequestInfo = True
    ) -> None:
        """处理加群请求或邀请

        :param flag: 请求的 flag
        :param sub_type: 请求类型，`add` 或 `invite`
        :param info: :class:`.Approve` 或 :class:`.Reject`。
            也可以是布尔值（是否同意），或字符串（拒绝并附带理由）
        """
        await self.invoke("set_group_add_request", self._group_request_params(flag, sub_type, info))

    async def set_group_add_request_async(
        self, flag: str, sub_type: Literal["add", "invite"], info: RequestInfo = True
    ) -> None:
        await self.invoke_async(
            "set_group_add_request", self._group_request_params(flag, sub_type, info)
        )

    async def get_message(self, channel_id: str, message_id: Any) -> dict[str, Any]:
        """获取消息，返回的字段 `time` 与 `message` 被重命名为 `timestamp` 与 `content`

        :param channel_id: 频道标识（未使用，实现端以消息 id 定位消息）
        :param message_id: 消息 id
        :return: 消息信息
        """
        data = dict(await self.get_msg(message_id) or {})
        data["timestamp"] = data.pop("time", None)
        data["content"] = data.pop("message", None)
        return data

    async def get_self_id(self) -> Any:
        data = await self.get_login_info()
        return data.get("userId") if data else None

    async def get_member_map(self, group_id: Any) -> dict[Any, str]:
        """获取群成员 id 到显示名称（群名片或昵称）的映射"""
        members = await self.get_group_member_list(group_id) or []
        return {info.get("userId"): info.get("card") or info.get("nickname") for info in members}

    async def query_health(self) -> BotStatus:
        """查询 bot 的健康状态。不会抛出异常

        :return: 健康状态
        """
        if not self.ready:
            return BotStatus.BOT_IDLE
        try:
            data = await self.invoke("get_status")
            good, online = data.get("good"), data.get("online")
        except Exception as e:
            self.logger.warning(f"查询 bot 状态失败：{e}")
            return BotStatus.NET_ERROR

        if good:
            return BotStatus.GOOD
        return BotStatus.SERVER_ERROR if online else BotStatus.BOT_OFFLINE
