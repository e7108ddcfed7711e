"""由描述符表生成的行为操作方法

每个描述符对应一个或两个方法：位置参数按声明顺序对应 wire 参数名，
也可以使用 wire 参数名作为关键字参数，省略的参数不会出现在请求中
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType, MethodType

from typing_extensions import Any, Mapping, Protocol

from .naming import camel_case, snake_case


class _Invoker(Protocol):
    async def invoke(
        self, action: str, params: Mapping[str, Any] | None = None, silent: bool = False
    ) -> Any: ...

    async def invoke_async(self, action: str, params: Mapping[str, Any] | None = None) -> None: ...


class MethodKind(Enum):
    """生成方法的种类"""

    AWAITED = "awaited"
    FIRE_AND_FORGET = "fire-and-forget"
    EXTRACTING = "extracting"


@dataclass(frozen=True)
class MethodDescriptor:
    """行为操作描述符

    :ivar wire_name: wire 格式的行为操作名称
    :ivar params: wire 格式的参数名，按位置参数顺序排列
    :ivar kind: 生成方法的种类
    :ivar extract_key: 仅 `EXTRACTING` 种类使用，需要从返回数据中取出的字段（wire 格式）
    """

    wire_name: str
    params: tuple[str, ...] = ()
    kind: MethodKind = MethodKind.AWAITED
    extract_key: str | None = None

    def __post_init__(self) -> None:
        if (self.kind is MethodKind.EXTRACTING) != (self.extract_key is not None):
            raise ValueError(f"行为操作 {self.wire_name} 的 extract_key 与种类不匹配")

    @property
    def name(self) -> str:
        return self.wire_name.lstrip("_")


def _zip_params(
    desc: MethodDescriptor, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    if len(args) > len(desc.params):
        raise TypeError(
            f"{desc.name}() 最多接受 {len(desc.params)} 个位置参数，但提供了 {len(args)} 个"
        )

    params = {camel_case(name): val for name, val in zip(desc.params, args)}
    for key, val in kwargs.items():
        wire_key = snake_case(key)
        if wire_key not in desc.params:
            raise TypeError(f"{desc.name}() 不接受参数 {key!r}")
        domain_key = camel_case(wire_key)
        if domain_key in params:
            raise TypeError(f"{desc.name}() 的参数 {key!r} 被重复提供")
        params[domain_key] = val
    return params


class _GeneratedMethod:
    def __init__(self, desc: MethodDescriptor, name: str) -> None:
        self.desc = desc
        self.__name__ = self.__qualname__ = name
        self.__doc__ = self._make_doc()
        self.__signature__ = inspect.Signature(
            [inspect.Parameter("self", inspect.Parameter.POSITIONAL_OR_KEYWORD)]
            + [
                inspect.Parameter(p, inspect.Parameter.POSITIONAL_OR_KEYWORD, default=None)
                for p in desc.params
            ]
        )

    def _make_doc(self) -> str:
        return f"调用行为操作 `{self.desc.wire_name}`"

    def __get__(self, inst: Any, owner: type | None = None) -> Any:
        if inst is None:
            return self
        return MethodType(self, inst)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.__name__}>"

    async def __call__(self, bot: _Invoker, *args: Any, **kwargs: Any) -> Any:
        raise NotImplementedError


class AwaitedMethod(_GeneratedMethod):
    """等待并返回领域格式数据的方法"""

    async def __call__(self, bot: _Invoker, *args: Any, **kwargs: Any) -> Any:
        return await bot.invoke(self.desc.wire_name, _zip_params(self.desc, args, kwargs))


class FireAndForgetMethod(_GeneratedMethod):
    """不关心返回数据的方法

    `use_async` 为真时调用行为操作的 `_async` 版本，实现端接受请求后立即返回
    """

    def __init__(self, desc: MethodDescriptor, name: str, use_async: bool = False) -> None:
        self.use_async = use_async
        super().__init__(desc, name)

    def _make_doc(self) -> str:
        if self.use_async:
            return f"以异步方式调用行为操作 `{self.desc.wire_name}`，实现端接受请求后立即返回"
        return f"调用行为操作 `{self.desc.wire_name}`，不返回数据"

    async def __call__(self, bot: _Invoker, *args: Any, **kwargs: Any) -> None:
        params = _zip_params(self.desc, args, kwargs)
        if self.use_async:
            await bot.invoke_async(self.desc.wire_name, params)
        else:
            await bot.invoke(self.desc.wire_name, params)


class ExtractingMethod(_GeneratedMethod):
    """返回数据中单个字段的方法"""

    def _make_doc(self) -> str:
        return f"调用行为操作 `{self.desc.wire_name}`，返回数据中的 `{self.desc.extract_key}` 字段"

    async def __call__(self, bot: _Invoker, *args: Any, **kwargs: Any) -> Any:
        data = await bot.invoke(self.desc.wire_name, _zip_params(self.desc, args, kwargs))
        if not data:
            return None
        return data.get(camel_case(self.desc.extract_key))  # type: ignore[arg-type]


def _fire(wire_name: str, *params: str) -> MethodDescriptor:
    return MethodDescriptor(wire_name, params, MethodKind.FIRE_AND_FORGET)


def _await(wire_name: str, *params: str) -> MethodDescriptor:
    return MethodDescriptor(wire_name, params, MethodKind.AWAITED)


def _extract(wire_name: str, key: str, *params: str) -> MethodDescriptor:
    return MethodDescriptor(wire_name, params, MethodKind.EXTRACTING, key)


METHOD_TABLE: tuple[MethodDescriptor, ...] = (
    # 消息与好友
    _fire("delete_msg", "message_id"),
    _await("get_msg", "message_id"),
    _await("get_forward_msg", "message_id"),
    _fire("send_like", "user_id", "times"),
    _fire("send_group_forward_msg", "group_id", "messages"),
    # 群管理
    _fire("set_group_kick", "group_id", "user_id", "reject_add_request"),
    _fire("set_group_ban", "group_id", "user_id", "duration"),
    _fire("set_group_whole_ban", "group_id", "enable"),
    _fire("set_group_admin", "group_id", "user_id", "enable"),
    _fire("set_group_anonymous", "group_id", "enable"),
    _fire("set_group_card", "group_id", "user_id", "card"),
    _fire("set_group_leave", "group_id", "is_dismiss"),
    _fire("set_group_special_title", "group_id", "user_id", "special_title", "duration"),
    _fire("set_group_name", "group_id", "group_name"),
    _fire("set_group_portrait", "group_id", "file", "cache"),
    _fire("_send_group_notice", "group_id", "title", "content"),
    _await("_get_group_notice", "group_id"),
    # 账号与群信息
    _await("get_login_info"),
    _await("get_stranger_info", "user_id", "no_cache"),
    _await("_get_vip_info"),
    _await("get_friend_list"),
    _await("get_group_list"),
    _await("get_group_info", "group_id", "no_cache"),
    _await("get_group_member_info", "group_id", "user_id", "no_cache"),
    _await("get_group_member_list", "group_id"),
    _await("get_group_honor_info", "group_id", "type"),
    # 凭证
    _extract("get_cookies", "cookies", "domain"),
    _extract("get_csrf_token", "token"),
    _await("get_credentials", "domain"),
    # 文件
    _await("get_record", "file", "out_format", "full_path"),
    _await("get_image", "file"),
    _extract("can_send_image", "yes"),
    _extract("can_send_record", "yes"),
    # 实现端
    _await("get_status"),
    _await("get_version_info"),
    _await("set_restart_plugin", "delay"),
    _await("_set_restart", "clean_log", "clean_cache", "clean_event"),
    _fire("clean_data_dir", "data_dir"),
    _fire("clean_plugin_log"),
)


def build_methods(table: tuple[MethodDescriptor, ...]) -> dict[str, _GeneratedMethod]:
    """从描述符表构造方法

    :param table: 描述符表
    :return: 方法名到方法对象的映射
    """
    methods: dict[str, _GeneratedMethod] = {}

    def add(method: _GeneratedMethod) -> None:
        if method.__name__ in methods:
            raise ValueError(f"方法名 {method.__name__} 重复")
        methods[method.__name__] = method

    for desc in table:
        if desc.kind is MethodKind.AWAITED:
            add(AwaitedMethod(desc, desc.name))
        elif desc.kind is MethodKind.EXTRACTING:
            add(ExtractingMethod(desc, desc.name))
        else:
            add(FireAndForgetMethod(desc, desc.name))
            add(FireAndForgetMethod(desc, f"{desc.name}_async", use_async=True))
    return methods


OPERATIONS: Mapping[str, MethodDescriptor] = MappingProxyType(
    {name: method.desc for name, method in build_methods(METHOD_TABLE).items()}
)

ActionMethods: type = type("ActionMethods", (), dict(build_methods(METHOD_TABLE)))
"""包含所有生成方法的混入类"""
