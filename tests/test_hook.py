from cqbot.hook import HookBus, SendHook
from cqbot.session import OutboundSession
from tests.base import *


def make_session() -> OutboundSession:
    return OutboundSession("group", "group", "1", "hello")


async def test_order_and_cancel() -> None:
    bus = HookBus()
    calls: list[str] = []

    def first(session: OutboundSession) -> None:
        calls.append("first")

    async def second(session: OutboundSession) -> bool:
        calls.append("second")
        return True

    def third(session: OutboundSession) -> None:
        calls.append("third")

    for func in (first, second, third):
        bus.register(SendHook.BEFORE_SEND, func)
    assert await bus.try_intercept(make_session())
    assert calls == ["first", "second"]


async def test_no_hooks() -> None:
    bus = HookBus(tag="empty")
    assert not await bus.try_intercept(make_session())
    await bus.notify("send", make_session())


async def test_exception_logged() -> None:
    bus = HookBus()
    calls: list[str] = []

    def broken(session: OutboundSession) -> bool:
        raise ValueError("oops")

    bus.register("before-send", broken)
    bus.register("before-send", lambda s: calls.append(s.content))
    bus.register("send", broken)
    bus.register("send", lambda s: calls.append(s.channel_id))
    session = make_session()
    assert not await bus.try_intercept(session)
    await bus.notify(SendHook.SEND, session)
    assert calls == ["hello", "group:1"]


async def test_bad_type() -> None:
    bus = HookBus()
    with pt.raises(ValueError):
        bus.register("after-send", print)
