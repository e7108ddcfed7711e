from cqbot.actions import (
    METHOD_TABLE,
    OPERATIONS,
    ActionMethods,
    MethodDescriptor,
    MethodKind,
    build_methods,
)
from tests.base import *
from tests.fake import make_bot, ok


async def test_operation_names() -> None:
    assert OPERATIONS["get_vip_info"].wire_name == "_get_vip_info"
    assert OPERATIONS["send_group_notice_async"].wire_name == "_send_group_notice"
    assert "delete_msg" in OPERATIONS and "delete_msg_async" in OPERATIONS
    assert "get_msg" in OPERATIONS and "get_msg_async" not in OPERATIONS
    assert "can_send_image_async" not in OPERATIONS
    assert len(OPERATIONS) == len(METHOD_TABLE) + sum(
        1 for d in METHOD_TABLE if d.kind is MethodKind.FIRE_AND_FORGET
    )
    for name in OPERATIONS:
        assert hasattr(ActionMethods, name)


async def test_build_is_pure() -> None:
    a, b = build_methods(METHOD_TABLE), build_methods(METHOD_TABLE)
    assert a.keys() == b.keys()
    assert a["get_msg"] is not b["get_msg"]


async def test_bad_table() -> None:
    with pt.raises(ValueError):
        MethodDescriptor("get_cookies", ("domain",), MethodKind.EXTRACTING)
    with pt.raises(ValueError):
        build_methods((MethodDescriptor("get_msg"), MethodDescriptor("_get_msg")))


async def test_awaited() -> None:
    bot, transport = make_bot({"get_group_list": ok([{"group_id": 1, "group_name": "a"}])})
    assert await bot.get_group_list() == [{"groupId": 1, "groupName": "a"}]
    assert transport.requests == [("get_group_list", {})]


async def test_zip_params() -> None:
    bot, transport = make_bot()
    await bot.get_group_member_info(1, 2)
    await bot.get_group_member_info(1, user_id=2, no_cache=True)
    await bot.get_group_member_info(group_id=3, userId=4)
    assert transport.requests == [
        ("get_group_member_info", {"group_id": 1, "user_id": 2}),
        ("get_group_member_info", {"group_id": 1, "user_id": 2, "no_cache": True}),
        ("get_group_member_info", {"group_id": 3, "user_id": 4}),
    ]


async def test_bad_args() -> None:
    bot, transport = make_bot()
    with pt.raises(TypeError):
        await bot.get_group_info(1, True, "extra")
    with pt.raises(TypeError):
        await bot.get_group_info(1, card="x")
    with pt.raises(TypeError):
        await bot.get_group_info(1, group_id=1)
    assert transport.requests == []


async def test_fire_and_forget() -> None:
    bot, transport = make_bot({"set_group_ban": ok({"ignored": True})})
    assert await bot.set_group_ban(1, 2, 60) is None
    assert await bot.set_group_ban_async(1, 2) is None
    assert await bot.clean_plugin_log() is None
    assert await bot.send_group_notice(1, "title", "content") is None
    assert transport.requests == [
        ("set_group_ban", {"group_id": 1, "user_id": 2, "duration": 60}),
        ("set_group_ban_async", {"group_id": 1, "user_id": 2}),
        ("clean_plugin_log", {}),
        ("_send_group_notice", {"group_id": 1, "title": "title", "content": "content"}),
    ]


async def test_extracting() -> None:
    bot, transport = make_bot(
        {
            "get_cookies": ok({"cookies": "uin=1"}),
            "get_csrf_token": ok({"token": 12345}),
            "can_send_image": ok({"yes": True}),
            "can_send_record": ok(None),
        }
    )
    assert await bot.get_cookies("qun.qq.com") == "uin=1"
    assert await bot.get_csrf_token() == 12345
    assert await bot.can_send_image() is True
    assert await bot.can_send_record() is None
    assert transport.requests[0] == ("get_cookies", {"domain": "qun.qq.com"})


async def test_experimental() -> None:
    bot, transport = make_bot({"_get_vip_info": ok({"vip_level": 3})})
    assert await bot.get_vip_info() == {"vipLevel": 3}
    await bot.set_restart(False, True)
    assert transport.requests[-1] == ("_set_restart", {"clean_log": False, "clean_cache": True})


async def test_method_meta() -> None:
    assert ActionMethods.get_msg.__name__ == "get_msg"
    assert "get_msg" in ActionMethods.get_msg.__doc__
    bot, _ = make_bot()
    assert callable(bot.delete_msg_async)
