import pickle

from cqbot.exceptions import SenderError, TransportError
from cqbot.invoker import ActionInvoker
from cqbot.models import ActionResponse
from tests.base import *
from tests.fake import FakeTransport, failed, ok


def make_invoker(responses) -> tuple[ActionInvoker, FakeTransport]:
    transport = FakeTransport(responses)
    invoker = ActionInvoker(transport)
    invoker.self_id = 10086
    return invoker, transport


async def test_success() -> None:
    invoker, transport = make_invoker(
        {"get_group_info": ok({"group_id": 1, "group_name": "g", "member_count": 3})}
    )
    data = await invoker.invoke("get_group_info", {"groupId": 1, "noCache": True})
    assert data == {"groupId": 1, "groupName": "g", "memberCount": 3}
    assert transport.requests == [("get_group_info", {"group_id": 1, "no_cache": True})]


async def test_silent_success() -> None:
    invoker, _ = make_invoker({"get_status": ok({"good": True})})
    assert await invoker.invoke("get_status", silent=True) is None


async def test_empty_params() -> None:
    invoker, transport = make_invoker({})
    await invoker.invoke("get_group_list")
    assert transport.requests == [("get_group_list", {})]


async def test_negative_retcode() -> None:
    params = {"groupId": 1, "userId": 2}
    for silent in (False, True):
        invoker, _ = make_invoker({"set_group_kick": failed(-1)})
        with pt.raises(SenderError) as info:
            await invoker.invoke("set_group_kick", params, silent=silent)
        e = info.value
        assert e.params == params
        assert e.code == -1
        assert e.action == e.url == "set_group_kick"
        assert e.self_id == 10086
        assert str(e) == (
            "Error when trying to send to set_group_kick, "
            'args: {"groupId": 1, "userId": 2}, retcode: -1'
        )


async def test_large_retcode() -> None:
    invoker, _ = make_invoker({"get_msg": failed(100)})
    with pt.raises(SenderError) as info:
        await invoker.invoke("get_msg", {"messageId": 5})
    assert info.value.code == 100
    assert info.value.params == {"messageId": 5}


async def test_retcode_one() -> None:
    invoker, _ = make_invoker({"get_msg": {"status": "async", "retcode": 1, "data": {"x": 1}}})
    assert await invoker.invoke("get_msg", {"messageId": 5}) is None


async def test_invoke_async() -> None:
    invoker, transport = make_invoker(
        {"delete_msg_async": {"status": "async", "retcode": 1, "data": None}}
    )
    assert await invoker.invoke_async("delete_msg", {"messageId": 9}) is None
    assert transport.requests == [("delete_msg_async", {"message_id": 9})]


async def test_invoke_async_failed() -> None:
    invoker, _ = make_invoker({"delete_msg_async": failed(-2)})
    with pt.raises(SenderError) as info:
        await invoker.invoke_async("delete_msg", {"messageId": 9})
    assert info.value.action == "delete_msg_async"


async def test_transport_error() -> None:
    invoker, _ = make_invoker({"get_status": TransportError("closed")})
    with pt.raises(TransportError):
        await invoker.invoke("get_status")


async def test_sender_error_readonly() -> None:
    e = SenderError({"flag": "abc"}, "set_friend_add_request", 102, "1")
    with pt.raises(AttributeError):
        e.code = 1  # type: ignore[misc]
    with pt.raises(TypeError):
        e.params["flag"] = "x"  # type: ignore[index]
    e2 = pickle.loads(pickle.dumps(e))
    assert (e2.params, e2.action, e2.code, e2.self_id) == (e.params, e.action, e.code, e.self_id)
    assert e.pretty_err.endswith(str(e))


async def test_response_model() -> None:
    resp = ActionResponse.model_validate(
        {"status": "ok", "retcode": 0, "data": [1], "echo": "3", "wording": "extra"}
    )
    assert resp.is_ok() and resp.data == [1] and resp.echo == "3"
    assert not ActionResponse.model_validate({"status": "failed", "retcode": 100}).is_ok()
