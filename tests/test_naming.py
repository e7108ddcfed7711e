from cqbot.naming import camel_case, snake_case, to_domain_case, to_wire_case
from tests.base import *


async def test_str_convert() -> None:
    assert snake_case("userId") == "user_id"
    assert snake_case("groupID") == "group_id"
    assert snake_case("autoEscape") == "auto_escape"
    assert snake_case("data-dir") == "data_dir"
    assert snake_case("message") == "message"
    assert camel_case("user_id") == "userId"
    assert camel_case("at_sender") == "atSender"
    assert camel_case("data-dir") == "dataDir"
    assert camel_case("message") == "message"


async def test_deep_convert() -> None:
    wire = {
        "group_id": 123,
        "member_list": [{"user_id": 1, "card": ""}, {"user_id": 2, "join_time": None}],
        "nested": {"msg_info": ("keep", {"read_num": 3})},
    }
    domain = to_domain_case(wire)
    assert domain == {
        "groupId": 123,
        "memberList": [{"userId": 1, "card": ""}, {"userId": 2, "joinTime": None}],
        "nested": {"msgInfo": ("keep", {"readNum": 3})},
    }
    assert to_wire_case(domain) == wire
    # 输入不被修改
    assert "group_id" in wire and "groupId" not in wire


async def test_round_trip() -> None:
    payload = [{"userId": 1, "autoEscape": False, "segments": [{"fileUrl": "a_b"}]}]
    assert to_domain_case(to_wire_case(payload)) == payload


async def test_scalar_passthrough() -> None:
    for val in ("user_id", 123, None, True, 1.5):
        assert to_wire_case(val) == val
        assert to_domain_case(val) == val
    # 字符串值不被转换
    assert to_wire_case({"message": "userId"}) == {"message": "userId"}
