"""wire 格式（lower_snake_case）与领域格式（camelCase）之间的键名转换

所有转换都返回新的结构，不修改输入
"""

import re

from typing_extensions import Any, Callable, Mapping

_CAMEL_PAT = re.compile(r"[_-][a-z]")
_SNAKE_PAT = re.compile(r".[A-Z]+")


def _uncapitalize(s: str) -> str:
    return s[:1].lower() + s[1:]


def camel_case(name: str) -> str:
    """`user_id` -> `userId`"""
    return _CAMEL_PAT.sub(lambda m: m.group()[1:].upper(), name)


def snake_case(name: str) -> str:
    """`userId` -> `user_id`，`groupID` -> `group_id`"""
    name = _uncapitalize(name).replace("-", "_")
    return _SNAKE_PAT.sub(lambda m: m.group()[0] + "_" + m.group()[1:].lower(), name)


def _deepen(convert: Callable[[str], str]) -> Callable[[Any], Any]:
    def walk(obj: Any) -> Any:
        if isinstance(obj, Mapping):
            return {(convert(k) if isinstance(k, str) else k): walk(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [walk(v) for v in obj]
        if isinstance(obj, tuple):
            return tuple(walk(v) for v in obj)
        return obj

    return walk


to_wire_case: Callable[[Any], Any] = _deepen(snake_case)
"""递归地将映射的所有键转换为 wire 格式，标量（包括字符串与 `None`）原样返回"""

to_domain_case: Callable[[Any], Any] = _deepen(camel_case)
"""递归地将映射的所有键转换为领域格式，标量（包括字符串与 `None`）原样返回"""
