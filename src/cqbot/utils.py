import inspect
from functools import wraps

from typing_extensions import Any, Awaitable, Callable, Coroutine, ParamSpec, TypeVar

P = ParamSpec("P")
T = TypeVar("T")


def to_async(
    obj: Callable[P, T] | Callable[P, Awaitable[T]],
) -> Callable[P, Coroutine[Any, Any, T]]:
    """异步包装函数

    将一个同步或异步可调用对象装饰为异步函数

    :param obj: 需要转换的可调用对象
    :return: 异步函数
    """
    if inspect.iscoroutinefunction(obj):
        return obj

    @wraps(obj)
    async def to_async_wrapped(*args: P.args, **kwargs: P.kwargs) -> T:
        ret = obj(*args, **kwargs)
        if inspect.isawaitable(ret):
            return await ret
        return ret  # type: ignore[return-value]

    return to_async_wrapped


def truncate(s: str, placeholder: str = "...", length: int = 300) -> str:
    """截断字符串

    :param s: 需要截断的字符串
    :param placeholder: 截断后的占位符
    :param length: 截断长度
    :return: 截断后的字符串
    """
    s = str(s)
    return s if len(s) <= length else s[:length] + placeholder
