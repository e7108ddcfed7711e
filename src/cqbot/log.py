from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from enum import Enum
from logging import CRITICAL, DEBUG, ERROR, INFO, WARNING

import better_exceptions
import colorlog
from rich.pretty import pretty_repr
from typing_extensions import Any, Callable, Literal

# 取消 better-exceptions 的猴子补丁
logging._loggerClass = (  # type:ignore[attr-defined]
    logging.Logger
)


class LogLevel(int, Enum):
    """日志等级枚举"""

    CRITICAL = CRITICAL
    ERROR = ERROR
    WARNING = WARNING
    INFO = INFO
    DEBUG = DEBUG

    @classmethod
    def from_name(cls, name: str) -> LogLevel:
        name = name.upper()
        if name == "WARN":
            name = "WARNING"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"无效的日志等级名称：{name}") from None


LOG_COLOR_CONFIG = {
    "DEBUG": "purple",
    "INFO": "white",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def _format_exc(exc_info: Any) -> str:
    return "".join(better_exceptions.format_exception(*exc_info)).rstrip("\n")


class Logger(logging.Logger):
    """cqbot 内置日志器

    `debug`, `info`, `warning`, `error`, `critical`, `exception`
    等接口与 :class:`logging.Logger` 用法完全一致
    """

    def __init__(
        self,
        name: str = "[cqbot]",
        level: LogLevel = LogLevel.INFO,
        file_level: LogLevel = LogLevel.DEBUG,
        to_console: bool = True,
        to_dir: str | None = None,
        add_tag: bool = True,
    ) -> None:
        """初始化日志器

        :param name: 日志器的名称（唯一）
        :param level: 日志等级
        :param file_level: 日志文件的日志等级
        :param to_console: 是否输出到控制台
        :param to_dir: 保存日志文件的目录，为空则不保存文件
        :param add_tag: 记录日志时是否标识日志器名称
        """
        super().__init__(name, LogLevel.DEBUG)
        self._handler_arr: list[logging.Handler] = []
        self._no_tag = not add_tag

        if to_console:
            handler = logging.StreamHandler()
            handler.setFormatter(self._console_fmt(name, self._no_tag))
            handler.setLevel(level)
            self.addHandler(handler)
            self._handler_arr.append(handler)

        if to_dir is not None:
            self._add_file_handler(to_dir, name, file_level)

    def _add_file_handler(self, log_dir: str, name: str, level: LogLevel) -> logging.Handler:
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, f"{name.strip('[]')}.log"),
            maxBytes=1024 * 1024,
            backupCount=10,
            encoding="UTF-8",
        )
        handler.setLevel(level)
        handler.setFormatter(self._file_fmt(name, self._no_tag))
        self.addHandler(handler)
        self._handler_arr.append(handler)
        return handler

    @staticmethod
    def _console_fmt(name: str, no_tag: bool = False) -> logging.Formatter:
        fmt_arr = [
            "%(cyan)s%(asctime)s.%(msecs)03d%(reset)s",
            "%(log_color)s%(levelname)-7s%(reset)s",
            "%(blue)s%(module)s%(reset)s:%(cyan)s%(lineno)d%(reset)s",
        ]
        if not no_tag:
            fmt_arr.insert(1, f"%(purple)s{name}%(reset)s")
        fmt_s = " | ".join(fmt_arr) + " - %(log_color)s%(message)s%(reset)s"

        fmt = colorlog.ColoredFormatter(
            fmt_s, datefmt="%Y-%m-%d %H:%M:%S", reset=True, log_colors=LOG_COLOR_CONFIG
        )
        fmt.formatException = _format_exc  # type: ignore[method-assign]
        return fmt

    @staticmethod
    def _file_fmt(name: str, no_tag: bool = False) -> logging.Formatter:
        fmt_arr = ["%(asctime)s.%(msecs)03d", "%(levelname)-7s", "%(module)s:%(lineno)d"]
        if not no_tag:
            fmt_arr.insert(1, name)
        fmt = logging.Formatter(
            fmt=" | ".join(fmt_arr) + " - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
        fmt.formatException = _format_exc  # type: ignore[method-assign]
        return fmt

    def set_level(self, level: LogLevel) -> None:
        """设置日志等级

        日志等级自动应用于包含的所有 handler（但输出日志到文件的 handler 除外）

        :param level: 日志等级
        """
        super().setLevel(level)
        for handler in self._handler_arr:
            if not isinstance(handler, logging.handlers.RotatingFileHandler):
                handler.setLevel(level)

    def generic_lazy(
        self,
        msg: str,
        *arg_getters: Callable[[], str],
        level: LogLevel,
        with_exc: bool = False,
    ) -> None:
        """懒惰日志方法

        日志等级未启用时，`arg_getters` 不会被调用

        :param msg: 日志消息，可使用 %s 指定稍后填充的参数
        :param arg_getters: 填充消息 %s 位置的填充函数
        :param level: 日志等级
        :param with_exc: 是否记录异常栈信息
        """
        if not self._enabled_on_handlers(level):
            return
        exc = sys.exc_info() if with_exc else None
        self._log(level, msg, tuple(g() for g in arg_getters), exc_info=exc, stacklevel=2)

    def generic_obj(
        self,
        msg: str,
        obj: Any,
        *arg_getters: Callable[[], str],
        level: LogLevel = LogLevel.INFO,
    ) -> None:
        """记录对象的日志方法

        :param msg: 附加的日志消息，可使用 %s 指定稍后填充的参数
        :param obj: 需要被日志记录的对象
        :param arg_getters: 填充消息 %s 位置的填充函数
        :param level: 日志等级
        """
        self.generic_lazy(
            msg + "\n%s", *arg_getters, lambda: pretty_repr(obj, max_string=1000), level=level
        )

    def _enabled_on_handlers(self, level: int) -> bool:
        if not self.isEnabledFor(level):
            return False
        return any(level >= h.level for h in self._handler_arr) or not self._handler_arr


_LOGGER: Logger = Logger()


def get_logger() -> Logger:
    """获取当前的全局日志器

    :return: 日志器
    """
    return _LOGGER


def set_global_logger(logger: Logger) -> None:
    """设置全局日志器

    :param logger: 日志器
    """
    global _LOGGER
    _LOGGER = logger


def log_exc(
    exc: BaseException, msg: str, obj: Any = None, level: Literal["error", "warning"] = "error"
) -> None:
    """记录异常及相关变量信息

    :param exc: 异常对象
    :param msg: 日志消息
    :param obj: 需要一并记录的相关变量
    :param level: 日志等级
    """
    logger = get_logger()
    logger.log(
        ERROR if level == "error" else WARNING,
        msg,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    if obj is not None:
        logger.generic_obj("相关变量信息：", obj, level=LogLevel.ERROR)
