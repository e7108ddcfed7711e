from __future__ import annotations

import os

import toml
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from typing_extensions import Any, Literal, Self

from .exceptions import ConfigError
from .log import LogLevel, get_logger

PREFER_SYNC_ENV = "CQBOT_PREFER_SYNC"

DEFAULT_CONFIG_TEXT = """\
# cqbot 配置文件

# 是否优先使用同步发送。开启后，回复将通过新的行为操作发送并返回消息 id，
# 而不是通过 HTTP 上报请求的快速操作回复
prefer_sync = false

# 连接方式："ws" 为正向 WebSocket，"http" 为 HTTP API
connect_mode = "ws"
connect_url = "ws://127.0.0.1:8080"

# 仅在 http 连接方式下有效。填写后启动上报事件接收服务
# serve_host = "127.0.0.1"
# serve_port = 8081

# 发送行为操作的最小间隔（秒）
send_interval = 0.2

# 日志等级：DEBUG, INFO, WARNING, ERROR, CRITICAL
log_level = "INFO"
# 日志文件保存目录，不填则不保存
# log_dir = "./logs"
"""

_TRUE_STRS = ("1", "true", "yes", "on")
_FALSE_STRS = ("0", "false", "no", "off", "")


class BotConfig(BaseModel):
    """bot 配置"""

    model_config = ConfigDict(extra="forbid")

    prefer_sync: bool = False
    connect_mode: Literal["ws", "http"] = "ws"
    connect_url: str = "ws://127.0.0.1:8080"
    serve_host: str | None = None
    serve_port: int | None = None
    send_interval: float = 0.2
    log_level: str = "INFO"
    log_dir: str | None = None

    @model_validator(mode="after")
    def _check(self) -> Self:
        LogLevel.from_name(self.log_level)
        if self.send_interval < 0:
            raise ValueError("send_interval 不能为负数")
        if (self.serve_host is None) != (self.serve_port is None):
            raise ValueError("serve_host 与 serve_port 必须同时填写")
        return self

    @property
    def level(self) -> LogLevel:
        return LogLevel.from_name(self.log_level)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BotConfig:
        """从字典构造配置，并应用环境变量覆盖

        :param data: 配置项字典
        :return: 配置对象
        """
        data = dict(data)
        env_val = os.environ.get(PREFER_SYNC_ENV)
        if env_val is not None:
            data["prefer_sync"] = _parse_bool(env_val)

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"配置内容无效：{e}") from e

    @classmethod
    def load(cls, path: str) -> BotConfig:
        """从 toml 配置文件加载配置

        配置文件不存在时，将自动生成默认配置文件，并使用默认配置

        :param path: 配置文件路径
        :return: 配置对象
        """
        if not os.path.exists(path):
            dir_path = os.path.dirname(path)
            if dir_path and not os.path.exists(dir_path):
                os.makedirs(dir_path)
            with open(path, "w", encoding="utf-8") as fp:
                fp.write(DEFAULT_CONFIG_TEXT)
            get_logger().info(f"未检测到配置文件，已自动生成：{path}")
            return cls.from_dict({})

        try:
            with open(path, encoding="utf-8") as fp:
                data = toml.load(fp)
        except (OSError, toml.TomlDecodeError) as e:
            raise ConfigError(f"无法读取配置文件 {path}：{e}") from e
        return cls.from_dict(data)


def _parse_bool(val: str) -> bool:
    val = val.strip().lower()
    if val in _TRUE_STRS:
        return True
    if val in _FALSE_STRS:
        return False
    raise ConfigError(f"环境变量 {PREFER_SYNC_ENV} 的值无效：{val!r}")
