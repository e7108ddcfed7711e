from .actions import METHOD_TABLE, OPERATIONS, MethodDescriptor, MethodKind, build_methods
from .bot import CQBot
from .config import BotConfig
from .exceptions import (
    BotException,
    ConfigError,
    DispatchError,
    SenderError,
    TransportError,
)
from .hook import HookBus, SendHook
from .io import AbstractTransport, HttpTransport, WebSocketTransport
from .log import Logger, LogLevel, get_logger, set_global_logger
from .meta import MetaInfo, __version__
from .models import ActionResponse, Approve, BotStatus, Reject, to_version
from .naming import camel_case, snake_case, to_domain_case, to_wire_case
from .session import InboundSession, OutboundSession, parse_channel_id
