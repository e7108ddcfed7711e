from .base import AbstractTransport, EventHandler
from .http import HttpTransport
from .ws import WebSocketTransport
