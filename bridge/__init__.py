"""Host/UI message bridge"""

from .message_bridge import MessageBridge, UISurface
from .messages import COMMAND_TYPES, Command, HostMessage, HostMessageType, parse_command
from .surface import WebSocketSurface

__all__ = [
    "MessageBridge",
    "UISurface",
    "COMMAND_TYPES",
    "Command",
    "HostMessage",
    "HostMessageType",
    "parse_command",
    "WebSocketSurface",
]
