"""Outbound half of the host/UI bridge: queue until a surface attaches"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Union

from .messages import HostMessage, HostMessageType

logger = logging.getLogger(__name__)


class UISurface(Protocol):
    """Anything that can deliver a ``{type, data}`` dict to the UI"""

    def post_message(self, message: Dict[str, Any]) -> None:
        ...


class MessageBridge:
    """Delivers host notifications to the attached UI surface

    Messages posted while no surface is attached are queued and flushed, in
    posting order and exactly once, when ``attach`` is called.
    """

    def __init__(self):
        self._surface: Optional[UISurface] = None
        self._queue: List[Dict[str, Any]] = []

    @property
    def attached(self) -> bool:
        return self._surface is not None

    @property
    def pending(self) -> List[Dict[str, Any]]:
        return list(self._queue)

    def post(self, message: Union[HostMessage, Dict[str, Any]]):
        """Deliver now if a surface is attached, otherwise queue"""
        if isinstance(message, HostMessage):
            message = message.to_wire()
        if self._surface is not None:
            self._surface.post_message(message)
        else:
            self._queue.append(message)

    def send(self, message_type: HostMessageType, data: Any = None):
        self.post(HostMessage(type=message_type, data=data))

    def attach(self, surface: UISurface):
        """Make ``surface`` the delivery target and flush the queue into it"""
        if self._surface is not None and self._surface is not surface:
            logger.info("[Bridge] Replacing attached UI surface")
        self._surface = surface

        queued, self._queue = self._queue, []
        if queued:
            logger.debug(f"[Bridge] Flushing {len(queued)} queued message(s)")
        for message in queued:
            surface.post_message(message)

    def detach(self, surface: Optional[UISurface] = None):
        """Go back to queueing. With ``surface`` given, only detaches that one."""
        if surface is not None and surface is not self._surface:
            return
        self._surface = None
