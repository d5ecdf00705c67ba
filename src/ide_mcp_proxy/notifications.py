"""Fan-out of tools/list_changed notifications to connected MCP sessions."""

import logging
import weakref

from mcp.server.session import ServerSession

logger = logging.getLogger(__name__)


class ToolsChangedNotifier:
    """
    Remembers the MCP sessions seen in requests and notifies them when the
    IDE catalog changes. With no session connected, notify() does nothing.
    """

    def __init__(self):
        self._sessions: "weakref.WeakSet[ServerSession]" = weakref.WeakSet()

    def attach(self, session: ServerSession):
        if session not in self._sessions:
            logger.debug("Tracking MCP session for tools/list_changed")
            self._sessions.add(session)

    def detach(self, session: ServerSession):
        self._sessions.discard(session)

    def __len__(self) -> int:
        return len(self._sessions)

    async def notify(self, endpoint=None):
        """Send notifications/tools/list_changed to every tracked session."""
        sessions = list(self._sessions)
        if not sessions:
            logger.debug("Tools changed, but no MCP session is connected")
            return

        logger.info(f"Sending tools changed notification to {len(sessions)} session(s)")
        for session in sessions:
            try:
                await session.send_tool_list_changed()
            except Exception as e:
                logger.warning(f"Error sending tools changed notification: {e}")
                self._sessions.discard(session)
