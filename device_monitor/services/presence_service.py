from device_monitor.utils.logger import logger


class PresenceTracker:
    """Counts browser sessions that sent a heartbeat within the online timeout."""

    def __init__(self, session_store):
        self.sessions = session_store

    def heartbeat(self, session_id, ip, user_agent):
        # Every heartbeat also prunes; there is no background sweeper
        online = self.sessions.touch_and_prune(session_id, ip, user_agent)
        logger.debug(f"Heartbeat from session {session_id} ({ip}), {online} online")
        return online

    def count(self):
        return self.sessions.prune()
