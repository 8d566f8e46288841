import json
import os
import tempfile
import threading
import time

from device_monitor.exceptions import PersistenceError
from device_monitor.utils.logger import logger
from device_monitor.utils.timeutil import get_zone, parse_timestamp


class JsonFileStore:
    """
    In-memory table mirrored to one JSON document.

    Every public operation takes ``self._lock`` for its whole
    read-modify-write cycle, flush included, so concurrent ingests and
    pruning passes cannot lose each other's changes.
    """

    empty_document = "{}"

    def __init__(self, path, clock=None):
        self.path = path
        self.clock = clock or time.time
        self._lock = threading.RLock()
        self._data = self._load()

    def _load(self):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        if not os.path.exists(self.path):
            with open(self.path, "w", encoding="utf-8") as fh:
                fh.write(self.empty_document)
            return self._decode(json.loads(self.empty_document))

        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                raw = fh.read()
        except OSError as e:
            logger.error(f"Could not read {self.path}: {e}")
            raw = ""

        if not raw.strip():
            return self._decode(json.loads(self.empty_document))

        try:
            return self._decode(json.loads(raw))
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt JSON in {self.path}, starting empty: {e}")
            return self._decode(json.loads(self.empty_document))

    def _decode(self, document):
        raise NotImplementedError

    def _encode(self):
        raise NotImplementedError

    def _flush(self):
        directory = os.path.dirname(self.path) or "."
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(self._encode(), fh, ensure_ascii=False, indent=4)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write {self.path}: {e}")
            raise PersistenceError("Failed to save data") from e


class DeviceStore(JsonFileStore):
    """Latest status record per device ID; each put overwrites the previous one."""

    def __init__(self, path, timeout=30, timezone_name="UTC", clock=None):
        self.timeout = timeout
        self.tz = get_zone(timezone_name)
        super().__init__(path, clock=clock)

    def _decode(self, document):
        if isinstance(document, dict):
            return {str(k): v for k, v in document.items() if isinstance(v, dict)}

        # Older files stored the devices as a plain list of records
        if isinstance(document, list):
            devices = {}
            for record in document:
                if isinstance(record, dict) and record.get("deviceId"):
                    devices[str(record["deviceId"])] = record
            return devices

        logger.warning(f"Unexpected device document type {type(document).__name__}, ignoring")
        return {}

    def _encode(self):
        return self._data

    def get(self, device_id):
        with self._lock:
            record = self._data.get(device_id)
            return dict(record) if record is not None else None

    def put(self, device_id, record, on_stored=None):
        """
        Overwrite one device record and flush. ``on_stored(total)`` runs after a
        successful flush while the lock is still held, so whatever it publishes
        is ordered the same way as the writes.
        """
        with self._lock:
            previous = self._data.get(device_id)
            self._data[device_id] = dict(record)
            try:
                self._flush()
            except PersistenceError:
                # Keep memory consistent with what is on disk
                if previous is None:
                    del self._data[device_id]
                else:
                    self._data[device_id] = previous
                raise
            total = len(self._data)
            if on_stored is not None:
                on_stored(total)
            return total

    def list(self):
        with self._lock:
            return {k: dict(v) for k, v in self._data.items()}

    def count(self):
        with self._lock:
            return len(self._data)

    def prune_expired(self, now=None, timeout=None):
        """
        Drop devices that stopped reporting.

        A record without ``lastUpdate`` is malformed and removed. A record
        whose ``lastUpdate`` cannot be parsed is kept: losing a live device to
        a parsing problem is worse than showing a stale one for a while.
        Returns ``(survivors, removed_count)``; the file is only rewritten
        when something was removed.
        """
        now = self.clock() if now is None else now
        timeout = self.timeout if timeout is None else timeout

        with self._lock:
            survivors = {}
            removed = 0

            for device_id, record in self._data.items():
                last_update = record.get("lastUpdate")
                if last_update is None:
                    removed += 1
                    continue

                parsed = parse_timestamp(last_update, self.tz)
                if parsed is None:
                    logger.warning(f"Unparseable lastUpdate {last_update!r} for device {device_id}, keeping it")
                    survivors[device_id] = record
                    continue

                if now - parsed > timeout:
                    removed += 1
                    continue

                survivors[device_id] = record

            if removed:
                previous = self._data
                self._data = survivors
                try:
                    self._flush()
                except PersistenceError:
                    self._data = previous
                    raise
                logger.info(f"Pruned {removed} expired device(s), {len(survivors)} remaining")

            return {k: dict(v) for k, v in survivors.items()}, removed


class SessionStore(JsonFileStore):
    """Viewer sessions, persisted as a list of records in arrival order."""

    empty_document = "[]"

    def __init__(self, path, timeout=60, clock=None):
        self.timeout = timeout
        super().__init__(path, clock=clock)

    def _decode(self, document):
        sessions = {}
        if isinstance(document, dict):
            document = list(document.values())
        if not isinstance(document, list):
            return sessions

        for record in document:
            if isinstance(record, dict) and record.get("sessionId"):
                sessions[str(record["sessionId"])] = record
        return sessions

    def _encode(self):
        return list(self._data.values())

    def _prune_locked(self, now):
        expired = []
        for session_id, record in self._data.items():
            last_active = record.get("lastActive")
            if isinstance(last_active, bool) or not isinstance(last_active, (int, float)):
                expired.append(session_id)
            elif now - last_active >= self.timeout:
                expired.append(session_id)

        for session_id in expired:
            del self._data[session_id]
        return len(expired)

    def touch_and_prune(self, session_id, ip, user_agent, now=None):
        """Upsert one session, prune, flush once; returns the live session count."""
        now = self.clock() if now is None else now

        with self._lock:
            snapshot = dict(self._data)
            self._data[session_id] = {
                "sessionId": session_id,
                "lastActive": int(now),
                "ip": ip,
                "userAgent": user_agent or "Unknown",
            }
            self._prune_locked(now)
            try:
                self._flush()
            except PersistenceError:
                self._data = snapshot
                raise
            return len(self._data)

    def prune(self, now=None):
        now = self.clock() if now is None else now

        with self._lock:
            snapshot = dict(self._data)
            removed = self._prune_locked(now)
            if removed:
                try:
                    self._flush()
                except PersistenceError:
                    self._data = snapshot
                    raise
            return len(self._data)

    def list(self):
        with self._lock:
            return [dict(v) for v in self._data.values()]
