import json
import queue
import threading
import time
from typing import Optional


class EventManager:
    """Fans panel events out to every connected SSE listener."""

    def __init__(self, heartbeat_interval: float = 10.0):
        self.listeners = []
        self.lock = threading.Lock()
        self.heartbeat_interval = heartbeat_interval
        self._heartbeat: Optional[threading.Thread] = None

    def subscribe(self) -> queue.Queue:
        q = queue.Queue(maxsize=500)
        with self.lock:
            self.listeners.append(q)
        return q

    def unsubscribe(self, q: queue.Queue):
        with self.lock:
            if q in self.listeners:
                self.listeners.remove(q)

    def publish(self, event_type: str, data: dict = None):
        """Broadcast an event; slow listeners with a full queue miss it."""
        msg = {"type": event_type, "data": data or {}}
        encoded = f"data: {json.dumps(msg)}\n\n"

        with self.lock:
            active_listeners = list(self.listeners)

        for q in active_listeners:
            try:
                q.put_nowait(encoded)
            except queue.Full:
                pass

    def start_heartbeat(self):
        """Keep idle SSE connections open with a periodic ping."""
        if self._heartbeat is not None:
            return

        def loop():
            while True:
                time.sleep(self.heartbeat_interval)
                self.publish("ping", {})

        self._heartbeat = threading.Thread(target=loop, daemon=True)
        self._heartbeat.start()


# Global instance
event_manager = EventManager()
