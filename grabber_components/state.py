import threading

import requests


class SessionFactory:
    """Hands out one requests.Session per thread."""

    def __init__(self):
        self.local = threading.local()
        self.lock = threading.Lock()
        self.sessions: list[requests.Session] = []

    def get(self) -> requests.Session:
        session = getattr(self.local, "session", None)
        if session is None:
            session = requests.Session()
            self.local.session = session
            with self.lock:
                self.sessions.append(session)
        return session

    def close(self) -> None:
        with self.lock:
            for session in self.sessions:
                session.close()
            self.sessions.clear()
