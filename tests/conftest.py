"""Shared fixtures for rangestream tests."""

import socket
import threading
import time

import pytest


class Recorder:
    """Collects every callback a loader fires, in order."""

    def __init__(self):
        self.events = []
        self.content_lengths = []
        self.chunks = []
        self.completed = []
        self.errors = []

    def on_content_length_known(self, total):
        self.events.append("content_length")
        self.content_lengths.append(total)

    def on_data_arrival(self, chunk, byte_start, received_length):
        self.events.append("data")
        self.chunks.append((bytes(chunk), byte_start, received_length))

    def on_complete(self, start, end):
        self.events.append("complete")
        self.completed.append((start, end))

    def on_error(self, kind, info):
        self.events.append("error")
        self.errors.append((kind, info))

    def slots(self):
        """Keyword arguments wiring the optional slots to this recorder."""
        return {
            "on_content_length_known": self.on_content_length_known,
            "on_data_arrival": self.on_data_arrival,
            "on_complete": self.on_complete,
        }

    @property
    def terminal(self):
        return [e for e in self.events if e in ("complete", "error")]

    @property
    def body(self):
        return b"".join(chunk for chunk, _, _ in self.chunks)


@pytest.fixture
def recorder():
    """Fresh callback recorder."""
    return Recorder()


def response_head(status="206 Partial Content", content_length=None, chunked=False):
    """Raw response head for a ScriptedServer script."""
    lines = [f"HTTP/1.1 {status}", "Connection: close"]
    if content_length is not None:
        lines.append(f"Content-Length: {content_length}")
    if chunked:
        lines.append("Transfer-Encoding: chunked")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")


class ScriptedServer:
    """Answers each connection by replaying a script byte for byte.

    Script steps are bytes (sent as-is) or numbers (seconds to pause). The
    connection is closed when the script runs out, so a body shorter than its
    Content-Length arrives truncated.
    """

    def __init__(self):
        self._sock = socket.create_server(("127.0.0.1", 0))
        self.port = self._sock.getsockname()[1]
        self.requests = []

    def url_for(self, path):
        return f"http://127.0.0.1:{self.port}{path}"

    def serve(self, *script):
        threading.Thread(target=self._serve_one, args=(script,), daemon=True).start()

    def _serve_one(self, script):
        try:
            conn, _ = self._sock.accept()
        except OSError:
            return  # server closed before a client connected
        with conn:
            head = b""
            while b"\r\n\r\n" not in head:
                data = conn.recv(4096)
                if not data:
                    return
                head += data
            self.requests.append(head.decode("latin-1"))
            try:
                for step in script:
                    if isinstance(step, (int, float)):
                        time.sleep(step)
                    else:
                        conn.sendall(step)
            except OSError:
                pass  # client went away (abort)

    def close(self):
        self._sock.close()


@pytest.fixture
def scripted_server():
    """Raw socket server for truncated and stalled responses."""
    server = ScriptedServer()
    yield server
    server.close()
