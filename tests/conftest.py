import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import cv2
import numpy as np
import pytest

from creeper.capture.http_snapshot import SourceFetcher
from creeper.composite.pipeline import SnapshotPipeline
from creeper.config import (
    CameraEntry,
    CanvasSettings,
    FetchSettings,
    OutputSettings,
    ScheduleSettings,
    ServerSettings,
    load_settings,
)
from creeper.exceptions import SourceUnavailable

CAMERA_URLS = [f"http://cam{i}.test/snapshot.png?t=COUNTER" for i in range(4)]
LOCATIONS = ["Harbour", "Bridge", "Square", "Station"]

# BGR colors with distinct luma values
SLOT_COLORS = [(0, 0, 255), (0, 255, 0), (255, 0, 0), (255, 255, 255)]


def make_image_bytes(width=64, height=48, color=(0, 0, 255), fmt=".png"):
    """Encode a solid-color test image."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:] = color
    params = [cv2.IMWRITE_PNG_COMPRESSION, 0] if fmt == ".png" else []
    success, encoded = cv2.imencode(fmt, frame, params)
    assert success
    return encoded.tobytes()


class FakeTransport:
    """Scripted stand-in for UrllibTransport.

    responses maps a URL substring to a list of (status, body) tuples or
    exceptions, consumed in order; the last entry repeats.
    """

    def __init__(self, responses=None):
        self.responses = {key: list(value) for key, value in (responses or {}).items()}
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, timeout):
        with self._lock:
            self.calls.append((url, timeout))
            for key, queue in self.responses.items():
                if key in url:
                    item = queue.pop(0) if len(queue) > 1 else queue[0]
                    break
            else:
                item = SourceUnavailable("URL error: unknown host")

        if isinstance(item, Exception):
            raise item
        return item

    def calls_for(self, key):
        return [url for url, _ in self.calls if key in url]


class SleepRecorder:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def canvas_settings():
    """Small canvas so tests stay fast."""
    return CanvasSettings(
        size=256,
        border=8,
        watermark_font_px=12,
        label_font_px=8,
        status_font_px=12,
    )


@pytest.fixture
def fetch_settings():
    return FetchSettings(timeout_seconds=0.5, max_retries=2, retry_delay_seconds=2.0)


@pytest.fixture
def settings(tmp_path, canvas_settings, fetch_settings):
    """Settings with four cameras and output under tmp_path."""
    return load_settings(
        cameras=tuple(
            CameraEntry(url=url, location=location)
            for url, location in zip(CAMERA_URLS, LOCATIONS)
        ),
        fetch=fetch_settings,
        canvas=canvas_settings,
        output=OutputSettings(directory=tmp_path / "snapshots"),
        schedule=ScheduleSettings(interval_seconds=60),
        server=ServerSettings(metadata_file=tmp_path / "metadata.json"),
    )


@pytest.fixture
def all_live_transport():
    """Every camera answers with a distinct solid-color PNG."""
    return FakeTransport({
        f"cam{i}.test": [(200, make_image_bytes(96, 64, SLOT_COLORS[i]))]
        for i in range(4)
    })


@pytest.fixture
def make_pipeline(settings, sleep_recorder):
    """Build a SnapshotPipeline around a scripted transport."""

    def _make(transport, pipeline_settings=None):
        pipeline_settings = pipeline_settings or settings
        fetcher = SourceFetcher(
            pipeline_settings.fetch,
            transport=transport,
            sleep=sleep_recorder,
            clock=lambda: 1700000000.5,
        )
        return SnapshotPipeline(pipeline_settings, fetcher=fetcher)

    return _make


class _ScriptedHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        server = self.server
        with server.lock:
            server.hits.append(self.path)
        route = server.routes.get(self.path.split("?")[0])
        if route is None:
            self.send_error(404)
            return

        delay, status, body = route
        if delay:
            server.release.wait(delay)
        try:
            self.send_response(status)
            self.send_header("Content-Type", "image/png")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
        except OSError:
            pass

    def log_message(self, fmt, *args):
        pass


@pytest.fixture
def http_server():
    """Local HTTP server with scripted routes: path -> (delay, status, body)."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), _ScriptedHandler)
    server.routes = {}
    server.hits = []
    server.lock = threading.Lock()
    server.release = threading.Event()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    server.base_url = f"http://127.0.0.1:{server.server_address[1]}"
    yield server
    server.release.set()
    server.shutdown()
    server.server_close()


@pytest.fixture
def trickle_server():
    """Raw socket server that sends headers at once, then the body one byte per interval.

    Yields a function body -> url; the interval is 50ms.
    """
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    stop = threading.Event()
    threads = []

    def serve(body):
        conn, _ = listener.accept()
        with conn:
            conn.recv(65536)
            conn.sendall(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: image/png\r\n"
                b"Content-Length: " + str(len(body)).encode() + b"\r\n"
                b"Connection: close\r\n\r\n"
            )
            for byte in body:
                if stop.wait(0.05):
                    break
                try:
                    conn.sendall(bytes([byte]))
                except OSError:
                    break

    def start(body):
        thread = threading.Thread(target=serve, args=(body,), daemon=True)
        thread.start()
        threads.append(thread)
        return f"http://127.0.0.1:{listener.getsockname()[1]}/trickle.png"

    yield start
    stop.set()
    for thread in threads:
        thread.join(timeout=2)
    listener.close()
