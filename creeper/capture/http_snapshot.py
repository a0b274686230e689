# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""HTTP snapshot capture for public still-image cameras.

Fetches single JPEG/PNG/GIF frames from snapshot URLs. Many public cameras
are slow or flaky, so every fetch runs under a per-attempt timeout and a
bounded retry policy, and the body is validated before it is decoded.

Camera URLs carry a freshness token (COUNTER by default) that is replaced
with the current time in milliseconds to defeat upstream caches:
    https://example.org/webcam.jpg?t=COUNTER
"""

import http.client
import logging
import time
import urllib.error
import urllib.request
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

import cv2
import numpy as np

from creeper import __version__
from creeper.config import GRID_SLOTS, FetchSettings
from creeper.exceptions import (
    ConfigurationGap,
    InvalidImage,
    SnapshotSourceError,
    SourceUnavailable,
)
from creeper.models.snapshot import CameraSource, SourceProbe

logger = logging.getLogger(__name__)

T = TypeVar("T")

JPEG_MAGIC = b"\xff\xd8\xff"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
GIF_MAGICS = (b"GIF87a", b"GIF89a")


def detect_image_format(data: bytes) -> Optional[str]:
    """Identify an image by its magic bytes.

    Returns:
        "jpeg", "png", "gif" or None if the signature is not recognised
    """
    if data.startswith(JPEG_MAGIC):
        return "jpeg"
    if data.startswith(PNG_MAGIC):
        return "png"
    if data[:6] in GIF_MAGICS:
        return "gif"
    return None


def validate_image_bytes(data: bytes, min_bytes: int) -> str:
    """Check length and signature of a response body.

    Raises:
        InvalidImage: body too short or not a recognised image
    """
    if len(data) < min_bytes:
        raise InvalidImage(f"Body too short ({len(data)} bytes)")
    image_format = detect_image_format(data)
    if image_format is None:
        raise InvalidImage(f"Unrecognised image signature {data[:4].hex()}")
    return image_format


def decode_image(data: bytes) -> np.ndarray:
    """Decode image bytes to a BGR frame.

    Raises:
        InvalidImage: OpenCV could not decode the data
    """
    try:
        nparr = np.frombuffer(data, np.uint8)
        frame = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise InvalidImage(f"Failed to decode image data: {e}") from e
    if frame is None or frame.size == 0:
        raise InvalidImage("Failed to decode image data")
    return frame


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with a fixed delay between sequential attempts."""

    retries: int = 2
    delay_seconds: float = 2.0

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def worst_case_seconds(self, timeout_seconds: float) -> float:
        """Upper bound on time spent for one source."""
        return timeout_seconds * self.max_attempts + self.delay_seconds * self.retries

    def call(
        self,
        func: Callable[[], T],
        sleep: Callable[[float], None] = time.sleep,
        description: str = "request",
    ) -> Tuple[T, int]:
        """Call func until it succeeds or attempts run out.

        Only SnapshotSourceError counts as a failed attempt; anything else
        propagates immediately.

        Returns:
            Tuple of (value, attempts used)

        Raises:
            SnapshotSourceError: the last attempt's error, with an
                ``attempts`` attribute recording how many were made
        """
        last_error: Optional[SnapshotSourceError] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                value = func()
            except SnapshotSourceError as e:
                last_error = e
                if attempt < self.max_attempts:
                    logger.warning(
                        f"{description} failed (attempt {attempt}/{self.max_attempts}): "
                        f"{e}. Retrying in {self.delay_seconds}s..."
                    )
                    sleep(self.delay_seconds)
                continue

            if attempt > 1:
                logger.info(f"{description} succeeded on attempt {attempt}")
            return value, attempt

        logger.error(f"{description} failed after {self.max_attempts} attempts: {last_error}")
        last_error.attempts = self.max_attempts
        raise last_error


class UrllibTransport:
    """Blocking HTTP GET with a per-attempt deadline.

    The socket timeout bounds connect. The body is read one recv at a time
    with the socket timeout shrunk to whatever is left of the deadline, so a
    source trickling bytes cannot keep an attempt alive past its timeout.
    """

    chunk_size = 64 * 1024

    def get(self, url: str, timeout: float) -> Tuple[int, bytes]:
        """Fetch a URL.

        Returns:
            Tuple of (status code, body). Error statuses return an empty body.

        Raises:
            SourceUnavailable: transport error or timeout
        """
        deadline = time.monotonic() + timeout

        try:
            request = urllib.request.Request(
                url,
                headers={
                    "Cache-Control": "no-cache",
                    "Pragma": "no-cache",
                    "User-Agent": f"creeper/{__version__}",
                },
            )
            with urllib.request.urlopen(request, timeout=timeout) as response:
                chunks = []
                while True:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise SourceUnavailable(f"Timed out after {timeout:g}s reading body")
                    self._limit_read_timeout(response, remaining)
                    chunk = response.read1(self.chunk_size)
                    if not chunk:
                        break
                    chunks.append(chunk)
                return response.status, b"".join(chunks)

        except urllib.error.HTTPError as e:
            e.close()
            return e.code, b""

        except urllib.error.URLError as e:
            if isinstance(e.reason, TimeoutError):
                raise SourceUnavailable(f"Connection timeout after {timeout:g}s") from e
            raise SourceUnavailable(f"URL error: {e.reason}") from e

        except TimeoutError as e:
            raise SourceUnavailable(f"Connection timeout after {timeout:g}s") from e

        except (http.client.HTTPException, OSError) as e:
            raise SourceUnavailable(f"Transport error: {e}") from e

        except ValueError as e:
            raise SourceUnavailable(f"Invalid URL: {e}") from e

    @staticmethod
    def _limit_read_timeout(response, seconds: float) -> None:
        """Cap the next socket read at the time left before the deadline."""
        fp = getattr(response, "fp", None)
        sock = getattr(getattr(fp, "raw", None), "_sock", None)
        if sock is not None:
            sock.settimeout(seconds)


@dataclass
class FetchResult:
    """Result of fetching one slot's source."""

    slot_index: int
    success: bool = False
    frame: Optional[np.ndarray] = None
    width: int = 0
    height: int = 0
    image_format: Optional[str] = None
    attempts: int = 0
    fetch_time_ms: float = 0.0
    error: Optional[SnapshotSourceError] = None


class SourceFetcher:
    """Fetches camera snapshots with timeout, retry and validation.

    Usage:
        fetcher = SourceFetcher(settings.fetch)
        results = fetcher.fetch_all(sources)
        for result in results:
            if result.success:
                draw(result.frame)
    """

    def __init__(
        self,
        settings: FetchSettings,
        transport: Optional[UrllibTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize fetcher.

        Args:
            settings: Fetch settings
            transport: Object with get(url, timeout) -> (status, body)
            sleep: Delay function used between retries
            clock: Wall clock used for the freshness token
        """
        self.settings = settings
        self.transport = transport or UrllibTransport()
        self.retry_policy = RetryPolicy(
            retries=settings.max_retries,
            delay_seconds=settings.retry_delay_seconds,
        )
        self._sleep = sleep
        self._clock = clock

    @property
    def worst_case_seconds(self) -> float:
        """Upper bound for one cycle's fetch phase (slots run in parallel)."""
        per_source = self.retry_policy.worst_case_seconds(self.settings.timeout_seconds)
        waves = -(-GRID_SLOTS // self.settings.max_concurrent)
        return per_source * waves

    def build_url(self, source: CameraSource) -> str:
        """Substitute the freshness token with the current time in ms."""
        token = str(int(self._clock() * 1000))
        return source.url_template.replace(self.settings.cache_token, token)

    def fetch_once(self, source: CameraSource) -> Tuple[np.ndarray, str]:
        """Make a single validated attempt.

        Returns:
            Tuple of (BGR frame, image format)

        Raises:
            SourceUnavailable: transport failure or non-2xx status
            InvalidImage: body failed validation or decoding
        """
        url = self.build_url(source)
        logger.debug(f"[slot {source.slot_index}] fetch {source.url_masked}")

        status, body = self.transport.get(url, self.settings.timeout_seconds)
        if not 200 <= status < 300:
            raise SourceUnavailable(f"HTTP {status}")

        image_format = validate_image_bytes(body, self.settings.min_image_bytes)
        frame = decode_image(body)
        return frame, image_format

    def fetch(self, source: CameraSource) -> FetchResult:
        """Fetch one source under the retry policy.

        Never raises for source problems; the typed error is returned in
        the result.
        """
        start_time = time.monotonic()

        try:
            (frame, image_format), attempts = self.retry_policy.call(
                lambda: self.fetch_once(source),
                sleep=self._sleep,
                description=f"[slot {source.slot_index}] {source.label}",
            )
        except SnapshotSourceError as e:
            elapsed = (time.monotonic() - start_time) * 1000
            return FetchResult(
                slot_index=source.slot_index,
                attempts=getattr(e, "attempts", self.retry_policy.max_attempts),
                fetch_time_ms=elapsed,
                error=e,
            )

        elapsed = (time.monotonic() - start_time) * 1000
        height, width = frame.shape[:2]
        logger.debug(
            f"[slot {source.slot_index}] loaded {width}x{height} {image_format} in {elapsed:.0f}ms"
        )
        return FetchResult(
            slot_index=source.slot_index,
            success=True,
            frame=frame,
            width=width,
            height=height,
            image_format=image_format,
            attempts=attempts,
            fetch_time_ms=elapsed,
        )

    def fetch_all(self, sources: Sequence[Optional[CameraSource]]) -> List[FetchResult]:
        """Fetch every slot concurrently.

        Args:
            sources: One entry per slot; None marks an unconfigured slot

        Returns:
            One FetchResult per slot, in slot order
        """
        results: List[Optional[FetchResult]] = [None] * len(sources)
        configured = [source for source in sources if source is not None]

        for index, source in enumerate(sources):
            if source is None:
                results[index] = FetchResult(
                    slot_index=index,
                    error=ConfigurationGap("No source configured"),
                )

        if configured:
            with ThreadPoolExecutor(
                max_workers=self.settings.max_concurrent,
                thread_name_prefix="SnapshotFetch",
            ) as executor:
                futures = {
                    source.slot_index: executor.submit(self.fetch, source)
                    for source in configured
                }
                for slot_index, future in futures.items():
                    results[slot_index] = future.result()

        return results

    def probe(self, source: CameraSource, timeout: Optional[float] = None) -> SourceProbe:
        """Check whether a source answers, without validating the body.

        Args:
            source: Camera to probe
            timeout: Request timeout (defaults to probe_timeout_seconds)

        Returns:
            SourceProbe with reachability, status code and latency
        """
        timeout = timeout or self.settings.probe_timeout_seconds
        start_time = time.monotonic()

        try:
            status, _ = self.transport.get(self.build_url(source), timeout)
        except SourceUnavailable as e:
            elapsed = (time.monotonic() - start_time) * 1000
            return SourceProbe(
                slot_index=source.slot_index,
                location=source.location,
                reachable=False,
                latency_ms=elapsed,
                error=str(e),
            )

        elapsed = (time.monotonic() - start_time) * 1000
        reachable = 200 <= status < 300
        return SourceProbe(
            slot_index=source.slot_index,
            location=source.location,
            reachable=reachable,
            status_code=status,
            latency_ms=elapsed,
            error=None if reachable else f"HTTP {status}",
        )
