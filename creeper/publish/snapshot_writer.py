# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Atomic snapshot publication.

The canvas is encoded in memory, written to a temporary file next to the
published path, fsynced, and moved over the published path with os.replace.
Readers therefore see either the previous complete snapshot or the new one.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from creeper.config import OutputSettings
from creeper.exceptions import WriteFailure

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Encodes canvases and publishes them to a single canonical path."""

    def __init__(self, settings: OutputSettings):
        self.settings = settings

    @property
    def published_path(self) -> Path:
        return self.settings.published_path

    @property
    def media_type(self) -> str:
        return self.settings.media_type

    def encode(self, canvas: np.ndarray) -> bytes:
        """Encode the canvas to the configured format.

        Raises:
            WriteFailure: OpenCV could not encode the canvas
        """
        if self.settings.format == "jpeg":
            extension = ".jpg"
            params = [cv2.IMWRITE_JPEG_QUALITY, self.settings.jpeg_quality]
        else:
            extension = ".png"
            params = []

        try:
            success, encoded = cv2.imencode(extension, canvas, params)
        except cv2.error as e:
            raise WriteFailure(f"Failed to encode snapshot: {e}") from e
        if not success:
            raise WriteFailure(f"Failed to encode snapshot as {self.settings.format}")
        return encoded.tobytes()

    def publish(self, canvas: np.ndarray) -> Path:
        """Encode and atomically replace the published snapshot.

        The existing published file is only ever replaced, never removed
        first, so a failure leaves it servable.

        Returns:
            Path of the published snapshot

        Raises:
            WriteFailure: encoding, writing or the final rename failed
        """
        data = self.encode(canvas)
        return self.publish_bytes(data)

    def publish_bytes(self, data: bytes) -> Path:
        """Atomically replace the published snapshot with already-encoded bytes."""
        target = self.published_path
        tmp_path: Optional[Path] = None

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=str(target.parent),
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_path = Path(tmp.name)
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())

            os.replace(tmp_path, target)
            tmp_path = None

        except OSError as e:
            raise WriteFailure(f"Failed to publish {target}: {e}") from e

        finally:
            if tmp_path is not None:
                try:
                    tmp_path.unlink()
                except OSError as e:
                    logger.warning(f"Could not remove temporary file {tmp_path}: {e}")

        logger.info(f"Published {target} ({len(data)} bytes)")
        return target
