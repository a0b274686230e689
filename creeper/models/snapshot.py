# =============================================================================
# NOTICE: This software fetches and republishes images from third-party camera
# feeds. Operators are responsible for ensuring they are permitted to capture
# and redistribute every configured source. Use at your own risk.
# =============================================================================
"""Data models for camera sources and snapshot run results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from creeper.config import GRID_SLOTS, CameraEntry


class SlotStatus(Enum):
    """Outcome of one grid slot for one cycle."""

    OK = "ok"  # Live image drawn
    PLACEHOLDER = "placeholder"  # Flat fill with status text


class SchedulerState(Enum):
    """Snapshot scheduler states."""

    IDLE = "idle"
    RUNNING = "running"


def mask_url(url: str) -> str:
    """Mask password in URL for display."""
    try:
        parsed = urlparse(url)
        if parsed.password:
            return url.replace(f":{parsed.password}@", ":****@")
        return url
    except ValueError:
        return url


@dataclass(frozen=True)
class CameraSource:
    """A configured camera feed bound to one grid slot."""

    url_template: str
    location: str
    slot_index: int

    def __post_init__(self):
        if not 0 <= self.slot_index < GRID_SLOTS:
            raise ValueError(f"slot_index must be in 0..{GRID_SLOTS - 1}, got {self.slot_index}")

    @property
    def label(self) -> str:
        """Location label, falling back to the slot number."""
        return self.location or f"CAM {self.slot_index + 1}"

    @property
    def url_masked(self) -> str:
        return mask_url(self.url_template)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot_index": self.slot_index,
            "location": self.location,
            "url": self.url_masked,
        }


def build_sources(cameras: Sequence[CameraEntry]) -> List[Optional[CameraSource]]:
    """Bind configured cameras to slots.

    Always returns exactly GRID_SLOTS entries; slots without a camera are None.
    """
    sources: List[Optional[CameraSource]] = [None] * GRID_SLOTS
    for index, entry in enumerate(cameras[:GRID_SLOTS]):
        if entry.url:
            sources[index] = CameraSource(
                url_template=entry.url,
                location=entry.location,
                slot_index=index,
            )
    return sources


@dataclass
class SlotResult:
    """Per-slot outcome of one snapshot run."""

    slot_index: int
    location: str = ""
    status: SlotStatus = SlotStatus.PLACEHOLDER
    error_kind: Optional[str] = None
    error: Optional[str] = None
    attempts: int = 0
    fetch_time_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == SlotStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "slot_index": self.slot_index,
            "location": self.location,
            "status": self.status.value,
            "error_kind": self.error_kind,
            "error": self.error,
            "attempts": self.attempts,
            "fetch_time_ms": self.fetch_time_ms,
        }


@dataclass
class RunResult:
    """Outcome of one fetch -> composite -> post-process -> publish cycle."""

    started_at: datetime = field(default_factory=datetime.now)
    duration_ms: float = 0.0
    slots: List[SlotResult] = field(default_factory=list)
    published: bool = False
    published_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def live_slots(self) -> int:
        return sum(1 for slot in self.slots if slot.ok)

    def summary(self) -> str:
        """One-line description for logs."""
        statuses = " ".join(
            f"[{slot.slot_index}]{slot.status.value}" for slot in self.slots
        )
        outcome = "published" if self.published else f"not published ({self.error})"
        return (
            f"{self.live_slots}/{len(self.slots)} live {statuses} - "
            f"{outcome} in {self.duration_ms:.0f}ms"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "started_at": self.started_at.isoformat(),
            "duration_ms": self.duration_ms,
            "slots": [slot.to_dict() for slot in self.slots],
            "live_slots": self.live_slots,
            "published": self.published,
            "published_path": self.published_path,
            "error": self.error,
        }


@dataclass
class SourceProbe:
    """Result of a health probe against one slot's source."""

    slot_index: int
    location: str = ""
    configured: bool = True
    reachable: bool = False
    status_code: Optional[int] = None
    latency_ms: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "slot_index": self.slot_index,
            "location": self.location,
            "configured": self.configured,
            "reachable": self.reachable,
            "status_code": self.status_code,
            "latency_ms": self.latency_ms,
            "error": self.error,
        }
