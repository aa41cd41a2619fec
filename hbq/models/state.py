# hbq/models/state.py
"""Decoded engine status and the notification payloads built from it."""

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum, IntEnum

from .title import Geometry


class NativeState(Enum):
    IDLE = "IDLE"
    SCANNING = "SCANNING"
    SCANDONE = "SCANDONE"
    WORKING = "WORKING"
    PAUSED = "PAUSED"
    MUXING = "MUXING"
    SEARCHING = "SEARCHING"
    WORKDONE = "WORKDONE"


class ErrorCode(IntEnum):
    # hb_error_code
    NONE = 0
    CANCELED = 1
    WRONG_INPUT = 2
    INIT = 3
    UNKNOWN = 4
    READ = 5


@dataclass(frozen=True)
class ScanningState:
    progress: float = 0.0
    preview: int = 0
    preview_count: int = 0
    title: int = 0
    title_count: int = 0


@dataclass(frozen=True)
class WorkingState:
    progress: float = 0.0
    rate: float = 0.0
    rate_avg: float = 0.0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0
    pass_number: int = 1
    pass_count: int = 1
    pass_id: int = 0
    sequence_id: int = 0


@dataclass(frozen=True)
class WorkDoneState:
    error: int = ErrorCode.NONE
    sequence_id: int = 0


@dataclass(frozen=True)
class EngineState:
    state: NativeState
    scanning: ScanningState | None = None
    working: WorkingState | None = None
    work_done: WorkDoneState | None = None


# Notification payloads

@dataclass(frozen=True)
class ScanProgress:
    progress: float
    current_preview: int
    previews: int
    current_title: int
    titles: int


@dataclass(frozen=True)
class EncodeProgress:
    fraction_complete: float
    current_frame_rate: float
    average_frame_rate: float
    estimated_time_left: timedelta
    pass_number: int = 1
    pass_count: int = 1


@dataclass(frozen=True)
class EncodeCompleted:
    error: bool


@dataclass(frozen=True)
class PreviewOptions:
    """Encode a short preview clip instead of the full range."""
    number: int = 0   # 0-based preview index
    seconds: int = 15


@dataclass(frozen=True)
class Preview:
    """One rendered preview frame: 32-bit RGB pixels, width * height * 4 bytes."""
    geometry: Geometry
    data: bytes
