# hbq/workers/instance.py
"""
HandBrakeInstance: owns one engine handle and drives its scan and encode
phases by polling the engine's state on single-shot timers.

All notifications are Qt signals emitted from the thread the instance lives
on. Move the instance to a QThread to keep polling off the GUI thread; start
requests made from another thread are queued to the owning thread.
"""

import dataclasses
import logging
import threading
from contextlib import contextmanager
from datetime import timedelta
from enum import Enum

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from ..errors import EngineBusyError, EngineClosedError, HandBrakeError, TitleNotFoundError
from ..models.job import EncodeJob
from ..models.state import (
    EncodeCompleted,
    EncodeProgress,
    ErrorCode,
    NativeState,
    Preview,
    PreviewOptions,
    ScanProgress,
)
from ..models.title import Title
from ..native.encode_json import create_encode_json, serialize_encode_json
from ..native.libhb import Engine, LibHB
from ..parsers.engine_json import TICKS_PER_SECOND, find_feature_title, parse_state_json, parse_title_set_json
from ..utils import sizing
from ..utils.geometry import build_geometry_settings, resolve_geometry
from ..utils.settings import DEFAULT_SETTINGS, load_settings

logger = logging.getLogger(__name__)


class Phase(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    ENCODING = "encoding"


class HandBrakeInstance(QObject):
    scan_progress = Signal(object)      # ScanProgress
    scan_completed = Signal()
    encode_progress = Signal(object)    # EncodeProgress
    encode_completed = Signal(object)   # EncodeCompleted

    # Internal: hop timer control onto the owning thread
    _arm_scan_timer = Signal()
    _arm_encode_timer = Signal()
    _halt_timers = Signal()

    def __init__(self, engine: Engine | None = None, settings: dict | None = None, parent=None):
        super().__init__(parent)
        self.settings = {**DEFAULT_SETTINGS, **(settings if settings is not None else load_settings())}
        self._engine = engine
        self._initialized = False
        self._closed = False

        self._lock = threading.Lock()
        # Held around every native call; close() takes it before releasing the handle
        self._engine_lock = threading.RLock()
        self._phase = Phase.IDLE
        self._titles: tuple[Title, ...] = ()
        self._feature_title = 0
        self._last_scan: dict | None = None
        self._preview_count = 0
        self._version = ""
        self._build = 0

        self._scan_timer = QTimer(self)
        self._scan_timer.setSingleShot(True)
        self._scan_timer.setInterval(int(self.settings["scan_poll_interval_ms"]))
        self._scan_timer.timeout.connect(self.poll_scan_progress)

        self._encode_timer = QTimer(self)
        self._encode_timer.setSingleShot(True)
        self._encode_timer.setInterval(int(self.settings["encode_poll_interval_ms"]))
        self._encode_timer.timeout.connect(self.poll_encode_progress)

        self._arm_scan_timer.connect(self._start_scan_timer)
        self._arm_encode_timer.connect(self._start_encode_timer)
        self._halt_timers.connect(self._stop_timers)

    # ---- properties ----
    @property
    def titles(self) -> tuple[Title, ...]:
        """Titles from the last completed scan. Replaced wholesale on each scan."""
        return self._titles

    @property
    def feature_title(self) -> int:
        return self._feature_title

    @property
    def preview_count(self) -> int:
        return self._preview_count

    @property
    def version(self) -> str:
        return self._version

    @property
    def build(self) -> int:
        return self._build

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def closed(self) -> bool:
        return self._closed

    # ---- lifecycle ----
    def initialize(self, verbosity: int | None = None):
        """Create the engine handle. Must run once before any other operation."""
        if verbosity is None:
            verbosity = int(self.settings["verbosity"])
        with self._engine_lock:
            self._check_open("initialize")
            if self._initialized:
                return
            if self._engine is None:
                self._engine = LibHB(self.settings.get("libhb_path") or None)
            self._engine.init(verbosity)
            self._version = self._engine.get_version()
            self._build = self._engine.get_build()
            self._initialized = True
        logger.info("HandBrake %s (build %d) ready", self._version, self._build)

    def close(self):
        """Release the engine handle. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._phase = Phase.IDLE
        self._halt_timers.emit()
        # Waits for a poll on the owning thread to leave the engine
        with self._engine_lock:
            if self._engine is not None:
                self._engine.close()
        logger.info("Engine handle released")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @Slot()
    def _start_scan_timer(self):
        self._scan_timer.start()

    @Slot()
    def _start_encode_timer(self):
        self._encode_timer.start()

    @Slot()
    def _stop_timers(self):
        self._scan_timer.stop()
        self._encode_timer.stop()

    def _check_open(self, operation: str):
        if self._closed:
            raise EngineClosedError(operation)

    def _require_engine(self, operation: str) -> Engine:
        self._check_open(operation)
        if not self._initialized:
            raise HandBrakeError(f"Cannot {operation}: call initialize() first", context={'operation': operation})
        return self._engine

    @contextmanager
    def _engine_call(self, operation: str):
        with self._engine_lock:
            yield self._require_engine(operation)

    def _enter_phase(self, phase: Phase):
        with self._lock:
            if self._phase != Phase.IDLE:
                raise EngineBusyError(self._phase.value, phase.value)
            self._phase = phase

    def _leave_phase(self):
        with self._lock:
            self._phase = Phase.IDLE

    # ---- scanning ----
    def start_scan(self, path: str, preview_count: int | None = None,
                   min_duration_seconds: float | None = None, title_index: int = 0):
        """
        Begin scanning a source. Returns immediately; progress and completion
        arrive through scan_progress and scan_completed.

        Args:
            path: File, folder or disc to scan.
            preview_count: Number of preview frames to grab per title.
            min_duration_seconds: Titles shorter than this are ignored.
            title_index: Scan only this title (0 scans all).

        Raises:
            EngineBusyError: A scan or encode is already running.
        """
        if preview_count is None:
            preview_count = int(self.settings["preview_count"])
        if min_duration_seconds is None:
            min_duration_seconds = float(self.settings["min_duration_seconds"])

        with self._engine_call("start a scan") as engine:
            self._enter_phase(Phase.SCANNING)
            try:
                self._preview_count = preview_count
                engine.scan(path, title_index, preview_count, int(min_duration_seconds * TICKS_PER_SECOND))
            except Exception:
                self._leave_phase()
                raise
        logger.info("Scan started: %s (title %d, %d previews)", path, title_index, preview_count)
        self._arm_scan_timer.emit()

    def stop_scan(self):
        """Ask the engine to abort the scan. Completion is still reported."""
        with self._engine_call("stop a scan") as engine:
            engine.scan_stop()
        logger.info("Scan stop requested")

    @Slot()
    def poll_scan_progress(self):
        with self._engine_lock:
            if self._closed or self._phase != Phase.SCANNING:
                return
            try:
                state = parse_state_json(self._engine.get_state_json())
            except Exception:
                logger.exception("Scan poll failed; polling stopped")
                self._leave_phase()
                raise
            if self._closed:
                return
            logger.debug("Scan poll: %s", state)

            if state.state == NativeState.SCANDONE:
                self._finish_scan()
                return

            if state.state == NativeState.SCANNING and state.scanning is not None:
                s = state.scanning
                self.scan_progress.emit(ScanProgress(
                    progress=s.progress,
                    current_preview=s.preview,
                    previews=s.preview_count,
                    current_title=s.title,
                    titles=s.title_count,
                ))
            self._scan_timer.start()

    def _finish_scan(self):
        self._scan_timer.stop()
        try:
            titles, _main_feature, raw = parse_title_set_json(self._engine.get_title_set_json())
        except Exception:
            self._leave_phase()
            raise

        # Single swap so readers see the old list or the new one, never a mix;
        # the phase opens to encodes only once the new scan is in place
        self._last_scan = raw
        self._feature_title = find_feature_title(titles)
        self._titles = titles
        self._leave_phase()
        logger.info("Scan completed: %d title(s), feature title %d", len(titles), self._feature_title)
        self.scan_completed.emit()

    # ---- encoding ----
    def start_encode(self, job: EncodeJob, preview: PreviewOptions | None = None,
                     scan_preview_count: int | None = None):
        """
        Submit a job and start encoding. Returns immediately; progress and
        completion arrive through encode_progress and encode_completed.

        Raises:
            EngineBusyError: A scan or encode is already running.
            TitleNotFoundError: The job's title is not in the last scan.
        """
        if scan_preview_count is None:
            scan_preview_count = self._preview_count

        with self._engine_call("start an encode") as engine:
            self._enter_phase(Phase.ENCODING)
            try:
                document = create_encode_json(job, self._last_scan, preview, scan_preview_count)
                engine.add_json(serialize_encode_json(document))
                engine.start()
            except Exception:
                self._leave_phase()
                raise
        logger.info("Encode started: title %d -> %s%s", job.title, job.output_path,
                    f" (preview {preview.number}, {preview.seconds}s)" if preview else "")
        self._arm_encode_timer.emit()

    def pause_encode(self):
        with self._engine_call("pause") as engine:
            engine.pause()

    def resume_encode(self):
        with self._engine_call("resume") as engine:
            engine.resume()

    def stop_encode(self):
        """Stop the encode and drop any jobs left queued (e.g. the second pass)."""
        with self._engine_call("stop an encode") as engine:
            engine.stop()

            leftover = [engine.job(i) for i in range(engine.count())]
            for native_job in leftover:
                engine.remove(native_job)
        if leftover:
            logger.debug("Removed %d residual queued job(s)", len(leftover))
        logger.info("Encode stop requested")

    @Slot()
    def poll_encode_progress(self):
        with self._engine_lock:
            if self._closed or self._phase != Phase.ENCODING:
                return
            try:
                state = parse_state_json(self._engine.get_state_json())
            except Exception:
                logger.exception("Encode poll failed; polling stopped")
                self._leave_phase()
                raise
            if self._closed:
                return
            logger.debug("Encode poll: %s", state)

            if state.state == NativeState.WORKDONE:
                self._encode_timer.stop()
                self._leave_phase()
                error = state.work_done is not None and state.work_done.error != ErrorCode.NONE
                logger.info("Encode completed%s", " with error" if error else "")
                self.encode_completed.emit(EncodeCompleted(error=error))
                return

            if state.state == NativeState.WORKING and state.working is not None:
                w = state.working
                self.encode_progress.emit(EncodeProgress(
                    fraction_complete=w.progress,
                    current_frame_rate=w.rate,
                    average_frame_rate=w.rate_avg,
                    estimated_time_left=timedelta(hours=w.hours, minutes=w.minutes, seconds=w.seconds),
                    pass_number=w.pass_number,
                    pass_count=w.pass_count,
                ))
            self._encode_timer.start()

    # ---- title-bound helpers ----
    def get_title(self, title_number: int) -> Title:
        """
        Look a title up in the current snapshot.

        Raises:
            TitleNotFoundError: No such title in the last scan.
        """
        for title in self._titles:
            if title.title_number == title_number:
                return title
        raise TitleNotFoundError(title_number)

    def get_preview(self, job: EncodeJob, preview_number: int) -> Preview:
        """Render one preview frame of the job's title at its output geometry."""
        title = self.get_title(job.title)
        geometry = resolve_geometry(job, title)
        settings = dataclasses.replace(
            build_geometry_settings(job, title),
            width=geometry.width,
            height=geometry.height,
            par=geometry.par,
        )
        buffer = bytearray(geometry.width * geometry.height * 4)
        with self._engine_call("render a preview") as engine:
            engine.get_preview(job.title, preview_number, settings, buffer)
        return Preview(geometry=geometry, data=bytes(buffer))

    def calculate_bitrate(self, job: EncodeJob, size_mb: float, overall_selected_length_seconds: float = 0) -> int:
        """Video bitrate (kbps) needed to hit size_mb; 0 if audio alone exceeds it."""
        return sizing.calculate_bitrate(job, self.get_title(job.title), size_mb, overall_selected_length_seconds)

    def calculate_file_size(self, job: EncodeJob, video_bitrate: int) -> float:
        """Estimated output size in MB at video_bitrate kbps."""
        return sizing.calculate_file_size(job, self.get_title(job.title), video_bitrate)
