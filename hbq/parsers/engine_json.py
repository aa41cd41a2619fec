# hbq/parsers/engine_json.py
import json
import unicodedata
from datetime import timedelta

from ..models.state import EngineState, NativeState, ScanningState, WorkDoneState, WorkingState
from ..models.title import AudioTrackInfo, Chapter, Rational, Size, SubtitleInfo, Title

TICKS_PER_SECOND = 90000

# Older engines report the state as the hb_state_t bit value instead of a name
_STATE_CODES = {
    1: NativeState.IDLE,
    2: NativeState.SCANNING,
    4: NativeState.SCANDONE,
    8: NativeState.WORKING,
    16: NativeState.PAUSED,
    32: NativeState.WORKDONE,
    64: NativeState.MUXING,
    128: NativeState.SEARCHING,
}


def _load_object(text: str | bytes) -> dict:
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object from the engine, got {type(data).__name__}")
    return data


def _decode_state(raw) -> NativeState:
    if isinstance(raw, int) and raw in _STATE_CODES:
        return _STATE_CODES[raw]
    if isinstance(raw, str):
        try:
            return NativeState(raw.upper())
        except ValueError:
            pass
    raise ValueError(f"unknown engine state: {raw!r}")


def parse_state_json(text: str | bytes) -> EngineState:
    """Decode hb_get_state_json() output into an EngineState."""
    data = _load_object(text)
    state = _decode_state(data.get("State"))

    scanning = working = work_done = None
    if s := data.get("Scanning"):
        scanning = ScanningState(
            progress=float(s.get("Progress", 0.0)),
            preview=int(s.get("Preview", 0)),
            preview_count=int(s.get("PreviewCount", 0)),
            title=int(s.get("Title", 0)),
            title_count=int(s.get("TitleCount", 0)),
        )
    if w := data.get("Working"):
        working = WorkingState(
            progress=float(w.get("Progress", 0.0)),
            rate=float(w.get("Rate", 0.0)),
            rate_avg=float(w.get("RateAvg", 0.0)),
            hours=int(w.get("Hours", 0)),
            minutes=int(w.get("Minutes", 0)),
            seconds=int(w.get("Seconds", 0)),
            pass_number=int(w.get("Pass", 1)),
            pass_count=int(w.get("PassCount", 1)),
            pass_id=int(w.get("PassID", 0)),
            sequence_id=int(w.get("SequenceID", 0)),
        )
    if d := data.get("WorkDone"):
        work_done = WorkDoneState(error=int(d.get("Error", 0)), sequence_id=int(d.get("SequenceID", 0)))

    # A bare SCANNING/WORKING with no section still counts as progress
    if state == NativeState.SCANNING and scanning is None:
        scanning = ScanningState()
    if state == NativeState.WORKING and working is None:
        working = WorkingState()
    if state == NativeState.WORKDONE and work_done is None:
        work_done = WorkDoneState()

    return EngineState(state=state, scanning=scanning, working=working, work_done=work_done)


def normalize_path(path: str | None) -> str:
    """
    Canonical Unicode (NFC) form of a path reported by the engine.

    Paths that went through a legacy 8-bit code page on the way out of the
    engine (UTF-8 bytes read as Latin-1) are repaired first.
    """
    if not path:
        return ""
    try:
        path = path.encode("latin-1").decode("utf-8")
    except UnicodeError:
        pass
    return unicodedata.normalize("NFC", path)


def parse_duration(d: dict | None) -> timedelta:
    if not d:
        return timedelta(0)
    if ticks := d.get("Ticks"):
        return timedelta(seconds=ticks / TICKS_PER_SECOND)
    return timedelta(hours=d.get("Hours", 0), minutes=d.get("Minutes", 0), seconds=d.get("Seconds", 0))


def _rational(d: dict | None, default: Rational = Rational(1, 1)) -> Rational:
    if not d:
        return default
    num, den = int(d.get("Num", 0)), int(d.get("Den", 0))
    return Rational(num, den) if num > 0 and den > 0 else default


def parse_title(t: dict, main_feature: int) -> Title:
    index = int(t.get("Index", 0))
    geo = t.get("Geometry") or {}
    rate = _rational(t.get("FrameRate"), Rational(0, 1))
    crop = t.get("Crop") or [0, 0, 0, 0]

    audio = tuple(
        AudioTrackInfo(
            track_number=i,
            language=a.get("Language", ""),
            language_code=a.get("LanguageCode", ""),
            description=a.get("Description", ""),
            codec_name=a.get("CodecName", ""),
            sample_rate=int(a.get("SampleRate", 0)),
            bitrate=int(a.get("BitRate", 0)),
            channel_count=int(a.get("ChannelCount", 0)),
        )
        for i, a in enumerate(t.get("AudioList") or [], start=1)
    )
    subtitles = tuple(
        SubtitleInfo(
            track_number=i,
            language=s.get("Language", ""),
            language_code=s.get("LanguageCode", ""),
            source_name=s.get("SourceName", ""),
        )
        for i, s in enumerate(t.get("SubtitleList") or [], start=1)
    )
    chapters = tuple(
        Chapter(chapter_number=i, name=c.get("Name", ""), duration=parse_duration(c.get("Duration")))
        for i, c in enumerate(t.get("ChapterList") or [], start=1)
    )

    return Title(
        title_number=index,
        path=normalize_path(t.get("Path")),
        name=t.get("Name", ""),
        duration=parse_duration(t.get("Duration")),
        framerate=rate.num / rate.den if rate.den else 0.0,
        resolution=Size(int(geo.get("Width", 0)), int(geo.get("Height", 0))),
        par=_rational(geo.get("PAR")),
        auto_cropping=tuple(int(c) for c in crop[:4]),
        angle_count=int(t.get("AngleCount", 1)),
        audio_tracks=audio,
        subtitles=subtitles,
        chapters=chapters,
        is_main_feature=main_feature > 0 and index == main_feature,
    )


def parse_title_set_json(text: str | bytes) -> tuple[tuple[Title, ...], int, dict]:
    """
    Decode hb_get_title_set_json() output.

    Returns:
        (titles, main feature title number or 0, the raw scan dict). The raw
        dict is kept by the caller to rebuild per-title data at encode time.
    """
    data = _load_object(text)
    main_feature = int(data.get("MainFeature", 0) or 0)
    titles = tuple(parse_title(t, main_feature) for t in data.get("TitleList") or [])
    return titles, main_feature, data


def find_feature_title(titles) -> int:
    """Number of the first title flagged as the main feature, else 0."""
    return next((t.title_number for t in titles if t.is_main_feature), 0)
