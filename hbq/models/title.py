# hbq/models/title.py
from dataclasses import dataclass, field
from datetime import timedelta
from typing import NamedTuple


class Rational(NamedTuple):
    num: int
    den: int


class Size(NamedTuple):
    width: int
    height: int


@dataclass(frozen=True)
class Geometry:
    width: int
    height: int
    par: Rational


@dataclass(frozen=True)
class AudioTrackInfo:
    track_number: int  # 1-based
    language: str = ""
    language_code: str = ""
    description: str = ""
    codec_name: str = ""
    sample_rate: int = 0  # Hz
    bitrate: int = 0      # bits per second
    channel_count: int = 0


@dataclass(frozen=True)
class SubtitleInfo:
    track_number: int  # 1-based
    language: str = ""
    language_code: str = ""
    source_name: str = ""


@dataclass(frozen=True)
class Chapter:
    chapter_number: int
    name: str = ""
    duration: timedelta = timedelta(0)


@dataclass(frozen=True)
class Title:
    """One title found by a scan; replaced wholesale on every scan."""
    title_number: int
    path: str = ""
    name: str = ""
    duration: timedelta = timedelta(0)
    framerate: float = 0.0
    resolution: Size = Size(0, 0)
    par: Rational = Rational(1, 1)
    auto_cropping: tuple[int, int, int, int] = (0, 0, 0, 0)
    angle_count: int = 1
    audio_tracks: tuple[AudioTrackInfo, ...] = field(default_factory=tuple)
    subtitles: tuple[SubtitleInfo, ...] = field(default_factory=tuple)
    chapters: tuple[Chapter, ...] = field(default_factory=tuple)
    is_main_feature: bool = False
