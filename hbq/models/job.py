# hbq/models/job.py
from dataclasses import dataclass, field
from enum import Enum, IntEnum


class Anamorphic(IntEnum):
    # Values match the engine's hb_anamorphic_mode_t
    NONE = 0
    STRICT = 1
    LOOSE = 2
    CUSTOM = 3


class VideoRangeType(Enum):
    ALL = "all"
    CHAPTERS = "chapters"
    SECONDS = "seconds"
    FRAMES = "frames"
    PREVIEW = "preview"


class VideoEncodeRateType(Enum):
    TARGET_SIZE = "target_size"
    AVERAGE_BITRATE = "average_bitrate"
    CONSTANT_QUALITY = "constant_quality"


class AudioEncodeRateType(Enum):
    BITRATE = "bitrate"
    QUALITY = "quality"


class CroppingType(Enum):
    AUTOMATIC = "automatic"
    NONE = "none"
    CUSTOM = "custom"


@dataclass
class Cropping:
    top: int = 0
    bottom: int = 0
    left: int = 0
    right: int = 0

    def as_list(self) -> list[int]:
        """Engine order: top, bottom, left, right."""
        return [self.top, self.bottom, self.left, self.right]


@dataclass
class AudioEncoding:
    encoder: str | None = None
    bitrate: int = 0
    drc: float = 0.0
    gain: float = 0.0
    sample_rate_raw: int = 0
    mixdown: str | None = None
    input_number: int = 0  # 1-based index into chosen tracks; 0 => every chosen track
    encode_rate_type: AudioEncodeRateType = AudioEncodeRateType.BITRATE
    name: str | None = None


@dataclass
class SourceSubtitle:
    track_number: int
    default: bool = False
    forced: bool = False
    burned_in: bool = False


@dataclass
class SrtSubtitle:
    file_name: str | None = None
    language_code: str | None = None
    character_code: str | None = None
    offset: int = 0
    default: bool = False
    burned_in: bool = False


@dataclass
class Subtitles:
    source_subtitles: list[SourceSubtitle] = field(default_factory=list)
    srt_subtitles: list[SrtSubtitle] = field(default_factory=list)


@dataclass
class EncodingProfile:
    # Output
    container_name: str | None = None
    optimize: bool = False
    ipod_5g_support: bool = False

    # Picture
    anamorphic: Anamorphic = Anamorphic.NONE
    cropping: Cropping = field(default_factory=Cropping)
    cropping_type: CroppingType = CroppingType.CUSTOM
    width: int = 0
    height: int = 0
    max_width: int = 0
    max_height: int = 0
    display_width: int = 0
    use_display_width: bool = False
    keep_display_aspect: bool = False
    pixel_aspect_x: int = 0
    pixel_aspect_y: int = 0
    modulus: int = 16

    # Filters
    deinterlace: str = "off"
    custom_deinterlace: str | None = None
    decomb: str = "off"
    custom_decomb: str | None = None
    detelecine: str = "off"
    custom_detelecine: str | None = None
    denoise: str = "off"
    denoise_preset: str | None = None
    denoise_tune: str | None = None
    custom_denoise: str | None = None
    deblock: int = 0  # 0 => off
    grayscale: bool = False

    # Video
    video_encoder: str | None = None
    framerate: float = 0  # 0 => same as source
    constant_framerate: bool = False
    peak_framerate: bool = False
    video_encode_rate_type: VideoEncodeRateType = VideoEncodeRateType.CONSTANT_QUALITY
    quality: float = 0
    video_bitrate: int = 0
    two_pass: bool = False
    turbo_first_pass: bool = False
    video_preset: str | None = None
    video_tunes: list[str] = field(default_factory=list)
    video_profile: str | None = None
    video_level: str | None = None
    video_options: str | None = None

    # Audio / chapters
    audio_encodings: list[AudioEncoding] = field(default_factory=list)
    include_chapter_markers: bool = False


@dataclass
class EncodeJob:
    output_path: str | None = None
    source_path: str | None = None
    title: int = 0
    angle: int = 0

    range_type: VideoRangeType = VideoRangeType.ALL
    chapter_start: int = 0
    chapter_end: int = 0
    seconds_start: float = 0
    seconds_end: float = 0
    frames_start: int = 0
    frames_end: int = 0

    encoding_profile: EncodingProfile = field(default_factory=EncodingProfile)
    chosen_audio_tracks: list[int] = field(default_factory=list)  # 1-based source tracks
    subtitles: Subtitles = field(default_factory=Subtitles)
    custom_chapter_names: list[str] = field(default_factory=list)
    use_default_chapter_names: bool = False
