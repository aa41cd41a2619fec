# hbq/models/task.py
"""
User-level task description, as produced by the front-end.

A task describes one title of one source the way the UI presents it. It is
translated into an engine-facing EncodeJob by utils.model_creator.
"""

from dataclasses import dataclass, field
from enum import Enum

from .job import Anamorphic, Cropping, VideoEncodeRateType


class PointToPointMode(Enum):
    CHAPTERS = "chapters"
    SECONDS = "seconds"
    FRAMES = "frames"
    PREVIEW = "preview"


class OutputFormat(Enum):
    MP4 = "mp4"
    MKV = "mkv"
    WEBM = "webm"  # no engine container in this build


class VideoEncoder(Enum):
    X264 = "x264"
    X265 = "x265"
    QUICKSYNC = "qsv_h264"
    FFMPEG = "mpeg4"
    FFMPEG2 = "mpeg2"
    THEORA = "theora"
    VP8 = "vp8"


class FramerateMode(Enum):
    VFR = "vfr"
    CFR = "cfr"
    PFR = "pfr"


class AudioEncoder(Enum):
    FFAAC = "ffaac"
    FDK_AAC = "fdkaac"
    FDK_HAAC = "fdkheaac"
    LAME = "lame"
    VORBIS = "vorbis"
    AC3 = "ac3"
    FFFLAC = "flac16"
    FFFLAC24 = "flac24"
    AAC_PASSTHRU = "copy:aac"
    AC3_PASSTHRU = "copy:ac3"
    DTS_PASSTHRU = "copy:dts"
    DTSHD_PASSTHRU = "copy:dtshd"
    MP3_PASSTHRU = "copy:mp3"
    PASSTHROUGH = "copy"


class Mixdown(Enum):
    NONE = "none"
    MONO = "mono"
    LEFT_ONLY = "left_only"
    RIGHT_ONLY = "right_only"
    STEREO = "stereo"
    DOLBY_SURROUND = "dolby_surround"
    DOLBY_PRO_LOGIC_II = "dolby_pro_logic_ii"
    FIVE_POINT_ONE = "5point1"
    SIX_POINT_ONE = "6point1"
    SEVEN_POINT_ONE = "7point1"
    FIVE_2_LFE = "5_2_lfe"
    AUTO = "auto"


class Deinterlace(Enum):
    OFF = "Off"
    FAST = "Fast"
    SLOW = "Slow"
    SLOWER = "Slower"
    BOB = "Bob"
    CUSTOM = "Custom"


class Decomb(Enum):
    OFF = "Off"
    DEFAULT = "Default"
    FAST = "Fast"
    BOB = "Bob"
    CUSTOM = "Custom"


class Detelecine(Enum):
    OFF = "Off"
    DEFAULT = "Default"
    CUSTOM = "Custom"


class Denoise(Enum):
    OFF = "Off"
    HQDN3D = "hqdn3d"
    NLMEANS = "NLMeans"


class DenoisePreset(Enum):
    WEAK = "Weak"
    MEDIUM = "Medium"
    STRONG = "Strong"
    CUSTOM = "Custom"
    ULTRALIGHT = "Ultralight"
    LIGHT = "Light"


class DenoiseTune(Enum):
    NONE = "None"
    FILM = "Film"
    GRAIN = "Grain"
    HIGH_MOTION = "High Motion"
    ANIMATION = "Animation"


class X264Preset(Enum):
    ULTRAFAST = "Ultrafast"
    SUPERFAST = "Superfast"
    VERYFAST = "Veryfast"
    FASTER = "Faster"
    FAST = "Fast"
    MEDIUM = "Medium"
    SLOW = "Slow"
    SLOWER = "Slower"
    VERYSLOW = "Veryslow"
    PLACEBO = "Placebo"


class X264Tune(Enum):
    NONE = "None"
    FILM = "Film"
    ANIMATION = "Animation"
    GRAIN = "Grain"
    STILL_IMAGE = "Still Image"
    PSNR = "PSNR"
    SSIM = "SSIM"
    ZERO_LATENCY = "Zero Latency"


class H264Profile(Enum):
    NONE = "None"
    BASELINE = "Baseline"
    MAIN = "Main"
    HIGH = "High"


class X265Preset(Enum):
    ULTRAFAST = "Ultrafast"
    SUPERFAST = "Superfast"
    VERYFAST = "Veryfast"
    FASTER = "Faster"
    FAST = "Fast"
    MEDIUM = "Medium"
    SLOW = "Slow"
    SLOWER = "Slower"
    VERYSLOW = "Veryslow"
    PLACEBO = "Placebo"


class X265Tune(Enum):
    NONE = "None"
    PSNR = "PSNR"
    SSIM = "SSIM"
    GRAIN = "Grain"
    FAST_DECODE = "Fast Decode"
    ZERO_LATENCY = "Zero Latency"


class H265Profile(Enum):
    NONE = "None"
    MAIN = "Main"
    MAIN10 = "Main10"
    MAIN_STILL_PICTURE = "Main Still Picture"


@dataclass
class AudioTrack:
    track: int | None = None  # 1-based source track; None => synthesized track
    encoder: AudioEncoder = AudioEncoder.FFAAC
    bitrate: int = 160
    drc: float = 0.0
    gain: float = 0.0
    mixdown: Mixdown = Mixdown.DOLBY_PRO_LOGIC_II
    sample_rate: float = 0  # kHz; 0 => auto
    track_name: str | None = None


@dataclass
class SourceSubtitleRef:
    """A subtitle stream discovered by the scan."""
    track_number: int
    language: str | None = None


@dataclass
class SubtitleTrack:
    is_srt_subtitle: bool = False
    source_track: SourceSubtitleRef | None = None
    default: bool = False
    forced: bool = False
    burned: bool = False
    srt_file_name: str | None = None
    srt_lang: str | None = None
    srt_char_code: str | None = None
    srt_offset: int = 0


@dataclass
class ChapterMarker:
    chapter_number: int
    chapter_name: str = ""


@dataclass
class EncodeTask:
    # Source / destination
    source: str | None = None
    destination: str | None = None
    title: int = 1
    angle: int = 0
    point_to_point_mode: PointToPointMode = PointToPointMode.CHAPTERS
    start_point: int = 0
    end_point: int = 0

    # Output
    output_format: OutputFormat = OutputFormat.MP4
    optimize_mp4: bool = False
    ipod_5g_support: bool = False

    # Picture
    width: int | None = None
    height: int | None = None
    max_width: int | None = None
    max_height: int | None = None
    cropping: Cropping = field(default_factory=Cropping)
    anamorphic: Anamorphic = Anamorphic.NONE
    display_width: float | None = None
    keep_display_aspect: bool = False
    pixel_aspect_x: int = 0
    pixel_aspect_y: int = 0
    modulus: int | None = None

    # Filters
    deinterlace: Deinterlace = Deinterlace.OFF
    custom_deinterlace: str | None = None
    decomb: Decomb = Decomb.OFF
    custom_decomb: str | None = None
    detelecine: Detelecine = Detelecine.OFF
    custom_detelecine: str | None = None
    denoise: Denoise = Denoise.OFF
    denoise_preset: DenoisePreset = DenoisePreset.MEDIUM
    denoise_tune: DenoiseTune = DenoiseTune.NONE
    custom_denoise: str | None = None
    deblock: int = 4
    grayscale: bool = False

    # Video
    video_encoder: VideoEncoder = VideoEncoder.X264
    framerate_mode: FramerateMode = FramerateMode.VFR
    framerate: float | None = None
    video_encode_rate_type: VideoEncodeRateType = VideoEncodeRateType.CONSTANT_QUALITY
    quality: float | None = None
    video_bitrate: int | None = None
    two_pass: bool = False
    turbo_first_pass: bool = False

    # Encoder tuning
    x264_preset: X264Preset = X264Preset.VERYFAST
    x264_tune: X264Tune = X264Tune.NONE
    h264_profile: H264Profile = H264Profile.NONE
    h264_level: str | None = None
    fast_decode: bool = False
    x265_preset: X265Preset = X265Preset.VERYFAST
    x265_tune: X265Tune = X265Tune.NONE
    h265_profile: H265Profile = H265Profile.NONE

    # Advanced
    show_advanced_tab: bool = False
    advanced_encoder_options: str | None = None
    extra_advanced_arguments: str | None = None

    # Tracks / chapters
    audio_tracks: list[AudioTrack] = field(default_factory=list)
    subtitle_tracks: list[SubtitleTrack] = field(default_factory=list)
    include_chapter_markers: bool = False
    chapter_names: list[ChapterMarker] = field(default_factory=list)


@dataclass
class QueueTask:
    task: EncodeTask | None = None
    status: str = "Waiting"
