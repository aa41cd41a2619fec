# hbq/utils/converters.py
"""
Closed name tables between task enumerations and engine option names.

Every table is keyed by the full enumeration it covers. Looking up anything
that is not a member raises InvalidTaskError, so a bad task fails when it is
translated rather than when the engine rejects the job.
"""

from enum import Enum

from ..errors import InvalidTaskError
from ..models.task import (
    AudioEncoder, Decomb, Deinterlace, Denoise, DenoisePreset, DenoiseTune, Detelecine,
    H264Profile, H265Profile, Mixdown, OutputFormat, VideoEncoder, X264Preset, X264Tune,
    X265Preset, X265Tune,
)

CONTAINER_NAMES = {
    OutputFormat.MP4: "av_mp4",
    OutputFormat.MKV: "av_mkv",
}

VIDEO_ENCODER_NAMES = {
    VideoEncoder.X264: "x264",
    VideoEncoder.X265: "x265",
    VideoEncoder.QUICKSYNC: "qsv_h264",
    VideoEncoder.FFMPEG: "ffmpeg4",
    VideoEncoder.FFMPEG2: "ffmpeg2",
    VideoEncoder.THEORA: "theora",
    VideoEncoder.VP8: "VP8",
}

AUDIO_ENCODER_NAMES = {
    AudioEncoder.FFAAC: "av_aac",
    AudioEncoder.FDK_AAC: "fdk_aac",
    AudioEncoder.FDK_HAAC: "fdk_haac",
    AudioEncoder.LAME: "mp3",
    AudioEncoder.VORBIS: "vorbis",
    AudioEncoder.AC3: "ac3",
    AudioEncoder.FFFLAC: "flac16",
    AudioEncoder.FFFLAC24: "flac24",
    AudioEncoder.AAC_PASSTHRU: "copy:aac",
    AudioEncoder.AC3_PASSTHRU: "copy:ac3",
    AudioEncoder.DTS_PASSTHRU: "copy:dts",
    AudioEncoder.DTSHD_PASSTHRU: "copy:dtshd",
    AudioEncoder.MP3_PASSTHRU: "copy:mp3",
    AudioEncoder.PASSTHROUGH: "copy",
}

MIXDOWN_NAMES = {
    Mixdown.NONE: "none",
    Mixdown.MONO: "mono",
    Mixdown.LEFT_ONLY: "left_only",
    Mixdown.RIGHT_ONLY: "right_only",
    Mixdown.STEREO: "stereo",
    Mixdown.DOLBY_SURROUND: "dpl1",
    Mixdown.DOLBY_PRO_LOGIC_II: "dpl2",
    Mixdown.FIVE_POINT_ONE: "5point1",
    Mixdown.SIX_POINT_ONE: "6point1",
    Mixdown.SEVEN_POINT_ONE: "7point1",
    Mixdown.FIVE_2_LFE: "5_2_lfe",
    Mixdown.AUTO: "auto",
}

DEINTERLACE_NAMES = {
    Deinterlace.OFF: "off",
    Deinterlace.FAST: "fast",
    Deinterlace.SLOW: "slow",
    Deinterlace.SLOWER: "slower",
    Deinterlace.BOB: "bob",
    Deinterlace.CUSTOM: "custom",
}

DECOMB_NAMES = {
    Decomb.OFF: "off",
    Decomb.DEFAULT: "default",
    Decomb.FAST: "fast",
    Decomb.BOB: "bob",
    Decomb.CUSTOM: "custom",
}

DETELECINE_NAMES = {
    Detelecine.OFF: "off",
    Detelecine.DEFAULT: "default",
    Detelecine.CUSTOM: "custom",
}

DENOISE_NAMES = {
    Denoise.OFF: "off",
    Denoise.HQDN3D: "hqdn3d",
    Denoise.NLMEANS: "nlmeans",
}

DENOISE_PRESET_NAMES = {
    DenoisePreset.WEAK: "weak",
    DenoisePreset.MEDIUM: "medium",
    DenoisePreset.STRONG: "strong",
    DenoisePreset.CUSTOM: "custom",
    DenoisePreset.ULTRALIGHT: "ultralight",
    DenoisePreset.LIGHT: "light",
}

DENOISE_TUNE_NAMES = {
    DenoiseTune.NONE: "none",
    DenoiseTune.FILM: "film",
    DenoiseTune.GRAIN: "grain",
    DenoiseTune.HIGH_MOTION: "highmotion",
    DenoiseTune.ANIMATION: "animation",
}

X264_PRESET_NAMES = {p: p.value.lower() for p in X264Preset}
X265_PRESET_NAMES = {p: p.value.lower() for p in X265Preset}

X264_TUNE_NAMES = {
    X264Tune.NONE: "none",
    X264Tune.FILM: "film",
    X264Tune.ANIMATION: "animation",
    X264Tune.GRAIN: "grain",
    X264Tune.STILL_IMAGE: "stillimage",
    X264Tune.PSNR: "psnr",
    X264Tune.SSIM: "ssim",
    X264Tune.ZERO_LATENCY: "zerolatency",
}

X265_TUNE_NAMES = {
    X265Tune.NONE: "none",
    X265Tune.PSNR: "psnr",
    X265Tune.SSIM: "ssim",
    X265Tune.GRAIN: "grain",
    X265Tune.FAST_DECODE: "fastdecode",
    X265Tune.ZERO_LATENCY: "zerolatency",
}

H264_PROFILE_NAMES = {
    H264Profile.NONE: "none",
    H264Profile.BASELINE: "baseline",
    H264Profile.MAIN: "main",
    H264Profile.HIGH: "high",
}

H265_PROFILE_NAMES = {
    H265Profile.NONE: "none",
    H265Profile.MAIN: "main",
    H265Profile.MAIN10: "main10",
    H265Profile.MAIN_STILL_PICTURE: "mainstillpicture",
}

# Audio sizing: frame length in samples and the default bitrate (kbps) the
# engine picks when an encoding leaves its bitrate at 0.
AUDIO_SAMPLES_PER_FRAME = {
    "av_aac": 1024, "fdk_aac": 1024, "copy:aac": 1024, "vorbis": 1024,
    "fdk_haac": 2048,
    "mp3": 1152, "copy:mp3": 1152,
    "ac3": 1536, "copy:ac3": 1536, "copy:dts": 1536, "copy:dtshd": 1536, "copy": 1536,
    "flac16": 4608, "flac24": 4608,
}
DEFAULT_SAMPLES_PER_FRAME = 1536

DEFAULT_AUDIO_BITRATES = {
    "av_aac": 160, "fdk_aac": 160, "fdk_haac": 80,
    "mp3": 160, "vorbis": 160, "ac3": 448,
    "flac16": 0, "flac24": 0,  # lossless, not predictable
}

_SAMPLE_RATES_RAW = {
    22.05: 22050,
    24: 24000,
    44.1: 32000,  # historical mapping, kept as observed
    48: 48000,
}


def lookup(table: dict, value: Enum, field_name: str) -> str:
    """Return the engine name for value, rejecting anything outside the table."""
    try:
        return table[value]
    except (KeyError, TypeError):
        raise InvalidTaskError(field_name, value) from None


def get_sample_rate_raw(rate: float) -> int:
    """Map a kHz sample rate from the UI to the raw engine rate; unknown rates fall back to 48000."""
    return _SAMPLE_RATES_RAW.get(rate, 48000)


def is_passthrough(encoder_name: str | None) -> bool:
    return bool(encoder_name) and encoder_name.startswith("copy")


def get_audio_samples_per_frame(encoder_name: str | None) -> int:
    return AUDIO_SAMPLES_PER_FRAME.get(encoder_name, DEFAULT_SAMPLES_PER_FRAME)


def get_default_audio_bitrate(encoder_name: str | None) -> int:
    return DEFAULT_AUDIO_BITRATES.get(encoder_name, 0)
