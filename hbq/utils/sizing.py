# hbq/utils/sizing.py
"""
Video bitrate and output size estimation.

calculate_bitrate() and calculate_file_size() are inverses built on the same
cost model: video payload + per-frame container overhead + audio payload.
"""

import math
from datetime import timedelta

from ..models.job import AudioEncodeRateType, AudioEncoding, EncodeJob, VideoRangeType
from ..models.title import Title
from .audio_tracks import get_output_tracks
from .converters import get_audio_samples_per_frame, get_default_audio_bitrate, is_passthrough

CONTAINER_OVERHEAD_PER_FRAME = 6  # bytes
LENGTH_MARGIN_SECONDS = 1.5
BYTES_PER_KBPS = 125  # 1 kbps = 1000 bits/s = 125 bytes/s


def get_job_length_seconds(job: EncodeJob, title: Title) -> float:
    """Length of the selected range of the title, in seconds."""
    if job.range_type == VideoRangeType.CHAPTERS:
        total = timedelta(0)
        for number in range(job.chapter_start, job.chapter_end + 1):
            if 1 <= number <= len(title.chapters):
                total += title.chapters[number - 1].duration
        return total.total_seconds()
    if job.range_type == VideoRangeType.SECONDS:
        return job.seconds_end - job.seconds_start
    if job.range_type == VideoRangeType.FRAMES:
        if not title.framerate:
            return 0.0
        return (job.frames_end - job.frames_start) / title.framerate
    return title.duration.total_seconds()


def get_audio_size(job: EncodeJob, length_seconds: float, title: Title,
                   output_tracks: list[tuple[AudioEncoding, int]]) -> int:
    """Estimated bytes taken by all audio output tracks, container overhead included."""
    audio_bytes = 0
    for encoding, track_number in output_tracks:
        track = title.audio_tracks[track_number - 1]

        if is_passthrough(encoding.encoder):
            # Source bitrate is in bits per second
            bytes_per_second = track.bitrate // 8
        elif encoding.encode_rate_type == AudioEncodeRateType.QUALITY:
            bytes_per_second = 0
        else:
            kbps = encoding.bitrate if encoding.bitrate > 0 else get_default_audio_bitrate(encoding.encoder)
            bytes_per_second = kbps * 1000 // 8

        audio_bytes += int(length_seconds * bytes_per_second)

        sample_rate = encoding.sample_rate_raw or track.sample_rate
        audio_bytes += sample_rate * CONTAINER_OVERHEAD_PER_FRAME // get_audio_samples_per_frame(encoding.encoder)

    return audio_bytes


def _cost_basis(job: EncodeJob, title: Title, overall_selected_length_seconds: float):
    if overall_selected_length_seconds > 0:
        length_seconds = overall_selected_length_seconds
    else:
        length_seconds = get_job_length_seconds(job, title)
    length_seconds += LENGTH_MARGIN_SECONDS

    # VFR has no single output rate; the peak/fixed rate stands in for it
    framerate = job.encoding_profile.framerate or title.framerate
    frames = int(length_seconds * framerate)

    overhead = frames * CONTAINER_OVERHEAD_PER_FRAME
    audio = get_audio_size(job, length_seconds, title, get_output_tracks(job, title))
    return length_seconds, overhead + audio


def calculate_bitrate(job: EncodeJob, title: Title, size_mb: float,
                      overall_selected_length_seconds: float = 0) -> int:
    """
    Video bitrate (kbps) that makes the output land on size_mb.

    Args:
        job: The encode job.
        title: The title the job encodes.
        size_mb: Target output size in MB.
        overall_selected_length_seconds: Overrides the range length when positive
            (used by preview encodes, where the job range is not the real length).

    Returns:
        The bitrate in kbps, or 0 when audio and overhead alone exceed the target.
    """
    length_seconds, fixed_bytes = _cost_basis(job, title, overall_selected_length_seconds)
    available_bytes = int(size_mb * 1024 * 1024) - fixed_bytes
    if available_bytes < 0:
        return 0
    return math.floor(available_bytes / (BYTES_PER_KBPS * length_seconds))


def calculate_file_size(job: EncodeJob, title: Title, video_bitrate: int,
                        overall_selected_length_seconds: float = 0) -> float:
    """Estimated output size in MB for the given video bitrate (kbps)."""
    length_seconds, fixed_bytes = _cost_basis(job, title, overall_selected_length_seconds)
    total_bytes = int(length_seconds * video_bitrate * BYTES_PER_KBPS) + fixed_bytes
    return total_bytes / 1024 / 1024
