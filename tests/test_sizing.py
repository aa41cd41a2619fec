"""
Unit tests for range length, audio size and the bitrate/size estimators.
"""

import pytest

from conftest import make_title
from hbq.models.job import AudioEncodeRateType, AudioEncoding, EncodeJob, EncodingProfile, VideoRangeType
from hbq.utils.sizing import (
    CONTAINER_OVERHEAD_PER_FRAME, LENGTH_MARGIN_SECONDS, calculate_bitrate, calculate_file_size,
    get_audio_size, get_job_length_seconds,
)


def _job(**kwargs):
    profile = kwargs.pop("profile", EncodingProfile())
    return EncodeJob(title=1, encoding_profile=profile, **kwargs)


class TestJobLength:
    def setup_method(self):
        self.title = make_title(chapters=(100, 200, 300), framerate=25.0)

    def test_chapter_range(self):
        job = _job(range_type=VideoRangeType.CHAPTERS, chapter_start=2, chapter_end=3)
        assert get_job_length_seconds(job, self.title) == 500

    def test_chapters_beyond_title_are_ignored(self):
        job = _job(range_type=VideoRangeType.CHAPTERS, chapter_start=3, chapter_end=9)
        assert get_job_length_seconds(job, self.title) == 300

    def test_seconds_range(self):
        job = _job(range_type=VideoRangeType.SECONDS, seconds_start=30, seconds_end=90)
        assert get_job_length_seconds(job, self.title) == 60

    def test_frames_range(self):
        job = _job(range_type=VideoRangeType.FRAMES, frames_start=0, frames_end=2500)
        assert get_job_length_seconds(job, self.title) == 100

    def test_frames_without_framerate(self):
        job = _job(range_type=VideoRangeType.FRAMES, frames_start=0, frames_end=2500)
        assert get_job_length_seconds(job, make_title(framerate=0)) == 0

    def test_whole_title(self):
        assert get_job_length_seconds(_job(), self.title) == 600


class TestAudioSize:
    def setup_method(self):
        self.title = make_title(audio_count=1)  # 448 kbps, 48 kHz source

    def test_passthrough_uses_source_bitrate(self):
        enc = AudioEncoding(encoder="copy:ac3", input_number=1)
        size = get_audio_size(_job(), 10, self.title, [(enc, 1)])
        assert size == 10 * 448000 // 8 + 48000 * CONTAINER_OVERHEAD_PER_FRAME // 1536

    def test_default_bitrate_when_zero(self):
        enc = AudioEncoding(encoder="av_aac", bitrate=0, sample_rate_raw=44100)
        size = get_audio_size(_job(), 10, self.title, [(enc, 1)])
        assert size == 10 * 160 * 1000 // 8 + 44100 * CONTAINER_OVERHEAD_PER_FRAME // 1024

    def test_quality_mode_counts_only_overhead(self):
        enc = AudioEncoding(encoder="vorbis", encode_rate_type=AudioEncodeRateType.QUALITY)
        size = get_audio_size(_job(), 10, self.title, [(enc, 1)])
        assert size == 48000 * CONTAINER_OVERHEAD_PER_FRAME // 1024


class TestEstimators:
    def setup_method(self):
        self.title = make_title(chapters=(1800, 1800, 1800), framerate=23.976)
        profile = EncodingProfile(audio_encodings=[
            AudioEncoding(encoder="av_aac", bitrate=160, input_number=0),
            AudioEncoding(encoder="copy:ac3", input_number=2),
        ])
        self.job = _job(profile=profile, chosen_audio_tracks=[1, 2],
                        range_type=VideoRangeType.CHAPTERS, chapter_start=1, chapter_end=3)

    @pytest.mark.parametrize("target_mb", [700, 1400, 4480])
    def test_size_of_bitrate_for_size_round_trips(self, target_mb):
        bitrate = calculate_bitrate(self.job, self.title, target_mb)
        size = calculate_file_size(self.job, self.title, bitrate)

        length = 5400 + LENGTH_MARGIN_SECONDS
        one_kbps_mb = length * 125 / 1024 / 1024
        assert bitrate > 0
        assert size <= target_mb
        assert target_mb - size <= one_kbps_mb + 1e-6

    def test_negative_budget_gives_zero(self):
        assert calculate_bitrate(self.job, self.title, 1) == 0

    def test_explicit_length_overrides_range(self):
        short = calculate_bitrate(self.job, self.title, 100, overall_selected_length_seconds=60)
        full = calculate_bitrate(self.job, self.title, 100)
        assert short > full

    def test_bigger_bitrate_bigger_file(self):
        assert calculate_file_size(self.job, self.title, 2000) > calculate_file_size(self.job, self.title, 1000)
