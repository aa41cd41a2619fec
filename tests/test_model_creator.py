"""
Unit tests for task → EncodeJob translation.
"""

import pytest

from hbq.errors import InvalidTaskError
from hbq.models.job import Anamorphic, Cropping, VideoRangeType
from hbq.models.task import (
    AudioEncoder, AudioTrack, ChapterMarker, Deinterlace, EncodeTask, FramerateMode, H265Profile,
    Mixdown, OutputFormat, PointToPointMode, QueueTask, SourceSubtitleRef, SubtitleTrack, VideoEncoder,
    X264Tune, X265Tune,
)
from hbq.utils.model_creator import translate_task


def _range_fields(job):
    return {
        "chapters": (job.chapter_start, job.chapter_end),
        "seconds": (job.seconds_start, job.seconds_end),
        "frames": (job.frames_start, job.frames_end),
    }


class TestAbsentTask:
    def test_none(self):
        assert translate_task(None) is None

    def test_empty_queue_entry(self):
        assert translate_task(QueueTask(task=None)) is None

    def test_queue_entry_is_unwrapped(self):
        job = translate_task(QueueTask(task=EncodeTask(title=3)))
        assert job.title == 3


class TestRange:
    @pytest.mark.parametrize("mode, range_type, key", [
        (PointToPointMode.CHAPTERS, VideoRangeType.CHAPTERS, "chapters"),
        (PointToPointMode.SECONDS, VideoRangeType.SECONDS, "seconds"),
        (PointToPointMode.FRAMES, VideoRangeType.FRAMES, "frames"),
    ])
    def test_only_the_selected_range_is_set(self, mode, range_type, key):
        job = translate_task(EncodeTask(point_to_point_mode=mode, start_point=2, end_point=5))

        assert job.range_type == range_type
        fields = _range_fields(job)
        assert fields.pop(key) == (2, 5)
        assert all(v == (0, 0) for v in fields.values())

    def test_preview_mode_leaves_range_unset(self):
        job = translate_task(EncodeTask(point_to_point_mode=PointToPointMode.PREVIEW, start_point=2, end_point=5))
        assert job.range_type == VideoRangeType.ALL
        assert all(v == (0, 0) for v in _range_fields(job).values())


class TestAudio:
    def test_tracks_become_encodings_and_chosen_tracks(self):
        task = EncodeTask(audio_tracks=[
            AudioTrack(track=2, encoder=AudioEncoder.FFAAC, bitrate=128, sample_rate=44.1,
                       mixdown=Mixdown.STEREO, track_name="Commentary"),
            AudioTrack(track=None, encoder=AudioEncoder.AC3_PASSTHRU),
        ])
        job = translate_task(task)

        first, second = job.encoding_profile.audio_encodings
        assert first.encoder == "av_aac"
        assert first.bitrate == 128
        assert first.sample_rate_raw == 32000
        assert first.mixdown == "stereo"
        assert first.input_number == 2
        assert first.name == "Commentary"
        assert second.encoder == "copy:ac3"
        assert second.input_number == 0
        assert job.chosen_audio_tracks == [2]

    def test_invalid_encoder_rejected(self):
        task = EncodeTask(audio_tracks=[AudioTrack(track=1, encoder="faac")])
        with pytest.raises(InvalidTaskError):
            translate_task(task)


class TestPictureAndFilters:
    def test_picture_fields(self):
        task = EncodeTask(
            width=1280, height=None, max_width=1920, anamorphic=Anamorphic.CUSTOM,
            cropping=Cropping(top=8, bottom=8, left=0, right=0), display_width=853.6,
            pixel_aspect_x=40, pixel_aspect_y=33, modulus=None, keep_display_aspect=True,
        )
        p = translate_task(task).encoding_profile

        assert (p.width, p.height, p.max_width, p.max_height) == (1280, 0, 1920, 0)
        assert p.cropping.as_list() == [8, 8, 0, 0]
        assert p.cropping is not task.cropping
        assert p.display_width == 854
        assert (p.pixel_aspect_x, p.pixel_aspect_y) == (40, 33)
        assert p.modulus == 16
        assert p.keep_display_aspect
        assert p.anamorphic == Anamorphic.CUSTOM

    @pytest.mark.parametrize("slider, expected", [(4, 0), (0, 0), (5, 5), (15, 15)])
    def test_deblock_off_at_four_and_below(self, slider, expected):
        assert translate_task(EncodeTask(deblock=slider)).encoding_profile.deblock == expected

    def test_filter_names(self):
        p = translate_task(EncodeTask(deinterlace=Deinterlace.SLOWER, grayscale=True)).encoding_profile
        assert p.deinterlace == "slower"
        assert p.decomb == "off"
        assert p.denoise_tune == "none"
        assert p.grayscale


class TestVideo:
    def test_x264_tunes_and_profile(self):
        task = EncodeTask(
            video_encoder=VideoEncoder.X264, x264_tune=X264Tune.FILM, fast_decode=True,
            h264_level="4.1", framerate_mode=FramerateMode.PFR, framerate=29.97,
        )
        p = translate_task(task).encoding_profile

        assert p.video_encoder == "x264"
        assert p.video_preset == "veryfast"
        assert p.video_tunes == ["film", "fastdecode"]
        assert p.video_profile == "none"
        assert p.video_level == "4.1"
        assert p.peak_framerate and not p.constant_framerate
        assert p.framerate == 29.97

    def test_x264_no_tune(self):
        p = translate_task(EncodeTask(x264_tune=X264Tune.NONE)).encoding_profile
        assert p.video_tunes == []

    def test_x265_profile_none_is_left_unset(self):
        task = EncodeTask(video_encoder=VideoEncoder.X265, h265_profile=H265Profile.NONE,
                          x265_tune=X265Tune.GRAIN)
        p = translate_task(task).encoding_profile

        assert p.video_encoder == "x265"
        assert p.video_profile is None
        assert p.video_tunes == ["grain"]

    def test_advanced_options_source(self):
        base = dict(advanced_encoder_options="ref=4", extra_advanced_arguments="bframes=2")
        assert translate_task(EncodeTask(show_advanced_tab=True, **base)).encoding_profile.video_options == "ref=4"
        assert translate_task(EncodeTask(show_advanced_tab=False, **base)).encoding_profile.video_options == "bframes=2"


class TestOutputAndExtras:
    def test_container_and_paths(self):
        job = translate_task(EncodeTask(source="/in.iso", destination="/out.mkv",
                                        output_format=OutputFormat.MKV, angle=2))
        assert job.encoding_profile.container_name == "av_mkv"
        assert (job.source_path, job.output_path, job.angle) == ("/in.iso", "/out.mkv", 2)

    def test_chapters(self):
        task = EncodeTask(include_chapter_markers=True,
                          chapter_names=[ChapterMarker(1, "Intro"), ChapterMarker(2, "Outro")])
        job = translate_task(task)
        assert job.custom_chapter_names == ["Intro", "Outro"]
        assert job.use_default_chapter_names
        assert job.encoding_profile.include_chapter_markers

    def test_subtitles(self):
        task = EncodeTask(subtitle_tracks=[
            SubtitleTrack(source_track=SourceSubtitleRef(track_number=3), forced=True, burned=True),
            SubtitleTrack(is_srt_subtitle=True, srt_file_name="/subs/en.srt", srt_lang="eng",
                          srt_char_code="UTF-8", srt_offset=250, default=True),
            SubtitleTrack(source_track=None),
        ])
        subs = translate_task(task).subtitles

        assert len(subs.source_subtitles) == 1
        src = subs.source_subtitles[0]
        assert (src.track_number, src.forced, src.burned_in) == (3, True, True)
        srt = subs.srt_subtitles[0]
        assert (srt.file_name, srt.language_code, srt.character_code, srt.offset, srt.default) == (
            "/subs/en.srt", "eng", "UTF-8", 250, True)
