# hbq/utils/model_creator.py
"""
Translate a UI task into the engine-facing EncodeJob model.

translate_task() is pure: it never touches the engine, and the returned job
belongs to the caller.
"""

import logging

from ..models.job import (
    AudioEncodeRateType, AudioEncoding, Cropping, CroppingType, EncodeJob, EncodingProfile,
    SourceSubtitle, SrtSubtitle, Subtitles, VideoRangeType,
)
from ..models.task import (
    EncodeTask, FramerateMode, H265Profile, PointToPointMode, QueueTask, VideoEncoder, X264Tune, X265Tune,
)
from . import converters as conv

logger = logging.getLogger(__name__)

_RANGE_TYPES = {
    PointToPointMode.CHAPTERS: VideoRangeType.CHAPTERS,
    PointToPointMode.SECONDS: VideoRangeType.SECONDS,
    PointToPointMode.FRAMES: VideoRangeType.FRAMES,
}


def translate_task(task: EncodeTask | QueueTask | None) -> EncodeJob | None:
    """
    Build an EncodeJob (with its EncodingProfile) from a task.

    Args:
        task: The task, or a queue entry wrapping one.

    Returns:
        The translated job, or None when there is no task to translate.

    Raises:
        InvalidTaskError: An enumerated task field holds a value outside its table.
    """
    if isinstance(task, QueueTask):
        task = task.task
    if task is None:
        return None

    profile = EncodingProfile()
    job = EncodeJob(encoding_profile=profile)

    _apply_audio(task, job)
    _apply_range(task, job)

    job.output_path = task.destination
    job.source_path = task.source
    job.title = task.title
    job.angle = task.angle

    # Output
    profile.ipod_5g_support = task.ipod_5g_support
    profile.optimize = task.optimize_mp4
    profile.container_name = conv.CONTAINER_NAMES.get(task.output_format)

    _apply_picture(task, profile)
    _apply_filters(task, profile)
    _apply_video(task, profile)

    # Chapters
    profile.include_chapter_markers = task.include_chapter_markers
    job.custom_chapter_names = [marker.chapter_name for marker in task.chapter_names]
    job.use_default_chapter_names = task.include_chapter_markers

    profile.video_options = (
        task.advanced_encoder_options if task.show_advanced_tab else task.extra_advanced_arguments
    )

    _apply_subtitles(task, job)

    logger.debug(
        "Translated task for title %s: range=%s encoder=%s audio=%d subtitles=%d",
        job.title, job.range_type.value, profile.video_encoder,
        len(profile.audio_encodings),
        len(job.subtitles.source_subtitles) + len(job.subtitles.srt_subtitles),
    )
    return job


def _apply_audio(task: EncodeTask, job: EncodeJob):
    encodings = job.encoding_profile.audio_encodings
    for track in task.audio_tracks:
        encodings.append(AudioEncoding(
            bitrate=track.bitrate,
            drc=track.drc,
            gain=track.gain,
            encoder=conv.lookup(conv.AUDIO_ENCODER_NAMES, track.encoder, "audio encoder"),
            input_number=track.track if track.track is not None else 0,
            mixdown=conv.lookup(conv.MIXDOWN_NAMES, track.mixdown, "mixdown"),
            sample_rate_raw=conv.get_sample_rate_raw(track.sample_rate),
            encode_rate_type=AudioEncodeRateType.BITRATE,
            name=track.track_name,
        ))
        if track.track is not None:
            job.chosen_audio_tracks.append(track.track)


def _apply_range(task: EncodeTask, job: EncodeJob):
    mode = task.point_to_point_mode
    if mode in _RANGE_TYPES:
        job.range_type = _RANGE_TYPES[mode]

    if mode == PointToPointMode.SECONDS:
        job.seconds_start, job.seconds_end = task.start_point, task.end_point
    elif mode == PointToPointMode.CHAPTERS:
        job.chapter_start, job.chapter_end = task.start_point, task.end_point
    elif mode == PointToPointMode.FRAMES:
        job.frames_start, job.frames_end = task.start_point, task.end_point


def _apply_picture(task: EncodeTask, profile: EncodingProfile):
    profile.anamorphic = task.anamorphic
    crop = task.cropping
    profile.cropping = Cropping(top=crop.top, bottom=crop.bottom, left=crop.left, right=crop.right)
    profile.cropping_type = CroppingType.CUSTOM
    profile.display_width = int(round(task.display_width)) if task.display_width is not None else 0
    profile.pixel_aspect_x = task.pixel_aspect_x
    profile.pixel_aspect_y = task.pixel_aspect_y
    profile.height = task.height or 0
    profile.width = task.width or 0
    profile.max_height = task.max_height or 0
    profile.max_width = task.max_width or 0
    profile.keep_display_aspect = task.keep_display_aspect
    profile.modulus = task.modulus if task.modulus is not None else 16
    profile.use_display_width = True


def _apply_filters(task: EncodeTask, profile: EncodingProfile):
    profile.deinterlace = conv.lookup(conv.DEINTERLACE_NAMES, task.deinterlace, "deinterlace")
    profile.custom_deinterlace = task.custom_deinterlace
    profile.decomb = conv.lookup(conv.DECOMB_NAMES, task.decomb, "decomb")
    profile.custom_decomb = task.custom_decomb
    profile.detelecine = conv.lookup(conv.DETELECINE_NAMES, task.detelecine, "detelecine")
    profile.custom_detelecine = task.custom_detelecine
    profile.denoise = conv.lookup(conv.DENOISE_NAMES, task.denoise, "denoise")
    profile.denoise_preset = conv.lookup(conv.DENOISE_PRESET_NAMES, task.denoise_preset, "denoise preset")
    profile.denoise_tune = conv.lookup(conv.DENOISE_TUNE_NAMES, task.denoise_tune, "denoise tune")
    profile.custom_denoise = task.custom_denoise
    # 4 and below is the "off" position of the deblock slider
    if task.deblock > 4:
        profile.deblock = task.deblock
    profile.grayscale = task.grayscale


def _apply_video(task: EncodeTask, profile: EncodingProfile):
    profile.framerate = task.framerate if task.framerate is not None else 0
    profile.constant_framerate = task.framerate_mode == FramerateMode.CFR
    profile.peak_framerate = task.framerate_mode == FramerateMode.PFR
    profile.quality = task.quality if task.quality is not None else 0
    profile.video_bitrate = task.video_bitrate if task.video_bitrate is not None else 0
    profile.video_encode_rate_type = task.video_encode_rate_type
    profile.video_encoder = conv.lookup(conv.VIDEO_ENCODER_NAMES, task.video_encoder, "video encoder")
    profile.two_pass = task.two_pass
    profile.turbo_first_pass = task.turbo_first_pass

    if task.video_encoder == VideoEncoder.X264:
        profile.video_preset = conv.lookup(conv.X264_PRESET_NAMES, task.x264_preset, "x264 preset")
        profile.video_tunes = []
        if task.x264_tune != X264Tune.NONE:
            profile.video_tunes.append(conv.lookup(conv.X264_TUNE_NAMES, task.x264_tune, "x264 tune"))
        if task.fast_decode:
            profile.video_tunes.append("fastdecode")
        profile.video_profile = conv.lookup(conv.H264_PROFILE_NAMES, task.h264_profile, "h264 profile")
        profile.video_level = task.h264_level
    elif task.video_encoder == VideoEncoder.X265:
        profile.video_preset = conv.lookup(conv.X265_PRESET_NAMES, task.x265_preset, "x265 preset")
        if task.h265_profile != H265Profile.NONE:
            profile.video_profile = conv.lookup(conv.H265_PROFILE_NAMES, task.h265_profile, "h265 profile")
        profile.video_tunes = []
        if task.x265_tune != X265Tune.NONE:
            profile.video_tunes.append(conv.lookup(conv.X265_TUNE_NAMES, task.x265_tune, "x265 tune"))


def _apply_subtitles(task: EncodeTask, job: EncodeJob):
    job.subtitles = Subtitles()
    for track in task.subtitle_tracks:
        if track.is_srt_subtitle:
            job.subtitles.srt_subtitles.append(SrtSubtitle(
                character_code=track.srt_char_code,
                default=track.default,
                file_name=track.srt_file_name,
                language_code=track.srt_lang,
                offset=track.srt_offset,
                burned_in=track.burned,
            ))
        elif track.source_track is not None:
            job.subtitles.source_subtitles.append(SourceSubtitle(
                burned_in=track.burned,
                default=track.default,
                forced=track.forced,
                track_number=track.source_track.track_number,
            ))
        else:
            logger.debug("Skipping subtitle track with no source reference")
