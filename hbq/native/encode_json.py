# hbq/native/encode_json.py
"""
Build the engine's JSON job document from an EncodeJob.

The retained scan document supplies the per-title data the engine needs
again at submission time (source path, frame rate, geometry).
"""

import json
from enum import IntEnum

from ..errors import TitleNotFoundError
from ..models.job import AudioEncodeRateType, EncodeJob, VideoEncodeRateType, VideoRangeType
from ..models.state import PreviewOptions
from ..parsers.engine_json import TICKS_PER_SECOND, parse_title
from ..utils.audio_tracks import get_output_tracks
from ..utils.converters import is_passthrough
from ..utils.geometry import resolve_geometry

VRATE_BASE = 27000000  # engine clock for frame durations
FALLBACK_AUDIO_ENCODER = "av_aac"
PASSTHRU_COPY_MASK = ["copy:aac", "copy:ac3", "copy:dts", "copy:dtshd", "copy:mp3"]


class FilterId(IntEnum):
    # hb_filter_ids in this engine build
    QSV_PRE = 1
    DETELECINE = 2
    DECOMB = 3
    DEINTERLACE = 4
    VFR = 5
    DEBLOCK = 6
    DENOISE = 7
    NLMEANS = 8
    RENDER_SUB = 9
    CROP_SCALE = 10
    ROTATE = 11


class FramerateModeCode(IntEnum):
    VFR = 0
    CFR = 1
    PFR = 2


def find_scan_title(scan: dict | None, title_number: int) -> dict:
    for t in (scan or {}).get("TitleList") or []:
        if int(t.get("Index", 0)) == title_number:
            return t
    raise TitleNotFoundError(title_number, context={"stage": "encode"})


def _range(job: EncodeJob, title, preview: PreviewOptions | None, preview_count: int) -> dict:
    if preview is not None:
        return {
            "Type": "preview",
            "Start": preview.number + 1,
            "End": preview.seconds * TICKS_PER_SECOND,
            "SeekPoints": preview_count,
        }
    if job.range_type == VideoRangeType.CHAPTERS:
        return {"Type": "chapter", "Start": job.chapter_start, "End": job.chapter_end}
    if job.range_type == VideoRangeType.SECONDS:
        return {
            "Type": "time",
            "Start": int(job.seconds_start * TICKS_PER_SECOND),
            "End": int(job.seconds_end * TICKS_PER_SECOND),
        }
    if job.range_type == VideoRangeType.FRAMES:
        return {"Type": "frame", "Start": job.frames_start, "End": job.frames_end}
    return {"Type": "chapter", "Start": 1, "End": max(len(title.chapters), 1)}


def _video(job: EncodeJob) -> dict:
    p = job.encoding_profile
    video = {
        "Encoder": p.video_encoder,
        "Preset": p.video_preset,
        "Tune": ",".join(p.video_tunes) or None,
        "Profile": p.video_profile,
        "Level": p.video_level,
        "Options": p.video_options,
        "TwoPass": p.two_pass,
        "Turbo": p.turbo_first_pass,
    }
    if p.video_encode_rate_type == VideoEncodeRateType.CONSTANT_QUALITY:
        video["Quality"] = p.quality
    else:
        video["Bitrate"] = p.video_bitrate
    return video


def _audio(job: EncodeJob, title) -> dict:
    audio_list = []
    for encoding, track_number in get_output_tracks(job, title):
        entry = {
            "Track": track_number - 1,
            "Encoder": encoding.encoder,
            "Mixdown": encoding.mixdown,
            "Samplerate": encoding.sample_rate_raw,
            "Gain": encoding.gain,
            "DRC": encoding.drc,
            "Name": encoding.name,
        }
        if encoding.encode_rate_type == AudioEncodeRateType.BITRATE and not is_passthrough(encoding.encoder):
            entry["Bitrate"] = encoding.bitrate
        audio_list.append(entry)

    auto_passthru = any(a["Encoder"] == "copy" for a in audio_list)
    return {
        "CopyMask": list(PASSTHRU_COPY_MASK) if auto_passthru else [],
        "FallbackEncoder": FALLBACK_AUDIO_ENCODER,
        "AudioList": audio_list,
    }


def _subtitles(job: EncodeJob) -> dict:
    subs = []
    for s in job.subtitles.source_subtitles:
        subs.append({"Track": s.track_number - 1, "Default": s.default, "Forced": s.forced, "Burn": s.burned_in})
    for s in job.subtitles.srt_subtitles:
        subs.append({
            "Default": s.default,
            "Burn": s.burned_in,
            "Offset": s.offset,
            "SRT": {"Filename": s.file_name, "Language": s.language_code, "Codeset": s.character_code},
        })
    return {"Search": {"Enable": False, "Forced": False, "Default": False, "Burn": False}, "SubtitleList": subs}


def _mode_filter(filter_id: FilterId, mode: str, custom: str | None) -> dict | None:
    if not mode or mode == "off":
        return None
    return {"ID": int(filter_id), "Settings": custom if mode == "custom" else mode}


def _filters(job: EncodeJob, scan_title: dict, geometry) -> dict:
    p = job.encoding_profile
    filters = [
        _mode_filter(FilterId.DETELECINE, p.detelecine, p.custom_detelecine),
        _mode_filter(FilterId.DECOMB, p.decomb, p.custom_decomb),
        _mode_filter(FilterId.DEINTERLACE, p.deinterlace, p.custom_deinterlace),
    ]

    if p.framerate:
        rate_num, rate_den = VRATE_BASE, int(round(VRATE_BASE / p.framerate))
    else:
        fr = scan_title.get("FrameRate") or {}
        rate_num, rate_den = int(fr.get("Num", 0)), int(fr.get("Den", 0))
    if p.constant_framerate:
        mode = FramerateModeCode.CFR
    elif p.peak_framerate:
        mode = FramerateModeCode.PFR
    else:
        mode = FramerateModeCode.VFR
    filters.append({"ID": int(FilterId.VFR), "Settings": f"{int(mode)}:{rate_num}:{rate_den}"})

    if p.deblock > 0:
        filters.append({"ID": int(FilterId.DEBLOCK), "Settings": str(p.deblock)})

    if p.denoise in ("hqdn3d", "nlmeans"):
        if p.denoise_preset == "custom":
            settings = p.custom_denoise
        elif p.denoise_tune and p.denoise_tune != "none":
            settings = f"{p.denoise_preset}:{p.denoise_tune}"
        else:
            settings = p.denoise_preset
        denoise_id = FilterId.DENOISE if p.denoise == "hqdn3d" else FilterId.NLMEANS
        filters.append({"ID": int(denoise_id), "Settings": settings})

    crop = p.cropping
    filters.append({
        "ID": int(FilterId.CROP_SCALE),
        "Settings": f"{geometry.width}:{geometry.height}:{crop.top}:{crop.bottom}:{crop.left}:{crop.right}",
    })

    return {"Grayscale": p.grayscale, "FilterList": [f for f in filters if f is not None]}


def create_encode_json(job: EncodeJob, scan: dict | None, preview: PreviewOptions | None = None,
                       preview_count: int = 0) -> dict:
    """
    Translate a job into the engine's job document.

    Args:
        job: The job to encode.
        scan: The raw title set document from the last scan.
        preview: Encode a short clip from one preview point instead of the job range.
        preview_count: Number of previews the scan produced; seek points for preview encodes.

    Raises:
        TitleNotFoundError: The job's title is not in the scan.
    """
    scan_title = find_scan_title(scan, job.title)
    title = parse_title(scan_title, int(scan.get("MainFeature", 0) or 0))
    p = job.encoding_profile
    geometry = resolve_geometry(job, title)

    chapter_names = [{"Name": name} for name in job.custom_chapter_names]
    return {
        "SequenceID": 0,
        "Destination": {
            "File": job.output_path,
            "Mux": p.container_name,
            "ChapterMarkers": p.include_chapter_markers,
            "ChapterList": chapter_names,
            "Mp4Options": {"Mp4Optimize": p.optimize, "IpodAtom": p.ipod_5g_support},
        },
        "Source": {
            "Path": scan_title.get("Path") or job.source_path,
            "Title": job.title,
            "Angle": job.angle,
            "Range": _range(job, title, preview, preview_count),
        },
        "PAR": {"Num": geometry.par.num, "Den": geometry.par.den},
        "Video": _video(job),
        "Audio": _audio(job, title),
        "Subtitle": _subtitles(job),
        "Metadata": {"Name": title.name or None},
        "Filters": _filters(job, scan_title, geometry),
    }


def _drop_none(value):
    if isinstance(value, dict):
        return {k: _drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_none(v) for v in value]
    return value


def serialize_encode_json(document: dict) -> str:
    """JSON text for hb_add_json(); None values are omitted."""
    return json.dumps(_drop_none(document), indent=2)
