"""
Shared fixtures: a Qt core application, a scripted fake engine and a sample
title set shaped like the engine's scan output.
"""

import copy
import json
from datetime import timedelta

import pytest
from PySide6.QtCore import QCoreApplication

from hbq.models.title import AudioTrackInfo, Chapter, Rational, Size, Title
from hbq.native.libhb import Engine

TICKS = 90000

SAMPLE_TITLE_SET = {
    "MainFeature": 2,
    "TitleList": [
        {
            "Index": 1,
            "Path": "/media/Am\u00c3\u00a9lie",
            "Name": "EXTRAS",
            "Duration": {"Ticks": 600 * TICKS},
            "FrameRate": {"Num": 30000, "Den": 1001},
            "Geometry": {"Width": 720, "Height": 480, "PAR": {"Num": 32, "Den": 27}},
            "Crop": [0, 0, 0, 0],
            "AngleCount": 1,
            "AudioList": [
                {"Language": "English", "LanguageCode": "eng", "CodecName": "ac3",
                 "SampleRate": 48000, "BitRate": 192000, "ChannelCount": 2},
            ],
            "SubtitleList": [],
            "ChapterList": [{"Name": "Chapter 1", "Duration": {"Ticks": 600 * TICKS}}],
        },
        {
            "Index": 2,
            "Path": "/media/Ame\u0301lie",
            "Name": "FEATURE",
            "Duration": {"Hours": 1, "Minutes": 30, "Seconds": 0},
            "FrameRate": {"Num": 24000, "Den": 1001},
            "Geometry": {"Width": 1920, "Height": 1080, "PAR": {"Num": 1, "Den": 1}},
            "Crop": [0, 0, 0, 0],
            "AngleCount": 2,
            "AudioList": [
                {"Language": "English", "LanguageCode": "eng", "CodecName": "ac3",
                 "SampleRate": 48000, "BitRate": 448000, "ChannelCount": 6},
                {"Language": "Francais", "LanguageCode": "fra", "CodecName": "aac",
                 "SampleRate": 48000, "BitRate": 160000, "ChannelCount": 2},
            ],
            "SubtitleList": [{"Language": "English", "LanguageCode": "eng", "SourceName": "VOBSUB"}],
            "ChapterList": [
                {"Name": "Opening", "Duration": {"Ticks": 1800 * TICKS}},
                {"Name": "Middle", "Duration": {"Ticks": 1800 * TICKS}},
                {"Name": "End", "Duration": {"Ticks": 1800 * TICKS}},
            ],
        },
    ],
}


def scanning_state(progress, preview=1, preview_count=10, title=1, title_count=2):
    return {"State": "SCANNING", "Scanning": {
        "Progress": progress, "Preview": preview, "PreviewCount": preview_count,
        "Title": title, "TitleCount": title_count,
    }}


def working_state(progress, rate=30.0, rate_avg=29.0, hours=0, minutes=1, seconds=30):
    return {"State": "WORKING", "Working": {
        "Progress": progress, "Rate": rate, "RateAvg": rate_avg,
        "Hours": hours, "Minutes": minutes, "Seconds": seconds,
        "Pass": 1, "PassCount": 1, "PassID": 0, "SequenceID": 1,
    }}


def work_done_state(error=0):
    return {"State": "WORKDONE", "WorkDone": {"Error": error, "SequenceID": 1}}


class FakeEngine(Engine):
    """Engine double that replays scripted state documents and records calls."""

    def __init__(self, states=(), title_set=None, queued_jobs=0):
        self.states = list(states)
        self.title_set = title_set if title_set is not None else copy.deepcopy(SAMPLE_TITLE_SET)
        self.queue = [f"job-{i}" for i in range(queued_jobs)]
        self.calls = []
        self.added = []
        self.close_count = 0

    def push(self, *states):
        self.states.extend(states)

    def init(self, verbosity):
        self.calls.append(("init", verbosity))

    def scan(self, path, title_index, preview_count, min_duration_ticks):
        self.calls.append(("scan", path, title_index, preview_count, min_duration_ticks))

    def scan_stop(self):
        self.calls.append(("scan_stop",))

    def get_state_json(self):
        state = self.states.pop(0) if self.states else {"State": "IDLE"}
        return json.dumps(state)

    def get_title_set_json(self):
        return json.dumps(self.title_set)

    def add_json(self, payload):
        self.added.append(json.loads(payload))

    def start(self):
        self.calls.append(("start",))

    def pause(self):
        self.calls.append(("pause",))

    def resume(self):
        self.calls.append(("resume",))

    def stop(self):
        self.calls.append(("stop",))

    def count(self):
        return len(self.queue)

    def job(self, index):
        return self.queue[index]

    def remove(self, job):
        self.calls.append(("remove", job))
        self.queue.remove(job)

    def get_preview(self, title, preview, settings, buffer):
        self.calls.append(("get_preview", title, preview, settings))
        buffer[:] = b"\x7f" * len(buffer)

    def get_version(self):
        return "1.0.0"

    def get_build(self):
        return 2015012000

    def close(self):
        self.close_count += 1


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def make_title(number=1, audio_count=2, chapters=(600, 600, 600), framerate=25.0,
               width=720, height=480, par=Rational(32, 27), duration=None, **kwargs):
    """A Title built directly, for tests that don't go through the parser."""
    chapter_list = tuple(
        Chapter(chapter_number=i, name=f"Chapter {i}", duration=timedelta(seconds=s))
        for i, s in enumerate(chapters, start=1)
    )
    return Title(
        title_number=number,
        duration=duration if duration is not None else sum((c.duration for c in chapter_list), timedelta(0)),
        framerate=framerate,
        resolution=Size(width, height),
        par=par,
        audio_tracks=tuple(
            AudioTrackInfo(track_number=i, codec_name="ac3", sample_rate=48000, bitrate=448000)
            for i in range(1, audio_count + 1)
        ),
        chapters=chapter_list,
        **kwargs,
    )
