# hbq/utils/audio_tracks.py
import logging

from ..models.job import AudioEncoding, EncodeJob
from ..models.title import Title

logger = logging.getLogger(__name__)


def get_output_tracks(job: EncodeJob, title: Title) -> list[tuple[AudioEncoding, int]]:
    """
    Pair each audio encoding with the 1-based source track(s) it encodes.

    An encoding with input number 0 applies to every chosen track; otherwise
    the input number is a 1-based index into the job's chosen tracks. Tracks
    the title does not have are dropped: batch jobs pick track 1 without
    checking that a given title has any audio.
    """
    available = len(title.audio_tracks)
    chosen = job.chosen_audio_tracks
    pairs = []

    for encoding in job.encoding_profile.audio_encodings:
        if encoding.input_number == 0:
            candidates = list(chosen)
        elif 0 < encoding.input_number <= len(chosen):
            candidates = [chosen[encoding.input_number - 1]]
        else:
            candidates = []

        for track_number in candidates:
            if 1 <= track_number <= available:
                pairs.append((encoding, track_number))
            else:
                logger.debug(
                    "Dropping audio track %d for title %d (%d tracks available)",
                    track_number, title.title_number, available,
                )

    return pairs
