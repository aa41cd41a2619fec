# hbq/utils/geometry.py
"""
Output geometry for a job/title pair.

Mirrors the engine's anamorphic sizing so previews and size checks agree with
what the encode will produce. Everything here is pure.
"""

from dataclasses import dataclass
from fractions import Fraction

from ..models.job import Anamorphic, EncodeJob
from ..models.title import Geometry, Rational, Title

KEEP_WIDTH = 0x01
KEEP_HEIGHT = 0x02
KEEP_DISPLAY_ASPECT = 0x04

MIN_DIMENSION = 32
PAR_LIMIT = 65535


@dataclass(frozen=True)
class GeometrySettings:
    """The engine's geometry request: what the user asked for, before sizing."""
    mode: Anamorphic
    keep: int
    modulus: int
    crop: tuple[int, int, int, int]  # top, bottom, left, right
    max_width: int
    max_height: int
    width: int
    height: int
    par: Rational
    itu_par: bool = False


def _mod(a: int, b: int) -> int:
    """Nearest multiple of b."""
    return a if b == 1 else b * ((a + (b >> 1) - 1) // b)


def _mod_up(a: int, b: int) -> int:
    return a if b == 1 else b * ((a + b - 1) // b)


def _mod_down(a: int, b: int) -> int:
    return a if b == 1 else b * (a // b)


def _limit_rational(num: int, den: int, limit: int = PAR_LIMIT) -> Rational:
    if num <= 0 or den <= 0:
        return Rational(1, 1)
    f = Fraction(num, den)
    if f.numerator <= limit and f.denominator <= limit:
        return Rational(f.numerator, f.denominator)
    if f >= 1:
        inv = (1 / f).limit_denominator(limit)
        return Rational(inv.denominator, max(inv.numerator, 1))
    g = f.limit_denominator(limit)
    return Rational(max(g.numerator, 1), g.denominator)


def build_geometry_settings(job: EncodeJob, title: Title, keep: int = KEEP_WIDTH) -> GeometrySettings:
    """
    Collect the geometry request for a job.

    The title's pixel aspect is used unless the job is in custom anamorphic
    mode, where the job's own pixel aspect values are authoritative.
    """
    profile = job.encoding_profile
    if profile.keep_display_aspect:
        keep |= KEEP_DISPLAY_ASPECT

    if profile.anamorphic == Anamorphic.CUSTOM:
        par = Rational(profile.pixel_aspect_x, profile.pixel_aspect_y)
    else:
        par = title.par

    return GeometrySettings(
        mode=profile.anamorphic,
        keep=keep,
        modulus=profile.modulus or 16,
        crop=tuple(profile.cropping.as_list()),
        max_width=profile.max_width,
        max_height=profile.max_height,
        width=profile.width,
        height=profile.height,
        par=par,
    )


def set_anamorphic_size(source: Geometry, settings: GeometrySettings) -> Geometry:
    """Size the output for the requested anamorphic mode; a requested 0 dimension means the cropped source's."""
    top, bottom, left, right = settings.crop
    cropped_width = max(source.width - left - right, 1)
    cropped_height = max(source.height - top - bottom, 1)
    storage_aspect = cropped_width / cropped_height
    mod = settings.modulus + (settings.modulus & 1) if settings.modulus else 2
    keep_height = bool(settings.keep & KEEP_HEIGHT)
    keep_display_aspect = bool(settings.keep & KEEP_DISPLAY_ASPECT)

    src_par = source.par
    in_par = _limit_rational(settings.par.num, settings.par.den)
    req_width = settings.width or cropped_width
    req_height = settings.height or cropped_height

    max_width = _mod_down(settings.max_width, mod)
    max_height = _mod_down(settings.max_height, mod)
    if max_width and max_width < MIN_DIMENSION:
        max_width = MIN_DIMENSION
    if max_height and max_height < MIN_DIMENSION:
        max_height = MIN_DIMENSION

    if settings.mode == Anamorphic.NONE:
        dar = (src_par.num / src_par.den) * storage_aspect if src_par.den else storage_aspect
        if not keep_height:
            width = _mod_up(req_width, mod)
            height = _mod(int(width / dar), mod)
        else:
            height = _mod_up(req_height, mod)
            width = _mod(int(height * dar), mod)
        if max_width and width > max_width:
            width = max_width
            height = _mod(int(width / dar), mod)
        if max_height and height > max_height:
            height = max_height
            width = _mod(int(height * dar), mod)
        par_num, par_den = 1, 1

    elif settings.mode == Anamorphic.LOOSE:
        if not keep_height:
            width = _mod_up(req_width, mod)
            height = _mod_up(int(width / storage_aspect + 0.5), mod)
        else:
            height = _mod_up(req_height, mod)
            width = _mod_up(int(height * storage_aspect + 0.5), mod)
        if max_width and width > max_width:
            width = max_width
            height = _mod(int(width / storage_aspect + 0.5), mod)
        if max_height and height > max_height:
            height = max_height
            width = _mod(int(height * storage_aspect + 0.5), mod)
        par_num = height * cropped_width * src_par.num
        par_den = width * cropped_height * src_par.den

    elif settings.mode == Anamorphic.CUSTOM:
        width = _mod_up(req_width, mod)
        height = _mod_up(req_height, mod)
        if max_width and width > max_width:
            width = max_width
        if max_height and height > max_height:
            height = max_height
        if keep_display_aspect:
            par_num = height * cropped_width * src_par.num
            par_den = width * cropped_height * src_par.den
        else:
            par_num, par_den = in_par

    else:
        # Strict: source dimensions at mod 2, source pixel aspect
        width = _mod(cropped_width, 2)
        height = _mod(cropped_height, 2)
        par_num, par_den = src_par

    width = max(width, MIN_DIMENSION)
    height = max(height, MIN_DIMENSION)
    return Geometry(width=width, height=height, par=_limit_rational(par_num, par_den))


def resolve_geometry(job: EncodeJob, title: Title) -> Geometry:
    """Final output width, height and pixel aspect for encoding job against title."""
    settings = build_geometry_settings(job, title)
    source = Geometry(width=title.resolution.width, height=title.resolution.height, par=title.par)
    return set_anamorphic_size(source, settings)
