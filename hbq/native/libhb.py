# hbq/native/libhb.py
"""
Narrow function boundary to the native engine.

Engine is the contract the lifecycle code talks to; LibHB implements it over
the shared library with ctypes. Nothing outside this module touches ctypes.
"""

import ctypes
import ctypes.util
import logging
import sys
import threading
from abc import ABC, abstractmethod

from ..errors import EngineLoadError, HandBrakeError
from ..utils.geometry import GeometrySettings

logger = logging.getLogger(__name__)


class Engine(ABC):
    """One engine handle. Every call except close() requires init() first."""

    @abstractmethod
    def init(self, verbosity: int) -> None: ...

    @abstractmethod
    def scan(self, path: str, title_index: int, preview_count: int, min_duration_ticks: int) -> None: ...

    @abstractmethod
    def scan_stop(self) -> None: ...

    @abstractmethod
    def get_state_json(self) -> str: ...

    @abstractmethod
    def get_title_set_json(self) -> str: ...

    @abstractmethod
    def add_json(self, payload: str) -> None: ...

    @abstractmethod
    def start(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def resume(self) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def job(self, index: int): ...

    @abstractmethod
    def remove(self, job) -> None: ...

    @abstractmethod
    def get_preview(self, title: int, preview: int, settings: GeometrySettings, buffer: bytearray) -> None:
        """
        Render one frame into buffer.

        settings carries the resolved output size; buffer holds
        settings.width * settings.height * 4 bytes of 32-bit RGB.
        """

    @abstractmethod
    def get_version(self) -> str: ...

    @abstractmethod
    def get_build(self) -> int: ...

    @abstractmethod
    def close(self) -> None: ...


# -- ctypes mirrors of the engine structs -------------------------------------

class _Rational(ctypes.Structure):
    _fields_ = [("num", ctypes.c_int), ("den", ctypes.c_int)]


class _Geometry(ctypes.Structure):
    _fields_ = [("width", ctypes.c_int), ("height", ctypes.c_int), ("par", _Rational)]


class _GeometrySettings(ctypes.Structure):
    _fields_ = [
        ("mode", ctypes.c_int),
        ("keep", ctypes.c_int),
        ("itu_par", ctypes.c_int),
        ("modulus", ctypes.c_int),
        ("crop", ctypes.c_int * 4),
        ("maxWidth", ctypes.c_int),
        ("maxHeight", ctypes.c_int),
        ("geometry", _Geometry),
    ]


class _ImagePlane(ctypes.Structure):
    _fields_ = [
        ("data", ctypes.POINTER(ctypes.c_uint8)),
        ("width", ctypes.c_int),
        ("height", ctypes.c_int),
        ("stride", ctypes.c_int),
        ("height_stride", ctypes.c_int),
        ("size", ctypes.c_int),
    ]


class _Image(ctypes.Structure):
    _fields_ = [
        ("format", ctypes.c_int),
        ("max_plane", ctypes.c_int),
        ("width", ctypes.c_int),
        ("height", ctypes.c_int),
        ("data", ctypes.POINTER(ctypes.c_uint8)),
        ("plane", _ImagePlane * 4),
    ]


def _to_native_settings(s: GeometrySettings) -> _GeometrySettings:
    return _GeometrySettings(
        mode=int(s.mode),
        keep=s.keep,
        itu_par=int(s.itu_par),
        modulus=s.modulus,
        crop=(ctypes.c_int * 4)(*s.crop),
        maxWidth=s.max_width,
        maxHeight=s.max_height,
        geometry=_Geometry(width=s.width, height=s.height, par=_Rational(num=s.par.num, den=s.par.den)),
    )


def default_library_name() -> str:
    if sys.platform.startswith("win"):
        return "hb.dll"
    if sys.platform == "darwin":
        return "libhb.dylib"
    return ctypes.util.find_library("hb") or "libhb.so"


_SIGNATURES = {
    "hb_global_init": (ctypes.c_int, []),
    "hb_init": (ctypes.c_void_p, [ctypes.c_int, ctypes.c_int]),
    "hb_scan": (None, [ctypes.c_void_p, ctypes.c_char_p, ctypes.c_int, ctypes.c_int, ctypes.c_int, ctypes.c_uint64]),
    "hb_scan_stop": (None, [ctypes.c_void_p]),
    "hb_get_state_json": (ctypes.c_char_p, [ctypes.c_void_p]),
    "hb_get_title_set_json": (ctypes.c_char_p, [ctypes.c_void_p]),
    "hb_add_json": (ctypes.c_int, [ctypes.c_void_p, ctypes.c_char_p]),
    "hb_start": (None, [ctypes.c_void_p]),
    "hb_pause": (None, [ctypes.c_void_p]),
    "hb_resume": (None, [ctypes.c_void_p]),
    "hb_stop": (None, [ctypes.c_void_p]),
    "hb_count": (ctypes.c_int, [ctypes.c_void_p]),
    "hb_job": (ctypes.c_void_p, [ctypes.c_void_p, ctypes.c_int]),
    "hb_rem": (None, [ctypes.c_void_p, ctypes.c_void_p]),
    "hb_get_preview2": (ctypes.POINTER(_Image),
                        [ctypes.c_void_p, ctypes.c_int, ctypes.c_int, ctypes.POINTER(_GeometrySettings), ctypes.c_int]),
    "hb_image_close": (None, [ctypes.POINTER(ctypes.POINTER(_Image))]),
    "hb_get_version": (ctypes.c_char_p, [ctypes.c_void_p]),
    "hb_get_build": (ctypes.c_int, [ctypes.c_void_p]),
    "hb_close": (None, [ctypes.POINTER(ctypes.c_void_p)]),
}


class LibHB(Engine):
    _global_lock = threading.Lock()
    _global_init_done = False

    def __init__(self, library_path: str | None = None):
        self.library_path = library_path or default_library_name()
        try:
            self._lib = ctypes.CDLL(self.library_path)
        except OSError as e:
            raise EngineLoadError(f"Could not load engine library: {e}", self.library_path) from e
        for name, (restype, argtypes) in _SIGNATURES.items():
            try:
                fn = getattr(self._lib, name)
            except AttributeError:
                raise EngineLoadError(f"Engine library lacks {name}", self.library_path) from None
            fn.restype = restype
            fn.argtypes = argtypes
        self._handle = ctypes.c_void_p()

    def _ensure_global_init(self):
        with LibHB._global_lock:
            if not LibHB._global_init_done:
                self._lib.hb_global_init()
                LibHB._global_init_done = True

    def init(self, verbosity: int) -> None:
        self._ensure_global_init()
        self._handle = ctypes.c_void_p(self._lib.hb_init(verbosity, 0))
        logger.info("Engine initialized from %s (verbosity %d)", self.library_path, verbosity)

    def scan(self, path, title_index, preview_count, min_duration_ticks):
        self._lib.hb_scan(self._handle, path.encode("utf-8"), title_index, preview_count, 1, min_duration_ticks)

    def scan_stop(self):
        self._lib.hb_scan_stop(self._handle)

    def get_state_json(self) -> str:
        return (self._lib.hb_get_state_json(self._handle) or b"").decode("utf-8", errors="replace")

    def get_title_set_json(self) -> str:
        return (self._lib.hb_get_title_set_json(self._handle) or b"").decode("utf-8", errors="replace")

    def add_json(self, payload: str) -> None:
        self._lib.hb_add_json(self._handle, payload.encode("utf-8"))

    def start(self):
        self._lib.hb_start(self._handle)

    def pause(self):
        self._lib.hb_pause(self._handle)

    def resume(self):
        self._lib.hb_resume(self._handle)

    def stop(self):
        self._lib.hb_stop(self._handle)

    def count(self) -> int:
        return self._lib.hb_count(self._handle)

    def job(self, index: int):
        return self._lib.hb_job(self._handle, index)

    def remove(self, job) -> None:
        self._lib.hb_rem(self._handle, job)

    def get_preview(self, title, preview, settings, buffer):
        native = _to_native_settings(settings)
        image = self._lib.hb_get_preview2(self._handle, title, preview, ctypes.byref(native), 0)
        if not image:
            raise HandBrakeError(
                f"Engine returned no preview for title {title}, preview {preview}",
                context={'title': title, 'preview': preview},
            )
        try:
            plane = image.contents.plane[0]
            row_bytes = settings.width * 4
            copy_bytes = min(settings.width, plane.width) * 4
            for row in range(min(settings.height, plane.height)):
                src = ctypes.addressof(plane.data.contents) + row * plane.stride
                start = row * row_bytes
                buffer[start:start + copy_bytes] = ctypes.string_at(src, copy_bytes)
        finally:
            self._lib.hb_image_close(ctypes.byref(image))

    def get_version(self) -> str:
        return (self._lib.hb_get_version(self._handle) or b"").decode("ascii", errors="replace")

    def get_build(self) -> int:
        return self._lib.hb_get_build(self._handle)

    def close(self) -> None:
        if not self._handle:
            return
        self._lib.hb_close(ctypes.byref(self._handle))
        self._handle = ctypes.c_void_p()
