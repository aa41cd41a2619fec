import ctypes

import pytest

from hbq.errors import EngineLoadError, HandBrakeError
from hbq.models.job import Anamorphic
from hbq.models.title import Rational
from hbq.native.libhb import LibHB, _Image, _to_native_settings
from hbq.utils.geometry import KEEP_WIDTH, GeometrySettings


def _settings(width=720, height=480):
    return GeometrySettings(
        mode=Anamorphic.LOOSE, keep=KEEP_WIDTH, modulus=16, crop=(2, 4, 6, 8),
        max_width=1920, max_height=1080, width=width, height=height, par=Rational(32, 27),
    )


class _PreviewLib:
    """Stands in for the loaded library's preview calls."""

    def __init__(self, image=None):
        self.image = image
        self.closed = 0

    def hb_get_preview2(self, handle, title, preview, settings, deinterlace):
        return self.image if self.image is not None else ctypes.POINTER(_Image)()

    def hb_image_close(self, image):
        self.closed += 1


def _bound(lib):
    engine = LibHB.__new__(LibHB)
    engine.library_path = "libhb.so"
    engine._handle = ctypes.c_void_p(1)
    engine._lib = lib
    return engine


def _image(width, height, stride, pixel=0xAB, padding=0xCD):
    row = bytes([pixel]) * (width * 4) + bytes([padding]) * (stride - width * 4)
    data = (ctypes.c_uint8 * (stride * height)).from_buffer_copy(row * height)
    image = _Image(width=width, height=height)
    image.plane[0].data = ctypes.cast(data, ctypes.POINTER(ctypes.c_uint8))
    image.plane[0].width = width
    image.plane[0].height = height
    image.plane[0].stride = stride
    return ctypes.pointer(image), data


def test_missing_library(tmp_path):
    missing = tmp_path / "libhb-missing.so"
    with pytest.raises(EngineLoadError) as exc:
        LibHB(str(missing))
    assert exc.value.context["library_path"] == str(missing)


def test_geometry_settings_struct():
    native = _to_native_settings(_settings())

    assert native.mode == 2
    assert native.keep == KEEP_WIDTH
    assert list(native.crop) == [2, 4, 6, 8]
    assert (native.maxWidth, native.maxHeight) == (1920, 1080)
    assert (native.geometry.width, native.geometry.height) == (720, 480)
    assert (native.geometry.par.num, native.geometry.par.den) == (32, 27)


class TestPreview:
    def test_rows_follow_stride(self):
        image, _data = _image(width=4, height=2, stride=24)
        lib = _PreviewLib(image)
        buffer = bytearray(4 * 2 * 4)

        _bound(lib).get_preview(1, 0, _settings(width=4, height=2), buffer)

        assert buffer == bytearray(b"\xab" * 32)
        assert lib.closed == 1

    def test_narrower_image_is_not_over_read(self):
        image, _data = _image(width=2, height=2, stride=16)
        lib = _PreviewLib(image)
        buffer = bytearray(4 * 2 * 4)

        _bound(lib).get_preview(1, 0, _settings(width=4, height=2), buffer)

        row = b"\xab" * 8 + b"\x00" * 8
        assert buffer == bytearray(row * 2)
        assert lib.closed == 1

    def test_missing_preview(self):
        lib = _PreviewLib()
        with pytest.raises(HandBrakeError) as exc:
            _bound(lib).get_preview(3, 7, _settings(), bytearray(720 * 480 * 4))
        assert exc.value.context == {"title": 3, "preview": 7}
        assert lib.closed == 0
