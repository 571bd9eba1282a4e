"""Reading, writing and rotating image files, with format detection."""

from __future__ import annotations

import functools
import os
from enum import IntEnum
from typing import List, Optional, Tuple

from PIL import Image, ImageOps

__all__ = [
    "ImageError",
    "ExifOrientation",
    "ImageHandler",
    "detect_image_format",
    "support_formats",
    "is_readable_format",
    "is_writeable_format",
    "rotate_image",
    "adjust_to_orientation",
    "SAVEABLE_FORMATS",
    "ROTATABLE_FORMATS",
]

SAVE_QUALITY = 100

_BUILTIN_FORMATS = ("PNM", "MEF", "PXM")

SAVEABLE_FORMATS = (
    "BMP", "JPG", "JPEG", "JPS", "JPE", "PNG", "PGM", "PPM", "PNM",
    "TGA", "XPM", "ICO", "JNG", "WBMP", "RAS",
)

ROTATABLE_FORMATS = ("ICNS", "JPG", "JPEG", "PNG", "BMP")

_PILLOW_ALIASES = {"JPS": "JPEG", "JPE": "JPEG", "PNM": "PPM", "PGM": "PPM", "PBM": "PPM"}

_EXIF_ORIENTATION_TAG = 0x0112

# Leading bytes that identify a file when its name has no suffix, in the
# order they are tried.
_MAGIC_PREFIXES = (
    ((b"BM",), "BMP"),
    ((b"DDS",), "DDS"),
    ((b"GIF8",), "GIF"),
    ((b"icns",), "ICNS"),
    ((b"\xff\xd8",), "JPG"),
    ((b"\x8a\x4d\x4e\x47\x0d\x0a\x1a\x0a",), "MNG"),
    ((b"P1", b"P4"), "PBM"),
    ((b"P2", b"P5"), "PGM"),
    ((b"P3", b"P6"), "PPM"),
    ((b"\x89PNG\x0d\x0a\x1a\x0a",), "PNG"),
)


class ImageError(Exception):
    """Raised when an image cannot be read, written or transformed."""


class ExifOrientation(IntEnum):
    """EXIF orientation tag values."""

    Undefined = 0
    TopLeft = 1
    TopRight = 2
    BottomRight = 3
    BottomLeft = 4
    LeftTop = 5
    RightTop = 6
    RightBottom = 7
    LeftBottom = 8


def _suffix(path: str) -> str:
    name = os.path.basename(path)
    dot = name.rfind(".")
    return name[dot + 1:] if dot >= 0 else ""


def detect_image_format(path: str) -> str:
    """Upper-case format name of ``path``: its suffix, else its leading bytes.

    Returns an empty string when nothing identifies the file.
    """
    suffix = _suffix(path).upper()
    if suffix:
        return suffix

    try:
        with open(path, "rb") as fh:
            data = fh.read(64)
    except OSError:
        return ""

    for prefixes, fmt in _MAGIC_PREFIXES:
        if any(data.startswith(prefix) for prefix in prefixes):
            return fmt
    if b"<svg" in data:
        return "SVG"
    if data.startswith(b"MM") or data.startswith(b"II*"):
        return "TIFF"
    if data.startswith(b"RIFFr"):
        return "WEBP"
    if b"#define max_width " in data and b"#define max_height " in data:
        return "XBM"
    if data.startswith(b"/* XPM */"):
        return "XPM"
    return ""


@functools.lru_cache(maxsize=None)
def _support_formats() -> Tuple[str, ...]:
    names = [ext.lstrip(".").upper() for ext in Image.registered_extensions()]
    names.extend(_BUILTIN_FORMATS)
    return tuple(dict.fromkeys(names))


def support_formats() -> List[str]:
    """Upper-case names of every readable format."""
    return list(_support_formats())


def is_readable_format(fmt: str) -> bool:
    """Whether images of format ``fmt`` can be read."""
    return bool(fmt) and fmt in _support_formats()


def is_writeable_format(fmt: str) -> bool:
    """Whether images of format ``fmt`` can be saved."""
    return bool(fmt) and fmt in SAVEABLE_FORMATS


def _pillow_format(fmt: str) -> Optional[str]:
    fmt = fmt.upper()
    if fmt in _PILLOW_ALIASES:
        return _PILLOW_ALIASES[fmt]
    found = Image.registered_extensions().get("." + fmt.lower())
    if found:
        return found
    if fmt in Image.OPEN or fmt in Image.SAVE:
        return fmt
    return None


def _is_null(image: Optional[Image.Image]) -> bool:
    return image is None or image.width == 0 or image.height == 0


def rotate_image(image: Image.Image, angle: int) -> Image.Image:
    """Return ``image`` turned clockwise by ``angle``, a multiple of 90 degrees."""
    if _is_null(image):
        raise ImageError("Image is null.")
    if angle % 90 != 0:
        raise ImageError(f"Rotate angle not base of 90, angle: {angle}")
    turns = {
        90: Image.Transpose.ROTATE_270,
        180: Image.Transpose.ROTATE_180,
        270: Image.Transpose.ROTATE_90,
    }
    method = turns.get(angle % 360)
    return image.copy() if method is None else image.transpose(method)


def adjust_to_orientation(image: Image.Image, orientation: ExifOrientation) -> Image.Image:
    """Return ``image`` turned and mirrored as its EXIF orientation asks."""
    if orientation == ExifOrientation.TopRight:
        return ImageOps.mirror(image)
    if orientation == ExifOrientation.BottomRight:
        return rotate_image(image, 180)
    if orientation == ExifOrientation.BottomLeft:
        return ImageOps.flip(image)
    if orientation == ExifOrientation.LeftTop:
        return ImageOps.mirror(rotate_image(image, 90))
    if orientation == ExifOrientation.RightTop:
        return rotate_image(image, 90)
    if orientation == ExifOrientation.RightBottom:
        return ImageOps.flip(rotate_image(image, 90))
    if orientation == ExifOrientation.LeftBottom:
        return rotate_image(image, -90)
    return image


def _write(image: Image.Image, path: str, fmt: str) -> None:
    pillow_fmt = _pillow_format(fmt)
    if pillow_fmt is None or pillow_fmt not in Image.SAVE:
        raise ImageError(f"Save image by qt failed, format: {fmt}")
    if pillow_fmt == "JPEG" and image.mode not in ("RGB", "L", "CMYK"):
        image = image.convert("RGB")
    elif fmt.upper() == "PGM":
        image = image.convert("L")
    elif fmt.upper() == "PPM":
        image = image.convert("RGB")
    try:
        image.save(path, format=pillow_fmt, quality=SAVE_QUALITY)
    except (OSError, ValueError, KeyError) as exc:
        raise ImageError(f"Save image by qt failed, format: {fmt}") from exc


def _open_loaded(path: str, formats=None) -> Image.Image:
    with Image.open(path, formats=formats) as im:
        im.load()
        return ImageOps.exif_transpose(im)


def _load_static_image(path: str) -> Image.Image:
    try:
        size = os.path.getsize(path)
    except OSError:
        size = 0
    if size == 0:
        raise ImageError("Error file!")

    fmt = detect_image_format(path)
    try:
        return _open_loaded(path)
    except (OSError, ValueError, SyntaxError) as exc:
        error = exc

    if fmt == "ICNS":
        raise ImageError(f"Unsupport image format: {fmt}")

    forced = _pillow_format(fmt) if fmt else None
    if forced is not None and forced in Image.OPEN:
        try:
            return _open_loaded(path, formats=[forced])
        except (OSError, ValueError, SyntaxError) as exc:
            error = exc
    raise ImageError(f"Load image by qt failed, {error}, use format: {fmt}")


def _scaled_size(src: Tuple[int, int], target: Tuple[int, int], keep_aspect: bool) -> Tuple[int, int]:
    w, h = target
    if not keep_aspect:
        return w, h
    sw, sh = src
    rw = h * sw // sh
    if rw <= w:
        return rw, h
    return w, w * sh // sw


class ImageHandler:
    """Reads one image file, caching the decoded image."""

    def __init__(self, file_name: str = "") -> None:
        self._file_name = ""
        self._image: Optional[Image.Image] = None
        self._format = ""
        self._readable = False
        self._writeable = False
        self.file_name = file_name

    @property
    def file_name(self) -> str:
        return self._file_name

    @file_name.setter
    def file_name(self, file_name: str) -> None:
        if file_name == self._file_name:
            return
        self._file_name = file_name
        self._readable = self._writeable = False
        self.clear_cache()
        if file_name:
            self._format = detect_image_format(file_name)
            self._readable = is_readable_format(self._format)
            self._writeable = is_writeable_format(self._format)

    @property
    def image_format(self) -> str:
        return self._format

    @property
    def readable(self) -> bool:
        return self._readable

    @property
    def writeable(self) -> bool:
        return self._writeable

    @property
    def rotatable(self) -> bool:
        return self._writeable

    def _ensure_loaded(self) -> Image.Image:
        if self._image is None:
            self._image = _load_static_image(self._file_name)
        return self._image

    def read_image(self) -> Image.Image:
        """Decode the file, applying its EXIF orientation."""
        if not self._readable:
            raise ImageError("File is not readable")
        return self._ensure_loaded().copy()

    def thumbnail(self, size: Tuple[int, int], keep_aspect: bool = True) -> Image.Image:
        """The image scaled to ``size``, inside it when ``keep_aspect`` is set."""
        if size[0] <= 0 or size[1] <= 0:
            raise ValueError("thumbnail size must be positive")
        image = self._ensure_loaded()
        new_size = _scaled_size(image.size, size, keep_aspect)
        return image.resize(new_size, Image.Resampling.NEAREST)

    def image_size(self) -> Tuple[int, int]:
        """(width, height) of the image; (0, 0) if the file is not readable."""
        if self._readable:
            return self._ensure_loaded().size
        return self._image.size if self._image is not None else (0, 0)

    def clear_cache(self) -> None:
        """Forget the decoded image and the detected format."""
        self._image = None
        self._format = ""

    def save_image(
        self, file_name: str, fmt: Optional[str] = None, image: Optional[Image.Image] = None
    ) -> None:
        """Save ``image`` (default: this file's image) to ``file_name``.

        The format comes from ``fmt`` or, when it is empty, from the file name.
        """
        if image is None:
            image = self._ensure_loaded()
        real_format = (fmt or "").upper()
        if not real_format:
            real_format = detect_image_format(file_name)
        if real_format.upper() not in SAVEABLE_FORMATS:
            raise ImageError(f"Unsupport image save format: {real_format}")
        _write(image, file_name, real_format)

    def rotate_image_file(self, file_name: str, angle: int) -> None:
        """Turn the image in ``file_name`` clockwise by ``angle`` and save it back."""
        if angle % 90 != 0:
            raise ImageError("Unsupported angle.")
        fmt = detect_image_format(file_name)
        if fmt not in ROTATABLE_FORMATS:
            raise ImageError(f"Unsupported format: {fmt}")
        try:
            with Image.open(file_name) as im:
                im.load()
                raw = im.getexif().get(_EXIF_ORIENTATION_TAG, 0)
                image = im.copy()
        except (OSError, ValueError, SyntaxError) as exc:
            raise ImageError("Image is null.") from exc
        try:
            orientation = ExifOrientation(raw)
        except ValueError:
            orientation = ExifOrientation.Undefined
        image = adjust_to_orientation(image, orientation)
        _write(rotate_image(image, angle), file_name, fmt)