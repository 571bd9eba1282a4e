import pytest
from PIL import Image

from dguiutil.imagehandler import (
    ExifOrientation,
    ImageError,
    ImageHandler,
    adjust_to_orientation,
    detect_image_format,
    is_readable_format,
    is_writeable_format,
    rotate_image,
    support_formats,
)

RED = (255, 0, 0)
BLUE = (0, 0, 255)
GREEN = (0, 255, 0)


def _two_pixel():
    img = Image.new("RGB", (2, 1))
    img.putpixel((0, 0), RED)
    img.putpixel((1, 0), BLUE)
    return img


def _pattern(width=4, height=2):
    img = Image.new("RGB", (width, height))
    for x in range(width):
        for y in range(height):
            img.putpixel((x, y), (x * 40, y * 80, 100))
    return img


def _pixels(img):
    return list(img.convert("RGB").getdata())


def test_detect_by_suffix():
    assert detect_image_format("/nowhere/a.png") == "PNG"
    assert detect_image_format("photo.jpeg") == "JPEG"


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"BM\x00\x00", "BMP"),
        (b"\x89PNG\x0d\x0a\x1a\x0a rest", "PNG"),
        (b"GIF89a", "GIF"),
        (b"\xff\xd8\xff", "JPG"),
        (b"P6\n1 1\n255\n", "PPM"),
        (b"<?xml version='1.0'?><svg></svg>", "SVG"),
        (b"/* XPM */", "XPM"),
        (b"nothing known", ""),
    ],
)
def test_detect_by_magic(tmp_path, data, expected):
    path = tmp_path / "nosuffix"
    path.write_bytes(data)
    assert detect_image_format(str(path)) == expected


def test_detect_missing_file_without_suffix(tmp_path):
    assert detect_image_format(str(tmp_path / "missing")) == ""


def test_format_queries():
    assert "PNM" in support_formats()
    assert is_readable_format("PNG")
    assert not is_readable_format("")
    assert is_writeable_format("JPG")
    assert not is_writeable_format("GIF")


def test_rotate_clockwise():
    rotated = rotate_image(_two_pixel(), 90)
    assert rotated.size == (1, 2)
    assert rotated.getpixel((0, 0)) == RED
    assert rotated.getpixel((0, 1)) == BLUE


def test_rotate_full_turn_is_identity():
    img = _pattern()
    result = img
    for _ in range(4):
        result = rotate_image(result, 90)
    assert _pixels(result) == _pixels(img)
    assert _pixels(rotate_image(img, -90)) == _pixels(rotate_image(img, 270))


def test_rotate_bad_angle_and_null():
    with pytest.raises(ImageError):
        rotate_image(_pattern(), 45)
    with pytest.raises(ImageError):
        rotate_image(Image.new("RGB", (0, 0)), 90)


def test_adjust_to_orientation():
    img = _two_pixel()
    assert _pixels(adjust_to_orientation(img, ExifOrientation.TopLeft)) == _pixels(img)
    mirrored = adjust_to_orientation(img, ExifOrientation.TopRight)
    assert mirrored.getpixel((0, 0)) == BLUE
    assert _pixels(adjust_to_orientation(img, ExifOrientation.RightTop)) == _pixels(
        rotate_image(img, 90)
    )


def test_handler_reads_png(tmp_path):
    path = tmp_path / "pic.png"
    _pattern().save(path)
    handler = ImageHandler(str(path))
    assert handler.image_format == "PNG"
    assert handler.readable and handler.writeable and handler.rotatable
    assert handler.image_size() == (4, 2)
    assert _pixels(handler.read_image()) == _pixels(_pattern())


def test_thumbnail(tmp_path):
    path = tmp_path / "pic.png"
    _pattern().save(path)
    handler = ImageHandler(str(path))
    assert handler.thumbnail((2, 2), True).size == (2, 1)
    assert handler.thumbnail((2, 2), False).size == (2, 2)
    with pytest.raises(ValueError):
        handler.thumbnail((0, 2))


def test_unreadable_format(tmp_path):
    path = tmp_path / "file.xyz"
    path.write_bytes(b"data")
    handler = ImageHandler(str(path))
    assert not handler.readable
    with pytest.raises(ImageError):
        handler.read_image()


def test_empty_file(tmp_path):
    path = tmp_path / "empty.png"
    path.write_bytes(b"")
    handler = ImageHandler(str(path))
    with pytest.raises(ImageError, match="Error file!"):
        handler.read_image()


def test_clear_cache_forgets_format(tmp_path):
    path = tmp_path / "pic.png"
    _pattern().save(path)
    handler = ImageHandler(str(path))
    handler.clear_cache()
    assert handler.image_format == ""


def test_save_round_trip(tmp_path):
    src = tmp_path / "pic.png"
    _pattern().save(src)
    handler = ImageHandler(str(src))
    out = tmp_path / "copy.bmp"
    handler.save_image(str(out))
    with Image.open(out) as saved:
        assert saved.format == "BMP"
        assert _pixels(saved) == _pixels(_pattern())


def test_save_explicit_image_and_format(tmp_path):
    handler = ImageHandler()
    out = tmp_path / "noext"
    handler.save_image(str(out), "png", _two_pixel())
    with Image.open(out) as saved:
        assert _pixels(saved) == _pixels(_two_pixel())


def test_save_unsupported_format(tmp_path):
    handler = ImageHandler()
    with pytest.raises(ImageError, match="Unsupport image save format"):
        handler.save_image(str(tmp_path / "x.gif"), None, _two_pixel())


def test_rotate_image_file(tmp_path):
    path = tmp_path / "pic.png"
    _two_pixel().save(path)
    ImageHandler().rotate_image_file(str(path), 90)
    with Image.open(path) as rotated:
        assert rotated.size == (1, 2)
        assert rotated.convert("RGB").getpixel((0, 0)) == RED


def test_rotate_image_file_applies_exif(tmp_path):
    path = tmp_path / "pic.jpg"
    img = Image.new("RGB", (4, 2), GREEN)
    exif = Image.Exif()
    exif[0x0112] = int(ExifOrientation.RightTop)
    img.save(path, exif=exif.tobytes())
    ImageHandler().rotate_image_file(str(path), 90)
    with Image.open(path) as rotated:
        assert rotated.size == (4, 2)


def test_rotate_image_file_errors(tmp_path):
    path = tmp_path / "pic.gif"
    _pattern().save(path)
    handler = ImageHandler()
    with pytest.raises(ImageError, match="Unsupported format"):
        handler.rotate_image_file(str(path), 90)
    with pytest.raises(ImageError, match="Unsupported angle"):
        handler.rotate_image_file(str(path), 30)