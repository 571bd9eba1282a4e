import pytest

from dguiutil.fontmanager import Font, FontManager, SizeType, pixel_size_of


def test_default_sizes():
    fm = FontManager()
    assert fm.font_pixel_size(SizeType.T1) == 40
    assert fm.font_pixel_size(SizeType.T6) == 14
    assert fm.font_pixel_size(SizeType.T10) == 10


def test_out_of_range_level_returns_zero():
    fm = FontManager()
    assert fm.font_pixel_size(10) == 0
    fm.set_font_pixel_size(10, 99)
    assert fm.font_pixel_size(10) == 0


def test_set_font_pixel_size():
    fm = FontManager()
    fm.set_font_pixel_size(SizeType.T3, 33)
    assert fm.font_pixel_size(SizeType.T3) == 33


def test_base_font_shifts_all_levels():
    fm = FontManager()
    before = [fm.font_pixel_size(t) for t in SizeType]
    fm.set_base_font(Font().with_pixel_size(20))
    after = [fm.font_pixel_size(t) for t in SizeType]
    assert fm.font_pixel_size(SizeType.T6) == 20
    shift = {a - b for a, b in zip(after, before)}
    assert len(shift) == 1


def test_font_changed_signal_once():
    fm = FontManager()
    calls = []
    fm.font_changed.append(lambda: calls.append(1))
    font = Font(family="Sans").with_pixel_size(18)
    fm.set_base_font(font)
    fm.set_base_font(font)
    assert calls == [1]
    assert fm.base_font == font


def test_reset_base_font_restores_levels():
    fm = FontManager()
    fm.set_base_font(Font().with_pixel_size(30))
    fm.reset_base_font()
    assert fm.font_pixel_size(SizeType.T1) == 40
    assert pixel_size_of(fm.base_font) == 14


def test_pixel_size_from_points():
    assert pixel_size_of(Font(point_size=12.0, dpi=96)) == 16
    assert pixel_size_of(Font(point_size=12.0, dpi=72)) == 12


def test_get_sets_pixel_size_and_keeps_family():
    base = Font(family="Mono")
    got = FontManager.get(22, base)
    assert got.pixel_size == 22
    assert got.family == "Mono"
    assert pixel_size_of(got) == 22


@pytest.mark.parametrize("size", [0, -5])
def test_get_ignores_nonpositive(size):
    base = Font(family="Mono", point_size=10.0)
    assert FontManager.get(size, base) == base