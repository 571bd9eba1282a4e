import os

import pytest

from dguiutil.icontheme import (
    IconThemeCache,
    dci_theme_search_paths,
    find_dci_icon_file,
    set_dci_theme_search_paths,
)


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"DCI\0")
    return str(path)


@pytest.fixture
def restore_paths():
    saved = dci_theme_search_paths()
    yield
    set_dci_theme_search_paths(saved)


def test_finds_icon_in_theme(tmp_path):
    expected = _touch(tmp_path / "theme_name" / "accounts.dci")
    assert find_dci_icon_file("accounts", "theme_name", [str(tmp_path)]) == expected


def test_group_name_is_tried_first(tmp_path):
    grouped = _touch(tmp_path / "theme_name" / "org.deepin.app" / "accounts.dci")
    _touch(tmp_path / "theme_name" / "accounts.dci")
    found = find_dci_icon_file("org.deepin.app/accounts", "theme_name", [str(tmp_path)])
    assert found == grouped


def test_group_name_dropped_when_missing(tmp_path):
    plain = _touch(tmp_path / "theme_name" / "accounts.dci")
    found = find_dci_icon_file("org.deepin.app/accounts", "theme_name", [str(tmp_path)])
    assert found == plain


def test_theme_dropped_when_missing(tmp_path):
    plain = _touch(tmp_path / "accounts.dci")
    (tmp_path / "theme_name").mkdir()
    assert find_dci_icon_file("accounts", "theme_name", [str(tmp_path)]) == plain


def test_search_path_order(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    expected = _touch(first / "theme" / "edit.dci")
    _touch(second / "theme" / "edit.dci")
    assert find_dci_icon_file("edit", "theme", [str(first), str(second)]) == expected
    assert find_dci_icon_file("edit", "theme", [str(second), str(first)]) != expected


def test_builtin_fallback(tmp_path):
    builtin = tmp_path / "builtin"
    expected = _touch(builtin / "edit.dci")
    found = find_dci_icon_file("edit", "theme", [str(tmp_path / "none")], str(builtin))
    assert found == expected


def test_missing_returns_none(tmp_path):
    assert find_dci_icon_file("edit", "theme", [str(tmp_path)]) is None


@pytest.mark.parametrize(
    "name",
    ["", "/edit", "edit/", "a/../edit", "./edit", "../edit", "a//edit"],
)
def test_wrongful_names_rejected(tmp_path, name):
    _touch(tmp_path / "theme" / "edit.dci")
    _touch(tmp_path / "edit.dci")
    assert find_dci_icon_file(name, "theme", [str(tmp_path / "theme")]) is None


def test_directory_named_like_icon_is_not_a_file(tmp_path):
    (tmp_path / "theme" / "edit.dci").mkdir(parents=True)
    assert find_dci_icon_file("edit", "theme", [str(tmp_path)]) is None


def test_global_search_paths_round_trip(tmp_path, restore_paths):
    set_dci_theme_search_paths([str(tmp_path), "other"])
    assert dci_theme_search_paths() == [str(tmp_path), "other"]
    expected = _touch(tmp_path / "theme" / "edit.dci")
    assert find_dci_icon_file("edit", "theme") == expected


def test_cache_remembers_result(tmp_path, restore_paths):
    set_dci_theme_search_paths([str(tmp_path)])
    expected = _touch(tmp_path / "theme" / "edit.dci")
    cache = IconThemeCache()
    assert cache.find_dci_icon_file("edit", "theme") == expected
    os.remove(expected)
    assert cache.find_dci_icon_file("edit", "theme") == expected
    cache.clear()
    assert cache.find_dci_icon_file("edit", "theme", "fallback.dci") == "fallback.dci"


def test_cache_remembers_miss(tmp_path, restore_paths):
    set_dci_theme_search_paths([str(tmp_path)])
    cache = IconThemeCache()
    assert cache.find_dci_icon_file("edit", "theme") is None
    _touch(tmp_path / "theme" / "edit.dci")
    assert cache.find_dci_icon_file("edit", "theme", "fb") == "fb"
    assert len(cache) == 1


def test_cache_max_cost_evicts_oldest(tmp_path, restore_paths):
    set_dci_theme_search_paths([str(tmp_path)])
    a = _touch(tmp_path / "theme" / "a.dci")
    b = _touch(tmp_path / "theme" / "b.dci")
    cache = IconThemeCache(2)
    assert cache.find_dci_icon_file("a", "theme") == a
    assert cache.find_dci_icon_file("b", "theme") == b
    cache.set_max_cost(1)
    assert cache.max_cost == 1
    assert len(cache) == 1
    os.remove(a)
    os.remove(b)
    assert cache.find_dci_icon_file("b", "theme") == b
    assert cache.find_dci_icon_file("a", "theme") is None


def test_cache_with_zero_cost_keeps_nothing(tmp_path, restore_paths):
    set_dci_theme_search_paths([str(tmp_path)])
    path = _touch(tmp_path / "theme" / "a.dci")
    cache = IconThemeCache(0)
    assert cache.find_dci_icon_file("a", "theme") == path
    assert len(cache) == 0
    os.remove(path)
    assert cache.find_dci_icon_file("a", "theme") is None