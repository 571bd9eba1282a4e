"""Locating DCI icon files in themed search directories."""

from __future__ import annotations

import os
from collections import OrderedDict
from typing import Iterable, List, Optional

__all__ = [
    "IconThemeCache",
    "find_dci_icon_file",
    "dci_theme_search_paths",
    "set_dci_theme_search_paths",
    "DCI_SUFFIX",
]

DCI_SUFFIX = ".dci"
_DEFAULT_MAX_COST = 100


def _join(base: str, path: Optional[str]) -> str:
    if not path:
        return base
    return base + os.sep + path


def _system_data_dirs() -> List[str]:
    dsg_dirs = os.environ.get("DSG_DATA_DIRS", "")
    if dsg_dirs:
        return [d for d in dsg_dirs.split(os.pathsep) if d]
    xdg_dirs = os.environ.get("XDG_DATA_DIRS", "") or "/usr/local/share:/usr/share"
    return [_join(d, "dsg") for d in xdg_dirs.split(os.pathsep) if d]


def _default_search_paths() -> List[str]:
    return [_join(d, "icons") for d in _system_data_dirs()]


_search_paths: List[str] = _default_search_paths()


def dci_theme_search_paths() -> List[str]:
    """Directories searched for DCI icon themes, in order."""
    return list(_search_paths)


def set_dci_theme_search_paths(paths: Iterable[str]) -> None:
    """Replace the directories searched for DCI icon themes."""
    global _search_paths
    _search_paths = list(paths)


def _find_in_path(icon_name: str, theme_name: Optional[str], path: Optional[str]) -> Optional[str]:
    if not path or not icon_name:
        return None
    theme_path = _join(path, theme_name)
    if not os.path.isdir(theme_path):
        return None
    icon_path = _join(theme_path, icon_name + DCI_SUFFIX)
    if not os.path.normpath(icon_path).startswith(os.path.normpath(theme_path)):
        return None
    if os.path.isfile(icon_path):
        return icon_path
    return None


def _is_wrongful(icon_name: str) -> bool:
    clean = os.path.normpath(icon_name)
    return (
        icon_name.startswith("/")
        or icon_name.endswith("/")
        or len(clean) != len(icon_name)
        or clean.startswith("../")
    )


def find_dci_icon_file(
    icon_name: str,
    theme_name: Optional[str] = None,
    search_paths: Optional[Iterable[str]] = None,
    builtin_path: Optional[str] = None,
) -> Optional[str]:
    """Path of the ``.dci`` file for ``icon_name``, or None.

    A name ``group/icon`` is first looked up as given under the theme
    directory of each search path, then as ``icon`` alone; after that the
    theme directory is dropped, and finally ``builtin_path`` is tried.
    Names that are absolute, end in a slash or are not in clean form are
    rejected.
    """
    if not icon_name or _is_wrongful(icon_name):
        return None

    paths = dci_theme_search_paths() if search_paths is None else list(search_paths)
    effective = icon_name

    for path in paths:
        found = _find_in_path(effective, theme_name, path)
        if found:
            return found

    split = icon_name.rfind("/")
    if split > 0:
        effective = icon_name[split + 1:]
        for path in paths:
            found = _find_in_path(effective, theme_name, path)
            if found:
                return found

    for path in paths:
        found = _find_in_path(effective, None, path)
        if found:
            return found

    return _find_in_path(effective, None, builtin_path)


class IconThemeCache:
    """Remembers icon file lookups, found or not, least recently used first out."""

    def __init__(self, max_cost: int = _DEFAULT_MAX_COST) -> None:
        self._max_cost = max_cost
        self._paths: "OrderedDict[str, str]" = OrderedDict()

    @property
    def max_cost(self) -> int:
        return self._max_cost

    def __len__(self) -> int:
        return len(self._paths)

    def set_max_cost(self, cost: int) -> None:
        """Change how many lookups are kept, dropping the oldest beyond it."""
        self._max_cost = cost
        self._trim()

    def clear(self) -> None:
        """Forget every remembered lookup."""
        self._paths.clear()

    def _trim(self) -> None:
        while len(self._paths) > max(self._max_cost, 0):
            self._paths.popitem(last=False)

    def find_dci_icon_file(
        self, icon_name: str, theme_name: Optional[str] = None, fallback: Optional[str] = None
    ) -> Optional[str]:
        """Like ``find_dci_icon_file`` on the global search paths, cached.

        Returns ``fallback`` when no file is found.
        """
        key = (theme_name or "") + "/" + icon_name
        if key in self._paths:
            self._paths.move_to_end(key)
            cached = self._paths[key]
            return cached if cached else fallback

        path = find_dci_icon_file(icon_name, theme_name) or ""
        if self._max_cost >= 1:
            self._paths[key] = path
            self._trim()
        return path if path else fallback