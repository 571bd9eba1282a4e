"""Animated icon state machine: plays transitions between icon modes.

An ``IconPlayer`` holds an icon with one image per mode (normal, hover,
pressed, disabled) and, when the mode changes, plays the animation that
leads from the old mode to the new one.  Requests are queued and started
by ``process_pending``.  Frames advance each time ``tick`` is called.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from dguiutil.imageplayer import FrameSource, ImageSequencePlayer, PlayerFlag, PlayerState

__all__ = ["IconMode", "IconSource", "IconPlayerState", "IconPlayer"]

_log = logging.getLogger(__name__)


class IconMode(Enum):
    """The interaction state an icon is drawn for."""

    NORMAL = 0
    HOVER = 1
    PRESSED = 2
    DISABLED = 3


class IconPlayerState(Enum):
    """Whether an animation is playing."""

    IDLE = 0
    BUSY = 1


def _fuzzy_equal(a: float, b: float) -> bool:
    return abs(a - b) * 1000000000000.0 <= min(abs(a), abs(b))


class IconSource:
    """Frames of an icon, keyed by ``(theme, mode)``.

    Each entry is a sequence of ``(image, duration_ms)`` pairs.  A mode with
    no entry for a theme has no image; there is no fallback between modes
    when images are looked up for playback.  ``render`` turns a stored frame
    and a palette into the image handed out.
    """

    def __init__(
        self,
        images: Optional[Mapping[Tuple[str, IconMode], Sequence[Tuple[Any, int]]]] = None,
        loop_count: int = 0,
        has_palette: bool = False,
        render: Optional[Callable[[Any, Any], Any]] = None,
    ) -> None:
        self._images: Dict[Tuple[str, IconMode], List[Tuple[Any, int]]] = {}
        for (theme, mode), frames in (images or {}).items():
            self._images[(theme, IconMode(mode))] = [(img, int(d)) for img, d in frames]
        self.loop_count = loop_count
        self.has_palette = has_palette
        self._render = render

    @property
    def is_null(self) -> bool:
        return not self._images

    def image(self, mode: IconMode, theme: str, size: int, ratio: float) -> FrameSource:
        """A fresh frame reader for ``mode``; empty when the mode has no image."""
        frames = self._images.get((theme, IconMode(mode)), [])
        return FrameSource(frames, self.loop_count, self.has_palette if frames else False, self._render)

    def pixmap(self, mode: IconMode, theme: str, size: int, ratio: float, palette: Any = None) -> Any:
        """The still image for ``mode``: its last frame, falling back to the normal mode."""
        frames = self._images.get((theme, IconMode(mode))) or self._images.get((theme, IconMode.NORMAL))
        if not frames:
            return None
        image = frames[-1][0]
        return self._render(image, palette) if self._render else image


class IconPlayer:
    """Plays the animations between the modes of an ``IconSource``."""

    def __init__(self) -> None:
        self._state = IconPlayerState.IDLE
        self._icon = IconSource()
        self._theme = "light"
        self._mode = IconMode.NORMAL
        self._last_mode = IconMode.NORMAL
        self._icon_size = -1
        self._ratio = 1.0
        self._normal = FrameSource()
        self._hover = FrameSource()
        self._pressed = FrameSource()
        self._disabled = FrameSource()
        self._player: Optional[ImageSequencePlayer] = None
        self._jobs: List[Tuple[IconMode, IconMode]] = []
        self._pending: List[PlayerFlag] = []
        self._save_hover_on_finished = False
        self._image: Any = None
        self._finished_image: Any = None
        self._hover_last_image: Any = None
        self.state_changed: List[Callable[[], None]] = []
        self.updated: List[Callable[[], None]] = []
        self.mode_changed: List[Callable[[IconMode, IconMode], None]] = []

    # -- properties -------------------------------------------------------

    @property
    def state(self) -> IconPlayerState:
        return self._state

    @property
    def icon(self) -> IconSource:
        return self._icon

    @property
    def theme(self) -> str:
        return self._theme

    @property
    def mode(self) -> IconMode:
        return self._mode

    @property
    def icon_size(self) -> int:
        return self._icon_size

    @property
    def device_pixel_ratio(self) -> float:
        return self._ratio

    @property
    def current_image(self) -> Any:
        return self._image

    # -- internals --------------------------------------------------------

    def _set_state(self, state: IconPlayerState) -> None:
        if self._state == state:
            return
        self._state = state
        for callback in list(self.state_changed):
            callback()

    def _show(self, image: Any) -> None:
        self._image = image
        for callback in list(self.updated):
            callback()

    def _get_image(self, mode: IconMode) -> FrameSource:
        if mode == IconMode.HOVER:
            return self._hover
        if mode == IconMode.PRESSED:
            return self._pressed
        if mode == IconMode.DISABLED:
            return self._disabled
        return self._normal

    def _pixmap(self, mode: IconMode) -> Any:
        return self._icon.pixmap(mode, self._theme, self._icon_size, self._ratio, self._player.palette)

    def _show_mode(self, mode: IconMode) -> None:
        image = self._get_image(mode)
        if image.at_begin:
            self._show(image.to_image(self._player.palette))
        else:
            self._show(self._pixmap(mode))

    def _set_finished_image(self, mode: IconMode) -> None:
        self._finished_image = self._pixmap(mode)

    def _reset(self) -> None:
        if self._player is not None and self._player.state != PlayerState.NOT_RUNNING:
            self._player.stop()
        self._normal = FrameSource()
        self._hover = FrameSource()
        self._pressed = FrameSource()
        self._disabled = FrameSource()
        self._hover_last_image = None

    def _load(self, mode: IconMode) -> FrameSource:
        return self._icon.image(mode, self._theme, self._icon_size, self._ratio)

    def _ensure_init(self) -> None:
        self._init_player()
        if not self._normal.is_null or self._icon.is_null:
            return
        self._normal = self._load(IconMode.NORMAL)
        self._hover = self._load(IconMode.HOVER)
        self._pressed = self._load(IconMode.PRESSED)
        self._disabled = self._load(IconMode.DISABLED)

    def _init_player(self) -> None:
        if self._player is not None:
            return
        self._player = ImageSequencePlayer()
        self._player.updated.append(self._on_player_updated)
        self._player.finished.append(self._on_player_finished)

    def _on_player_updated(self) -> None:
        self._show(self._player.read_image())

    def _on_player_finished(self) -> None:
        _log.debug("Current animation finished")
        if self._save_hover_on_finished:
            self._save_hover_on_finished = False
            self._hover_last_image = self._image

        if self._jobs:
            self._jobs.pop(0)
            _log.debug("Number of animations remaining is %d", len(self._jobs))
            if self._jobs:
                self._play_from_queue()
                return

        if self._finished_image is not None:
            self._show(self._finished_image)
            self._finished_image = None

        if self._mode in (IconMode.NORMAL, IconMode.DISABLED):
            self._player.clear_cache()

        self._set_state(IconPlayerState.IDLE)

    def _ensure_hover_mode_last_image(self) -> bool:
        if self._hover_last_image is not None:
            return True
        if not self._hover.supports_animation:
            return False
        image = FrameSource()
        usable = (
            self._hover.at_end
            or self._player is None
            or self._player.state != PlayerState.NOT_RUNNING
        )
        if not usable:
            if self._icon.is_null:
                return False
            image = self._load(IconMode.HOVER)
        if image.is_null:
            return False
        while not image.at_end:
            if not image.jump_to_next_image():
                break
        if not image.at_end:
            return False
        palette = self._player.palette if self._player is not None else None
        self._hover_last_image = image.to_image(palette)
        return self._hover_last_image is not None

    def _start(self, for_mode: IconMode, speed: float, flags: PlayerFlag) -> bool:
        _log.debug("Start animation for %s", for_mode.name)
        ok = self._player.start(speed, flags)
        if ok and for_mode == IconMode.HOVER and not flags & PlayerFlag.INVERTED_ORDER:
            # Reaching hover must stop on the last hover frame.
            self._save_hover_on_finished = True
        if ok:
            self._set_state(IconPlayerState.BUSY)
        else:
            _log.debug("Failed on start animation for %s", for_mode.name)
        return ok

    def _play_images(
        self, images: List[FrameSource], for_mode: IconMode, speed: float, flags: PlayerFlag
    ) -> bool:
        self._player.set_images(images)
        return self._start(for_mode, speed, flags)

    def _play_transition(self, from_mode: IconMode, to_mode: IconMode, extra: PlayerFlag) -> bool:
        self._ensure_init()
        self._finished_image = None

        if self._normal.is_null:
            self._show(None)
            return False

        F = PlayerFlag
        hover, pressed, disabled = self._hover, self._pressed, self._disabled
        reverse = F.INVERTED_ORDER | F.IGNORE_LAST_IMAGE_LOOP | extra

        def to_disabled() -> bool:
            if disabled.supports_animation:
                return self._play_images([disabled], to_mode, 1.0, F.IGNORE_LAST_IMAGE_LOOP | extra)
            self._show_mode(IconMode.DISABLED)
            return False

        if from_mode == IconMode.NORMAL:
            if to_mode == IconMode.NORMAL:
                self._show_mode(IconMode.NORMAL)
            elif to_mode == IconMode.HOVER:
                if hover.is_null:
                    return False
                if hover.supports_animation:
                    return self._play_images([hover], to_mode, 1.0, F.CACHE_ALL | extra)
                self._show_mode(IconMode.HOVER)
            elif to_mode == IconMode.PRESSED:
                if pressed.is_null:
                    return False
                if pressed.supports_animation:
                    if hover.supports_animation:
                        return self._play_images([hover, pressed], to_mode, 2.0, F.CACHE_ALL | extra)
                    return self._play_images([pressed], to_mode, 1.0, F.CACHE_ALL | extra)
                self._show_mode(IconMode.PRESSED)
            elif to_mode == IconMode.DISABLED:
                if disabled.is_null:
                    return False
                return to_disabled()
        elif from_mode == IconMode.HOVER:
            if to_mode == IconMode.NORMAL:
                if hover.supports_animation:
                    self._set_finished_image(IconMode.NORMAL)
                    return self._play_images(
                        [hover], to_mode, 1.0, reverse | F.CLEAR_CACHE_ON_STOP
                    )
                self._show_mode(IconMode.NORMAL)
            elif to_mode == IconMode.PRESSED:
                if pressed.is_null:
                    if hover.supports_animation:
                        return self._play_images([hover], to_mode, 1.0, reverse)
                    self._show_mode(IconMode.NORMAL)
                    return False
                if pressed.supports_animation:
                    return self._play_images([pressed], to_mode, 1.0, F.CACHE_ALL | extra)
                self._show_mode(IconMode.PRESSED)
            elif to_mode == IconMode.DISABLED:
                if disabled.is_null:
                    self._show_mode(IconMode.NORMAL)
                    return False
                return to_disabled()
        elif from_mode == IconMode.PRESSED:
            if to_mode == IconMode.NORMAL:
                if not pressed.supports_animation:
                    self._show_mode(IconMode.NORMAL)
                    return False
                self._set_finished_image(IconMode.NORMAL)
                if hover.supports_animation:
                    return self._play_images([hover, pressed], to_mode, 2.0, reverse)
                return self._play_images([pressed], to_mode, 1.0, reverse)
            if to_mode == IconMode.HOVER:
                if pressed.is_null:
                    if hover.supports_animation:
                        return self._play_images([hover], to_mode, 1.0, F.CACHE_ALL | extra)
                    self._show_mode(IconMode.HOVER)
                    return False
                if pressed.supports_animation:
                    self._ensure_hover_mode_last_image()
                    self._finished_image = self._hover_last_image
                    return self._play_images([pressed], to_mode, 1.0, reverse)
                self._show_mode(IconMode.HOVER)
            elif to_mode == IconMode.DISABLED:
                if disabled.is_null:
                    self._show_mode(IconMode.NORMAL)
                    return False
                return to_disabled()
        elif from_mode == IconMode.DISABLED:
            if disabled.supports_animation:
                self._set_finished_image(IconMode.NORMAL)
                return self._play_images([disabled], to_mode, 1.0, reverse)
            self._show_mode(IconMode.NORMAL)

        return False

    def _play_from_queue(self, extra: PlayerFlag = PlayerFlag.NONE) -> None:
        if self._player is not None and self._player.state != PlayerState.NOT_RUNNING:
            return
        if not self._jobs:
            return
        from_mode, to_mode = self._jobs[0]
        if not self._play_transition(from_mode, to_mode, PlayerFlag(extra)):
            _log.debug("No animation played from %s to %s", from_mode.name, to_mode.name)
            self._jobs.pop(0)

    def _play_to_queue(self) -> None:
        extra = PlayerFlag.NONE
        _log.debug("Queue animation from %s to %s", self._last_mode.name, self._mode.name)

        if self._jobs:
            last_from, last_to = self._jobs[-1]
            if last_from == self._last_mode and last_to == self._mode:
                return
            if last_from == self._mode and last_to == self._last_mode:
                if len(self._jobs) > 1:
                    self._jobs.pop()
                    return
                if self._player is not None and self._player.state != PlayerState.NOT_RUNNING:
                    extra |= PlayerFlag.CONTINUE
                    self._player.stop()
                    self._jobs.pop(0)
        elif self._player is not None:
            self._player.stop()

        self._jobs.append((self._last_mode, self._mode))

        if self._player is not None and self._player.state != PlayerState.NOT_RUNNING:
            # Let the running animation end so successive changes stay continuous.
            self._player.abort_loop()
            return

        self._pending.append(extra)

    # -- public API -------------------------------------------------------

    def set_icon(self, icon: IconSource) -> None:
        """Use ``icon`` and redraw it for the current mode."""
        self._icon = icon
        self._reset()
        self._play_to_queue()

    def set_theme(self, theme: str) -> None:
        """Switch the theme the icon's images are taken from."""
        if self._theme == theme:
            return
        self._theme = theme
        self._reset()
        self._play_to_queue()

    def set_mode(self, mode: IconMode) -> None:
        """Change mode and queue the transition animation."""
        mode = IconMode(mode)
        if self._mode == mode:
            return
        self._last_mode = self._mode
        self._mode = mode
        for callback in list(self.mode_changed):
            callback(self._last_mode, mode)
        if mode == IconMode.DISABLED:
            self.abort()
        self._play_to_queue()

    def set_icon_size(self, size: int) -> None:
        """Set the icon size in logical pixels."""
        if self._icon_size == size:
            return
        self._icon_size = size
        self._reset()
        self._play_to_queue()

    def set_device_pixel_ratio(self, ratio: float) -> None:
        """Set the device pixel ratio images are made for."""
        if _fuzzy_equal(self._ratio, ratio):
            return
        self._ratio = ratio
        self._reset()
        self._play_to_queue()

    def set_palette(self, palette: Any) -> None:
        """Set the palette images are rendered with."""
        self._init_player()
        if self._player.set_palette(palette):
            if self._hover.has_palette:
                self._hover_last_image = None
            if self._get_image(self._mode).has_palette:
                self._play_to_queue()

    def play(self, mode: IconMode) -> None:
        """Play the animation of ``mode`` at once, dropping queued ones."""
        mode = IconMode(mode)
        _log.debug("Immediate play animation for %s", mode.name)
        self._ensure_init()
        if self._normal.is_null:
            return
        self._jobs.clear()
        self._player.stop()
        self._finished_image = None
        image = self._get_image(mode)
        if not image.supports_animation:
            return
        self._player.set_images([image])
        self._start(mode, 1.0, PlayerFlag.IGNORE_LAST_IMAGE_LOOP)

    def stop(self) -> None:
        """Stop the running animation."""
        if self._player is not None:
            self._player.stop()
        self._set_state(IconPlayerState.IDLE)

    def abort(self) -> None:
        """Stop the running animation and drop all queued ones."""
        self._jobs.clear()
        if self._player is not None:
            self._player.stop()
        self._set_state(IconPlayerState.IDLE)

    def process_pending(self) -> int:
        """Start the queued animation requests; returns how many were handled."""
        count = 0
        while self._pending:
            extra = self._pending.pop(0)
            self._play_from_queue(extra)
            count += 1
        return count

    def tick(self) -> None:
        """Advance the running animation by one frame."""
        if self._player is not None:
            self._player.tick()