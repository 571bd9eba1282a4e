"""Frame-by-frame playback of a sequence of animated images.

Playback is driven from outside: after ``start`` the player waits for
``read_image``, which hands out the current frame and arms a timer whose
length is in ``interval``; calling ``tick`` fires that timer and moves on.
"""

from __future__ import annotations

import os
from enum import Enum, IntFlag
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple

__all__ = [
    "PlayerState",
    "PlayerFlag",
    "Frame",
    "FrameSource",
    "ImageSequencePlayer",
    "IGNORE_LOOP_ENV",
]

IGNORE_LOOP_ENV = "D_DTK_DCI_PLAYER_IGNORE_ANIMATION_LOOP"


def _qround(value: float) -> int:
    return int(value + 0.5) if value >= 0.0 else int(value - 0.5)


def _ignore_loop() -> bool:
    return IGNORE_LOOP_ENV in os.environ


class PlayerState(Enum):
    """Where the player is in its read/wait cycle."""

    NOT_RUNNING = 0
    WAITING_READ = 1
    RUNNING = 2


class PlayerFlag(IntFlag):
    """Options for ``ImageSequencePlayer.start``."""

    NONE = 0
    CONTINUE = 1
    CACHE_ALL = 2
    INVERTED_ORDER = 4
    IGNORE_LAST_IMAGE_LOOP = 8
    ALLOW_NON_LAST_IMAGE_LOOP = 16
    CLEAR_CACHE_ON_STOP = 32


class Frame(NamedTuple):
    """A rendered frame and how long it stays up, in milliseconds."""

    image: Any
    duration: int


class FrameSource:
    """An image made of timed frames, read one after another.

    ``loop_count`` is how often the frames play (0 counts as once, a
    negative value loops forever).  ``render``, if given, turns a stored
    frame and a palette into the image handed out.
    """

    def __init__(
        self,
        frames: Sequence[Tuple[Any, int]] = (),
        loop_count: int = 0,
        has_palette: bool = False,
        render: Optional[Callable[[Any, Any], Any]] = None,
    ) -> None:
        self._frames = [Frame(image, duration) for image, duration in frames]
        self.loop_count = loop_count
        self.has_palette = has_palette
        self._render = render
        self._index = 0

    @property
    def is_null(self) -> bool:
        return not self._frames

    @property
    def supports_animation(self) -> bool:
        return len(self._frames) > 1

    @property
    def current_image_number(self) -> int:
        return self._index

    @property
    def current_image_duration(self) -> int:
        return self._frames[self._index].duration if self._frames else 0

    @property
    def at_begin(self) -> bool:
        return self._index == 0

    @property
    def at_end(self) -> bool:
        return self._index >= len(self._frames) - 1

    def reset(self) -> None:
        """Go back to the first frame."""
        self._index = 0

    def jump_to_next_image(self) -> bool:
        """Advance one frame; False when already at the last one."""
        if self._index + 1 >= len(self._frames):
            return False
        self._index += 1
        return True

    def to_image(self, palette: Any = None) -> Any:
        """The current frame, rendered with ``palette``."""
        if not self._frames:
            return None
        image = self._frames[self._index].image
        return self._render(image, palette) if self._render else image


def _jump_image_to(image: FrameSource, number: int) -> bool:
    if number < 0:
        return False
    if image.current_image_number > number:
        image.reset()
    for _ in range(image.current_image_number, number):
        if not image.jump_to_next_image():
            return False
    return True


def _all_frames(image: FrameSource, palette: Any) -> List[Frame]:
    frames = []
    while True:
        frames.append(Frame(image.to_image(palette), image.current_image_duration))
        if not image.jump_to_next_image():
            return frames


class ImageSequencePlayer:
    """Plays the frames of several images in order, with loops and caching."""

    def __init__(self) -> None:
        self._images: List[FrameSource] = []
        self._palette: Any = None
        self._state = PlayerState.NOT_RUNNING
        self._flags = PlayerFlag.NONE
        self._speed = 1.0
        self._user_loop_count = 1
        self._cache: List[List[Frame]] = []
        self._timer_active = False
        self.interval = 0
        self._loop_count = 1
        self._current = 0
        self._current_loop_count = 0
        self._frame_number = 0
        self.started: List[Callable[[], None]] = []
        self.updated: List[Callable[[], None]] = []
        self.finished: List[Callable[[], None]] = []
        self.state_changed: List[Callable[[], None]] = []

    @staticmethod
    def _emit(callbacks: List[Callable[[], None]]) -> None:
        for callback in list(callbacks):
            callback()

    # -- properties -------------------------------------------------------

    @property
    def images(self) -> List[FrameSource]:
        return list(self._images)

    @property
    def palette(self) -> Any:
        return self._palette

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def loop_count(self) -> int:
        return self._user_loop_count

    @property
    def current_image(self) -> Optional[FrameSource]:
        """The image being played, or None when stopped."""
        if self._state == PlayerState.NOT_RUNNING:
            return None
        return self._images[self._current]

    @property
    def current_loop_forever(self) -> bool:
        return self._state != PlayerState.NOT_RUNNING and self._current_loop_count < 0

    # -- internals --------------------------------------------------------

    @property
    def _reversed(self) -> bool:
        return bool(self._flags & PlayerFlag.INVERTED_ORDER)

    def _has_cache(self, index: int, frame: int) -> bool:
        if index < 0 or frame < 0:
            return False
        if len(self._cache) <= index:
            return False
        return frame < len(self._cache[index])

    def _current_has_cache(self) -> bool:
        return self._has_cache(self._current, self._frame_number)

    def _set_state(self, state: PlayerState) -> None:
        if self._state == state:
            return
        self._state = state
        self._emit(self.state_changed)

    def _init_current(self) -> bool:
        image = self._images[self._current]
        if not image.supports_animation:
            return False

        if self._frame_number < 0:
            if self._reversed:
                cached = self._cache[self._current] if self._current < len(self._cache) else []
                self._frame_number = len(cached) - 1
            else:
                self._frame_number = 0

        if not self._current_has_cache():
            if not _jump_image_to(image, self._frame_number):
                return False

        if self._flags & PlayerFlag.CACHE_ALL:
            while len(self._cache) <= self._current:
                self._cache.append([])

        if self._current == len(self._images) - 1:
            if self._flags & PlayerFlag.IGNORE_LAST_IMAGE_LOOP:
                self._current_loop_count = 1
            else:
                self._current_loop_count = image.loop_count
        elif self._flags & PlayerFlag.ALLOW_NON_LAST_IMAGE_LOOP:
            self._current_loop_count = image.loop_count
        else:
            self._current_loop_count = 1

        if self._current_loop_count == 0:
            self._current_loop_count = 1
        return True

    def _ensure_current(self) -> bool:
        while 0 <= self._current < len(self._images):
            if self._init_current():
                return True
            self._current += -1 if self._reversed else 1
            self._frame_number = -1
        return False

    # -- public API -------------------------------------------------------

    def set_images(self, images: Sequence[FrameSource]) -> None:
        """Replace the images to play, stopping any playback."""
        images = list(images)
        if self._images == images:
            return
        if self._state != PlayerState.NOT_RUNNING:
            self.stop()
        self._images = images
        self._current = -1
        self._frame_number = -1
        self.clear_cache()

    def set_palette(self, palette: Any) -> bool:
        """Set the palette frames are rendered with; False if unchanged."""
        if self._palette == palette:
            return False
        self._palette = palette
        if not any(image.has_palette for image in self._images):
            return True
        if self._state == PlayerState.NOT_RUNNING:
            self.clear_cache()
        else:
            self._flags |= PlayerFlag.CLEAR_CACHE_ON_STOP
        return True

    def set_loop_count(self, count: int) -> None:
        """How often the whole sequence plays; non-positive counts are ignored."""
        if count <= 0:
            return
        if self._state != PlayerState.NOT_RUNNING:
            self._loop_count += count - self._user_loop_count
        self._user_loop_count = count

    def abort_loop(self) -> None:
        """Let the current pass run out without repeating."""
        if self._state == PlayerState.NOT_RUNNING:
            return
        self._flags = (self._flags | PlayerFlag.IGNORE_LAST_IMAGE_LOOP) & ~PlayerFlag.ALLOW_NON_LAST_IMAGE_LOOP
        self._current_loop_count = 0
        self._loop_count = 0

    def read_image(self) -> Any:
        """Hand out the current frame and arm the timer; None unless waiting."""
        if self._state != PlayerState.WAITING_READ:
            return None

        if self._current_has_cache():
            frame = self._cache[self._current][self._frame_number]
            image = frame.image
            interval = _qround(frame.duration / self._speed)
        else:
            source = self._images[self._current]
            image = source.to_image(self._palette)
            if self._flags & PlayerFlag.CACHE_ALL:
                self._cache[self._current].append(Frame(image, source.current_image_duration))
            interval = _qround(source.current_image_duration / self._speed)

        self.interval = max(0, interval)
        self._timer_active = True
        self._set_state(PlayerState.RUNNING)
        return image

    def tick(self) -> None:
        """Fire the frame timer: advance, loop or finish."""
        if not self._timer_active:
            return
        self._timer_active = False

        step = -1 if self._reversed else 1
        finished = False
        new_frame = self._frame_number + step
        if not self._has_cache(self._current, new_frame):
            if self._reversed:
                finished = True
            else:
                finished = not _jump_image_to(self._images[self._current], new_frame)

        if finished:
            replay = False
            if self._current_loop_count != 0:
                self._current_loop_count -= 1
                replay = self._current_loop_count != 0 and not _ignore_loop()
            if replay:
                self._frame_number = -1
                self._init_current()
                finished = False
            else:
                new_current = self._current + step
                if 0 <= new_current < len(self._images):
                    self._current = new_current
                    self._frame_number = -1
                    if self._ensure_current():
                        finished = False
        else:
            self._frame_number = new_frame

        if finished and self._loop_count != 0:
            self._loop_count -= 1
            if self._loop_count and not _ignore_loop():
                self._current = len(self._images) - 1 if self._reversed else 0
                self._frame_number = -1
                if self._ensure_current():
                    finished = False

        if finished:
            self.stop()
            self._emit(self.finished)
        else:
            self._set_state(PlayerState.WAITING_READ)
            self._emit(self.updated)

    def clear_cache(self) -> None:
        """Drop all cached frames."""
        self._cache.clear()

    def start(self, speed: float = 1.0, flags: PlayerFlag = PlayerFlag.NONE) -> bool:
        """Begin playback; False if already running or nothing can play."""
        if self._state != PlayerState.NOT_RUNNING:
            return False
        if not self._images:
            return False

        flags = PlayerFlag(flags)
        self._flags = flags
        if not (flags & PlayerFlag.CONTINUE) or self._current < 0:
            self._current = len(self._images) - 1 if self._reversed else 0

        if self._reversed:
            self._flags |= PlayerFlag.CACHE_ALL
            if not self._cache:
                self._cache = [[] for _ in self._images]
                for index in range(self._current + 1):
                    image = self._images[index]
                    if not image.supports_animation:
                        continue
                    image.reset()
                    self._cache[index].extend(_all_frames(image, self._palette))
            elif not (flags & PlayerFlag.CONTINUE):
                image = self._images[len(self._cache) - 1]
                if image.supports_animation and _jump_image_to(image, len(self._cache[-1])):
                    self._cache[-1].extend(_all_frames(image, self._palette))
                for index in range(len(self._cache), len(self._images)):
                    self._cache.append([])
                    image = self._images[index]
                    if not image.supports_animation:
                        continue
                    image.reset()
                    self._cache[index].extend(_all_frames(image, self._palette))
                self._frame_number = len(self._cache[self._current]) - 1
        else:
            if flags & PlayerFlag.CONTINUE:
                if self._current < 0:
                    self._current = 0
            else:
                self._current = 0
                self._frame_number = 0

            if (
                flags & PlayerFlag.CACHE_ALL
                and not self._cache
                and (self._current > 0 or self._frame_number > 0)
            ):
                self._cache = [[] for _ in self._images]
                image = self._images[self._current]
                if image.supports_animation:
                    image.reset()
                    self._cache[self._current].extend(_all_frames(image, self._palette))

        self._speed = speed if speed > 0.0 else 1.0
        self._loop_count = self._user_loop_count

        if not self._ensure_current():
            return False
        self._set_state(PlayerState.WAITING_READ)
        self._emit(self.started)
        self._emit(self.updated)
        return True

    def stop(self) -> None:
        """Halt playback."""
        if self._state == PlayerState.NOT_RUNNING:
            return
        self._timer_active = False
        if self._flags & PlayerFlag.CLEAR_CACHE_ON_STOP:
            self.clear_cache()
        self._set_state(PlayerState.NOT_RUNNING)