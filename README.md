# dguiutil

Helpers for desktop graphics work: reading and rotating image files with
Pillow, playing animated icon frames, finding `.dci` icon files in theme
directories, and sizing fonts on a fixed scale.

## What is inside

- `dguiutil.imagehandler`
  - `ImageHandler` reads one image file and keeps the decoded image cached.
    Its methods are `read_image`, `thumbnail`, `image_size`, `save_image`,
    `rotate_image_file` and `clear_cache`. Its properties are `file_name`,
    `image_format`, `readable`, `writeable` and `rotatable`. Failures raise
    `ImageError`.
  - `detect_image_format` takes a file's format from its suffix. When the
    name has no suffix, it reads the leading bytes of the file instead.
  - `support_formats`, `is_readable_format` and `is_writeable_format` report
    which formats can be read and which can be saved.
  - `rotate_image` turns an image clockwise by a multiple of 90 degrees.
  - `adjust_to_orientation` applies an `ExifOrientation` value to an image.
- `dguiutil.imageplayer`
  - `ImageSequencePlayer` steps through the frames of one or more
    `FrameSource` objects. It supports loop counts, reversed order and frame
    caching, all controlled through `PlayerFlag`.
  - The caller drives playback. `start` begins it, and `read_image` returns
    the current frame and sets `interval` in milliseconds. `tick` moves on to
    the next frame.
  - Callback lists: `started`, `updated`, `finished`, `state_changed`.
- `dguiutil.iconplayer`
  - `IconPlayer` plays the transition animations between the `IconMode`
    states (`NORMAL`, `HOVER`, `PRESSED`, `DISABLED`) of an `IconSource`.
  - Mode changes are queued. `process_pending` starts them, and `tick`
    advances frames.
  - The frame being shown is available as `current_image`.
- `dguiutil.icontheme`
  - `find_dci_icon_file` looks up `<theme>/<name>.dci` across search paths. It
    falls back first to the bare icon name, then to no theme directory, then
    to an optional built-in path.
  - `dci_theme_search_paths` and `set_dci_theme_search_paths` read and
    replace the global search paths. The defaults are taken from
    `DSG_DATA_DIRS`, or otherwise from `XDG_DATA_DIRS`.
  - `IconThemeCache` caches lookups on the global paths.
- `dguiutil.fontmanager`
  - `FontManager` keeps the pixel sizes of the levels `SizeType.T1` to
    `SizeType.T10`. The sizes are shifted by the offset of the base `Font`.
  - `pixel_size_of` gives a font's pixel size, computing it from the point
    size and dpi when needed.
- `dguiutil.scaling`
  - `pixmap_device_pixel_ratio` picks the device pixel ratio to use for a
    pixmap that was scaled for a display ratio.

## Installation

```
pip install dguiutil
```

## Examples

```python
from dguiutil.imagehandler import ImageHandler, detect_image_format, rotate_image

handler = ImageHandler("photo.png")
image = handler.read_image()
handler.save_image("photo-turned.png", "PNG", rotate_image(image, 90))
print(detect_image_format("photo.png"))  # PNG
```

```python
from dguiutil.imageplayer import FrameSource, ImageSequencePlayer

player = ImageSequencePlayer()
player.set_images([FrameSource([("first", 100), ("second", 100)])])
player.start()
print(player.read_image(), player.interval)  # first 100
player.tick()
print(player.read_image())  # second
player.tick()
print(player.state)  # PlayerState.NOT_RUNNING
```

```python
from dguiutil.fontmanager import FontManager, SizeType

fonts = FontManager()
print(fonts.font_pixel_size(SizeType.T6))  # 14
```

```python
from dguiutil.icontheme import find_dci_icon_file

path = find_dci_icon_file("org.example.app/accounts", "light", search_paths=["/usr/share/dsg/icons"])
```

## What it does not do

- The package applies no colour or pixel filters to images.
- It does not send taskbar or launcher messages.
- It draws nothing on screen. The players only hand out frames and timings,
  and the caller decides when to call `tick` and where to show the frames.

## Running the tests

```
pip install dguiutil[test]
pytest
```