import logging
from pathlib import Path

import pytest
from PIL import Image

from upload_shared.errors import EncodeFailed


class ImageFactory:
    """Writes small real image files into a temp directory."""

    def __init__(self, root: Path):
        self.root = root

    def _path(self, name: str) -> Path:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def jpeg(self, name="photo.jpg", size=(40, 30), orientation=None) -> Path:
        path = self._path(name)
        img = Image.new("RGB", size, (200, 120, 40))
        if orientation is None:
            img.save(path, "JPEG")
        else:
            exif = Image.Exif()
            exif[0x0112] = orientation
            img.save(path, "JPEG", exif=exif)
        return path

    def png(self, name="image.png", mode="RGB", transparent=False, size=(36, 36)) -> Path:
        path = self._path(name)
        if mode == "RGBA":
            alpha = 0 if transparent else 255
            img = Image.new("RGBA", size, (10, 20, 30, alpha))
            img.save(path, "PNG")
        elif mode == "P":
            img = Image.new("P", size, 1)
            img.putpalette([0, 0, 0, 255, 0, 0] + [0, 0, 0] * 254)
            if transparent:
                img.save(path, "PNG", transparency=0)
            else:
                img.save(path, "PNG")
        else:
            Image.new(mode, size, 128 if mode == "L" else (10, 20, 30)).save(path, "PNG")
        return path

    def gif(self, name="image.gif", frames=1) -> Path:
        path = self._path(name)
        colors = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]
        images = [Image.new("RGB", (16, 16), colors[i % len(colors)]) for i in range(frames)]
        if frames == 1:
            images[0].save(path, "GIF")
        else:
            images[0].save(
                path, "GIF", save_all=True, append_images=images[1:],
                duration=100, loop=0,
            )
        return path

    def webp(self, name="image.webp", size=(24, 24)) -> Path:
        path = self._path(name)
        Image.new("RGB", size, (90, 90, 90)).save(path, "WEBP")
        return path

    def raw(self, name: str, data: bytes) -> Path:
        path = self._path(name)
        path.write_bytes(data)
        return path


class RecordingEditor:
    """Editor double that records every call in order."""

    def __init__(self, path, mime_type, fail=False, write=True):
        self.path = Path(path)
        self.mime_type = mime_type
        self.fail = fail
        self.write = write
        self.calls = []
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True

    def rotate(self, degrees):
        self.calls.append(("rotate", degrees))

    def set_quality(self, quality):
        self.calls.append(("set_quality", quality))

    def strip_meta(self):
        self.calls.append(("strip_meta",))

    def save(self, target, mime_type):
        self.calls.append(("save", Path(target), mime_type))
        if self.fail:
            raise EncodeFailed("simulated save failure")
        if self.write:
            Path(target).write_bytes(b"RIFF\x00\x00\x00\x00WEBPVP8 ")
        return Path(target)


class NoRotateEditor(RecordingEditor):
    """Editor double without a rotate capability, like the cwebp editor."""

    rotate = None


class EditorRecorder:
    """Editor factory handing out RecordingEditors."""

    def __init__(self, editor_cls=RecordingEditor, **editor_kwargs):
        self.editor_cls = editor_cls
        self.editor_kwargs = editor_kwargs
        self.editors = []

    def __call__(self, path, mime_type):
        editor = self.editor_cls(path, mime_type, **self.editor_kwargs)
        self.editors.append(editor)
        return editor

    @property
    def last(self):
        return self.editors[-1]


@pytest.fixture
def images(tmp_path):
    return ImageFactory(tmp_path)


@pytest.fixture
def recorder():
    return EditorRecorder()


@pytest.fixture
def no_rotate_recorder():
    return EditorRecorder(NoRotateEditor)


@pytest.fixture
def failing_recorder():
    return EditorRecorder(fail=True)


@pytest.fixture
def silent_recorder():
    """Editor that claims success but writes nothing."""
    return EditorRecorder(write=False)


@pytest.fixture(autouse=True)
def _debug_logging(caplog):
    caplog.set_level(logging.DEBUG)
