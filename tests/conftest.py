import threading
import time
from contextlib import contextmanager

import cv2
import numpy as np
import pytest

from pagepreview.config import Settings


def noise_image(width: int, height: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


def encoded(img: np.ndarray, ext: str = ".png", quality: int = 90) -> bytes:
    params = [int(cv2.IMWRITE_JPEG_QUALITY), quality] if ext == ".jpg" else []
    ok, buf = cv2.imencode(ext, img, params)
    assert ok
    return buf.tobytes()


class FakeSession:
    """Sesión falsa: devuelve `payload`, o lanza `error`, o se cuelga hasta abort()."""

    def __init__(self, renderer):
        self.renderer = renderer
        self.aborted = threading.Event()

    def capture(self, request, out):
        self.renderer.calls.append(request)
        if self.renderer.hang:
            self.aborted.wait(5)
            raise RuntimeError("session aborted")
        if self.renderer.note:
            out.notes.append(self.renderer.note)
        if self.renderer.payload:
            out.data = self.renderer.payload
        if self.renderer.error is not None:
            raise self.renderer.error

    def abort(self):
        self.renderer.aborted += 1
        self.aborted.set()


class FakeRenderer:
    def __init__(self, payload: bytes = b"", error: Exception = None,
                 hang: bool = False, start_error: Exception = None,
                 start_delay: float = 0.0, note: str = ""):
        self.payload = payload
        self.error = error
        self.hang = hang
        self.start_error = start_error
        self.start_delay = start_delay
        self.note = note
        self.calls = []
        self.opened = 0
        self.closed = 0
        self.aborted = 0

    @contextmanager
    def session(self):
        if self.start_delay:
            time.sleep(self.start_delay)
        if self.start_error is not None:
            raise self.start_error
        self.opened += 1
        try:
            yield FakeSession(self)
        finally:
            self.closed += 1


@pytest.fixture
def image_dir(tmp_path):
    d = tmp_path / "images"
    d.mkdir()
    return d


@pytest.fixture
def settings(image_dir, tmp_path):
    return Settings(
        IMAGE_DIR=str(image_dir),
        AVOID_JS_LIST=str(tmp_path / "jsblack.lst"),
        NEED_JS_LIST=str(tmp_path / "jswhite.lst"),
    )


@pytest.fixture
def page_png():
    """Captura verosímil: ruido 1200x1000 en PNG (mucho mayor que 8 KB)."""
    return encoded(noise_image(1200, 1000))
