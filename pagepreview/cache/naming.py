from __future__ import annotations
import re
from pathlib import Path

from pagepreview.config import Settings

_NON_ALNUM_RE = re.compile(r"\W+", re.ASCII)
_EXT_RE = re.compile(r"(\.\w+)([?#].*)?$", re.ASCII)


def sanitize(url: str) -> str:
    """Quita todo lo que no sea [A-Za-z0-9_]; sirve como nombre de fichero."""
    return _NON_ALNUM_RE.sub("", url or "")

def file_ext(url: str) -> str:
    """Extensión ('.png') antes de '?' o '#'; '' si no hay."""
    m = _EXT_RE.search(url or "")
    return m.group(1) if m else ""

def cache_name(url: str, settings: Settings, image_type: str | None = None) -> str:
    return f"{sanitize(url)}.{image_type or settings.image_type}"

def cache_path(url: str, settings: Settings, image_type: str | None = None) -> Path:
    """
    Ruta completa del fichero de `url` en IMAGE_DIR.
    No comprueba si existe.
    """
    return Path(settings.IMAGE_DIR) / cache_name(url, settings, image_type)
