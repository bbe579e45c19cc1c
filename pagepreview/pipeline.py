"""
Fetch/write pipeline: URL → imagen cacheada en IMAGE_DIR.

    create_image(url, settings) -> (nombre, error)

Nunca lanza excepciones: en caso de fallo devuelve ("", error).
"""

from __future__ import annotations
import logging
import time
from pathlib import Path
from typing import Optional, Tuple

from pagepreview.config import Settings, apply_options, load_settings
from pagepreview.cache.naming import cache_name, file_ext, sanitize
from pagepreview.cache.policy import find_cached, is_usable
from pagepreview.cache.store import ensure_dir, write_file
from pagepreview.errors import (ConfigurationError, ExcludedTypeError, NoDataError,
                                PreviewError, RenderTimeout, WriteError)
from pagepreview.net.fetch import download_image
from pagepreview.render.chrome import ChromeRenderer
from pagepreview.render.orchestrator import generate_image
from pagepreview.state import PreviewState

logger = logging.getLogger(__name__)

# tipos que no tiene sentido previsualizar
EXCLUDED_EXTS = frozenset({
    ".amr", ".arj", ".avi", ".azw3",
    ".bak", ".bibtex", ".bz2",
    ".cfg", ".com", ".conf", ".csv",
    ".db", ".deb", ".doc", ".docx", ".dia",
    ".epub", ".exe", ".flv", ".gz",
    ".ics", ".iso", ".jar", ".json",
    ".md", ".mobi", ".mp3", ".mp4", ".mpeg",
    ".odf", ".odg", ".odp", ".ods", ".odt", ".otf", ".oxt",
    ".pas", ".pdf", ".ppd", ".ppt", ".pptx",
    ".rip", ".rpm", ".spk", ".sxg", ".sxw",
    ".ttf", ".vbox", ".vmdk", ".vcs", ".wav",
    ".xls", ".xpi", ".xsl", ".zip",
})

# se descargan tal cual, sin renderizar
IMAGE_EXTS = frozenset({".gif", ".jpeg", ".jpg", ".png", ".svg"})


def _create_image(url: str, settings: Settings, state: PreviewState, renderer) -> str:
    if not settings.IMAGE_DIR:
        raise ConfigurationError("empty image directory")

    # 1) ¿ya hay imagen? (sin tráfico de red)
    cached = find_cached(url, settings)
    if cached:
        logger.debug("[CACHE] Hit %s", cached)
        return cached

    # 2) clasificar por extensión
    ext = file_ext(url).lower()
    if ext in EXCLUDED_EXTS:
        raise ExcludedTypeError(ext)

    try:
        directory = ensure_dir(Path(settings.IMAGE_DIR))
    except OSError as e:
        raise WriteError(f"cannot create image directory '{settings.IMAGE_DIR}': {e}") from e

    if ext in IMAGE_EXTS:
        name = sanitize(url) + ext
        path = directory / name
        if is_usable(path, settings):
            return name
        download_image(url, path, settings)
        return name

    # 3) renderizar con plazo
    deadline = time.monotonic() + settings.MAX_PROCESSING_SEC
    data = generate_image(url, settings, state, renderer, deadline)
    if time.monotonic() > deadline:
        raise RenderTimeout(url, settings.MAX_PROCESSING_SEC)

    name = cache_name(url, settings)
    if not data:
        raise NoDataError(f"no data received for '{name}'")

    # 4) guardar
    write_file(directory / name, data)
    return name


def create_image(url: str, settings: Optional[Settings] = None,
                 state: Optional[PreviewState] = None,
                 renderer=None) -> Tuple[str, Optional[PreviewError]]:
    """
    Genera (o reutiliza) la imagen de `url` en IMAGE_DIR.
    Devuelve (nombre relativo a IMAGE_DIR, None) o ("", error).
    """
    settings = settings or load_settings()
    state = state or PreviewState.from_settings(settings)
    renderer = renderer or ChromeRenderer(settings.SELENIUM_BROWSER)
    try:
        return _create_image(url, settings, state, renderer), None
    except PreviewError as e:
        logger.info("[PREVIEW] %s", e)
        return "", e
    except Exception as e:
        logger.exception("[PREVIEW][ERR] %s", url)
        err = PreviewError(f"error processing '{url}': {e}")
        err.__cause__ = e
        return "", err


class Previewer:
    """
    Mantiene configuración, listas de hosts y navegador entre llamadas,
    para que las listas no se relean en cada URL.
    """
    def __init__(self, settings: Optional[Settings] = None, renderer=None):
        self.settings = settings or load_settings()
        self.state = PreviewState.from_settings(self.settings)
        self.renderer = renderer or ChromeRenderer(self.settings.SELENIUM_BROWSER)

    def apply(self, **changes) -> Settings:
        """Cambia opciones; las listas de hosts se recrean solo si cambian sus ficheros."""
        new = apply_options(self.settings, **changes)
        if new is self.settings:
            return new
        lists_changed = (
            new.AVOID_JS_LIST != self.settings.AVOID_JS_LIST
            or new.NEED_JS_LIST != self.settings.NEED_JS_LIST
            or new.HOSTLIST_RELOAD_SEC != self.settings.HOSTLIST_RELOAD_SEC
        )
        if isinstance(self.renderer, ChromeRenderer) and new.SELENIUM_BROWSER != self.renderer.browser:
            self.renderer = ChromeRenderer(new.SELENIUM_BROWSER)
        self.settings = new
        if lists_changed:
            self.state = PreviewState.from_settings(new)
        return new

    def create_image(self, url: str) -> Tuple[str, Optional[PreviewError]]:
        return create_image(url, self.settings, self.state, self.renderer)
