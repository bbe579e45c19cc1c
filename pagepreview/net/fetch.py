# descarga directa de URLs que ya son imágenes

from __future__ import annotations
import logging
from pathlib import Path

import requests

from pagepreview.config import Settings
from pagepreview.cache.store import write_file
from pagepreview.errors import NetworkError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _headers(settings: Settings) -> dict:
    headers = {"Accept": "image/*,*/*;q=0.8"}
    if settings.USER_AGENT:
        headers["User-Agent"] = settings.USER_AGENT
    return headers


def download_image(url: str, path: Path, settings: Settings) -> int:
    """
    GET de `url` y volcado del cuerpo (en streaming) a `path`.
    Devuelve los bytes escritos. El cuerpo de la respuesta se cierra siempre.
    """
    try:
        with requests.get(url, headers=_headers(settings), stream=True,
                          timeout=settings.MAX_PROCESSING_SEC) as resp:
            if not resp.ok:
                raise NetworkError(f"HTTP {resp.status_code} {resp.reason} for '{url}'")
            written = write_file(path, chunks=resp.iter_content(chunk_size=CHUNK_SIZE))
    except requests.RequestException as e:
        logger.warning("[FETCH][ERR] %s: %r", url, e)
        raise NetworkError(f"cannot fetch '{url}': {e}") from e

    logger.debug("[FETCH] %s -> %s (%d bytes)", url, path.name, written)
    return written
