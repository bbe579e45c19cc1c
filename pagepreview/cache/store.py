from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from pagepreview.errors import NoDataError, WriteError

logger = logging.getLogger(__name__)

FILE_MODE = 0o600


def ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p


def _remove_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        pass


def write_file(path: Path, data: bytes = b"", chunks: Optional[Iterable[bytes]] = None) -> int:
    """
    Escribe `data` (o, si está vacío, los trozos de `chunks`) en `path`,
    truncando lo que hubiera. Ante cualquier error borra el fichero parcial.
    Devuelve los bytes escritos.
    """
    if not str(path) or path.name == "":
        raise WriteError("empty file name argument")
    if not data and chunks is None:
        raise NoDataError(f"no image data to write '{path}'")

    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    except OSError as e:
        raise WriteError(f"cannot open '{path}': {e}") from e

    def _write(f, buf: bytes) -> int:
        try:
            f.write(buf)
        except OSError as e:
            raise WriteError(f"cannot write '{path}': {e}") from e
        return len(buf)

    written = 0
    try:
        with os.fdopen(fd, "wb") as f:
            if data:
                written = _write(f, data)
            else:
                # los errores de la fuente (p.ej. la red) se propagan tal cual
                for chunk in chunks:
                    if chunk:
                        written += _write(f, chunk)
    except Exception:
        _remove_quietly(path)
        raise

    if written == 0:
        _remove_quietly(path)
        raise NoDataError(f"no image data to write '{path}'")

    logger.debug("[CACHE] Guardado %s (%d bytes)", path, written)
    return written
