# ¿sirve el fichero ya cacheado?

from __future__ import annotations
import logging
import os
import stat
import time
from pathlib import Path
from typing import Optional

from pagepreview.config import Settings
from pagepreview.cache.naming import cache_name

logger = logging.getLogger(__name__)


def is_usable(path: Path, settings: Settings, now: Optional[float] = None) -> bool:
    """
    Decide si el fichero en `path` se puede devolver sin volver a generarlo.

    - IMAGE_AGE == 0 desactiva la caché por completo (siempre se regenera).
    - Inexistente o directorio: no.
    - Si no es un fichero regular (fifo, dispositivo...) no se puede juzgar:
      se da por bueno para no regenerar en bucle.
    - Menor que MIN_CACHE_SIZE: basura de una captura fallida, no.
    - OVERWRITE activo: no.
    - En otro caso, vale mientras mtime + IMAGE_AGE no haya pasado.
    """
    if settings.IMAGE_AGE == 0:
        return False

    try:
        st = os.stat(path)
    except OSError:
        return False
    if stat.S_ISDIR(st.st_mode):
        return False
    if not stat.S_ISREG(st.st_mode):
        logger.warning("[CACHE] %s no es un fichero regular; se acepta tal cual", path)
        return True

    if st.st_size < settings.MIN_CACHE_SIZE:
        return False
    if settings.OVERWRITE:
        return False

    if settings.IMAGE_AGE > 0:
        now = time.time() if now is None else now
        return now < st.st_mtime + settings.IMAGE_AGE
    return True


def find_cached(url: str, settings: Settings, now: Optional[float] = None) -> Optional[str]:
    """
    Nombre (relativo a IMAGE_DIR) de una imagen cacheada utilizable para `url`,
    o None. Con ACCEPT_OTHER_TYPE también vale el otro formato (png/jpeg), así
    que el nombre devuelto puede no coincidir con la calidad configurada.
    """
    base = Path(settings.IMAGE_DIR)
    name = cache_name(url, settings)
    if is_usable(base / name, settings, now):
        return name

    if settings.ACCEPT_OTHER_TYPE:
        other = cache_name(url, settings, settings.other_image_type)
        if is_usable(base / other, settings, now):
            logger.debug("[CACHE] Aceptado formato alternativo: %s", other)
            return other
    return None
