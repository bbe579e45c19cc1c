# listas de dominios (sufijos) que fuerzan o evitan JavaScript

from __future__ import annotations
import logging
import time
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def parse_lines(text: str) -> Tuple[str, ...]:
    """
    Minúsculas + strip; descarta líneas vacías y comentarios '#'.
    Conserva el orden del fichero (no se ordena).
    """
    entries = (line.strip().lower() for line in text.splitlines())
    return tuple(e for e in entries if e and not e.startswith("#"))


def hostname_of(url: str) -> str:
    """
    Devuelve el host de `url` en minúsculas. Si no hay host (p.ej. 'example.com'
    sin esquema) usa el path. Cadena vacía si no se puede interpretar.
    """
    url = (url or "").strip()
    if not url:
        return ""
    try:
        p = urlparse(url)
        host = p.hostname or p.path
    except ValueError:
        return ""
    return (host or "").strip().lower()


class HostList:
    """
    Lista de sufijos de dominio cargada desde `path`.

    Se recarga cuando está vacía o cuando ha pasado el plazo de recarga
    (`reload_sec`). Con `reload_sec == 0` cada consulta puede recargar.
    La lista se sustituye entera en cada recarga; si el fichero no se puede
    leer se conserva la anterior.
    """
    def __init__(self, path: str, reload_sec: int = 60):
        self.path = Path(path)
        self.reload_sec = max(0, int(reload_sec))
        self.entries: Tuple[str, ...] = ()
        self.next_reload: float = 0.0

    def _due(self, now: float) -> bool:
        if not self.entries:
            return True
        if self.reload_sec == 0:
            return True
        return now >= self.next_reload

    def reload(self, now: Optional[float] = None) -> bool:
        """Relee el fichero. Devuelve False (y mantiene la lista) si falla la lectura."""
        now = time.time() if now is None else now
        if self.reload_sec > 0:
            self.next_reload = now + self.reload_sec
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("[HOSTS] No se pudo leer %s: %s", self.path, e)
            return False

        entries = parse_lines(text)
        if entries != self.entries:
            logger.info("[HOSTS] %s: %d entradas", self.path.name, len(entries))
        self.entries = entries
        return True

    def match(self, hostname: str, now: Optional[float] = None) -> bool:
        """True si `hostname` termina en alguna entrada (sin tener en cuenta mayúsculas)."""
        hostname = (hostname or "").strip().lower()
        if not hostname:
            return False
        now = time.time() if now is None else now
        if self._due(now):
            self.reload(now)
        return any(hostname.endswith(e) for e in self.entries)

    def __len__(self) -> int:
        return len(self.entries)
