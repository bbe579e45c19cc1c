from __future__ import annotations
import os
import tempfile
from pathlib import Path
from dataclasses import dataclass, fields, replace
from dotenv import load_dotenv

DEFAULT_WIDTH = 896
DEFAULT_HEIGHT = 768
DEFAULT_QUALITY = 100  # PNG
DEFAULT_MAX_PROCESSING_SEC = 32
DEFAULT_RELOAD_SEC = 60
DEFAULT_MIN_CACHE_SIZE = 8192
DEFAULT_PLATFORM = "Linux x86_64"
DEFAULT_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:89.0) Gecko/20100101 Firefox/89.0"
DEFAULT_AVOID_JS_LIST = "jsblack.lst"
DEFAULT_NEED_JS_LIST = "jswhite.lst"

# quality < 100 -> lossy
_IMAGE_TYPES = {False: "png", True: "jpeg"}


def _getenv_bool(name: str, default: bool) -> bool:
    v = os.getenv(name, str(default)).strip().lower()
    return v in ("1", "true", "yes", "y", "on")

def _getenv_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)).strip())
    except ValueError:
        return default

def _getenv_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)).strip().replace(",", "."))
    except ValueError:
        return default

def _abs_list_path(name: str, default: str) -> str:
    name = (name or "").strip() or f"./{default}"
    return str(Path(name).expanduser().resolve())

def _abs_dir(name: str) -> str:
    """Directorio absoluto; vacío se mantiene vacío (error al crear la imagen)."""
    name = (name or "").strip()
    if not name:
        return ""
    return str(Path(name).expanduser().resolve())


@dataclass(frozen=True)
class Settings:
    # imagen
    IMAGE_WIDTH: int = DEFAULT_WIDTH
    IMAGE_HEIGHT: int = DEFAULT_HEIGHT
    IMAGE_QUALITY: int = DEFAULT_QUALITY
    IMAGE_SCALE: float = 0.0

    # caché
    IMAGE_DIR: str = tempfile.gettempdir()
    IMAGE_AGE: int = 0
    OVERWRITE: bool = False
    ACCEPT_OTHER_TYPE: bool = False
    MIN_CACHE_SIZE: int = DEFAULT_MIN_CACHE_SIZE

    # navegador
    COOKIES: bool = False
    JAVASCRIPT: bool = False
    MOBILE: bool = False
    SCROLLBARS: bool = False
    CERT_ERRORS: bool = False
    PLATFORM: str = DEFAULT_PLATFORM
    USER_AGENT: str = DEFAULT_USER_AGENT
    SELENIUM_BROWSER: str = "chrome"
    MAX_PROCESSING_SEC: float = DEFAULT_MAX_PROCESSING_SEC

    # listas de hosts
    AVOID_JS_LIST: str = DEFAULT_AVOID_JS_LIST
    NEED_JS_LIST: str = DEFAULT_NEED_JS_LIST
    HOSTLIST_RELOAD_SEC: int = DEFAULT_RELOAD_SEC

    def __post_init__(self):
        """
        Cada campo se valida por separado: los valores fuera de rango
        se sustituyen por su valor por defecto, nunca se rechazan.
        """
        clamp = lambda name, value: object.__setattr__(self, name, value)

        clamp("IMAGE_WIDTH", max(0, int(self.IMAGE_WIDTH)))
        clamp("IMAGE_HEIGHT", max(0, int(self.IMAGE_HEIGHT)))
        q = int(self.IMAGE_QUALITY)
        clamp("IMAGE_QUALITY", q if 0 < q <= 100 else DEFAULT_QUALITY)
        clamp("IMAGE_SCALE", max(0.0, float(self.IMAGE_SCALE)))

        clamp("IMAGE_DIR", _abs_dir(self.IMAGE_DIR))
        clamp("IMAGE_AGE", max(0, int(self.IMAGE_AGE)))
        size = int(self.MIN_CACHE_SIZE)
        clamp("MIN_CACHE_SIZE", size if size > 0 else DEFAULT_MIN_CACHE_SIZE)

        clamp("PLATFORM", (self.PLATFORM or "").strip())
        clamp("USER_AGENT", (self.USER_AGENT or "").strip())
        browser = (self.SELENIUM_BROWSER or "").strip().lower()
        clamp("SELENIUM_BROWSER", browser if browser in ("chrome", "edge") else "chrome")
        secs = float(self.MAX_PROCESSING_SEC)
        clamp("MAX_PROCESSING_SEC", secs if secs > 0 else float(DEFAULT_MAX_PROCESSING_SEC))

        clamp("AVOID_JS_LIST", _abs_list_path(self.AVOID_JS_LIST, DEFAULT_AVOID_JS_LIST))
        clamp("NEED_JS_LIST", _abs_list_path(self.NEED_JS_LIST, DEFAULT_NEED_JS_LIST))
        reload_sec = int(self.HOSTLIST_RELOAD_SEC)
        clamp("HOSTLIST_RELOAD_SEC", reload_sec if reload_sec >= 0 else DEFAULT_RELOAD_SEC)

    @property
    def image_type(self) -> str:
        """'png' con calidad 100, 'jpeg' en otro caso."""
        return _IMAGE_TYPES[self.IMAGE_QUALITY < 100]

    @property
    def other_image_type(self) -> str:
        return _IMAGE_TYPES[not self.IMAGE_QUALITY < 100]

    def describe(self) -> str:
        """Una línea 'Nombre:\\tvalor' por opción."""
        lines = []
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, str):
                value = f"'{value}'"
            elif isinstance(value, float):
                value = f"{value:.2f}"
            lines.append(f"{f.name}:\t{value}\n")
        return "".join(lines)


def apply_options(current: Settings, **changes) -> Settings:
    """
    Aplica varias opciones de golpe. Si nada cambia devuelve `current`
    tal cual; si no, construye un Settings nuevo (validado campo a campo).
    """
    unknown = set(changes) - {f.name for f in fields(Settings)}
    if unknown:
        raise TypeError(f"opciones desconocidas: {sorted(unknown)}")
    if all(getattr(current, k) == v for k, v in changes.items()):
        return current
    candidate = replace(current, **changes)
    return current if candidate == current else candidate


def load_settings() -> Settings:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path)
    else:
        load_dotenv()

    return Settings(
        IMAGE_WIDTH=_getenv_int("PREVIEW_IMAGE_WIDTH", DEFAULT_WIDTH),
        IMAGE_HEIGHT=_getenv_int("PREVIEW_IMAGE_HEIGHT", DEFAULT_HEIGHT),
        IMAGE_QUALITY=_getenv_int("PREVIEW_IMAGE_QUALITY", DEFAULT_QUALITY),
        IMAGE_SCALE=_getenv_float("PREVIEW_IMAGE_SCALE", 0.0),
        IMAGE_DIR=os.getenv("PREVIEW_IMAGE_DIR", tempfile.gettempdir()),
        IMAGE_AGE=_getenv_int("PREVIEW_IMAGE_AGE", 0),
        OVERWRITE=_getenv_bool("PREVIEW_OVERWRITE", False),
        ACCEPT_OTHER_TYPE=_getenv_bool("PREVIEW_ACCEPT_OTHER_TYPE", False),
        MIN_CACHE_SIZE=_getenv_int("PREVIEW_MIN_CACHE_SIZE", DEFAULT_MIN_CACHE_SIZE),
        COOKIES=_getenv_bool("PREVIEW_COOKIES", False),
        JAVASCRIPT=_getenv_bool("PREVIEW_JAVASCRIPT", False),
        MOBILE=_getenv_bool("PREVIEW_MOBILE", False),
        SCROLLBARS=_getenv_bool("PREVIEW_SCROLLBARS", False),
        CERT_ERRORS=_getenv_bool("PREVIEW_CERT_ERRORS", False),
        PLATFORM=os.getenv("PREVIEW_PLATFORM", DEFAULT_PLATFORM),
        USER_AGENT=os.getenv("PREVIEW_USER_AGENT", DEFAULT_USER_AGENT),
        SELENIUM_BROWSER=os.getenv("SELENIUM_BROWSER", "chrome"),
        MAX_PROCESSING_SEC=_getenv_float("PREVIEW_MAX_PROCESSING_SEC", DEFAULT_MAX_PROCESSING_SEC),
        AVOID_JS_LIST=os.getenv("PREVIEW_AVOID_JS_LIST", f"./{DEFAULT_AVOID_JS_LIST}"),
        NEED_JS_LIST=os.getenv("PREVIEW_NEED_JS_LIST", f"./{DEFAULT_NEED_JS_LIST}"),
        HOSTLIST_RELOAD_SEC=_getenv_int("PREVIEW_HOSTLIST_RELOAD_SEC", DEFAULT_RELOAD_SEC),
    )
