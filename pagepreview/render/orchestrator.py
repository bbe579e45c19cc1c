# decide cómo renderizar cada URL y ejecuta la captura con plazo

from __future__ import annotations
import logging
import threading
import time
from urllib.parse import urlparse

from pagepreview.config import Settings
from pagepreview.errors import BackendFault, NetworkError, NoDataError, PreviewError, RenderTimeout
from pagepreview.render.chrome import Capture, RenderRequest
from pagepreview.state import AVOID_JS, NEED_JS, PreviewState, query
from pagepreview.vision.normalize import MIN_IMAGE_BYTES, cleanup_output

logger = logging.getLogger(__name__)

SETTLE_DELAY_SEC = 1.0
RENDER_SCHEMES = ("http", "https", "file")
# espera máxima al hilo tras abortar la sesión
ABORT_GRACE_SEC = 2.0


def use_javascript(url: str, settings: Settings, state: PreviewState) -> bool:
    """
    JavaScript global activo → se desactiva si el host está en la lista AVOID_JS.
    JavaScript global inactivo → se activa si el host está en NEED_JS.
    """
    if settings.JAVASCRIPT:
        return not query(url, AVOID_JS, state)
    return query(url, NEED_JS, state)


def settle_delay(javascript: bool) -> float:
    """Espera tras navegar; el doble si hay scripts."""
    return SETTLE_DELAY_SEC * (2 if javascript else 1)


def build_request(url: str, settings: Settings, state: PreviewState) -> RenderRequest:
    js = use_javascript(url, settings, state)
    return RenderRequest(
        url=url,
        width=settings.IMAGE_WIDTH,
        height=settings.IMAGE_HEIGHT,
        scale=settings.IMAGE_SCALE,
        mobile=settings.MOBILE,
        cookies=settings.COOKIES,
        ignore_cert_errors=not settings.CERT_ERRORS,
        hide_scrollbars=not settings.SCROLLBARS,
        javascript=js,
        user_agent=settings.USER_AGENT,
        platform=settings.PLATFORM,
        settle_delay=settle_delay(js),
        image_type=settings.image_type,
        quality=settings.IMAGE_QUALITY,
        full_page=True,
    )


def _render_worker(renderer, request: RenderRequest, out: Capture,
                   sessions: list, cancelled: threading.Event) -> None:
    # arranque y captura pueden romper de cualquier forma; se guarda el error para el hilo principal
    try:
        with renderer.session() as session:
            sessions.append(session)
            if cancelled.is_set():
                return
            session.capture(request, out)
    except Exception as e:
        out.error = e


def generate_image(url: str, settings: Settings, state: PreviewState,
                   renderer, deadline: float) -> bytes:
    """
    Renderiza `url` y devuelve la imagen ya normalizada.

    `renderer.session()` es un context manager que entrega una sesión con
    `capture(request, out)` y `abort()`. `deadline` es un instante de
    time.monotonic(); el plazo cubre arranque del navegador y captura. Al
    vencer se aborta la sesión (si llegó a arrancar) y se lanza RenderTimeout.
    """
    scheme = urlparse(url).scheme.lower()
    if scheme not in RENDER_SCHEMES:
        raise NetworkError(f"unsupported URL scheme '{scheme}' for '{url}'")

    request = build_request(url, settings, state)
    out = Capture()
    sessions = []
    cancelled = threading.Event()

    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise RenderTimeout(url, settings.MAX_PROCESSING_SEC)

    worker = threading.Thread(target=_render_worker,
                              args=(renderer, request, out, sessions, cancelled), daemon=True)
    worker.start()
    worker.join(remaining)
    if worker.is_alive():
        # cancelled antes de mirar sessions: o el hilo ve la cancelación o aquí se ve la sesión
        cancelled.set()
        logger.warning("[RENDER] Plazo agotado (%ss) para %s; abortando", settings.MAX_PROCESSING_SEC, url)
        if sessions:
            sessions[0].abort()
            worker.join(ABORT_GRACE_SEC)
        raise RenderTimeout(url, settings.MAX_PROCESSING_SEC)

    if not sessions and out.error is not None:
        raise NetworkError(f"cannot start browser for '{url}': {out.error}") from out.error

    if out.notes:
        logger.info("[RENDER] %s: %s", url, "; ".join(out.notes))

    fault = None
    if out.error is not None:
        logger.warning("[RENDER] %s %s q=%d: %r", url, settings.image_type, settings.IMAGE_QUALITY, out.error)
        if isinstance(out.error, PreviewError):
            fault = out.error
        else:
            fault = BackendFault(f"error reading '{url}'")
            fault.__cause__ = out.error

    image = cleanup_output(out.data, settings) if out.data else b""
    if len(image) > MIN_IMAGE_BYTES:
        # resultado plausible: el error (si lo hubo) se descarta
        return image

    if fault is not None:
        raise fault
    raise NoDataError(f"no data received for '{url}'")
