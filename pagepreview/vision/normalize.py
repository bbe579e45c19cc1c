from __future__ import annotations
import logging
from typing import Optional

import cv2
import numpy as np

from pagepreview.config import Settings

logger = logging.getLogger(__name__)

# por debajo de esto la imagen recodificada se considera rota
MIN_IMAGE_BYTES = 4096

_SIGNATURES = {
    "png": b"\x89PNG\r\n\x1a\n",
    "jpeg": b"\xff\xd8\xff",
}


def _decode(buf: bytes) -> Optional[np.ndarray]:
    arr = np.frombuffer(buf, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_UNCHANGED)
    if img is None or img.size == 0:
        return None
    return img


def decode_tolerant(raw: bytes, image_type: str) -> tuple[Optional[np.ndarray], bytes]:
    """
    Decodifica `raw` como `image_type` ('png' | 'jpeg'), descartando bytes
    iniciales hasta que la decodificación funcione.
    Devuelve (imagen, bytes usados) o (None, b"") si se agota el buffer.
    """
    raw = bytes(raw)
    sig = _SIGNATURES.get(image_type)
    if sig is None:
        for start in range(len(raw)):
            img = _decode(raw[start:])
            if img is not None:
                return img, raw[start:]
        return None, b""

    # los offsets sin la firma del formato no pueden decodificar: se saltan
    start = raw.find(sig)
    while start != -1:
        img = _decode(raw[start:])
        if img is not None:
            return img, raw[start:]
        start = raw.find(sig, start + 1)
    return None, b""


def crop_view(img: np.ndarray, width: int, height: int) -> np.ndarray:
    """Sub-región (0,0)-(width,height): vista del array, sin copiar."""
    return img[:height, :width]


def fit_to_bounds(img: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Ajusta `img` a width x height (0 = sin límite en esa dimensión):
      - más ancha y más alta → se escala a width x height exactos (bilineal)
      - solo más alta → se corta por abajo
      - solo más ancha → se corta por la derecha
      - más pequeña en alguna dimensión → se amplía (bilineal)
    """
    h, w = img.shape[:2]
    x_bigger = width > 0 and w > width
    y_bigger = height > 0 and h > height

    if x_bigger and y_bigger:
        return cv2.resize(img, (width, height), interpolation=cv2.INTER_LINEAR)
    if y_bigger:
        return crop_view(img, w, height)
    if x_bigger:
        return crop_view(img, width, h)

    tw = width if width > 0 else w
    th = height if height > 0 else h
    if (tw, th) != (w, h):
        return cv2.resize(img, (tw, th), interpolation=cv2.INTER_LINEAR)
    return img


def encode(img: np.ndarray, image_type: str, quality: int = 100) -> bytes:
    if image_type == "jpeg":
        if img.ndim == 3 and img.shape[2] == 4:
            img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
        q = min(100, max(1, int(quality)))
        ok, buf = cv2.imencode(".jpg", img, [int(cv2.IMWRITE_JPEG_QUALITY), q])
    else:
        ok, buf = cv2.imencode(".png", img)
    if not ok:
        return b""
    return buf.tobytes()


def cleanup_output(raw: bytes, settings: Settings) -> bytes:
    """
    Limpia la salida cruda del navegador y la deja con el tamaño y formato
    configurados. Si el resultado es sospechosamente pequeño devuelve `raw`
    sin tocar; si no hay nada decodificable devuelve b"".
    """
    if not raw:
        return raw

    img, _ = decode_tolerant(raw, settings.image_type)
    if img is None:
        logger.debug("[IMG] No se pudo decodificar (%d bytes)", len(raw))
        return b""

    img = fit_to_bounds(img, settings.IMAGE_WIDTH, settings.IMAGE_HEIGHT)
    out = encode(img, settings.image_type, settings.IMAGE_QUALITY)
    if len(out) > MIN_IMAGE_BYTES:
        return out

    logger.debug("[IMG] Recodificado demasiado pequeño (%d bytes); se usan los datos originales", len(out))
    return raw
