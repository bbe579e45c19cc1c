# errores del pipeline de previsualización

from __future__ import annotations

LIB_NAME = "ScreenShot"


class PreviewError(Exception):
    """Error base; el mensaje lleva el prefijo de la librería."""
    def __init__(self, message: str):
        super().__init__(f"{LIB_NAME}: {message}")


class ConfigurationError(PreviewError):
    """IMAGE_DIR vacío u otra configuración inutilizable."""


class ExcludedTypeError(PreviewError):
    def __init__(self, ext: str):
        super().__init__(f"excluded filename extension '{ext}'")
        self.ext = ext


class NetworkError(PreviewError):
    """Fallo del GET directo o de conexión con el navegador."""


class RenderTimeout(PreviewError, TimeoutError):
    def __init__(self, url: str, seconds: float):
        super().__init__(f"timeout after {seconds:g}s rendering '{url}'")
        self.url = url
        self.seconds = seconds


class NoDataError(PreviewError):
    """Resultado vacío o demasiado pequeño para ser una imagen válida."""


class WriteError(PreviewError):
    pass


class BackendFault(PreviewError):
    """El navegador terminó de forma anómala durante la captura."""
