# backend de renderizado: Chrome/Edge headless vía Selenium + CDP

from __future__ import annotations
import base64
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderRequest:
    """Todo lo que el navegador necesita para una captura."""
    url: str
    width: int
    height: int
    scale: float = 0.0
    mobile: bool = False
    cookies: bool = False
    ignore_cert_errors: bool = True
    hide_scrollbars: bool = True
    javascript: bool = False
    user_agent: str = ""
    platform: str = ""
    settle_delay: float = 1.0
    image_type: str = "png"
    quality: int = 100
    full_page: bool = True


@dataclass
class Capture:
    """
    Resultado de una captura. `data` puede venir con bytes aunque `error`
    esté puesto (p.ej. la página no terminó de cargar pero sí se capturó).
    """
    data: bytes = b""
    error: Optional[BaseException] = None
    notes: list = field(default_factory=list)


class ChromeSession:
    """Una sesión de navegador; `capture()` rellena un `Capture`."""

    def __init__(self, driver, page_load_timeout: float = 20.0):
        self.driver = driver
        self.page_load_timeout = page_load_timeout
        self._closed = False

    def _cdp(self, cmd: str, params: Optional[dict] = None) -> dict:
        return self.driver.execute_cdp_cmd(cmd, params or {})

    def _configure(self, req: RenderRequest) -> None:
        # valores 0 desactivan el override
        self._cdp("Emulation.clearDeviceMetricsOverride")
        self._cdp("Emulation.clearGeolocationOverride")
        self._cdp("Emulation.setDeviceMetricsOverride", {
            "width": int(req.width),
            "height": int(req.height),
            "deviceScaleFactor": float(req.scale),
            "mobile": bool(req.mobile),
        })
        self._cdp("Emulation.setDocumentCookieDisabled", {"disabled": not req.cookies})
        self._cdp("Emulation.setScrollbarsHidden", {"hidden": req.hide_scrollbars})
        self._cdp("Security.setIgnoreCertificateErrors", {"ignore": req.ignore_cert_errors})
        self._cdp("Emulation.setScriptExecutionDisabled", {"value": not req.javascript})
        if req.user_agent:
            ua = {"userAgent": req.user_agent}
            if req.platform:
                ua["platform"] = req.platform
            self._cdp("Emulation.setUserAgentOverride", ua)

    def _screenshot(self, req: RenderRequest) -> bytes:
        params = {"format": req.image_type, "captureBeyondViewport": req.full_page}
        if req.image_type == "jpeg":
            params["quality"] = int(req.quality)
        if req.full_page:
            metrics = self._cdp("Page.getLayoutMetrics")
            size = metrics.get("cssContentSize") or metrics.get("contentSize") or {}
            w = max(int(size.get("width", 0)), int(req.width))
            h = max(int(size.get("height", 0)), int(req.height))
            if w > 0 and h > 0:
                params["clip"] = {"x": 0, "y": 0, "width": w, "height": h, "scale": 1}
        result = self._cdp("Page.captureScreenshot", params)
        return base64.b64decode(result.get("data", ""))

    def capture(self, req: RenderRequest, out: Capture) -> None:
        from selenium.common.exceptions import TimeoutException

        self._configure(req)
        self.driver.set_page_load_timeout(self.page_load_timeout)
        try:
            self.driver.get(req.url)
        except TimeoutException as e:
            # la página no terminó de cargar: se captura lo que haya
            out.error = e
            out.notes.append("page load timeout")
            try:
                self.driver.execute_script("window.stop();")
            except Exception:
                pass

        time.sleep(max(0.0, req.settle_delay))
        out.data = self._screenshot(req)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.driver.quit()
        except Exception as e:
            logger.debug("[SELENIUM] quit: %r", e)

    # abort desde otro hilo (timeout): basta con cerrar el driver
    abort = close


class ChromeRenderer:
    """Crea sesiones headless de Chrome (o Edge) con webdriver-manager."""

    def __init__(self, browser: str = "chrome", headless: bool = True,
                 page_load_timeout: float = 20.0):
        self.browser = (browser or "chrome").lower()
        self.headless = headless
        self.page_load_timeout = page_load_timeout

    def _args(self, opts) -> None:
        if self.headless:
            opts.add_argument("--headless=new")
        opts.add_argument("--disable-gpu")
        opts.add_argument("--no-sandbox")
        opts.add_argument("--disable-dev-shm-usage")
        opts.add_argument("--hide-scrollbars")
        opts.add_argument("--disable-blink-features=AutomationControlled")
        opts.add_experimental_option("excludeSwitches", ["enable-automation"])

    def _start_driver(self):
        from selenium import webdriver
        from selenium.webdriver.chrome.service import Service as ChromeService
        from selenium.webdriver.edge.service import Service as EdgeService
        from selenium.webdriver.chrome.options import Options as ChromeOptions
        from selenium.webdriver.edge.options import Options as EdgeOptions
        from webdriver_manager.chrome import ChromeDriverManager
        from webdriver_manager.microsoft import EdgeChromiumDriverManager

        if self.browser == "edge":
            opts = EdgeOptions()
            self._args(opts)
            return webdriver.Edge(service=EdgeService(EdgeChromiumDriverManager().install()), options=opts)

        opts = ChromeOptions()
        self._args(opts)
        return webdriver.Chrome(service=ChromeService(ChromeDriverManager().install()), options=opts)

    @contextmanager
    def session(self) -> Iterator[ChromeSession]:
        """El driver se cierra siempre al salir, con o sin error."""
        driver = self._start_driver()
        session = ChromeSession(driver, self.page_load_timeout)
        try:
            yield session
        finally:
            session.close()
