#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# archivo principal: genera la previsualización de una URL

from __future__ import annotations
import argparse
import logging
import sys

from pagepreview.config import apply_options, load_settings
from pagepreview.pipeline import create_image


def _parser(s) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Captura de pantalla de una URL, cacheada en disco.")
    p.add_argument("-ba", "--url", default="", help="(obligatorio) URL a capturar")
    p.add_argument("-bc", "--cookies", action=argparse.BooleanOptionalAction, default=s.COOKIES,
                   help="permitir cookies")
    p.add_argument("-be", "--cert-errors", action=argparse.BooleanOptionalAction, default=s.CERT_ERRORS,
                   help="saltar sitios con errores de certificado")
    p.add_argument("-bm", "--mobile", action=argparse.BooleanOptionalAction, default=s.MOBILE,
                   help="emular un dispositivo móvil")
    p.add_argument("-bs", "--scrollbars", action=argparse.BooleanOptionalAction, default=s.SCROLLBARS,
                   help="mostrar barras de desplazamiento")
    p.add_argument("-bb", "--browser", choices=("chrome", "edge"), default=s.SELENIUM_BROWSER,
                   help="navegador a usar")
    p.add_argument("-bt", "--max-seconds", type=float, default=s.MAX_PROCESSING_SEC,
                   help="tiempo máximo (s) de renderizado")
    p.add_argument("-io", "--overwrite", action=argparse.BooleanOptionalAction, default=s.OVERWRITE,
                   help="regenerar aunque exista una imagen válida")
    p.add_argument("-it", "--accept-other-type", action=argparse.BooleanOptionalAction,
                   default=s.ACCEPT_OTHER_TYPE, help="aceptar una imagen cacheada del otro formato")
    p.add_argument("-im", "--min-cache-size", type=int, default=s.MIN_CACHE_SIZE,
                   help="tamaño mínimo (bytes) de una imagen cacheada")
    p.add_argument("-id", "--image-dir", default=s.IMAGE_DIR, help="directorio de las imágenes")
    p.add_argument("-ia", "--image-age", type=int, default=s.IMAGE_AGE,
                   help="edad máxima (s) de una imagen cacheada; 0 = regenerar siempre")
    p.add_argument("-ih", "--height", type=int, default=s.IMAGE_HEIGHT, help="alto máximo")
    p.add_argument("-iq", "--quality", type=int, default=s.IMAGE_QUALITY,
                   help="calidad 1..100 (100 = png)")
    p.add_argument("-is", "--scale", type=float, default=s.IMAGE_SCALE, help="factor de escala del navegador")
    p.add_argument("-iw", "--width", type=int, default=s.IMAGE_WIDTH, help="ancho máximo")
    p.add_argument("-js", "--javascript", action=argparse.BooleanOptionalAction, default=s.JAVASCRIPT,
                   help="permitir JavaScript")
    p.add_argument("-jp", "--platform", default=s.PLATFORM, help="valor de navigator.platform")
    p.add_argument("-ju", "--user-agent", default=s.USER_AGENT, help="User-Agent")
    p.add_argument("-jw", "--need-js", default=s.NEED_JS_LIST, help="lista de hosts que necesitan JavaScript")
    p.add_argument("-jb", "--avoid-js", default=s.AVOID_JS_LIST, help="lista de hosts sin JavaScript")
    p.add_argument("-jr", "--reload-sec", type=int, default=s.HOSTLIST_RELOAD_SEC,
                   help="segundos entre relecturas de las listas; 0 = siempre")
    p.add_argument("-v", "--verbose", action="store_true", help="mostrar la configuración y más log")
    return p


def main(argv=None) -> int:
    settings = load_settings()
    parser = _parser(settings)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for name in ("urllib3", "selenium", "WDM"):
        logging.getLogger(name).setLevel(logging.WARNING)

    settings = apply_options(
        settings,
        COOKIES=args.cookies,
        CERT_ERRORS=args.cert_errors,
        MOBILE=args.mobile,
        SCROLLBARS=args.scrollbars,
        IMAGE_DIR=args.image_dir,
        IMAGE_AGE=args.image_age,
        IMAGE_HEIGHT=args.height,
        IMAGE_QUALITY=args.quality,
        IMAGE_SCALE=args.scale,
        IMAGE_WIDTH=args.width,
        JAVASCRIPT=args.javascript,
        PLATFORM=args.platform,
        USER_AGENT=args.user_agent,
        NEED_JS_LIST=args.need_js,
        AVOID_JS_LIST=args.avoid_js,
        HOSTLIST_RELOAD_SEC=args.reload_sec,
        SELENIUM_BROWSER=args.browser,
        MAX_PROCESSING_SEC=args.max_seconds,
        OVERWRITE=args.overwrite,
        ACCEPT_OTHER_TYPE=args.accept_other_type,
        MIN_CACHE_SIZE=args.min_cache_size,
    )
    if args.verbose:
        print(settings.describe(), file=sys.stderr)

    if not args.url:
        print("\nmissing URL - terminating ...", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1

    name, err = create_image(args.url, settings)
    if err is not None:
        print(f"\nerror: {err}", file=sys.stderr)
        return 1

    print(f"generated URL screenshot: {name}")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
