# estado mutable entre llamadas (listas de hosts)

from __future__ import annotations
from dataclasses import dataclass

from pagepreview.config import Settings
from pagepreview.hosts.hostlist import HostList, hostname_of

AVOID_JS = "avoid_js"
NEED_JS = "need_js"


@dataclass
class PreviewState:
    """
    Estado mutable de la sesión:
    - avoid_js: hosts donde se desactiva JavaScript aunque esté activo
    - need_js: hosts donde se activa JavaScript aunque esté desactivado
    """
    avoid_js: HostList
    need_js: HostList

    @classmethod
    def from_settings(cls, settings: Settings) -> "PreviewState":
        return cls(
            avoid_js=HostList(settings.AVOID_JS_LIST, settings.HOSTLIST_RELOAD_SEC),
            need_js=HostList(settings.NEED_JS_LIST, settings.HOSTLIST_RELOAD_SEC),
        )

    def list_for(self, policy: str):
        return {AVOID_JS: self.avoid_js, NEED_JS: self.need_js}.get(policy)


def query(url: str, policy: str, state: PreviewState) -> bool:
    """¿Está el host de `url` en la lista `policy`? False ante cualquier duda."""
    hosts = state.list_for(policy)
    if hosts is None:
        return False
    host = hostname_of(url)
    if not host:
        return False
    return hosts.match(host)
