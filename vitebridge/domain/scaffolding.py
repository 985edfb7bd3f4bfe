from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from vitebridge.utils.urls import join_url

REACT_REFRESH_PATH = "/@react-refresh"


def react_refresh_preamble(server: str) -> str:
    """Return the script that installs React Fast Refresh before any module runs."""
    url = join_url(server, REACT_REFRESH_PATH)
    return (
        '<script type="module">\n'
        f"  import RefreshRuntime from '{url}'\n"
        "  RefreshRuntime.injectIntoGlobalHook(window)\n"
        "  window.$RefreshReg$ = () => {}\n"
        "  window.$RefreshSig$ = () => (type) => type\n"
        "  window.__vite_plugin_react_preamble_installed__ = true\n"
        "</script>"
    )


class Scaffolding(str, Enum):
    """Templates offered by ``npm create vite`` to scaffold a project."""

    REACT = "react"
    REACT_TS = "react-ts"
    REACT_SWC = "react-swc"
    REACT_SWC_TS = "react-swc-ts"
    VANILLA = "vanilla"
    VANILLA_TS = "vanilla-ts"
    VUE = "vue"
    VUE_TS = "vue-ts"
    PREACT = "preact"
    PREACT_TS = "preact-ts"
    LIT = "lit"
    LIT_TS = "lit-ts"
    SVELTE = "svelte"
    SVELTE_TS = "svelte-ts"
    SOLID = "solid"
    SOLID_TS = "solid-ts"
    QWIK = "qwik"
    QWIK_TS = "qwik-ts"
    NONE = "none"

    @property
    def requires_preamble(self) -> bool:
        return FRAMEWORK_SUPPORT[self].requires_preamble

    def preamble(self, vite_url: str) -> str:
        """Preamble script for this framework, or ``""`` when none is needed."""
        render = FRAMEWORK_SUPPORT[self].preamble
        return render(vite_url) if render is not None else ""


@dataclass(frozen=True, slots=True)
class FrameworkSupport:
    requires_preamble: bool = False
    preamble: Callable[[str], str] | None = None


_REACT_SUPPORT = FrameworkSupport(requires_preamble=True, preamble=react_refresh_preamble)

FRAMEWORK_SUPPORT: dict[Scaffolding, FrameworkSupport] = {
    scaffolding: FrameworkSupport() for scaffolding in Scaffolding
}
FRAMEWORK_SUPPORT.update(
    {
        Scaffolding.REACT: _REACT_SUPPORT,
        Scaffolding.REACT_TS: _REACT_SUPPORT,
        Scaffolding.REACT_SWC: _REACT_SUPPORT,
        Scaffolding.REACT_SWC_TS: _REACT_SUPPORT,
    }
)
