from dataclasses import dataclass, field, replace
from typing import Dict, Optional

CANDIDATE_CLASS = "__bridge_hint_candidate"
SELECTED_CLASS = "__bridge_hint_selected"


@dataclass(frozen=True)
class HintTheme:
    name: str
    candidate: Dict[str, str] = field(default_factory=dict)
    selected: Dict[str, str] = field(default_factory=dict)

    def classes(self) -> Dict[str, Dict[str, str]]:
        return {CANDIDATE_CLASS: dict(self.candidate), SELECTED_CLASS: dict(self.selected)}


LIGHT = HintTheme(
    name="light",
    candidate={"background": "#fff3b0 !important", "color": "#202020 !important"},
    selected={
        "background": "#0078d7 !important",
        "color": "#ffffff !important",
        "outline": "2px solid #0078d7 !important",
    },
)

DARK = HintTheme(
    name="dark",
    candidate={"background": "#5a4a00 !important", "color": "#e6e6eb !important"},
    selected={
        "background": "#007acc !important",
        "color": "#ffffff !important",
        "outline": "2px solid #33aaff !important",
    },
)

THEMES = {t.name: t for t in (LIGHT, DARK)}


def resolve_theme(
    name: str,
    candidate: Optional[Dict[str, str]] = None,
    selected: Optional[Dict[str, str]] = None,
) -> HintTheme:
    """Pick a named theme (unknown names fall back to dark) and apply overrides."""
    theme = THEMES.get((name or "").lower(), DARK)
    if candidate:
        theme = replace(theme, candidate={**theme.candidate, **candidate})
    if selected:
        theme = replace(theme, selected={**theme.selected, **selected})
    return theme
