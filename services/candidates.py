import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

LABEL_SEPARATOR = " / "

# C0/C1 controls except tab, which counts as plain whitespace
_CTRL = r"\x00-\x08\x0a-\x1f\x7f-\x9f"
_EDGES = re.compile(rf"^[\s{_CTRL}]+|[\s{_CTRL}]+$")
_CTRL_RUN = re.compile(rf"[\s{_CTRL}]*[{_CTRL}][\s{_CTRL}]*")
_SPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class Candidate:
    label: str
    id: int
    target: str


def format_label(raw: Any) -> str:
    text = raw if isinstance(raw, str) else ("" if raw is None else str(raw))
    text = _EDGES.sub("", text)
    text = _CTRL_RUN.sub(LABEL_SEPARATOR, text)
    return _SPACE_RUN.sub(" ", text)


def _entry_id(key: Any) -> int:
    if isinstance(key, bool):
        raise ValueError(key)
    if isinstance(key, int):
        return key
    if isinstance(key, float) and key.is_integer():
        return int(key)
    return int(str(key).strip())


def prepare(raw_entries: Mapping[Any, Any]) -> List[Candidate]:
    """Turn the page's ``{id: [text, target]}`` answer into sorted candidates.

    JSON only has string keys, so ids may arrive as ``"3"``.
    """
    candidates: List[Candidate] = []
    for key, value in (raw_entries or {}).items():
        try:
            cid = _entry_id(key)
        except (TypeError, ValueError):
            logging.debug("candidate_skipped reason=bad_id key=%r", key)
            continue
        if isinstance(value, (list, tuple)):
            text = value[0] if len(value) > 0 else ""
            target = value[1] if len(value) > 1 else ""
        else:
            text, target = value, ""
        candidates.append(Candidate(label=format_label(text), id=cid, target="" if target is None else str(target)))
    candidates.sort(key=lambda c: c.id)
    return candidates


def build_lookup(candidates: Iterable[Candidate]) -> Dict[str, Candidate]:
    # later entries overwrite earlier ones sharing a label
    return {c.label: c for c in candidates}


def match_labels(labels: Iterable[str], text: str) -> List[str]:
    """Labels containing every whitespace separated token of ``text``, ignoring case."""
    tokens = [t.casefold() for t in (text or "").split()]
    seen = set()
    out: List[str] = []
    for label in labels:
        if label in seen:
            continue
        folded = label.casefold()
        if all(t in folded for t in tokens):
            seen.add(label)
            out.append(label)
    return out
