import json
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.errors import InteractionAborted  # noqa: E402
from services.candidates import match_labels  # noqa: E402

CALL = re.compile(r"^(__bridge_\w+)\((.*)\)$", re.S)


class FakePage:
    """Records scripts and answers bridge calls when ``flush`` is called."""

    def __init__(self, responses: Optional[Dict[str, Any]] = None) -> None:
        self.live = True
        self.injected = set()
        self.scripts: List[str] = []
        self.calls: List[tuple] = []
        self.queue: List[tuple] = []
        self.responses = responses or {}

    def is_live(self) -> bool:
        return self.live

    def run_script(self, js, on_result=None, on_error=None):
        self.scripts.append(js)
        m = CALL.match(js)
        fn = None
        if m:
            fn = m.group(1)
            # the page parses the argument list like an array literal
            self.calls.append((fn, json.loads("[" + m.group(2) + "]")))
        self.queue.append((fn, on_result, on_error))

    def flush(self):
        while self.queue:
            fn, on_result, on_error = self.queue.pop(0)
            value = self.responses.get(fn)
            if isinstance(value, Exception):
                if on_error:
                    on_error(value)
            elif on_result:
                on_result(value)

    def called(self, suffix: str) -> List[list]:
        return [args for fn, args in self.calls if fn.endswith("_" + suffix)]

    def call_names(self) -> List[str]:
        return [fn.rsplit("_", 1)[-1] for fn, _ in self.calls]


class ScriptedCompleter:
    """Completion front-end that types ``steps`` and then commits or cancels."""

    def __init__(self, steps: Sequence[str] = (), commit: Optional[str] = None) -> None:
        self.steps = list(steps)
        self.commit = commit
        self.pointed: Optional[str] = None
        self.seen_labels: Optional[List[str]] = None
        self.cancelled = False

    def __call__(self, labels, on_update):
        self.seen_labels = list(labels)
        for text in self.steps:
            matches = match_labels(labels, text)
            self.pointed = matches[0] if matches else None
            on_update(matches)
        if self.commit is None or self.cancelled:
            raise InteractionAborted("cancelled")
        return self.commit

    def active_label(self):
        return self.pointed


@pytest.fixture
def page():
    return FakePage()
