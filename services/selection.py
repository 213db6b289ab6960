"""Interactive hint selection kept in sync with the page's highlights.

The controller fetches candidates from the page, hands their labels to a
completion front-end and, on every update of that front-end, pushes the
matching ids and the pointed-at id back to the page. Committing calls the
namespace's action; every way out calls its cleanup.
"""
import logging
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from core.errors import ContextUnavailable, InteractionAborted, SessionActive
from services.bridge import BridgeInvoker, PageContext
from services.candidates import Candidate, build_lookup, prepare
from services.functions import BridgeFunction
from services.styles import inject_style

UpdateCallback = Callable[[Sequence[str]], None]
# completer(labels, on_update) -> committed label; raises InteractionAborted on cancel
Completer = Callable[[Sequence[str], UpdateCallback], str]
ActiveCandidateProvider = Callable[[], Optional[str]]
StyleSpec = Tuple[str, Mapping[str, Mapping[str, str]]]

TRANSITION_LOG_MAX = 50


class State(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SELECTING = "selecting"
    COMMITTED = "committed"
    ABORTED = "aborted"
    ERRORED = "errored"


class HintFunctions(NamedTuple):
    fetch: BridgeFunction
    highlight: BridgeFunction
    action: BridgeFunction
    cleanup: BridgeFunction


@dataclass
class SelectionSession:
    candidates: List[Candidate] = field(default_factory=list)
    lookup: Dict[str, Candidate] = field(default_factory=dict)
    matching_ids: List[int] = field(default_factory=list)
    pointed_id: Optional[int] = None

    @classmethod
    def from_candidates(cls, candidates: List[Candidate]) -> "SelectionSession":
        return cls(candidates=candidates, lookup=build_lookup(candidates))

    @property
    def labels(self) -> List[str]:
        return list(dict.fromkeys(c.label for c in self.candidates))

    def resolve(self, label: str) -> Candidate:
        try:
            return self.lookup[label]
        except KeyError:
            raise LookupError(f"no candidate labelled {label!r}") from None

    def clear(self) -> None:
        self.candidates = []
        self.lookup = {}
        self.matching_ids = []
        self.pointed_id = None


class SelectionController:
    def __init__(
        self,
        invoker: BridgeInvoker,
        namespace: str,
        functions: HintFunctions,
        completer: Completer,
        providers: Sequence[ActiveCandidateProvider] = (),
        style: Optional[StyleSpec] = None,
    ) -> None:
        self.invoker = invoker
        self.namespace = namespace
        self.functions = functions
        self.completer = completer
        self.providers = list(providers)
        self.style = style

        self.state = State.IDLE
        self.session: Optional[SelectionSession] = None
        self.last_outcome: Optional[State] = None
        self.transitions: Deque[State] = deque(maxlen=TRANSITION_LOG_MAX)
        self._context: Optional[PageContext] = None
        self._failure: Optional[BaseException] = None

    # ---- lifecycle ----
    def start(self, context: PageContext) -> None:
        if context is None or not context.is_live():
            raise ContextUnavailable("no live page context")
        if self.active:
            # one prompt at a time, whichever page it was started on
            raise SessionActive(f"{self.namespace!r} session already active")
        self.invoker.acquire(context, self.namespace)
        self._context = context
        self._failure = None
        self._set_state(State.FETCHING)
        try:
            if self.style:
                style_id, classes = self.style
                inject_style(self.invoker, context, style_id, classes, on_error=self._style_rejected)
            self.invoker.inject(context, self.namespace, on_error=self.on_failure)
            self.functions.fetch(context, self.on_candidates, on_error=self.on_failure)
        except Exception as exc:
            self.on_failure(exc)

    def on_candidates(self, raw: Any) -> None:
        """Result callback of ``fetch``: runs the whole selection."""
        if self.state is not State.FETCHING:
            logging.debug("hint_stale_candidates ns=%s state=%s", self.namespace, self.state.value)
            return
        outcome = State.ERRORED
        try:
            with self._selecting(raw) as session:
                label = self.completer(session.labels, self.on_update)
                self._raise_failure()
                target = session.resolve(label)
                logging.info("hint_commit ns=%s id=%s target=%s", self.namespace, target.id, target.target)
                self.functions.action(self._context, target.id, on_error=self._late_failure)
            outcome = State.COMMITTED
        except InteractionAborted:
            outcome = State.ERRORED if self._failure is not None else State.ABORTED
            if outcome is State.ERRORED:
                logging.warning("hint_failed ns=%s reason=%s", self.namespace, self._failure)
        except Exception as exc:
            logging.warning("hint_failed ns=%s reason=%s", self.namespace, exc)
        finally:
            self._finish(outcome)

    def on_update(self, matching_labels: Sequence[str]) -> None:
        """Called by the completion front-end whenever its matches or current row change."""
        session = self.session
        if session is None or self.state is not State.SELECTING:
            return
        ids: List[int] = []
        for label in matching_labels:
            candidate = session.lookup.get(label)
            if candidate is not None and candidate.id not in ids:
                ids.append(candidate.id)
        pointed = self.active_label()
        pointed_candidate = session.lookup.get(pointed) if pointed is not None else None
        session.matching_ids = ids
        session.pointed_id = pointed_candidate.id if pointed_candidate else None
        try:
            self.functions.highlight(self._context, ids or None, session.pointed_id, on_error=self.on_failure)
        except Exception as exc:
            self.on_failure(exc)

    def on_failure(self, exc: BaseException) -> None:
        if self.state is State.SELECTING:
            # unwound once the completer returns
            if self._failure is None:
                self._failure = exc
            cancel = getattr(self.completer, "cancel", None)
            if callable(cancel):
                cancel()
        elif self.state is State.FETCHING:
            logging.warning("hint_failed ns=%s reason=%s", self.namespace, exc)
            self._run_cleanup()
            self._finish(State.ERRORED)
        else:
            logging.debug("hint_late_failure ns=%s reason=%s", self.namespace, exc)

    def active_label(self) -> Optional[str]:
        for provider in self.providers:
            try:
                value = provider()
            except Exception as exc:
                logging.debug("hint_provider_failed provider=%r reason=%s", provider, exc)
                continue
            if value is not None:
                return value
        return None

    @property
    def active(self) -> bool:
        return self.state in (State.FETCHING, State.SELECTING)

    # ---- internals ----
    @contextmanager
    def _selecting(self, raw: Any) -> Iterator[SelectionSession]:
        try:
            self.session = SelectionSession.from_candidates(prepare(raw or {}))
            self._set_state(State.SELECTING)
            yield self.session
        finally:
            self._run_cleanup()
            if self.session is not None:
                self.session.clear()

    def _raise_failure(self) -> None:
        if self._failure is not None:
            raise self._failure

    def _run_cleanup(self) -> None:
        try:
            self.functions.cleanup(self._context, on_error=self._late_failure)
        except Exception as exc:
            logging.debug("hint_cleanup_failed ns=%s reason=%s", self.namespace, exc)

    def _finish(self, outcome: State) -> None:
        self._set_state(outcome)
        self.last_outcome = outcome
        if self._context is not None:
            self.invoker.release(self._context)
        self.session = None
        self._context = None
        self._failure = None
        self._set_state(State.IDLE)

    def _set_state(self, state: State) -> None:
        self.state = state
        self.transitions.append(state)

    def _style_rejected(self, exc: BaseException) -> None:
        logging.warning("hint_style_rejected ns=%s reason=%s", self.namespace, exc)

    def _late_failure(self, exc: BaseException) -> None:
        logging.debug("hint_page_error ns=%s reason=%s", self.namespace, exc)
