import pytest

from conftest import FakePage, ScriptedCompleter
from core.errors import CallbackDeliveryFailure, ContextUnavailable, InjectionFailure, SessionActive
from services.bridge import BridgeInvoker
from services.dom_select import FOLLOW_LINK, FOLLOW_LINK_FUNCTIONS, define_hint_namespace
from services.selection import SelectionController, State

FETCH = "__bridge_follow_link_fetch"
HIGHLIGHT = "__bridge_follow_link_highlight"
SITE = {"0": ["Home", "http://x/"], "1": ["About", "http://x/about"]}


def make(completer, providers=None, style=None):
    invoker = BridgeInvoker()
    fns = define_hint_namespace(invoker, FOLLOW_LINK, FOLLOW_LINK_FUNCTIONS)
    if providers is None:
        providers = [completer.active_label]
    return invoker, SelectionController(invoker, FOLLOW_LINK, fns, completer, providers=providers, style=style)


class FlushingCompleter(ScriptedCompleter):
    """Lets the page answer between keystrokes, like a modal loop would."""

    def __init__(self, page, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.page = page

    def __call__(self, labels, on_update):
        def update(matches):
            on_update(matches)
            self.page.flush()

        return super().__call__(labels, update)

    def cancel(self):
        self.cancelled = True


def test_commit_runs_action_then_cleanup(page):
    page.responses[FETCH] = SITE
    completer = ScriptedCompleter(["Ab"], commit="About")
    invoker, ctrl = make(completer)

    ctrl.start(page)
    assert ctrl.state is State.FETCHING
    assert page.injected == {FOLLOW_LINK}
    page.flush()

    assert completer.seen_labels == ["Home", "About"]
    assert page.called("highlight") == [[[1], 1]]
    assert page.call_names() == ["fetch", "highlight", "action", "cleanup"]
    assert page.called("action") == [[1]]
    assert len(page.called("cleanup")) == 1
    assert ctrl.last_outcome is State.COMMITTED
    assert list(ctrl.transitions) == [State.FETCHING, State.SELECTING, State.COMMITTED, State.IDLE]
    assert ctrl.state is State.IDLE and ctrl.session is None
    assert not invoker.is_busy(page)


def test_abort_skips_action_and_cleans_up_once(page):
    page.responses[FETCH] = SITE
    invoker, ctrl = make(ScriptedCompleter(["Ab"], commit=None))

    ctrl.start(page)
    page.flush()

    assert page.called("action") == []
    assert len(page.called("cleanup")) == 1
    assert ctrl.last_outcome is State.ABORTED
    assert ctrl.state is State.IDLE
    assert not invoker.is_busy(page)


def test_duplicate_labels_resolve_to_last(page):
    page.responses[FETCH] = {"0": ["X", "u0"], "1": ["X", "u1"]}
    completer = ScriptedCompleter(["x"], commit="X")
    _invoker, ctrl = make(completer)

    ctrl.start(page)
    page.flush()

    assert completer.seen_labels == ["X"]
    assert page.called("highlight") == [[[1], 1]]
    assert page.called("action") == [[1]]


def test_every_update_pushes_latest_state(page):
    page.responses[FETCH] = {"0": ["Home", "h"], "1": ["About", "a"], "2": ["About us", "u"]}
    _invoker, ctrl = make(ScriptedCompleter(["", "ab", "ab us", "zzz"], commit=None))

    ctrl.start(page)
    page.flush()

    assert page.called("highlight") == [
        [[0, 1, 2], 0],
        [[1, 2], 1],
        [[2], 2],
        [None, None],
    ]


def test_first_provider_with_a_value_wins(page):
    page.responses[FETCH] = SITE

    def broken():
        raise RuntimeError("front-end gone")

    completer = ScriptedCompleter([""], commit=None)
    _invoker, ctrl = make(completer, providers=[lambda: None, broken, lambda: "About", lambda: "Home"])

    ctrl.start(page)
    page.flush()

    assert page.called("highlight") == [[[0, 1], 1]]


def test_without_providers_nothing_is_pointed_at(page):
    page.responses[FETCH] = SITE
    _invoker, ctrl = make(ScriptedCompleter(["home"], commit="Home"), providers=[])

    ctrl.start(page)
    page.flush()

    assert page.called("highlight") == [[[0], None]]
    assert page.called("action") == [[0]]


def test_fetch_failure_cleans_up_and_stays_quiet(page):
    page.responses[FETCH] = CallbackDeliveryFailure("ReferenceError")
    completer = ScriptedCompleter(["a"], commit="About")
    invoker, ctrl = make(completer)

    ctrl.start(page)
    page.flush()

    assert completer.seen_labels is None
    assert page.call_names() == ["fetch", "cleanup"]
    assert ctrl.last_outcome is State.ERRORED
    assert ctrl.state is State.IDLE
    assert not invoker.is_busy(page)


def test_dead_context_fails_before_any_state(page):
    page.live = False
    invoker, ctrl = make(ScriptedCompleter())

    with pytest.raises(ContextUnavailable):
        ctrl.start(page)

    assert page.scripts == []
    assert ctrl.state is State.IDLE
    assert list(ctrl.transitions) == []
    assert not invoker.is_busy(page)


def test_page_failure_while_selecting_cancels_prompt(page):
    page.responses[FETCH] = SITE
    page.responses[HIGHLIGHT] = CallbackDeliveryFailure("TypeError")
    completer = FlushingCompleter(page, ["Ab"], commit="About")
    _invoker, ctrl = make(completer)

    ctrl.start(page)
    page.flush()

    assert completer.cancelled
    assert page.called("action") == []
    assert len(page.called("cleanup")) == 1
    assert ctrl.last_outcome is State.ERRORED


def test_page_failure_without_cancel_hook_blocks_commit(page):
    page.responses[FETCH] = SITE
    page.responses[HIGHLIGHT] = CallbackDeliveryFailure("TypeError")

    class NoCancel(FlushingCompleter):
        cancel = None

    _invoker, ctrl = make(NoCancel(page, ["Ab"], commit="About"))
    ctrl.start(page)
    page.flush()

    assert page.called("action") == []
    assert len(page.called("cleanup")) == 1
    assert ctrl.last_outcome is State.ERRORED


def test_context_lost_mid_session_is_swallowed(page):
    page.responses[FETCH] = SITE

    class Closing(ScriptedCompleter):
        def __call__(self, labels, on_update):
            label = super().__call__(labels, on_update)
            page.live = False
            return label

    invoker, ctrl = make(Closing(["Ab"], commit="About"))
    ctrl.start(page)
    page.flush()

    assert page.called("action") == []
    assert page.called("cleanup") == []
    assert ctrl.last_outcome is State.ERRORED
    assert not invoker.is_busy(page)


def test_unknown_committed_label_errors(page):
    page.responses[FETCH] = SITE
    _invoker, ctrl = make(ScriptedCompleter([], commit="Nowhere"))

    ctrl.start(page)
    page.flush()

    assert page.called("action") == []
    assert len(page.called("cleanup")) == 1
    assert ctrl.last_outcome is State.ERRORED


def test_empty_fetch_opens_empty_prompt(page):
    page.responses[FETCH] = {}
    completer = ScriptedCompleter([], commit=None)
    _invoker, ctrl = make(completer)

    ctrl.start(page)
    page.flush()

    assert completer.seen_labels == []
    assert ctrl.last_outcome is State.ABORTED
    assert len(page.called("cleanup")) == 1


def test_stale_candidates_are_ignored(page):
    _invoker, ctrl = make(ScriptedCompleter([], commit="Home"))
    ctrl.on_candidates(SITE)
    assert page.scripts == []
    assert ctrl.last_outcome is None


def test_style_injected_before_scripts(page):
    page.responses[FETCH] = SITE
    _invoker, ctrl = make(ScriptedCompleter(), style=("hint-style", {"c": {"color": "red"}}))

    ctrl.start(page)

    assert "document.getElementById(styleId)" in page.scripts[0]
    assert page.scripts[1].startswith("window.__bridge_follow_link_fetch")
    assert page.scripts[2] == "__bridge_follow_link_fetch()"


def test_controller_is_reusable(page):
    page.responses[FETCH] = SITE
    _invoker, ctrl = make(ScriptedCompleter(["Home"], commit="Home"))

    ctrl.start(page)
    page.flush()
    ctrl.start(page)
    page.flush()

    assert page.called("action") == [[0], [0]]
    assert len(page.called("cleanup")) == 2


def test_second_page_is_rejected_while_first_session_runs():
    tab_a, tab_b = FakePage({FETCH: SITE}), FakePage({FETCH: SITE})
    invoker, ctrl = make(ScriptedCompleter(["Home"], commit="Home"))

    ctrl.start(tab_a)
    with pytest.raises(SessionActive):
        ctrl.start(tab_b)
    tab_a.flush()
    tab_b.flush()

    assert tab_b.scripts == []
    assert tab_a.called("action") == [[0]]
    assert len(tab_a.called("cleanup")) == 1
    assert not invoker.is_busy(tab_a) and not invoker.is_busy(tab_b)

    ctrl.start(tab_b)
    tab_b.flush()
    assert tab_b.called("action") == [[0]]
    assert not invoker.is_busy(tab_b)


def test_rejected_injection_ends_in_error(page):
    page.responses[FETCH] = SITE
    page.responses[None] = InjectionFailure("CSP blocked script")
    completer = ScriptedCompleter(["Home"], commit="Home")
    invoker, ctrl = make(completer)

    ctrl.start(page)
    page.flush()

    assert completer.seen_labels is None
    assert page.call_names() == ["fetch", "cleanup"]
    assert ctrl.last_outcome is State.ERRORED
    assert page.injected == set()
    assert not invoker.is_busy(page)


def test_namespace_script_sent_once_per_document(page):
    page.responses[FETCH] = SITE
    _invoker, ctrl = make(ScriptedCompleter([], commit="Home"))

    def definitions():
        return [s for s in page.scripts if s.startswith("window.__bridge_follow_link_")]

    ctrl.start(page)
    page.flush()
    ctrl.start(page)
    page.flush()
    assert len(definitions()) == 1

    page.injected.clear()
    ctrl.start(page)
    page.flush()
    assert len(definitions()) == 2
    assert page.called("action") == [[0], [0], [0]]
