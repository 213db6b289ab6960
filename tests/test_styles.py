from core.theme import CANDIDATE_CLASS, SELECTED_CLASS, DARK
from services.bridge import BridgeInvoker
from services.styles import css_rules, inject_style, style_script


def test_css_rules():
    assert css_rules("hint", {"color": "red", "outline": "1px solid"}) == ".hint { color: red; outline: 1px solid; }"


def test_style_script_guards_on_existing_element():
    js = style_script("__bridge_hint_style", DARK.classes())
    guard = js.index("document.getElementById(styleId)")
    create = js.index("document.createElement('style')")
    assert guard < create
    assert 'const styleId = "__bridge_hint_style";' in js
    assert CANDIDATE_CLASS in js and SELECTED_CLASS in js


def test_injecting_twice_sends_identical_guarded_script(page):
    invoker = BridgeInvoker()
    inject_style(invoker, page, "s", {"c": {"color": "red"}})
    inject_style(invoker, page, "s", {"c": {"color": "red"}})
    assert len(page.scripts) == 2
    assert page.scripts[0] == page.scripts[1]
