from typing import List

from core.theme import CANDIDATE_CLASS, SELECTED_CLASS
from services.bridge import BridgeInvoker, function_name
from services.functions import FunctionRow, define_namespace
from services.selection import HintFunctions

FOLLOW_LINK = "follow-link"
SECTION = "section"

HINT_STYLE_ID = "__bridge_hint_style"

# Each namespace keeps the elements of its last fetch in a page global so that
# highlight/action/cleanup can address them by index.

FOLLOW_LINK_FETCH_JS = """
const nodes = Array.from(document.querySelectorAll('a[href]')).filter(function (a) {
  const r = a.getBoundingClientRect();
  return r.width > 0 && r.height > 0 && r.bottom > 0 && r.right > 0
    && r.top < window.innerHeight && r.left < window.innerWidth;
});
window.%(nodes)s = nodes;
const out = {};
nodes.forEach(function (a, i) {
  out[i] = [a.innerText || a.textContent || a.getAttribute('aria-label') || a.title || '', a.href];
});
return out;
"""

SECTION_FETCH_JS = """
const nodes = Array.from(document.querySelectorAll('h1, h2, h3, h4, h5, h6')).filter(function (h) {
  return h.getClientRects().length > 0;
});
window.%(nodes)s = nodes;
const out = {};
nodes.forEach(function (h, i) {
  const text = h.innerText || h.textContent || '';
  out[i] = [text, h.id ? '#' + h.id : text];
});
return out;
"""

HIGHLIGHT_JS = """
const nodes = window.%(nodes)s || [];
nodes.forEach(function (n) { n.classList.remove('%(candidate)s', '%(selected)s'); });
(matching_ids || []).forEach(function (i) {
  if (nodes[i]) { nodes[i].classList.add('%(candidate)s'); }
});
if (selected_id !== null && selected_id !== undefined && nodes[selected_id]) {
  nodes[selected_id].classList.add('%(selected)s');
  nodes[selected_id].scrollIntoView({block: 'nearest', inline: 'nearest'});
}
"""

FOLLOW_LINK_ACTION_JS = """
const el = (window.%(nodes)s || [])[selected_id];
if (el) { el.click(); }
"""

SECTION_ACTION_JS = """
const el = (window.%(nodes)s || [])[selected_id];
if (el) {
  el.scrollIntoView({block: 'start'});
  if (el.id) { history.replaceState(null, '', '#' + el.id); }
}
"""

CLEANUP_JS = """
(window.%(nodes)s || []).forEach(function (n) {
  n.classList.remove('%(candidate)s', '%(selected)s');
});
delete window.%(nodes)s;
"""


def hint_table(namespace: str, fetch_js: str, action_js: str) -> List[FunctionRow]:
    names = {
        "nodes": function_name(namespace, "nodes"),
        "candidate": CANDIDATE_CLASS,
        "selected": SELECTED_CLASS,
    }
    return [
        ("fetch", (), fetch_js % names),
        ("highlight", ("matching-ids", "selected-id"), HIGHLIGHT_JS % names),
        ("action", ("selected-id",), action_js % names),
        ("cleanup", (), CLEANUP_JS % names),
    ]


FOLLOW_LINK_FUNCTIONS = hint_table(FOLLOW_LINK, FOLLOW_LINK_FETCH_JS, FOLLOW_LINK_ACTION_JS)
SECTION_FUNCTIONS = hint_table(SECTION, SECTION_FETCH_JS, SECTION_ACTION_JS)


def define_hint_namespace(invoker: BridgeInvoker, namespace: str, table: List[FunctionRow]) -> HintFunctions:
    fns = define_namespace(invoker, namespace, table)
    return HintFunctions(fetch=fns["fetch"], highlight=fns["highlight"], action=fns["action"], cleanup=fns["cleanup"])
