"""Declare page functions together with the host stubs that call them.

A declaration is ``(name, params, body)``: ``body`` is the JS function body,
referring to the parameters by their mangled names (``selected-id`` becomes
``selected_id``). Declaring registers the page source with the invoker's
registry and returns a :class:`BridgeFunction` that forwards calls through
the invoker.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from core.errors import BridgeDefinitionError
from services.bridge import BridgeInvoker, ErrorCallback, PageContext, function_name, mangle
from services.registry import FunctionEntry

FunctionRow = Tuple[str, Sequence[str], str]

_JS_IDENT = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def _check_braces(body: str) -> bool:
    depth = 0
    quote = None
    escaped = False
    for ch in body:
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in "'\"`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0 and quote is None


def function_source(namespace: str, name: str, params: Sequence[str], body: str) -> str:
    fn = function_name(namespace, name)
    args = ", ".join(mangle(p) for p in params)
    return f"window.{fn} = function {fn}({args}) {{\n{body.strip()}\n}}"


@dataclass(frozen=True)
class BridgeFunction:
    invoker: BridgeInvoker
    entry: FunctionEntry

    @property
    def namespace(self) -> str:
        return self.entry.namespace

    @property
    def name(self) -> str:
        return self.entry.name

    def __call__(self, context: PageContext, *args: Any, on_error: Optional[ErrorCallback] = None) -> None:
        given = len(args) - 1 if args and callable(args[-1]) else len(args)
        if given > len(self.entry.params):
            raise TypeError(
                f"{self.namespace}/{self.name} takes {len(self.entry.params)} arguments, got {given}"
            )
        self.invoker.call(context, self.namespace, self.name, *args, on_error=on_error)

    def __repr__(self) -> str:
        return f"BridgeFunction({self.namespace}/{self.name}({', '.join(self.entry.params)}))"


def define_bridge_function(
    invoker: BridgeInvoker,
    namespace: str,
    name: str,
    params: Iterable[str],
    body: str,
) -> BridgeFunction:
    params = tuple(params)
    if not namespace or not name:
        raise BridgeDefinitionError("namespace and name must be non-empty")
    mangled = [mangle(p) for p in params]
    if len(set(mangled)) != len(mangled):
        raise BridgeDefinitionError(f"{namespace}/{name}: duplicate parameter in {params!r}")
    for raw, p in zip(params, mangled):
        if not _JS_IDENT.match(p):
            raise BridgeDefinitionError(f"{namespace}/{name}: {raw!r} is not a usable parameter name")
    if not isinstance(body, str) or not _check_braces(body):
        raise BridgeDefinitionError(f"{namespace}/{name}: unbalanced body")

    source = function_source(namespace, name, params, body)
    key = invoker.registry.register(namespace, name, source, params)
    return BridgeFunction(invoker=invoker, entry=invoker.registry.get(*key))


def define_namespace(invoker: BridgeInvoker, namespace: str, table: Iterable[FunctionRow]) -> Dict[str, BridgeFunction]:
    return {name: define_bridge_function(invoker, namespace, name, params, body) for name, params, body in table}
