import json
import logging
import math
import re
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Set

from core.errors import ContextUnavailable, InjectionFailure, SessionActive
from services.registry import ScriptRegistry

ResultCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]

FUNCTION_PREFIX = "__bridge"

_NON_IDENT = re.compile(r"[^A-Za-z0-9_$]")


class PageContext(Protocol):
    """Script execution environment of one embedded page."""

    injected: Set[str]

    def is_live(self) -> bool: ...

    def run_script(
        self,
        js: str,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None: ...


def mangle(identifier: str) -> str:
    return _NON_IDENT.sub("_", identifier)


def function_name(namespace: str, name: str) -> str:
    return f"{FUNCTION_PREFIX}_{mangle(namespace)}_{mangle(name)}"


def _check_encodable(value: Any) -> None:
    if value is None or isinstance(value, (bool, int, str)):
        return
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeError(f"cannot encode non-finite float {value!r} for the page")
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _check_encodable(item)
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"record keys must be strings, got {key!r}")
            _check_encodable(item)
        return
    raise TypeError(f"cannot encode {type(value).__name__} for the page")


def encode_arg(value: Any) -> str:
    """Encode a value as a JS literal (JSON is a subset of JS expressions)."""
    _check_encodable(value)
    text = json.dumps(value, ensure_ascii=False)
    # JSON allows these raw, older JS parsers treat them as line terminators
    return text.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")


def encode_args(args: Iterable[Any]) -> str:
    return ", ".join(encode_arg(a) for a in args)


class BridgeInvoker:
    def __init__(self, registry: Optional[ScriptRegistry] = None) -> None:
        self.registry = registry if registry is not None else ScriptRegistry()
        self._sessions: Dict[int, str] = {}

    # ---- raw execution ----
    def run(
        self,
        context: PageContext,
        js: str,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        if context is None or not context.is_live():
            raise ContextUnavailable("no live page context")
        context.run_script(js, on_result, on_error)

    # ---- namespaced calls ----
    def call(self, context: PageContext, namespace: str, name: str, *args: Any,
             on_error: Optional[ErrorCallback] = None) -> None:
        """Invoke ``namespace``/``name`` in the page.

        A trailing callable in ``args`` receives the result once the page
        answers; without one the result is dropped.
        """
        callback: Optional[ResultCallback] = None
        if args and callable(args[-1]):
            callback = args[-1]
            args = args[:-1]
        js = f"{function_name(namespace, name)}({encode_args(args)})"
        logging.debug("bridge_call ns=%s name=%s argc=%s", namespace, name, len(args))
        self.run(context, js, callback, on_error)

    def inject(self, context: PageContext, namespace: str, on_error: Optional[ErrorCallback] = None,
               force: bool = False) -> bool:
        """Run the namespace's definitions in the page unless the current document has them.

        Sources only declare functions, so ``force`` re-running them is harmless.
        Returns whether a script was sent.
        """
        if namespace in context.injected and not force:
            logging.debug("bridge_inject_skipped ns=%s", namespace)
            return False
        script = self.registry.render_injection_script(namespace)
        if not script:
            logging.debug("bridge_inject_empty ns=%s", namespace)
            return False

        def rejected(exc: Exception) -> None:
            context.injected.discard(namespace)
            failure = InjectionFailure(f"injection of {namespace!r} rejected: {exc}")
            logging.warning("bridge_inject_failed ns=%s reason=%s", namespace, exc)
            if on_error:
                on_error(failure)

        self.run(context, script + ";", None, rejected)
        context.injected.add(namespace)
        return True

    # ---- interactive session guard ----
    def acquire(self, context: PageContext, namespace: str) -> None:
        holder = self._sessions.get(id(context))
        if holder is not None:
            raise SessionActive(f"{holder!r} session already active on this page")
        self._sessions[id(context)] = namespace

    def release(self, context: PageContext) -> None:
        self._sessions.pop(id(context), None)

    def is_busy(self, context: PageContext) -> bool:
        return id(context) in self._sessions
