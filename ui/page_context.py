import itertools
import json
import logging
from typing import Any, Dict, Optional, Set, Tuple

import wx
import wx.html2 as webview

from core.errors import CallbackDeliveryFailure
from services.bridge import ErrorCallback, ResultCallback

Pending = Tuple[Optional[ResultCallback], Optional[ErrorCallback]]


def _wrap_for_result(js: str) -> str:
    # stringify page side so the host always gets JSON text back
    return (
        "(function(){"
        f" var __r = ({js});"
        " return JSON.stringify(__r === undefined ? null : __r);"
        "})()"
    )


def _decode(output: str) -> Any:
    if not output:
        return None
    try:
        return json.loads(output)
    except ValueError:
        return output


class WebViewContext:
    """Page context backed by a ``wx.html2.WebView``.

    Results come back through ``EVT_WEBVIEW_SCRIPT_RESULT`` on a later turn of
    the main loop. Backends without ``RunScriptAsync`` run the script
    synchronously and deliver via ``wx.CallAfter`` so callers see the same
    ordering either way.
    """

    def __init__(self, view: webview.WebView) -> None:
        self.view = view
        self.injected: Set[str] = set()
        self._tokens = itertools.count(1)
        self._pending: Dict[int, Pending] = {}
        self._async = hasattr(view, "RunScriptAsync") and hasattr(webview, "EVT_WEBVIEW_SCRIPT_RESULT")
        if self._async:
            view.Bind(webview.EVT_WEBVIEW_SCRIPT_RESULT, self._on_script_result)

    def is_live(self) -> bool:
        return bool(self.view) and not self.view.IsBeingDeleted()

    def reset(self) -> None:
        """Forget injections; called when a new document has loaded."""
        self.injected.clear()

    def run_script(
        self,
        js: str,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        script = _wrap_for_result(js) if on_result else js
        if self._async:
            token = next(self._tokens)
            self._pending[token] = (on_result, on_error)
            self.view.RunScriptAsync(script, token)
            return
        ok, output = self._run_sync(script)
        wx.CallAfter(self._deliver, (on_result, on_error), ok, output)

    def _run_sync(self, script: str) -> Tuple[bool, str]:
        try:
            res = self.view.RunScript(script)
        except Exception as exc:
            return False, str(exc)
        if isinstance(res, tuple):
            return bool(res[0]), res[1] if len(res) > 1 else ""
        return bool(res), ""

    def _on_script_result(self, evt: webview.WebViewEvent) -> None:
        data = evt.GetClientData()
        token = int(data) if data else 0
        callbacks = self._pending.pop(token, None)
        if callbacks is None:
            logging.debug("webview_orphan_result token=%s", token)
            return
        self._deliver(callbacks, not evt.IsError(), evt.GetString())

    def _deliver(self, callbacks: Pending, ok: bool, output: str) -> None:
        on_result, on_error = callbacks
        if not ok:
            logging.debug("webview_script_error output=%s", output)
            if on_error:
                on_error(CallbackDeliveryFailure(output or "script failed"))
            return
        if on_result:
            on_result(_decode(output))
