import wx
import wx.html2 as webview
from typing import Callable

from core.config import settings
from ui.page_context import WebViewContext

BACKENDS = {
    "edge": getattr(webview, 'WebViewBackendEdge', webview.WebViewBackendDefault),
    "default": webview.WebViewBackendDefault,
}


class BrowserTab(wx.Panel):
    def __init__(
        self,
        parent: wx.Window,
        on_title_changed: Callable[["BrowserTab", str], None],
        on_new_window: Callable[[str], None],
    ) -> None:
        super().__init__(parent)
        self.on_title_changed = on_title_changed
        self.on_new_window = on_new_window

        backend = BACKENDS.get(settings.webview_backend.lower(), webview.WebViewBackendDefault)
        self.view = webview.WebView.New(self, backend=backend)
        self.page = WebViewContext(self.view)

        self.view.Bind(webview.EVT_WEBVIEW_TITLE_CHANGED, lambda e: on_title_changed(self, e.GetString()))
        self.view.Bind(webview.EVT_WEBVIEW_NEWWINDOW, self._ev_new_window)
        # a new document drops every injected definition
        self.view.Bind(webview.EVT_WEBVIEW_NAVIGATED, self._on_loaded)
        if hasattr(webview, 'EVT_WEBVIEW_LOADED'):
            self.view.Bind(webview.EVT_WEBVIEW_LOADED, self._on_loaded)

        s = wx.BoxSizer(wx.VERTICAL)
        s.Add(self.view, 1, wx.EXPAND)
        self.SetSizer(s)

    # ---- host helpers ----
    def load(self, url: str) -> None:
        self.view.LoadURL(url)

    def get_url(self) -> str:
        return self.view.GetCurrentURL() or ""

    # ---- events ----
    def _ev_new_window(self, evt: webview.WebViewEvent) -> None:
        self.on_new_window(evt.GetURL())
        evt.Veto()

    def _on_loaded(self, evt: webview.WebViewEvent) -> None:
        self.page.reset()
        evt.Skip()
