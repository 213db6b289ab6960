import logging
import wx
from typing import Optional

from core.config import settings
from core.errors import ContextUnavailable, SessionActive
from core.theme import resolve_theme
from services.bridge import BridgeInvoker
from services.commands import HintCommands
from ui.browser_tab import BrowserTab
from ui.hint_prompt import HintPrompt

ICON_SIZE = (20, 20)
ID_FOLLOW_LINK = wx.NewIdRef()
ID_JUMP_SECTION = wx.NewIdRef()


class BrowserFrame(wx.Frame):
    def __init__(self) -> None:
        super().__init__(None, title="PyWeb Hints", size=wx.Size(1100, 750))

        self.invoker = BridgeInvoker()
        self.prompt = HintPrompt(self, title="Hint")
        theme = resolve_theme(settings.hint_theme, settings.hint_candidate_style, settings.hint_selected_style)
        self.hints = HintCommands(self.invoker, self.prompt, providers=[self.prompt.active_label], theme=theme)

        # Toolbar
        chrome = wx.Panel(self)

        def mkbtn(art_id: str, tip: str) -> wx.BitmapButton:
            bmp = wx.ArtProvider.GetBitmap(art_id, wx.ART_TOOLBAR, ICON_SIZE)
            btn = wx.BitmapButton(chrome, bitmap=bmp, style=wx.BU_AUTODRAW)
            btn.SetToolTip(tip)
            return btn

        self.btn_back = mkbtn(wx.ART_GO_BACK, "Back")
        self.btn_fwd = mkbtn(wx.ART_GO_FORWARD, "Forward")
        self.addr = wx.TextCtrl(chrome, style=wx.TE_PROCESS_ENTER)
        self.btn_go = mkbtn(wx.ART_GO_DIR_RIGHT, "Go")
        self.btn_newtab = mkbtn(wx.ART_NEW, "New Tab")

        top = wx.BoxSizer(wx.HORIZONTAL)
        for w in (self.btn_back, self.btn_fwd, self.addr, self.btn_go, self.btn_newtab):
            top.Add(w, 1 if w is self.addr else 0, wx.ALL | (wx.EXPAND if w is self.addr else 0), 4)
        chrome.SetSizer(top)

        self.nb = wx.Notebook(self)
        self.nb.Bind(wx.EVT_NOTEBOOK_PAGE_CHANGED, self._on_tab_switched)

        root = wx.BoxSizer(wx.VERTICAL)
        root.Add(chrome, 0, wx.EXPAND)
        root.Add(self.nb, 1, wx.EXPAND)
        self.SetSizer(root)

        self.CreateStatusBar()
        self.SetStatusText("Ready")
        self._build_menu()

        self.addr.Bind(wx.EVT_TEXT_ENTER, self._on_go)
        self.btn_go.Bind(wx.EVT_BUTTON, self._on_go)
        self.btn_newtab.Bind(wx.EVT_BUTTON, lambda _e: self.new_tab(settings.start_url))
        self.btn_back.Bind(wx.EVT_BUTTON, self._on_back)
        self.btn_fwd.Bind(wx.EVT_BUTTON, self._on_forward)

        self.new_tab(settings.start_url)

    # ---- Menu ----
    def _build_menu(self) -> None:
        bar = wx.MenuBar()
        filem = wx.Menu()
        filem.Append(wx.ID_NEW, "&New Tab\tCtrl+T")
        filem.Append(wx.ID_CLOSE, "&Close Tab\tCtrl+W")
        filem.AppendSeparator()
        quit_item = filem.Append(wx.ID_EXIT, "E&xit")
        self.Bind(wx.EVT_MENU, lambda _e: self.Close(), quit_item)
        self.Bind(wx.EVT_MENU, lambda _e: self.new_tab(settings.start_url), id=wx.ID_NEW)
        self.Bind(wx.EVT_MENU, self._on_close_tab, id=wx.ID_CLOSE)

        navm = wx.Menu()
        navm.Append(ID_FOLLOW_LINK, "Follow &Link\tCtrl+F")
        navm.Append(ID_JUMP_SECTION, "Jump to &Section\tCtrl+Shift+S")
        self.Bind(wx.EVT_MENU, self._on_follow_link, id=ID_FOLLOW_LINK)
        self.Bind(wx.EVT_MENU, self._on_jump_section, id=ID_JUMP_SECTION)

        bar.Append(filem, "&File")
        bar.Append(navm, "&Navigate")
        self.SetMenuBar(bar)

    # ---- Active tab helpers ----
    def _active(self) -> Optional[BrowserTab]:
        if self.nb.GetPageCount() == 0:
            return None
        page = self.nb.GetCurrentPage()
        return page if isinstance(page, BrowserTab) else None

    def new_tab(self, url: str) -> None:
        tab = BrowserTab(self.nb, on_title_changed=self._tab_title_changed, on_new_window=self.new_tab)
        self.nb.AddPage(tab, "New Tab", select=True)
        tab.load(url)
        self.addr.ChangeValue(url)

    def _tab_title_changed(self, tab: BrowserTab, title: str) -> None:
        for i in range(self.nb.GetPageCount()):
            if self.nb.GetPage(i) is tab:
                shown = title or "Loading…"
                self.nb.SetPageText(i, shown if len(shown) <= 30 else shown[:27] + "…")
        if tab is self._active():
            self.SetStatusText(title or "")

    # ---- Hints ----
    def _run_hint(self, command) -> None:
        a = self._active()
        try:
            command(a.page if a else None)
        except (ContextUnavailable, SessionActive) as e:
            logging.info("hint_rejected reason=%s", e)
            self.SetStatusText(str(e))

    def _on_follow_link(self, _evt) -> None:
        self._run_hint(self.hints.follow_link)

    def _on_jump_section(self, _evt) -> None:
        self._run_hint(self.hints.jump_to_section)

    # ---- Navigation ----
    def _on_tab_switched(self, _evt) -> None:
        a = self._active()
        if a:
            self.addr.ChangeValue(a.get_url())

    def _on_go(self, _evt) -> None:
        url = self.addr.GetValue().strip()
        if url and "://" not in url:
            url = "https://" + url
        a = self._active()
        if a and url:
            a.load(url)

    def _on_back(self, _evt) -> None:
        a = self._active()
        if a and a.view.CanGoBack():
            a.view.GoBack()

    def _on_forward(self, _evt) -> None:
        a = self._active()
        if a and a.view.CanGoForward():
            a.view.GoForward()

    def _on_close_tab(self, _evt) -> None:
        idx = self.nb.GetSelection()
        if idx != wx.NOT_FOUND:
            self.nb.DeletePage(idx)
