import wx
from typing import List, Optional, Sequence

from core.errors import InteractionAborted
from services.candidates import match_labels
from services.selection import UpdateCallback


class HintDialog(wx.Dialog):
    """Incremental filter over hint labels: type to narrow, arrows to move, Enter to pick."""

    def __init__(self, parent: Optional[wx.Window], title: str, labels: Sequence[str], on_update: UpdateCallback) -> None:
        super().__init__(parent, title=title, size=wx.Size(480, 360),
                         style=wx.DEFAULT_DIALOG_STYLE | wx.RESIZE_BORDER)
        self.labels = list(labels)
        self.on_update = on_update
        self.matches: List[str] = list(self.labels)

        self.query = wx.TextCtrl(self, style=wx.TE_PROCESS_ENTER)
        self.list = wx.ListBox(self, style=wx.LB_SINGLE)

        s = wx.BoxSizer(wx.VERTICAL)
        s.Add(self.query, 0, wx.ALL | wx.EXPAND, 4)
        s.Add(self.list, 1, wx.LEFT | wx.RIGHT | wx.BOTTOM | wx.EXPAND, 4)
        self.SetSizer(s)

        self.query.Bind(wx.EVT_TEXT, self._on_text)
        self.query.Bind(wx.EVT_TEXT_ENTER, self._on_enter)
        self.list.Bind(wx.EVT_LISTBOX, lambda _e: self._notify())
        self.list.Bind(wx.EVT_LISTBOX_DCLICK, self._on_enter)
        self.Bind(wx.EVT_CHAR_HOOK, self._on_key)

        self._refilter()
        self.query.SetFocus()

    def current_label(self) -> Optional[str]:
        idx = self.list.GetSelection()
        if idx == wx.NOT_FOUND or idx >= len(self.matches):
            return None
        return self.matches[idx]

    def _refilter(self) -> None:
        self.matches = match_labels(self.labels, self.query.GetValue())
        self.list.Set(self.matches)
        if self.matches:
            self.list.SetSelection(0)
        self._notify()

    def _notify(self) -> None:
        self.on_update(list(self.matches))

    def _move(self, step: int) -> None:
        if not self.matches:
            return
        idx = self.list.GetSelection()
        idx = 0 if idx == wx.NOT_FOUND else (idx + step) % len(self.matches)
        self.list.SetSelection(idx)
        self._notify()

    def _on_text(self, _evt) -> None:
        self._refilter()

    def _on_enter(self, _evt) -> None:
        if self.current_label() is not None:
            self.EndModal(wx.ID_OK)

    def _on_key(self, evt: wx.KeyEvent) -> None:
        key = evt.GetKeyCode()
        if key == wx.WXK_ESCAPE:
            self.EndModal(wx.ID_CANCEL)
        elif key in (wx.WXK_UP, wx.WXK_NUMPAD_UP):
            self._move(-1)
        elif key in (wx.WXK_DOWN, wx.WXK_NUMPAD_DOWN):
            self._move(1)
        else:
            evt.Skip()


class HintPrompt:
    """Completion front-end for the hint controllers.

    Calling it shows a modal :class:`HintDialog` and returns the chosen
    label; :meth:`active_label` is the matching active-candidate provider.
    """

    def __init__(self, parent: wx.Window, title: str = "Hint") -> None:
        self.parent = parent
        self.title = title
        self._dialog: Optional[HintDialog] = None

    def __call__(self, labels: Sequence[str], on_update: UpdateCallback) -> str:
        dlg = HintDialog(self.parent, self.title, labels, on_update)
        self._dialog = dlg
        try:
            # first push happened while the dialog was being built
            on_update(list(dlg.matches))
            if dlg.ShowModal() != wx.ID_OK:
                raise InteractionAborted("hint prompt cancelled")
            label = dlg.current_label()
            if label is None:
                raise InteractionAborted("no hint selected")
            return label
        finally:
            self._dialog = None
            dlg.Destroy()

    def active_label(self) -> Optional[str]:
        dlg = self._dialog
        return dlg.current_label() if dlg else None

    def cancel(self) -> None:
        dlg = self._dialog
        if dlg and dlg.IsModal():
            dlg.EndModal(wx.ID_CANCEL)
