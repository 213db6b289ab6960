import logging

import wx

from core.config import settings
from ui.main_frame import BrowserFrame


def main():
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    app = wx.App(False)
    frame = BrowserFrame()
    frame.Show()
    app.MainLoop()

if __name__ == '__main__':
    main()
