"""tgui - UI widget toolkit for python-telegram-bot.

Package entry point. Exports the version string only; widgets are
imported from their own modules (``tgui.menu``, ``tgui.datatable`` ...).
"""

__version__ = "0.1.0"
