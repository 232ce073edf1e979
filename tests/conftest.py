"""Root conftest — sets env vars BEFORE any tgui.demo module is imported.

The demo config.py module-level singleton requires TELEGRAM_BOT_TOKEN at
import time, so it must be set before pytest discovers any test that
transitively imports tgui.demo.bot.
"""

import os
import tempfile

# Force-set (not setdefault) to prevent real env vars from leaking into tests
os.environ["TELEGRAM_BOT_TOKEN"] = "test:0000000000:AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"
os.environ["TGUI_DIR"] = tempfile.mkdtemp(prefix="tgui-test-")
os.environ.pop("TGUI_ITEMS_PER_PAGE", None)
