from __future__ import annotations

from checkout_api.bootstrap import build_app

app = build_app()
