from __future__ import annotations

import sys

import uvicorn

from checkout_api.adapters.inbound.cli import run_cli
from checkout_api.adapters.outbound.square_commerce import SquareCommerceClient
from checkout_api.bootstrap import build_usecases
from checkout_api.config import Settings
from checkout_api.utils.logging import configure_logging

USAGE = "usage: checkout-api serve | checkout-api checkout '<json>'"


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    command = argv[0] if argv else "serve"
    settings = Settings()

    if command == "serve":
        uvicorn.run(
            "checkout_api.bootstrap:create_asgi_app",
            factory=True,
            host=settings.host,
            port=settings.port,
            reload=False,
        )
        return 0

    if command == "checkout" and len(argv) == 2:
        configure_logging(settings.log_level, as_json=settings.log_json)
        usecases = build_usecases(settings)
        # pick up data/prices.json once; no watcher thread for a one-shot run
        usecases.price_watcher.poll_once()
        try:
            return run_cli(usecases.checkout, argv[1])
        finally:
            if isinstance(usecases.commerce, SquareCommerceClient):
                usecases.commerce.close()

    print(USAGE)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
