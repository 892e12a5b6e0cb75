"""``python -m leadflow`` runs the HTTP service."""

import asyncio

from leadflow.app import main


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
