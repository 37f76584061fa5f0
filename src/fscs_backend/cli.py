from __future__ import annotations

import argparse
import asyncio

import uvicorn

import fscs_backend.db as db
from fscs_backend.db.models import Base
from fscs_backend.logging_config import configure_logging
from fscs_backend.settings import get_settings


async def _init_db() -> None:
    async with db.database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await db.database.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(prog="fscs-backend")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-db")
    serve = sub.add_parser("serve")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    serve.add_argument("--reload", action="store_true")

    args = parser.parse_args()
    settings = get_settings()

    if args.cmd == "init-db":
        configure_logging(settings)
        asyncio.run(_init_db())
        print("Database schema created")
    elif args.cmd == "serve":
        uvicorn.run(
            "fscs_backend.app:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_config=None,
        )
    else:
        raise SystemExit(2)
