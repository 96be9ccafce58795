"""
Command line — run the server and a few maintenance jobs.

    python -m lascentlo serve --port 5000
    python -m lascentlo init-db
    python -m lascentlo seed
    python -m lascentlo drain-outbox
    python -m lascentlo promote admin@example.com
"""

import argparse
import asyncio
import sys

import structlog
import uvicorn
from kungfu import Error, Ok

from lascentlo.auth import Accounts, Passwords, SessionTokens
from lascentlo.catalog import Category, ProductDraft, SizeVariant, SqlCatalog
from lascentlo.db import create_database
from lascentlo.log import configure_logging
from lascentlo.notify import Dispatcher, LogNotifier
from lascentlo.settings import Settings

log = structlog.get_logger(__name__)


SAMPLE_CATALOG: tuple[ProductDraft, ...] = (
    ProductDraft(
        name="Midnight Rose",
        description="Dark rose over oud and vanilla.",
        price_cents=7999,
        sizes=(
            SizeVariant(value=50, unit="ml", price_cents=7999, stock=10),
            SizeVariant(value=100, unit="ml", price_cents=12999, stock=5),
        ),
        category=Category.FLORAL,
        ingredients=("rose", "oud", "vanilla"),
        features={"longevity": "long", "sillage": "strong", "season": ["autumn", "winter"]},
    ),
    ProductDraft(
        name="Cedar Trail",
        description="Dry cedar, vetiver and a hint of smoke.",
        price_cents=6500,
        sizes=(
            SizeVariant(value=30, unit="ml", price_cents=4500, stock=20),
            SizeVariant(value=75, unit="ml", price_cents=6500, stock=12),
        ),
        category=Category.WOODY,
        ingredients=("cedar", "vetiver", "birch tar"),
        features={"longevity": "moderate", "sillage": "moderate", "season": ["autumn"]},
    ),
    ProductDraft(
        name="Amalfi Zest",
        description="Lemon peel, bergamot and sea salt.",
        price_cents=5400,
        sizes=(SizeVariant(value=100, unit="ml", price_cents=5400, stock=30),),
        category=Category.CITRUS,
        ingredients=("lemon", "bergamot", "sea salt"),
        features={"longevity": "short", "sillage": "soft", "season": ["summer"]},
    ),
)


async def _init_db(settings: Settings) -> int:
    _, engine = await create_database(settings.database_url)
    await engine.dispose()
    log.info("database_ready")
    return 0


async def _seed(settings: Settings) -> int:
    session_factory, engine = await create_database(settings.database_url)
    try:
        catalog = SqlCatalog(session_factory)
        for draft in SAMPLE_CATALOG:
            product = await catalog.create(draft)
            print(f"  ✓ {product.id}  {product.name}")
    finally:
        await engine.dispose()
    return 0


async def _drain(settings: Settings) -> int:
    session_factory, engine = await create_database(settings.database_url)
    try:
        dispatcher = Dispatcher(
            session_factory,
            LogNotifier(settings.client_url),
            max_attempts=settings.outbox_max_attempts,
            batch_size=settings.outbox_batch_size,
        )
        report = await dispatcher.drain()
        print(f"  delivered={report.delivered} failed={report.failed}")
    finally:
        await engine.dispose()
    return 0 if report.failed == 0 else 1


async def _promote(settings: Settings, email: str) -> int:
    session_factory, engine = await create_database(settings.database_url)
    try:
        accounts = Accounts(session_factory, Passwords(), SessionTokens(settings.jwt_secret))
        match await accounts.promote(email):
            case Ok(user):
                print(f"  ✓ {user.email} is now an admin")
                return 0
            case Error(e):
                print(f"  ✗ {e.message}")
                return 1
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="lascentlo")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    serve.add_argument("--reload", action="store_true")

    commands.add_parser("init-db", help="create tables")
    commands.add_parser("seed", help="insert a sample catalog")
    commands.add_parser("drain-outbox", help="deliver pending notifications once")

    promote = commands.add_parser("promote", help="grant the admin role")
    promote.add_argument("email")

    args = parser.parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level, settings.log_json)

    match args.command:
        case "serve":
            uvicorn.run(
                "lascentlo.api:create_app",
                factory=True,
                host=args.host,
                port=args.port,
                reload=args.reload,
            )
            return 0
        case "init-db":
            return asyncio.run(_init_db(settings))
        case "seed":
            return asyncio.run(_seed(settings))
        case "drain-outbox":
            return asyncio.run(_drain(settings))
        case "promote":
            return asyncio.run(_promote(settings, args.email))
        case _:
            parser.error(f"unknown command {args.command}")
            return 2


if __name__ == "__main__":
    sys.exit(main())
