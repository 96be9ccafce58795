import asyncio

import pytest

from lascentlo.__main__ import SAMPLE_CATALOG, main
from lascentlo.catalog import ProductQuery, SqlCatalog
from lascentlo.db import create_database


@pytest.fixture
def db_url(tmp_path, monkeypatch) -> str:
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("LASCENTLO_DATABASE_URL", url)
    # Keep the global structlog setup untouched for the rest of the suite
    monkeypatch.setattr("lascentlo.__main__.configure_logging", lambda *a, **kw: None)
    return url


async def _count_products(url: str) -> int:
    session_factory, engine = await create_database(url)
    try:
        return (await SqlCatalog(session_factory).search(ProductQuery(page_size=50))).total
    finally:
        await engine.dispose()


def test_init_db_and_seed(db_url, capsys):
    assert main(["init-db"]) == 0
    assert main(["seed"]) == 0

    assert "Midnight Rose" in capsys.readouterr().out
    assert asyncio.run(_count_products(db_url)) == len(SAMPLE_CATALOG)


def test_drain_with_nothing_pending(db_url, capsys):
    assert main(["drain-outbox"]) == 0
    assert "delivered=0 failed=0" in capsys.readouterr().out


def test_promote_unknown_user(db_url, capsys):
    assert main(["promote", "ghost@lascentlo.com"]) == 1
    assert "not found" in capsys.readouterr().out


def test_command_is_required():
    with pytest.raises(SystemExit):
        main([])
