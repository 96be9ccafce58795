import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from lascentlo import catalog as K
from lascentlo.db import ProductSizeTable
from lascentlo.errors import ErrorKind
from tests.support import FIFTY_ML, err, ok, rose_draft, stock_of


def draft(name: str, price: int, category: K.Category, description: str = "") -> K.ProductDraft:
    return K.ProductDraft(
        name=name,
        description=description or f"{name} eau de parfum",
        price_cents=price,
        sizes=(K.SizeVariant(value=50, unit="ml", price_cents=price, stock=5),),
        category=category,
    )


@pytest.fixture
async def shelf(catalog) -> dict[str, K.Product]:
    products = [
        draft("Cedar Trail", 6500, K.Category.WOODY),
        draft("Amalfi Zest", 5400, K.Category.CITRUS, "Lemon and bergamot"),
        draft("Oud Royale", 18000, K.Category.ORIENTAL),
        draft("Lemon Grove", 4200, K.Category.CITRUS),
    ]
    return {p.name: await catalog.create(p) for p in products}


async def test_create_and_get(catalog):
    product = await catalog.create(rose_draft())

    fetched = ok(await catalog.get(product.id))
    assert fetched.id.startswith("prd_")
    assert [(s.value, s.unit, s.stock) for s in fetched.sizes] == [(50, "ml", 10), (100, "ml", 3)]
    assert fetched.features == {"longevity": "long"}


async def test_filter_by_category_and_price(catalog, shelf):
    citrus = await catalog.search(K.ProductQuery(category=K.Category.CITRUS))
    assert {p.name for p in citrus.products} == {"Amalfi Zest", "Lemon Grove"}

    mid = await catalog.search(K.ProductQuery(min_price_cents=5000, max_price_cents=7000))
    assert {p.name for p in mid.products} == {"Cedar Trail", "Amalfi Zest"}


async def test_text_search_covers_description(catalog, shelf):
    page = await catalog.search(K.ProductQuery(search="lemon"))
    assert {p.name for p in page.products} == {"Amalfi Zest", "Lemon Grove"}


async def test_sort_and_paginate(catalog, shelf):
    page = await catalog.search(K.ProductQuery(sort=K.Sort.PRICE_ASC, page=2, page_size=3))
    assert [p.name for p in page.products] == ["Oud Royale"]
    assert (page.total, page.pages, page.page) == (4, 2, 2)

    desc = await catalog.search(K.ProductQuery(sort=K.Sort.PRICE_DESC, page_size=2))
    assert [p.name for p in desc.products] == ["Oud Royale", "Cedar Trail"]


async def test_deactivated_products_disappear(catalog, shelf):
    ok(await catalog.deactivate(shelf["Oud Royale"].id))

    page = await catalog.search(K.ProductQuery())
    assert page.total == 3
    err(await catalog.get(shelf["Oud Royale"].id), ErrorKind.NOT_FOUND)
    assert ok(await catalog.get(shelf["Oud Royale"].id, include_inactive=True)).is_active is False


async def test_replace_keeps_stock_of_matching_sizes(catalog, rose):
    updated = ok(
        await catalog.replace(
            rose.id,
            K.ProductDraft(
                name="Midnight Rose Intense",
                description=rose.description,
                price_cents=8999,
                sizes=(
                    K.SizeVariant(value=50, unit="ml", price_cents=8999, stock=10),
                    K.SizeVariant(value=10, unit="ml", price_cents=2500, stock=40),
                ),
                category=rose.category,
            ),
        )
    )
    assert updated.name == "Midnight Rose Intense"
    assert [s.key for s in updated.sizes] == [FIFTY_ML, K.SizeKey(10, "ml")]
    assert updated.variant(K.SizeKey(100, "ml")) is None


async def test_reviews_update_the_average(catalog, rose):
    ok(await catalog.review(rose.id, "usr_aaaaaaaaaaaa", 5, "Stunning"))
    product = ok(await catalog.review(rose.id, "usr_bbbbbbbbbbbb", 2, "Too sweet"))

    assert product.total_reviews == 2
    assert product.average_rating == 3.5
    assert {r.review for r in product.ratings} == {"Stunning", "Too sweet"}


async def test_one_review_per_customer(catalog, rose):
    ok(await catalog.review(rose.id, "usr_aaaaaaaaaaaa", 4, "Nice"))
    err(await catalog.review(rose.id, "usr_aaaaaaaaaaaa", 5, "Again"), ErrorKind.VALIDATION)
    err(await catalog.review(rose.id, "usr_cccccccccccc", 6, "Off the scale"), ErrorKind.VALIDATION)


async def test_take_is_conditional(database, rose, catalog):
    async with database() as session:
        async with session.begin():
            assert await K.take(session, rose.id, FIFTY_ML, 10)
            assert not await K.take(session, rose.id, FIFTY_ML, 1)

    assert stock_of(ok(await catalog.get(rose.id))) == 0


async def test_stock_never_goes_negative(database, rose):
    with pytest.raises(IntegrityError):
        async with database() as session:
            async with session.begin():
                await session.execute(
                    update(ProductSizeTable)
                    .where(ProductSizeTable.product_id == rose.id)
                    .values(stock=-1)
                )
