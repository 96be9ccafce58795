from sqlalchemy import func, select, text

from lascentlo.checkout import INTEGRATION_MARKER
from lascentlo.db import OrderTable, OutboxTable
from lascentlo.errors import ErrorKind
from lascentlo.orders import OrderStatus, PaymentStatus
from lascentlo.catalog import SizeKey
from tests.support import FIFTY_ML, cart, err, ok, rose_draft, stock_of


async def count(session_factory, table) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(table))).scalar_one()


async def placed_events(session_factory) -> list[OutboxTable]:
    async with session_factory() as session:
        stmt = select(OutboxTable).where(OutboxTable.kind == "order.placed")
        return list((await session.execute(stmt)).scalars().all())


async def test_two_bottles_priced_and_left_pending(workflow, customer, rose, processor):
    placed = ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 2))))
    order = placed.order

    assert order.totals.subtotal_cents == 15998
    assert order.totals.tax_cents == 1600
    assert order.totals.shipping_cents == 0
    assert order.total_cents == 17598
    assert order.status == OrderStatus.PENDING
    assert order.payment.status == PaymentStatus.PENDING
    assert order.items[0].size.price_cents == 7999
    assert placed.client_secret == "pi_test_1_secret"

    (request,) = processor.requests
    assert request.amount_cents == 17598
    assert request.metadata["order_id"] == order.id
    assert request.metadata.items() >= INTEGRATION_MARKER.items()


async def test_checkout_does_not_touch_stock(workflow, customer, rose, catalog):
    ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 4))))
    assert stock_of(ok(await catalog.get(rose.id))) == 10


async def test_small_cart_pays_flat_shipping(workflow, customer, rose):
    order = ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1)))).order
    assert order.totals.shipping_cents == 1000
    assert order.total_cents == 7999 + 1000 + 800


async def test_insufficient_stock_writes_nothing(workflow, customer, catalog, database, processor):
    scarce = await catalog.create(rose_draft(stock=3))

    e = err(
        await workflow.place_order(customer, cart((scarce.id, FIFTY_ML, 5))),
        ErrorKind.INSUFFICIENT_STOCK,
    )
    assert "3 available" in e.message
    assert await count(database, OrderTable) == 0
    assert processor.requests == []


async def test_repeated_lines_are_checked_together(workflow, customer, catalog, database):
    scarce = await catalog.create(rose_draft(stock=3))

    err(
        await workflow.place_order(
            customer, cart((scarce.id, FIFTY_ML, 2), (scarce.id, FIFTY_ML, 2))
        ),
        ErrorKind.INSUFFICIENT_STOCK,
    )

    order = ok(
        await workflow.place_order(
            customer, cart((scarce.id, FIFTY_ML, 1), (scarce.id, FIFTY_ML, 2))
        )
    ).order
    assert len(order.items) == 1
    assert order.items[0].quantity == 3


async def test_unknown_size_is_rejected(workflow, customer, rose, database):
    err(
        await workflow.place_order(customer, cart((rose.id, SizeKey(30, "ml"), 1))),
        ErrorKind.INVALID_SIZE,
    )
    assert await count(database, OrderTable) == 0


async def test_unknown_or_inactive_product_is_not_found(workflow, customer, rose, catalog):
    err(
        await workflow.place_order(customer, cart(("prd_000000000000", FIFTY_ML, 1))),
        ErrorKind.NOT_FOUND,
    )

    ok(await catalog.deactivate(rose.id))
    err(
        await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1))),
        ErrorKind.NOT_FOUND,
    )


async def test_empty_cart_is_invalid(workflow, customer):
    err(await workflow.place_order(customer, cart()), ErrorKind.VALIDATION)


async def test_processor_failure_leaves_no_order(workflow, customer, rose, processor, database):
    processor.fail_create = RuntimeError("card network down")

    err(
        await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1))),
        ErrorKind.PAYMENT_PROCESSOR,
    )
    assert await count(database, OrderTable) == 0
    assert await placed_events(database) == []


async def test_failed_persist_cancels_the_intent(workflow, customer, rose, processor, database):
    # Drop the orders table underneath the workflow so the insert fails
    async with database() as session:
        async with session.begin():
            await session.execute(text("DROP TABLE orders"))

    err(
        await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1))),
        ErrorKind.STORAGE,
    )
    assert processor.cancelled == ["pi_test_1"]
    assert await placed_events(database) == []


async def test_order_placed_event_written_with_order(workflow, customer, rose, database):
    order = ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1)))).order

    events = await placed_events(database)
    assert [(e.kind, e.recipient, e.reference) for e in events] == [
        ("order.placed", customer.email, order.id)
    ]
    assert events[0].payload["firstName"] == "Ana"
    assert events[0].payload["total"] == 97.99


async def test_price_snapshot_survives_catalog_edit(
    workflow, customer, rose, catalog, services
):
    order = ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1)))).order

    ok(await catalog.replace(rose.id, rose_draft(price_cents=9999)))

    stored = ok(await services.orders.get(order.id))
    assert stored.items[0].size.price_cents == 7999
    assert stored.total_cents == order.total_cents


async def test_quote_has_no_side_effects(workflow, rose, processor, database):
    quote = ok(await workflow.quote(cart((rose.id, FIFTY_ML, 2))))
    assert quote.total_cents == 17598
    assert processor.requests == []
    assert await count(database, OrderTable) == 0
