from datetime import timedelta

import pytest
from sqlalchemy import select

from lascentlo import fulfilment
from lascentlo.checkout import ConfirmPayment
from lascentlo.db import OutboxTable
from lascentlo.errors import ErrorKind, Errors
from lascentlo.orders import OrderStatus
from tests.support import FIFTY_ML, cart, err, ok, racing_locate


@pytest.fixture
async def paid(workflow, confirmation, customer, rose):
    order = ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1)))).order
    return ok(
        await confirmation.confirm(customer.id, ConfirmPayment(order.id, order.payment.intent_id))
    )


async def test_shipping_stamps_tracking_and_estimate(services, paid, database):
    shipped = ok(await services.fulfilment.update_status(paid.id, OrderStatus.SHIPPED))

    assert shipped.status == OrderStatus.SHIPPED
    assert shipped.tracking_number is not None
    assert shipped.tracking_number.startswith("TRK")
    assert shipped.tracking_number[3:].isdigit()
    assert shipped.estimated_delivery is not None
    assert shipped.estimated_delivery - shipped.updated_at == timedelta(days=7)

    async with database() as session:
        kinds = (
            await session.execute(
                select(OutboxTable.kind).where(OutboxTable.reference == paid.id)
            )
        ).scalars().all()
    assert "order.shipped" in kinds


async def test_full_lifecycle(services, paid):
    ok(await services.fulfilment.update_status(paid.id, OrderStatus.SHIPPED))
    delivered = ok(await services.fulfilment.update_status(paid.id, OrderStatus.DELIVERED))
    assert delivered.status == OrderStatus.DELIVERED

    err(
        await services.fulfilment.update_status(paid.id, OrderStatus.CANCELLED),
        ErrorKind.ILLEGAL_TRANSITION,
    )


async def test_skipping_ahead_is_rejected(services, workflow, customer, rose):
    order = ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1)))).order

    err(
        await services.fulfilment.update_status(order.id, OrderStatus.SHIPPED),
        ErrorKind.ILLEGAL_TRANSITION,
    )
    assert ok(await services.orders.get(order.id)).status == OrderStatus.PENDING


async def test_unpaid_order_cannot_start_processing(services, workflow, customer, rose):
    order = ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1)))).order

    err(
        await services.fulfilment.update_status(order.id, OrderStatus.PROCESSING),
        ErrorKind.ILLEGAL_TRANSITION,
    )


async def test_cancelling_keeps_stock_as_is(services, paid, catalog, rose):
    cancelled = ok(await services.fulfilment.update_status(paid.id, OrderStatus.CANCELLED))
    assert cancelled.status == OrderStatus.CANCELLED

    product = ok(await catalog.get(rose.id))
    assert product.variant(FIFTY_ML).stock == 9


async def test_each_change_bumps_the_version(services, paid):
    shipped = ok(await services.fulfilment.update_status(paid.id, OrderStatus.SHIPPED))
    assert shipped.version == paid.version + 1


async def test_unknown_order(services):
    err(
        await services.fulfilment.update_status("ord_000000000000", OrderStatus.SHIPPED),
        ErrorKind.NOT_FOUND,
    )


async def test_cancelling_an_unpaid_order_voids_its_intent(services, workflow, customer, rose, processor):
    order = ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1)))).order

    ok(await services.fulfilment.update_status(order.id, OrderStatus.CANCELLED))

    assert processor.cancelled == [order.payment.intent_id]


async def test_cancelling_a_paid_order_leaves_the_charge_alone(services, paid, processor):
    ok(await services.fulfilment.update_status(paid.id, OrderStatus.CANCELLED))

    assert processor.cancelled == []


async def test_cancellation_sticks_when_the_processor_is_down(services, workflow, customer, rose, processor):
    order = ok(await workflow.place_order(customer, cart((rose.id, FIFTY_ML, 1)))).order
    processor.fail_cancel = Errors.payment_unavailable()

    cancelled = ok(await services.fulfilment.update_status(order.id, OrderStatus.CANCELLED))

    assert cancelled.status == OrderStatus.CANCELLED
    assert ok(await services.orders.get(order.id)).status == OrderStatus.CANCELLED


async def test_concurrent_change_is_a_conflict(services, paid, database, monkeypatch):
    monkeypatch.setattr(fulfilment, "locate", racing_locate(database))

    e = err(
        await services.fulfilment.update_status(paid.id, OrderStatus.SHIPPED),
        ErrorKind.CONFLICT,
    )
    assert e.retryable
    stored = ok(await services.orders.get(paid.id))
    assert stored.status == OrderStatus.PROCESSING
    assert stored.tracking_number is None

    assert ok(await services.fulfilment.update_status(paid.id, OrderStatus.SHIPPED)).status == (
        OrderStatus.SHIPPED
    )
