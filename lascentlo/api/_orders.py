"""
/api/orders — checkout, payment confirmation, order history, admin status.
"""

from fastapi import APIRouter, BackgroundTasks
from kungfu import Error

from lascentlo.checkout import Customer
from lascentlo.errors import ErrorKind, Errors
from lascentlo.orders import OrderStatus
from lascentlo.api._deps import AdminUser, CurrentUser, ServicesDep, unwrap
from lascentlo.api._schemas import (
    CheckoutIn,
    ConfirmedOut,
    ConfirmPaymentIn,
    OrderOut,
    PlacedOrderOut,
    StatusIn,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=PlacedOrderOut, status_code=201)
async def create_order(
    body: CheckoutIn, user: CurrentUser, svc: ServicesDep, background: BackgroundTasks
) -> PlacedOrderOut:
    customer = Customer(id=user.id, email=user.email, first_name=user.first_name)
    placed = unwrap(await svc.checkout.place_order(customer, body.to_domain()))
    background.add_task(svc.dispatcher.drain)
    return PlacedOrderOut.from_domain(placed)


@router.get("", response_model=list[OrderOut])
async def list_orders(
    _: AdminUser, svc: ServicesDep, status: OrderStatus | None = None
) -> list[OrderOut]:
    return [OrderOut.from_domain(o) for o in await svc.orders.all(status)]


@router.get("/my-orders", response_model=list[OrderOut])
async def my_orders(user: CurrentUser, svc: ServicesDep) -> list[OrderOut]:
    return [OrderOut.from_domain(o) for o in await svc.orders.for_user(user.id)]


@router.post("/confirm-payment", response_model=ConfirmedOut)
async def confirm_payment(
    body: ConfirmPaymentIn, user: CurrentUser, svc: ServicesDep, background: BackgroundTasks
) -> ConfirmedOut:
    result = await svc.confirmation.confirm(user.id, body.to_domain(), is_admin=user.is_admin)
    match result:
        case Error(e) if e.kind == ErrorKind.STOCK_EXHAUSTED:
            # Background tasks do not run for error responses; send the cancellation now
            await svc.dispatcher.drain()
            raise e
        case _:
            background.add_task(svc.dispatcher.drain)
            return ConfirmedOut.from_domain(unwrap(result))


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(order_id: str, user: CurrentUser, svc: ServicesDep) -> OrderOut:
    order = unwrap(await svc.orders.get(order_id))
    if order.user_id != user.id and not user.is_admin:
        raise Errors.forbidden("Not authorized to view this order")
    return OrderOut.from_domain(order)


@router.patch("/{order_id}/status", response_model=OrderOut)
async def update_status(
    order_id: str, body: StatusIn, _: AdminUser, svc: ServicesDep, background: BackgroundTasks
) -> OrderOut:
    order = unwrap(await svc.fulfilment.update_status(order_id, body.status))
    background.add_task(svc.dispatcher.drain)
    return OrderOut.from_domain(order)
