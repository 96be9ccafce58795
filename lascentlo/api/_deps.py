"""
Request dependencies — the service container and the caller's identity.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from kungfu import Error, Ok, Result

from lascentlo.auth import Accounts, Passwords, SessionTokens, User
from lascentlo.catalog import SqlCatalog
from lascentlo.checkout import CheckoutWorkflow, PaymentConfirmation
from lascentlo.db import SessionFactory
from lascentlo.errors import Errors, ShopError
from lascentlo.fulfilment import Fulfilment
from lascentlo.notify import Dispatcher, Notifier
from lascentlo.orders import OrderRepository, PricingPolicy
from lascentlo.payments import PaymentProcessor
from lascentlo.settings import Settings


@dataclass(slots=True)
class Services:
    settings: Settings
    catalog: SqlCatalog
    orders: OrderRepository
    accounts: Accounts
    checkout: CheckoutWorkflow
    confirmation: PaymentConfirmation
    fulfilment: Fulfilment
    dispatcher: Dispatcher


def build_services(
    settings: Settings,
    session_factory: SessionFactory,
    *,
    processor: PaymentProcessor,
    notifier: Notifier,
) -> Services:
    """Wire every workflow with its collaborators. Nothing here is global."""
    catalog = SqlCatalog(session_factory)
    pricing = PricingPolicy(
        tax_rate=settings.tax_rate,
        free_shipping_over_cents=settings.free_shipping_threshold_cents,
        flat_shipping_cents=settings.flat_shipping_cents,
    )
    return Services(
        settings=settings,
        catalog=catalog,
        orders=OrderRepository(session_factory),
        accounts=Accounts(
            session_factory,
            Passwords(rounds=settings.password_hash_rounds),
            SessionTokens(
                settings.jwt_secret,
                algorithm=settings.jwt_algorithm,
                ttl=timedelta(days=settings.jwt_ttl_days),
            ),
            reset_ttl=timedelta(minutes=settings.reset_token_ttl_minutes),
        ),
        checkout=CheckoutWorkflow(
            session_factory, catalog, processor, pricing, currency=settings.currency
        ),
        confirmation=PaymentConfirmation(
            session_factory,
            processor,
            ttl_seconds=settings.confirmation_ttl_seconds,
            wait_timeout_seconds=settings.payment_timeout_seconds * 3,
        ),
        fulfilment=Fulfilment(
            session_factory, processor, delivery_days=settings.delivery_estimate_days
        ),
        dispatcher=Dispatcher(
            session_factory,
            notifier,
            max_attempts=settings.outbox_max_attempts,
            batch_size=settings.outbox_batch_size,
        ),
    )


def unwrap[T](result: Result[T, ShopError]) -> T:
    match result:
        case Ok(value):
            return value
        case Error(e):
            raise e


def get_services(request: Request) -> Services:
    return request.app.state.services


_bearer = HTTPBearer(auto_error=False)


async def current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> User:
    if credentials is None:
        raise Errors.unauthorized("Not authorized, no token")
    return unwrap(await get_services(request).accounts.authenticate(credentials.credentials))


async def admin_user(user: Annotated[User, Depends(current_user)]) -> User:
    if not user.is_admin:
        raise Errors.forbidden("Not authorized as an admin")
    return user


ServicesDep = Annotated[Services, Depends(get_services)]
CurrentUser = Annotated[User, Depends(current_user)]
AdminUser = Annotated[User, Depends(admin_user)]


__all__ = (
    "Services",
    "build_services",
    "unwrap",
    "get_services",
    "current_user",
    "admin_user",
    "ServicesDep",
    "CurrentUser",
    "AdminUser",
)
