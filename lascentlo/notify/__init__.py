"""
Notifications — outbox of domain events and their delivery.

    from lascentlo import notify as N

    N.emit(session, N.DomainEvent(N.EventKind.ORDER_PLACED, email, order_id, payload))
    report = await dispatcher.drain()
"""

from lascentlo.notify._types import EventKind, DomainEvent, Notifier
from lascentlo.notify._outbox import emit, recipient_of, route, DrainReport, Dispatcher
from lascentlo.notify._log import LogNotifier

__all__ = (
    "EventKind",
    "DomainEvent",
    "Notifier",
    "emit",
    "recipient_of",
    "route",
    "DrainReport",
    "Dispatcher",
    "LogNotifier",
)
