"""
Accounts — registration, sessions, profile and one-time token flows.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta

import structlog
from kungfu import Error, Ok, Result
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from lascentlo import notify as N
from lascentlo._types import UserId, now
from lascentlo.auth._secrets import Passwords, SessionTokens, digest, one_time_token
from lascentlo.auth._types import Role, Session, User
from lascentlo.db import SessionFactory, UserTable
from lascentlo.errors import Errors, ShopError

log = structlog.get_logger(__name__)


def to_user(row: UserTable) -> User:
    return User(
        id=row.id,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        role=Role(row.role),
        is_verified=row.is_verified,
        created_at=row.created_at,
        last_login_at=row.last_login_at,
    )


def _normalize(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True, slots=True)
class Registration:
    email: str
    password: str
    first_name: str
    last_name: str


@dataclass(frozen=True, slots=True)
class ProfileChanges:
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None


class Accounts:
    def __init__(
        self,
        session_factory: SessionFactory,
        passwords: Passwords,
        tokens: SessionTokens,
        *,
        reset_ttl: timedelta = timedelta(hours=1),
    ) -> None:
        self._session = session_factory
        self._passwords = passwords
        self._tokens = tokens
        self._reset_ttl = reset_ttl

    # ═══════════════════════════════════════════════════════════════════════════
    # Sessions
    # ═══════════════════════════════════════════════════════════════════════════

    async def register(self, reg: Registration) -> Result[Session, ShopError]:
        email = _normalize(reg.email)
        token, token_digest = one_time_token()
        row = UserTable(
            id=f"usr_{uuid.uuid4().hex[:12]}",
            email=email,
            password_hash=self._passwords.hash(reg.password),
            first_name=reg.first_name,
            last_name=reg.last_name,
            role=Role.CUSTOMER.value,
            is_verified=False,
            verification_token_hash=token_digest,
            created_at=now(),
        )
        try:
            async with self._session() as session:
                async with session.begin():
                    taken = (
                        await session.execute(select(UserTable.id).where(UserTable.email == email))
                    ).scalar_one_or_none()
                    if taken is not None:
                        return Error(Errors.validation("User already exists"))
                    session.add(row)
                    N.emit(session, self._verification_event(row, token))
        except IntegrityError:
            return Error(Errors.validation("User already exists"))

        log.info("user_registered", user_id=row.id)
        return Ok(Session(token=self._tokens.issue(row.id), user=to_user(row)))

    async def login(self, email: str, password: str) -> Result[Session, ShopError]:
        async with self._session() as session:
            async with session.begin():
                row = await self._by_email(session, _normalize(email))
                if row is None or not self._passwords.verify(password, row.password_hash):
                    log.info("login_rejected")
                    return Error(Errors.unauthorized("Invalid credentials"))
                row.last_login_at = now()

        log.info("user_logged_in", user_id=row.id)
        return Ok(Session(token=self._tokens.issue(row.id), user=to_user(row)))

    async def authenticate(self, token: str) -> Result[User, ShopError]:
        user_id = self._tokens.subject(token)
        if user_id is None:
            return Error(Errors.unauthorized("Not authorized, token failed"))
        match await self.get(user_id):
            case Ok(user):
                return Ok(user)
            case Error(_):
                return Error(Errors.unauthorized("Not authorized, user no longer exists"))

    async def get(self, user_id: UserId) -> Result[User, ShopError]:
        async with self._session() as session:
            row = await session.get(UserTable, user_id)
            if row is None:
                return Error(Errors.not_found("User", user_id))
            return Ok(to_user(row))

    # ═══════════════════════════════════════════════════════════════════════════
    # Profile
    # ═══════════════════════════════════════════════════════════════════════════

    async def update_profile(
        self, user_id: UserId, changes: ProfileChanges
    ) -> Result[User, ShopError]:
        try:
            async with self._session() as session:
                async with session.begin():
                    row = await session.get(UserTable, user_id)
                    if row is None:
                        return Error(Errors.not_found("User", user_id))

                    if changes.first_name is not None:
                        row.first_name = changes.first_name
                    if changes.last_name is not None:
                        row.last_name = changes.last_name
                    if changes.email is not None and _normalize(changes.email) != row.email:
                        email = _normalize(changes.email)
                        if await self._by_email(session, email) is not None:
                            return Error(Errors.validation("Email already in use"))
                        token, token_digest = one_time_token()
                        row.email = email
                        row.is_verified = False
                        row.verification_token_hash = token_digest
                        N.emit(session, self._verification_event(row, token))
        except IntegrityError:
            return Error(Errors.validation("Email already in use"))

        return Ok(to_user(row))

    async def change_password(
        self, user_id: UserId, current: str, new: str
    ) -> Result[None, ShopError]:
        async with self._session() as session:
            async with session.begin():
                row = await session.get(UserTable, user_id)
                if row is None:
                    return Error(Errors.not_found("User", user_id))
                if not self._passwords.verify(current, row.password_hash):
                    return Error(Errors.unauthorized("Current password is incorrect"))
                row.password_hash = self._passwords.hash(new)

        log.info("password_changed", user_id=user_id)
        return Ok(None)

    async def promote(self, email: str) -> Result[User, ShopError]:
        async with self._session() as session:
            async with session.begin():
                row = await self._by_email(session, _normalize(email))
                if row is None:
                    return Error(Errors.not_found("User", email))
                row.role = Role.ADMIN.value

        log.info("user_promoted", user_id=row.id)
        return Ok(to_user(row))

    # ═══════════════════════════════════════════════════════════════════════════
    # One-time tokens
    # ═══════════════════════════════════════════════════════════════════════════

    async def forgot_password(self, email: str) -> None:
        """Mail a reset token. Unknown addresses are ignored without telling the caller."""
        async with self._session() as session:
            async with session.begin():
                row = await self._by_email(session, _normalize(email))
                if row is None:
                    log.info("password_reset_unknown_email")
                    return
                token, token_digest = one_time_token()
                row.reset_token_hash = token_digest
                row.reset_token_expires_at = now() + self._reset_ttl
                N.emit(
                    session,
                    N.DomainEvent(
                        kind=N.EventKind.PASSWORD_RESET,
                        recipient=row.email,
                        reference=row.id,
                        payload={"token": token, "firstName": row.first_name},
                    ),
                )
        log.info("password_reset_requested", user_id=row.id)

    async def reset_password(self, token: str, password: str) -> Result[Session, ShopError]:
        async with self._session() as session:
            async with session.begin():
                row = (
                    await session.execute(
                        select(UserTable).where(UserTable.reset_token_hash == digest(token))
                    )
                ).scalar_one_or_none()
                expires = row.reset_token_expires_at if row is not None else None
                if row is None or expires is None or expires < now():
                    return Error(Errors.validation("Invalid or expired token"))

                row.password_hash = self._passwords.hash(password)
                row.reset_token_hash = None
                row.reset_token_expires_at = None

        log.info("password_reset", user_id=row.id)
        return Ok(Session(token=self._tokens.issue(row.id), user=to_user(row)))

    async def send_verification(self, user_id: UserId) -> Result[None, ShopError]:
        async with self._session() as session:
            async with session.begin():
                row = await session.get(UserTable, user_id)
                if row is None:
                    return Error(Errors.not_found("User", user_id))
                if row.is_verified:
                    return Error(Errors.validation("Email already verified"))
                token, token_digest = one_time_token()
                row.verification_token_hash = token_digest
                N.emit(session, self._verification_event(row, token))
        return Ok(None)

    async def verify_email(self, token: str) -> Result[User, ShopError]:
        async with self._session() as session:
            async with session.begin():
                row = (
                    await session.execute(
                        select(UserTable).where(UserTable.verification_token_hash == digest(token))
                    )
                ).scalar_one_or_none()
                if row is None:
                    return Error(Errors.validation("Invalid verification token"))
                row.is_verified = True
                row.verification_token_hash = None

        log.info("email_verified", user_id=row.id)
        return Ok(to_user(row))

    # ═══════════════════════════════════════════════════════════════════════════

    @staticmethod
    async def _by_email(session, email: str) -> UserTable | None:
        return (
            await session.execute(select(UserTable).where(UserTable.email == email))
        ).scalar_one_or_none()

    @staticmethod
    def _verification_event(row: UserTable, token: str) -> N.DomainEvent:
        return N.DomainEvent(
            kind=N.EventKind.EMAIL_VERIFICATION,
            recipient=row.email,
            reference=row.id,
            payload={"token": token, "firstName": row.first_name},
        )


__all__ = ("Accounts", "Registration", "ProfileChanges", "to_user")
