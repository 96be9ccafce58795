"""
/api/auth and /api/users — sessions, account tokens, profile.
"""

from fastapi import APIRouter, BackgroundTasks

from lascentlo.api._deps import CurrentUser, ServicesDep, unwrap
from lascentlo.api._schemas import (
    ForgotPasswordIn,
    LoginIn,
    MessageOut,
    PasswordChangeIn,
    ProfileIn,
    RegisterIn,
    ResetPasswordIn,
    SessionOut,
    UserOut,
)

auth = APIRouter(prefix="/api/auth", tags=["auth"])
users = APIRouter(prefix="/api/users", tags=["users"])


@auth.post("/register", response_model=SessionOut, status_code=201)
async def register(body: RegisterIn, svc: ServicesDep, background: BackgroundTasks) -> SessionOut:
    session = unwrap(await svc.accounts.register(body.to_domain()))
    background.add_task(svc.dispatcher.drain)
    return SessionOut.from_domain(session)


@auth.post("/login", response_model=SessionOut)
async def login(body: LoginIn, svc: ServicesDep) -> SessionOut:
    return SessionOut.from_domain(unwrap(await svc.accounts.login(str(body.email), body.password)))


@auth.get("/me", response_model=UserOut)
async def me(user: CurrentUser) -> UserOut:
    return UserOut.from_domain(user)


@auth.post("/forgot-password", response_model=MessageOut)
async def forgot_password(
    body: ForgotPasswordIn, svc: ServicesDep, background: BackgroundTasks
) -> MessageOut:
    await svc.accounts.forgot_password(str(body.email))
    background.add_task(svc.dispatcher.drain)
    return MessageOut(message="If that account exists, a reset link has been sent")


@auth.post("/reset-password", response_model=SessionOut)
async def reset_password(body: ResetPasswordIn, svc: ServicesDep) -> SessionOut:
    return SessionOut.from_domain(unwrap(await svc.accounts.reset_password(body.token, body.password)))


@auth.post("/send-verification", response_model=MessageOut)
async def send_verification(
    user: CurrentUser, svc: ServicesDep, background: BackgroundTasks
) -> MessageOut:
    unwrap(await svc.accounts.send_verification(user.id))
    background.add_task(svc.dispatcher.drain)
    return MessageOut(message="Verification email sent")


@auth.get("/verify-email/{token}", response_model=UserOut)
async def verify_email(token: str, svc: ServicesDep) -> UserOut:
    return UserOut.from_domain(unwrap(await svc.accounts.verify_email(token)))


@users.get("/profile", response_model=UserOut)
async def profile(user: CurrentUser) -> UserOut:
    return UserOut.from_domain(user)


@users.put("/profile", response_model=UserOut)
async def update_profile(
    body: ProfileIn, user: CurrentUser, svc: ServicesDep, background: BackgroundTasks
) -> UserOut:
    updated = unwrap(await svc.accounts.update_profile(user.id, body.to_domain()))
    background.add_task(svc.dispatcher.drain)
    return UserOut.from_domain(updated)


@users.put("/password", response_model=MessageOut)
async def change_password(body: PasswordChangeIn, user: CurrentUser, svc: ServicesDep) -> MessageOut:
    unwrap(await svc.accounts.change_password(user.id, body.current_password, body.new_password))
    return MessageOut(message="Password updated")
