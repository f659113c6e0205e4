# billing/api/auth.py

from typing import Optional

from fastapi import APIRouter, Header, HTTPException

from billing.db.engine import get_engine
from billing.models.auth import AuthOut, Credentials, UserOut
from billing.models.common import SuccessOut
from billing.services import auth as service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthOut, status_code=201)
def register(payload: Credentials) -> AuthOut:
    user, token = service.register_user(get_engine(), payload.email, payload.password)
    return AuthOut(user=UserOut(**user), token=token)


@router.post("/login", response_model=AuthOut)
def login(payload: Credentials) -> AuthOut:
    user, token = service.login_user(get_engine(), payload.email, payload.password)
    return AuthOut(user=UserOut(**user), token=token)


@router.post("/logout", response_model=SuccessOut)
def logout() -> SuccessOut:
    # Tokens are stateless; the client just drops its copy.
    return SuccessOut(success=True)


@router.get("/me", response_model=UserOut)
def me(authorization: Optional[str] = Header(default=None)) -> UserOut:
    scheme, _, token = (authorization or "").partition(" ")
    user_id = service.verify_token(token) if scheme.lower() == "bearer" else None
    user = service.get_user(get_engine(), user_id) if user_id is not None else None

    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return UserOut(**user)
