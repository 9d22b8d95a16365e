from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session
from storefront.config import settings
from storefront.database import get_session
from storefront.errors import AuthenticationError
from storefront.models.user import User
from storefront.schemas.user_schemas import Principal

# Token issuance lives in the credential service; this app only verifies.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()

    expire = datetime.now(timezone.utc) + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )
    return encoded_jwt


def create_token_for_user(user: User, expires_delta: Optional[timedelta] = None):
    return create_access_token(
        {"sub": str(user.id), "email": user.email, "role": user.role},
        expires_delta,
    )


def decode_access_token(token: str):
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return payload
    except JWTError:
        return None


def get_current_principal(
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session)
) -> Principal:
    if not token:
        raise AuthenticationError("Missing authorization header")

    payload = decode_access_token(token)

    if payload is None:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("user_id") or payload.get("sub")

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")

    user = session.get(User, user_id)

    if user is None:
        raise AuthenticationError("User not found")

    # role comes from the users row, not from the token claims
    return Principal(id=user.id, email=user.email, role=user.role)
