from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel

from app.core.config import get_settings

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so public catalog routes still work for guests.
bearer_scheme = HTTPBearer(auto_error=False)


class Principal(BaseModel):
    """
    Caller identity read from the marketplace access token.

    The token is also forwarded as-is to the marketplace API.
    """

    id: str
    role: str
    token: str
    name: str | None = None
    email: str | None = None

    @property
    def is_customer(self) -> bool:
        return self.role == "customer"


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a marketplace access token (JWT).

    Verification:
      - signature (JWT_ALG using JWT_SECRET)
      - expiration time (exp)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal | None:
    """
    Resolve the caller from the bearer token.

    Returns:
        Principal if a token is present, else None for guests.

    Raises:
        HTTPException(401): if the token is invalid or lacks id/role.
    """
    if credentials is None:
        return None  # guest mode

    token = credentials.credentials
    payload = decode_access_token(token)
    user_id = payload.get("id") or payload.get("sub")
    role = payload.get("role")

    if not user_id or not role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing id/role",
        )

    return Principal(
        id=str(user_id),
        role=role,
        token=token,
        name=payload.get("name"),
        email=payload.get("email"),
    )


def require_auth(principal: Principal | None = Depends(get_current_principal)) -> Principal:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if no token was sent.
    """
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return principal


def require_customer(principal: Principal = Depends(require_auth)) -> Principal:
    """
    Enforce that only customers can access a route.

    Use this for:
      - cart endpoints
      - checkout endpoints
      - wishlist endpoints
    Sellers and admins will be rejected with 403.
    """
    if not principal.is_customer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only customers can access the shopping cart",
        )
    return principal
