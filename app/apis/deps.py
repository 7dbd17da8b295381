from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional, Union

import jwt
from fastapi import Depends, Header, HTTPException, status

from app.core.config import settings
from app.modules.flashcards.main import DeckGenerator


# Guest and account owner ids never share a namespace
GUEST_PREFIX = "guest:"
ACCOUNT_PREFIX = "acct:"


def guest_owner_id(local_id: str) -> str:
    return f"{GUEST_PREFIX}{local_id}"


def account_owner_id(account_id: str) -> str:
    return f"{ACCOUNT_PREFIX}{account_id}"


@dataclass(frozen=True)
class Guest:
    """Anonymous visitor identified by a locally generated UUID."""

    local_id: str

    @property
    def owner_id(self) -> str:
        return guest_owner_id(self.local_id)


@dataclass(frozen=True)
class Authenticated:
    account_id: str

    @property
    def owner_id(self) -> str:
        return account_owner_id(self.account_id)


UserIdentity = Union[Guest, Authenticated]


def _decode_account_id(token: str) -> str:
    try:
        claims = jwt.decode(
            token,
            settings.app.jwt_secret,
            algorithms=[settings.jwt.algorithm],
            audience=settings.jwt.application_id,
            issuer=settings.jwt.issuer,
        )
    except jwt.PyJWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}"
        ) from e
    sub = claims.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no subject"
        )
    return str(sub)


def _parse_guest_id(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return str(uuid.UUID(value.strip()))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="X-Guest-Id must be a UUID"
        )


async def resolve_identity(
    authorization: Optional[str] = Header(default=None),
    x_guest_id: Optional[str] = Header(default=None),
) -> UserIdentity:
    """Resolve the caller from a bearer token, falling back to a guest id.

    An invalid bearer token is rejected rather than downgraded to guest.
    """
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        return Authenticated(account_id=_decode_account_id(token))

    guest_id = _parse_guest_id(x_guest_id)
    if guest_id:
        return Guest(local_id=guest_id)

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def require_account(
    identity: UserIdentity = Depends(resolve_identity),
) -> Authenticated:
    if not isinstance(identity, Authenticated):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in required"
        )
    return identity


_generator: Optional[DeckGenerator] = None


def get_deck_generator() -> DeckGenerator:
    global _generator
    if _generator is None:
        _generator = DeckGenerator()
    return _generator
