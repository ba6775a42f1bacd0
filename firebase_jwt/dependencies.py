"""FastAPI dependencies for claim-aware authorization checks."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request

from firebase_jwt.types import DecodedIdToken


def get_current_user(request: Request) -> DecodedIdToken:
    """Return verified token claims set by FirebaseAuthMiddleware."""
    user = getattr(request.state, "user", None)
    if not isinstance(user, dict) or not user.get("uid"):
        raise HTTPException(status_code=401, detail="Invalid token.")
    return user  # type: ignore[return-value]


def require_claims(**expected: Any) -> Callable[[DecodedIdToken], DecodedIdToken]:
    """Require that the verified token carries every expected claim value."""

    def checker(user: Annotated[DecodedIdToken, Depends(get_current_user)]) -> DecodedIdToken:
        for name, value in expected.items():
            if user.get(name) != value:
                raise HTTPException(status_code=403, detail="Insufficient claims")
        return user

    return checker
