from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from taxonomy_api.auth import require_admin
from taxonomy_api.config import Settings


class FakeVerifier:
    def __init__(self, claims=None, error: Exception | None = None) -> None:
        self._claims = claims or {}
        self._error = error
        self.tokens: list[str] = []

    async def verify_access_token(self, token: str) -> dict:
        self.tokens.append(token)
        if self._error is not None:
            raise self._error
        return self._claims


def make_context(verifier) -> SimpleNamespace:
    return SimpleNamespace(settings=Settings(admin_group="admin"), verifier=verifier)


def bearer(token: str = "token") -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


async def test_require_admin_accepts_admin_group() -> None:
    verifier = FakeVerifier(
        {"sub": "user-1", "email": "admin@example.com", "cognito:groups": ["admin"]}
    )

    admin = await require_admin(credentials=bearer("abc"), context=make_context(verifier))

    assert admin.subject == "user-1"
    assert admin.email == "admin@example.com"
    assert verifier.tokens == ["abc"]


async def test_require_admin_rejects_non_admin() -> None:
    verifier = FakeVerifier({"sub": "user-2", "cognito:groups": ["readers"]})

    with pytest.raises(HTTPException) as exc:
        await require_admin(credentials=bearer(), context=make_context(verifier))

    assert exc.value.status_code == 403


async def test_require_admin_rejects_invalid_token() -> None:
    verifier = FakeVerifier(error=ValueError("Token expired"))

    with pytest.raises(HTTPException) as exc:
        await require_admin(credentials=bearer(), context=make_context(verifier))

    assert exc.value.status_code == 401
    assert exc.value.detail == "Token expired"
    assert exc.value.headers == {"WWW-Authenticate": "Bearer"}


async def test_require_admin_rejects_missing_sub() -> None:
    verifier = FakeVerifier({"cognito:groups": ["admin"]})

    with pytest.raises(HTTPException) as exc:
        await require_admin(credentials=bearer(), context=make_context(verifier))

    assert exc.value.status_code == 401


async def test_require_admin_without_credentials() -> None:
    with pytest.raises(HTTPException) as exc:
        await require_admin(credentials=None, context=make_context(FakeVerifier()))

    assert exc.value.status_code == 401


async def test_require_admin_without_configured_verifier() -> None:
    with pytest.raises(HTTPException) as exc:
        await require_admin(credentials=bearer(), context=make_context(None))

    assert exc.value.status_code == 401
    assert exc.value.detail == "Authentication is not configured."
