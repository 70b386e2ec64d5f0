from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from cognito_jwt_verifier import AsyncCognitoJwtVerifier

from taxonomy_api.config import Settings
from taxonomy_api.db import Database


@dataclass
class AppContext:
    """Process state shared by every request, built once by ``create_app``."""

    settings: Settings
    database: Database
    verifier: AsyncCognitoJwtVerifier | None
    # Serializes structural writes to the category tree.
    tree_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        verifier = None
        if settings.cognito_issuer:
            verifier = AsyncCognitoJwtVerifier(
                settings.cognito_issuer, client_ids=settings.client_ids
            )
        return cls(
            settings=settings,
            database=Database(settings.database_url, echo=settings.database_echo),
            verifier=verifier,
        )
