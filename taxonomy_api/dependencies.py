from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taxonomy_api.context import AppContext

READ_ONLY_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_session(
    request: Request, context: AppContext = Depends(get_context)
) -> AsyncIterator[AsyncSession]:
    """One session per request, committed when the handler succeeds.

    Writes hold the tree lock until the commit has finished, so a cascade
    never interleaves with another structural change.
    """
    if request.method in READ_ONLY_METHODS:
        async with context.database.session_scope() as session:
            yield session
        return

    async with context.tree_lock:
        async with context.database.session_scope() as session:
            yield session
