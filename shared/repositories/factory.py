"""
shared/repositories/factory.py
Backend selection (STORAGE_BACKEND) and the FastAPI repository dependency.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from config.settings import settings
from shared.repositories.base import Repository
from shared.repositories.memory import MemoryRepository

_memory_repository: Optional[MemoryRepository] = None


def get_memory_repository() -> MemoryRepository:
    """Process-wide in-memory store, created on first use."""
    global _memory_repository
    if _memory_repository is None:
        _memory_repository = MemoryRepository()
    return _memory_repository


@asynccontextmanager
async def repository_context() -> AsyncGenerator[Repository, None]:
    """Context manager version for use outside of FastAPI routes."""
    if settings.STORAGE_BACKEND == "memory":
        yield get_memory_repository()
        return

    from config.database import get_db_context
    from shared.repositories.sql import SqlRepository

    async with get_db_context() as session:
        yield SqlRepository(session)


async def get_repository() -> AsyncGenerator[Repository, None]:
    """
    FastAPI dependency: yields the configured repository.

    Usage:
        @router.get("/providers/{provider_id}")
        async def get_provider(provider_id: int, repo: Repository = Depends(get_repository)):
            ...
    """
    async with repository_context() as repo:
        yield repo
