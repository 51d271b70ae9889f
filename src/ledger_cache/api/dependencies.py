"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - One QueryCache per process, created at startup, closed at shutdown
"""

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from ledger_cache.config import settings
from ledger_cache.handlers import LedgerHandler
from ledger_cache.logging import configure_logging, get_logger
from ledger_cache.repositories import HttpLedgerClient
from ledger_cache.services import LedgerService

logger = get_logger("ledger_cache.api")


def get_handler(request: Request) -> LedgerHandler:
    """Dependency injection for LedgerHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "ledger_handler", None)
    if handler is None:
        raise RuntimeError("LedgerHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores them in app.state:
    1. Client (ledger API access) - unless a test already provided a service
    2. Service (cache + aggregation) - app.state.ledger_service
    3. Handler (HTTP endpoints) - app.state.ledger_handler

    Cleanup:
        Closes the cache and client, removes services from app.state
    """
    configure_logging()

    service = getattr(app.state, "ledger_service", None)
    if service is None:
        service = LedgerService.create(client=HttpLedgerClient.create())

    app.state.ledger_service = service
    app.state.ledger_handler = LedgerHandler(ledger_service=service)

    logger.info("Ledger cache started", ledger_api_url=settings.ledger_api_url)

    yield

    await service.aclose()
    del app.state.ledger_handler
    del app.state.ledger_service
    logger.info("Ledger cache shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[LedgerHandler, Depends(get_handler)]
