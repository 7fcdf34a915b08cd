"""
Base for use cases that write to the ledger.

Wraps each write in a bounded retry on storage write conflicts. Business
errors raised inside the transaction are never retried.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from lotledger.application.services import get_lot_cache
from lotledger.config import get_logger, get_settings
from lotledger.core.exceptions import CommitConflictError, TransactionConflictError
from lotledger.core.interfaces.ledger_store import ILotLedgerStore
from lotledger.core.services.lot_cache import LotCache

logger = get_logger(__name__)

T = TypeVar("T")


class LedgerWriteUseCase:
    """Shared store access and conflict retry for ledger writes."""

    def __init__(
        self,
        ledger_store: ILotLedgerStore | None = None,
        lot_cache: LotCache | None = None,
    ):
        self._ledger_store = ledger_store
        self._lot_cache = lot_cache

    async def _get_ledger_store(self) -> ILotLedgerStore:
        if self._ledger_store is None:
            from lotledger.infrastructure.storage.sqlite import get_ledger_store

            self._ledger_store = await get_ledger_store()
        return self._ledger_store

    def _get_lot_cache(self) -> LotCache:
        if self._lot_cache is None:
            self._lot_cache = get_lot_cache()
        return self._lot_cache

    def _get_retry_decorator(self) -> Any:
        """Get tenacity retry decorator with current settings."""
        settings = get_settings()
        return retry(
            stop=stop_after_attempt(settings.ledger.commit_max_attempts),
            wait=wait_exponential(
                multiplier=settings.ledger.commit_retry_delay,
                min=settings.ledger.commit_retry_delay,
                max=settings.ledger.commit_retry_max_delay,
            ),
            retry=retry_if_exception_type(TransactionConflictError),
            before_sleep=self._log_retry,
            reraise=True,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        """Log retry attempts."""
        logger.warning(
            "commit_conflict_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _with_conflict_retry(
        self,
        item_id: str,
        operation: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Run a transactional operation, retrying on write conflicts.

        Raises:
            CommitConflictError: conflicts outlasted every attempt.
        """
        try:
            retry_decorator = self._get_retry_decorator()
            result = await retry_decorator(operation)(*args, **kwargs)
            return cast(T, result)
        except TransactionConflictError as e:
            attempts = get_settings().ledger.commit_max_attempts
            logger.error(
                "commit_conflict_exhausted",
                item_id=item_id,
                attempts=attempts,
                error=str(e),
            )
            raise CommitConflictError(item_id, attempts) from e
