"""Request correlation: one future per request id, resolved exactly once."""

import asyncio
import itertools
from collections import OrderedDict
from typing import Dict, Optional

from fortune_uploader.config import logger
from fortune_uploader.models import TerminalOutcome

MAX_UNCLAIMED_OUTCOMES = 256


class RequestCorrelator:
    """
    Hands out request ids and delivers each request's terminal outcome.

    Ids are decimal strings counting up from 1 for the life of the process.
    Resolved outcomes nobody collects are kept up to max_unclaimed; past
    that the oldest are dropped.
    """

    def __init__(self, max_unclaimed: int = MAX_UNCLAIMED_OUTCOMES) -> None:
        self._counter = itertools.count(1)
        self._pending: Dict[str, asyncio.Future] = {}
        self._unclaimed: "OrderedDict[str, None]" = OrderedDict()
        self._max_unclaimed = max_unclaimed

    def next_request_id(self) -> str:
        return str(next(self._counter))

    def register(self, request_id: str) -> asyncio.Future:
        existing = self._pending.get(request_id)
        if existing is not None and not existing.done():
            raise ValueError(f"Request already pending: {request_id}")

        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        return future

    def is_pending(self, request_id: str) -> bool:
        future = self._pending.get(request_id)
        return future is not None and not future.done()

    def resolve(self, request_id: str, outcome: TerminalOutcome) -> bool:
        """Deliver the outcome. Returns False if the id is unknown or already resolved."""
        future = self._pending.get(request_id)
        if future is None:
            logger.warning(f"Dropping outcome for unknown request: {request_id}")
            return False
        if future.done():
            logger.warning(f"Request already resolved, dropping outcome: {request_id}")
            return False

        future.set_result(outcome)
        logger.info(f"Resolved request {request_id} with status={outcome.status}")
        self._track_unclaimed(request_id)
        return True

    def _track_unclaimed(self, request_id: str) -> None:
        self._unclaimed[request_id] = None
        while len(self._unclaimed) > self._max_unclaimed:
            stale_id, _ = self._unclaimed.popitem(last=False)
            self._pending.pop(stale_id, None)
            logger.warning(f"Evicting uncollected outcome for request: {stale_id}")

    def _forget(self, request_id: str) -> None:
        self._pending.pop(request_id, None)
        self._unclaimed.pop(request_id, None)

    async def wait(self, request_id: str) -> TerminalOutcome:
        future = self._pending[request_id]
        try:
            return await asyncio.shield(future)
        finally:
            if future.done():
                self._forget(request_id)

    def take(self, request_id: str) -> Optional[TerminalOutcome]:
        """
        Poll for an outcome without blocking.

        Returns None while pending. A resolved outcome is returned once and
        then forgotten.

        Raises:
            KeyError: If the id is unknown, already taken, or evicted
        """
        future = self._pending[request_id]
        if not future.done():
            return None

        self._forget(request_id)
        return future.result()
