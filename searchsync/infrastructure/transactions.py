# searchsync/infrastructure/transactions.py

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from searchsync.domain.interfaces import TransactionManager


logger = logging.getLogger(__name__)


class TransactionScope(TransactionManager):
    """
    Unit-of-work transaction manager for hosts without an ORM commit hook.

    Wrap writes in ``with scope.transaction():``. Callbacks registered inside
    run once the outermost block exits cleanly; a block that exits with an
    exception discards the callbacks registered inside it. Use one scope per
    request or unit of work.
    """

    def __init__(self):
        self._levels: list[list[Callable[[], Any]]] = []

    def in_transaction(self) -> bool:
        return bool(self._levels)

    def after_commit(self, callback: Callable[[], Any]) -> None:
        if not self._levels:
            callback()
            return
        self._levels[-1].append(callback)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self._levels.append([])
        try:
            yield
        except BaseException:
            dropped = self._levels.pop()
            if dropped:
                logger.debug("Rolled back; dropped %d after-commit callbacks", len(dropped))
            raise

        callbacks = self._levels.pop()
        if self._levels:
            # Nested block: its callbacks wait for the enclosing commit.
            self._levels[-1].extend(callbacks)
            return

        failures: list[Exception] = []
        for callback in callbacks:
            try:
                callback()
            except Exception as exc:
                logger.exception("After-commit callback failed")
                failures.append(exc)

        # Every committed callback runs; the first failure surfaces afterwards.
        if failures:
            raise failures[0]
