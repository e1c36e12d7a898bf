# searchsync/infrastructure/batch_indexer.py

import logging
from typing import Iterable, Iterator, Optional

from searchsync.domain.errors import MixedIndexBatchError
from searchsync.domain.models import SearchableRecord
from searchsync.infrastructure.index_manager import IndexManager


logger = logging.getLogger(__name__)


def resolve_batch_index(records: list[SearchableRecord]) -> Optional[str]:
    """
    Index name shared by every record, or None for an empty batch.
    Raises ``MixedIndexBatchError`` if the records target more than one index.
    """
    if not records:
        return None

    index_name = records[0].index_name
    for record in records[1:]:
        if record.index_name != index_name:
            raise MixedIndexBatchError(index_name, record.index_name)
    return index_name


def chunked(records: list[SearchableRecord], size: int) -> Iterator[list[SearchableRecord]]:
    for start in range(0, len(records), size):
        yield records[start:start + size]


class BatchIndexer:
    """
    Writes and deletes records in batches of ``IndexManager.batch_size``.

    N records produce ceil(N / batch_size) requests, each sent in input
    order; the last one carries the remainder. All records of one call must
    target the same index.
    """

    def __init__(self, index_manager: IndexManager):
        self._index_manager = index_manager

    def index_many(self, records: Iterable[SearchableRecord]) -> int:
        """Returns the number of write requests issued."""
        records = list(records)
        index_name = resolve_batch_index(records)
        if index_name is None:
            return 0

        builder = self._index_manager.document_builder
        requests = 0
        for batch in chunked(records, self._index_manager.batch_size):
            documents = [builder.build(record) for record in batch]
            self._index_manager.add_documents(index_name, documents)
            requests += 1
            logger.info("Indexed %d documents into '%s'", len(documents), index_name)
        return requests

    def remove_many(self, records: Iterable[SearchableRecord]) -> int:
        """Returns the number of delete requests issued."""
        records = list(records)
        index_name = resolve_batch_index(records)
        if index_name is None:
            return 0

        requests = 0
        for batch in chunked(records, self._index_manager.batch_size):
            keys = [record.search_key for record in batch]
            self._index_manager.delete_documents(index_name, keys)
            requests += 1
            logger.info("Removed %d documents from '%s'", len(keys), index_name)
        return requests
