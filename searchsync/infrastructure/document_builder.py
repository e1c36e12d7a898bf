# searchsync/infrastructure/document_builder.py

from typing import Any

from searchsync.domain.models import PRIMARY_KEY, SearchableRecord, to_index_value


class DocumentBuilder:
    """
    Record -> engine document.

    The document always carries the record's search key under ``id``: it is
    injected when the projection left it out, and it replaces a projected
    ``id`` that holds something else (e.g. the numeric id of a uuid-keyed record).
    """

    def build(self, record: SearchableRecord) -> dict[str, Any]:
        document = dict(record.to_document())
        key = to_index_value(record.search_key)
        if document.get(PRIMARY_KEY) != key:
            document[PRIMARY_KEY] = key
        return document
