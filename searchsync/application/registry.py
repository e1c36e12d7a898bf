# searchsync/application/registry.py

from typing import Iterator

from searchsync.domain.errors import ConfigurationError
from searchsync.domain.models import SearchableModel, SearchableRecord


class ModelRegistry:
    """Searchable models known to this process, by name and by record type."""

    def __init__(self):
        self._by_name: dict[str, SearchableModel] = {}
        self._names_by_type: dict[type, str] = {}

    def register(self, model: SearchableModel) -> SearchableModel:
        self._by_name[model.name] = model
        self._names_by_type[type(model.prototype)] = model.name
        return model

    def get(self, name: str) -> SearchableModel:
        try:
            return self._by_name[name]
        except KeyError:
            raise ConfigurationError(f"Unknown searchable model: '{name}'") from None

    def name_for(self, record: SearchableRecord) -> str:
        try:
            return self._names_by_type[type(record)]
        except KeyError:
            raise ConfigurationError(
                f"{type(record).__name__} is not registered as a searchable model"
            ) from None

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[SearchableModel]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)
