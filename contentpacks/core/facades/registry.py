from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from contentpacks.core.errors import UnsupportedModelTypeError
from contentpacks.core.facades.base import EntityFacade
from contentpacks.core.model.identifiers import ModelType


class FacadeRegistry:
    """Maps a model type name to the facade that owns it."""

    def __init__(self, facades: Iterable[EntityFacade] = ()):
        self._facades: Dict[str, EntityFacade] = {}
        for f in facades:
            self.register(f)

    def register(self, facade: EntityFacade) -> None:
        name = facade.model_type.name
        if name in self._facades:
            raise ValueError(f"Duplicate facade for type: {name}")
        self._facades[name] = facade

    def get(self, model_type: ModelType) -> Optional[EntityFacade]:
        return self._facades.get(model_type.name)

    def require(self, model_type: ModelType) -> EntityFacade:
        facade = self.get(model_type)
        if facade is None:
            raise UnsupportedModelTypeError(model_type.name)
        return facade

    def facades(self) -> List[EntityFacade]:
        return list(self._facades.values())
