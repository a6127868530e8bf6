from .base import EntityFacade
from .collector import CollectorFacade
from .registry import FacadeRegistry

__all__ = [
    "EntityFacade",
    "CollectorFacade",
    "FacadeRegistry",
]
