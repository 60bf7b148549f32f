"""Repository access: the ``ModelRepository`` protocol and its reference stores."""

from resource_validation.repository.base import ModelRepository, ResourceHandle, normalize_path
from resource_validation.repository.memory import InMemoryRepository
from resource_validation.repository.yaml_store import load_yaml_repository

__all__ = [
    "InMemoryRepository",
    "ModelRepository",
    "ResourceHandle",
    "load_yaml_repository",
    "normalize_path",
]
