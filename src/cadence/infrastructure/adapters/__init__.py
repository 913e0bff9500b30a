# Infrastructure Store Adapters Package
from .memory_store import InMemoryCardStore
from .rest_store import RestCardStore
from .yaml_store import YamlCardStore

__all__ = ["InMemoryCardStore", "RestCardStore", "YamlCardStore"]
