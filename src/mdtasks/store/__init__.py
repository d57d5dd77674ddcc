from .file_store import FileProjectStore
from .memory_store import MemoryProjectStore

__all__ = [
    "FileProjectStore",
    "MemoryProjectStore",
]
