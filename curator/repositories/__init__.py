from curator.repositories.base_repository import BaseRepository
from curator.repositories.chunk_repository import ChunkRepository
from curator.repositories.document_repository import DocumentRepository
from curator.repositories.profile_repository import ProfileRepository
from curator.repositories.setting_repository import SettingRepository
from curator.repositories.vector_repository import VectorRepository

__all__ = [
    "BaseRepository",
    "ChunkRepository",
    "DocumentRepository",
    "ProfileRepository",
    "SettingRepository",
    "VectorRepository",
]
