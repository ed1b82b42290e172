"""Database module for SQLAlchemy models."""

from curator.database.models import Document, DocumentChunk, KbVector, Profile, Setting

__all__ = [
    "Profile",
    "Document",
    "DocumentChunk",
    "KbVector",
    "Setting",
]
