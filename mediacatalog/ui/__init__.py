"""Qt models for catalog views."""

from .media_model import MediaListModel

__all__ = [
    'MediaListModel',
]
