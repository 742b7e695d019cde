"""Repository layer for content store operations."""

from halqa.repositories.author import (
    AuthorRepository,
    AuthorRequestRepository,
    generate_api_token,
)
from halqa.repositories.comment import CommentRepository
from halqa.repositories.post import PostRepository
from halqa.repositories.setting import (
    JOIN_DISABLED_KEY,
    PreferenceRepository,
    SettingRepository,
)

__all__ = [
    "JOIN_DISABLED_KEY",
    "AuthorRepository",
    "AuthorRequestRepository",
    "CommentRepository",
    "PostRepository",
    "PreferenceRepository",
    "SettingRepository",
    "generate_api_token",
]
