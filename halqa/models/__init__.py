"""Database models for the application."""

from halqa.models.author import AuthorDB, AuthorRequestDB
from halqa.models.comment import CommentDB
from halqa.models.post import PostDB
from halqa.models.setting import PreferenceDB, SettingDB

__all__ = [
    "AuthorDB",
    "AuthorRequestDB",
    "CommentDB",
    "PostDB",
    "PreferenceDB",
    "SettingDB",
]
