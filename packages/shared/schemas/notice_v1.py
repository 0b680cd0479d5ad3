"""Shared notice schema (v1).

Transient, user-facing notifications produced by every sales operation. The agent UI
renders these as short toasts; they never block interaction with the rest of the screen.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class NoticeCategoryV1(str, Enum):
    ERROR = "error"
    INFO = "info"
    SUCCESS = "success"


class NoticeV1(BaseModel):
    category: NoticeCategoryV1
    title: str
    message: str
