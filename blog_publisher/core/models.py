"""Data models for Blog Publisher."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class Article:
    """A discovered post - location plus what we learn from reading it once.

    Does NOT store content - get it via read_raw() when needed.
    """
    id: str
    title: str
    slug: str
    series: str
    path: Path
    rel_path: str
    updated_at: datetime

    def read_raw(self) -> str:
        """Read file contents on demand."""
        return self.path.read_text(encoding='utf-8')


@dataclass(frozen=True)
class PublishResult:
    """Result of publishing one article.

    uploaded_images and errors partition the distinct local image
    references found in the article.
    """
    original_content: str
    publish_content: str
    uploaded_images: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class DiscoveryError(Exception):
    """Raised when the posts directory cannot be scanned."""


class ConfigurationError(Exception):
    """Raised when the uploader is missing its token or repository."""


class UploadError(Exception):
    """An upload the remote store refused or that never reached it."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
