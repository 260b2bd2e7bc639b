"""Core components for Blog Publisher."""

from blog_publisher.core.models import Article, ConfigurationError, DiscoveryError, PublishResult, UploadError
from blog_publisher.core.discovery import ArticleDiscovery, find_project_root
from blog_publisher.core.index import ArticleIndex, IndexSnapshot
from blog_publisher.core.uploader import GitHubUploader
from blog_publisher.core.publisher import Publisher

__all__ = [
    "Article",
    "ConfigurationError",
    "DiscoveryError",
    "PublishResult",
    "UploadError",
    "ArticleDiscovery",
    "find_project_root",
    "ArticleIndex",
    "IndexSnapshot",
    "GitHubUploader",
    "Publisher",
]
