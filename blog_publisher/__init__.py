"""
Blog Publisher - Preview blog posts locally and publish their images

A small toolkit for a Markdown/AsciiDoc blog with support for:
- Article discovery grouped by series
- Hugo ref/relref resolution
- Local image preview routes
- Idempotent image upload to GitHub with CDN links
"""

from blog_publisher.core.models import Article, ConfigurationError, DiscoveryError, PublishResult, UploadError
from blog_publisher.config import Config
from blog_publisher.core.discovery import ArticleDiscovery, find_project_root
from blog_publisher.core.index import ArticleIndex
from blog_publisher.core.publisher import Publisher
from blog_publisher.core.uploader import GitHubUploader
from blog_publisher.render import ArticleRenderer, render_markdown

__version__ = "0.1.0"

__all__ = [
    "Config",
    "Article",
    "ConfigurationError",
    "DiscoveryError",
    "PublishResult",
    "UploadError",
    "ArticleDiscovery",
    "find_project_root",
    "ArticleIndex",
    "Publisher",
    "GitHubUploader",
    "ArticleRenderer",
    "render_markdown",
]
