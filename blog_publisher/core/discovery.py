"""Posts directory discovery for finding previewable articles."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from blog_publisher.core.models import Article, DiscoveryError
from blog_publisher.transforms.frontmatter import extract_metadata

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = ('.md', '.adoc')

# Series for posts sitting directly in the posts directory
UNCATEGORIZED_SERIES = 'uncategorized'

PROJECT_ROOT_MARKERS = ('.git', 'hugo.yaml', 'hugo.toml', 'go.mod', 'package.json')


class ArticleDiscovery:
    """Discovers Markdown and AsciiDoc articles under a posts directory."""

    def __init__(self, posts_dir: Union[str, Path]):
        """Initialize ArticleDiscovery.

        Args:
            posts_dir: Root directory to scan; series are its subdirectories
        """
        self.posts_dir = Path(posts_dir).absolute()

    def discover_all(self) -> List[Article]:
        """Find all articles under the posts directory.

        Returns:
            Articles ordered by modification time, newest first

        Raises:
            DiscoveryError: If the directory is missing or cannot be read
        """
        if not self.posts_dir.is_dir():
            raise DiscoveryError(f"Posts directory not found: {self.posts_dir}")

        articles = []
        seen_ids = set()
        try:
            for path in self._iter_documents():
                article = self._get_article(path)
                if article is None:
                    continue
                if article.id in seen_ids:
                    logger.warning("Duplicate article id %s (%s)", article.id, article.rel_path)
                seen_ids.add(article.id)
                articles.append(article)
        except OSError as e:
            raise DiscoveryError(f"Failed to scan {self.posts_dir}: {e}") from e

        articles.sort(key=lambda a: a.updated_at, reverse=True)
        return articles

    def _iter_documents(self):
        def fail(error: OSError):
            raise error

        for dirpath, dirnames, filenames in os.walk(self.posts_dir, onerror=fail):
            dirnames.sort()
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if path.suffix in DOCUMENT_EXTENSIONS and path.is_file():
                    yield path

    def _get_article(self, file_path: Path) -> Optional[Article]:
        """Read a document and build its Article.

        Args:
            file_path: Absolute path to the document

        Returns:
            Article, or None when the file is not valid UTF-8
        """
        try:
            content = file_path.read_text(encoding='utf-8')
        except UnicodeDecodeError as e:
            logger.warning("Skipping %s: %s", file_path.name, e)
            return None

        title, slug = extract_metadata(content)
        rel = file_path.relative_to(self.posts_dir)
        parts = rel.parts

        try:
            updated_at = datetime.fromtimestamp(file_path.stat().st_mtime)
        except OSError:
            updated_at = datetime.now()

        return Article(
            id='_'.join(rel.with_suffix('').parts),
            title=title or file_path.name,
            slug=slug or file_path.stem,
            series=parts[0] if len(parts) > 1 else UNCATEGORIZED_SERIES,
            path=file_path,
            rel_path=rel.as_posix(),
            updated_at=updated_at,
        )


def find_project_root(start: Union[str, Path]) -> Optional[Path]:
    """Walk up from start looking for a directory that holds a project marker.

    Args:
        start: Directory to start from (usually the posts directory)

    Returns:
        The first directory containing .git, hugo.yaml, etc., or None
    """
    current = Path(start).absolute()
    for directory in (current, *current.parents):
        if any((directory / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            return directory
    return None
