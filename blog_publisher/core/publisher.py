"""Publisher: upload an article's local images and point its links at the CDN."""

import logging
import os
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from blog_publisher.config import Config
from blog_publisher.core.models import PublishResult, UploadError
from blog_publisher.core.uploader import GitHubUploader

logger = logging.getLogger(__name__)

REMOTE_PREFIXES = ('http', '//')


class Publisher:
    """Prepares an article for publishing.

    Handles:
    - Local image discovery in Markdown image syntax
    - Upload of each distinct image through the uploader
    - Rewriting image links to the uploaded URLs
    """

    # Pattern for Markdown images: ![alt](target) or ![alt](target "title")
    IMAGE_PATTERN = re.compile(r'!\[(.*?)\]\((.*?)\)')

    def __init__(self, uploader: GitHubUploader, path_prefix: str = ""):
        """Initialize Publisher.

        Args:
            uploader: Uploader used for every local image
            path_prefix: Directory inside the repository to upload under
        """
        self.uploader = uploader
        self.path_prefix = path_prefix.strip('/')

    @classmethod
    def from_config(cls, config: Config) -> "Publisher":
        """Build a Publisher with a GitHubUploader for the given config."""
        return cls(GitHubUploader(config), path_prefix=config.github_path_prefix)

    def publish(self, document_path: Union[str, Path], project_root: Union[str, Path]) -> PublishResult:
        """Upload local images of a document and rewrite its image links.

        Per-image problems are collected in the result's errors; only an
        unreadable document (or a misconfigured uploader) raises.

        Args:
            document_path: Article to publish
            project_root: Root that remote image paths are made relative to

        Returns:
            PublishResult with rewritten content, uploaded URLs and errors
        """
        document_path = Path(document_path).absolute()
        project_root = Path(os.path.normpath(Path(project_root).absolute()))
        content = document_path.read_text(encoding='utf-8')

        references = self._find_local_images(content)
        logger.debug("Scanning %s, found %d local image references", document_path, len(references))

        uploaded: Dict[str, str] = {}
        uploaded_images: List[str] = []
        errors: List[str] = []
        seen = set()

        for clean_path, _ in references:
            if clean_path in seen:
                continue
            seen.add(clean_path)

            # Always relative to the document, even with a leading slash
            abs_path = Path(os.path.normpath(os.path.join(document_path.parent, clean_path.lstrip('/'))))
            logger.debug("Resolving %s -> %s", clean_path, abs_path)
            if not abs_path.is_file():
                errors.append(f"Image not found: {clean_path}")
                continue

            remote_path = self._remote_path(abs_path, project_root)
            if remote_path is None:
                errors.append(f"Upload failed for {clean_path}: outside project root {project_root}")
                continue

            try:
                url = self.uploader.upload(abs_path, remote_path)
            except (UploadError, OSError) as e:
                errors.append(f"Upload failed for {clean_path}: {e}")
                continue

            uploaded[clean_path] = url
            uploaded_images.append(url)

        return PublishResult(
            original_content=content,
            publish_content=self._rewrite(content, references, uploaded),
            uploaded_images=uploaded_images,
            errors=errors,
        )

    def _find_local_images(self, content: str) -> List[Tuple[str, int]]:
        """Find local image paths with their offsets in content.

        Returns:
            (clean_path, offset) for every non-remote image reference,
            duplicates included, in document order
        """
        references = []
        for match in self.IMAGE_PATTERN.finditer(content):
            target = match.group(2)
            tokens = target.split()
            if not tokens:
                continue
            clean_path = tokens[0]
            if clean_path.startswith(REMOTE_PREFIXES):
                logger.debug("Skipping remote image: %s", clean_path)
                continue
            offset = match.start(2) + target.index(clean_path)
            references.append((clean_path, offset))
        return references

    def _remote_path(self, abs_path: Path, project_root: Path) -> Optional[str]:
        try:
            rel = abs_path.relative_to(project_root).as_posix()
        except ValueError:
            return None
        if self.path_prefix:
            return f"{self.path_prefix}/{rel}"
        return rel

    def _rewrite(self, content: str, references: List[Tuple[str, int]], uploaded: Dict[str, str]) -> str:
        """Swap uploaded image paths for their URLs at the recorded offsets."""
        pieces = []
        last = 0
        for clean_path, offset in references:
            url = uploaded.get(clean_path)
            if url is None:
                continue
            pieces.append(content[last:offset])
            pieces.append(url)
            last = offset + len(clean_path)
        pieces.append(content[last:])
        return ''.join(pieces)
