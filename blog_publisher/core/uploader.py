"""GitHub contents API uploader for post images."""

import base64
import logging
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from blog_publisher.config import Config
from blog_publisher.core.models import ConfigurationError, UploadError

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "Upload image via blog-publisher"

# Statuses GitHub returns when the file appeared between our check and our PUT
CONFLICT_STATUSES = (409, 422)


class GitHubUploader:
    """Uploads files to a GitHub repository unless they are already there.

    The returned URL is always the CDN URL computed from repo, branch and
    remote path, whether the file was created now or existed before.

    Usage::

        with GitHubUploader(Config.from_env()) as uploader:
            url = uploader.upload(Path("img/a.png"), "posts/img/a.png")
    """

    def __init__(self, config: Config, client: Optional[httpx.Client] = None):
        self.config = config
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.config.timeout)
        return self._client

    def _auth_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.config.github_token}",
            "Accept": "application/vnd.github+json",
        }

    def _contents_url(self, remote_path: str) -> str:
        return f"{self.config.api_url}/repos/{self.config.github_repo}/contents/{remote_path}"

    def _request(self, method: str, remote_path: str, **kwargs: Any) -> httpx.Response:
        return self.client.request(
            method,
            self._contents_url(remote_path),
            headers=self._auth_headers(),
            **kwargs,
        )

    def exists(self, remote_path: str) -> bool:
        """Check whether remote_path exists on the configured branch.

        Transport errors count as "not found"; the following PUT will
        surface a real problem.
        """
        try:
            response = self._request("GET", remote_path, params={"ref": self.config.github_branch})
        except httpx.HTTPError as e:
            logger.debug("Existence check for %s failed: %s", remote_path, e)
            return False

        logger.debug("Existence check for %s: %d", remote_path, response.status_code)
        return response.status_code == 200

    def upload(self, local_path: Union[str, Path], remote_path: str) -> str:
        """Upload a file if it is not in the repository yet.

        Args:
            local_path: File to upload
            remote_path: Destination path inside the repository

        Returns:
            CDN URL of the file

        Raises:
            ConfigurationError: If token or repository is not configured
            UploadError: If GitHub rejects the upload or cannot be reached
            OSError: If the local file cannot be read
        """
        if not self.config.upload_enabled:
            raise ConfigurationError("GitHub configuration missing (GITHUB_TOKEN / GITHUB_REPO)")

        remote_path = remote_path.replace('\\', '/').lstrip('/')
        url = self.config.cdn_url(remote_path)

        if self.exists(remote_path):
            logger.debug("File exists, skipping upload: %s", remote_path)
            return url

        content = Path(local_path).read_bytes()
        body = {
            "message": COMMIT_MESSAGE,
            "content": base64.b64encode(content).decode('ascii'),
            "branch": self.config.github_branch,
        }

        try:
            response = self._request("PUT", remote_path, json=body)
        except httpx.HTTPError as e:
            raise UploadError(f"request failed: {e}") from e

        if response.status_code in (200, 201):
            logger.info("Uploaded %s", remote_path)
            return url

        if response.status_code in CONFLICT_STATUSES:
            logger.debug("Upload conflict (%d), re-checking %s", response.status_code, remote_path)
            if self.exists(remote_path):
                return url

        logger.error("Upload failed. Status: %d, Response: %s", response.status_code, response.text)
        raise UploadError(
            f"upload failed: {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    def close(self) -> None:
        """Close the HTTP client if this uploader created it."""
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "GitHubUploader":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
