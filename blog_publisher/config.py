"""Configuration for Blog Publisher - GitHub upload target, posts directory, URLs."""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Union

from dotenv import find_dotenv, load_dotenv

from blog_publisher.core.models import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_CDN_BASE_URL = "https://cdn.jsdelivr.net"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Config:
    """Settings resolved from the environment.

    Use Config.from_env() rather than the constructor so that values are
    normalised (".git" suffix, default branch, trailing slashes).
    """

    github_token: str = field(
        default_factory=lambda: os.environ.get("GITHUB_TOKEN", "")
    )
    github_repo: str = field(
        default_factory=lambda: os.environ.get("GITHUB_REPO", "")
    )
    github_branch: str = field(
        default_factory=lambda: os.environ.get("GITHUB_BRANCH", "")
    )
    github_path_prefix: str = field(
        default_factory=lambda: os.environ.get("GITHUB_PATH_PREFIX", "")
    )
    posts_dir: str = field(
        default_factory=lambda: os.environ.get("POSTS_DIR", "")
    )
    base_url: str = field(
        default_factory=lambda: os.environ.get("POSTS_BASE_URL", "")
    )
    api_url: str = field(
        default_factory=lambda: os.environ.get("GITHUB_API_URL", DEFAULT_API_URL)
    )
    cdn_base_url: str = field(
        default_factory=lambda: os.environ.get("CDN_BASE_URL", DEFAULT_CDN_BASE_URL)
    )
    timeout: float = field(
        default_factory=lambda: float(os.environ.get("GITHUB_TIMEOUT") or DEFAULT_TIMEOUT)
    )

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "Config":
        """Load configuration from the environment.

        A .env file (env_file, or the nearest one found searching upward from
        the working directory) is loaded first; variables already set in the
        environment win.

        Args:
            env_file: Explicit path to a .env file

        Returns:
            Normalised Config

        Raises:
            ConfigurationError: If GITHUB_TIMEOUT is not a number
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))
        try:
            config = cls().normalized()
        except ValueError as e:
            raise ConfigurationError(f"Invalid GITHUB_TIMEOUT: {e}") from e

        if not config.github_token:
            logger.warning("GITHUB_TOKEN not found. Upload feature will be disabled.")

        return config

    def normalized(self) -> "Config":
        """Return a copy with defaults applied and URLs cleaned up."""
        repo = self.github_repo.strip()
        if repo.endswith(".git"):
            repo = repo[:-len(".git")]

        return replace(
            self,
            github_token=self.github_token.strip(),
            github_repo=repo,
            github_branch=self.github_branch.strip() or DEFAULT_BRANCH,
            github_path_prefix=self.github_path_prefix.strip().strip('/'),
            base_url=self.base_url.strip().rstrip('/'),
            api_url=(self.api_url.strip() or DEFAULT_API_URL).rstrip('/'),
            cdn_base_url=(self.cdn_base_url.strip() or DEFAULT_CDN_BASE_URL).rstrip('/'),
        )

    @property
    def upload_enabled(self) -> bool:
        """Whether both a token and a repository are configured."""
        return bool(self.github_token and self.github_repo)

    def cdn_url(self, remote_path: str) -> str:
        """Public CDN URL of a file stored under remote_path on the configured branch."""
        return f"{self.cdn_base_url}/gh/{self.github_repo}@{self.github_branch}/{remote_path}"
