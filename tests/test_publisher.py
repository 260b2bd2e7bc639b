"""Tests for Publisher."""

from pathlib import Path
from typing import Dict, List, Tuple

import httpx
import pytest

from blog_publisher.config import Config
from blog_publisher.core.models import ConfigurationError, UploadError
from blog_publisher.core.publisher import Publisher
from blog_publisher.core.uploader import GitHubUploader

CDN = "https://cdn.example.com/gh/me/blog@main"


class RecordingUploader:
    """Stands in for GitHubUploader; records calls and fails on demand."""

    def __init__(self, failures: Dict[str, Exception] = None):
        self.calls: List[Tuple[Path, str]] = []
        self.failures = failures or {}

    def upload(self, local_path, remote_path: str) -> str:
        self.calls.append((Path(local_path), remote_path))
        if remote_path in self.failures:
            raise self.failures[remote_path]
        return f"{CDN}/{remote_path}"


class TestPublisher:
    """Tests for Publisher.publish."""

    @pytest.fixture
    def project(self, tmp_path):
        """Project root with one post and a couple of images."""
        post_dir = tmp_path / "posts" / "series"
        (post_dir / "img").mkdir(parents=True)
        (post_dir / "img" / "a.png").write_bytes(b"a")
        (post_dir / "img" / "b.png").write_bytes(b"b")
        (tmp_path / "static").mkdir()
        (tmp_path / "static" / "logo.png").write_bytes(b"logo")
        return tmp_path

    def _write_post(self, project: Path, content: str) -> Path:
        path = project / "posts" / "series" / "post.md"
        path.write_text(content, encoding="utf-8")
        return path

    def test_single_image_rewritten(self, project):
        post = self._write_post(project, "Intro\n\n![x](./img/a.png)\n")
        uploader = RecordingUploader()

        result = Publisher(uploader).publish(post, project)

        url = f"{CDN}/posts/series/img/a.png"
        assert result.publish_content == f"Intro\n\n![x]({url})\n"
        assert result.uploaded_images == [url]
        assert result.errors == []
        assert result.ok

    def test_remote_key_relative_to_project_root(self, project):
        post = self._write_post(project, "![x](./img/a.png)")
        uploader = RecordingUploader()

        Publisher(uploader).publish(post, project / "posts" / "series")

        assert uploader.calls == [(project / "posts" / "series" / "img" / "a.png", "img/a.png")]

    def test_path_prefix(self, project):
        post = self._write_post(project, "![x](img/a.png)")
        uploader = RecordingUploader()

        result = Publisher(uploader, path_prefix="/blog/images/").publish(post, project)

        assert uploader.calls[0][1] == "blog/images/posts/series/img/a.png"
        assert result.uploaded_images == [f"{CDN}/blog/images/posts/series/img/a.png"]

    def test_original_content_kept(self, project):
        content = "![x](./img/a.png)"
        post = self._write_post(project, content)

        result = Publisher(RecordingUploader()).publish(post, project)

        assert result.original_content == content

    def test_duplicate_reference_uploaded_once(self, project):
        post = self._write_post(project, "![one](img/a.png)\n\n![two](img/a.png)\n")
        uploader = RecordingUploader()

        result = Publisher(uploader).publish(post, project)

        url = f"{CDN}/posts/series/img/a.png"
        assert len(uploader.calls) == 1
        assert result.uploaded_images == [url]
        assert result.publish_content == f"![one]({url})\n\n![two]({url})\n"

    def test_remote_images_untouched(self, project):
        content = (
            "![a](https://example.com/a.png)\n"
            "![b](http://example.com/b.png)\n"
            "![c](//cdn.example.com/c.png)\n"
        )
        post = self._write_post(project, content)
        uploader = RecordingUploader()

        result = Publisher(uploader).publish(post, project)

        assert uploader.calls == []
        assert result.publish_content == content
        assert result.uploaded_images == []
        assert result.errors == []

    def test_missing_image(self, project):
        post = self._write_post(project, "![x](img/missing.png)")
        uploader = RecordingUploader()

        result = Publisher(uploader).publish(post, project)

        assert result.errors == ["Image not found: img/missing.png"]
        assert result.uploaded_images == []
        assert result.publish_content == "![x](img/missing.png)"
        assert uploader.calls == []
        assert not result.ok

    def test_missing_image_referenced_twice_reported_once(self, project):
        post = self._write_post(project, "![x](img/missing.png) ![y](img/missing.png)")

        result = Publisher(RecordingUploader()).publish(post, project)

        assert result.errors == ["Image not found: img/missing.png"]

    def test_upload_failure_collected_and_processing_continues(self, project):
        post = self._write_post(project, "![a](img/a.png)\n![b](img/b.png)\n")
        uploader = RecordingUploader(failures={
            "posts/series/img/a.png": UploadError("upload failed: boom", status_code=500, body="boom"),
        })

        result = Publisher(uploader).publish(post, project)

        url_b = f"{CDN}/posts/series/img/b.png"
        assert result.errors == ["Upload failed for img/a.png: upload failed: boom"]
        assert result.uploaded_images == [url_b]
        assert result.publish_content == f"![a](img/a.png)\n![b]({url_b})\n"

    def test_title_text_split_off(self, project):
        post = self._write_post(project, '![x](img/a.png "A caption")')

        result = Publisher(RecordingUploader()).publish(post, project)

        assert result.publish_content == f'![x]({CDN}/posts/series/img/a.png "A caption")'

    def test_parent_directory_reference(self, project):
        post = self._write_post(project, "![logo](../../static/logo.png)")
        uploader = RecordingUploader()

        result = Publisher(uploader).publish(post, project)

        assert uploader.calls[0][1] == "static/logo.png"
        assert result.publish_content == f"![logo]({CDN}/static/logo.png)"

    def test_leading_slash_resolved_against_document(self, project):
        post = self._write_post(project, "![x](/img/a.png)")
        uploader = RecordingUploader()

        result = Publisher(uploader).publish(post, project)

        assert uploader.calls == [(project / "posts" / "series" / "img" / "a.png", "posts/series/img/a.png")]
        assert result.publish_content == f"![x]({CDN}/posts/series/img/a.png)"

    def test_image_outside_project_root(self, project):
        post = self._write_post(project, "![logo](../../static/logo.png)")
        uploader = RecordingUploader()
        root = project / "posts"

        result = Publisher(uploader).publish(post, root)

        assert uploader.calls == []
        assert result.errors == [f"Upload failed for ../../static/logo.png: outside project root {root}"]

    def test_path_in_prose_not_rewritten(self, project):
        content = "Saved as (img/a.png) earlier.\n\n![x](img/a.png)"
        post = self._write_post(project, content)

        result = Publisher(RecordingUploader()).publish(post, project)

        url = f"{CDN}/posts/series/img/a.png"
        assert result.publish_content == f"Saved as (img/a.png) earlier.\n\n![x]({url})"

    def test_uploaded_and_errors_partition_references(self, project):
        content = "![a](img/a.png) ![m](img/missing.png) ![b](img/b.png) ![a2](img/a.png) ![r](https://x/y.png)"
        post = self._write_post(project, content)
        uploader = RecordingUploader(failures={"posts/series/img/b.png": UploadError("nope")})

        result = Publisher(uploader).publish(post, project)

        assert len(result.uploaded_images) + len(result.errors) == 3
        assert result.errors == [
            "Image not found: img/missing.png",
            "Upload failed for img/b.png: nope",
        ]

    def test_unreadable_document_raises(self, project):
        with pytest.raises(OSError):
            Publisher(RecordingUploader()).publish(project / "nope.md", project)

    def test_no_images(self, project):
        post = self._write_post(project, "Just text.")

        result = Publisher(RecordingUploader()).publish(post, project)

        assert result.publish_content == "Just text."
        assert result.uploaded_images == []
        assert result.errors == []


class TestPublisherWithGitHub:
    """Publisher driving a real GitHubUploader over a mocked transport."""

    @pytest.fixture
    def config(self):
        return Config(
            github_token="secret",
            github_repo="me/blog",
            github_branch="main",
            github_path_prefix="",
            posts_dir="",
            base_url="",
            api_url="https://api.github.com",
            cdn_base_url="https://cdn.jsdelivr.net",
            timeout=5.0,
        ).normalized()

    def test_republish_only_checks_existence(self, tmp_path, config):
        (tmp_path / "img").mkdir()
        (tmp_path / "img" / "a.png").write_bytes(b"a")
        post = tmp_path / "post.md"
        post.write_text("![x](./img/a.png)", encoding="utf-8")

        stored = set()
        methods = []

        def handler(request):
            methods.append(request.method)
            path = request.url.path.split("/contents/", 1)[1]
            if request.method == "GET":
                return httpx.Response(200 if path in stored else 404)
            stored.add(path)
            return httpx.Response(201)

        uploader = GitHubUploader(config, client=httpx.Client(transport=httpx.MockTransport(handler)))
        publisher = Publisher(uploader)

        first = publisher.publish(post, tmp_path)
        assert methods == ["GET", "PUT"]

        methods.clear()
        second = publisher.publish(post, tmp_path)

        url = "https://cdn.jsdelivr.net/gh/me/blog@main/img/a.png"
        assert first.uploaded_images == second.uploaded_images == [url]
        assert second.publish_content == f"![x]({url})"
        assert methods == ["GET"]

    def test_unconfigured_uploader_raises(self, tmp_path, config):
        (tmp_path / "a.png").write_bytes(b"a")
        post = tmp_path / "post.md"
        post.write_text("![x](a.png)", encoding="utf-8")
        unconfigured = Config(**{**config.__dict__, "github_token": ""})

        with pytest.raises(ConfigurationError):
            Publisher(GitHubUploader(unconfigured)).publish(post, tmp_path)

    def test_from_config_uses_path_prefix(self, config):
        prefixed = Config(**{**config.__dict__, "github_path_prefix": "images"})
        publisher = Publisher.from_config(prefixed)

        assert publisher.path_prefix == "images"
        assert isinstance(publisher.uploader, GitHubUploader)
