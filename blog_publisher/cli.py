"""blog-publisher -- preview and publish blog posts from the command line.

Usage:
    blog-publisher [--dir DIR] [-v] COMMAND [OPTIONS]
"""

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

import click

from blog_publisher.config import Config
from blog_publisher.core.discovery import ArticleDiscovery, find_project_root
from blog_publisher.core.index import ArticleIndex
from blog_publisher.core.models import Article, ConfigurationError, DiscoveryError
from blog_publisher.core.publisher import Publisher
from blog_publisher.render import ArticleRenderer

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Everything a command needs, built once per invocation."""
    config: Config
    posts_dir: Path
    project_root: Path
    index: ArticleIndex

    def article(self, article_id: str) -> Article:
        article = self.index.get(article_id)
        if article is None:
            raise click.ClickException(f"Article not found: {article_id}")
        return article

    def renderer(self) -> ArticleRenderer:
        return ArticleRenderer(self.index, self.project_root, self.config.base_url)


def resolve_posts_dir(option: Optional[str], config: Config) -> Path:
    """Posts directory: --dir, then POSTS_DIR, then the working directory."""
    return Path(option or config.posts_dir or os.getcwd()).absolute()


def load_config(env_file: Optional[str]) -> Config:
    try:
        return Config.from_env(env_file)
    except ConfigurationError as e:
        raise click.ClickException(str(e))


def build_workspace(posts_dir: Optional[str], env_file: Optional[str]) -> Workspace:
    config = load_config(env_file)
    posts = resolve_posts_dir(posts_dir, config)

    index = ArticleIndex(ArticleDiscovery(posts).discover_all)
    try:
        index.rescan()
    except DiscoveryError as e:
        raise click.ClickException(f"Failed to scan articles: {e}")

    project_root = find_project_root(posts)
    if project_root is None:
        logger.warning("Could not detect project root (no .git or hugo.yaml found), using %s", posts)
        project_root = posts

    logger.info("Posts dir: %s, project root: %s, %d articles", posts, project_root, len(index))
    return Workspace(config=config, posts_dir=posts, project_root=project_root, index=index)


def _write(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding='utf-8')
        click.echo(f"Wrote {output}", err=True)
    else:
        click.echo(text)


@click.group()
@click.option("--dir", "posts_dir", default=None, help="Articles directory (default: POSTS_DIR or current directory)")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help="Load settings from this .env file")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-vv for debug)")
@click.pass_context
def cli(ctx: click.Context, posts_dir: Optional[str], env_file: Optional[str], verbose: int) -> None:
    """Preview blog posts and publish their images to GitHub."""
    level = logging.WARNING - 10 * min(verbose, 2)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = (posts_dir, env_file)


def _workspace(ctx: click.Context) -> Workspace:
    posts_dir, env_file = ctx.obj
    return build_workspace(posts_dir, env_file)


@cli.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output raw JSON")
@click.pass_context
def list_articles(ctx: click.Context, as_json: bool) -> None:
    """List articles grouped by series, newest first."""
    ws = _workspace(ctx)

    if as_json:
        rows = []
        for article in ws.index.articles:
            row = asdict(article)
            row["path"] = str(article.path)
            row["updated_at"] = article.updated_at.isoformat()
            rows.append(row)
        click.echo(json.dumps(rows, indent=2, ensure_ascii=False))
        return

    grouped = ws.index.grouped_by_series()
    if not grouped:
        click.echo("No articles found.")
        return

    for series, articles in grouped.items():
        click.echo(click.style(series, bold=True))
        for article in articles:
            updated = article.updated_at.strftime("%Y-%m-%d %H:%M")
            click.echo(f"  {article.id:<40} {updated}  {article.title}")


@cli.command()
@click.argument("article_id")
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False), help="Write HTML to a file")
@click.pass_context
def preview(ctx: click.Context, article_id: str, output: Optional[str]) -> None:
    """Render ARTICLE_ID to HTML with local image routes."""
    ws = _workspace(ctx)
    article = ws.article(article_id)

    try:
        html = ws.renderer().render_preview(article)
    except OSError as e:
        raise click.ClickException(f"Failed to read article: {e}")

    _write(html, output)


@cli.command()
@click.argument("article_id")
@click.option(
    "--format", "fmt",
    type=click.Choice(["markdown", "html", "json"]),
    default="markdown",
    show_default=True,
    help="What to print",
)
@click.option("--allow-partial", is_flag=True, help="Exit 0 even if some images failed")
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False), help="Write output to a file")
@click.pass_context
def publish(ctx: click.Context, article_id: str, fmt: str, allow_partial: bool, output: Optional[str]) -> None:
    """Upload ARTICLE_ID's local images and print the rewritten article."""
    ws = _workspace(ctx)
    article = ws.article(article_id)

    publisher = Publisher.from_config(ws.config)
    try:
        result = publisher.publish(article.path, ws.project_root)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    except OSError as e:
        raise click.ClickException(f"Failed to read article: {e}")
    finally:
        publisher.uploader.close()

    rendered = ws.renderer().render_publish(result)

    if fmt == "json":
        text = json.dumps({
            "success": result.ok,
            "content": {"markdown": rendered.markdown, "html": rendered.html},
            "uploaded": result.uploaded_images,
            "logs": result.errors,
        }, indent=2, ensure_ascii=False)
    elif fmt == "html":
        text = rendered.html
    else:
        text = rendered.markdown

    _write(text, output)

    for url in result.uploaded_images:
        click.echo(f"uploaded: {url}", err=True)
    for error in result.errors:
        click.echo(click.style(f"error: {error}", fg="red"), err=True)

    if result.errors and not allow_partial:
        ctx.exit(1)


@cli.command("show-config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Print the effective configuration (token masked)."""
    _, env_file = ctx.obj
    config = load_config(env_file)
    for key, value in asdict(config).items():
        if key == "github_token" and value:
            value = value[:4] + "..." if len(value) > 8 else "***"
        click.echo(f"{key}: {value}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
