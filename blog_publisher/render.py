"""Markdown rendering for preview and publish output.

The HTML is meant to be pasted into the WeChat editor, which drops most
list styling; list items are therefore wrapped in spans the stylesheet
can target.
"""

import logging
import xml.etree.ElementTree as etree
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import markdown
from markdown.extensions import Extension
from markdown.extensions.codehilite import CodeHiliteExtension
from markdown.extensions.fenced_code import FencedCodeExtension
from markdown.extensions.nl2br import Nl2BrExtension
from markdown.extensions.sane_lists import SaneListExtension
from markdown.extensions.tables import TableExtension
from markdown.extensions.toc import TocExtension
from markdown.treeprocessors import Treeprocessor

from blog_publisher.core.index import ArticleIndex
from blog_publisher.core.models import Article, PublishResult
from blog_publisher.transforms.frontmatter import strip_frontmatter, strip_title
from blog_publisher.transforms.images import rewrite_image_sources
from blog_publisher.transforms.links import resolve_cross_references

logger = logging.getLogger(__name__)

# Children that end the inline part of a list item
BLOCK_TAGS = frozenset({
    'p', 'ul', 'ol', 'pre', 'div', 'blockquote', 'table', 'hr',
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
})


class ListItemProcessor(Treeprocessor):
    """Wraps the inline content of each <li> in <span class="li-text">.

    A leading <strong> becomes <span class="li-bold">.
    """

    def run(self, root: etree.Element) -> None:
        for li in list(root.iter('li')):
            self._wrap(li)

    def _wrap(self, li: etree.Element) -> None:
        children = list(li)
        has_text = bool(li.text and li.text.strip())

        if children and children[0].tag == 'strong' and not has_text and len(children[0]) == 0:
            children[0].tag = 'span'
            children[0].set('class', 'li-bold')

        cut = next((i for i, child in enumerate(children) if child.tag in BLOCK_TAGS), len(children))
        inline = children[:cut]
        if not has_text and not inline:
            return

        span = etree.Element('span', {'class': 'li-text'})
        span.text = li.text
        li.text = None
        for child in inline:
            li.remove(child)
            span.append(child)
        li.insert(0, span)


class ListItemExtension(Extension):
    def extendMarkdown(self, md):
        # after inline patterns (20) so <strong> exists
        md.treeprocessors.register(ListItemProcessor(md), 'li_spans', 15)


def render_markdown(text: str) -> str:
    """Render Markdown to HTML with the extensions the blog uses."""
    md = markdown.Markdown(
        extensions=[
            TableExtension(),
            FencedCodeExtension(),
            CodeHiliteExtension(pygments_style='monokai', noclasses=True, guess_lang=False),
            Nl2BrExtension(),
            SaneListExtension(),
            TocExtension(),
            ListItemExtension(),
        ],
        output_format='xhtml',
    )
    return md.convert(text)


@dataclass(frozen=True)
class PublishOutput:
    """Publish content ready to copy: cleaned Markdown and its HTML."""
    markdown: str
    html: str


class ArticleRenderer:
    """Composes the transforms into the preview and publish pipelines."""

    def __init__(self, index: ArticleIndex, project_root: Union[str, Path], base_url: str = ""):
        """Initialize ArticleRenderer.

        Args:
            index: Articles that cross-references resolve against
            project_root: Directory served under /_local_fs
            base_url: Public site root for cross-reference links
        """
        self.index = index
        self.project_root = Path(project_root)
        self.base_url = base_url

    def prepare(self, raw: str) -> str:
        """Strip frontmatter and the H1 title from raw post content."""
        return strip_title(strip_frontmatter(raw))

    def render_preview(self, article: Article) -> str:
        """Render an article for local preview.

        Raises:
            OSError: If the article cannot be read
        """
        content = self.prepare(article.read_raw())
        content = resolve_cross_references(content, self.index.articles, self.base_url)
        html = render_markdown(content)
        logger.debug("Article dir for %s is %s", article.id, article.path.parent)
        return rewrite_image_sources(html, article.path.parent, self.project_root)

    def render_publish(self, result: PublishResult) -> PublishOutput:
        """Render publish content; image links already point at the CDN."""
        content = strip_frontmatter(result.publish_content)
        return PublishOutput(
            markdown=content,
            html=render_markdown(strip_title(content)),
        )
