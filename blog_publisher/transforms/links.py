"""Cross-reference resolution for Hugo ``ref``/``relref`` shortcodes."""

import logging
import posixpath
import re
from typing import Iterable, Optional

from blog_publisher.core.models import Article

logger = logging.getLogger(__name__)

# {{< ref "path" >}} or {{< relref 'path#anchor' >}}, quotes optional
REF_PATTERN = re.compile(r'\{\{<\s*(?:relref|ref)\s+["\']?([^"\'\s}]+)["\']?\s*>\}\}')

DOCUMENT_EXTENSIONS = ('.md', '.adoc')

NOT_FOUND_PREFIX = '#relref-not-found-'


def find_article(target: str, articles: Iterable[Article]) -> Optional[Article]:
    """Find the article a reference target points at.

    Matches either the exact relative path or a longer path ending in
    ``/<rel_path>`` (Hugo refs are often written from the content root).
    """
    target = target.replace('\\', '/')
    for article in articles:
        if target == article.rel_path or target.endswith('/' + article.rel_path):
            return article
    return None


def _resolve(target: str, articles: Iterable[Article]) -> Optional[Article]:
    articles = list(articles)
    article = find_article(target, articles)
    if article is not None:
        return article

    # A post may have been converted between Markdown and AsciiDoc
    base, ext = posixpath.splitext(target)
    if not ext:
        return None
    for candidate_ext in DOCUMENT_EXTENSIONS:
        candidate = base + candidate_ext
        if candidate == target:
            continue
        article = find_article(candidate, articles)
        if article is not None:
            return article
    return None


def article_url(article: Article, anchor: str = '', base_url: str = '') -> str:
    """URL of an article: its public page when base_url is set, else the preview route.

    Args:
        article: Target article
        anchor: Fragment including the leading '#', or empty
        base_url: Public site root, e.g. https://example.com

    Returns:
        Link target string
    """
    if base_url:
        url = f"{base_url.rstrip('/')}/posts/{article.series}/{article.slug or article.id}"
        if anchor:
            url += '/' + anchor
        return url
    return f"/article/{article.id}{anchor}"


def resolve_cross_references(content: str, articles: Iterable[Article], base_url: str = '') -> str:
    """Replace ref/relref shortcodes with links to the referenced articles.

    Unresolvable references become ``#relref-not-found-<target>`` so that
    they stay visible in the preview.

    Args:
        content: Markdown source
        articles: Articles to resolve against
        base_url: Public site root; preview routes are used when empty

    Returns:
        Content with every shortcode replaced
    """
    articles = list(articles)

    def replace_ref(match: re.Match) -> str:
        target = match.group(1)
        anchor = ''
        if '#' in target:
            idx = target.rindex('#')
            target, anchor = target[:idx], target[idx:]

        article = _resolve(target, articles)
        if article is None:
            logger.warning("Unresolved cross-reference: %s", target)
            return f"{NOT_FOUND_PREFIX}{target}"

        return article_url(article, anchor, base_url)

    return REF_PATTERN.sub(replace_ref, content)
