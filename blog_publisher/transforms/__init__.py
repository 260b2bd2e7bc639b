"""Text transforms applied to posts before and after rendering."""

from blog_publisher.transforms.frontmatter import extract_metadata, parse_frontmatter, strip_frontmatter, strip_title
from blog_publisher.transforms.images import local_route, rewrite_image_sources
from blog_publisher.transforms.links import article_url, find_article, resolve_cross_references

__all__ = [
    "extract_metadata",
    "parse_frontmatter",
    "strip_frontmatter",
    "strip_title",
    "local_route",
    "rewrite_image_sources",
    "article_url",
    "find_article",
    "resolve_cross_references",
]
