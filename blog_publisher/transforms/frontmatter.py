"""Frontmatter and title handling for Markdown/AsciiDoc posts.

Posts may start with a YAML block delimited by ``---`` lines. These helpers
read the few fields we care about from it and strip it (and the H1 title)
from the body before rendering.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DELIMITER = '---'
BOM = '\ufeff'

# Heading prefixes that can carry a document title: Markdown H1, AsciiDoc title
TITLE_PREFIXES = ('# ', '= ')


def _split_frontmatter(content: str) -> Optional[Tuple[List[str], List[str]]]:
    """Split content into (frontmatter lines, body lines).

    Returns None when the content has no complete frontmatter block.
    """
    content = content.lstrip(BOM)
    if not content.strip().startswith(DELIMITER):
        return None

    lines = content.replace('\r\n', '\n').split('\n')
    start = end = None
    for i, line in enumerate(lines):
        if line.strip() != DELIMITER:
            continue
        if start is None:
            start = i
        else:
            end = i
            break

    if start is None or end is None:
        return None
    return lines[start + 1:end], lines[end + 1:]


def strip_frontmatter(content: str) -> str:
    """Remove a leading frontmatter block.

    Everything from the first ``---`` line through the second one is
    dropped. Content without a complete block is returned unchanged
    (minus a byte-order mark).

    Args:
        content: Raw post content

    Returns:
        Content without frontmatter
    """
    parts = _split_frontmatter(content)
    if parts is None:
        return content.lstrip(BOM)
    return '\n'.join(parts[1])


def strip_title(content: str) -> str:
    """Remove the first Markdown H1 line, leaving every other line as is."""
    lines = content.split('\n')
    for i, line in enumerate(lines):
        if line.strip().startswith('# '):
            del lines[i]
            break
    return '\n'.join(lines)


def parse_frontmatter(content: str) -> Dict[str, Any]:
    """Parse the YAML frontmatter of a post.

    Scalars are returned as written, without YAML type conversion.
    Malformed YAML falls back to a plain ``key: value`` line scan so a single
    stray colon does not hide the title.

    Args:
        content: Raw post content

    Returns:
        Frontmatter dict (empty if there is none)
    """
    parts = _split_frontmatter(content)
    if parts is None:
        return {}

    block = '\n'.join(parts[0])
    try:
        data = yaml.load(block, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        logger.debug("Falling back to line scan for malformed frontmatter: %s", e)
        return _scan_fields(parts[0])

    if not isinstance(data, dict):
        return {}
    return data


def _scan_fields(lines: List[str]) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for line in lines:
        key, sep, value = line.strip().partition(':')
        if sep and key in ('title', 'slug'):
            fields[key] = value
    return fields


def _clean(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip().strip('"\'').strip()


def extract_metadata(content: str) -> Tuple[str, str]:
    """Extract (title, slug) from a post.

    The title comes from frontmatter, else from the first Markdown ``# `` or
    AsciiDoc ``= `` heading of the body. Either value is empty when not found;
    callers supply file-name defaults.
    """
    frontmatter = parse_frontmatter(content)
    title = _clean(frontmatter.get('title'))
    slug = _clean(frontmatter.get('slug'))

    if not title:
        for line in strip_frontmatter(content).split('\n'):
            line = line.strip()
            if line.startswith(TITLE_PREFIXES):
                title = line[2:].strip()
                break

    return title, slug
