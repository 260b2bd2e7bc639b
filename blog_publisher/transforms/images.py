"""Rewrite local image sources in rendered HTML to the local file route."""

import html
import logging
import os
from html.parser import HTMLParser
from pathlib import Path
from typing import List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

LOCAL_FS_ROUTE = '/_local_fs'

REMOTE_PREFIXES = ('http', '//', 'data:')


def local_route(src: str, document_dir: Union[str, Path], project_root: Union[str, Path]) -> Optional[str]:
    """Map an image reference to its /_local_fs route.

    Args:
        src: Image reference as written in the document
        document_dir: Directory of the document the reference appears in
        project_root: Directory served under /_local_fs

    Returns:
        The route, or None when the image resolves outside project_root
    """
    # Absolute paths are served as is; publishing resolves them against the document instead
    if os.path.isabs(src):
        resolved = os.path.normpath(src)
    else:
        resolved = os.path.normpath(os.path.join(str(document_dir), src))

    root = os.path.normpath(str(project_root))
    try:
        rel = os.path.relpath(resolved, root)
    except ValueError:
        # different drive on Windows
        return None
    if rel == os.pardir or rel.startswith(os.pardir + os.sep):
        return None

    return f"{LOCAL_FS_ROUTE}/{Path(rel).as_posix()}"


class _SourceRewriter(HTMLParser):
    """Re-emits the HTML it is fed, rewriting ``src`` attributes on the way."""

    def __init__(self, document_dir: Union[str, Path], project_root: Union[str, Path]):
        super().__init__(convert_charrefs=False)
        self.document_dir = document_dir
        self.project_root = project_root
        self.out: List[str] = []
        self.unresolved: List[str] = []

    def _rewrite(self, attrs: List[Tuple[str, Optional[str]]]) -> Optional[List[Tuple[str, Optional[str]]]]:
        changed = False
        new_attrs = []
        for name, value in attrs:
            if name == 'src' and value and not value.startswith(REMOTE_PREFIXES):
                route = local_route(value, self.document_dir, self.project_root)
                if route is None:
                    self.unresolved.append(value)
                else:
                    logger.debug("Rewriting %s -> %s", value, route)
                    value = route
                    changed = True
            new_attrs.append((name, value))
        return new_attrs if changed else None

    def _emit_tag(self, tag: str, attrs, closed: bool) -> None:
        new_attrs = self._rewrite(attrs)
        if new_attrs is None:
            self.out.append(self.get_starttag_text())
            return
        parts = [tag]
        for name, value in new_attrs:
            if value is None:
                parts.append(name)
            else:
                parts.append(f'{name}="{html.escape(value, quote=True)}"')
        end = ' />' if closed else '>'
        self.out.append('<' + ' '.join(parts) + end)

    def handle_starttag(self, tag, attrs):
        self._emit_tag(tag, attrs, closed=False)

    def handle_startendtag(self, tag, attrs):
        self._emit_tag(tag, attrs, closed=True)

    def handle_endtag(self, tag):
        self.out.append(f'</{tag}>')

    def handle_data(self, data):
        self.out.append(data)

    def handle_entityref(self, name):
        self.out.append(f'&{name};')

    def handle_charref(self, name):
        self.out.append(f'&#{name};')

    def handle_comment(self, data):
        self.out.append(f'<!--{data}-->')

    def handle_decl(self, decl):
        self.out.append(f'<!{decl}>')

    def handle_pi(self, data):
        self.out.append(f'<?{data}>')

    def unknown_decl(self, data):
        self.out.append(f'<![{data}]>')


def rewrite_image_sources(
    html_content: str,
    document_dir: Union[str, Path],
    project_root: Union[str, Path],
) -> str:
    """Point local ``src`` attributes at the /_local_fs route.

    Remote sources (http, protocol-relative, data URIs) are untouched.
    Sources that resolve outside project_root are left as they are and
    logged.

    Args:
        html_content: Rendered HTML
        document_dir: Directory of the source document
        project_root: Directory served under /_local_fs

    Returns:
        HTML with local sources rewritten
    """
    parser = _SourceRewriter(document_dir, project_root)
    parser.feed(html_content)
    parser.close()

    for src in parser.unresolved:
        logger.warning("Failed to rewrite image path: %s (root: %s)", src, project_root)

    return ''.join(parser.out)
