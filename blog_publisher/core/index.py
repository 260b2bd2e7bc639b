"""In-memory article index with whole-snapshot replacement on rescan."""

import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from blog_publisher.core.models import Article


@dataclass(frozen=True)
class IndexSnapshot:
    """One complete scan result. Never modified after construction."""

    articles: Tuple[Article, ...] = ()
    by_id: Dict[str, Article] = field(default_factory=dict)

    @classmethod
    def from_articles(cls, articles: Iterable[Article]) -> "IndexSnapshot":
        articles = tuple(articles)
        # Later entries win on duplicate ids
        by_id = {article.id: article for article in articles}
        return cls(articles, by_id)


class ArticleIndex:
    """Shared, read-mostly view of the discovered articles.

    Readers grab the current snapshot and work on it; rescan() builds a new
    snapshot and swaps it in, so a reader never sees a half-built index.
    """

    def __init__(self, scanner: Callable[[], List[Article]]):
        """Initialize ArticleIndex.

        Args:
            scanner: Callable returning a fresh article list, typically
                     ArticleDiscovery(...).discover_all
        """
        self._scanner = scanner
        self._snapshot = IndexSnapshot()
        self._lock = threading.Lock()

    def rescan(self) -> IndexSnapshot:
        """Scan again and replace the index. Scan errors leave the old index in place."""
        snapshot = IndexSnapshot.from_articles(self._scanner())
        with self._lock:
            self._snapshot = snapshot
        return snapshot

    @property
    def snapshot(self) -> IndexSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def articles(self) -> Tuple[Article, ...]:
        return self.snapshot.articles

    def __len__(self) -> int:
        return len(self.snapshot.articles)

    def get(self, article_id: str) -> Optional[Article]:
        """Get an article by id, None if unknown."""
        return self.snapshot.by_id.get(article_id)

    def grouped_by_series(self) -> Dict[str, List[Article]]:
        """Articles grouped by series, each group newest first."""
        grouped: Dict[str, List[Article]] = {}
        for article in self.snapshot.articles:
            grouped.setdefault(article.series, []).append(article)
        return grouped
