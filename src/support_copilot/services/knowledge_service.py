"""
Keyword search over help-center articles.

Queries are cached in-process per (query, limit) so repeated questions in a warm
Lambda do not re-scan the article table.
"""

from __future__ import annotations

import re
from typing import List, Sequence

from support_copilot.models import Article, SourceCitation
from support_copilot.repositories.base import ConversationStore
from support_copilot.utils.cache_service import LRUCache
from support_copilot.utils.logging_config import get_logger

logger = get_logger(__name__)

_WORD = re.compile(r"[a-z0-9']+")


def query_keywords(query: str) -> List[str]:
    """Lowercase words longer than three characters."""
    return [word for word in _WORD.findall(query.lower()) if len(word) > 3]


class KnowledgeService:
    """Rank articles by keyword hits; title hits count double."""

    def __init__(self, store: ConversationStore, cache: LRUCache = None):
        self.store = store
        self.cache = cache or LRUCache(max_size=100, ttl_seconds=300)

    async def search(self, query: str, limit: int = 3) -> List[Article]:
        cache_key = (query.strip().lower(), limit)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("Knowledge cache hit", extra={"limit": limit})
            return list(cached)

        keywords = query_keywords(query)
        if not keywords:
            return []

        scored = []
        for article in await self.store.list_articles():
            title = article.title.lower()
            content = article.content.lower()
            title_hits = sum(1 for k in keywords if k in title)
            content_hits = sum(1 for k in keywords if k in content)
            if title_hits or content_hits:
                scored.append((title_hits * 2 + content_hits, article))

        # sort is stable, so equal scores keep store order
        scored.sort(key=lambda item: item[0], reverse=True)
        results = [article for _, article in scored[:limit]]
        self.cache.set(cache_key, list(results))
        logger.info(
            "Knowledge search complete",
            extra={"keywords": len(keywords), "results_count": len(results)},
        )
        return results

    async def add_article(self, category: str, title: str, content: str) -> Article:
        article = await self.store.add_article(category, title, content)
        self.cache.clear()
        return article

    @staticmethod
    def citations(articles: Sequence[Article]) -> List[SourceCitation]:
        return [
            SourceCitation(
                article_id=article.id,
                article_title=article.title,
                relevance_score=round(0.9 - index * 0.1, 2),
                excerpt=article.content[:150] + "...",
            )
            for index, article in enumerate(articles)
        ]
