"""
FastAPI route handlers for the article search API.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Depends, Request
from fastapi.responses import JSONResponse

from .models import (
    ArticleDetailResponse,
    ArticleView,
    CategoryView,
    HealthResponse,
    RankedArticleView,
    SearchResponse,
    SidebarResponse,
    TagView,
)
from ..search.errors import ArticleNotFound, SearchError
from ..search.models import SearchRequest
from ..search.search_engine import SearchEngine

logger = logging.getLogger('api')


# ============================================================================
# Dependency Injection
# ============================================================================

def get_search_engine(request: Request) -> SearchEngine:
    """Get the search engine created at application startup."""
    engine = getattr(request.app.state, 'search_engine', None)
    if engine is None:
        raise HTTPException(
            status_code=503,
            detail="Search engine not initialized"
        )
    return engine


async def run_blocking(request: Request, func):
    """Offload a blocking store call to the application's thread pool."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(request.app.state.search_executor, func)


def _failure(error: SearchError, message: str, code: str) -> HTTPException:
    """Map a search core error to an HTTP error."""
    if isinstance(error, ArticleNotFound):
        return HTTPException(
            status_code=404,
            detail={
                "error": "Article not found",
                "code": "NOT_FOUND",
                "details": {"article_id": error.article_id}
            }
        )

    return HTTPException(
        status_code=500,
        detail={
            "error": message,
            "code": code,
            "details": {"message": str(error), "stage": error.stage}
        }
    )


# ============================================================================
# API Router
# ============================================================================

router = APIRouter(prefix="/api/v1", tags=["articles"])


# ============================================================================
# Search Endpoints
# ============================================================================

@router.get("/articles", response_model=SearchResponse)
async def search_articles(
    request: Request,
    term: Optional[str] = Query(None, max_length=500, description="Search term"),
    category: Optional[str] = Query(None, description="Category ID, 0 for all"),
    tags: List[str] = Query(default=[], description="Tag IDs, repeated or comma separated"),
    page: Optional[str] = Query(None, description="1-based page number"),
    engine: SearchEngine = Depends(get_search_engine)
):
    """
    Ranked article search.

    Articles are ordered by matched tags, then stemmed text rank, then fuzzy
    title similarity, then date. Returns one page and the page count.
    """
    search_request = SearchRequest.from_params(
        term=term,
        category=category,
        tags=','.join(tags),
        page=page
    )

    logger.info(
        f"Search request: term='{search_request.term}', category={search_request.category}, "
        f"tags={list(search_request.tags)}, page={search_request.page}"
    )

    try:
        result = await run_blocking(request, lambda: engine.search_page(search_request))
    except SearchError as e:
        logger.error(f"Search failed: {e}", exc_info=True)
        raise _failure(e, "Search execution failed", "SEARCH_FAILED")

    return {
        "articles": [RankedArticleView.from_result(r) for r in result.results],
        "pages": result.pages,
        "page": result.page,
        "total": result.total_matching_rows
    }


# ============================================================================
# Article Endpoints
# ============================================================================

@router.get("/articles/{article_id}", response_model=ArticleDetailResponse)
async def get_article(
    request: Request,
    article_id: int,
    engine: SearchEngine = Depends(get_search_engine)
):
    """
    Single article with its category, tags, date neighbours and up to three
    similar articles.
    """
    try:
        detail = await run_blocking(request, lambda: engine.get_article(article_id))
        similar = await run_blocking(request, lambda: engine.similar_articles(article_id))
    except SearchError as e:
        if not isinstance(e, ArticleNotFound):
            logger.error(f"Failed to load article {article_id}: {e}", exc_info=True)
        raise _failure(e, "Failed to load article", "ARTICLE_FAILED")

    content = detail.article.content
    if content:
        try:
            content = json.loads(content)
        except json.JSONDecodeError:
            pass  # plain text body

    return {
        "article": ArticleView.from_article(detail.article),
        "content": content,
        "category": CategoryView.from_category(detail.category) if detail.category else None,
        "tags": [TagView.from_tag(t) for t in detail.tags],
        "previous": ArticleView.from_article(detail.previous_article) if detail.previous_article else None,
        "next": ArticleView.from_article(detail.next_article) if detail.next_article else None,
        "similar": [ArticleView.from_article(a) for a in similar]
    }


@router.get("/articles/{article_id}/similar", response_model=List[ArticleView])
async def get_similar_articles(
    request: Request,
    article_id: int,
    engine: SearchEngine = Depends(get_search_engine)
):
    """Up to three articles related to the given one."""
    try:
        similar = await run_blocking(request, lambda: engine.similar_articles(article_id))
    except SearchError as e:
        if not isinstance(e, ArticleNotFound):
            logger.error(f"Recommendation failed for {article_id}: {e}", exc_info=True)
        raise _failure(e, "Recommendation failed", "SIMILAR_FAILED")

    return [ArticleView.from_article(a) for a in similar]


# ============================================================================
# Side Panel Endpoint
# ============================================================================

@router.get("/sidebar", response_model=SidebarResponse)
async def get_sidebar(
    request: Request,
    engine: SearchEngine = Depends(get_search_engine)
):
    """All categories, all tags and the most recent articles."""
    try:
        panel = await run_blocking(request, engine.side_panel)
    except SearchError as e:
        logger.error(f"Failed to fetch side panel: {e}", exc_info=True)
        raise _failure(e, "Failed to fetch side panel", "SIDEBAR_FAILED")

    return {
        "categories": [CategoryView.from_category(c) for c in panel.categories],
        "tags": [TagView.from_tag(t) for t in panel.tags],
        "recent": [ArticleView.from_article(a) for a in panel.recent]
    }


# ============================================================================
# Health Check Endpoint
# ============================================================================

@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request,
    engine: SearchEngine = Depends(get_search_engine)
):
    """
    Health check endpoint.

    Returns service status and basic metrics.
    """
    uptime = (datetime.now() - request.app.state.started_at).total_seconds()

    try:
        stats = await run_blocking(request, engine.get_stats)
    except SearchError as e:
        logger.error(f"Health check failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "database_connected": False,
                "total_articles": 0,
                "uptime_seconds": int(uptime)
            }
        )

    return {
        "status": "healthy",
        "database_connected": True,
        "total_articles": stats['total_articles'],
        "uptime_seconds": int(uptime)
    }
