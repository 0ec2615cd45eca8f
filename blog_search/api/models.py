"""
Pydantic models for API responses.
"""

from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field

from ..search.models import Article, Category, RankedResult, Tag


# ============================================================================
# Taxonomy Models
# ============================================================================

class CategoryView(BaseModel):
    """Article category."""

    id: int = Field(..., description="Category ID")
    name: str = Field(..., description="Category name")

    @classmethod
    def from_category(cls, category: Category) -> 'CategoryView':
        return cls(id=category.id, name=category.name)


class TagView(BaseModel):
    """Article tag."""

    id: int = Field(..., description="Tag ID")
    name: str = Field(..., description="Tag name")

    @classmethod
    def from_tag(cls, tag: Tag) -> 'TagView':
        return cls(id=tag.id, name=tag.name)


# ============================================================================
# Article Models
# ============================================================================

class ArticleView(BaseModel):
    """Article card shown in lists."""

    id: int = Field(..., description="Article ID")
    title: str = Field(..., description="Article title")
    image: Optional[str] = Field(None, description="Cover image URL")
    date: str = Field(..., description="Publication date (YYYY-MM-DD)")
    summary: Optional[str] = Field(None, description="Article summary")
    category_id: Optional[int] = Field(None, description="Category ID")
    author_id: Optional[int] = Field(None, description="Author ID")

    @classmethod
    def from_article(cls, article: Article) -> 'ArticleView':
        return cls(
            id=article.id,
            title=article.title,
            image=article.image,
            date=article.date.isoformat(),
            summary=article.summary,
            category_id=article.category_id,
            author_id=article.author_id
        )


class RankedArticleView(ArticleView):
    """Search result with its relevance signals."""

    tag_match_count: int = Field(..., description="Requested tags the article carries")
    text_rank: float = Field(..., description="Stemmed full-text rank")
    fuzzy_score: float = Field(..., description="Trigram similarity of title and term")

    @classmethod
    def from_result(cls, result: RankedResult) -> 'RankedArticleView':
        return cls(
            **ArticleView.from_article(result.article).model_dump(),
            tag_match_count=result.tag_match_count,
            text_rank=round(result.text_rank, 4),
            fuzzy_score=round(result.fuzzy_score, 4)
        )


class SearchResponse(BaseModel):
    """One page of search results."""

    articles: List[RankedArticleView] = Field(..., description="Ranked articles")
    pages: int = Field(..., description="Number of pages to offer")
    page: int = Field(..., description="Current page number")
    total: int = Field(..., description="Total matching articles")


class ArticleDetailResponse(BaseModel):
    """Single article page."""

    article: ArticleView = Field(..., description="The article")
    content: Optional[Any] = Field(None, description="Editor content payload")
    category: Optional[CategoryView] = Field(None, description="Article category")
    tags: List[TagView] = Field(default_factory=list, description="Article tags")
    previous: Optional[ArticleView] = Field(None, description="Previous article by date")
    next: Optional[ArticleView] = Field(None, description="Next article by date")
    similar: List[ArticleView] = Field(default_factory=list, description="Related articles")


class SidebarResponse(BaseModel):
    """Side panel lists."""

    categories: List[CategoryView] = Field(..., description="All categories")
    tags: List[TagView] = Field(..., description="All tags")
    recent: List[ArticleView] = Field(..., description="Most recent articles")


# ============================================================================
# Health Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    database_connected: bool = Field(..., description="Database connection status")
    total_articles: int = Field(..., description="Articles in the store")
    uptime_seconds: Optional[int] = Field(None, description="Service uptime in seconds")


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
