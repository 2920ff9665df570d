"""
Typed analysis payloads rendered by the dashboard views.

These come from an external analysis service; the suite only validates and
displays them.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Effort = Literal["Low", "Medium", "High"]


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Audit ─────────────────────────────────────────────────────────────────────

class SEOIssue(_Payload):
    page: str
    type: Literal["Critical", "Warning", "Info"]
    issue: str
    fix: str


class AuditResult(_Payload):
    score: int = Field(ge=0, le=100)
    total_page_count: int
    critical_issues: int
    warnings: int
    passed_checks: int
    issues: list[SEOIssue] = Field(default_factory=list)
    strategy: str = ""


# ── Keywords ──────────────────────────────────────────────────────────────────

class KeywordMetrics(_Payload):
    volume: str
    difficulty: int
    cpc: str
    intent: str


class RelatedKeyword(_Payload):
    keyword: str
    volume: str
    difficulty: int
    intent: str


class CompetitorRank(_Payload):
    rank: int
    domain_authority: int
    url: str


class KeywordResearchResult(_Payload):
    metrics: KeywordMetrics
    related_keywords: list[RelatedKeyword] = Field(default_factory=list)
    competitors: list[CompetitorRank] = Field(default_factory=list)
    recommendation: str = ""


# ── Products & categories ─────────────────────────────────────────────────────

class RankingTimeline(_Payload):
    keyword: str
    difficulty: int
    estimated_months: str
    effort_level: Effort


class ProductSEOAnalysis(_Payload):
    product_name: str
    current_rank: int
    page_number: int
    title_optimized: bool
    desc_optimized: bool
    image_alt_optimized: bool
    schema_found: bool
    suggested_keywords: list[str] = Field(default_factory=list)
    ranking_strategy: str = ""
    meta_title: str = ""
    meta_description: str = ""
    h1_tag: str = ""
    alt_text_found: list[str] = Field(default_factory=list)
    ranking_timeline: list[RankingTimeline] = Field(default_factory=list)


class CollectionSEOAnalysis(_Payload):
    collection_name: str
    internal_links_count: int
    product_count: int
    header_hierarchy: list[str] = Field(default_factory=list)
    meta_title: str = ""
    meta_description: str = ""
    canonical_set: bool = False
    top_ranked_competitors: list[str] = Field(default_factory=list)
    optimization_gaps: list[str] = Field(default_factory=list)


# ── Roadmap ───────────────────────────────────────────────────────────────────

class AZRoadmap(_Payload):
    phase: str
    tasks: list[str] = Field(default_factory=list)
    expected_impact: Effort
    timeline: str


class Roadmap(_Payload):
    phases: list[AZRoadmap] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_list(cls, data):
        # The analysis service emits the phases as a top-level array
        return {"phases": data} if isinstance(data, list) else data


# ── Blog ──────────────────────────────────────────────────────────────────────

class ChecklistItem(_Payload):
    task: str
    done: bool


class BlogSEOAnalysis(_Payload):
    blog_title: str
    word_count: int
    content_quality: str
    ranking_potential: int
    readability_score: str
    keyword_density: str
    internal_links_count: int
    external_links_count: int
    content_strategy: str = ""
    optimization_checklist: list[ChecklistItem] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)


# ── Sitemap ───────────────────────────────────────────────────────────────────

class SitemapURL(_Payload):
    loc: str
    lastmod: str = ""
    changefreq: str = ""
    priority: str = ""


class SitemapAnalysis(_Payload):
    total_urls: int
    missing_images: int
    broken_links: list[str] = Field(default_factory=list)
    indexability_issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class SitemapResult(_Payload):
    xml: str = ""
    urls: list[SitemapURL] = Field(default_factory=list)
    analysis: SitemapAnalysis
