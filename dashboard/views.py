"""
Analysis views. Each takes a ViewContext and returns an HTML fragment.

Views only display: the monitor view shows the stored snapshot history, the
others show the payload the analysis service produced for the active project.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape
from typing import Optional

from analysis.results import (
    AuditResult,
    BlogSEOAnalysis,
    CollectionSEOAnalysis,
    KeywordResearchResult,
    ProductSEOAnalysis,
    Roadmap,
    SitemapResult,
)
from analysis.source import ReportSource
from core.models import Project
from dashboard.router import ToolMode, ViewRouter, mode_title


@dataclass
class ViewContext:
    project: Optional[Project]
    reports: ReportSource


# ── Helpers ───────────────────────────────────────────────────────────────────

def _fmt_ts(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def _list(items: list[str]) -> str:
    if not items:
        return "<p class=\"muted\">None</p>"
    return "<ul>" + "".join(f"<li>{escape(i)}</li>" for i in items) + "</ul>"


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def _no_project() -> str:
    return "<div class=\"empty\"><p>No project selected. Add a project to start tracking.</p></div>"


def _pending(mode: ToolMode, project: Project) -> str:
    return (
        f"<div class=\"empty\"><p>No {escape(mode_title(mode))} results yet for "
        f"{escape(project.name)}.</p></div>"
    )


def _load(ctx: ViewContext, mode: ToolMode, model):
    return ctx.reports.load(ctx.project.id, mode.value, model)


# ── Monitor ───────────────────────────────────────────────────────────────────

def render_monitor(ctx: ViewContext) -> str:
    project = ctx.project
    if project is None:
        return _no_project()

    latest = project.latest_snapshot()
    keywords = ", ".join(escape(k) for k in project.tracked_keywords) or "none"
    parts = [
        f"<h2>{escape(project.name)}</h2>",
        f"<p>{escape(project.url)} &middot; {escape(project.country)} &middot; {project.type.value}</p>",
        f"<p>Tracked keywords: {keywords}</p>",
    ]
    if latest is None:
        parts.append("<p class=\"muted\">No snapshots recorded yet.</p>")
        return "\n".join(parts)

    parts.append(
        f"<div class=\"kpis\"><span>Score {latest.score}/100</span>"
        f"<span>Rank #{latest.rank}</span><span>Page {latest.page}</span></div>"
    )
    rows = "".join(
        f"<tr><td>{_fmt_ts(s.timestamp)}</td><td>{s.score}</td><td>{s.rank}</td>"
        f"<td>{s.page}</td><td>{escape(s.meta_title)}</td><td>{escape(s.h1_tag)}</td>"
        f"<td>{escape(', '.join(s.top_keywords))}</td></tr>"
        for s in project.history
    )
    parts.append(
        "<table class=\"history\"><thead><tr><th>Checked</th><th>Score</th><th>Rank</th>"
        "<th>Page</th><th>Meta title</th><th>H1</th><th>Top keywords</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
    )
    return "\n".join(parts)


# ── Analysis views ────────────────────────────────────────────────────────────

def render_audit(ctx: ViewContext) -> str:
    if ctx.project is None:
        return _no_project()
    result = _load(ctx, ToolMode.AUDIT, AuditResult)
    if result is None:
        return _pending(ToolMode.AUDIT, ctx.project)
    rows = "".join(
        f"<tr class=\"{i.type.lower()}\"><td>{i.type}</td><td>{escape(i.page)}</td>"
        f"<td>{escape(i.issue)}</td><td>{escape(i.fix)}</td></tr>"
        for i in result.issues
    )
    return (
        f"<h2>Site score {result.score}/100</h2>"
        f"<p>{result.total_page_count} pages &middot; {result.critical_issues} critical &middot; "
        f"{result.warnings} warnings &middot; {result.passed_checks} passed</p>"
        f"<table><thead><tr><th>Severity</th><th>Page</th><th>Issue</th><th>Fix</th></tr></thead>"
        f"<tbody>{rows}</tbody></table>"
        f"<h3>Strategy</h3><p>{escape(result.strategy)}</p>"
    )


def render_keyword(ctx: ViewContext) -> str:
    if ctx.project is None:
        return _no_project()
    result = _load(ctx, ToolMode.KEYWORD, KeywordResearchResult)
    if result is None:
        return _pending(ToolMode.KEYWORD, ctx.project)
    m = result.metrics
    related = "".join(
        f"<tr><td>{escape(k.keyword)}</td><td>{escape(k.volume)}</td><td>{k.difficulty}</td>"
        f"<td>{escape(k.intent)}</td></tr>"
        for k in result.related_keywords
    )
    competitors = "".join(
        f"<li>#{c.rank} {escape(c.url)} (DA {c.domain_authority})</li>" for c in result.competitors
    )
    return (
        f"<div class=\"kpis\"><span>Volume {escape(m.volume)}</span><span>KD {m.difficulty}</span>"
        f"<span>CPC {escape(m.cpc)}</span><span>{escape(m.intent)}</span></div>"
        f"<table><thead><tr><th>Keyword</th><th>Volume</th><th>KD</th><th>Intent</th></tr></thead>"
        f"<tbody>{related}</tbody></table>"
        f"<h3>Top competitors</h3><ol>{competitors}</ol>"
        f"<h3>Recommendation</h3><p>{escape(result.recommendation)}</p>"
    )


def render_product(ctx: ViewContext) -> str:
    if ctx.project is None:
        return _no_project()
    result = _load(ctx, ToolMode.PRODUCT, ProductSEOAnalysis)
    if result is None:
        return _pending(ToolMode.PRODUCT, ctx.project)
    timeline = "".join(
        f"<tr><td>{escape(t.keyword)}</td><td>{t.difficulty}</td>"
        f"<td>{escape(t.estimated_months)}</td><td>{t.effort_level}</td></tr>"
        for t in result.ranking_timeline
    )
    return (
        f"<h2>{escape(result.product_name)}</h2>"
        f"<p>Rank #{result.current_rank} on page {result.page_number}</p>"
        f"<ul><li>Title optimized: {_yes_no(result.title_optimized)}</li>"
        f"<li>Description optimized: {_yes_no(result.desc_optimized)}</li>"
        f"<li>Image alt optimized: {_yes_no(result.image_alt_optimized)}</li>"
        f"<li>Schema found: {_yes_no(result.schema_found)}</li></ul>"
        f"<h3>Meta</h3><p>{escape(result.meta_title)}</p><p>{escape(result.meta_description)}</p>"
        f"<p>H1: {escape(result.h1_tag)}</p>"
        f"<h3>Suggested keywords</h3>{_list(result.suggested_keywords)}"
        f"<h3>Ranking timeline</h3><table><tbody>{timeline}</tbody></table>"
        f"<h3>Strategy</h3><p>{escape(result.ranking_strategy)}</p>"
    )


def render_collection(ctx: ViewContext) -> str:
    if ctx.project is None:
        return _no_project()
    result = _load(ctx, ToolMode.COLLECTION, CollectionSEOAnalysis)
    if result is None:
        return _pending(ToolMode.COLLECTION, ctx.project)
    return (
        f"<h2>{escape(result.collection_name)}</h2>"
        f"<p>{result.product_count} products &middot; {result.internal_links_count} internal links "
        f"&middot; canonical set: {_yes_no(result.canonical_set)}</p>"
        f"<h3>Header hierarchy</h3>{_list(result.header_hierarchy)}"
        f"<h3>Top ranked competitors</h3>{_list(result.top_ranked_competitors)}"
        f"<h3>Optimization gaps</h3>{_list(result.optimization_gaps)}"
    )


def render_roadmap(ctx: ViewContext) -> str:
    if ctx.project is None:
        return _no_project()
    result = _load(ctx, ToolMode.ROADMAP, Roadmap)
    if result is None:
        return _pending(ToolMode.ROADMAP, ctx.project)
    return "".join(
        f"<section class=\"phase\"><h3>{escape(p.phase)}</h3>"
        f"<p>{escape(p.timeline)} &middot; impact {p.expected_impact}</p>{_list(p.tasks)}</section>"
        for p in result.phases
    )


def render_blog(ctx: ViewContext) -> str:
    if ctx.project is None:
        return _no_project()
    result = _load(ctx, ToolMode.BLOG, BlogSEOAnalysis)
    if result is None:
        return _pending(ToolMode.BLOG, ctx.project)
    checklist = "".join(
        f"<li>{'[x]' if item.done else '[ ]'} {escape(item.task)}</li>"
        for item in result.optimization_checklist
    )
    return (
        f"<h2>{escape(result.blog_title)}</h2>"
        f"<p>{result.word_count} words &middot; quality {escape(result.content_quality)} &middot; "
        f"ranking potential {result.ranking_potential}% &middot; readability "
        f"{escape(result.readability_score)} &middot; density {escape(result.keyword_density)}</p>"
        f"<p>{result.internal_links_count} internal / {result.external_links_count} external links</p>"
        f"<h3>Checklist</h3><ul>{checklist}</ul>"
        f"<h3>Missing keywords</h3>{_list(result.missing_keywords)}"
        f"<h3>Strategy</h3><p>{escape(result.content_strategy)}</p>"
    )


def render_sitemap(ctx: ViewContext) -> str:
    if ctx.project is None:
        return _no_project()
    result = _load(ctx, ToolMode.SITEMAP, SitemapResult)
    if result is None:
        return _pending(ToolMode.SITEMAP, ctx.project)
    a = result.analysis
    urls = "".join(
        f"<tr><td>{escape(u.loc)}</td><td>{escape(u.lastmod)}</td>"
        f"<td>{escape(u.changefreq)}</td><td>{escape(u.priority)}</td></tr>"
        for u in result.urls
    )
    return (
        f"<p>{a.total_urls} URLs &middot; {a.missing_images} missing images</p>"
        f"<table><tbody>{urls}</tbody></table>"
        f"<h3>Broken links</h3>{_list(a.broken_links)}"
        f"<h3>Indexability issues</h3>{_list(a.indexability_issues)}"
        f"<h3>Suggestions</h3>{_list(a.suggestions)}"
        f"<h3>sitemap.xml</h3><pre>{escape(result.xml)}</pre>"
    )


def register_default_views(router: ViewRouter) -> ViewRouter:
    router.register(ToolMode.MONITOR, render_monitor)
    router.register(ToolMode.AUDIT, render_audit)
    router.register(ToolMode.KEYWORD, render_keyword)
    router.register(ToolMode.PRODUCT, render_product)
    router.register(ToolMode.COLLECTION, render_collection)
    router.register(ToolMode.ROADMAP, render_roadmap)
    router.register(ToolMode.BLOG, render_blog)
    router.register(ToolMode.SITEMAP, render_sitemap)
    return router
