# Web search: Tavily, Brave, SerpAPI, or DuckDuckGo lite (no key).
# Created: 2026-09-04
#
# Providers return raw ranked results and raise on transport/HTTP failure.
# The generation client treats any failure as "no web context".
# The top results can be enriched with a short excerpt of the page itself.

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import replace

import httpx
from bs4 import BeautifulSoup

from anythingai.config import Settings
from anythingai.llm.events import WebResult

logger = logging.getLogger(__name__)

_TAVILY_URL = "https://api.tavily.com/search"
_BRAVE_URL = "https://api.search.brave.com/res/v1/web/search"
_SERPAPI_URL = "https://serpapi.com/search.json"
_DDG_LITE_URL = "https://lite.duckduckgo.com/lite/"

MAX_RESULTS = 5
_TIMEOUT = 15

_TIME_SENSITIVE = re.compile(
    r"\b(news|breaking|today|now|current|price|prices|stock|weather|forecast|score|"
    r"earthquake|traffic|delay|exchange rate|crypto|market|live)\b",
    re.IGNORECASE,
)

ENRICHED_RESULTS = 2
EXCERPT_CHARS = 1200
_PAGE_TIMEOUT = 10
_USER_AGENT = "Mozilla/5.0"


def is_time_sensitive_query(message: str) -> bool:
    """Keyword heuristic for questions that need live web data."""
    return bool(_TIME_SENSITIVE.search(message))


def rank_results(results: list[WebResult], limit: int = MAX_RESULTS) -> list[WebResult]:
    """Keep provider order, drop link-less and duplicate entries, cap at *limit*."""
    seen: set[str] = set()
    ranked: list[WebResult] = []
    for r in results:
        link = r.link.strip()
        if not link:
            continue
        key = link.rstrip("/").lower()
        if key in seen:
            continue
        seen.add(key)
        ranked.append(r)
        if len(ranked) >= limit:
            break
    return ranked


def resolve_provider(settings: Settings) -> str:
    """Pick the configured provider; ``auto`` uses the first key that is set."""
    provider = settings.web_search_provider
    if provider != "auto":
        return provider
    if settings.tavily_api_key:
        return "tavily"
    if settings.brave_search_api_key:
        return "brave"
    if settings.serpapi_api_key:
        return "serpapi"
    return "duckduckgo"


async def search_web(
    query: str, settings: Settings, num_results: int = MAX_RESULTS
) -> list[WebResult]:
    """Run *query* against the configured provider and return ranked results."""
    provider = resolve_provider(settings)
    num_results = min(max(num_results, 1), 10)

    if provider == "tavily":
        results = await _search_tavily(query, num_results, settings.tavily_api_key)
    elif provider == "brave":
        results = await _search_brave(query, num_results, settings.brave_search_api_key)
    elif provider == "serpapi":
        results = await _search_serpapi(query, settings.serpapi_api_key)
    else:
        results = await _search_duckduckgo(query)

    logger.info("Web search via %s for %r: %d results", provider, query, len(results))
    return rank_results(results, num_results)


async def _search_tavily(query: str, num_results: int, api_key: str | None) -> list[WebResult]:
    if not api_key:
        raise ValueError("Tavily API key not configured. Set ANYTHINGAI_TAVILY_API_KEY.")

    async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
        resp = await client.post(
            _TAVILY_URL,
            json={
                "api_key": api_key,
                "query": query,
                "max_results": num_results,
                "include_answer": False,
            },
        )
        resp.raise_for_status()
        data = resp.json()

    return [
        WebResult(
            title=r.get("title") or "Untitled",
            link=r.get("url", ""),
            snippet=(r.get("content") or "")[:300],
        )
        for r in data.get("results", [])
    ]


async def _search_brave(query: str, num_results: int, api_key: str | None) -> list[WebResult]:
    if not api_key:
        raise ValueError(
            "Brave Search API key not configured. Set ANYTHINGAI_BRAVE_SEARCH_API_KEY."
        )

    async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
        resp = await client.get(
            _BRAVE_URL,
            params={"q": query, "count": num_results, "source": "web"},
            headers={
                "X-Subscription-Token": api_key,
                "Accept": "application/json",
            },
        )
        resp.raise_for_status()
        data = resp.json()

    return [
        WebResult(
            title=r.get("title") or "Untitled",
            link=r.get("url", ""),
            snippet=r.get("description", ""),
            source=(r.get("profile") or {}).get("name"),
        )
        for r in data.get("web", {}).get("results", [])
    ]


async def _search_serpapi(query: str, api_key: str | None) -> list[WebResult]:
    if not api_key:
        raise ValueError("SerpAPI key not configured. Set ANYTHINGAI_SERPAPI_API_KEY.")

    async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
        resp = await client.get(
            _SERPAPI_URL,
            params={"engine": "google", "q": query, "api_key": api_key},
        )
        resp.raise_for_status()
        data = resp.json()

    return [
        WebResult(
            title=r.get("title") or "Untitled",
            link=r.get("link", ""),
            snippet=r.get("snippet", ""),
        )
        for r in data.get("organic_results", [])
    ]


async def _search_duckduckgo(query: str) -> list[WebResult]:
    async with httpx.AsyncClient(timeout=_TIMEOUT, follow_redirects=True) as client:
        resp = await client.get(
            _DDG_LITE_URL,
            params={"q": query},
            headers={"User-Agent": _USER_AGENT},
        )
        resp.raise_for_status()
        page = resp.text

    return parse_duckduckgo_lite(page)


def parse_duckduckgo_lite(page: str, limit: int = MAX_RESULTS) -> list[WebResult]:
    """Pull results out of a DuckDuckGo lite HTML page."""
    soup = BeautifulSoup(page, "html.parser")
    results: list[WebResult] = []
    for anchor in soup.find_all("a", class_="result-link"):
        link = anchor.get("href", "").strip()
        if not link:
            continue
        snippet_cell = anchor.find_next("td", class_="result-snippet")
        results.append(
            WebResult(
                title=anchor.get_text(strip=True) or "Untitled",
                link=link,
                snippet=" ".join(snippet_cell.get_text(" ").split()) if snippet_cell else "",
                source="DuckDuckGo",
            )
        )
        if len(results) >= limit:
            break
    return results


def extract_page_text(page: str, limit: int = EXCERPT_CHARS) -> str:
    """Visible text of an HTML page, whitespace-collapsed and cut to *limit* chars."""
    soup = BeautifulSoup(page, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    return " ".join(soup.get_text(separator=" ").split())[:limit]


async def fetch_page_text(client: httpx.AsyncClient, url: str) -> str:
    resp = await client.get(url, headers={"User-Agent": _USER_AGENT})
    resp.raise_for_status()
    return extract_page_text(resp.text)


async def enrich_results(
    results: list[WebResult],
    *,
    snippet_only: bool = False,
    limit: int = ENRICHED_RESULTS,
) -> list[WebResult]:
    """Attach a page excerpt to the top *limit* results.

    Pages that fail to load keep their snippet only.
    """
    if snippet_only or not results or limit <= 0:
        return list(results)

    head = results[:limit]
    async with httpx.AsyncClient(timeout=_PAGE_TIMEOUT, follow_redirects=True) as client:
        pages = await asyncio.gather(
            *(fetch_page_text(client, r.link) for r in head), return_exceptions=True
        )

    enriched: list[WebResult] = []
    for result, page in zip(head, pages, strict=True):
        if isinstance(page, BaseException):
            logger.debug("Could not fetch %s for an excerpt: %s", result.link, page)
            enriched.append(result)
        else:
            enriched.append(replace(result, content=page) if page else result)
    return enriched + list(results[limit:])


def format_web_context(results: list[WebResult], last_updated: str) -> str:
    """Render results as the prompt block the model sees."""
    blocks = []
    for i, r in enumerate(results, 1):
        source = f" ({r.source})" if r.source else ""
        block = f"{i}. {r.title}{source}\n{r.link}"
        if r.snippet:
            block += f"\n{r.snippet}"
        if r.content:
            block += f"\nExcerpt: {r.content}"
        blocks.append(block)
    return f"Realtime web results (Last updated: {last_updated}):\n" + "\n\n".join(blocks)
