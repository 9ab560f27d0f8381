# Tests for web search providers and result ranking.
# Created: 2026-09-07

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from anythingai.config import Settings
from anythingai.context.search import (
    enrich_results,
    extract_page_text,
    format_web_context,
    is_time_sensitive_query,
    parse_duckduckgo_lite,
    rank_results,
    resolve_provider,
    search_web,
)
from anythingai.llm.events import WebResult


def _settings(**overrides) -> Settings:
    values = {
        "web_search_provider": "auto",
        "tavily_api_key": None,
        "brave_search_api_key": None,
        "serpapi_api_key": None,
    }
    values.update(overrides)
    return Settings(**values)


def _mock_client(method: str, resp):
    mock_client = AsyncMock()
    getattr(mock_client, method).return_value = resp
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


class TestResolveProvider:
    def test_auto_prefers_first_configured_key(self):
        assert resolve_provider(_settings(brave_search_api_key="b")) == "brave"
        assert resolve_provider(_settings(tavily_api_key="t", serpapi_api_key="s")) == "tavily"

    def test_auto_without_keys_uses_duckduckgo(self):
        assert resolve_provider(_settings()) == "duckduckgo"

    def test_explicit_provider_wins(self):
        assert resolve_provider(_settings(web_search_provider="serpapi")) == "serpapi"


class TestRankResults:
    def test_dedupes_by_link_and_keeps_order(self):
        results = [
            WebResult("A", "https://a.example/"),
            WebResult("B", "https://b.example"),
            WebResult("A again", "https://A.example"),
            WebResult("No link", ""),
        ]
        ranked = rank_results(results)
        assert [r.title for r in ranked] == ["A", "B"]

    def test_caps_at_limit(self):
        results = [WebResult(str(i), f"https://{i}.example") for i in range(10)]
        assert len(rank_results(results)) == 5


class TestTimeSensitive:
    @pytest.mark.parametrize(
        "message",
        ["latest news", "bitcoin price", "weather in Oslo", "live score", "USD exchange rate"],
    )
    def test_matches(self, message):
        assert is_time_sensitive_query(message)

    def test_timeless(self):
        assert not is_time_sensitive_query("explain how recursion works")


class TestSearchWeb:
    async def test_tavily_search_success(self):
        mock_resp = MagicMock()
        mock_resp.raise_for_status = MagicMock()
        mock_resp.json.return_value = {
            "results": [
                {
                    "title": "Python Docs",
                    "url": "https://docs.python.org",
                    "content": "Official Python documentation",
                }
            ]
        }

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client("post", mock_resp)
            mock_client_cls.return_value = mock_client

            settings = _settings(web_search_provider="tavily", tavily_api_key="test-key")
            results = await search_web("python docs", settings)

        assert results == [
            WebResult("Python Docs", "https://docs.python.org", "Official Python documentation")
        ]
        assert mock_client.post.call_args.kwargs["json"]["api_key"] == "test-key"

    async def test_brave_search_success(self):
        mock_resp = MagicMock()
        mock_resp.raise_for_status = MagicMock()
        mock_resp.json.return_value = {
            "web": {
                "results": [
                    {
                        "title": "Brave Search",
                        "url": "https://brave.com",
                        "description": "Privacy search engine",
                        "profile": {"name": "Brave"},
                    }
                ]
            }
        }

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client("get", mock_resp)
            mock_client_cls.return_value = mock_client

            results = await search_web("brave", _settings(brave_search_api_key="test-brave-key"))

        assert [r.link for r in results] == ["https://brave.com"]
        assert results[0].source == "Brave"
        headers = mock_client.get.call_args.kwargs["headers"]
        assert headers["X-Subscription-Token"] == "test-brave-key"

    async def test_serpapi_search_success(self):
        mock_resp = MagicMock()
        mock_resp.raise_for_status = MagicMock()
        mock_resp.json.return_value = {
            "organic_results": [
                {"title": "Result", "link": "https://serp.example", "snippet": "From Google"}
            ]
        }

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client_cls.return_value = _mock_client("get", mock_resp)
            results = await search_web("q", _settings(serpapi_api_key="serp-key"))

        assert results[0].snippet == "From Google"

    async def test_duckduckgo_lite_parsing(self):
        page = (
            '<a rel="nofollow" class="result-link" href="https://ddg.example/a">'
            "First &amp; best</a></td></tr>"
            '<tr><td class="result-snippet">Some <b>bold</b> text</td>'
        )
        mock_resp = MagicMock()
        mock_resp.raise_for_status = MagicMock()
        mock_resp.text = page

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client_cls.return_value = _mock_client("get", mock_resp)
            results = await search_web("q", _settings())

        assert results == [
            WebResult("First & best", "https://ddg.example/a", "Some bold text", "DuckDuckGo")
        ]

    async def test_missing_tavily_api_key(self):
        with pytest.raises(ValueError, match="Tavily API key"):
            await search_web("test", _settings(web_search_provider="tavily"))

    async def test_missing_brave_api_key(self):
        with pytest.raises(ValueError, match="Brave Search API key"):
            await search_web("test", _settings(web_search_provider="brave"))

    async def test_http_error_propagates(self):
        mock_resp = MagicMock()
        mock_resp.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Unauthorized",
            request=MagicMock(),
            response=MagicMock(status_code=401),
        )

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client_cls.return_value = _mock_client("post", mock_resp)
            with pytest.raises(httpx.HTTPStatusError):
                await search_web("test", _settings(tavily_api_key="test-key"))


class TestDuckDuckGoParsing:
    def test_table_layout(self):
        page = """
        <table>
          <tr><td>1.</td><td>
            <a rel="nofollow" href="https://one.example/" class='result-link'>One</a>
          </td></tr>
          <tr><td></td><td class='result-snippet'>First   <b>snippet</b></td></tr>
          <tr><td>2.</td><td>
            <a rel="nofollow" href="https://two.example/" class='result-link'>Two</a>
          </td></tr>
          <tr><td></td><td class='result-snippet'>Second snippet</td></tr>
        </table>
        """
        results = parse_duckduckgo_lite(page)
        assert [(r.title, r.link, r.snippet) for r in results] == [
            ("One", "https://one.example/", "First snippet"),
            ("Two", "https://two.example/", "Second snippet"),
        ]

    def test_limit(self):
        row = '<a class="result-link" href="https://{0}.example">{0}</a>'
        page = "".join(row.format(i) for i in range(8))
        assert len(parse_duckduckgo_lite(page, limit=3)) == 3


class TestEnrichment:
    def test_extract_page_text(self):
        page = (
            "<html><head><title>T</title><style>body{color:red}</style>"
            "<script>var x = 1;</script></head>"
            "<body><h1>Headline</h1>\n<p>Some   body\ttext.</p></body></html>"
        )
        assert extract_page_text(page) == "T Headline Some body text."

    def test_extract_page_text_truncates(self):
        text = extract_page_text("<p>" + "word " * 1000 + "</p>")
        assert len(text) == 1200

    async def test_top_two_results_get_excerpts(self):
        results = [WebResult(str(i), f"https://{i}.example", "snip") for i in range(4)]
        page = MagicMock()
        page.raise_for_status = MagicMock()
        page.text = "<p>Full article text</p>"

        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client("get", page)
            mock_client_cls.return_value = mock_client
            enriched = await enrich_results(results)

        assert [r.content for r in enriched] == [
            "Full article text",
            "Full article text",
            None,
            None,
        ]
        fetched = [c.args[0] for c in mock_client.get.call_args_list]
        assert fetched == ["https://0.example", "https://1.example"]

    async def test_failed_page_keeps_snippet(self):
        results = [WebResult("A", "https://a.example", "snip")]
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client("get", None)
            mock_client.get.side_effect = httpx.ConnectError("refused")
            mock_client_cls.return_value = mock_client
            enriched = await enrich_results(results)
        assert enriched == results

    async def test_snippet_only_skips_fetching(self):
        results = [WebResult("A", "https://a.example", "snip")]
        with patch("httpx.AsyncClient") as mock_client_cls:
            assert await enrich_results(results, snippet_only=True) == results
        mock_client_cls.assert_not_called()


def test_format_web_context():
    text = format_web_context(
        [
            WebResult("Title", "https://example.com", "Snippet", source="Example"),
            WebResult("Other", "https://other.example", content="Page excerpt"),
        ],
        "2026-09-07T08:00:00+00:00",
    )
    assert text.startswith("Realtime web results (Last updated: 2026-09-07T08:00:00+00:00):")
    assert "1. Title (Example)\nhttps://example.com\nSnippet" in text
    assert "2. Other\nhttps://other.example\nExcerpt: Page excerpt" in text
