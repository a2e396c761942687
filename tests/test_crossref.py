import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from reference_converter.config import ProviderSettings
from reference_converter.crossref import CrossrefProvider
from reference_converter.errors import ProviderError


def _fake_crossref_response() -> str:
    return json.dumps(
        {
            "status": "ok",
            "message": {
                "items": [
                    {
                        "title": ["Trusted Article Title"],
                        "author": [{"family": "Doe", "given": "Jane"}, {"family": "Roe"}],
                        "container-title": ["Journal of Trust"],
                        "published-online": {"date-parts": [[2022, 3]]},
                        "volume": "4",
                        "issue": "2",
                        "page": "101-110",
                        "DOI": "10.5555/Example",
                        "URL": "https://doi.org/10.5555/example",
                        "abstract": "<jats:p>An <jats:italic>abstract</jats:italic>.</jats:p>",
                    }
                ]
            },
        }
    )


def test_search_normalizes_items_into_candidates():
    provider = CrossrefProvider(fetcher=lambda _url, _timeout: _fake_crossref_response())

    candidates = provider.search("Trusted Article Title", ["Doe, Jane"], 2022)

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.title == "Trusted Article Title"
    assert candidate.authors == ["Doe, Jane", "Roe"]
    assert candidate.year == 2022
    assert candidate.venue == "Journal of Trust"
    assert candidate.number == "2"
    assert candidate.doi == "10.5555/Example"
    assert candidate.abstract == "An abstract ."
    assert candidate.provider == "crossref"


def test_candidate_fields_carry_provenance_and_bibtex_pages():
    provider = CrossrefProvider(fetcher=lambda _url, _timeout: _fake_crossref_response())
    candidate = provider.search("Trusted Article Title")[0]

    fields = provider.candidate_fields(candidate)

    assert fields["pages"] == "101--110"
    assert fields["author"] == "Doe, Jane and Roe"
    assert fields["year"] == "2022"
    assert fields["journal"] == "Journal of Trust"
    assert fields["note"] == "Retrieved from Crossref"


def test_search_url_narrows_by_author_and_year():
    seen = []

    def fetcher(url, timeout):
        seen.append((url, timeout))
        return json.dumps({"message": {"items": []}})

    provider = CrossrefProvider(
        fetcher=fetcher, timeout=2.5, settings=ProviderSettings(crossref_mailto="lab@example.org")
    )
    assert provider.search("Graph Methods", ["Hans Müller"], 2019) == []

    url, timeout = seen[0]
    query = parse_qs(urlparse(url).query)
    assert url.startswith("https://api.crossref.org/works?")
    assert query["query.bibliographic"] == ["Graph Methods"]
    assert query["query.author"] == ["Müller"]
    assert query["filter"] == ["from-pub-date:2018,until-pub-date:2020"]
    assert query["rows"] == ["5"]
    assert query["mailto"] == ["lab@example.org"]
    assert timeout == 2.5


@pytest.mark.parametrize("payload", ["", "not json", "[1, 2]"])
def test_bad_payloads_become_provider_errors(payload):
    provider = CrossrefProvider(fetcher=lambda _url, _timeout: payload)

    with pytest.raises(ProviderError) as excinfo:
        provider.search("Anything")

    assert excinfo.value.provider == "Crossref"


def test_fetcher_exceptions_become_provider_errors():
    def fetcher(_url, _timeout):
        raise TimeoutError("read timed out")

    provider = CrossrefProvider(fetcher=fetcher)

    with pytest.raises(ProviderError, match="read timed out"):
        provider.search("Anything")


def test_default_fetcher_maps_http_status_to_provider_error(monkeypatch):
    def fake_get(url, **kwargs):
        request = httpx.Request("GET", url)
        return httpx.Response(503, request=request, text="busy")

    monkeypatch.setattr(httpx, "get", fake_get)
    provider = CrossrefProvider()

    with pytest.raises(ProviderError, match="HTTP 503"):
        provider.search("Anything")


def test_default_fetcher_maps_timeouts(monkeypatch):
    def fake_get(url, **kwargs):
        raise httpx.ReadTimeout("slow", request=httpx.Request("GET", url))

    monkeypatch.setattr(httpx, "get", fake_get)
    provider = CrossrefProvider(timeout=0.5)

    with pytest.raises(ProviderError, match="timed out after 0.5s"):
        provider.search("Anything")


def test_default_fetcher_sends_user_agent(monkeypatch):
    captured = {}

    def fake_get(url, **kwargs):
        captured.update(kwargs)
        return httpx.Response(200, request=httpx.Request("GET", url), text=_fake_crossref_response())

    monkeypatch.setattr(httpx, "get", fake_get)
    provider = CrossrefProvider(settings=ProviderSettings(user_agent="tests/1.0"))

    assert provider.search("Trusted Article Title")
    assert captured["headers"]["User-Agent"] == "tests/1.0"
    assert captured["timeout"] == 10.0


def test_badly_shaped_items_become_provider_errors():
    payload = json.dumps({"message": {"items": [{"title": ["A Study of Things"], "author": ["Smith"]}]}})
    provider = CrossrefProvider(fetcher=lambda _url, _timeout: payload)

    with pytest.raises(ProviderError, match="malformed payload") as excinfo:
        provider.search("A Study of Things")

    assert excinfo.value.provider == "Crossref"
