import json

from reference_converter.config import ConversionOptions, ProviderSettings
from reference_converter.crossref import CrossrefProvider
from reference_converter.enhancement import EnhancementPipeline, merge_fields
from reference_converter.errors import ProviderError
from reference_converter.models import Candidate, FieldSet
from reference_converter.semantic_scholar import SemanticScholarProvider


class CountingLimiter:
    def __init__(self):
        self.calls = 0

    def acquire(self) -> float:
        self.calls += 1
        return 0.0


class StubProvider:
    def __init__(self, name, candidates=None, error=None):
        self.name = name
        self.label = name.title()
        self.candidates = candidates or []
        self.error = error
        self.queries = []

    def search(self, title, authors=None, year=None):
        self.queries.append((title, list(authors or []), year))
        if self.error:
            raise ProviderError(self.label, self.error)
        return self.candidates

    def candidate_fields(self, candidate):
        return FieldSet(title=candidate.title, doi=candidate.doi, note=f"From {self.label}")

    def check(self):
        if self.error:
            raise ProviderError(self.label, self.error)


def _record() -> FieldSet:
    return FieldSet(title="Deep Learning for Citation Parsing", author="Doe, Jane and Roe, Richard", year="2021")


def test_merge_fills_only_empty_fields():
    original = FieldSet(title="Mine", journal="", note="Local note")
    offered = FieldSet(title="Theirs", journal="Their Journal", doi="10.1/x", note="Retrieved from Crossref")

    merged = merge_fields(original, offered)

    assert merged["title"] == "Mine"
    assert merged["journal"] == "Their Journal"
    assert merged["doi"] == "10.1/x"
    assert merged["note"] == "Local note; Retrieved from Crossref"
    assert original["journal"] == ""


def test_first_accepted_match_wins():
    hit = Candidate(title="Deep Learning for Citation Parsing", doi="10.1/first")
    first = StubProvider("first", [hit])
    second = StubProvider("second", [Candidate(title="Deep Learning for Citation Parsing", doi="10.1/second")])
    limiter = CountingLimiter()

    fields, warnings = EnhancementPipeline([first, second], rate_limiter=limiter).enhance(_record())

    assert fields["doi"] == "10.1/first"
    assert fields["note"] == "From First"
    assert warnings == []
    assert second.queries == []
    assert limiter.calls == 1
    assert first.queries == [("Deep Learning for Citation Parsing", ["Doe, Jane", "Roe, Richard"], 2021)]


def test_provider_failure_becomes_warning_and_falls_through():
    failing = StubProvider("first", error="HTTP 429")
    backup = StubProvider("second", [Candidate(title="Deep Learning for Citation Parsing", doi="10.1/backup")])
    limiter = CountingLimiter()

    fields, warnings = EnhancementPipeline([failing, backup], rate_limiter=limiter).enhance(_record())

    assert fields["doi"] == "10.1/backup"
    assert warnings == ["First lookup failed for 'Deep Learning for Citation Parsing': HTTP 429"]
    assert limiter.calls == 2


def test_weak_candidates_are_rejected():
    weak = StubProvider("first", [Candidate(title="Something Else Entirely")])

    fields, warnings = EnhancementPipeline([weak], rate_limiter=CountingLimiter()).enhance(_record())

    assert fields == _record()
    assert warnings == []


def test_records_without_title_are_not_looked_up():
    provider = StubProvider("first", [Candidate(title="Anything")])
    limiter = CountingLimiter()

    fields, _ = EnhancementPipeline([provider], rate_limiter=limiter).enhance(FieldSet(author="Doe, Jane"))

    assert provider.queries == []
    assert limiter.calls == 0
    assert fields == FieldSet(author="Doe, Jane")


def test_pipeline_with_real_providers_and_fake_fetchers():
    def semantic_fetcher(_url, _timeout):
        raise ConnectionError("connection refused")

    def crossref_fetcher(_url, _timeout):
        return json.dumps(
            {
                "message": {
                    "items": [
                        {
                            "title": ["Deep Learning for Citation Parsing"],
                            "author": [{"family": "Doe", "given": "Jane"}, {"family": "Roe", "given": "Richard"}],
                            "issued": {"date-parts": [[2021]]},
                            "container-title": ["IEEE Transactions on Computers"],
                            "DOI": "10.1109/TC.2021.12345",
                        }
                    ]
                }
            }
        )

    pipeline = EnhancementPipeline(
        [SemanticScholarProvider(fetcher=semantic_fetcher), CrossrefProvider(fetcher=crossref_fetcher)],
        rate_limiter=CountingLimiter(),
    )

    fields, warnings = pipeline.enhance(_record())

    assert fields["journal"] == "IEEE Transactions on Computers"
    assert fields["doi"] == "10.1109/TC.2021.12345"
    assert fields["note"] == "Retrieved from Crossref"
    assert fields["author"] == "Doe, Jane and Roe, Richard"
    assert len(warnings) == 1
    assert warnings[0].startswith("Semantic Scholar lookup failed")
    assert "connection refused" in warnings[0]


def test_from_options_uses_configured_timeout_and_delay():
    options = ConversionOptions(api_timeout_ms=2500, api_rate_limit_delay_ms=250)

    pipeline = EnhancementPipeline.from_options(options, ProviderSettings(crossref_mailto="lab@example.org"))

    assert [provider.name for provider in pipeline.providers] == ["semantic_scholar", "crossref"]
    assert all(provider.timeout == 2.5 for provider in pipeline.providers)
    assert pipeline.providers[1].settings.crossref_mailto == "lab@example.org"
    assert pipeline.rate_limiter.min_interval == 0.25


def test_check_connectivity_reports_each_provider():
    pipeline = EnhancementPipeline(
        [StubProvider("first"), StubProvider("second", error="HTTP 503")], rate_limiter=CountingLimiter()
    )

    assert pipeline.check_connectivity() == {
        "First": {"status": "success", "message": "API accessible"},
        "Second": {"status": "error", "message": "HTTP 503"},
    }
