"""Tests for CompletionEstimatorClient (fallback, validation, timeout, cache)."""

import threading
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, Iterator
from unittest.mock import MagicMock

import pytest

from stalewatch.config import AppConfig, CacheConfig, EstimatorConfig
from stalewatch.estimator import (
    AnalysisCache,
    ChatCompletionsEstimator,
    CompletionEstimator,
    CompletionEstimatorClient,
    EstimatorError,
    build_request,
    is_estimable,
)
from stalewatch.models import (
    FALLBACK_ANALYSIS,
    AssigneeActivity,
    CompletionAnalysis,
    EstimateRequest,
    Issue,
    PullRequestRef,
    RepoStats,
    User,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

GOOD_RESPONSE = {
    "completionProbability": 72,
    "estimatedDays": 4,
    "isUserActive": True,
    "risk": "low",
    "reasoning": "Assignee updated the issue yesterday.",
    "recommendation": "No action needed.",
}


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ScriptedEstimator(CompletionEstimator):
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[EstimateRequest] = []

    def analyze(self, request: EstimateRequest) -> Dict[str, Any]:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        return item


def _issue(**overrides: Any) -> Issue:
    data: dict[str, Any] = {
        "id": 555,
        "number": 42,
        "title": "Add dark mode",
        "state": "open",
        "created_at": NOW - timedelta(days=20),
        "updated_at": NOW - timedelta(days=2),
        "assignee": User(login="alice"),
        "assignees": [User(login="alice")],
        "comments": 3,
    }
    data.update(overrides)
    return Issue(**data)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def _client(estimator: CompletionEstimator, clock: FakeClock, **kwargs: Any) -> CompletionEstimatorClient:
    return CompletionEstimatorClient(estimator, cache=AnalysisCache(ttl_seconds=300, clock=clock), **kwargs)


class TestBuildRequest:
    """build_request summarizes the issue and attaches context."""

    def test_summary_fields(self) -> None:
        activity = AssigneeActivity(login="alice", contributions=12, recent_activity="away")
        stats = RepoStats(avg_time_to_close=6.5, open_issues=17)
        request = build_request(_issue(pull_request=PullRequestRef(url="u")), activity, stats)
        assert request.issue.title == "Add dark mode"
        assert request.issue.number == 42
        assert request.issue.state == "open"
        assert request.issue.assignee == "alice"
        assert request.issue.comments == 3
        assert request.issue.has_pull_request is True
        assert request.assignee_activity is activity
        assert request.repo_stats is stats

    def test_defaults_for_missing_context(self) -> None:
        request = build_request(_issue(assignee=None, assignees=[User(login="bob")]))
        assert request.issue.assignee == "bob"
        assert request.assignee_activity.login == "bob"
        assert request.repo_stats.open_issues == 0

    def test_payload_is_json_serializable(self) -> None:
        dumped = build_request(_issue()).model_dump(mode="json")
        assert dumped["issue"]["created_at"].startswith("2024-05-12")


def test_is_estimable() -> None:
    assert is_estimable(_issue()) is True
    assert is_estimable(_issue(state="closed")) is False
    assert is_estimable(_issue(assignee=None, assignees=[])) is False


class TestEstimateSuccess:
    """A valid estimator answer is validated and returned."""

    def test_returns_validated_analysis(self, clock: FakeClock) -> None:
        estimator = ScriptedEstimator(GOOD_RESPONSE)
        with _client(estimator, clock) as client:
            result = client.estimate(_issue(), AssigneeActivity(login="alice"), RepoStats(open_issues=3))
        assert result.source == "estimator"
        assert result.is_fallback is False
        assert result.cached is False
        assert result.analysis.completion_probability == 72
        assert result.analysis.estimated_days == 4
        assert result.analysis.risk == "low"
        assert result.analysis.model_dump(by_alias=True) == GOOD_RESPONSE
        assert estimator.requests[0].repo_stats.open_issues == 3

    def test_integral_float_is_accepted(self, clock: FakeClock) -> None:
        """Whole-number floats from JSON validate into ints."""
        estimator = ScriptedEstimator({**GOOD_RESPONSE, "completionProbability": 60.0})
        with _client(estimator, clock) as client:
            result = client.estimate(_issue())
        assert result.source == "estimator"
        assert result.analysis.completion_probability == 60


class TestFallback:
    """Every failure resolves to the fixed fallback analysis, never raises."""

    @pytest.mark.parametrize(
        "failure",
        [
            RuntimeError("network down"),
            EstimatorError("Estimator API key not configured"),
            ConnectionError("refused"),
            ValueError(""),
        ],
    )
    def test_exception_gives_fallback(self, clock: FakeClock, failure: Exception) -> None:
        with _client(ScriptedEstimator(failure), clock) as client:
            result = client.estimate(_issue())
        assert result.analysis == FALLBACK_ANALYSIS
        assert result.source == "fallback"
        assert result.error

    def test_fallback_values(self) -> None:
        assert FALLBACK_ANALYSIS.model_dump(by_alias=True) == {
            "completionProbability": 50,
            "estimatedDays": 7,
            "isUserActive": False,
            "risk": "medium",
            "reasoning": "Unable to analyze - using default estimates",
            "recommendation": "Monitor this issue for activity",
        }

    @pytest.mark.parametrize(
        "malformed",
        [
            {**GOOD_RESPONSE, "completionProbability": 140},
            {**GOOD_RESPONSE, "estimatedDays": -2},
            {**GOOD_RESPONSE, "risk": "extreme"},
            {k: v for k, v in GOOD_RESPONSE.items() if k != "reasoning"},
            ["not", "an", "object"],
            None,
        ],
    )
    def test_malformed_response_gives_fallback(self, clock: FakeClock, malformed: Any) -> None:
        with _client(ScriptedEstimator(malformed), clock) as client:
            result = client.estimate(_issue())
        assert result.analysis == FALLBACK_ANALYSIS
        assert "malformed" in (result.error or "")

    def test_timeout_gives_fallback(self, clock: FakeClock) -> None:
        release = threading.Event()

        class Hanging(CompletionEstimator):
            def analyze(self, request: EstimateRequest) -> Dict[str, Any]:
                release.wait(5)
                return GOOD_RESPONSE

        client = _client(Hanging(), clock, timeout_seconds=0.05)
        try:
            result = client.estimate(_issue())
        finally:
            release.set()
            client.close()
        assert result.analysis == FALLBACK_ANALYSIS
        assert "timed out" in (result.error or "")

    def test_failure_is_logged(self, clock: FakeClock) -> None:
        log = MagicMock()
        with _client(ScriptedEstimator(RuntimeError("503")), clock, log=log) as client:
            client.estimate(_issue())
        log.warning.assert_called_once()
        assert 42 in log.warning.call_args[0]

    def test_missing_api_key_routes_to_fallback(self, clock: FakeClock) -> None:
        """Chat backend without a key fails locally and the client falls back."""
        with _client(ChatCompletionsEstimator(api_key=None), clock) as client:
            result = client.estimate(_issue())
        assert result.analysis == FALLBACK_ANALYSIS
        assert "not configured" in (result.error or "")

    @pytest.mark.parametrize("overrides", [{"state": "closed"}, {"assignee": None, "assignees": []}])
    def test_ineligible_issue_skips_estimator(self, clock: FakeClock, overrides: Dict[str, Any]) -> None:
        estimator = ScriptedEstimator(GOOD_RESPONSE)
        with _client(estimator, clock) as client:
            result = client.estimate(_issue(**overrides))
        assert result.analysis == FALLBACK_ANALYSIS
        assert estimator.requests == []


class TestCaching:
    """Results are memoized per issue id for the cache window."""

    def test_second_call_inside_window_is_cache_hit(self, clock: FakeClock) -> None:
        estimator = ScriptedEstimator(GOOD_RESPONSE, {**GOOD_RESPONSE, "completionProbability": 10})
        with _client(estimator, clock) as client:
            first = client.estimate(_issue())
            clock.now += 120
            second = client.estimate(_issue(comments=99))
        assert second.analysis is first.analysis
        assert second.cached is True
        assert len(estimator.requests) == 1

    def test_call_after_window_hits_estimator_again(self, clock: FakeClock) -> None:
        estimator = ScriptedEstimator(GOOD_RESPONSE, {**GOOD_RESPONSE, "completionProbability": 10})
        with _client(estimator, clock) as client:
            first = client.estimate(_issue())
            clock.now += 301
            second = client.estimate(_issue())
        assert len(estimator.requests) == 2
        assert first.analysis.completion_probability == 72
        assert second.analysis.completion_probability == 10
        assert second.cached is False

    def test_keyed_by_issue_id(self, clock: FakeClock) -> None:
        estimator = ScriptedEstimator(GOOD_RESPONSE)
        with _client(estimator, clock) as client:
            client.estimate(_issue(id=1, number=1))
            client.estimate(_issue(id=2, number=2))
        assert len(estimator.requests) == 2

    def test_fallback_cached_by_default(self, clock: FakeClock) -> None:
        estimator = ScriptedEstimator(RuntimeError("down"), GOOD_RESPONSE)
        with _client(estimator, clock) as client:
            client.estimate(_issue())
            second = client.estimate(_issue())
        assert second.is_fallback is True
        assert second.cached is True
        assert len(estimator.requests) == 1

    def test_fallback_not_cached_when_disabled(self, clock: FakeClock) -> None:
        estimator = ScriptedEstimator(RuntimeError("down"), GOOD_RESPONSE)
        with _client(estimator, clock, cache_fallbacks=False) as client:
            first = client.estimate(_issue())
            second = client.estimate(_issue())
        assert first.is_fallback is True
        assert second.source == "estimator"
        assert len(estimator.requests) == 2

    def test_closing_issue_drops_cached_entry(self, clock: FakeClock) -> None:
        estimator = ScriptedEstimator(GOOD_RESPONSE)
        with _client(estimator, clock) as client:
            client.estimate(_issue())
            assert len(client.cache) == 1
            client.estimate(_issue(state="closed"))
            assert len(client.cache) == 0


@pytest.fixture
def app_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[AppConfig]:
    monkeypatch.delenv("ESTIMATOR_API_KEY", raising=False)
    yield AppConfig(
        estimator=EstimatorConfig(api_key="k-123", timeout_seconds=5, max_workers=2, model="m"),
        cache=CacheConfig(ttl_seconds=60, cache_fallbacks=False),
    )


def test_from_config(app_config: AppConfig) -> None:
    """from_config wires the chat backend, timeout and cache settings."""
    with CompletionEstimatorClient.from_config(app_config) as client:
        assert client.timeout_seconds == 5
        assert client.cache.ttl_seconds == 60
        assert client.cache_fallbacks is False
        assert isinstance(client._estimator, ChatCompletionsEstimator)
        assert client._estimator.model == "m"
