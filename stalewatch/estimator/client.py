"""Completion estimator client: never fails, degrades to a neutral estimate.

Builds the request from an issue plus assignee and repository context,
calls the backend in a worker thread under a timeout, validates the
answer, and returns the fixed fallback on any failure. Results are
memoized per issue id for the cache window.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from pydantic import ValidationError

from stalewatch.estimator.base import CompletionEstimator
from stalewatch.estimator.cache import AnalysisCache
from stalewatch.models import (
    FALLBACK_ANALYSIS,
    AssigneeActivity,
    CompletionAnalysis,
    EstimateRequest,
    EstimateResult,
    Issue,
    IssueSummary,
    RepoStats,
)
from stalewatch.signals import has_assignee

DEFAULT_TIMEOUT_SECONDS = 30

LOG = logging.getLogger("stalewatch.estimator.client")


def build_request(
    issue: Issue,
    assignee_activity: AssigneeActivity | None = None,
    repo_stats: RepoStats | None = None,
) -> EstimateRequest:
    """Summarize the issue and attach the two context inputs."""
    logins = issue.assignee_logins
    summary = IssueSummary(
        title=issue.title,
        number=issue.number,
        state=issue.state,
        assignee=logins[0] if logins else None,
        created_at=issue.created_at,
        updated_at=issue.updated_at,
        comments=issue.comments,
        has_pull_request=issue.pull_request is not None,
    )
    activity = assignee_activity or AssigneeActivity(login=summary.assignee or "")
    return EstimateRequest(issue=summary, assignee_activity=activity, repo_stats=repo_stats or RepoStats())


def is_estimable(issue: Issue) -> bool:
    """Only open, assigned issues get a remote estimate."""
    return issue.state == "open" and has_assignee(issue)


class CompletionEstimatorClient:
    """Cached, time-bounded access to a CompletionEstimator.

    Safe to call from several threads; concurrent calls for the same
    issue inside the cache window share one remote call.
    """

    def __init__(
        self,
        estimator: CompletionEstimator,
        cache: AnalysisCache | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_workers: int = 4,
        cache_fallbacks: bool = True,
        log: logging.Logger | None = None,
    ) -> None:
        self._estimator = estimator
        self.cache = cache if cache is not None else AnalysisCache()
        self.timeout_seconds = timeout_seconds
        self.cache_fallbacks = cache_fallbacks
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="stalewatch-estimate")
        self._log = log or LOG

    @classmethod
    def from_config(cls, config: Any) -> "CompletionEstimatorClient":
        """Wire the chat/completions backend and cache from AppConfig."""
        from stalewatch.estimator.chat import ChatCompletionsEstimator

        est_cfg = config.estimator
        estimator = ChatCompletionsEstimator(
            api_key=config.estimator_api_key_resolved,
            api_url=est_cfg.api_url,
            model=est_cfg.model,
            timeout=est_cfg.timeout_seconds,
        )
        return cls(
            estimator,
            cache=AnalysisCache(ttl_seconds=config.cache.ttl_seconds),
            timeout_seconds=est_cfg.timeout_seconds,
            max_workers=est_cfg.max_workers,
            cache_fallbacks=config.cache.cache_fallbacks,
        )

    def estimate(
        self,
        issue: Issue,
        assignee_activity: AssigneeActivity | None = None,
        repo_stats: RepoStats | None = None,
    ) -> EstimateResult:
        """Completion analysis for an open, assigned issue.

        Never raises. Closed or unassigned issues get the fallback without
        a remote call, and any cached result for them is dropped.
        """
        if not is_estimable(issue):
            self.cache.invalidate(issue.id)
            self._log.debug("Issue #%s is not open and assigned; skipping estimator", issue.number)
            return EstimateResult(
                analysis=FALLBACK_ANALYSIS,
                source="fallback",
                error="issue is not open and assigned",
            )

        request = build_request(issue, assignee_activity, repo_stats)
        result, hit = self.cache.get_or_compute(
            issue.id,
            lambda: self._call(issue.number, request),
            should_store=lambda r: self.cache_fallbacks or not r.is_fallback,
        )
        if hit:
            return result.model_copy(update={"cached": True})
        return result

    def _call(self, issue_number: int, request: EstimateRequest) -> EstimateResult:
        try:
            future = self._executor.submit(self._estimator.analyze, request)
            raw = future.result(timeout=self.timeout_seconds)
            analysis = CompletionAnalysis.model_validate(raw)
        except FutureTimeoutError:
            return self._fallback(issue_number, f"timed out after {self.timeout_seconds}s")
        except ValidationError as e:
            return self._fallback(issue_number, f"malformed response ({e.error_count()} validation errors)")
        except Exception as e:
            # Any estimator failure (network, service, credentials) degrades the same way.
            return self._fallback(issue_number, str(e) or type(e).__name__)
        self._log.info(
            "Issue #%s: completion %s%%, ~%s days, risk %s",
            issue_number,
            analysis.completion_probability,
            analysis.estimated_days,
            analysis.risk,
        )
        return EstimateResult(analysis=analysis, source="estimator")

    def _fallback(self, issue_number: int, reason: str) -> EstimateResult:
        self._log.warning("Estimator failed for issue #%s, using default estimates: %s", issue_number, reason)
        return EstimateResult(analysis=FALLBACK_ANALYSIS, source="fallback", error=reason)

    def close(self) -> None:
        """Stop the worker threads; in-flight calls are abandoned."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "CompletionEstimatorClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
