"""Completion estimator: backends, per-issue cache and the fallback client."""

from stalewatch.estimator.base import CompletionEstimator, EstimatorError
from stalewatch.estimator.cache import AnalysisCache
from stalewatch.estimator.chat import ChatCompletionsEstimator
from stalewatch.estimator.client import CompletionEstimatorClient, build_request, is_estimable

__all__ = [
    "AnalysisCache",
    "ChatCompletionsEstimator",
    "CompletionEstimator",
    "CompletionEstimatorClient",
    "EstimatorError",
    "build_request",
    "is_estimable",
]
