"""Abstract base for completion estimator backends."""

from abc import ABC, abstractmethod
from typing import Any, Dict

from stalewatch.models import EstimateRequest


class EstimatorError(Exception):
    """Raised when an estimator backend cannot produce an analysis."""

    pass


class CompletionEstimator(ABC):
    """Remote service that predicts whether/when an assigned issue gets done."""

    @abstractmethod
    def analyze(self, request: EstimateRequest) -> Dict[str, Any]:
        """Return the raw analysis object (CompletionAnalysis JSON shape).

        May raise anything; the client validates the result and treats
        every failure the same way.
        """
        ...
