"""Estimator backend for OpenAI-compatible chat/completions gateways.

The model is asked for a JSON object in the CompletionAnalysis shape; the
message content is parsed and returned as-is (the client validates it).
"""

import json
import logging
from typing import Any, Dict

import requests

from stalewatch.estimator.base import CompletionEstimator, EstimatorError
from stalewatch.models import EstimateRequest

LOG = logging.getLogger("stalewatch.estimator.chat")

SYSTEM_PROMPT = (
    "You are an AI that analyzes GitHub issues and predicts outcomes. Always respond with valid JSON only."
)


def build_prompt(request: EstimateRequest) -> str:
    """Render the user prompt for one estimate."""
    issue = request.issue
    activity = request.assignee_activity
    stats = request.repo_stats
    avg_close = f"{stats.avg_time_to_close:.1f} days" if stats.avg_time_to_close is not None else "unknown"
    return (
        "Analyze this GitHub issue and predict if the assigned user will solve it.\n\n"
        "Issue Details:\n"
        f"- Title: {issue.title}\n"
        f"- Issue #{issue.number}\n"
        f"- State: {issue.state}\n"
        f"- Assigned to: {issue.assignee or 'unassigned'}\n"
        f"- Created: {issue.created_at.isoformat()}\n"
        f"- Last updated: {issue.updated_at.isoformat()}\n"
        f"- Comments: {issue.comments}\n"
        f"- Has PR linked: {'yes' if issue.has_pull_request else 'no'}\n\n"
        "Assignee Activity:\n"
        f"- Total contributions: {activity.contributions}\n"
        f"- Recent activity: {activity.recent_activity or 'unknown'}\n"
        f"- Other assigned issues: {activity.other_assigned_issues}\n\n"
        "Repository Stats:\n"
        f"- Average time to close: {avg_close}\n"
        f"- Total open issues: {stats.open_issues}\n\n"
        "Based on this data, provide a JSON response with:\n"
        "1. completionProbability: number 0-100 (likelihood issue will be solved)\n"
        "2. estimatedDays: number (estimated days to completion)\n"
        "3. isUserActive: boolean (is the assigned user currently active)\n"
        '4. risk: "low" | "medium" | "high" (risk of becoming stale)\n'
        "5. reasoning: string (brief explanation 1-2 sentences)\n"
        "6. recommendation: string (actionable advice for maintainers)"
    )


def _strip_code_fence(text: str) -> str:
    """Drop a surrounding ```json ... ``` fence some models add."""
    s = text.strip()
    if s.startswith("```"):
        s = s.split("\n", 1)[1] if "\n" in s else ""
        if s.rstrip().endswith("```"):
            s = s.rstrip()[:-3]
    return s.strip()


class ChatCompletionsEstimator(CompletionEstimator):
    """POST {api_url}/chat/completions with a JSON-object response format."""

    def __init__(
        self,
        api_key: str | None,
        api_url: str = "https://ai.gateway.lovable.dev/v1",
        model: str = "google/gemini-2.5-flash",
        timeout: float = 30,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers["Content-Type"] = "application/json"
        if api_key:
            self._session.headers["Authorization"] = f"Bearer {api_key}"

    def analyze(self, request: EstimateRequest) -> Dict[str, Any]:
        if not self._api_key:
            raise EstimatorError("Estimator API key not configured")

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(request)},
            ],
            "response_format": {"type": "json_object"},
        }
        url = f"{self._api_url}/chat/completions"
        try:
            resp = self._session.request("POST", url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise EstimatorError(f"Request failed: {e}") from e
        if resp.status_code >= 400:
            LOG.debug("Estimator API error body: %s", resp.text)
            raise EstimatorError(f"{resp.status_code}: {resp.reason or 'estimator API error'}")

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise EstimatorError(f"Unexpected response shape: {e!r}") from e
        if not isinstance(content, str):
            raise EstimatorError("Model returned no message content")

        try:
            parsed = json.loads(_strip_code_fence(content))
        except json.JSONDecodeError as e:
            raise EstimatorError(f"Model output is not JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise EstimatorError("Model output is not a JSON object")
        return parsed
