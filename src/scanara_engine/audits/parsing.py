"""Turning raw engine text into a normalized audit result."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from scanara_engine.audits.prompt import SCORE_WEIGHTS
from scanara_engine.common.exceptions import UpstreamEngineError


class ComplianceTier(str, Enum):
    COMPLIANT = "Compliant"
    NEEDS_ATTENTION = "NeedsAttention"
    NON_COMPLIANT = "NonCompliant"


COMPLIANT_THRESHOLD = 80.0
NEEDS_ATTENTION_THRESHOLD = 60.0


def extract_json_object(text: str | None) -> dict[str, Any]:
    """Parse the substring from the first ``{`` to the last ``}``.

    Raises UpstreamEngineError when there is no such span, when it does not
    parse, or when it parses to something other than an object.
    """
    if not text:
        raise UpstreamEngineError("Empty response from analysis engine")
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise UpstreamEngineError("No JSON object found in analysis engine response")
    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError as exc:
        raise UpstreamEngineError(f"Failed to parse analysis results: {exc}") from exc
    if not isinstance(parsed, dict):
        raise UpstreamEngineError("Analysis engine response is not a JSON object")
    return parsed


def compliance_tier(score: float) -> ComplianceTier:
    if score >= COMPLIANT_THRESHOLD:
        return ComplianceTier.COMPLIANT
    if score >= NEEDS_ATTENTION_THRESHOLD:
        return ComplianceTier.NEEDS_ATTENTION
    return ComplianceTier.NON_COMPLIANT


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def overall_score(scores: dict[str, Any]) -> float:
    """``scores.overall_score``, or the weighted subscores when it is unusable."""
    overall = _as_float(scores.get("overall_score"))
    if overall is not None:
        return overall
    total = sum(
        weight * (_as_float(scores.get(name)) or 0.0)
        for name, weight in SCORE_WEIGHTS.items()
    )
    return round(total, 1)


def _section(result: dict[str, Any], key: str, kind: type) -> Any:
    value = result.get(key)
    return value if isinstance(value, kind) else kind()


@dataclass
class AnalysisResult:
    score: float
    tier: ComplianceTier
    scores: dict[str, Any] = field(default_factory=dict)
    summary: dict[str, Any] = field(default_factory=dict)
    detailed_findings: list[Any] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)
    remediation_plan: list[Any] = field(default_factory=list)
    component_analysis: dict[str, Any] = field(default_factory=dict)
    actions_required: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)


def normalize_result(result: dict[str, Any]) -> AnalysisResult:
    """Read every top-level section with an empty default; absence is not an error."""
    scores = _section(result, "scores", dict)
    score = overall_score(scores)
    return AnalysisResult(
        score=score,
        tier=compliance_tier(score),
        scores=scores,
        summary=_section(result, "summary", dict),
        detailed_findings=_section(result, "detailed_findings", list),
        metrics=_section(result, "metrics", dict),
        remediation_plan=_section(result, "remediation_plan", list),
        component_analysis=_section(result, "component_analysis", dict),
        actions_required=_section(result, "actions_required", dict),
        metadata=_section(result, "metadata", dict),
    )


def parse_engine_response(text: str | None) -> AnalysisResult:
    return normalize_result(extract_json_object(text))
