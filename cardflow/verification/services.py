"""
Scoring service contracts
-------------------------
Each external scoring service has its own input serialization and response
keys. The adapters here map both onto the gateway's neutral
VerificationResult {verdict, score, explanation}.
"""

import json
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping

from cardflow.llm.signals import fraud_response, legitimacy_response
from cardflow.verification.models import VerificationResult

FRAUD_DETECTION = "fraud-detection"
ORDER_VERIFICATION = "order-verification"

GENERIC_FALLBACK_EXPLANATION = "Verification unavailable."


@dataclass(frozen=True)
class ScoringService:
    service_id: str
    prompt_file: str
    verdict_key: str
    score_key: str
    explanation_key: str
    fallback_explanation: str
    build_input: Callable[[Mapping[str, Any]], str]
    heuristic: Callable[[Mapping[str, Any]], Dict[str, Any]]


def _dumps(v: Any) -> str:
    return json.dumps(v, ensure_ascii=False, sort_keys=True, default=str)


def _fraud_input(subset: Mapping[str, Any]) -> str:
    # Whole request as one JSON blob
    return f"Redemption Data: {_dumps(dict(subset))}"


def _order_input(subset: Mapping[str, Any]) -> str:
    items = subset.get("orderItems")
    return (
        "Order Data:\n"
        f"- Name: {subset.get('politicianName', '')}\n"
        f"- Party: {subset.get('politicalParty', '')}\n"
        f"- Role: {subset.get('politicalRole', '')}\n"
        f"- Email: {subset.get('email', '')}\n"
        f"- Phone: {subset.get('phone', '')}\n"
        f"- Order Items: {items if isinstance(items, str) else _dumps(items or [])}\n"
    )


SERVICES: Dict[str, ScoringService] = {
    FRAUD_DETECTION: ScoringService(
        service_id=FRAUD_DETECTION,
        prompt_file="fraud_detection_system.txt",
        verdict_key="isFraudulent",
        score_key="riskScore",
        explanation_key="fraudExplanation",
        fallback_explanation="An error occurred during processing.",
        build_input=_fraud_input,
        heuristic=fraud_response,
    ),
    ORDER_VERIFICATION: ScoringService(
        service_id=ORDER_VERIFICATION,
        prompt_file="order_verification_system.txt",
        verdict_key="isLegitimate",
        score_key="legitimacyScore",
        explanation_key="analysis",
        fallback_explanation="An error occurred during AI analysis.",
        build_input=_order_input,
        heuristic=legitimacy_response,
    ),
}


def _as_verdict(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str) and v.strip().lower() in ("true", "false"):
        return v.strip().lower() == "true"
    raise ValueError(f"verdict is not boolean: {v!r}")


def _as_score(v: Any) -> float:
    if isinstance(v, bool):
        raise ValueError("score is boolean")
    s = float(v)  # ValueError/TypeError on junk
    if not math.isfinite(s):
        raise ValueError("score is not finite")
    return s


def parse_response(service: ScoringService, data: Any) -> VerificationResult:
    """Map a scorer response onto VerificationResult. Raises on malformed data."""
    if not isinstance(data, Mapping):
        raise ValueError("scorer response is not a JSON object")
    explanation = data.get(service.explanation_key)
    return VerificationResult(
        verdict=_as_verdict(data[service.verdict_key]),
        score=_as_score(data[service.score_key]),
        explanation=explanation if isinstance(explanation, str) else "",
        service=service.service_id,
    )


def default_result(service_id: str) -> VerificationResult:
    """Fail-open verdict used whenever the scorer cannot answer."""
    service = SERVICES.get(service_id)
    return VerificationResult(
        verdict=False,
        score=0.0,
        explanation=service.fallback_explanation if service else GENERIC_FALLBACK_EXPLANATION,
        service=service_id,
        fallback_used=True,
    )
