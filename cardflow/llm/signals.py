"""
Deterministic Verification Signals
----------------------------------
Purpose:
- Rule-based scorer behind the verification gateway when no model backend is
  configured (SCORING_BACKEND=heuristic), and a stable baseline for tests.
- Produces the same response contract as the model prompts.

Signals are generic data-quality patterns, not a list of known bad actors.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping, Tuple

from cardflow.core.schema import EMAIL_PATTERN
from cardflow.workflows.reference import NG_PHONE_PATTERN, POLITICAL_PARTIES

FRAUD_THRESHOLD = 0.60
LEGITIMACY_THRESHOLD = 0.60

REPEATED_DIGITS = re.compile(r"(\d)\1{5,}")
SEQUENTIAL_RUNS = ("0123456789", "1234567890", "9876543210")
PLACEHOLDER_NAME = re.compile(r"\b(test|testing|asdf|qwerty|john doe|jane doe|sample|dummy|xx+)\b", re.I)
DISPOSABLE_DOMAINS = {
    "mailinator.com", "yopmail.com", "10minutemail.com", "guerrillamail.com",
    "tempmail.com", "trashmail.com", "getnada.com",
}
UNAVAILABLE = {"", "unavailable", "unknown", "none"}

# Above this many cards a single order deserves a closer look
LARGE_ORDER_QUANTITY = 500_000


def _text(v: Any) -> str:
    return str(v if v is not None else "").strip()


def _email_suspicious(email: str) -> bool:
    if not re.fullmatch(EMAIL_PATTERN, email):
        return True
    return email.rsplit("@", 1)[-1].lower() in DISPOSABLE_DOMAINS


def score_payout(data: Mapping[str, Any]) -> Tuple[float, List[str]]:
    """
    Fraud risk for a payout request.
    Returns:
      - score: float (0..1), higher is riskier
      - reasons: short reason strings
    """
    reasons: List[str] = []
    score = 0.0

    account = _text(data.get("accountNumber"))
    ids = [account, _text(data.get("bvn")), _text(data.get("nin"))]

    if any(REPEATED_DIGITS.search(x) for x in ids if x):
        score += 0.40
        reasons.append("repeated digits in bank/identity numbers")

    if account and any(account in run or run in account for run in SEQUENTIAL_RUNS):
        score += 0.40
        reasons.append("sequential account number")

    name = _text(data.get("accountName"))
    if name and PLACEHOLDER_NAME.search(name):
        score += 0.30
        reasons.append("placeholder account name")
    elif re.search(r"\d", name):
        score += 0.20
        reasons.append("digits in account name")

    ip = _text(data.get("ipAddress")).lower()
    if ip in UNAVAILABLE:
        score += 0.15
        reasons.append("client ip unavailable")

    location = _text(data.get("location")).lower()
    state = _text(data.get("state")).lower()
    if location not in UNAVAILABLE and state:
        state_word = state.split()[0]
        if state_word not in location:
            score += 0.10
            reasons.append("client location differs from declared state")

    return max(0.0, min(1.0, score)), reasons[:6]


def _order_quantity(items: Any) -> int:
    if isinstance(items, str):
        try:
            items = json.loads(items)
        except ValueError:
            return 0
    total = 0
    for item in items or []:
        if isinstance(item, Mapping):
            try:
                total += int(item.get("quantity") or 0)
            except (TypeError, ValueError):
                continue
    return total


def score_order(data: Mapping[str, Any]) -> Tuple[float, List[str]]:
    """
    Legitimacy confidence for a card order.
    Returns:
      - score: float (0..1), higher is more legitimate
      - reasons: short reason strings for every deduction
    """
    reasons: List[str] = []
    score = 1.0

    name = _text(data.get("politicianName"))
    if not name or PLACEHOLDER_NAME.search(name):
        score -= 0.40
        reasons.append("placeholder politician name")
    elif len(name.split()) < 2:
        score -= 0.10
        reasons.append("incomplete politician name")

    if _text(data.get("politicalParty")).upper() not in POLITICAL_PARTIES:
        score -= 0.25
        reasons.append("unrecognised political party")

    if _email_suspicious(_text(data.get("email"))):
        score -= 0.20
        reasons.append("invalid or disposable email")

    phone = re.sub(r"[\s-]", "", _text(data.get("phone")))
    if not re.fullmatch(NG_PHONE_PATTERN, phone):
        score -= 0.15
        reasons.append("phone is not a Nigerian mobile number")

    if _order_quantity(data.get("orderItems")) > LARGE_ORDER_QUANTITY:
        score -= 0.15
        reasons.append("order volume unusually large")

    return max(0.0, min(1.0, score)), reasons[:6]


def fraud_response(data: Mapping[str, Any]) -> Dict[str, Any]:
    """score_payout shaped like the fraud-detection model output."""
    s, rs = score_payout(data)
    flagged = s >= FRAUD_THRESHOLD
    return {
        "isFraudulent": flagged,
        "riskScore": round(s * 100, 1),
        "fraudExplanation": "; ".join(rs) if rs else "No risk signals found.",
    }


def legitimacy_response(data: Mapping[str, Any]) -> Dict[str, Any]:
    """score_order shaped like the order-verification model output."""
    s, rs = score_order(data)
    return {
        "isLegitimate": s >= LEGITIMACY_THRESHOLD,
        "legitimacyScore": round(s * 100, 1),
        "analysis": "; ".join(rs) if rs else "Order details look consistent.",
    }
