import asyncio

import pytest
from unittest.mock import patch

from cardflow.verification.gateway import VerificationGateway
from cardflow.verification.models import VerificationResult
from cardflow.verification.services import (
    FRAUD_DETECTION,
    ORDER_VERIFICATION,
    SERVICES,
    default_result,
    parse_response,
)


@pytest.fixture(autouse=True)
def quiet():
    with patch("cardflow.verification.gateway.metrics") as m, patch("cardflow.verification.gateway.log"):
        yield m


def _scorer(response):
    async def scorer(service, subset):
        return response
    return scorer


def test_fraud_response_is_mapped():
    gw = VerificationGateway(_scorer({"isFraudulent": True, "riskScore": 87, "fraudExplanation": "Mismatched location."}))
    result = asyncio.run(gw.verify(FRAUD_DETECTION, {"accountNumber": "0123456789"}))
    assert result.verdict is True
    assert result.score == 87
    assert result.explanation == "Mismatched location."
    assert result.fallback_used is False


def test_order_response_is_mapped(quiet):
    gw = VerificationGateway(_scorer({"isLegitimate": True, "legitimacyScore": 92.5, "analysis": "Looks fine."}))
    result = asyncio.run(gw.verify(ORDER_VERIFICATION, {"politicianName": "Ada Obi"}))
    assert result.to_dict() == {
        "verdict": True,
        "score": 92.5,
        "explanation": "Looks fine.",
        "service": ORDER_VERIFICATION,
        "fallbackUsed": False,
    }
    quiet.record_verification.assert_called_once()
    assert quiet.record_verification.call_args.kwargs["fallback_used"] is False


def test_timeout_returns_default(quiet):
    async def slow(service, subset):
        await asyncio.sleep(5)
        return {"isFraudulent": True, "riskScore": 99}

    gw = VerificationGateway(slow, timeout_sec=0.05)
    result = asyncio.run(gw.verify(FRAUD_DETECTION, {}))
    assert result.verdict is False
    assert result.score == 0
    assert result.explanation == "An error occurred during processing."
    assert result.fallback_used is True
    assert quiet.record_verification.call_args.kwargs["fallback_used"] is True


def test_scorer_exception_returns_default():
    async def broken(service, subset):
        raise RuntimeError("vLLM call failed")

    result = asyncio.run(VerificationGateway(broken).verify(ORDER_VERIFICATION, {}))
    assert (result.verdict, result.score) == (False, 0)
    assert result.explanation == "An error occurred during AI analysis."


@pytest.mark.parametrize("response", [
    "not a dict",
    {"riskScore": 50},
    {"isFraudulent": True},
    {"isFraudulent": "sometimes", "riskScore": 50},
    {"isFraudulent": True, "riskScore": "high"},
    {"isFraudulent": True, "riskScore": float("nan")},
])
def test_malformed_response_returns_default(response):
    result = asyncio.run(VerificationGateway(_scorer(response)).verify(FRAUD_DETECTION, {}))
    assert result == default_result(FRAUD_DETECTION)


def test_unknown_service_returns_generic_default():
    result = asyncio.run(VerificationGateway(_scorer({})).verify("credit-check", {}))
    assert result.verdict is False
    assert result.score == 0
    assert result.explanation == "Verification unavailable."


def test_score_is_clamped():
    assert parse_response(SERVICES[FRAUD_DETECTION], {"isFraudulent": False, "riskScore": 140}).score == 100
    assert parse_response(SERVICES[FRAUD_DETECTION], {"isFraudulent": False, "riskScore": -3}).score == 0
    assert VerificationResult(verdict=1, score="55", explanation=None).to_dict()["verdict"] is True


def test_string_booleans_are_accepted():
    r = parse_response(SERVICES[ORDER_VERIFICATION], {"isLegitimate": "false", "legitimacyScore": "40"})
    assert r.verdict is False
    assert r.score == 40
    assert r.explanation == ""


def test_service_inputs():
    fraud = SERVICES[FRAUD_DETECTION].build_input({"bvn": "12345678901"})
    assert fraud == 'Redemption Data: {"bvn": "12345678901"}'

    order = SERVICES[ORDER_VERIFICATION].build_input({
        "politicianName": "Ada Obi",
        "politicalParty": "APC",
        "orderItems": [{"denomination": 1000, "quantity": 100}],
    })
    assert "- Name: Ada Obi" in order
    assert "- Party: APC" in order
    assert '"quantity": 100' in order
