"""
External Verification Gateway
-----------------------------
Boundary around the external fraud / legitimacy scoring call.

verify() never raises: timeouts, transport errors, malformed output and
unknown services all produce the fail-open default (verdict=False, score=0)
and are logged for operators. The result is advisory and never gates a
submission.
"""
import asyncio
import logging
import time
from typing import Any, Mapping, Optional

import cardflow.observability.metrics as metrics
from cardflow.llm.scorer import Scorer, get_scorer
from cardflow.observability.logging import log
from cardflow.settings import settings
from cardflow.verification.models import VerificationResult
from cardflow.verification.services import SERVICES, default_result, parse_response

logger = logging.getLogger("cardflow_gateway")


class VerificationGateway:
    def __init__(self, scorer: Optional[Scorer] = None, *, timeout_sec: Optional[float] = None):
        self._scorer = scorer or get_scorer()
        if timeout_sec is None:
            timeout_sec = settings.VERIFICATION_TIMEOUT_SEC
        self.timeout_sec = float(timeout_sec)

    async def verify(
        self,
        service_id: str,
        subset: Mapping[str, Any],
        *,
        submission_id: Optional[str] = None,
    ) -> VerificationResult:
        start = time.time()
        service = SERVICES.get(service_id)
        if service is None:
            logger.warning("verification_unknown_service service=%s", service_id)
            log("verification_fault", service=service_id, submissionId=submission_id, error="UnknownService")
            return default_result(service_id)

        try:
            raw = await asyncio.wait_for(self._scorer(service, dict(subset)), timeout=self.timeout_sec)
            result = parse_response(service, raw)
        except Exception as e:
            # Timeout (scorer cancelled), transport error, malformed response: fail open.
            latency_ms = int((time.time() - start) * 1000)
            logger.warning("verification_fallback_used service=%s err=%s", service_id, type(e).__name__)
            log(
                "verification_fault",
                service=service_id,
                submissionId=submission_id,
                error=type(e).__name__,
                detail=str(e)[:200],
                latency_ms=latency_ms,
            )
            metrics.record_verification(service_id, latency_ms, fallback_used=True)
            return default_result(service_id)

        latency_ms = int((time.time() - start) * 1000)
        log(
            "verification_completed",
            service=service_id,
            submissionId=submission_id,
            verdict=result.verdict,
            score=result.score,
            latency_ms=latency_ms,
        )
        metrics.record_verification(service_id, latency_ms, fallback_used=False)
        return result


_default_gateway: Optional[VerificationGateway] = None


def get_gateway() -> VerificationGateway:
    """Process-wide gateway built from settings."""
    global _default_gateway
    if _default_gateway is None:
        _default_gateway = VerificationGateway()
    return _default_gateway
