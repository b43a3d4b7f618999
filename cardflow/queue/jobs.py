import asyncio
from typing import Any, Dict, Optional

from rq import Retry

from cardflow.observability.logging import log
from cardflow.queue.rq_conn import get_queue
from cardflow.verification.gateway import VerificationGateway


def run_verification_job(service_id: str, subset: Dict[str, Any], submission_id: Optional[str] = None) -> dict:
    """
    Background job: score a submitted record and record the verdict.
    The submission already succeeded; the verdict is advisory only.
    """
    log(event="verification_job_start", service=service_id, submissionId=submission_id)
    result = asyncio.run(VerificationGateway().verify(service_id, subset, submission_id=submission_id))
    log(
        event="verification_job_done",
        service=service_id,
        submissionId=submission_id,
        verdict=result.verdict,
        score=result.score,
        fallbackUsed=result.fallback_used,
    )
    return result.to_dict()


def enqueue_verification(service_id: str, subset: Dict[str, Any], submission_id: Optional[str] = None):
    q = get_queue()
    return q.enqueue(
        run_verification_job,
        service_id,
        dict(subset),
        submission_id,
        retry=Retry(max=3, interval=[5, 15, 30]),
    )
