import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from rq import Retry

from cardflow.queue.jobs import enqueue_verification, run_verification_job
from cardflow.queue.rq_conn import get_queue
from cardflow.settings import settings
from cardflow.verification.models import VerificationResult


@patch("cardflow.queue.jobs.log")
@patch("cardflow.queue.jobs.VerificationGateway")
def test_run_verification_job(mock_gateway_class, mock_log):
    gw = MagicMock()
    gw.verify = AsyncMock(return_value=VerificationResult(verdict=True, score=70, explanation="x", service="fraud-detection"))
    mock_gateway_class.return_value = gw

    out = run_verification_job("fraud-detection", {"bvn": "1"}, "sub-1")

    assert out == {
        "verdict": True,
        "score": 70.0,
        "explanation": "x",
        "service": "fraud-detection",
        "fallbackUsed": False,
    }
    gw.verify.assert_awaited_once_with("fraud-detection", {"bvn": "1"}, submission_id="sub-1")
    assert mock_log.call_args_list[0].kwargs["event"] == "verification_job_start"
    assert mock_log.call_args_list[-1].kwargs["event"] == "verification_job_done"


@patch("cardflow.queue.jobs.get_queue")
def test_enqueue_verification(mock_get_queue):
    q = MagicMock()
    mock_get_queue.return_value = q

    enqueue_verification("order-verification", {"email": "a@b.co"}, "sub-2")

    args = q.enqueue.call_args.args
    assert args == (run_verification_job, "order-verification", {"email": "a@b.co"}, "sub-2")
    assert isinstance(q.enqueue.call_args.kwargs["retry"], Retry)


@patch("cardflow.queue.rq_conn.Queue")
@patch("cardflow.queue.rq_conn.Redis")
def test_get_queue_uses_settings(mock_redis, mock_queue_class):
    get_queue()
    mock_redis.from_url.assert_called_once_with(settings.REDIS_URL)
    mock_queue_class.assert_called_once_with(settings.RQ_QUEUE_NAME, connection=mock_redis.from_url.return_value)
