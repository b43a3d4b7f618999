import asyncio
import os
import time
import random
import httpx

# Expect base url to include /v1
VLLM_BASE_URL = os.getenv("VLLM_BASE_URL", "").rstrip("/")
VLLM_API_KEY = os.getenv("VLLM_API_KEY", "")
VLLM_MODEL = os.getenv("VLLM_MODEL", "Qwen/Qwen2.5-14B-Instruct-AWQ")

# Scoring sits inside a form submission, so keep the budget well under the
# gateway timeout (VERIFICATION_TIMEOUT_SEC); the gateway cancels us anyway.
#   VLLM_REQUEST_TIMEOUT_SEC: per HTTP request timeout (default 4s)
#   VLLM_CLIENT_BUDGET_SEC : total time budget across retries (default 4.5s)
#   VLLM_MAX_RETRIES       : max retry attempts (default 2)
REQUEST_TIMEOUT_SEC = float(os.getenv("VLLM_REQUEST_TIMEOUT_SEC", "4.0"))
CLIENT_BUDGET_SEC  = float(os.getenv("VLLM_CLIENT_BUDGET_SEC", "4.5"))
MAX_RETRIES        = int(os.getenv("VLLM_MAX_RETRIES", "2"))


def _new_client() -> httpx.AsyncClient:
    # One client per call: rq jobs run each verification under a fresh event loop.
    return httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SEC)


def _headers() -> dict:
    h = {"Content-Type": "application/json"}
    if VLLM_API_KEY:
        h["Authorization"] = f"Bearer {VLLM_API_KEY}"
    return h


async def chat_completion(system: str, user: str, *, temperature: float = 0.0, max_tokens: int = 256) -> str:
    """Call vLLM OpenAI-compatible chat endpoint.

    POST {VLLM_BASE_URL}/chat/completions
    """
    if not VLLM_BASE_URL:
        raise RuntimeError("VLLM_BASE_URL is not set")

    url = f"{VLLM_BASE_URL}/chat/completions"
    payload = {
        "model": VLLM_MODEL,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        "temperature": float(temperature),
        "max_tokens": int(max_tokens),
        "response_format": {"type": "json_object"},
    }
    start = time.time()
    attempt = 0
    last_err = None
    async with _new_client() as client:
        while (time.time() - start) < CLIENT_BUDGET_SEC and attempt < max(1, MAX_RETRIES):
            attempt += 1
            try:
                resp = await client.post(url, headers=_headers(), json=payload)
                resp.raise_for_status()
                data = resp.json()
                return data["choices"][0]["message"]["content"]
            except (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.TimeoutException) as e:
                last_err = e
                remaining = CLIENT_BUDGET_SEC - (time.time() - start)
                if remaining <= 0:
                    break
                await asyncio.sleep(min(0.2 + random.uniform(0.0, 0.1), max(0.0, remaining)))
            except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
                # Non-timeout errors: keep one retry if budget allows, else fail fast
                last_err = e
                remaining = CLIENT_BUDGET_SEC - (time.time() - start)
                if remaining <= 0 or attempt >= MAX_RETRIES:
                    break
                await asyncio.sleep(min(0.2 + random.uniform(0.0, 0.1), max(0.0, remaining)))
    # Single budget-aware error; the verification gateway turns it into the default verdict.
    elapsed = round(time.time() - start, 3)
    raise RuntimeError(f"vLLM call failed (attempts={attempt}, elapsed={elapsed}s): {last_err}")
