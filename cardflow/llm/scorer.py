import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from cardflow.settings import settings
from cardflow.llm.gemini_client import generate_content
from cardflow.llm.vllm_client import chat_completion
from cardflow.verification.services import ScoringService

logger = logging.getLogger("cardflow_scorer")

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"

Scorer = Callable[[ScoringService, Mapping[str, Any]], Awaitable[Dict[str, Any]]]


def _load_prompt(name: str) -> str:
    return (PROMPTS_DIR / name).read_text(encoding="utf-8").strip()


def _extract_json(text: str) -> Dict[str, Any]:
    """
    Robustly parse JSON from model output.
    1) Try json.loads on full string
    2) If that fails, find first '{' and use JSONDecoder.raw_decode to parse first JSON object
    """
    if not text:
        raise ValueError("Empty model output")

    s = text.strip()

    # Fast path: exact JSON
    try:
        return json.loads(s)
    except ValueError:
        pass

    # Fallback: decode the first JSON object from the first '{' (handles ```json fences)
    start = s.find("{")
    if start == -1:
        raise ValueError("No JSON object found in model output")

    decoder = json.JSONDecoder()
    obj, _ = decoder.raw_decode(s[start:])
    return obj


async def heuristic_scorer(service: ScoringService, subset: Mapping[str, Any]) -> Dict[str, Any]:
    return service.heuristic(subset)


async def vllm_scorer(service: ScoringService, subset: Mapping[str, Any]) -> Dict[str, Any]:
    system = _load_prompt(service.prompt_file)
    out = await chat_completion(system, service.build_input(subset), temperature=0.0, max_tokens=256)
    return _extract_json(out)


async def gemini_scorer(service: ScoringService, subset: Mapping[str, Any]) -> Dict[str, Any]:
    system = _load_prompt(service.prompt_file)
    out = await generate_content(system, service.build_input(subset), temperature=0.0, max_tokens=256)
    return _extract_json(out)


SCORERS: Dict[str, Scorer] = {
    "heuristic": heuristic_scorer,
    "vllm": vllm_scorer,
    "gemini": gemini_scorer,
}


def get_scorer(backend: Optional[str] = None) -> Scorer:
    name = (backend or settings.SCORING_BACKEND or "heuristic").strip().lower()
    scorer = SCORERS.get(name)
    if scorer is None:
        logger.warning("unknown_scoring_backend backend=%s using=heuristic", name)
        return heuristic_scorer
    return scorer
