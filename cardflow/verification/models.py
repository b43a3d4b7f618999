from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class VerificationResult:
    verdict: bool
    score: float  # always within 0..100
    explanation: str
    service: str = ""
    # True when the scorer failed and this is the fail-open default
    fallback_used: bool = False

    def __post_init__(self):
        object.__setattr__(self, "verdict", bool(self.verdict))
        object.__setattr__(self, "score", max(0.0, min(100.0, float(self.score))))
        object.__setattr__(self, "explanation", str(self.explanation or ""))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict,
            "score": self.score,
            "explanation": self.explanation,
            "service": self.service,
            "fallbackUsed": self.fallback_used,
        }
