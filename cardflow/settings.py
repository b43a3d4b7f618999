import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    API_KEY: str = os.getenv("API_KEY", "")
    # Comma separated; the form client usually runs on another origin.
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RQ_QUEUE_NAME: str = os.getenv("RQ_QUEUE_NAME", "verification")

    # Verification dispatch:
    # - "inline": await the scorer inside submit, bounded by VERIFICATION_TIMEOUT_SEC
    # - "rq": enqueue a background job; submit never waits for the verdict
    # - "off": skip verification entirely
    VERIFICATION_MODE: str = os.getenv("VERIFICATION_MODE", "inline").lower()
    VERIFICATION_TIMEOUT_SEC: float = float(os.getenv("VERIFICATION_TIMEOUT_SEC", "5.0"))

    # Scorer backend behind the gateway: "heuristic" | "vllm" | "gemini"
    SCORING_BACKEND: str = os.getenv("SCORING_BACKEND", "heuristic").lower()

    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    # Redemption policy: card codes with this prefix are known-bad / already used
    REJECTED_CARD_PREFIX: str = os.getenv("REJECTED_CARD_PREFIX", "FAIL")

    # Mock login gate (not real authentication)
    DEMO_LOGIN_EMAIL: str = os.getenv("DEMO_LOGIN_EMAIL", "test@example.com")
    DEMO_LOGIN_PASSWORD: str = os.getenv("DEMO_LOGIN_PASSWORD", "password")

    # Observability
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"
    METRICS_ENABLED: bool = os.getenv("METRICS_ENABLED", "true").lower() == "true"
    ADMIN_RBAC_ENABLED: bool = os.getenv("ADMIN_RBAC_ENABLED", "true").lower() == "true"
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

settings = Settings()
