import logging

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from cardflow.api.routes import router
from cardflow.api.admin_routes import router as admin_router
from cardflow.observability.logging import log
from cardflow.settings import settings
from cardflow.workflows.catalog import list_workflows

logger = logging.getLogger("cardflow")

app = FastAPI(title="Cardflow Submission API")

# The form client is usually served from another origin; restrict via env in prod.
origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(admin_router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Cardflow API is running. Use /health and GET /workflows.",
    }


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Unhandled errors still produce an outcome-shaped body so form clients can
# render a message instead of a stack trace.
# ---------------------------------------------------------------------------
@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "Something went wrong. Please try again.",
        },
    )


log(
    "boot",
    workflows=[d.name for d in list_workflows()],
    scoring_backend=settings.SCORING_BACKEND,
    verification_mode=settings.VERIFICATION_MODE,
)
