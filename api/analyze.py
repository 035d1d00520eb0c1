"""
API Endpoints for AI Visibility Analysis

FastAPI app that:
1. Accepts an analysis request (website URL or brand name)
2. Creates a job and runs the pipeline in the background
3. Reports job progress and, once completed, the full report
"""

import logging
import sys
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from pydantic import AliasChoices, BaseModel, Field

from tracker import __version__
from tracker.services import AnalysisOrchestrator, create_orchestrator
from tracker.utils.config import Settings, get_settings

# Configure logging to stdout
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

router = APIRouter(prefix="/tracker", tags=["Tracker"])


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class AnalyzeRequest(BaseModel):
    """
    Request to analyze a website or brand.

    Accepts snake_case fields; the camelCase names sent by older web
    clients (inputType, selectedLLMs) are accepted too.
    """
    input: str = Field(..., min_length=1, description="Website URL or brand name")
    input_type: Literal["url", "brand"] = Field(
        default="url",
        validation_alias=AliasChoices("input_type", "inputType"),
        description="What `input` holds",
    )
    selected_llms: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("selected_llms", "selectedLLMs"),
        description="Rater ids (e.g. ['chatgpt', 'claude']). Empty = configured defaults.",
    )


class AnalyzeResponse(BaseModel):
    """Response after submitting an analysis. Serialized as {success, jobId}."""
    success: bool = True
    job_id: str = Field(..., serialization_alias="jobId")


class JobStatusResponse(BaseModel):
    """Status of an analysis job."""
    success: bool
    status: str  # pending, processing, completed, failed
    progress: int
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    success: bool = True
    message: str = "Server is running"


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_orchestrator(request: Request) -> AnalysisOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Analysis service not ready")
    return orchestrator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# ============================================================================
# API ENDPOINTS
# ============================================================================

@router.post(
    "/analyze-async",
    response_model=AnalyzeResponse,
    response_model_by_alias=True,
)
async def analyze_async(
    request: AnalyzeRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
    settings: Settings = Depends(get_app_settings),
):
    """
    Submit an analysis.

    Returns immediately with the job id; poll /tracker/job-status/{jobId}.
    """
    input_value = request.input.strip()
    if not input_value:
        raise HTTPException(status_code=400, detail="Input is required")

    raters = request.selected_llms or list(settings.DEFAULT_RATERS)

    job = await orchestrator.submit(input_value, request.input_type, raters)

    logger.info(
        f"Analysis requested: {request.input_type}={input_value} "
        f"(job: {job.job_id}), raters={raters}"
    )

    return AnalyzeResponse(job_id=job.job_id)


@router.get(
    "/job-status/{job_id}",
    response_model=JobStatusResponse,
    response_model_exclude_none=True,
)
async def job_status(
    job_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Get status of an analysis job, including the report once completed."""
    status = await orchestrator.get_status(job_id)
    if status is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return status


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse()


# ============================================================================
# APP FACTORY
# ============================================================================

def create_app(
    orchestrator: Optional[AnalysisOrchestrator] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the API app.

    Args:
        orchestrator: Pre-built orchestrator (built from settings on startup when omitted)
        settings: Application settings (environment when omitted)
    """
    app = FastAPI(
        title="AI Visibility Tracker",
        description="Measures how LLM raters perceive a website or brand",
        version=__version__,
    )
    app.state.settings = settings or get_settings()
    app.state.orchestrator = orchestrator
    app.state.owns_orchestrator = orchestrator is None

    @app.on_event("startup")
    async def startup_event():
        """Build the analysis pipeline on startup."""
        logging.getLogger().setLevel(app.state.settings.LOG_LEVEL.upper())
        if app.state.orchestrator is None:
            logger.info("Initializing analysis orchestrator...")
            app.state.orchestrator = create_orchestrator(app.state.settings)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cancel running jobs and close HTTP clients."""
        if app.state.owns_orchestrator and app.state.orchestrator is not None:
            await app.state.orchestrator.close()

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.PORT)
