"""Main FastAPI application for patient feedback analysis."""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from physio_insight.ai_analyzer import AIAnalyzer
from physio_insight.config import config
from physio_insight.dashboard import build_dashboard
from physio_insight.feedback_service import FeedbackService, InvalidFeedbackError
from physio_insight.schemas import (
    DashboardStats,
    FeedbackRecord,
    FeedbackRequest,
    Notification,
    ViewRequest,
)
from physio_insight.store import AppStore, RecordNotFoundError

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    store = AppStore()
    if config.SEED_EXAMPLE_DATA:
        store.seed_example_records()
    app.state.store = store
    app.state.feedback_service = FeedbackService(store, AIAnalyzer())
    logger.info(f"Application started (model {config.AI_MODEL})")
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="PhysioInsight Feedback API",
    description="AI-assisted sentiment and theme analysis of physiotherapy patient feedback",
    version="1.0.0",
    lifespan=lifespan
)


def get_store(request: Request) -> AppStore:
    return request.app.state.store


def get_feedback_service(request: Request) -> FeedbackService:
    return request.app.state.feedback_service


@app.post("/feedback", response_model=FeedbackRecord, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    request: FeedbackRequest,
    service: FeedbackService = Depends(get_feedback_service)
):
    """Record patient feedback and analyze it.

    The record is stored as ``processing`` first, then moves to its terminal
    state once the single analysis call resolves. A failed analysis is either
    replaced by the neutral fallback or reported as ``error``, depending on
    ``MASK_ANALYSIS_ERRORS``.
    """
    try:
        return await service.submit(request.text, request.rating, request.name)
    except InvalidFeedbackError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )


@app.get("/feedback", response_model=List[FeedbackRecord])
async def list_feedback(store: AppStore = Depends(get_store)):
    """All feedback records, newest first."""
    return store.records()


@app.get("/feedback/{record_id}", response_model=FeedbackRecord)
async def get_feedback(record_id: str, store: AppStore = Depends(get_store)):
    try:
        return store.get(record_id)
    except RecordNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Feedback {record_id} not found"
        )


@app.get("/dashboard", response_model=DashboardStats)
async def dashboard(store: AppStore = Depends(get_store)):
    """Summary statistics recomputed from every stored record."""
    return build_dashboard(store.records())


@app.get("/view")
async def get_view(store: AppStore = Depends(get_store)):
    return {"view": store.view}


@app.put("/view")
async def set_view(request: ViewRequest, store: AppStore = Depends(get_store)):
    store.set_view(request.view)
    return {"view": store.view}


@app.get("/notification", response_model=Optional[Notification])
async def notification(store: AppStore = Depends(get_store)):
    """The latest submission outcome, until it expires."""
    return store.current_notification()


@app.get("/health")
async def health_check(
    store: AppStore = Depends(get_store),
    service: FeedbackService = Depends(get_feedback_service)
):
    """Health check endpoint.

    Reports analyzer availability, the active model and submissions in flight.
    """
    return {
        "status": "healthy",
        "ai_provider": "healthy" if service.analyzer.available else "degraded",
        "model": service.analyzer.model,
        "mask_analysis_errors": service.mask_errors,
        "in_flight": service.in_flight,
        "records": len(store.records())
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "service": "PhysioInsight Feedback API",
        "version": "1.0.0",
        "endpoints": {
            "submit": "POST /feedback",
            "list": "GET /feedback",
            "detail": "GET /feedback/{id}",
            "dashboard": "GET /dashboard",
            "view": "GET|PUT /view",
            "notification": "GET /notification",
            "health": "GET /health"
        }
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unexpected errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )
