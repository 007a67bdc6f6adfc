"""Earnings insight router: run the pipeline, read stored insights and trends."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from src.core.config import settings
from src.core.exceptions import MalformedQuarterLabel
from src.core.schemas import StandardResponse
from src.earnings import service
from src.earnings.store import InsightStore
from src.web.dependencies import get_store

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Earnings Insights"],
)


class AnalyzeRequest(BaseModel):
    quarters: int = Field(default=4, ge=1, le=12)
    reanalyze: bool = False


@router.post("/analyze", response_model=StandardResponse[dict], summary="Run analysis pipeline")
async def analyze(request: AnalyzeRequest, store: InsightStore = Depends(get_store)):
    """Collect, analyze and compute quarter-over-quarter trends."""
    try:
        result = await service.run_analysis(store, quarters=request.quarters, reanalyze=request.reanalyze)
    except MalformedQuarterLabel as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception(f"Analysis pipeline failed: {e}")
        raise HTTPException(status_code=500, detail=f"Analysis pipeline failed: {e}")

    return StandardResponse(
        data=result.model_dump(mode="json", include={"insights", "summary", "trends"}),
        message=f"Successfully analyzed {len(result.insights)} quarters with trend analysis",
    )


@router.get("/analyze", response_model=StandardResponse[dict], summary="Existing insights")
async def existing_insights(store: InsightStore = Depends(get_store)):
    """Stored insights, store stats, and trends when there are at least two quarters."""
    try:
        result = await service.load_existing(store)
    except MalformedQuarterLabel as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception(f"Failed to retrieve insights: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to retrieve insights: {e}")

    return StandardResponse(
        data=result.model_dump(mode="json"),
        message=f"Retrieved {len(result.insights)} existing insights",
    )


@router.get("/collection/test", response_model=StandardResponse[dict], summary="Collection smoke test")
async def collection_test(
    quarters: int = Query(default=2, ge=1, le=12),
    store: InsightStore = Depends(get_store),
):
    try:
        report = await service.test_collection(store, quarters=quarters)
    except Exception as e:
        logger.exception(f"Data collection test failed: {e}")
        raise HTTPException(status_code=500, detail=f"Data collection test failed: {e}")
    return StandardResponse(data=report, message="Data collection test completed successfully!")


@router.get("/analysis/test", response_model=StandardResponse[dict], summary="Analysis service check")
async def analysis_test():
    """Run a live completion plus sentiment and themes JSON round-trips against the analysis service."""
    try:
        report = await service.test_analysis()
    except Exception as e:
        logger.exception(f"Analysis service test failed: {e}")
        raise HTTPException(status_code=500, detail=f"Analysis service test failed: {e}")

    if not report["api_key_configured"]:
        raise HTTPException(status_code=400, detail="Analysis service API key not configured. Set OPENAI_API_KEY in .env")
    if not report["success"]:
        return StandardResponse(status="error", data=report, message="Analysis service test failed")
    return StandardResponse(data=report, message="Analysis service test completed successfully!")


@router.get("/health", summary="Health check")
async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "company": settings.company_name,
        "ticker": settings.company_ticker,
        "store_backend": settings.store_backend,
        "analysis_configured": bool(settings.openai_api_key),
    }
