"""FastAPI application exposing the schedule engine."""

from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from tripline import __version__
from tripline.api.schemas import (
    AlternativeListResponse,
    ApplyUpdatesRequest,
    ApplyUpdatesResponse,
    BatchValidationItem,
    BatchValidationRequest,
    BatchValidationResponse,
    HealthResponse,
    SelectRequest,
    SelectResponse,
    SettlementRequest,
    SettlementResponse,
    ValidationResponse,
)
from tripline.application.context import AppContext, make_app_context
from tripline.domain.exceptions import NotFound
from tripline.domain.models import UpdatePreview
from tripline.scheduling.settlement import settle
from tripline.services.feasibility_presenter import present_validation
from tripline.services.transport_service import TransportService, UnconfirmedConflicts
from tripline.shared.exceptions import StalePreviewError, StorageError

_api_logger = logging.getLogger("tripline.api")

load_dotenv()

app = FastAPI(
    title="tripline",
    version=__version__,
    docs_url="/docs" if os.getenv("ENABLE_DOCS", "false").lower() == "true" else None,
    redoc_url=None,
)

_context: Optional[AppContext] = None


def get_context() -> AppContext:
    global _context
    if _context is None:
        _context = make_app_context()
    return _context


def get_transport_service(ctx: AppContext = Depends(get_context)) -> TransportService:
    return ctx.transport_service()


# ── error mapping ─────────────────────────────────────


@app.exception_handler(NotFound)
async def _not_found(_request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StalePreviewError)
async def _stale_preview(_request: Request, exc: StalePreviewError) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": "Schedule changed since the preview was computed", "activity_id": exc.activity_id},
    )


@app.exception_handler(UnconfirmedConflicts)
async def _unconfirmed(_request: Request, exc: UnconfirmedConflicts) -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"detail": "Selection conflicts with fixed activities", "conflicts": exc.conflicts},
    )


@app.exception_handler(StorageError)
async def _storage_error(_request: Request, exc: StorageError) -> JSONResponse:
    _api_logger.error(f"storage error: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Storage error, no changes were applied"})


# ── routes ────────────────────────────────────────────


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@app.post("/transport-alternatives/validate", response_model=BatchValidationResponse)
def validate_many(req: BatchValidationRequest, service: TransportService = Depends(get_transport_service)):
    items: list[BatchValidationItem] = []
    for alternative_id, outcome in service.validate_many(req.alternative_ids).items():
        if isinstance(outcome, NotFound):
            items.append(BatchValidationItem(alternative_id=alternative_id, found=False, detail=str(outcome)))
            continue
        items.append(
            BatchValidationItem(
                alternative_id=alternative_id,
                validation=ValidationResponse(**present_validation(outcome)),
            )
        )
    return BatchValidationResponse(items=items)


@app.post("/transport-alternatives/{alternative_id}/validate", response_model=ValidationResponse)
def validate(alternative_id: str, service: TransportService = Depends(get_transport_service)):
    return ValidationResponse(**present_validation(service.validate(alternative_id)))


@app.get("/transport-alternatives/{alternative_id}/impact", response_model=UpdatePreview)
def impact(alternative_id: str, service: TransportService = Depends(get_transport_service)):
    return service.preview(alternative_id)


@app.post("/transport-alternatives/{alternative_id}/select", response_model=SelectResponse)
def select(
    alternative_id: str,
    req: Optional[SelectRequest] = None,
    service: TransportService = Depends(get_transport_service),
):
    accept = req.accept_conflicts if req else False
    preview = service.select(alternative_id, accept_conflicts=accept)
    return SelectResponse(alternative_id=alternative_id, applied=preview)


@app.post("/schedule/apply", response_model=ApplyUpdatesResponse)
def apply_schedule(req: ApplyUpdatesRequest, service: TransportService = Depends(get_transport_service)):
    if req.select_alternative_id:
        service.confirm(req.select_alternative_id, req.updates)
    else:
        service.apply(req.updates)
    return ApplyUpdatesResponse(applied=len(req.updates), selected_alternative_id=req.select_alternative_id)


@app.get("/activities/{from_activity_id}/transport-to/{to_activity_id}", response_model=AlternativeListResponse)
def list_alternatives(
    from_activity_id: str,
    to_activity_id: str,
    service: TransportService = Depends(get_transport_service),
):
    return AlternativeListResponse(items=service.list_alternatives(from_activity_id, to_activity_id))


@app.post("/settlements", response_model=SettlementResponse)
def settlements(req: SettlementRequest):
    return SettlementResponse(transfers=settle(req.balances))
