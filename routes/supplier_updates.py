"""
Supplier update API routes.

Drives a SupplierUpdateSession through upload, column mapping, catalog
lookup, review and commit. Commits run as background tasks; poll
GET /sessions/{id}/commit for progress.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Query, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse
import structlog

from config.settings import Settings, get_settings
from exceptions import AppError, ExternalServiceError
from integrations.catalog_gateway import CatalogGateway
from models.reconciliation import FilterType, ReconciledItem, ReconciliationStats, UpdateReport
from models.supplier import ColumnMapping, MappingCommand
from models.supplier_updates import (
    CommitRequest,
    CommitStatusResponse,
    ItemListResponse,
    ItemUpdate,
    LocationListResponse,
    LookupRequest,
    LookupResponse,
    SelectionResponse,
    SelectionUpdate,
    SessionResponse,
    ThresholdUpdate,
)
from services.report_service import get_report_service
from services.session_store import SessionStore
from services.supplier_update_service import SupplierUpdateSession, pick_default_location

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/supplier-updates", tags=["Supplier Updates"])

PREVIEW_ROW_COUNT = 5
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ===================
# DEPENDENCIES
# ===================

def get_catalog_gateway(request: Request) -> Optional[CatalogGateway]:
    """Gateway built at startup; None when credentials are missing."""
    return getattr(request.app.state, "catalog_gateway", None)


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def require_gateway(gateway: Optional[CatalogGateway]) -> CatalogGateway:
    if gateway is None:
        raise ExternalServiceError("shopify", "Shopify store domain and access token must be configured")
    return gateway


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# HELPERS
# ===================

def _session_response(session: SupplierUpdateSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        step=session.step,
        file_name=session.file_name,
        headers=session.headers,
        row_count=max(len(session.rows) - 1, 0),
        preview_rows=session.rows[1:PREVIEW_ROW_COUNT + 1],
        mapping=session.mapping,
        mapping_complete=session.mapping_complete(),
        available_update_types=session.available_update_types(),
        location_id=session.location_id,
        update_type=session.update_type,
        threshold=session.store.threshold,
        running=session.is_running,
    )


def _commit_status(session: SupplierUpdateSession) -> CommitStatusResponse:
    status = CommitStatusResponse.from_state(session.progress())
    # A scheduled run counts as running before its first batch starts
    status.running = status.running or session.is_running
    return status


# ===================
# LOCATIONS
# ===================

@router.get("/locations", response_model=LocationListResponse)
async def list_locations(gateway: Optional[CatalogGateway] = Depends(get_catalog_gateway)):
    """
    List store locations that can receive stock updates.

    default_location_id is the first active location.
    """
    try:
        locations = require_gateway(gateway).lookup_locations()
        default = pick_default_location(locations)

        return LocationListResponse(
            data=locations,
            default_location_id=default.id if default else None
        )

    except Exception as e:
        return handle_error(e)


# ===================
# SESSIONS
# ===================

@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(
    file: UploadFile = File(..., description="Supplier file (.csv or .xlsx)"),
    gateway: Optional[CatalogGateway] = Depends(get_catalog_gateway),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    """
    Upload a supplier file and start a workflow session.

    The session starts at the mapping step. Returns headers and a short
    preview of the data rows.
    """
    try:
        session = store.create(require_gateway(gateway), settings)
        content = await file.read()

        try:
            session.upload_file(content, file.filename or "")
        except Exception:
            store.delete(session.session_id)
            raise

        return _session_response(session)

    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    try:
        return _session_response(store.get(session_id))

    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/reset", response_model=SessionResponse)
async def reset_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Back to the upload step. Refused while a commit is running."""
    try:
        session = store.get(session_id)
        session.reset()
        return _session_response(session)

    except Exception as e:
        return handle_error(e)


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    try:
        session = store.get(session_id)
        if session.is_running:
            session.cancel_commit()
        store.delete(session_id)
        return None

    except Exception as e:
        return handle_error(e)


# ===================
# MAPPING & LOOKUP
# ===================

@router.put("/sessions/{session_id}/mapping", response_model=ColumnMapping)
async def set_mapping(
    session_id: str,
    data: MappingCommand,
    store: SessionStore = Depends(get_session_store),
):
    """
    Assign a column to one field.

    value is a column index, null to unset, or "none" (stock only) when
    the file has no stock column.
    """
    try:
        session = store.get(session_id)
        return session.apply_mapping_command(data)

    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/lookup", response_model=LookupResponse)
async def start_lookup(
    session_id: str,
    data: LookupRequest,
    store: SessionStore = Depends(get_session_store),
):
    """
    Match the supplier file against the catalog.

    Any failed lookup batch fails the whole lookup; nothing is loaded.
    """
    try:
        session = store.get(session_id)
        result = session.start_lookup(
            threshold=data.threshold,
            location_id=data.location_id,
            update_type=data.update_type
        )

        return LookupResponse(
            items=result.items,
            not_found=result.not_found,
            stats=session.stats()
        )

    except Exception as e:
        return handle_error(e)


# ===================
# REVIEW
# ===================

@router.get("/sessions/{session_id}/items", response_model=ItemListResponse)
async def list_items(
    session_id: str,
    filter_type: Optional[FilterType] = Query(None, alias="filter", description="all, medium or negative"),
    store: SessionStore = Depends(get_session_store),
):
    """
    List reconciled items.

    Passing a filter also makes it the session's current filter.
    """
    try:
        session = store.get(session_id)
        if filter_type is not None:
            session.set_filter(filter_type)
        items = session.filtered_items()

        return ItemListResponse(
            data=items,
            total=len(items),
            filter=session.store.filter
        )

    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}/stats", response_model=ReconciliationStats)
async def get_stats(session_id: str, store: SessionStore = Depends(get_session_store)):
    try:
        return store.get(session_id).stats()

    except Exception as e:
        return handle_error(e)


@router.patch("/sessions/{session_id}/items/{variant_id}", response_model=ReconciledItem)
async def update_item(
    session_id: str,
    variant_id: str,
    data: ItemUpdate,
    store: SessionStore = Depends(get_session_store),
):
    """Change an item's price and/or whether it is included."""
    try:
        session = store.get(session_id)
        item = session.store.get(variant_id)

        if data.price is not None:
            item = session.set_price(variant_id, data.price)
        if data.include_in_update is not None and data.include_in_update != item.include_in_update:
            item = session.toggle_include(variant_id)

        return item

    except Exception as e:
        return handle_error(e)


@router.put("/sessions/{session_id}/selection", response_model=SelectionResponse)
async def set_selection(
    session_id: str,
    data: SelectionUpdate,
    store: SessionStore = Depends(get_session_store),
):
    try:
        session = store.get(session_id)
        included = session.set_included_set(data.variant_ids)
        return SelectionResponse(included=included, stats=session.stats())

    except Exception as e:
        return handle_error(e)


@router.put("/sessions/{session_id}/threshold", response_model=ReconciliationStats)
async def set_threshold(
    session_id: str,
    data: ThresholdUpdate,
    store: SessionStore = Depends(get_session_store),
):
    """Reclassify every item against a new margin threshold."""
    try:
        session = store.get(session_id)
        session.set_threshold(data.threshold)
        return session.stats()

    except Exception as e:
        return handle_error(e)


# ===================
# COMMIT
# ===================

@router.post("/sessions/{session_id}/commit", response_model=CommitStatusResponse, status_code=202)
async def start_commit(
    session_id: str,
    data: CommitRequest,
    background_tasks: BackgroundTasks,
    store: SessionStore = Depends(get_session_store),
):
    """
    Start writing the included items to the catalog.

    Validation happens before the run is scheduled: a missing location or
    an empty selection is reported here and nothing is written.
    """
    try:
        session = store.get(session_id)
        runner = session.begin_commit(data.update_type)
        background_tasks.add_task(session.run_commit, runner)

        return _commit_status(session)

    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}/commit", response_model=CommitStatusResponse)
async def get_commit_status(session_id: str, store: SessionStore = Depends(get_session_store)):
    try:
        return _commit_status(store.get(session_id))

    except Exception as e:
        return handle_error(e)


@router.post("/sessions/{session_id}/commit/cancel", response_model=CommitStatusResponse)
async def cancel_commit(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Stop the run before its next progress batch. Completed batches stay written."""
    try:
        session = store.get(session_id)
        session.cancel_commit()
        return _commit_status(session)

    except Exception as e:
        return handle_error(e)


# ===================
# REPORT
# ===================

@router.get("/sessions/{session_id}/report", response_model=UpdateReport)
async def get_report(session_id: str, store: SessionStore = Depends(get_session_store)):
    try:
        session = store.get(session_id)
        return get_report_service().build_report(session)

    except Exception as e:
        return handle_error(e)


@router.get("/sessions/{session_id}/report.xlsx")
async def download_report(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    """Download the run report as an Excel file."""
    try:
        session = store.get(session_id)
        service = get_report_service()
        report = service.build_report(session)
        output = service.generate_report_excel(report, session.store.items, settings.display_currency)

        filename = f"supplier_update_{session.session_id[:8]}.xlsx"
        return StreamingResponse(
            output,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={filename}"}
        )

    except Exception as e:
        return handle_error(e)
