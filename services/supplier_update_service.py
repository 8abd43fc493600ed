"""
Supplier update workflow.

One SupplierUpdateSession drives a single upload through the steps
csv -> mapping -> actions: parse the file, map its columns, match it
against the catalog, let the user review margins and selections, then
commit in progress batches.

See services/batch_commit_service.py for the write policy.
"""

import threading
import uuid
from io import BytesIO
from typing import Iterator, Optional, Union
import structlog

from config.settings import Settings, get_settings
from exceptions import (
    CommitInProgressError,
    CSVParseError,
    InvalidWorkflowStepError,
    LocationRequiredError,
    ValidationError,
)
from integrations.catalog_gateway import CatalogGateway
from models.catalog import Location
from models.reconciliation import (
    BatchRunState,
    FilterType,
    LookupResult,
    ReconciledItem,
    ReconciliationStats,
    UpdateOutcome,
    UpdateType,
    WorkflowStep,
)
from models.supplier import ColumnMapping, ColumnValue, MappingCommand, MappingField
from parsers.csv_parser import decode_upload, parse_csv
from parsers.record_extractor import extract_supplier_records
from parsers.spreadsheet_parser import is_spreadsheet, parse_spreadsheet
from services.batch_commit_service import BatchCommitOrchestrator
from services.catalog_matcher import CatalogMatcher
from services.column_mapper import ColumnMapper
from services.reconciliation_store import ReconciliationStore

logger = structlog.get_logger(__name__)


def pick_default_location(locations: list[Location]) -> Optional[Location]:
    """First active location, else the first one, else None."""
    for location in locations:
        if location.is_active:
            return location
    return locations[0] if locations else None


class SupplierUpdateSession:
    """
    Workflow state for one supplier file.

    The catalog gateway is owned by the caller and passed in. Item edits
    are refused while a commit run is in flight; the run itself works on
    a snapshot of the included items.
    """

    def __init__(self, gateway: CatalogGateway, settings: Optional[Settings] = None):
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.session_id = str(uuid.uuid4())

        self.step = WorkflowStep.CSV
        self.file_name = ""
        self.rows: list[list[str]] = []
        self.mapper = ColumnMapper()
        self.store = ReconciliationStore(threshold=self.settings.default_margin_threshold)
        self.not_found: list[str] = []
        self.records_checked = 0
        self.location_id: Optional[str] = None
        self.update_type: Optional[UpdateType] = None

        self.run_state = BatchRunState()
        self._orchestrator: Optional[BatchCommitOrchestrator] = None
        self._run_excluded: Optional[list[ReconciledItem]] = None
        self._lock = threading.Lock()
        self._busy = False

    # ===================
    # UPLOAD & MAPPING
    # ===================

    def upload_file(self, content: Union[str, bytes], file_name: str = "") -> list[list[str]]:
        """
        Parse an uploaded supplier file and move to the mapping step.

        Raises:
            CSVParseError: If the file has no data rows
        """
        self._ensure_idle()

        if is_spreadsheet(file_name):
            raw = content.encode() if isinstance(content, str) else content
            rows = parse_spreadsheet(BytesIO(raw))
        else:
            text = decode_upload(content) if isinstance(content, bytes) else content
            rows = parse_csv(text)

        if len(rows) < 2:
            raise CSVParseError(
                message="File must have a header row and at least one data row",
                details={"row_count": len(rows)}
            )

        self.file_name = file_name
        self.rows = rows
        self.mapper = ColumnMapper(column_count=len(rows[0]))
        self.store.clear()
        self.not_found = []
        self.records_checked = 0
        self.update_type = None
        self.run_state.reset()
        self._run_excluded = None
        self.step = WorkflowStep.MAPPING

        logger.info("supplier_file_uploaded", file_name=file_name, rows=len(rows), columns=len(rows[0]))
        return rows

    @property
    def headers(self) -> list[str]:
        return self.rows[0] if self.rows else []

    @property
    def mapping(self) -> ColumnMapping:
        return self.mapper.mapping

    def set_mapping(self, field: MappingField, value: ColumnValue) -> ColumnMapping:
        self._ensure_idle()
        self._require_step(WorkflowStep.MAPPING, WorkflowStep.ACTIONS)
        return self.mapper.set_field(field, value)

    def apply_mapping_command(self, command: MappingCommand) -> ColumnMapping:
        return self.set_mapping(command.field, command.value)

    def mapping_complete(self) -> bool:
        return self.mapper.is_ready(self.settings.require_stock_mapping)

    def available_update_types(self) -> list[UpdateType]:
        """Stock-only needs a real stock column; pricing is always offered."""
        if self.mapping.has_stock_column:
            return [UpdateType.STOCK, UpdateType.PRICING]
        return [UpdateType.PRICING]

    # ===================
    # LOOKUP
    # ===================

    def list_locations(self) -> list[Location]:
        return self.gateway.lookup_locations()

    def start_lookup(
        self,
        threshold: Optional[float] = None,
        location_id: Optional[str] = None,
        update_type: Optional[UpdateType] = None,
    ) -> LookupResult:
        """
        Extract supplier records and match them against the catalog.

        Raises:
            MappingIncompleteError: Mapping not ready
            ValidationError: Stock-only requested without a stock column, or no records
            LocationRequiredError: No location given and none available
            CatalogLookupError: Gateway failed; nothing is loaded
        """
        self._ensure_idle()
        self._require_step(WorkflowStep.MAPPING, WorkflowStep.ACTIONS)

        mapping = self.mapper.ensure_ready(self.settings.require_stock_mapping)
        update_type = UpdateType(update_type or UpdateType.PRICING)
        if update_type == UpdateType.STOCK and not mapping.has_stock_column:
            raise ValidationError(
                message="Stock-only updates need a stock on hand column",
                code="STOCK_COLUMN_REQUIRED"
            )

        location_id = location_id or self.location_id or self._default_location_id()
        if not location_id:
            raise LocationRequiredError()

        records = extract_supplier_records(self.rows, mapping)
        if not records:
            raise ValidationError(message="No products to look up", code="NO_PRODUCTS")

        if threshold is None:
            threshold = self.store.threshold
        elif threshold < 0:
            raise ValidationError(
                message="Margin threshold cannot be negative",
                code="INVALID_THRESHOLD",
                details={"threshold": threshold}
            )

        matcher = CatalogMatcher(self.gateway, batch_size=self.settings.lookup_batch_size)
        result = matcher.match(records, threshold, location_id)

        self.store.set_threshold(threshold)
        self.store.load(result.items)
        self.store.set_filter(FilterType.ALL)
        self.not_found = result.not_found
        self.records_checked = len(records)
        self.location_id = location_id
        self.update_type = update_type
        self.run_state.reset()
        self._run_excluded = None
        self.step = WorkflowStep.ACTIONS

        if result.not_found:
            logger.info("skus_not_found_in_store", count=len(result.not_found))

        return result

    def _default_location_id(self) -> Optional[str]:
        location = pick_default_location(self.list_locations())
        return location.id if location else None

    # ===================
    # REVIEW
    # ===================

    def set_price(self, variant_id: str, new_price: float) -> ReconciledItem:
        self._ensure_idle()
        return self.store.set_price(variant_id, new_price)

    def toggle_include(self, variant_id: str) -> ReconciledItem:
        self._ensure_idle()
        return self.store.toggle_include(variant_id)

    def set_included_set(self, variant_ids: list[str]) -> int:
        self._ensure_idle()
        return self.store.set_included_set(variant_ids)

    def set_threshold(self, value: float) -> None:
        self._ensure_idle()
        self.store.set_threshold(value)

    def set_filter(self, value: FilterType) -> None:
        self.store.set_filter(value)

    def filtered_items(self, filter_type: Optional[FilterType] = None) -> list[ReconciledItem]:
        return self.store.filtered_view(filter_type)

    def stats(self) -> ReconciliationStats:
        return self.store.stats()

    # ===================
    # COMMIT
    # ===================

    def begin_commit(self, update_type: Optional[UpdateType] = None) -> Iterator[BatchRunState]:
        """
        Validate and start a commit run; iterate the result to execute it.

        Validation errors are raised here, before any write. The session
        stays locked against edits until the returned iterator finishes.
        """
        self._require_step(WorkflowStep.ACTIONS)
        update_type = UpdateType(update_type or self.update_type or UpdateType.PRICING)

        with self._lock:
            if self._busy:
                raise CommitInProgressError()

            orchestrator = BatchCommitOrchestrator(
                self.gateway,
                progress_batch_size=self.settings.progress_batch_size,
                write_batch_size=self.settings.write_batch_size,
                merge_stock_outcomes=self.settings.merge_stock_outcomes,
                state=self.run_state,
            )
            items = self.store.items_to_update()

            if update_type == UpdateType.STOCK:
                runner = orchestrator.iter_stock_only(items, self.location_id)
            else:
                runner = orchestrator.iter_pricing(items, self.location_id, self.mapping.has_stock_column)

            self._orchestrator = orchestrator
            self.update_type = update_type
            self._busy = True
            self._run_excluded = [item.model_copy() for item in self.store.excluded_items()]

        logger.info("commit_started", session_id=self.session_id, update_type=update_type.value)
        return self._release_when_done(runner)

    def _release_when_done(self, runner: Iterator[BatchRunState]) -> Iterator[BatchRunState]:
        try:
            yield from runner
        finally:
            self._release()

    def _release(self) -> None:
        with self._lock:
            self._busy = False

    def run_commit(self, runner: Iterator[BatchRunState]) -> list[UpdateOutcome]:
        """Drive a run started with begin_commit() to completion."""
        try:
            for state in runner:
                logger.debug(
                    "commit_progress",
                    session_id=self.session_id,
                    batch=state.current_batch_index,
                    total_batches=state.total_batches
                )
        finally:
            runner.close()
            self._release()
        return list(self.run_state.outcomes)

    def commit_stock_only(self) -> list[UpdateOutcome]:
        return self.run_commit(self.begin_commit(UpdateType.STOCK))

    def commit_pricing(self) -> list[UpdateOutcome]:
        """Pricing run; stock is included when a real stock column is mapped."""
        return self.run_commit(self.begin_commit(UpdateType.PRICING))

    def cancel_commit(self) -> bool:
        """Request cancellation between progress batches. False if idle."""
        if not self.is_running or self._orchestrator is None:
            return False
        self._orchestrator.cancel()
        return True

    def excluded_items(self) -> list[ReconciledItem]:
        """Items left out of the last run, as they were when it started; live before any run."""
        if self._run_excluded is not None:
            return list(self._run_excluded)
        return self.store.excluded_items()

    def progress(self) -> BatchRunState:
        """Snapshot of the current or last run."""
        return self.run_state.model_copy(deep=True)

    @property
    def is_running(self) -> bool:
        return self._busy

    # ===================
    # RESET
    # ===================

    def reset(self) -> None:
        """Back to the upload step with everything cleared."""
        self._ensure_idle()
        self.step = WorkflowStep.CSV
        self.file_name = ""
        self.rows = []
        self.mapper.reset()
        self.store.clear()
        self.not_found = []
        self.records_checked = 0
        self.update_type = None
        self.run_state.reset()
        self._run_excluded = None
        self._orchestrator = None
        logger.info("supplier_session_reset", session_id=self.session_id)

    # ===================
    # GUARDS
    # ===================

    def _ensure_idle(self) -> None:
        if self._busy:
            raise CommitInProgressError()

    def _require_step(self, *allowed: WorkflowStep) -> None:
        if self.step not in allowed:
            raise InvalidWorkflowStepError(self.step.value, allowed[0].value)
