"""
Batch commit service.

Writes selected reconciled items back to the catalog in sequential
progress batches, tolerating partial failure and reporting one outcome
per item.

Write policy per pricing sub-batch:
    - combined price + cost write succeeds -> every variant updated
    - rejected for cost reasons -> price-only retry, then a standalone cost
      write per variant; outcome decided per variant
    - rejected for other reasons -> whole sub-batch failed, no retry
    - transport failure -> scoped to the call's batch, run continues

All gateway calls are made one at a time; nothing runs in parallel.
"""

import re
from typing import Callable, Iterator, NamedTuple, Optional
import structlog

from exceptions import AppError, LocationRequiredError, NothingToUpdateError
from integrations.catalog_gateway import CatalogGateway, INVENTORY_REASON, INVENTORY_STATE
from models.catalog import FieldError, InventoryChange, VariantPriceInput
from models.reconciliation import BatchRunState, ReconciledItem, UpdateOutcome
from utils.batching import chunk_list, group_by

logger = structlog.get_logger(__name__)

DEFAULT_PROGRESS_BATCH_SIZE = 50
DEFAULT_WRITE_BATCH_SIZE = 100

MESSAGE_STOCK_UPDATED = "Stock updated"
MESSAGE_PRICING_UPDATED = "Pricing updated"
MESSAGE_PRICING_AND_STOCK_UPDATED = "Pricing and stock updated"
MESSAGE_NO_QUANTITY_CHANGE = "No quantity change needed"
MESSAGE_API_ERROR = "API error"
MESSAGE_COST_UPDATE_FAILED = "Cost update failed"

COST_ERROR_PATTERN = re.compile(r"inventoryItem|cost|unitCost", re.IGNORECASE)


def is_cost_error(error: FieldError) -> bool:
    """True if a rejection points at the cost / inventory item part of a write."""
    return bool(COST_ERROR_PATTERN.search(error.message) or COST_ERROR_PATTERN.search(error.field_path))


def _error_message(error: Exception) -> str:
    """Message for a failed write call; gateway errors carry their own."""
    if isinstance(error, AppError):
        return error.message
    return str(error) or type(error).__name__


def _succeeded(item: ReconciledItem, message: str) -> UpdateOutcome:
    return UpdateOutcome(sku=item.sku, updated=True, message=message)


def _failed(item: ReconciledItem, message: str, error: Optional[str] = None) -> UpdateOutcome:
    return UpdateOutcome(sku=item.sku, updated=False, message=message, error=error or message)


class _StockResult(NamedTuple):
    updated: bool
    message: str
    error: Optional[str] = None


class BatchCommitOrchestrator:
    """
    Commits reconciled items to the catalog.

    The included items are snapshotted when a run starts, split into
    progress batches and processed strictly in order. iter_* methods yield
    the run state after each progress batch so callers can observe
    progress; cancel() stops the run before the next batch starts.
    """

    def __init__(
        self,
        gateway: CatalogGateway,
        progress_batch_size: int = DEFAULT_PROGRESS_BATCH_SIZE,
        write_batch_size: int = DEFAULT_WRITE_BATCH_SIZE,
        merge_stock_outcomes: bool = True,
        state: Optional[BatchRunState] = None,
    ):
        self.gateway = gateway
        self.progress_batch_size = progress_batch_size
        self.write_batch_size = write_batch_size
        self.merge_stock_outcomes = merge_stock_outcomes
        self.state = state if state is not None else BatchRunState()
        self._cancel_requested = False

    # ===================
    # PUBLIC API
    # ===================

    def iter_stock_only(
        self,
        items: list[ReconciledItem],
        location_id: Optional[str],
    ) -> Iterator[BatchRunState]:
        """
        Start a stock-only run.

        Raises (eagerly, before any write):
            LocationRequiredError: No location given
            NothingToUpdateError: No included items
        """
        if not location_id:
            raise LocationRequiredError()
        snapshot = self._snapshot(items)
        self._cancel_requested = False
        return self._run(snapshot, "stock", lambda batch: self._commit_stock_batch(batch, location_id))

    def iter_pricing(
        self,
        items: list[ReconciledItem],
        location_id: Optional[str],
        also_update_stock: bool = False,
    ) -> Iterator[BatchRunState]:
        """
        Start a pricing run, optionally followed by stock per progress batch.

        Raises (eagerly, before any write):
            LocationRequiredError: Stock requested without a location
            NothingToUpdateError: No included items
        """
        if also_update_stock and not location_id:
            raise LocationRequiredError()
        snapshot = self._snapshot(items)
        self._cancel_requested = False
        return self._run(
            snapshot,
            "pricing_and_stock" if also_update_stock else "pricing",
            lambda batch: self._commit_pricing_batch(batch, location_id, also_update_stock),
        )

    def commit_stock_only(self, items: list[ReconciledItem], location_id: Optional[str]) -> list[UpdateOutcome]:
        """Run a stock-only commit to completion and return all outcomes."""
        for _ in self.iter_stock_only(items, location_id):
            pass
        return list(self.state.outcomes)

    def commit_pricing(
        self,
        items: list[ReconciledItem],
        location_id: Optional[str],
        also_update_stock: bool = False,
    ) -> list[UpdateOutcome]:
        """Run a pricing commit to completion and return all outcomes."""
        for _ in self.iter_pricing(items, location_id, also_update_stock):
            pass
        return list(self.state.outcomes)

    def cancel(self) -> None:
        """Ask the running commit to stop before its next progress batch."""
        self._cancel_requested = True
        logger.info("commit_cancel_requested", batch=self.state.current_batch_index)

    # ===================
    # RUN LOOP
    # ===================

    def _snapshot(self, items: list[ReconciledItem]) -> list[ReconciledItem]:
        snapshot = [item.model_copy(deep=True) for item in items if item.include_in_update]
        if not snapshot:
            raise NothingToUpdateError()
        return snapshot

    def _run(
        self,
        snapshot: list[ReconciledItem],
        run_type: str,
        commit_batch: Callable[[list[ReconciledItem]], list[UpdateOutcome]],
    ) -> Iterator[BatchRunState]:
        batches = chunk_list(snapshot, self.progress_batch_size)
        self.state.begin(len(batches))

        logger.info(
            "commit_run_started",
            run_type=run_type,
            items=len(snapshot),
            total_batches=len(batches)
        )

        try:
            for index, batch in enumerate(batches, start=1):
                if self._cancel_requested:
                    self.state.cancelled = True
                    logger.info("commit_run_cancelled", completed_batches=index - 1)
                    break

                self.state.advance_to(index)
                logger.info("progress_batch_started", batch=index, total_batches=len(batches), items=len(batch))

                try:
                    outcomes = commit_batch(batch)
                except AppError as e:
                    self.state.error = e.message
                    logger.error("progress_batch_failed", batch=index, error=e.message, code=e.code)
                    break

                self.state.add_outcomes(outcomes)
                logger.info(
                    "progress_batch_complete",
                    batch=index,
                    updated=sum(1 for o in outcomes if o.updated),
                    not_updated=sum(1 for o in outcomes if not o.updated)
                )
                yield self.state
        finally:
            self.state.finish()
            logger.info(
                "commit_run_finished",
                run_type=run_type,
                updated=self.state.updated_count,
                not_updated=self.state.not_updated_count,
                cancelled=self.state.cancelled,
                error=self.state.error
            )

    # ===================
    # STOCK
    # ===================

    def _commit_stock_batch(self, batch: list[ReconciledItem], location_id: str) -> list[UpdateOutcome]:
        changed = [item for item in batch if item.quantity_delta != 0]
        stock = self._apply_inventory(changed, location_id)

        outcomes = []
        for item in batch:
            result = stock.get(item.variant_id)
            if result is None:
                outcomes.append(UpdateOutcome(sku=item.sku, updated=False, message=MESSAGE_NO_QUANTITY_CHANGE))
            elif result.updated:
                outcomes.append(_succeeded(item, result.message))
            else:
                outcomes.append(_failed(item, result.message, result.error))
        return outcomes

    def _apply_inventory(self, items: list[ReconciledItem], location_id: str) -> dict[str, _StockResult]:
        """
        Send non-zero deltas in write batches.

        A batch is all-or-nothing: any field error or transport failure
        fails every item in it.
        """
        results: dict[str, _StockResult] = {}

        for sub_batch in chunk_list(items, self.write_batch_size):
            changes = [
                InventoryChange(
                    inventory_record_id=item.inventory_record_id,
                    location_id=location_id,
                    delta=item.quantity_delta,
                )
                for item in sub_batch
            ]

            try:
                response = self.gateway.adjust_inventory(changes, INVENTORY_REASON, INVENTORY_STATE)
            except Exception as e:
                logger.error("inventory_adjust_failed", changes=len(changes), error=_error_message(e))
                result = _StockResult(False, MESSAGE_API_ERROR, _error_message(e))
            else:
                if response.field_errors:
                    message = response.field_errors[0].message
                    logger.warning("inventory_adjust_rejected", changes=len(changes), error=message)
                    result = _StockResult(False, message, message)
                else:
                    result = _StockResult(True, MESSAGE_STOCK_UPDATED)

            for item in sub_batch:
                results[item.variant_id] = result

        return results

    # ===================
    # PRICING
    # ===================

    def _commit_pricing_batch(
        self,
        batch: list[ReconciledItem],
        location_id: Optional[str],
        also_update_stock: bool,
    ) -> list[UpdateOutcome]:
        results: dict[str, UpdateOutcome] = {}

        for parent_id, variants in group_by(batch, lambda item: item.parent_id).items():
            for sub_batch in chunk_list(variants, self.write_batch_size):
                results.update(self._write_pricing(parent_id, sub_batch))

        if also_update_stock:
            self._apply_stock_after_pricing(batch, location_id, results)

        return [results[item.variant_id] for item in batch]

    def _write_pricing(self, parent_id: str, sub_batch: list[ReconciledItem]) -> dict[str, UpdateOutcome]:
        inputs = [
            VariantPriceInput(variant_id=item.variant_id, price=round(item.price, 2), cost=item.new_cost)
            for item in sub_batch
        ]

        try:
            response = self.gateway.bulk_update_variants(parent_id, inputs)
        except Exception as e:
            logger.error("variant_update_failed", parent_id=parent_id, variants=len(inputs), error=_error_message(e))
            return {item.variant_id: _failed(item, MESSAGE_API_ERROR, _error_message(e)) for item in sub_batch}

        if not response.field_errors:
            return {item.variant_id: _succeeded(item, MESSAGE_PRICING_UPDATED) for item in sub_batch}

        if any(is_cost_error(e) for e in response.field_errors):
            logger.warning(
                "variant_cost_rejected_falling_back",
                parent_id=parent_id,
                variants=len(sub_batch),
                error=response.field_errors[0].message
            )
            return self._write_pricing_fallback(parent_id, sub_batch)

        message = response.field_errors[0].message
        logger.warning("variant_update_rejected", parent_id=parent_id, variants=len(sub_batch), error=message)
        return {item.variant_id: _failed(item, message) for item in sub_batch}

    def _write_pricing_fallback(self, parent_id: str, sub_batch: list[ReconciledItem]) -> dict[str, UpdateOutcome]:
        """Price-only retry for the sub-batch, then a standalone cost write per variant."""
        price_inputs = [
            VariantPriceInput(variant_id=item.variant_id, price=round(item.price, 2))
            for item in sub_batch
        ]

        try:
            price_response = self.gateway.bulk_update_variants(parent_id, price_inputs)
            price_errors = [e.message for e in price_response.field_errors]
        except Exception as e:
            logger.error("price_only_retry_failed", parent_id=parent_id, error=_error_message(e))
            price_errors = [_error_message(e)]

        cost_errors: dict[str, str] = {}
        for item in sub_batch:
            try:
                cost_response = self.gateway.update_inventory_item_cost(item.inventory_record_id, item.new_cost)
            except Exception as e:
                logger.error("cost_update_failed", sku=item.sku, error=_error_message(e))
                cost_errors[item.variant_id] = _error_message(e)
                continue
            if cost_response.field_errors:
                cost_errors[item.variant_id] = cost_response.field_errors[0].message
            elif not cost_response.updated:
                cost_errors[item.variant_id] = MESSAGE_COST_UPDATE_FAILED

        if price_errors or cost_errors:
            logger.warning(
                "pricing_fallback_partial",
                parent_id=parent_id,
                price_errors=len(price_errors),
                cost_errors=len(cost_errors)
            )

        outcomes = {}
        for item in sub_batch:
            cost_error = cost_errors.get(item.variant_id)
            if cost_error or price_errors:
                outcomes[item.variant_id] = _failed(item, cost_error or price_errors[0])
            else:
                outcomes[item.variant_id] = _succeeded(item, MESSAGE_PRICING_UPDATED)
        return outcomes

    def _apply_stock_after_pricing(
        self,
        batch: list[ReconciledItem],
        location_id: str,
        results: dict[str, UpdateOutcome],
    ) -> None:
        changed = [item for item in batch if item.quantity_delta != 0]
        if not changed:
            return

        stock = self._apply_inventory(changed, location_id)

        for item in changed:
            stock_result = stock[item.variant_id]
            pricing = results.get(item.variant_id)

            if not self.merge_stock_outcomes or pricing is None:
                if not stock_result.updated:
                    logger.warning("stock_update_failed_pricing_kept", sku=item.sku, error=stock_result.error)
                continue

            results[item.variant_id] = merge_stock_outcome(pricing, stock_result.updated, stock_result.error)


def merge_stock_outcome(pricing: UpdateOutcome, stock_updated: bool, stock_error: Optional[str]) -> UpdateOutcome:
    """
    Fold a stock pass result into the pricing outcome of the same item.

    The item only counts as updated when both passes succeeded.
    """
    if pricing.updated and stock_updated:
        return UpdateOutcome(sku=pricing.sku, updated=True, message=MESSAGE_PRICING_AND_STOCK_UPDATED)

    if pricing.updated:
        return UpdateOutcome(
            sku=pricing.sku,
            updated=False,
            message=f"Pricing updated, stock failed: {stock_error}",
            error=stock_error,
        )

    if stock_updated:
        return UpdateOutcome(
            sku=pricing.sku,
            updated=False,
            message=f"{pricing.message}; stock updated",
            error=pricing.error,
        )

    return UpdateOutcome(
        sku=pricing.sku,
        updated=False,
        message=pricing.message,
        error=f"{pricing.error}; stock: {stock_error}",
    )
