"""
Business logic services.

Each service handles one stage of the supplier update workflow.
"""

from services.margin_engine import calculate_margin, get_margin_status
from services.column_mapper import ColumnMapper
from services.catalog_matcher import CatalogMatcher, build_sku_query
from services.reconciliation_store import ReconciliationStore
from services.batch_commit_service import BatchCommitOrchestrator, merge_stock_outcome
from services.supplier_update_service import SupplierUpdateSession, pick_default_location
from services.session_store import SessionStore
from services.report_service import ReportService, get_report_service

__all__ = [
    "calculate_margin",
    "get_margin_status",
    "ColumnMapper",
    "CatalogMatcher",
    "build_sku_query",
    "ReconciliationStore",
    "BatchCommitOrchestrator",
    "merge_stock_outcome",
    "SupplierUpdateSession",
    "pick_default_location",
    "SessionStore",
    "ReportService",
    "get_report_service",
]
