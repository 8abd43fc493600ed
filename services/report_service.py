"""
Update report service.

Summarizes a commit run of a supplier session and exports it as an
Excel workbook.
"""

from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
import structlog

from models.reconciliation import ReconciledItem, UpdateOutcome, UpdateReport
from services.supplier_update_service import SupplierUpdateSession
from utils.text_utils import format_currency, format_margin

logger = structlog.get_logger(__name__)

MESSAGE_NOT_SELECTED = "Not selected for update"
MESSAGE_NOT_FOUND = "Not found in store"

REPORT_COLUMNS = [
    ("SKU", 22),
    ("Product", 40),
    ("Status", 14),
    ("Message", 45),
    ("Price", 14),
    ("New Cost", 14),
    ("Margin", 10),
    ("Current Qty", 12),
    ("New Qty", 10),
]

STATUS_FILLS = {
    "Updated": PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid"),
    "Not updated": PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid"),
    "Skipped": PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid"),
    "Not found": PatternFill(start_color="D9D9D9", end_color="D9D9D9", fill_type="solid"),
}


class ReportService:
    """Builds run summaries and their Excel export."""

    def build_report(self, session: SupplierUpdateSession) -> UpdateReport:
        """
        Summarize the last commit run of a session.

        Matched items the user excluded are reported as skipped; they never
        reach the commit run. Once a run has started, the exclusions it saw
        are reported, not later edits.
        """
        state = session.progress()
        skipped = [
            UpdateOutcome(sku=item.sku, updated=False, message=MESSAGE_NOT_SELECTED)
            for item in session.excluded_items()
        ]

        return UpdateReport(
            file_name=session.file_name,
            update_type=session.update_type,
            checked=session.records_checked,
            found=len(session.store.items),
            updated=state.updated_count,
            not_updated=state.not_updated_count,
            skipped=len(skipped),
            cancelled=state.cancelled,
            error=state.error,
            outcomes=state.outcomes,
            skipped_items=skipped,
            not_found=list(session.not_found),
        )

    def generate_report_excel(
        self,
        report: UpdateReport,
        items: list[ReconciledItem],
        currency: str = "AUD",
    ) -> BytesIO:
        """
        Generate an Excel file with one row per outcome, skipped item and
        unmatched SKU, followed by the totals.

        Args:
            report: Summary from build_report()
            items: Reconciled items, used for prices and quantities
            currency: Currency code for price formatting

        Returns:
            BytesIO containing the Excel file
        """
        logger.info(
            "generating_update_report_excel",
            outcomes=len(report.outcomes),
            skipped=report.skipped,
            not_found=len(report.not_found)
        )

        # Outcomes carry only the SKU; first item per SKU supplies the details
        by_sku: dict[str, ReconciledItem] = {}
        for item in items:
            by_sku.setdefault(item.sku.lower(), item)

        wb = Workbook()
        ws = wb.active
        ws.title = "Update Report"

        bold_font = Font(bold=True)

        for col, (title, width) in enumerate(REPORT_COLUMNS, start=1):
            cell = ws.cell(row=1, column=col, value=title)
            cell.font = bold_font
            ws.column_dimensions[cell.column_letter].width = width

        row = 2
        for outcome in report.outcomes:
            status = "Updated" if outcome.updated else "Not updated"
            self._write_row(ws, row, outcome.sku, status, outcome.error or outcome.message,
                            by_sku.get(outcome.sku.lower()), currency)
            row += 1

        for outcome in report.skipped_items:
            self._write_row(ws, row, outcome.sku, "Skipped", outcome.message,
                            by_sku.get(outcome.sku.lower()), currency)
            row += 1

        for sku in report.not_found:
            self._write_row(ws, row, sku, "Not found", MESSAGE_NOT_FOUND, None, currency)
            row += 1

        # Totals
        row += 1
        totals = [
            ("Checked", report.checked),
            ("Found", report.found),
            ("Updated", report.updated),
            ("Not updated", report.not_updated),
            ("Skipped", report.skipped),
            ("Not found", len(report.not_found)),
        ]
        for label, value in totals:
            ws.cell(row=row, column=1, value=label).font = bold_font
            ws.cell(row=row, column=2, value=value)
            row += 1

        if report.cancelled:
            ws.cell(row=row, column=1, value="Run cancelled before completion").font = bold_font

        output = BytesIO()
        wb.save(output)
        output.seek(0)

        return output

    def _write_row(
        self,
        ws,
        row: int,
        sku: str,
        status: str,
        message: str,
        item: Optional[ReconciledItem],
        currency: str,
    ) -> None:
        ws.cell(row=row, column=1, value=sku)
        status_cell = ws.cell(row=row, column=3, value=status)
        status_cell.fill = STATUS_FILLS[status]
        ws.cell(row=row, column=4, value=message)

        if item is None:
            return

        ws.cell(row=row, column=2, value=item.display_name)
        ws.cell(row=row, column=5, value=format_currency(item.price, currency))
        ws.cell(row=row, column=6, value=format_currency(item.new_cost, currency))
        ws.cell(row=row, column=7, value=format_margin(item.margin_percent))
        ws.cell(row=row, column=8, value=item.current_quantity)
        ws.cell(row=row, column=9, value=item.new_quantity)


# Singleton instance
_report_service: Optional[ReportService] = None


def get_report_service() -> ReportService:
    """Get or create ReportService instance."""
    global _report_service
    if _report_service is None:
        _report_service = ReportService()
    return _report_service
