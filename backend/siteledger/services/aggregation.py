"""
Cost aggregation over a tenant's usage ledgers.

Totals come from DailyReport rows, recomputed from the unit prices copied onto
each row. Only when no DailyReport row matches the range and owner filter are
TotalPrice rows used instead, summing their stored costs as they are.
"""
from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence
import logging

from siteledger.core.exceptions import InvalidRequest, MaterialNotFound
from siteledger.core.structured_logging import log_aggregation
from siteledger.models.ledger import DailyReport, TotalPrice
from siteledger.schemas.totals import PriceItem, PricedItem, TotalsReport, TotalsRow, TotalsSummary
from siteledger.services.tenant_registry import TenantHandles

logger = logging.getLogger(__name__)

SOURCE_DAILY_REPORTS = "daily_reports"
SOURCE_TOTAL_PRICES = "total_prices"


def calculate_totals(
    handles: TenantHandles,
    allowed_usernames: Optional[Iterable[str]],
    start_date: date,
    end_date: date
) -> TotalsReport:
    """
    Per-material cost totals for a date range.

    Args:
        handles: tenant to read from
        allowed_usernames: owners to include, None for the whole tenant
        start_date: inclusive
        end_date: inclusive

    Returns:
        TotalsReport with one row per material name and a summary across rows
    """
    if start_date > end_date:
        raise InvalidRequest("start_date must not be after end_date")

    usernames = set(allowed_usernames) if allowed_usernames is not None else None

    reports = handles.daily_reports.find(usernames=usernames, start_date=start_date, end_date=end_date)
    if reports:
        source = SOURCE_DAILY_REPORTS
        groups = _group_daily_reports(reports)
    else:
        totals = handles.total_prices.find(usernames=usernames, start_date=start_date, end_date=end_date)
        source = SOURCE_TOTAL_PRICES
        groups = _group_total_prices(totals)

    rows = list(groups.values())
    summary = TotalsSummary(
        total_materials=len(rows),
        grand_total=sum(r.total_price for r in rows),
        total_material_cost=sum(r.material_cost for r in rows),
        total_labor_cost=sum(r.labor_cost for r in rows),
    )
    log_aggregation(
        handles.key,
        source,
        rows=len(rows),
        summary=summary.model_dump(),
        filtered=usernames is not None,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat()
    )
    return TotalsReport(rows=rows, summary=summary)


def _new_row(record) -> TotalsRow:
    return TotalsRow(
        material_name=record.material_name,
        unit=record.unit,
        location=record.location or "N/A"
    )


def _group_daily_reports(reports: Sequence[DailyReport]) -> Dict[str, TotalsRow]:
    groups: Dict[str, TotalsRow] = OrderedDict()
    for report in reports:
        row = groups.get(report.material_name)
        if row is None:
            row = groups[report.material_name] = _new_row(report)
        quantity = report.quantity or 0
        material_cost = (report.material_price or 0) * quantity
        labor_cost = (report.labour_price or 0) * quantity
        row.quantity += quantity
        row.material_cost += material_cost
        row.labor_cost += labor_cost
        row.total_price += material_cost + labor_cost
    return groups


def _group_total_prices(totals: Sequence[TotalPrice]) -> Dict[str, TotalsRow]:
    # Stored rows are already priced events; no re-multiplication
    groups: Dict[str, TotalsRow] = OrderedDict()
    for record in totals:
        row = groups.get(record.material_name)
        if row is None:
            row = groups[record.material_name] = _new_row(record)
        row.quantity += record.quantity or 0
        row.material_cost += record.material_cost or 0
        row.labor_cost += record.labor_cost or 0
        row.total_price += record.total_price or 0
    return groups


def price_items(handles: TenantHandles, items: Sequence[PriceItem]) -> List[PricedItem]:
    """
    Price usage lines against the tenant catalog without storing anything.

    Raises:
        MaterialNotFound: a line names a material absent from the catalog
    """
    catalog = handles.materials.find_by_names(item.material_name for item in items)
    priced = []
    for item in items:
        material = catalog.get(item.material_name)
        if material is None:
            raise MaterialNotFound(item.material_name)
        material_cost = item.quantity * material.material_price
        labor_cost = item.quantity * material.labor_price
        priced.append(PricedItem(
            material_name=material.material_name,
            quantity=item.quantity,
            unit=material.unit,
            material_price=material.material_price,
            labor_price=material.labor_price,
            material_cost=material_cost,
            labor_cost=labor_cost,
            total_price=material_cost + labor_cost
        ))
    return priced
