from datetime import date

import pytest

from siteledger.core.exceptions import InvalidRequest, MaterialNotFound
from siteledger.core.security import Identity
from siteledger.schemas.ledger import MaterialCreate, MaterialUpdate, UsageItem
from siteledger.schemas.totals import PriceItem
from siteledger.services import ledger_service
from siteledger.services.aggregation import SOURCE_TOTAL_PRICES, calculate_totals, price_items

ADMIN = Identity(id=1, username="site_admin", role="admin", site="SiteA", company="CompX")
ALICE = Identity(id=2, username="alice", role="user", site="SiteA", company="CompX")
BOB = Identity(id=3, username="bob", role="user", site="SiteA", company="CompX")

JAN_1 = date(2024, 1, 1)
JAN_31 = date(2024, 1, 31)


@pytest.fixture
def cement(handles):
    return ledger_service.create_material(
        handles, ADMIN, MaterialCreate(material_name="Cement", unit="bag", material_price=10, labor_price=5)
    )


def usage(day, name="Cement", quantity=3, **kwargs):
    return UsageItem(date=day, material_name=name, quantity=quantity, **kwargs)


def test_cement_month_totals(handles, cement):
    ledger_service.submit_daily_reports(handles, ALICE, [usage(date(2024, 1, 5)), usage(date(2024, 1, 10))])

    report = calculate_totals(handles, None, JAN_1, JAN_31)

    assert len(report.rows) == 1
    row = report.rows[0]
    assert row.material_name == "Cement"
    assert row.quantity == 6
    assert row.material_cost == 60
    assert row.labor_cost == 30
    assert row.total_price == 90
    assert row.unit == "bag"
    assert row.location == "N/A"
    assert report.summary.total_materials == 1
    assert report.summary.grand_total == 90


def test_totals_use_prices_copied_at_submission(handles, cement):
    ledger_service.submit_daily_reports(handles, ALICE, [usage(date(2024, 1, 5))])
    ledger_service.update_material(
        handles, ADMIN,
        MaterialUpdate(original_material_name="Cement", material_name="Cement", unit="bag", material_price=20, labor_price=5)
    )
    ledger_service.submit_daily_reports(handles, ALICE, [usage(date(2024, 1, 10))])

    report = calculate_totals(handles, None, JAN_1, JAN_31)
    assert report.rows[0].material_cost == 3 * 10 + 3 * 20


def test_totals_are_filtered_by_owner_and_range(handles, cement):
    ledger_service.submit_daily_reports(handles, ALICE, [usage(date(2024, 1, 5), location="Block B")])
    ledger_service.submit_daily_reports(handles, BOB, [usage(date(2024, 1, 6), quantity=10)])
    ledger_service.submit_daily_reports(handles, ALICE, [usage(date(2024, 2, 1), quantity=100)])

    report = calculate_totals(handles, {"alice"}, JAN_1, JAN_31)
    assert [(r.quantity, r.location) for r in report.rows] == [(3, "Block B")]

    everyone = calculate_totals(handles, None, JAN_1, JAN_31)
    assert everyone.rows[0].quantity == 13


def test_fallback_to_total_prices(handles, cement):
    ledger_service.submit_total_prices(handles, ALICE, [usage(date(2024, 1, 7), quantity=2)])

    report = calculate_totals(handles, None, JAN_1, JAN_31)
    assert report.summary.total_materials > 0
    assert report.rows[0].quantity == 2
    assert report.rows[0].total_price == 30
    assert report.summary.grand_total == 30


def test_total_prices_ignored_when_daily_reports_exist(handles, cement):
    ledger_service.submit_total_prices(handles, ALICE, [usage(date(2024, 1, 7), quantity=50)])
    ledger_service.submit_daily_reports(handles, ALICE, [usage(date(2024, 1, 8), quantity=1)])

    report = calculate_totals(handles, None, JAN_1, JAN_31)
    assert report.rows[0].quantity == 1
    assert report.summary.grand_total == 15


def test_fallback_sums_stored_costs(handles, cement):
    # stored totals are summed as they are, never recomputed
    handles.total_prices.insert_many([{
        "username": "alice", "date": date(2024, 1, 7), "material_name": "Cement", "quantity": 2, "unit": "bag",
        "material_price": 10, "labor_price": 5, "material_cost": 1, "labor_cost": 2, "total_price": 3,
    }])
    report = calculate_totals(handles, None, JAN_1, JAN_31)
    assert report.rows[0].total_price == 3


def test_groups_keep_first_seen_order(handles, cement):
    ledger_service.create_material(
        handles, ADMIN, MaterialCreate(material_name="Sand", unit="m3", material_price=4, labor_price=1)
    )
    ledger_service.submit_daily_reports(handles, ALICE, [
        usage(date(2024, 1, 2), name="Sand"),
        usage(date(2024, 1, 3)),
        usage(date(2024, 1, 4), name="Sand"),
    ])
    report = calculate_totals(handles, None, JAN_1, JAN_31)
    assert [r.material_name for r in report.rows] == ["Sand", "Cement"]
    assert report.summary.total_material_cost == 6 * 4 + 3 * 10
    assert report.summary.total_labor_cost == 6 * 1 + 3 * 5


def test_totals_are_idempotent(handles, cement):
    ledger_service.submit_daily_reports(handles, ALICE, [usage(date(2024, 1, 5)), usage(date(2024, 1, 9), quantity=4)])
    first = calculate_totals(handles, {"alice"}, JAN_1, JAN_31)
    second = calculate_totals(handles, {"alice"}, JAN_1, JAN_31)
    assert first.model_dump() == second.model_dump()


def test_empty_range_yields_empty_report(handles):
    report = calculate_totals(handles, None, JAN_1, JAN_31)
    assert report.rows == []
    assert report.summary.grand_total == 0
    assert report.summary.total_materials == 0


def test_inverted_range_is_rejected(handles):
    with pytest.raises(InvalidRequest):
        calculate_totals(handles, None, JAN_31, JAN_1)


def test_price_items(handles, cement):
    items = price_items(handles, [PriceItem(material_name="Cement", quantity=2)])
    assert items[0].total_price == 30
    assert items[0].unit == "bag"
    with pytest.raises(MaterialNotFound):
        price_items(handles, [PriceItem(material_name="Gravel", quantity=1)])
    # nothing is stored
    assert handles.total_prices.find() == []
