from siteledger.core.config import settings
from siteledger.models.user import Role

from conftest import auth_headers

API = settings.API_V1_PREFIX


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_self_registration_and_login(client):
    response = client.post(f"{API}/auth/register", json={
        "username": "alice", "password": "secret123", "site": "SiteA", "company": "CompX"
    })
    assert response.status_code == 201
    assert response.json()["user"]["role"] == "user"

    login = client.post(f"{API}/auth/login", json={
        "username": "ALICE", "password": "secret123", "site": "sitea", "company": "compx"
    })
    assert login.status_code == 200
    body = login.json()
    assert body["user"]["username"] == "alice"
    assert settings.TOKEN_COOKIE_NAME in login.cookies

    me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.json()["site"] == "SiteA"


def test_login_errors(client, make_user):
    make_user("alice", site="SiteA", company="CompX")
    missing_site = client.post(f"{API}/auth/login", json={"username": "alice", "password": "secret123"})
    assert missing_site.status_code == 400
    wrong = client.post(f"{API}/auth/login", json={
        "username": "alice", "password": "nope", "site": "SiteA", "company": "CompX"
    })
    assert wrong.status_code == 400
    assert wrong.json()["error"] == "invalid_credentials"


def test_anonymous_admin_registration_requires_token(client):
    response = client.post(f"{API}/auth/register", json={
        "username": "root", "password": "secret123", "role": "admin", "site": "SiteA", "company": "CompX"
    })
    assert response.status_code == 401


def test_protected_routes_need_a_valid_token(client):
    assert client.get(f"{API}/materials").status_code == 401
    response = client.get(f"{API}/materials", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["error"] == "invalid_token"


def test_material_and_usage_flow(client, make_user):
    admin = make_user("site_admin", Role.ADMIN, site="SiteA", company="CompX")
    alice = make_user("alice", site="SiteA", company="CompX", created_by=admin)

    created = client.post(f"{API}/materials", headers=auth_headers(admin), json={
        "material_name": "Cement", "unit": "bag", "material_price": 10, "labor_price": 5
    })
    assert created.status_code == 201
    assert created.json()["created_by"] == "site_admin"

    duplicate = client.post(f"{API}/materials", headers=auth_headers(admin), json={
        "material_name": "Cement", "unit": "bag", "material_price": 10, "labor_price": 5
    })
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "duplicate_material"

    denied = client.post(f"{API}/materials", headers=auth_headers(alice), json={
        "material_name": "Sand", "unit": "m3", "material_price": 4, "labor_price": 1
    })
    assert denied.status_code == 403

    submitted = client.post(f"{API}/daily-reports", headers=auth_headers(alice), json={"materials": [
        {"date": "2024-01-05", "material_name": "Cement", "quantity": 3},
        {"date": "2024-01-10", "material_name": "Cement", "quantity": 3},
    ]})
    assert submitted.status_code == 201
    assert [r["material_price"] for r in submitted.json()] == [10, 10]

    unknown = client.post(f"{API}/daily-reports", headers=auth_headers(alice), json={"materials": [
        {"date": "2024-01-05", "material_name": "Gravel", "quantity": 1},
    ]})
    assert unknown.status_code == 400
    assert unknown.json()["error"] == "material_not_found"

    totals = client.get(
        f"{API}/manager/site/calculate-total-prices",
        headers=auth_headers(admin),
        params={"start_date": "2024-01-01", "end_date": "2024-01-31"}
    )
    assert totals.status_code == 200
    body = totals.json()
    assert body["site"] == "SiteA"
    assert body["summary"]["grand_total"] == 90
    assert body["rows"][0]["quantity"] == 6

    forbidden = client.get(
        f"{API}/manager/site/calculate-total-prices",
        headers=auth_headers(alice),
        params={"start_date": "2024-01-01", "end_date": "2024-01-31"}
    )
    assert forbidden.status_code == 403


def test_manager_reads_inferred_site(client, make_user):
    manager = make_user("boss", Role.MANAGER)
    admin = make_user("site_admin", Role.ADMIN, site="SiteC", company="CoY", created_by=manager)
    client.post(f"{API}/materials", headers=auth_headers(admin), json={
        "material_name": "Cement", "unit": "bag", "material_price": 10, "labor_price": 5
    })

    materials = client.get(f"{API}/manager/site/materials", headers=auth_headers(manager))
    assert materials.status_code == 200
    assert [m["material_name"] for m in materials.json()] == ["Cement"]

    logs = client.get(f"{API}/manager/site/activity-logs", headers=auth_headers(manager))
    assert [entry["resource"] for entry in logs.json()] == ["material"]


def test_manager_without_site_is_denied(client, make_user):
    manager = make_user("boss", Role.MANAGER)
    response = client.get(f"{API}/manager/site/statistics", headers=auth_headers(manager))
    assert response.status_code == 403
    assert response.json()["error"] == "site_access_denied"


def test_delete_ledger_row(client, make_user):
    admin = make_user("site_admin", Role.ADMIN, site="SiteA", company="CompX")
    client.post(f"{API}/materials", headers=auth_headers(admin), json={
        "material_name": "Cement", "unit": "bag", "material_price": 10, "labor_price": 5
    })
    rows = client.post(f"{API}/received", headers=auth_headers(admin), json={"materials": [
        {"date": "2024-01-05", "material_name": "Cement", "quantity": 20, "supplier": "Acme"},
    ]}).json()

    deleted = client.delete(f"{API}/received/{rows[0]['id']}", headers=auth_headers(admin))
    assert deleted.status_code == 204
    missing = client.delete(f"{API}/received/{rows[0]['id']}", headers=auth_headers(admin))
    assert missing.status_code == 404


def test_user_site_details(client, make_user):
    alice = make_user("alice", site="SiteA", company="CompX")
    response = client.get(f"{API}/settings/user-site-details", headers=auth_headers(alice))
    assert response.status_code == 200
    body = response.json()
    assert body["user_details"]["username"] == "alice"
    assert body["site_statistics"] == {"daily_reports": 0, "materials": 0, "received_items": 0, "total_prices": 0}


def test_login_picks_the_account_whose_password_matches(client, make_user):
    make_user("alice", Role.ADMIN, site="SiteA", company="CompX", password="adminpass")
    make_user("alice", site="SiteA", company="CompX", password="userpass")

    for password, role in (("userpass", "user"), ("adminpass", "admin")):
        login = client.post(f"{API}/auth/login", json={
            "username": "alice", "password": password, "site": "SiteA", "company": "CompX"
        })
        assert login.status_code == 200, login.json()
        assert login.json()["user"]["role"] == role


def _owned_and_outsider_usage(client, make_user):
    manager = make_user("boss", Role.MANAGER)
    admin = make_user("site_admin", Role.ADMIN, site="SiteA", company="CompX", created_by=manager)
    outsider = make_user("other_admin", Role.ADMIN, site="SiteA", company="CompX")
    client.post(f"{API}/materials", headers=auth_headers(admin), json={
        "material_name": "Cement", "unit": "bag", "material_price": 10, "labor_price": 5
    })
    for author, quantity in ((admin, 3), (outsider, 7)):
        response = client.post(f"{API}/daily-reports", headers=auth_headers(author), json={"materials": [
            {"date": "2024-01-05", "material_name": "Cement", "quantity": quantity},
        ]})
        assert response.status_code == 201
    return manager


def test_manager_selects_site_with_headers(client, make_user):
    manager = _owned_and_outsider_usage(client, make_user)
    totals = client.get(
        f"{API}/manager/site/calculate-total-prices",
        headers={**auth_headers(manager), "X-Site": "SiteA", "X-Company": "CompX"},
        params={"start_date": "2024-01-01", "end_date": "2024-01-31"}
    )
    assert totals.status_code == 200
    body = totals.json()
    assert (body["site"], body["company"]) == ("SiteA", "CompX")
    assert body["summary"]["grand_total"] == 45
    assert [r["quantity"] for r in body["rows"]] == [3]


def test_manager_selects_site_with_query_parameters(client, make_user):
    manager = _owned_and_outsider_usage(client, make_user)
    totals = client.get(
        f"{API}/manager/site/calculate-total-prices",
        headers=auth_headers(manager),
        params={"site": "SiteA", "company": "CompX", "start_date": "2024-01-01", "end_date": "2024-01-31"}
    )
    assert totals.status_code == 200
    assert totals.json()["summary"]["grand_total"] == 45


def test_user_cannot_redirect_itself_with_site_headers(client, make_user):
    admin = make_user("site_admin", Role.ADMIN, site="SiteA", company="CompX")
    alice = make_user("alice", site="SiteA", company="CompX", created_by=admin)
    client.post(f"{API}/materials", headers=auth_headers(admin), json={
        "material_name": "Cement", "unit": "bag", "material_price": 10, "labor_price": 5
    })
    client.post(f"{API}/daily-reports", headers=auth_headers(alice), json={"materials": [
        {"date": "2024-01-05", "material_name": "Cement", "quantity": 2},
    ]})

    redirected = {**auth_headers(alice), "X-Site": "SiteB", "X-Company": "CompX"}
    reports = client.get(f"{API}/daily-reports", headers=redirected)
    assert reports.status_code == 200
    assert [r["quantity"] for r in reports.json()] == [2]

    details = client.get(f"{API}/settings/user-site-details", headers=redirected, params={"site": "SiteB"})
    assert details.json()["site_statistics"]["daily_reports"] == 1


def test_site_display_follows_the_request_not_the_cache(client, make_user, registry):
    registry.get_tenant_handles("sitea", "compx")
    admin = make_user("site_admin", Role.ADMIN, site="SiteA", company="CompX")

    totals = client.get(
        f"{API}/manager/site/calculate-total-prices",
        headers=auth_headers(admin),
        params={"start_date": "2024-01-01", "end_date": "2024-01-31"}
    )
    assert totals.status_code == 200
    assert (totals.json()["site"], totals.json()["company"]) == ("SiteA", "CompX")
