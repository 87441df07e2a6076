import pytest

from siteledger.core.exceptions import SiteAccessDenied
from siteledger.core.security import Identity
from siteledger.models.user import Role
from siteledger.services.tenant_context import TenantHints, resolve_tenant

from conftest import identity_for


def test_identity_tenant_wins_over_hints(db):
    identity = Identity(id=1, username="alice", role="user", site="SiteA", company="CompX")
    context = resolve_tenant(db, identity, TenantHints(site="SiteB", company="CompY"))
    assert (context.site, context.company, context.source) == ("SiteA", "CompX", "identity")


def test_staff_without_site_may_use_hints(db):
    identity = Identity(id=1, username="boss", role="manager")
    context = resolve_tenant(db, identity, TenantHints(site=" SiteB ", company="CompY"))
    assert (context.site, context.company, context.source) == ("SiteB", "CompY", "hints")


def test_hints_are_ignored_for_plain_users(db):
    identity = Identity(id=1, username="alice", role="user")
    with pytest.raises(SiteAccessDenied):
        resolve_tenant(db, identity, TenantHints(site="SiteB", company="CompY"))


def test_incomplete_hints_do_not_resolve(db):
    identity = Identity(id=1, username="root_admin", role="admin")
    with pytest.raises(SiteAccessDenied):
        resolve_tenant(db, identity, TenantHints(site="SiteB"))


def test_manager_tenant_inferred_from_created_account(db, make_user):
    manager = make_user("boss", Role.MANAGER)
    make_user("carol", created_by=manager, site="SiteC", company="CoY")

    context = resolve_tenant(db, identity_for(manager))
    assert (context.site, context.company, context.source) == ("SiteC", "CoY", "inferred")
    # the identity is not rewritten
    assert identity_for(manager).site is None


def test_manager_inference_uses_earliest_created_account(db, make_user):
    manager = make_user("boss", Role.MANAGER)
    make_user("first", created_by=manager, site="SiteC", company="CoY")
    make_user("second", created_by=manager, site="SiteD", company="CoZ")

    context = resolve_tenant(db, identity_for(manager))
    assert (context.site, context.company) == ("SiteC", "CoY")


def test_manager_without_any_tenant_is_denied(db, make_user):
    manager = make_user("boss", Role.MANAGER)
    with pytest.raises(SiteAccessDenied):
        resolve_tenant(db, identity_for(manager))
