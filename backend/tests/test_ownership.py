from sqlalchemy.exc import OperationalError

from siteledger.models.user import Role
from siteledger.services.ownership import resolve_allowed_usernames


def test_manager_allowed_usernames(db, make_user):
    manager = make_user("boss", Role.MANAGER)
    admin = make_user("site_admin", Role.ADMIN, site="SiteA", company="CompX", created_by=manager)
    make_user("direct", created_by=manager, site="SiteA", company="CompX")
    make_user("worker", created_by=admin, site="SiteA", company="CompX")

    assert resolve_allowed_usernames(db, manager.id, "boss") == {"boss", "site_admin", "direct", "worker"}


def test_accounts_outside_the_chain_are_excluded(db, make_user):
    manager = make_user("boss", Role.MANAGER)
    other_manager = make_user("rival", Role.MANAGER)
    admin = make_user("site_admin", Role.ADMIN, site="SiteA", company="CompX", created_by=manager)
    other_admin = make_user("other_admin", Role.ADMIN, site="SiteB", company="CompX", created_by=other_manager)
    make_user("stranger", created_by=other_admin, site="SiteB", company="CompX")

    # Three hops away: manager -> admin -> sub admin -> user
    sub_admin = make_user("sub_admin", Role.ADMIN, site="SiteA", company="CompX", created_by=admin)
    make_user("too_far", created_by=sub_admin, site="SiteA", company="CompX")

    allowed = resolve_allowed_usernames(db, manager.id, "boss")
    assert allowed == {"boss", "site_admin", "sub_admin"}
    assert "stranger" not in allowed
    assert "too_far" not in allowed


def test_users_created_by_plain_users_are_not_followed(db, make_user):
    manager = make_user("boss", Role.MANAGER)
    direct = make_user("direct", created_by=manager, site="SiteA", company="CompX")
    make_user("nested", created_by=direct, site="SiteA", company="CompX")

    assert resolve_allowed_usernames(db, manager.id, "boss") == {"boss", "direct"}


def test_manager_without_reports_sees_only_themselves(db, make_user):
    manager = make_user("boss", Role.MANAGER)
    assert resolve_allowed_usernames(db, manager.id, "boss") == {"boss"}


class _BrokenSession:
    def query(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))


def test_lookup_failure_degrades_to_self_only():
    assert resolve_allowed_usernames(_BrokenSession(), 1, "boss") == {"boss"}
