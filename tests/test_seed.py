import pytest

from lims.core.errors import StorageFailure
from lims.core.hashing import hash_password, verify_password
from lims.models.categories import Category
from lims.models.components import Component
from lims.models.transactions import Transaction
from lims.models.users import User
from lims.services.sqlalchemy_store import SqlAlchemyStockStore
from lims.scripts.seed import (
    CATEGORIES,
    SAMPLE_COMPONENTS,
    ensure_admin,
    ensure_categories,
    ensure_sample_components,
)


def test_seed_is_idempotent(db_session):
    categories = ensure_categories(db_session)
    admin = ensure_admin(db_session, "Admin@Lab.com", "seed-admin-pass")
    created = ensure_sample_components(db_session, categories, admin)

    assert created == len(SAMPLE_COMPONENTS)

    categories = ensure_categories(db_session)
    ensure_admin(db_session, "admin@lab.com", "another-pass")
    assert ensure_sample_components(db_session, categories, admin) == 0

    assert db_session.query(Category).count() == len(CATEGORIES)
    assert db_session.query(User).count() == 1
    assert db_session.query(Component).count() == len(SAMPLE_COMPONENTS)


def test_seeded_admin_can_log_in_with_first_password(db_session):
    admin = ensure_admin(db_session, "admin@lab.com", "seed-admin-pass")

    assert admin.role == "ADMIN"
    assert verify_password("seed-admin-pass", admin.password_hash)


def test_sample_stock_is_booked_through_the_ledger(db_session):
    categories = ensure_categories(db_session)
    admin = ensure_admin(db_session, "admin@lab.com", "seed-admin-pass")
    ensure_sample_components(db_session, categories, admin)

    for part_number, *_, stock, _bin, _price, _threshold in SAMPLE_COMPONENTS:
        component = db_session.query(Component).filter(Component.part_number == part_number).one()
        inward = sum(
            t.quantity
            for t in db_session.query(Transaction).filter(Transaction.component_id == component.id)
        )

        assert component.quantity == stock == inward
        assert component.last_outward_date is None


def test_failed_opening_stock_leaves_part_for_the_next_run(db_session, monkeypatch):
    categories = ensure_categories(db_session)
    admin = ensure_admin(db_session, "admin@lab.com", "seed-admin-pass")
    first_part = SAMPLE_COMPONENTS[0][0]

    def failing_insert(self, **fields):
        raise StorageFailure("Failed to record transaction")

    with monkeypatch.context() as patch:
        patch.setattr(SqlAlchemyStockStore, "add_transaction", failing_insert)
        with pytest.raises(StorageFailure):
            ensure_sample_components(db_session, categories, admin)

    assert db_session.query(Component).filter(Component.part_number == first_part).count() == 0

    assert ensure_sample_components(db_session, categories, admin) == len(SAMPLE_COMPONENTS)
    component = db_session.query(Component).filter(Component.part_number == first_part).one()
    assert component.quantity == SAMPLE_COMPONENTS[0][5]


def test_admin_username_avoids_existing_accounts(db_session):
    db_session.add(
        User(
            username="admin",
            email="someone.else@lab.com",
            password_hash=hash_password("unrelated-pass"),
        )
    )
    db_session.commit()

    admin = ensure_admin(db_session, "admin@lab.com", "seed-admin-pass")

    assert admin.username == "admin2"
    assert admin.email == "admin@lab.com"
