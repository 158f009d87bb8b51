import pytest
from sqlalchemy import select

from assets import AssetService
from categories import CategoryService
from errors import ConflictError, NotFoundError
from models import AssetIn, CategoryIn, CategoryUpdate
from orm import CategoryORM


def test_create_category_defaults_description_to_none(db_session):
    svc = CategoryService(db_session)
    c = svc.create(CategoryIn(name="Furniture"))

    assert c.id > 0
    assert c.name == "Furniture"
    assert c.description is None

    loaded = db_session.execute(select(CategoryORM).where(CategoryORM.id == c.id)).scalar_one()
    assert loaded.name == "Furniture"


def test_category_names_are_not_unique(db_session):
    svc = CategoryService(db_session)
    svc.create(CategoryIn(name="Tools"))
    svc.create(CategoryIn(name="Tools"))
    assert [c.name for c in svc.list()] == ["Tools", "Tools"]


def test_get_by_id_missing_returns_none(db_session):
    assert CategoryService(db_session).get_by_id(9999) is None


def test_update_only_touches_present_fields(db_session, electronics):
    svc = CategoryService(db_session)

    updated = svc.update(electronics.id, CategoryUpdate(name="Devices"))
    assert updated.name == "Devices"
    assert updated.description == "Gadgets"

    cleared = svc.update(electronics.id, CategoryUpdate(description=None))
    assert cleared.name == "Devices"
    assert cleared.description is None


def test_update_with_empty_patch_returns_entity_unchanged(db_session, electronics):
    updated = CategoryService(db_session).update(electronics.id, CategoryUpdate())
    assert updated == electronics


def test_update_missing_category_raises_not_found(db_session):
    with pytest.raises(NotFoundError) as exc:
        CategoryService(db_session).update(404, CategoryUpdate(name="x"))
    assert exc.value.kind == "category"
    assert "id=404" in str(exc.value)


def test_delete_category(db_session, electronics):
    svc = CategoryService(db_session)
    assert svc.delete(electronics.id) is True

    db_session.expire_all()
    assert db_session.get(CategoryORM, electronics.id) is None


def test_delete_missing_category_raises_not_found(db_session):
    with pytest.raises(NotFoundError):
        CategoryService(db_session).delete(12345)


def test_delete_guard_reports_exact_asset_count(db_session, electronics):
    assets = AssetService(db_session)
    for name in ("Laptop", "Tablet", "Phone"):
        assets.create(AssetIn(name=name, category_id=electronics.id))

    with pytest.raises(ConflictError, match="3 associated assets"):
        CategoryService(db_session).delete(electronics.id)

    # まだ残っている
    db_session.expire_all()
    remaining = db_session.get(CategoryORM, electronics.id)
    assert remaining is not None
    assert remaining.name == "Electronics"
