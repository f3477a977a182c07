"""Canonical slot length: normalization, catalog derivation, stored preference."""
from chairtime.models import Profile
from chairtime.services.availability.slot_length import (
    derive_slot_length,
    normalize_slot_length,
    resolve_slot_length,
)
from chairtime.services.availability.types import SourceConfig
from chairtime.services.providers.types import AppointmentType, ProviderContext

from tests.utils import FakeAdapter, FakeCatalogAdapter, connect_user

CATALOG = [
    AppointmentType(id="1", name="Haircut", duration_minutes=45, price=40),
    AppointmentType(id="2", name="Kids Haircut", duration_minutes=20, price=25),
    AppointmentType(id="3", name="Beard Trim", duration_minutes=15, price=20),
]


def _source(adapter, user_id="user-a"):
    return SourceConfig(adapter=adapter, ctx=ProviderContext(user_id=user_id, access_token="t"))


class TestNormalizeSlotLength:
    def test_floors_to_step_with_minimum(self):
        assert normalize_slot_length(45) == 45
        assert normalize_slot_length(50) == 45
        assert normalize_slot_length(44) == 30
        assert normalize_slot_length(20) == 30
        assert normalize_slot_length(60.0) == 60


class TestDeriveSlotLength:
    def test_adult_haircut_only(self):
        assert derive_slot_length(CATALOG) == 45

    def test_shortest_qualifying_cut(self):
        types = CATALOG + [AppointmentType(id="4", name="Scissor Cut", duration_minutes=35, price=50)]
        assert derive_slot_length(types) == 30

    def test_none_without_qualifying_types(self):
        assert derive_slot_length(CATALOG[1:]) is None
        assert derive_slot_length([AppointmentType(id="5", name="Haircut", duration_minutes=None, price=None)]) is None


class TestResolveSlotLength:
    def test_stored_preference_wins(self, db_session):
        connect_user(db_session, "user-a", ["acuity"], slot_length=50)
        adapter = FakeCatalogAdapter("acuity", CATALOG)
        assert resolve_slot_length(db_session, "user-a", [_source(adapter)]) == 45
        assert adapter.catalog_calls == 0

    def test_derived_from_catalog_and_persisted(self, db_session):
        connect_user(db_session, "user-a", ["acuity"])
        assert resolve_slot_length(db_session, "user-a", [_source(FakeCatalogAdapter("acuity", CATALOG))]) == 45
        db_session.expire_all()
        assert db_session.get(Profile, "user-a").slot_length_minutes == 45

    def test_preference_order_and_skip_empty(self, db_session):
        square = FakeCatalogAdapter("square", [AppointmentType(id="s", name="Haircut", duration_minutes=60, price=50)])
        acuity = FakeCatalogAdapter("acuity", [])
        assert resolve_slot_length(db_session, "user-a", [_source(square), _source(acuity)]) == 60
        assert acuity.catalog_calls == 1
        assert square.catalog_calls == 1

    def test_catalog_failure_falls_back_to_default(self, db_session):
        class BrokenCatalog(FakeAdapter):
            def fetch_appointment_types(self, ctx):
                raise RuntimeError("catalog down")

        connect_user(db_session, "user-a", ["acuity"])
        assert resolve_slot_length(db_session, "user-a", [_source(BrokenCatalog("acuity"))]) == 30
        db_session.expire_all()
        assert db_session.get(Profile, "user-a").slot_length_minutes is None

    def test_adapter_without_catalog(self, db_session):
        assert resolve_slot_length(db_session, "user-a", [_source(FakeAdapter("acuity"))]) == 30
