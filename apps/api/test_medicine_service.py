from datetime import date, timedelta

import pytest

from models import MedicineStatus
from services import medicine_service
from services.inventory_errors import InvalidInputError, NotFoundError
from validators.business_rules import get_inventory_rules, update_inventory_rule


def medicine_data(**overrides):
    data = dict(
        name="Ibuprofen 200mg",
        generic_name="Ibuprofen",
        category="Analgesics",
        batch_number="IBU-1",
        quantity=40,
        min_stock_level=10,
        unit_price=0.3,
        expiry_date=date.today() + timedelta(days=300),
    )
    data.update(overrides)
    return data


class TestListMedicines:
    def test_pages_cover_every_row_exactly_once(self, session, make_medicine):
        for i in range(23):
            make_medicine(name=f"Drug {i % 5}")  # duplicate names exercise the tie-break

        first = medicine_service.list_medicines(session, page=1, page_size=10)
        assert first.total_count == 23
        assert first.total_pages == 3

        seen = []
        for page in range(1, first.total_pages + 1):
            result = medicine_service.list_medicines(session, page=page, page_size=10)
            seen.extend(m.id for m in result.items)

        assert len(seen) == 23
        assert len(set(seen)) == 23

    def test_page_past_the_end_is_empty(self, session, make_medicine):
        make_medicine()
        result = medicine_service.list_medicines(session, page=5, page_size=10)
        assert result.items == []
        assert result.total_count == 1

    def test_search_matches_any_of_three_fields_case_insensitively(self, session, make_medicine):
        by_name = make_medicine(name="Amoxicillin", generic_name="x", batch_number="N1")
        by_generic = make_medicine(name="Brand", generic_name="amoxicillin trihydrate", batch_number="N2")
        by_batch = make_medicine(name="Other", generic_name="y", batch_number="AMOX-77")
        make_medicine(name="Unrelated", generic_name="z", batch_number="N3")

        result = medicine_service.list_medicines(session, search_term="AMOX", page_size=50)

        assert {m.id for m in result.items} == {by_name.id, by_generic.id, by_batch.id}
        assert result.total_count == 3

    def test_search_treats_wildcards_literally(self, session, make_medicine):
        make_medicine(name="100% Pure")
        make_medicine(name="Plain")

        result = medicine_service.list_medicines(session, search_term="%")

        assert [m.name for m in result.items] == ["100% Pure"]

    def test_filters_and_all_sentinel(self, session, make_medicine):
        make_medicine(category="Antibiotics", quantity=0)
        make_medicine(category="Antibiotics", quantity=100)
        make_medicine(category="Analgesics", quantity=100)

        assert medicine_service.list_medicines(session, category_filter="Antibiotics").total_count == 2
        assert medicine_service.list_medicines(session, category_filter="all").total_count == 3
        assert medicine_service.list_medicines(
            session, category_filter="Antibiotics", status_filter="out-of-stock"
        ).total_count == 1

    def test_sorting(self, session, make_medicine):
        make_medicine(name="B", quantity=5)
        make_medicine(name="A", quantity=50)
        make_medicine(name="C", quantity=20)

        by_quantity = medicine_service.list_medicines(session, sort_field="quantity", sort_order="desc")
        assert [m.name for m in by_quantity.items] == ["A", "C", "B"]

        by_name = medicine_service.list_medicines(session)
        assert [m.name for m in by_name.items] == ["A", "B", "C"]

    @pytest.mark.parametrize("kwargs", [
        {"page": 0},
        {"page_size": 1000},
        {"page_size": 0},
        {"sort_field": "password"},
        {"sort_order": "sideways"},
        {"status_filter": "misplaced"},
    ])
    def test_invalid_parameters(self, session, kwargs):
        with pytest.raises(InvalidInputError):
            medicine_service.list_medicines(session, **kwargs)


class TestMedicineWrites:
    def test_create_derives_status_and_ignores_client_status(self, session):
        medicine = medicine_service.create_medicine(
            session, medicine_data(quantity=0, status="in-stock")
        )
        assert medicine.id is not None
        assert medicine.status == MedicineStatus.OUT_OF_STOCK

    def test_update_recomputes_status(self, session):
        medicine = medicine_service.create_medicine(session, medicine_data(quantity=40))
        assert medicine.status == MedicineStatus.IN_STOCK

        updated = medicine_service.update_medicine(session, medicine.id, {"quantity": 3})
        assert updated.status == MedicineStatus.LOW_STOCK

        updated = medicine_service.update_medicine(
            session, medicine.id, {"expiry_date": date.today() - timedelta(days=1)}
        )
        assert updated.status == MedicineStatus.EXPIRED

    @pytest.mark.parametrize("field", ["quantity", "min_stock_level", "expiry_date", "name", "category", "batch_number"])
    def test_update_rejects_clearing_required_fields(self, session, field):
        medicine = medicine_service.create_medicine(session, medicine_data())

        with pytest.raises(InvalidInputError, match="A value is required for: " + field):
            medicine_service.update_medicine(session, medicine.id, {field: None})

        session.refresh(medicine)
        assert medicine.quantity == 40
        assert medicine.name == "Ibuprofen 200mg"

    def test_update_cannot_set_status_directly(self, session):
        medicine = medicine_service.create_medicine(session, medicine_data(quantity=0))

        updated = medicine_service.update_medicine(session, medicine.id, {"status": MedicineStatus.IN_STOCK})

        assert updated.status == MedicineStatus.OUT_OF_STOCK

    def test_barcode_must_be_unique(self, session):
        medicine_service.create_medicine(session, medicine_data(barcode="890123"))
        with pytest.raises(InvalidInputError):
            medicine_service.create_medicine(session, medicine_data(name="Copy", barcode="890123"))

    def test_barcode_lookup(self, session):
        created = medicine_service.create_medicine(session, medicine_data(barcode="890555"))

        assert medicine_service.get_medicine_by_barcode(session, " 890555 ").id == created.id
        with pytest.raises(NotFoundError):
            medicine_service.get_medicine_by_barcode(session, "000")
        with pytest.raises(InvalidInputError):
            medicine_service.get_medicine_by_barcode(session, "  ")

    def test_delete(self, session):
        medicine = medicine_service.create_medicine(session, medicine_data())

        assert medicine_service.delete_medicine(session, medicine.id) == "Ibuprofen 200mg"
        with pytest.raises(NotFoundError):
            medicine_service.get_medicine(session, medicine.id)

    def test_refresh_all_statuses_catches_date_drift(self, session, make_medicine):
        medicine = make_medicine(quantity=100, expiry_date=date.today() + timedelta(days=40))
        assert medicine.status == MedicineStatus.IN_STOCK

        changed = medicine_service.refresh_all_statuses(session, today=date.today() + timedelta(days=15))

        assert changed == 1
        session.refresh(medicine)
        assert medicine.status == MedicineStatus.EXPIRING_SOON

    def test_categories_are_distinct_and_sorted(self, session, make_medicine):
        make_medicine(category="Vitamins")
        make_medicine(category="Antibiotics")
        make_medicine(category="Vitamins")

        assert medicine_service.list_categories(session) == ["Antibiotics", "Vitamins"]


def test_page_size_limit_follows_runtime_rules(session, make_medicine):
    make_medicine()
    original = get_inventory_rules().MAX_PAGE_SIZE
    update_inventory_rule("MAX_PAGE_SIZE", 5)
    try:
        with pytest.raises(InvalidInputError):
            medicine_service.list_medicines(session, page=1, page_size=6)
        assert medicine_service.list_medicines(session, page=1, page_size=5).total_count == 1
    finally:
        update_inventory_rule("MAX_PAGE_SIZE", original)

    with pytest.raises(ValueError):
        update_inventory_rule("NO_SUCH_RULE", 1)
