from datetime import date

import pytest

from domain.models import LehengaItem, Order
from services import order_service
from utils.dates import is_overdue


def _item(**overrides):
    values = dict(design="D1", color="Red", amount=5000, salesmen=["Asha"])
    values.update(overrides)
    return LehengaItem(**values)


def _order(**overrides):
    values = dict(
        customer_name="Priya",
        phone_number="9876543210",
        bill_number="B100",
        delivery_date="10-01-2024",
        lehenga_details=[_item()],
        paid_amount="2000",
    )
    values.update(overrides)
    return Order(**values)


# -------------------------------------------------------------------
# Pure helpers
# -------------------------------------------------------------------

def test_derive_totals_ignores_bad_amounts():
    items = [_item(amount=5000), _item(amount="2,500"), _item(amount=None)]
    assert order_service.derive_totals(items, "1000") == (7500.0, 6500.0)


def test_validate_reports_every_problem_at_once():
    order = _order(
        customer_name=" ",
        lehenga_details=[_item(design=""), _item(salesmen=[])],
    )
    errors = order_service.validate_order(order)

    assert errors["customer_name"] == "Customer name is required"
    assert errors["lehenga_0_design"] == "Design is required for Lehenga 1"
    assert errors["lehenga_1_salesmen"] == "At least one salesman must be selected for Lehenga 2"
    assert len(errors) == 3


def test_validate_amount_and_paid_rules():
    errors = order_service.validate_order(_order(lehenga_details=[_item(amount=0)], paid_amount="0"))
    assert errors == {"lehenga_0_amount": "Valid amount is required for Lehenga 1"}

    errors = order_service.validate_order(_order(paid_amount="6000"))
    assert errors == {"paid_amount": "Paid amount cannot be greater than total amount"}

    errors = order_service.validate_order(_order(paid_amount="abc"))
    assert errors == {"paid_amount": "Paid amount must be a valid non-negative number"}

    errors = order_service.validate_order(_order(paid_amount="-1"))
    assert "paid_amount" in errors


def test_validate_requires_a_lehenga():
    errors = order_service.validate_order(_order(lehenga_details=[], paid_amount=""))
    assert errors == {"lehenga_items": "At least one lehenga is required"}


def test_summarize_errors():
    assert order_service.summarize_errors({}) == ""
    assert order_service.summarize_errors({"a": "One"}) == "One"
    assert order_service.summarize_errors({"a": "One", "b": "Two"}).startswith("Please fix 2 problems")


class TestApplyFieldChange:
    def test_blouse_date_cleared_unless_specific_date(self):
        item = _item(blouse_option="Specific Date", blouse_date="01-02-2024")
        changed = order_service.apply_field_change(item, "blouse_option", "By Hand")
        assert changed.blouse_date == ""
        assert item.blouse_date == "01-02-2024"

    def test_extra_dupatta_no_clears_children(self):
        item = _item(extra_dupatta="Yes", extra_dupatta_type="Other", other_dupatta_type="Silk",
                     net_dupatta_color="Gold")
        changed = order_service.apply_field_change(item, "extra_dupatta", "No")
        assert (changed.extra_dupatta_type, changed.net_dupatta_color, changed.other_dupatta_type) == ("", "", "")

    def test_extra_dupatta_type_clears_color_and_other(self):
        item = _item(extra_dupatta="Yes", extra_dupatta_type="Net", net_dupatta_color="Gold")
        changed = order_service.apply_field_change(item, "extra_dupatta_type", "Other")
        assert changed.net_dupatta_color == ""

        item = _item(extra_dupatta="Yes", extra_dupatta_type="Other", other_dupatta_type="Silk")
        changed = order_service.apply_field_change(item, "extra_dupatta_type", "Velvet Stole")
        assert changed.other_dupatta_type == ""

    def test_unstitched_clears_measurements(self):
        item = _item(stitching_option="Stitched", length="40", waist="30", hip="36")
        changed = order_service.apply_field_change(item, "stitching_option", "Unstitched")
        assert (changed.length, changed.waist, changed.hip) == ("", "", "")


def test_find_duplicate_bill_numbers():
    orders = [Order(id="1", bill_number="7"), Order(id="2", bill_number=" 7"), Order(id="3", bill_number="8")]
    duplicates = order_service.find_duplicate_bill_numbers(orders)
    assert list(duplicates) == ["7"]
    assert [o.id for o in duplicates["7"]] == ["1", "2"]


# -------------------------------------------------------------------
# Remote operations
# -------------------------------------------------------------------

def test_create_then_deliver_end_to_end(fake_db):
    ok, msg, saved = order_service.create_order(_order(), "staff@example.com")

    assert ok, msg
    stored = fake_db.tables["Orders"][0]
    assert stored["totalAmount"] == 5000
    assert stored["pendingAmount"] == 3000
    assert stored["paidAmount"] == 2000
    assert stored["status"] == "Pending"
    assert stored["deliveryDate"] == "10-01-2024"
    assert stored["createdBy"] == stored["updatedBy"] == "staff@example.com"
    assert stored["lehengaDetails"][0]["salesmen"] == ["Asha"]

    ok, msg, delivered = order_service.set_status(saved.id, "Delivered", "owner@example.com")

    assert ok, msg
    assert delivered.status == "Delivered"
    assert delivered.total_amount == 5000
    assert delivered.pending_amount == 3000
    assert delivered.updated_by == "owner@example.com"
    assert not is_overdue(delivered.delivery_date, delivered.status, date(2030, 1, 1))


def test_create_rejects_invalid_order_without_writing(fake_db):
    ok, msg, errors = order_service.create_order(_order(phone_number=""), "staff")

    assert not ok
    assert errors == {"phone_number": "Phone number is required"}
    assert fake_db.calls == []


def test_create_reports_remote_failure(fake_db):
    fake_db.failures["Orders"] = "permission denied"
    ok, msg, data = order_service.create_order(_order(), "staff")
    assert not ok
    assert "permission denied" in msg
    assert data is None


def test_update_is_full_replace_and_keeps_creation_stamp(fake_db):
    fake_db.seed("Orders", {
        "id": "o1", "customerName": "Old", "phoneNumber": "1", "billNumber": "B1",
        "notes": "fragile", "lehengaDetails": [], "createdAt": 111, "createdBy": "first",
        "updatedAt": 111, "updatedBy": "first",
    })

    ok, msg, saved = order_service.update_order("o1", _order(notes=""), "second", expected_updated_at=111)

    assert ok, msg
    row = fake_db.tables["Orders"][0]
    assert row["customerName"] == "Priya"
    assert row["notes"] == ""
    assert row["createdAt"] == 111 and row["createdBy"] == "first"
    assert row["updatedBy"] == "second" and row["updatedAt"] != 111
    assert saved.pending_amount == 3000


def test_update_rejects_stale_edit(fake_db):
    fake_db.seed("Orders", {"id": "o1", "customerName": "Old", "createdAt": 1, "updatedAt": 222})

    ok, msg, _ = order_service.update_order("o1", _order(), "second", expected_updated_at=111)

    assert not ok
    assert msg == order_service.CONCURRENT_EDIT_MESSAGE
    assert fake_db.tables["Orders"][0]["customerName"] == "Old"


def test_update_missing_order(fake_db):
    ok, msg, _ = order_service.update_order("nope", _order(), "staff")
    assert (ok, msg) == (False, "Order not found")


def test_set_status_rejects_unknown_status(fake_db):
    ok, msg, _ = order_service.set_status("o1", "Lost", "staff")
    assert not ok
    assert fake_db.calls == []


def test_bulk_set_status(fake_db):
    fake_db.seed("Orders", {"id": "a", "status": "Pending"}, {"id": "b", "status": "Pending"},
                 {"id": "c", "status": "Pending"})

    ok, msg, count = order_service.bulk_set_status(["a", "b", "a"], "Ready")

    assert ok and count == 2
    statuses = {r["id"]: (r["status"], r.get("updatedBy")) for r in fake_db.tables["Orders"]}
    assert statuses == {
        "a": ("Ready", order_service.BULK_UPDATE_USER),
        "b": ("Ready", order_service.BULK_UPDATE_USER),
        "c": ("Pending", None),
    }


def test_board_move_does_not_undo_a_newer_status(fake_db):
    fake_db.seed("Orders", {"id": "a", "status": "Pending"})
    order_service.bulk_set_status(["a"], "Delivered", "staff")

    ok, msg, _ = order_service.set_status("a", "Ready", "staff", expected_status="Pending")

    assert not ok
    assert msg == order_service.STATUS_CHANGED_MESSAGE
    assert fake_db.tables["Orders"][0]["status"] == "Delivered"


def test_board_move_from_current_status(fake_db):
    fake_db.seed("Orders", {"id": "a", "status": "Pending"})

    ok, _, order = order_service.set_status("a", "Ready", "staff", expected_status="Pending")

    assert ok and order.status == "Ready"
    assert order_service.set_status("gone", "Ready", "staff")[1] == "Order not found"


def test_bulk_set_status_partial_and_empty(fake_db):
    fake_db.seed("Orders", {"id": "a", "status": "Pending"})

    ok, msg, count = order_service.bulk_set_status(["a", "gone"], "Ready", "staff")
    assert ok and count == 1
    assert "1 of 2" in msg

    assert order_service.bulk_set_status([], "Ready") == (False, "No orders selected", 0)


def test_bulk_set_status_failure_changes_nothing(fake_db):
    fake_db.seed("Orders", {"id": "a", "status": "Pending"})
    fake_db.failures["Orders"] = "timeout"

    ok, msg, count = order_service.bulk_set_status(["a"], "Ready")

    assert not ok and count == 0
    assert fake_db.tables["Orders"][0]["status"] == "Pending"


def test_load_orders_newest_first(fake_db):
    fake_db.seed("Orders", {"id": "old", "createdAt": 1}, {"id": "new", "createdAt": 2})
    ok, _, orders = order_service.load_orders()
    assert ok
    assert [o.id for o in orders] == ["new", "old"]


def test_delete_order(fake_db):
    fake_db.seed("Orders", {"id": "a"})
    assert order_service.delete_order("a")[0]
    assert fake_db.tables["Orders"] == []
    assert order_service.delete_order("a") == (False, "Order not found", None)
