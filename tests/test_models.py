from domain.models import LehengaItem, Order, StockItem


def test_order_from_legacy_record():
    order = Order.from_record({
        "id": 42,
        "customerName": "Asha",
        "billNumber": 17,
        "lehengaDetails": {
            "1": {"design": "D2", "amount": "2,500", "salesmen": "Ravi, Anil"},
            "0": {"design": "D1", "amount": 1000},
        },
        "totalAmount": "3500",
        "paidAmount": None,
    })

    assert order.id == "42"
    assert order.bill_number == "17"
    assert order.status == "Pending"
    assert order.designs == ["D1", "D2"]
    assert order.lehenga_details[1].amount == 2500
    assert order.lehenga_details[1].salesmen == ["Ravi", "Anil"]
    assert order.total_amount == 3500
    assert order.paid_amount == 0.0


def test_order_record_omits_missing_id():
    assert "id" not in Order(customer_name="A").to_record()
    assert Order(id="x").to_record()["id"] == "x"


def test_unstitched_without_measurements():
    assert LehengaItem().is_unstitched
    assert LehengaItem(stitching_option="Stitched").is_unstitched
    assert not LehengaItem(stitching_option="Stitched", waist="30").is_unstitched


def test_stock_item_tolerates_bad_amount():
    item = StockItem.from_record({"id": "s1", "design": "Rani", "amount": "n/a"})
    assert item.amount == 0.0
    assert item.barcode == ""
