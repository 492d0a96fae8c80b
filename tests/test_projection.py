from datetime import date

import pytest

from domain.models import LehengaItem, Order
from services.projection_service import (
    ASC,
    DESC,
    OrderFilters,
    ProjectionState,
    SortKey,
    filter_orders,
    group_by_status,
    paginate,
    quick_stats,
    sort_indicator,
    sort_orders,
    toggle_sort,
)

TODAY = date(2024, 6, 15)


def _order(id, **kwargs):
    return Order(id=id, **kwargs)


@pytest.fixture()
def orders():
    return [
        _order("1", customer_name="Asha Rao", bill_number="10", phone_number="111", status="Confirmed",
               delivery_date="01-06-2024", total_amount=9000, pending_amount=0, created_at="01-05-2024",
               lehenga_details=[LehengaItem(design="Rani Pink")]),
        _order("2", customer_name="Meena", bill_number="9", phone_number="222", status="Confirmed",
               delivery_date="20-06-2024", total_amount=5000, pending_amount=2000, created_at="10-06-2024"),
        _order("3", customer_name="Kavya", bill_number="B7", phone_number="333", status="Pending",
               delivery_date="02-06-2024", total_amount=5000, pending_amount=5000, created_at="12-06-2024"),
        _order("4", customer_name="Neha", bill_number="11", phone_number="444", status="Delivered",
               delivery_date="01-01-2024", total_amount=12000, pending_amount=0, created_at="bad"),
    ]


def _ids(orders):
    return [o.id for o in orders]


class TestFilter:
    def test_search_covers_name_bill_phone_and_design(self, orders):
        assert _ids(filter_orders(orders, OrderFilters(search_term="asha"), TODAY)) == ["1"]
        assert _ids(filter_orders(orders, OrderFilters(search_term="b7"), TODAY)) == ["3"]
        assert _ids(filter_orders(orders, OrderFilters(search_term="222"), TODAY)) == ["2"]
        assert _ids(filter_orders(orders, OrderFilters(search_term="rani"), TODAY)) == ["1"]

    def test_filters_are_conjunctive(self, orders):
        filters = OrderFilters(status_filter="confirmed", show_overdue_only=True)
        assert _ids(filter_orders(orders, filters, TODAY)) == ["1"]

    def test_pending_only(self, orders):
        assert _ids(filter_orders(orders, OrderFilters(show_pending_only=True), TODAY)) == ["2", "3"]

    def test_order_date_range_excludes_unparseable(self, orders):
        filters = OrderFilters(order_from=date(2024, 6, 1), order_to=date(2024, 6, 12))
        assert _ids(filter_orders(orders, filters, TODAY)) == ["2", "3"]

    def test_delivery_range(self, orders):
        filters = OrderFilters(delivery_to=date(2024, 6, 2))
        assert _ids(filter_orders(orders, filters, TODAY)) == ["1", "3", "4"]


class TestSort:
    def test_equal_keys_keep_original_order(self, orders):
        result = sort_orders(orders, [SortKey("totalAmount", DESC)])
        assert _ids(result) == ["4", "1", "2", "3"]

    def test_multi_key(self, orders):
        result = sort_orders(orders, [SortKey("status", ASC), SortKey("totalAmount", ASC)])
        assert _ids(result) == ["3", "2", "1", "4"]

    def test_bill_numbers_sort_naturally(self, orders):
        result = sort_orders(orders, [SortKey("billNumber", ASC)])
        assert [o.bill_number for o in result] == ["9", "10", "11", "B7"]

    def test_alphanumeric_bill_numbers_compare_digit_runs(self):
        bills = ["B10", "b2", "B2-1", "A100", "", "B2"]
        result = sort_orders([_order(b, bill_number=b) for b in bills], [SortKey("billNumber", ASC)])
        assert [o.bill_number for o in result] == ["", "A100", "b2", "B2", "B2-1", "B10"]

        result = sort_orders(result, [SortKey("billNumber", DESC)])
        assert [o.bill_number for o in result][:2] == ["B10", "B2-1"]

    def test_toggle_cycle(self):
        keys = toggle_sort([], "totalAmount")
        assert keys == [SortKey("totalAmount", DESC)]
        keys = toggle_sort(keys, "totalAmount")
        assert keys == [SortKey("totalAmount", ASC)]
        assert toggle_sort(keys, "totalAmount") == []

    def test_toggle_appends_secondary_key(self):
        keys = toggle_sort([SortKey("status", ASC)], "createdAt")
        assert keys == [SortKey("status", ASC), SortKey("createdAt", DESC)]
        assert sort_indicator(keys, "createdAt") == "↓2"
        assert sort_indicator(keys, "phoneNumber") == ""
        assert sort_indicator([SortKey("status", ASC)], "status") == "↑"


class TestPaginate:
    def test_slices_and_clamps(self):
        orders = [_order(str(i)) for i in range(23)]
        page = paginate(orders, 3, 10)
        assert _ids(page.items) == [str(i) for i in range(20, 23)]
        assert (page.total_pages, page.first_index, page.last_index) == (3, 21, 23)

        assert paginate(orders, 99, 10).page == 3
        assert paginate(orders, 0, 10).page == 1

    def test_empty(self):
        page = paginate([], 1, 10)
        assert (page.items, page.total_pages, page.first_index, page.last_index) == ([], 1, 0, 0)


class TestProjectionState:
    def test_filter_change_resets_page(self, orders):
        state = ProjectionState(page_size=1)
        state.set_page(3)
        state.set_filters(search_term="")
        assert state.page == 3

        state.set_filters(search_term="a")
        assert state.page == 1

    def test_page_size_change_keeps_page(self):
        state = ProjectionState()
        state.set_page(2)
        state.set_page_size(25)
        assert state.page == 2

    def test_apply_clamps_page(self, orders):
        state = ProjectionState(page_size=2, page=5)
        page = state.apply(orders, TODAY)
        assert page.page == 2 and state.page == 2

    def test_clear_filters(self):
        state = ProjectionState()
        state.set_filters(show_overdue_only=True)
        state.clear_filters()
        assert not state.filters.is_active


def test_quick_stats_and_board(orders):
    stats = quick_stats(orders, TODAY)
    assert stats["total"] == 4
    assert stats["overdue"] == 2
    assert stats["pending_amount"] == 7000
    assert stats["revenue"] == 31000

    board = group_by_status(orders)
    assert _ids(board["Confirmed"]) == ["1", "2"]
    assert board["Ready"] == []
