import base64
from datetime import date

import pytest

from conftest import make_order
from orderdesk.app.core.errors import InvalidCursorError
from orderdesk.app.models.order import OrderFilters
from orderdesk.app.services.order_query import decode_cursor, encode_cursor, filter_orders, paginate


def _book():
    return [
        make_order("ORD-0001", "pending", [{"quantity": 1, "unitPrice": 5000}],
                   name="John Smith", email="john.smith@example.com", order_date=date(2026, 1, 10)),
        make_order("ORD-0002", "shipped", [{"quantity": 2, "unitPrice": 5000}],
                   name="Maria Garcia", email="maria.garcia@test.com", order_date=date(2026, 1, 20)),
        make_order("ORD-0003", "pending", [{"quantity": 3, "unitPrice": 5000}],
                   name="Lisa Brown", email="lisa.brown@demo.com", order_date=date(2026, 2, 1)),
        make_order("ORD-0004", "cancelled", [{"quantity": 4, "unitPrice": 5000}],
                   name="James Smith", email="james@sample.com", order_date=date(2026, 2, 15)),
    ]


def _ids(orders):
    return [o.id for o in orders]


def test_filter_by_status():
    assert _ids(filter_orders(_book(), OrderFilters(status="pending"))) == ["ORD-0001", "ORD-0003"]


def test_search_is_case_insensitive_over_id_name_email():
    assert _ids(filter_orders(_book(), OrderFilters(search="SMITH"))) == ["ORD-0001", "ORD-0004"]
    assert _ids(filter_orders(_book(), OrderFilters(search="test.com"))) == ["ORD-0002"]
    assert _ids(filter_orders(_book(), OrderFilters(search="ord-0003"))) == ["ORD-0003"]
    # blank search is no filter
    assert len(filter_orders(_book(), OrderFilters(search="   "))) == 4


def test_date_range_is_inclusive():
    f = OrderFilters(date_from=date(2026, 1, 20), date_to=date(2026, 2, 1))
    assert _ids(filter_orders(_book(), f)) == ["ORD-0002", "ORD-0003"]


def test_amount_bounds_use_computed_subtotal_inclusive():
    f = OrderFilters(min_amount=10000, max_amount=15000)
    assert _ids(filter_orders(_book(), f)) == ["ORD-0002", "ORD-0003"]
    assert _ids(filter_orders(_book(), OrderFilters(max_amount=4999))) == []


def test_filters_combine():
    f = OrderFilters(status="pending", search="smith", min_amount=1)
    assert _ids(filter_orders(_book(), f)) == ["ORD-0001"]


def test_cursor_roundtrip_and_garbage():
    assert decode_cursor(encode_cursor("ORD-0042")) == "ORD-0042"
    wrong_prefix = base64.urlsafe_b64encode(b"user:ORD-0001").decode()
    for bad in ["", "%%%", wrong_prefix, "b3JkZXI6"]:  # last one is "order:" with no id
        with pytest.raises(InvalidCursorError):
            decode_cursor(bad)


def test_first_page_then_walk_forward_and_back():
    book = _book()
    first = paginate(book, limit=2)
    assert _ids(first.data) == ["ORD-0001", "ORD-0002"]
    assert first.page_info.has_next_page is True
    assert first.page_info.has_previous_page is False
    assert first.cursors.previous is None
    assert first.cursors.next == first.page_info.end_cursor == encode_cursor("ORD-0002")

    second = paginate(book, cursor=first.cursors.next, limit=2)
    assert _ids(second.data) == ["ORD-0003", "ORD-0004"]
    assert second.page_info.has_next_page is False
    assert second.page_info.has_previous_page is True
    assert second.cursors.next is None

    back = paginate(book, cursor=second.cursors.previous, limit=2, direction="before")
    assert _ids(back.data) == ["ORD-0001", "ORD-0002"]
    assert back.page_info.has_previous_page is False
    assert back.page_info.has_next_page is True


def test_before_without_cursor_is_last_page():
    page = paginate(_book(), limit=3, direction="before")
    assert _ids(page.data) == ["ORD-0002", "ORD-0003", "ORD-0004"]
    assert page.page_info.has_previous_page is True
    assert page.page_info.has_next_page is False


def test_before_is_clamped_at_start():
    page = paginate(_book(), cursor=encode_cursor("ORD-0002"), limit=5, direction="before")
    assert _ids(page.data) == ["ORD-0001"]
    assert page.page_info.has_previous_page is False


def test_empty_result_page():
    page = paginate([], limit=10)
    assert page.data == []
    assert page.page_info.start_cursor is None and page.page_info.end_cursor is None
    assert page.page_info.has_next_page is False and page.page_info.has_previous_page is False


def test_cursor_for_order_outside_result_is_rejected():
    with pytest.raises(InvalidCursorError):
        paginate(_book(), cursor=encode_cursor("ORD-9999"), limit=2)


def test_bad_limit_or_direction():
    with pytest.raises(ValueError):
        paginate(_book(), limit=0)
    with pytest.raises(ValueError):
        paginate(_book(), direction="sideways")


def test_after_last_order_keeps_boundary_cursor():
    book = _book()
    last = encode_cursor("ORD-0004")
    page = paginate(book, cursor=last, limit=2)
    assert page.data == []
    assert page.page_info.has_next_page is False
    assert page.page_info.has_previous_page is True
    assert page.cursors.next is None
    assert page.cursors.previous == last
    # polling with endCursor stays put instead of losing its place
    assert page.page_info.end_cursor == last
    assert paginate(book, cursor=page.page_info.end_cursor, limit=2).data == []

    back = paginate(book, cursor=page.cursors.previous, limit=2, direction="before")
    assert _ids(back.data) == ["ORD-0002", "ORD-0003"]


def test_before_first_order_keeps_boundary_cursor():
    book = _book()
    first = encode_cursor("ORD-0001")
    page = paginate(book, cursor=first, limit=2, direction="before")
    assert page.data == []
    assert page.page_info.has_previous_page is False
    assert page.page_info.has_next_page is True
    assert page.cursors.previous is None
    assert page.cursors.next == first
    assert page.page_info.start_cursor == first

    forward = paginate(book, cursor=page.cursors.next, limit=2)
    assert _ids(forward.data) == ["ORD-0002", "ORD-0003"]


def test_page_flags_agree_with_cursors_at_every_boundary():
    book = _book()
    for order_id in _ids(book):
        for direction in ("after", "before"):
            page = paginate(book, cursor=encode_cursor(order_id), limit=2, direction=direction)
            assert page.page_info.has_next_page == (page.cursors.next is not None)
            assert page.page_info.has_previous_page == (page.cursors.previous is not None)
