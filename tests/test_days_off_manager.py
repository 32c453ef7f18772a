from datetime import date

import pytest

from services.exceptions import (
    DateUnavailable, DuplicateDate, Forbidden, NotFound, QuotaExceeded, ValidationError,
)

D10 = date(2025, 9, 10)
D11 = date(2025, 9, 11)
D12 = date(2025, 9, 12)


def _snapshot(store):
    return {rid: (r.user_id, r.date, r.status) for rid, r in store.state.days_off.items()}


def test_two_dates_committed_as_pending(services, store):
    store.add_user(1001, shift="Night")
    result = services.days_off.request_days_off(1001, "Night", {D10, D11})
    assert result.dates == [D10, D11]
    rows = store.requests_of(1001)
    assert [(r.date, r.status) for r in rows] == [(D10, "pending"), (D11, "pending")]


def test_quota_exceeded_reports_current_count(services, store):
    store.add_user(1002, shift="Night")
    for d in (date(2025, 9, 1), date(2025, 9, 2)):
        store.add_request(1002, d, "pending")
    store.add_request(1002, date(2025, 9, 3), "approved")
    before = _snapshot(store)

    with pytest.raises(QuotaExceeded) as exc:
        services.days_off.request_days_off(1002, "Night", {D10, D11})

    assert exc.value.current_count == 3
    assert "You currently have 3" in exc.value.message
    assert _snapshot(store) == before


def test_quota_allows_exactly_four(services, store):
    store.add_user(1002, shift="Night")
    store.add_request(1002, date(2025, 9, 1), "approved")
    services.days_off.request_days_off(1002, "Night", [D10, D11, D12])
    assert len(store.requests_of(1002)) == 4


def test_rejected_requests_do_not_count_against_quota(services, store):
    store.add_user(1002, shift="Night")
    for day in (1, 2, 3, 4):
        store.add_request(1002, date(2025, 9, day), "rejected")
    services.days_off.request_days_off(1002, "Night", [D10, D11, D12])


def test_fully_booked_date_rejects_whole_batch(services, store):
    store.add_user(1, shift="Night")
    store.add_user(2, shift="Night")
    store.add_user(1003, shift="Night")
    store.add_request(1, D11, "approved")
    store.add_request(2, D11, "approved")
    before = _snapshot(store)

    with pytest.raises(DateUnavailable) as exc:
        services.days_off.request_days_off(1003, "Night", [D10, D11])

    assert exc.value.day == D11
    assert _snapshot(store) == before
    assert store.requests_of(1003) == []


def test_single_fully_booked_date(services, store):
    store.add_user(1, shift="Night")
    store.add_user(2, shift="Night")
    store.add_user(1003, shift="Night")
    store.add_request(1, D10, "approved")
    store.add_request(2, D10, "approved")
    with pytest.raises(DateUnavailable):
        services.days_off.request_days_off(1003, "Night", [D10])
    assert store.requests_of(1003) == []


def test_pending_requests_do_not_block_admission(services, store):
    for uid in (1, 2, 3):
        store.add_user(uid, shift="Night")
        store.add_request(uid, D10, "pending")
    store.add_user(1004, shift="Night")
    services.days_off.request_days_off(1004, "Night", [D10])
    assert [r.status for r in store.requests_of(1004)] == ["pending"]


def test_other_shift_does_not_compete(services, store):
    store.add_user(1, shift="Morning")
    store.add_user(2, shift="Morning")
    store.add_request(1, D10, "approved")
    store.add_request(2, D10, "approved")
    store.add_user(1005, shift="Night")
    services.days_off.request_days_off(1005, "Night", [D10])
    assert len(store.requests_of(1005)) == 1


def test_duplicate_date_rolls_back_batch(services, store):
    store.add_user(1006, shift="Evening")
    store.add_request(1006, D11, "pending")
    before = _snapshot(store)
    with pytest.raises(DuplicateDate) as exc:
        services.days_off.request_days_off(1006, "Evening", [D10, D11])
    assert exc.value.day == D11
    assert _snapshot(store) == before


def test_rejected_date_can_be_requested_again(services, store):
    store.add_user(1006, shift="Evening")
    rid = store.add_request(1006, D10, "rejected")
    result = services.days_off.request_days_off(1006, "Evening", [D10])
    assert result.request_ids == [rid]
    assert store.status_of(rid) == "pending"


def test_repeated_dates_in_one_call_collapse(services, store):
    store.add_user(1007, shift="Night")
    services.days_off.request_days_off(1007, "Night", [D10, D10, D10])
    assert len(store.requests_of(1007)) == 1


def test_pending_caller_is_refused(services, store):
    store.add_user(1008, shift="pending")
    with pytest.raises(Forbidden):
        services.days_off.request_days_off(1008, "pending", [D10])
    assert store.requests_of(1008) == []


def test_unknown_shift_is_refused(services, store):
    store.add_user(1008, shift="Night")
    with pytest.raises(ValidationError):
        services.days_off.request_days_off(1008, "Day", [D10])


def test_empty_dates_refused(services, store):
    store.add_user(1008, shift="Night")
    with pytest.raises(ValidationError):
        services.days_off.request_days_off(1008, "Night", [])


def test_unknown_user_refused(services):
    with pytest.raises(NotFound):
        services.days_off.request_days_off(5555, "Night", [D10])


def test_cancel_frees_quota(services, store):
    store.add_user(1009, shift="Night")
    for day in (1, 2, 3, 4):
        store.add_request(1009, date(2025, 9, day), "pending")
    services.days_off.cancel_day_off(1009, "Night", date(2025, 9, 1))
    services.days_off.request_days_off(1009, "Night", [D10])
    assert len(store.requests_of(1009)) == 4


def test_cancel_missing_request(services, store):
    store.add_user(1009, shift="Night")
    with pytest.raises(NotFound):
        services.days_off.cancel_day_off(1009, "Night", D10)


def test_calendar_counts_only_approved_in_own_shift_and_month(services, store):
    store.add_user(1, shift="Night")
    store.add_user(2, shift="Night")
    store.add_user(3, shift="Morning")
    store.add_request(1, D10, "approved")
    store.add_request(2, D10, "approved")
    store.add_request(2, D11, "pending")
    store.add_request(3, D12, "approved")
    store.add_request(1, date(2025, 10, 1), "approved")

    cal = services.days_off.get_calendar(2, "Night", 2025, 9)

    assert cal.shift_day_counts == {D10: 2}
    assert [(r.date, r.status) for r in cal.my_days_off] == [(D10, "approved"), (D11, "pending")]
