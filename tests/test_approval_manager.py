import threading
from datetime import date

import pytest

from services.exceptions import (
    DateUnavailable, Forbidden, InvalidShift, NotFound, NotPending, ValidationError,
)

D10 = date(2025, 9, 10)


def test_approve_pending_user(services, store):
    store.add_user(42, shift="pending")
    user = services.approvals.approve_user(42, "Evening")
    assert user.shift == "Evening"
    assert store.state.users[42].shift == "Evening"


def test_approve_already_assigned_user_is_not_pending(services, store):
    store.add_user(42, shift="Evening")
    with pytest.raises(NotPending):
        services.approvals.approve_user(42, "Morning")
    assert store.state.users[42].shift == "Evening"


def test_approve_unknown_user_is_not_pending(services):
    with pytest.raises(NotPending):
        services.approvals.approve_user(404, "Night")


@pytest.mark.parametrize("shift", ["pending", "Day", "", None, "night"])
def test_approve_with_invalid_shift(services, store, shift):
    store.add_user(42, shift="pending")
    with pytest.raises(InvalidShift):
        services.approvals.approve_user(42, shift)
    assert store.state.users[42].shift == "pending"


def test_pending_queue_is_fifo(services, store):
    store.add_user(3, shift="pending")
    store.add_user(1, shift="Night")
    store.add_user(2, shift="pending")
    assert [u.id for u in services.approvals.get_pending_users()] == [3, 2]


def test_approve_request(services, store):
    store.add_user(7, shift="Night")
    rid = store.add_request(7, D10)
    updated = services.approvals.manage_day_off_request(rid, "approve")
    assert updated.status == "approved"
    assert store.status_of(rid) == "approved"
    assert store.state.days_off  # request kept


def test_reject_request_marks_rejected_and_frees_quota(services, store):
    store.add_user(7, shift="Night")
    rids = [store.add_request(7, date(2025, 9, d)) for d in (1, 2, 3, 4)]
    services.approvals.manage_day_off_request(rids[0], "reject")
    assert store.status_of(rids[0]) == "rejected"
    services.days_off.request_days_off(7, "Night", [D10])


def test_manage_unknown_request(services):
    with pytest.raises(NotFound):
        services.approvals.manage_day_off_request(999, "approve")


def test_manage_with_unknown_action(services, store):
    store.add_user(7, shift="Night")
    rid = store.add_request(7, D10)
    with pytest.raises(ValidationError):
        services.approvals.manage_day_off_request(rid, "delete")
    assert store.status_of(rid) == "pending"


def test_approval_rechecks_shift_cap(services, store):
    # one approved already; two more users were admitted optimistically
    for uid in (1, 2, 3):
        store.add_user(uid, shift="Night")
    store.add_request(1, D10, "approved")
    r2 = store.add_request(2, D10)
    r3 = store.add_request(3, D10)

    services.approvals.manage_day_off_request(r2, "approve")
    with pytest.raises(DateUnavailable):
        services.approvals.manage_day_off_request(r3, "approve")

    assert store.status_of(r3) == "pending"
    approved = [r for r in store.state.days_off.values() if r.date == D10 and r.status == "approved"]
    assert len(approved) == 2


def test_concurrent_admissions_cannot_exceed_cap_after_approval(services, store):
    store.add_user(1, shift="Night")
    store.add_request(1, D10, "approved")
    store.add_user(2, shift="Night")
    store.add_user(3, shift="Night")

    errors = []

    def submit(uid):
        try:
            services.days_off.request_days_off(uid, "Night", [D10])
        except Exception as e:  # pragma: no cover - surfaced by the assertion below
            errors.append(e)

    threads = [threading.Thread(target=submit, args=(uid,)) for uid in (2, 3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []

    results = []
    for uid in (2, 3):
        rid = store.requests_of(uid)[0].id
        try:
            results.append(services.approvals.manage_day_off_request(rid, "approve").status)
        except DateUnavailable:
            results.append("refused")

    assert sorted(results) == ["approved", "refused"]


def test_approval_locks_shift_and_date(services, store, monkeypatch):
    store.add_user(7, shift="Morning")
    rid = store.add_request(7, D10)
    seen = []
    from tests import fakes

    original = fakes.MemoryDaysOff.lock_shift_date

    def spy(self, shift, day):
        seen.append((shift, day))
        return original(self, shift, day)

    monkeypatch.setattr(fakes.MemoryDaysOff, "lock_shift_date", spy)
    services.approvals.manage_day_off_request(rid, "approve")
    assert seen == [("Morning", D10)]


def test_approve_already_approved_is_idempotent(services, store):
    for uid in (1, 2):
        store.add_user(uid, shift="Night")
    r1 = store.add_request(1, D10, "approved")
    store.add_request(2, D10, "approved")
    assert services.approvals.manage_day_off_request(r1, "approve").status == "approved"


def test_rejected_request_cannot_be_approved(services, store):
    store.add_user(7, shift="Night")
    rid = store.add_request(7, D10, "rejected")
    with pytest.raises(ValidationError):
        services.approvals.manage_day_off_request(rid, "approve")
    assert store.status_of(rid) == "rejected"


def test_approving_old_rejection_cannot_exceed_quota(services, store):
    store.add_user(7, shift="Night")
    rids = [store.add_request(7, date(2025, 9, d)) for d in (1, 2, 3, 4)]
    services.approvals.manage_day_off_request(rids[0], "reject")
    services.days_off.request_days_off(7, "Night", [D10])

    with pytest.raises(ValidationError):
        services.approvals.manage_day_off_request(rids[0], "approve")

    active = [r for r in store.requests_of(7) if r.status in ("pending", "approved")]
    assert len(active) == 4


def test_delete_user_cascades_requests(services, store):
    store.add_user(7, shift="Night")
    store.add_request(7, D10)
    services.approvals.delete_user(1, 7)
    assert 7 not in store.state.users
    assert store.state.days_off == {}


def test_admin_cannot_delete_self(services, store):
    store.add_user(1, shift="Morning", is_admin=True)
    with pytest.raises(Forbidden):
        services.approvals.delete_user(1, 1)


def test_admin_calendar_and_day_details(services, store):
    store.add_user(1, shift="Night", first_name="Ann")
    store.add_user(2, shift="Morning", first_name="Bob")
    store.add_request(1, D10, "approved")
    store.add_request(2, D10, "pending")
    store.add_request(2, date(2025, 9, 11), "rejected")

    assert services.approvals.get_calendar(2025, 9) == {D10: {"pending": 1, "approved": 1}}

    details = services.approvals.get_day_details(D10)
    assert [(d["first_name"], d["shift"], d["status"]) for d in details] == [
        ("Bob", "Morning", "pending"),
        ("Ann", "Night", "approved"),
    ]
