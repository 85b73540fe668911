"""Tests for releasing unpaid deposit holds and provider soft delete"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from slotbook.domain.booking.repository import SlotRepository
from slotbook.domain.booking.service import BookingService
from slotbook.models import Booking, Slot, SlotStatus
from slotbook.worker import WorkerSettings, release_expired_deposit_holds_task

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def service(db, gateway, notifier, settings):
    return BookingService(db, gateway, notifier, settings)


def hold(make_slot, db, minutes_ago):
    slot = make_slot(
        status=SlotStatus.PENDING_DEPOSIT.value,
        booked_at=NOW - timedelta(minutes=minutes_ago),
        hold_id=f"hold-{minutes_ago}",
    )
    db.add(
        Booking(
            slot_id=slot.id,
            provider_email=slot.email,
            customer_name="Jan",
            customer_email="jan@example.com",
            status=SlotStatus.PENDING_DEPOSIT.value,
            hold_id=slot.hold_id,
        )
    )
    db.commit()
    return slot


class TestReleaseExpiredHolds:
    def test_stale_hold_is_reopened(self, db, service, make_slot):
        stale = hold(make_slot, db, minutes_ago=45)
        fresh = hold(make_slot, db, minutes_ago=10)

        released = service.release_expired_holds(now=NOW)

        assert released == [stale.id]
        db.expire_all()
        reopened = db.query(Slot).filter(Slot.id == stale.id).one()
        assert reopened.status == SlotStatus.OPEN.value
        assert reopened.booked_at is None
        assert reopened.hold_id is None
        assert db.query(Slot).filter(Slot.id == fresh.id).one().status == "pending_deposit"

        statuses = {b.slot_id: b.status for b in db.query(Booking).all()}
        assert statuses == {stale.id: "expired", fresh.id: "pending_deposit"}

    def test_booked_slots_are_never_released(self, db, service, make_slot):
        slot = make_slot(status=SlotStatus.BOOKED.value, booked_at=NOW - timedelta(days=2))

        assert service.release_expired_holds(now=NOW) == []
        db.expire_all()
        assert db.query(Slot).filter(Slot.id == slot.id).one().status == "booked"

    def test_nothing_to_release(self, service):
        assert service.release_expired_holds(now=NOW) == []


class TestDeactivateOpenSlot:
    def test_open_slot_is_soft_deleted(self, db, make_slot):
        slot = make_slot()

        assert SlotRepository.deactivate_open_slot(db, slot.id, "Studio@Example.com") is True
        db.expire_all()
        assert db.query(Slot).filter(Slot.id == slot.id).one().active is False

    def test_held_or_booked_slots_cannot_be_deleted(self, db, make_slot):
        pending = make_slot(status=SlotStatus.PENDING_DEPOSIT.value)
        booked = make_slot(status=SlotStatus.BOOKED.value)

        assert SlotRepository.deactivate_open_slot(db, pending.id, "studio@example.com") is False
        assert SlotRepository.deactivate_open_slot(db, booked.id, "studio@example.com") is False

    def test_other_provider_cannot_delete(self, db, make_slot):
        slot = make_slot()

        assert SlotRepository.deactivate_open_slot(db, slot.id, "someone@example.com") is False


class TestWorker:
    @pytest.mark.asyncio
    async def test_task_releases_holds(self, db, session_factory, settings, make_slot):
        stale = make_slot(
            status=SlotStatus.PENDING_DEPOSIT.value,
            booked_at=datetime.now(timezone.utc) - timedelta(hours=2),
        )

        with patch("slotbook.worker.get_session_factory", return_value=session_factory), patch(
            "slotbook.worker.get_settings", return_value=settings
        ):
            result = await release_expired_deposit_holds_task({"job_id": "test"})

        assert result == {"released": 1}
        db.expire_all()
        assert db.query(Slot).filter(Slot.id == stale.id).one().status == "open"

    def test_sweep_is_scheduled(self):
        assert release_expired_deposit_holds_task in WorkerSettings.functions
        assert len(WorkerSettings.cron_jobs) == 1
