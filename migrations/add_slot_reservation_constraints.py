"""
Bring an existing slots/bookings schema up to the reservation engine (PostgreSQL)

- slots: booked_at, hold_id, deposit_required, deposit_amount columns
- slots: CHECK constraint restricting status to open / pending_deposit / booked
- slots: (status, booked_at) index used by the deposit hold sweep
- bookings: payment_reference, hold_id, payment_id, paid_at columns
- payment_events table: processed webhook ids
"""

import logging

from sqlalchemy import text

from slotbook.database import get_engine

logger = logging.getLogger(__name__)


def upgrade():
    with get_engine().connect() as conn:
        conn.execute(text("ALTER TABLE slots ADD COLUMN IF NOT EXISTS booked_at TIMESTAMPTZ NULL"))
        conn.execute(text("ALTER TABLE slots ADD COLUMN IF NOT EXISTS hold_id VARCHAR(36) NULL"))
        conn.execute(
            text(
                "ALTER TABLE slots ADD COLUMN IF NOT EXISTS deposit_required BOOLEAN NOT NULL DEFAULT FALSE"
            )
        )
        conn.execute(
            text("ALTER TABLE slots ADD COLUMN IF NOT EXISTS deposit_amount NUMERIC(10, 2) NULL")
        )

        # Rows written before the constraint may carry legacy values
        conn.execute(
            text(
                """
                UPDATE slots SET status = 'open'
                WHERE status IS NULL OR status NOT IN ('open', 'pending_deposit', 'booked')
                """
            )
        )
        conn.execute(
            text(
                """
                DO $$
                BEGIN
                    IF NOT EXISTS (
                        SELECT 1 FROM pg_constraint WHERE conname = 'ck_slots_status'
                    ) THEN
                        ALTER TABLE slots ADD CONSTRAINT ck_slots_status
                        CHECK (status IN ('open', 'pending_deposit', 'booked'));
                    END IF;
                END
                $$;
                """
            )
        )
        conn.execute(
            text(
                "CREATE INDEX IF NOT EXISTS ix_slots_status_booked_at ON slots (status, booked_at)"
            )
        )

        conn.execute(
            text("ALTER TABLE bookings ADD COLUMN IF NOT EXISTS payment_reference VARCHAR(64)")
        )
        conn.execute(text("ALTER TABLE bookings ADD COLUMN IF NOT EXISTS hold_id VARCHAR(36)"))
        conn.execute(
            text("CREATE INDEX IF NOT EXISTS ix_bookings_hold_id ON bookings (hold_id)")
        )
        conn.execute(text("ALTER TABLE bookings ADD COLUMN IF NOT EXISTS payment_id VARCHAR(255)"))
        conn.execute(text("ALTER TABLE bookings ADD COLUMN IF NOT EXISTS paid_at TIMESTAMPTZ NULL"))

        conn.execute(
            text(
                """
                CREATE TABLE IF NOT EXISTS payment_events (
                    id SERIAL PRIMARY KEY,
                    webhook_id VARCHAR(255) UNIQUE NOT NULL,
                    event_type VARCHAR(100) NOT NULL,
                    slot_id VARCHAR(36),
                    outcome VARCHAR(50),
                    received_at TIMESTAMPTZ DEFAULT NOW()
                );
                """
            )
        )
        conn.execute(
            text(
                "CREATE INDEX IF NOT EXISTS ix_payment_events_slot_id ON payment_events (slot_id)"
            )
        )

        conn.commit()
        logger.info("✅ Migration add_slot_reservation_constraints applied successfully")


def downgrade():
    with get_engine().connect() as conn:
        conn.execute(text("DROP TABLE IF EXISTS payment_events"))
        conn.execute(text("DROP INDEX IF EXISTS ix_slots_status_booked_at"))
        conn.execute(text("ALTER TABLE slots DROP CONSTRAINT IF EXISTS ck_slots_status"))
        conn.commit()
        logger.info("Migration add_slot_reservation_constraints rolled back")


if __name__ == "__main__":
    import argparse

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    parser = argparse.ArgumentParser(description="Manage slot reservation schema migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        downgrade()
    else:
        upgrade()
