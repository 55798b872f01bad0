#!/usr/bin/env python3
"""Add the secondary indexes used by booking and review queries to an existing database."""
import logging

from sqlalchemy import create_engine, text

from common.config import get_settings

logger = logging.getLogger("add_indexes")

INDEXES = (
    # Upcoming/past booking lookups filter on the owner plus a date or status.
    "CREATE INDEX IF NOT EXISTS idx_bookings_user_check_out ON bookings (user_id, check_out)",
    "CREATE INDEX IF NOT EXISTS idx_bookings_user_status ON bookings (user_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_reviews_room_created_at ON reviews (room_id, created_at)",
    # One review per (user, room); databases created before the constraint lack it.
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_reviews_user_room_idx ON reviews (user_id, room_id)",
    "CREATE INDEX IF NOT EXISTS idx_hotels_city ON hotels (city)",
    "CREATE INDEX IF NOT EXISTS idx_rooms_hotel_id ON rooms (hotel_id)",
)


def add_indexes(database_url: str) -> None:
    engine = create_engine(database_url)
    with engine.begin() as conn:
        for statement in INDEXES:
            conn.execute(text(statement))
            logger.info("Applied: %s", statement)
    logger.info("Indexes added successfully.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
    add_indexes(get_settings().database_url)
