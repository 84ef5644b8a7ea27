#!/usr/bin/env python3
"""Setup script for the venue booking API."""

import asyncio
import logging
import sys
from decimal import Decimal
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from venue_booking.core.database import async_session_factory  # noqa: E402
from venue_booking.models import Customer, CustomerType, Hotel, TaxStrategy, Venue  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def setup_database():
    """Bring the database schema up to the latest migration."""
    logger.info("Setting up database...")

    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create a demo hotel with two venues and a customer."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            existing_hotels = await db.execute(select(func.count()).select_from(Hotel))
            if existing_hotels.scalar() > 0:
                logger.info("Sample data already exists, skipping...")
                return

            hotel = Hotel(
                name="Grand Harbour Hotel",
                subdomain="grand-harbour",
                tax_strategy=TaxStrategy.STANDARD,
                vat_rate=Decimal("15.00"),
                service_charge_rate=Decimal("10.00"),
                currency="USD",
                allow_capacity_override=False,
            )
            db.add(hotel)
            await db.flush()

            db.add_all([
                Venue(
                    hotel_id=hotel.id,
                    name="Grand Ballroom",
                    slug="grand-harbour-grand-ballroom",
                    capacity_banquet=200,
                    capacity_theater=320,
                    capacity_reception=350,
                    base_price=Decimal("1000.00"),
                ),
                Venue(
                    hotel_id=hotel.id,
                    name="Harbour Boardroom",
                    slug="grand-harbour-boardroom",
                    capacity_ushape=24,
                    base_price=Decimal("250.00"),
                ),
                Customer(
                    hotel_id=hotel.id,
                    company_name="Acme Events",
                    contact_name="Jordan Lee",
                    email="events@acme.example",
                    type=CustomerType.CORPORATE,
                ),
            ])

            await db.commit()
            logger.info(f"Sample data created successfully! Hotel id: {hotel.id}")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise


def main():
    """Main setup function."""
    logger.info("Starting venue booking API setup...")

    setup_database()
    asyncio.run(create_sample_data())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn venue_booking.main:app --reload")


if __name__ == "__main__":
    main()
