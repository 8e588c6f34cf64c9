"""
Startup utilities for the application.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError, ProgrammingError

from liquipay.core.clock import Clock, system_clock
from liquipay.core.database import Base, engine, get_async_session_maker_instance
from liquipay.core.penalty import status_for_due_date
from liquipay.models.customer import Customer
from liquipay.models.liquidation import Liquidation

logger = logging.getLogger(__name__)

DEMO_CUSTOMERS = [
    {
        "last_name": "DOE",
        "first_name": "John",
        "address": "Rue 12, Cotonou",
        "ifu": "IFU123456",
        "phone": "+22997000000",
        "email": "john.doe@example.com",
    },
    {
        "last_name": "DUPONT",
        "first_name": "Alice",
        "address": "Porto-Novo",
        "ifu": "IFU654321",
        "phone": "+22966000000",
        "email": "alice.dupont@example.com",
    },
]


async def ensure_tables(bind=None) -> None:
    """Create missing tables. Existing tables are left alone; schema changes go through Alembic."""
    bind = bind or engine
    async with bind.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


async def seed_demo_data(clock: Clock = system_clock, session_maker=None) -> int:
    """
    Insert demo customers, each with one pending liquidation, when the customers table is empty.
    Returns the number of customers created.
    """
    session_maker = session_maker or get_async_session_maker_instance()
    async with session_maker() as session:
        try:
            customer_count = (await session.execute(select(func.count(Customer.id)))).scalar()
            if customer_count:
                logger.info("Found %s customer(s) in database. Skipping demo data.", customer_count)
                return 0

            today = clock.today()
            for index, data in enumerate(DEMO_CUSTOMERS):
                customer = Customer(**data)
                due_date = today + timedelta(days=30 * (index + 1))
                session.add(customer)
                session.add(
                    Liquidation(
                        customer=customer,
                        tax_type="Property tax",
                        amount=Decimal("50000.00") * (index + 1),
                        issue_date=today,
                        due_date=due_date,
                        status=status_for_due_date(due_date, today).value,
                    )
                )
            await session.commit()
            logger.info("Demo data created: %s customer(s)", len(DEMO_CUSTOMERS))
            return len(DEMO_CUSTOMERS)
        except (OperationalError, ProgrammingError) as e:
            await session.rollback()
            logger.warning(
                "Database error during demo data creation. Error: %s. "
                "Please ensure database is accessible and migrations are run.",
                e,
            )
            return 0
