# barbershop/data.py

import logging
from decimal import Decimal

from sqlmodel import Session, select

from barbershop.models import Service, ShopHours

logger = logging.getLogger(__name__)

# Mon-Sat 09:00-18:00 with a lunch break, Sunday closed
DEFAULT_SHOP_HOURS = [{"day_of_week": 0, "is_open": False}] + [
    {
        "day_of_week": day,
        "is_open": True,
        "start_time": "09:00",
        "end_time": "18:00",
        "break_start": "12:00",
        "break_end": "13:00",
    }
    for day in range(1, 7)
]

SERVICES = [
    {"slug": "corte-tradicional", "name": "Corte Simples", "duration": 30, "price": "30.00",
     "description": "Corte simples com tesoura e navalha"},
    {"slug": "corte-degrade", "name": "Corte Degradê Navalhado", "duration": 45, "price": "60.00",
     "description": "Corte degradê navalhado com tesoura"},
    {"slug": "corte-barba", "name": "Corte + Barba", "duration": 60, "price": "90.00",
     "description": "Corte e barba completo"},
    {"slug": "barba-completa", "name": "Barba Completa", "duration": 30, "price": "45.00",
     "description": "Aparar e modelar"},
    {"slug": "sobrancelha-na-navalha", "name": "Sobrancelha na Navalha", "duration": 15, "price": "20.00",
     "description": "Design e aparar sobrancelhas"},
]


def seed_defaults(session: Session) -> None:
    """Insert default shop hours and services; existing rows are left alone."""
    for hours in DEFAULT_SHOP_HOURS:
        if session.get(ShopHours, hours["day_of_week"]) is None:
            session.add(ShopHours(**hours))

    for item in SERVICES:
        exists = session.exec(select(Service).where(Service.slug == item["slug"])).first()
        if exists is None:
            session.add(Service(**{**item, "price": Decimal(item["price"])}))

    session.commit()
    logger.info("Default shop hours and services seeded")


if __name__ == "__main__":
    from barbershop.config import get_settings
    from barbershop.db import create_db_and_tables, create_db_engine
    from barbershop.logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings)
    engine = create_db_engine(settings)
    create_db_and_tables(engine)
    with Session(engine) as session:
        seed_defaults(session)
