"""
Seed the lab inventory with its standard categories, an admin account
and, optionally, a handful of sample components.

    python -m lims.scripts.seed --admin-password 'S3cure-pass'
    python -m lims.scripts.seed --sample-data

Safe to run repeatedly: existing rows are left alone. Sample stock is
booked through INWARD transactions so the ledger adds up.
"""

import argparse
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from lims.core.config import settings
from lims.core.hashing import hash_password
from lims.database import Base, SessionLocal, engine
from lims.models.categories import Category
from lims.models.components import Component
from lims.models.transactions import TransactionType
from lims.models.users import User, UserRole
from lims.services.accounts import derive_username
from lims.services.ledger import StockLedger
from lims.services.sqlalchemy_store import SqlAlchemyStockStore

logger = logging.getLogger("app")

CATEGORIES = [
    ("Resistors", "Electronic resistors of various values and power ratings"),
    ("Capacitors", "Electronic capacitors including ceramic, electrolytic, and film types"),
    ("Inductors", "Electronic inductors and coils"),
    ("Diodes", "Various types of diodes including rectifier, LED, and Zener diodes"),
    ("Transistors", "BJT, MOSFET, and other transistor types"),
    ("Integrated Circuits (ICs)", "Microchips, amplifiers, logic ICs, and other integrated circuits"),
    ("Connectors", "Headers, sockets, and various connection components"),
    ("Sensors", "Temperature, humidity, motion, and other sensor modules"),
    ("Microcontrollers/Development Boards", "Arduino, Raspberry Pi, ESP32, and other development boards"),
    ("Switches/Buttons", "Toggle switches, push buttons, and other switching components"),
    ("LEDs/Displays", "LEDs, LCD displays, OLED screens, and display modules"),
    ("Cables/Wires", "Jumper wires, USB cables, and various wiring components"),
    ("Mechanical Parts/Hardware", "Screws, nuts, bolts, enclosures, and mechanical components"),
    ("Miscellaneous Lab Supplies", "Breadboards, soldering supplies, and other lab equipment"),
]

# (part number, name, manufacturer, supplier, category, opening stock, bin, unit price, threshold)
SAMPLE_COMPONENTS = [
    ("RES-1K-1W", "1K Ohm 1W Resistor", "Generic", "Electronics Hub", "Resistors", 100, "Shelf A1, Bin 1", "2.50", 20),
    ("CAP-100UF-25V", "100µF 25V Electrolytic Capacitor", "Generic", "Electronics Hub", "Capacitors", 50, "Shelf A1, Bin 2", "5.00", 10),
    ("LED-RED-5MM", "5mm Red LED", "Generic", "Electronics Hub", "LEDs/Displays", 200, "Shelf B1, Bin 1", "3.00", 30),
    ("ARDUINO-UNO-R3", "Arduino Uno R3", "Arduino", "Robu.in", "Microcontrollers/Development Boards", 10, "Shelf C1, Bin 1", "450.00", 2),
    ("DHT22-SENSOR", "DHT22 Temperature & Humidity Sensor", "Aosong", "Robu.in", "Sensors", 15, "Shelf D1, Bin 1", "180.00", 5),
    ("DUPONT-40-PIN", "40-Pin Dupont Jumper Wires", "Generic", "Electronics Hub", "Cables/Wires", 25, "Shelf E1, Bin 1", "35.00", 5),
    ("BREADBOARD-830", "830 Point Breadboard", "Generic", "Electronics Hub", "Miscellaneous Lab Supplies", 8, "Shelf F1, Bin 1", "120.00", 2),
    ("TRANS-2N2222", "2N2222 NPN Transistor", "ON Semiconductor", "Electronics Hub", "Transistors", 75, "Shelf A2, Bin 1", "8.00", 15),
    ("IC-555-TIMER", "555 Timer IC", "Texas Instruments", "Electronics Hub", "Integrated Circuits (ICs)", 30, "Shelf A2, Bin 2", "12.00", 8),
    ("DIODE-1N4007", "1N4007 Rectifier Diode", "Generic", "Electronics Hub", "Diodes", 60, "Shelf A2, Bin 3", "4.00", 12),
    ("RES-10K-1W", "10K Ohm 1W Resistor", "Generic", "Electronics Hub", "Resistors", 5, "Shelf A1, Bin 3", "2.50", 20),
    ("ESP32-DEVKIT", "ESP32 Development Board", "Espressif", "Robu.in", "Microcontrollers/Development Boards", 0, "Shelf C1, Bin 2", "350.00", 3),
]


def ensure_categories(db: Session) -> dict[str, Category]:
    existing = {c.name: c for c in db.query(Category).all()}

    for name, description in CATEGORIES:
        if name not in existing:
            category = Category(name=name, description=description)
            db.add(category)
            existing[name] = category

    db.commit()
    return existing


def ensure_admin(db: Session, email: str, password: str) -> User:
    email = email.lower().strip()
    admin = db.query(User).filter(User.email == email).first()

    if admin:
        admin.role = UserRole.ADMIN.value
        admin.is_active = True
        db.commit()
        return admin

    admin = User(
        username=derive_username(db, email),
        email=email,
        password_hash=hash_password(password),
        first_name="Admin",
        last_name="User",
        role=UserRole.ADMIN.value,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def ensure_sample_components(db: Session, categories: dict[str, Category], admin: User) -> int:
    ledger = StockLedger(SqlAlchemyStockStore(db))
    created = 0

    for part_number, name, manufacturer, supplier, category, stock, bin_label, price, threshold in SAMPLE_COMPONENTS:
        if db.query(Component.id).filter(Component.part_number == part_number).first():
            continue

        component = Component(
            name=name,
            manufacturer=manufacturer,
            supplier=supplier,
            part_number=part_number,
            quantity=0,
            location_bin=bin_label,
            unit_price=Decimal(price),
            critical_low_threshold=threshold,
            category_id=categories[category].id,
            created_by=admin.id,
        )
        db.add(component)
        db.flush()

        # Opening stock commits with the component or not at all
        if stock:
            ledger.record_transaction(
                component_id=component.id,
                type=TransactionType.INWARD,
                quantity=stock,
                actor_id=admin.id,
                reason="Initial stock",
                project="Inventory Setup",
            )
        else:
            db.commit()

        created += 1

    return created


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the lab inventory database")
    parser.add_argument("--admin-email", default=settings.SEED_ADMIN_EMAIL)
    parser.add_argument("--admin-password", default=settings.SEED_ADMIN_PASSWORD)
    parser.add_argument("--sample-data", action="store_true", help="add sample components")
    parser.add_argument("--create-tables", action="store_true", help="create tables without alembic")
    args = parser.parse_args(argv)

    if not args.admin_password:
        parser.error("an admin password is required (--admin-password or SEED_ADMIN_PASSWORD)")

    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s | %(levelname)s | %(message)s")

    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        categories = ensure_categories(db)
        logger.info(f"{len(categories)} categories present")

        admin = ensure_admin(db, args.admin_email, args.admin_password)
        logger.info(f"Admin account ready: {admin.email}")

        if args.sample_data:
            created = ensure_sample_components(db, categories, admin)
            logger.info(f"{created} sample components created")
    finally:
        db.close()


if __name__ == "__main__":
    main()
