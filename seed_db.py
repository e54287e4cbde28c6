#!/usr/bin/env python3
"""
Script to seed a development database with services, a location, staff, a customer and a vehicle.
Prints a bearer token for each seeded user.
"""

from app import models  # noqa: F401
from app.database import Base, SessionLocal, engine
from app.models import Location, Service, User, Vehicle
from app.security_utils import create_jwt_token

SERVICES = [
    ("Quick Wash", "Exterior body wash and drying.", 50000, None),
    ("Full Interior & Exterior", "Exterior wash, interior vacuum and dashboard cleaning.", 100000, "MOBIL"),
    ("Premium Wax Protection", "Premium wax coat for shine and paint protection.", 150000, "MOBIL"),
    ("Motorcycle Wash", "Full wash for two-wheelers.", 25000, "MOTOR"),
]


def get_or_create(db, model, lookup: dict, **values):
    instance = db.query(model).filter_by(**lookup).first()
    if instance:
        return instance, False
    instance = model(**lookup, **values)
    db.add(instance)
    db.flush()
    return instance, True


def seed():
    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()

    try:
        print("🔍 Seeding database...\n")

        for name, description, price, vehicle_type in SERVICES:
            _, created = get_or_create(
                db, Service, {"name": name}, description=description, price=price, vehicle_type=vehicle_type
            )
            print(f"{'✅ Created' if created else 'ℹ️ Exists '} service: {name}")

        location, created = get_or_create(
            db,
            Location,
            {"name": "Car Wash Sudirman"},
            address="Jl. Jend. Sudirman No. 1, Jakarta",
            latitude=-6.2088,
            longitude=106.8456,
            phone="0215550101",
        )
        print(f"{'✅ Created' if created else 'ℹ️ Exists '} location: {location.name}")

        superadmin, _ = get_or_create(
            db, User, {"username": "superadmin"},
            email="superadmin@carwash.com", name="Super Admin", role="SUPERADMIN", phone="081234567890",
        )
        admin, _ = get_or_create(
            db, User, {"username": "admin_sudirman"},
            email="admin.sudirman@carwash.com", name="Sudirman Admin", role="ADMIN",
            phone="081298765432", location_id=location.id,
        )
        customer, _ = get_or_create(
            db, User, {"username": "budi"},
            email="budi.customer@example.com", name="Budi Santoso", role="CUSTOMER", phone="081112223333",
        )
        vehicle, created = get_or_create(
            db, Vehicle, {"plate": "B 1234 ABC"}, type="MOBIL", model="Toyota Avanza", owner_id=customer.id
        )
        print(f"{'✅ Created' if created else 'ℹ️ Exists '} vehicle: {vehicle.plate}")

        db.commit()

        print("\n🔑 Development tokens:")
        for user in (superadmin, admin, customer):
            token = create_jwt_token({"userId": user.id, "username": user.username, "role": user.role})
            print(f"  {user.username} ({user.role}): {token}")

        print("\n✅ Seeding complete")

    except Exception as e:
        db.rollback()
        print(f"❌ Seeding failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
