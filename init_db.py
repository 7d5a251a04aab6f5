# init_db.py
import sys

from sqlalchemy.exc import IntegrityError

import models
from config import settings
from database import Base, engine, SessionLocal
from security import hash_password

CATEGORIES = [
    ("Machinery", "Production machines and heavy equipment"),
    ("Vehicles", "Forklifts, trucks and company cars"),
    ("Computers", "Workstations, laptops and servers"),
    ("HVAC", "Heating, ventilation and air conditioning"),
    ("Electrical", "Generators, panels and UPS units"),
]

TEAMS = [
    ("Mechanics", "Mechanical repairs and preventive checks", "#f59e0b"),
    ("Electricians", "Electrical installations and panels", "#3b82f6"),
    ("IT Support", "Computers, printers and network gear", "#10b981"),
]

WORK_CENTERS = [
    ("Assembly Line 1", "AL-01", "Plant A"),
    ("Workshop", "WS-01", "Plant B"),
]


def seed(db):
    if db.query(models.EquipmentCategory).count() == 0:
        db.add_all(models.EquipmentCategory(name=n, description=d) for n, d in CATEGORIES)

    if db.query(models.Team).count() == 0:
        db.add_all(models.Team(name=n, description=d, color=c) for n, d, c in TEAMS)

    if db.query(models.WorkCenter).count() == 0:
        db.add_all(models.WorkCenter(name=n, code=c, location=l) for n, c, l in WORK_CENTERS)

    admin = db.query(models.Profile).filter(models.Profile.email == settings.ADMIN_EMAIL).first()
    if admin:
        print("Admin profile already exists")
    else:
        db.add(models.Profile(
            email=settings.ADMIN_EMAIL,
            password=hash_password(settings.ADMIN_PASSWORD),
            full_name="Administrator",
            role="admin",
        ))
    db.commit()


if __name__ == "__main__":
    if "--reset" in sys.argv:
        # Drops every table first
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    print("Tables ready")

    db = SessionLocal()
    try:
        seed(db)
        print(f"Seed data inserted (admin: {settings.ADMIN_EMAIL})")
    except IntegrityError as e:
        db.rollback()
        print(f"Integrity error while seeding: {e}")
    finally:
        db.close()
