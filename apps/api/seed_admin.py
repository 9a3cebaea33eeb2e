#!/usr/bin/env python3
"""
Seed an admin account and a small sample catalog for local development
"""

import os
from datetime import date, timedelta

from dotenv import load_dotenv

load_dotenv()

from sqlmodel import select

from auth import get_password_hash
from database import create_db_and_tables, open_session
from models import AppRole, Medicine, User, UserRoleAssignment
from services.inventory_errors import InventoryError
from services.medicine_service import create_medicine

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@medstock.local")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "Admin@12345")


def sample_medicines(today: date):
    return [
        dict(name="Paracetamol 500mg", generic_name="Acetaminophen", category="Analgesics",
             manufacturer="Acme Pharma", batch_number="PCM-2401", quantity=240, min_stock_level=50,
             unit_price=0.12, expiry_date=today + timedelta(days=400), location="A1", barcode="8901000000011"),
        dict(name="Amoxicillin 250mg", generic_name="Amoxicillin", category="Antibiotics",
             manufacturer="Medico Labs", batch_number="AMX-2312", quantity=8, min_stock_level=20,
             unit_price=0.45, expiry_date=today + timedelta(days=180), location="B2", barcode="8901000000028"),
        dict(name="Cetirizine 10mg", generic_name="Cetirizine", category="Antihistamines",
             manufacturer="Acme Pharma", batch_number="CTZ-2405", quantity=60, min_stock_level=10,
             unit_price=0.08, expiry_date=today + timedelta(days=20), location="C1"),
        dict(name="Insulin Glargine", generic_name="Insulin", category="Hormones",
             manufacturer="BioCare", batch_number="INS-2210", quantity=0, min_stock_level=5,
             unit_price=18.5, expiry_date=today + timedelta(days=90), location="Fridge"),
    ]


def seed_admin():
    create_db_and_tables()
    session = open_session()

    try:
        existing = session.exec(select(User).where(User.email == ADMIN_EMAIL)).first()
        if existing:
            print("Admin user already exists")
        else:
            admin = User(
                email=ADMIN_EMAIL,
                password_hash=get_password_hash(ADMIN_PASSWORD),
                first_name="Admin",
                last_name="User",
            )
            admin.role_assignments.append(UserRoleAssignment(role=AppRole.ADMIN))
            session.add(admin)
            session.commit()
            print("Admin user created")
            print(f"   Email: {ADMIN_EMAIL}")
            print(f"   Password: {ADMIN_PASSWORD}")

        if session.exec(select(Medicine)).first():
            print("Catalog already seeded")
            return

        for data in sample_medicines(date.today()):
            medicine = create_medicine(session, data)
            print(f"   {medicine.name}: {medicine.status.value}")
    except InventoryError as e:
        print(f"Error seeding catalog: {e.message}")
    finally:
        session.close()


if __name__ == "__main__":
    seed_admin()
