#!/usr/bin/env python
"""Idempotent seed script for demo reference data.

Creates one user per role, miner brands/models, warranty profiles, spare
parts (two of them deliberately below their minimum stock) and customers.

Usage:
    python backend/scripts/seed_demo.py                     # seed normally
    python backend/scripts/seed_demo.py --dry-run           # run logic then rollback (no DB changes)
    python backend/scripts/seed_demo.py --show-users        # print users and roles after seeding
    python backend/scripts/seed_demo.py --token tech1@repairdesk.local   # print a dev access token
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from decimal import Decimal
from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError
from flask_jwt_extended import create_access_token

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from repairdesk import create_app, get_db  # type: ignore
from repairdesk.models.authz import Base, User
from repairdesk.models.customer import Customer
from repairdesk.models.catalog import Brand, MinerModel, WarrantyProfile
from repairdesk.models.part import Part
import repairdesk.models.job  # noqa: F401
import repairdesk.models.audit  # noqa: F401

USERS = [
    ('Administrator', 'admin@repairdesk.local', User.ROLE_ADMIN),
    ('Somchai (Manager)', 'manager@repairdesk.local', User.ROLE_MANAGER),
    ('Somsak (Technician)', 'tech1@repairdesk.local', User.ROLE_TECHNICIAN),
    ('Wichai (Technician)', 'tech2@repairdesk.local', User.ROLE_TECHNICIAN),
    ('Suda (Reception)', 'reception@repairdesk.local', User.ROLE_RECEPTIONIST),
]

MODELS = {
    'Bitmain': [
        ('Antminer S19 Pro', '110 TH/s', '3250W'),
        ('Antminer S19j Pro', '104 TH/s', '3068W'),
        ('Antminer S17 Pro', '53 TH/s', '2094W'),
    ],
    'MicroBT': [
        ('Whatsminer M30S++', '112 TH/s', '3472W'),
        ('Whatsminer M20S', '68 TH/s', '3360W'),
    ],
    'Canaan': [
        ('AvalonMiner 1246', '90 TH/s', '3420W'),
    ],
}

WARRANTIES = [
    ('Warranty 30 days', 30, 'Covers the repaired component'),
    ('Warranty 90 days', 90, 'Covers the repaired component and labour'),
    ('Warranty 180 days (Premium)', 180, 'Full coverage including replacement parts'),
]

# part_number, part_name, stock_qty, min_stock_qty, unit_price
PARTS = [
    ('HB-S19-001', 'Hash Board', 15, 5, '12000'),
    ('CB-S19-001', 'Control Board', 8, 3, '3500'),
    ('PSU-APW12-001', 'Power Supply Unit (PSU)', 20, 8, '5500'),
    ('FAN-120-001', 'Cooling Fan 120mm', 50, 20, '450'),
    ('CABLE-DATA-001', 'Data Cable', 2, 10, '250'),
    ('PASTE-TH-001', 'Thermal Paste', 5, 15, '180'),
    ('HS-ALU-001', 'Heatsink', 25, 10, '850'),
]

CUSTOMERS = [
    ('Somchai Jaidee', '0812345678', 'somchai@example.com'),
    ('Suda Rakdee', '0823456789', 'suda@example.com'),
    ('Crypto Mine Co., Ltd.', '0834567890', None),
]


def ensure_users(session):
    created = 0
    password = os.getenv('SEED_USER_PASSWORD', 'ChangeMe123!')
    for name, email, role in USERS:
        if session.execute(select(User).where(User.email == email)).scalar_one_or_none():
            continue
        user = User(name=name, email=email, role=role)
        user.set_password(password)
        session.add(user)
        created += 1
    return created


def ensure_catalog(session):
    created = 0
    for brand_name, models in MODELS.items():
        brand = session.execute(select(Brand).where(Brand.name == brand_name)).scalar_one_or_none()
        if not brand:
            brand = Brand(name=brand_name)
            session.add(brand)
            session.flush()
            created += 1
        for model_name, hashrate, power in models:
            exists = session.execute(select(MinerModel).where(MinerModel.brand_id == brand.id, MinerModel.model_name == model_name)).scalar_one_or_none()
            if not exists:
                session.add(MinerModel(brand_id=brand.id, model_name=model_name, hashrate=hashrate, power_usage=power))
                created += 1
    for name, days, terms in WARRANTIES:
        if not session.execute(select(WarrantyProfile).where(WarrantyProfile.name == name)).scalar_one_or_none():
            session.add(WarrantyProfile(name=name, duration_days=days, terms=terms))
            created += 1
    return created


def ensure_parts(session):
    created = 0
    for number, name, qty, min_qty, price in PARTS:
        if session.execute(select(Part).where(Part.part_number == number)).scalar_one_or_none():
            continue
        session.add(Part(part_number=number, part_name=name, stock_qty=qty, min_stock_qty=min_qty, unit_price=Decimal(price)))
        created += 1
    return created


def ensure_customers(session):
    created = 0
    for full_name, phone, email in CUSTOMERS:
        if session.execute(select(Customer).where(Customer.phone == phone)).scalar_one_or_none():
            continue
        session.add(Customer(full_name=full_name, phone=phone, email=email))
        created += 1
    return created


def print_users(session):
    users = session.execute(select(User).order_by(User.id)).scalars().all()
    if not users:
        print("[INFO] No users present.")
        return
    width = max(len(u.email) for u in users)
    print(f"{'Email'.ljust(width)} | Role")
    print('-' * (width + 16))
    for u in users:
        print(f"{u.email.ljust(width)} | {u.role}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed repair desk demo data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_demo.py\n  dry run: seed_demo.py --dry-run\n  dev token: seed_demo.py --token admin@repairdesk.local\n""")
    )
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--show-users', action='store_true', help='Print users and roles after seeding')
    p.add_argument('--token', metavar='EMAIL', help='Print an access token for the given seeded user')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM jobs LIMIT 1'))
        except OperationalError:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        counts = {
            'users': ensure_users(session),
            'catalog': ensure_catalog(session),
            'parts': ensure_parts(session),
            'customers': ensure_customers(session),
        }
        summary = ', '.join(f'{k}: {v}' for k, v in counts.items())
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) would create {summary}")
        else:
            session.commit()
            print(f"[DONE] created {summary}")
        if args.show_users:
            print_users(session)
        if args.token:
            user = session.execute(select(User).where(User.email == args.token)).scalar_one_or_none()
            if not user:
                print(f"[ERROR] No user {args.token}")
                sys.exit(2)
            print(create_access_token(identity=str(user.id), additional_claims={'role': user.role}))


if __name__ == '__main__':
    main()
