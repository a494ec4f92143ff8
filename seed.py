"""
Seed script -- populates the database with sample data for reviewers.

Run once against an empty database:
    python seed.py

Creates:
  - 1 admin and 6 customer accounts
  - 10 sample vehicles with daily rates, insurance and long-term discounts
"""

import asyncio

from rental_engine.config import settings
from rental_engine.domain.entities import AdminAccount, CustomerAccount, Vehicle
from rental_engine.domain.enums import FuelType, VehicleType
from rental_engine.infrastructure.database import (
    create_engine,
    create_session_factory,
    init_db,
)
from rental_engine.infrastructure.store import SqlSnapshotStore

ACCOUNTS = [
    AdminAccount("admin", "Fleet Administrator", "admin@rental.example.com"),
    CustomerAccount("aisyah", "Nur Aisyah Rahman", "aisyah@example.com"),
    CustomerAccount("weiming", "Tan Wei Ming", "weiming@example.com"),
    CustomerAccount("arjun", "Arjun Kumar", "arjun@example.com"),
    CustomerAccount("farah", "Farah Hassan", "farah@example.com"),
    CustomerAccount("jiahui", "Lim Jia Hui", "jiahui@example.com"),
    CustomerAccount("daniel", "Daniel Wong", "daniel@example.com"),
]

STANDARD_TIERS = {7: 0.10, 30: 0.20}

VEHICLES = [
    # Compact city cars
    {"plate_no": "WXY1234", "brand": "Perodua", "model": "Myvi", "vehicle_type": VehicleType.HATCHBACK, "color": "Red", "year": 2022, "daily_rate": 90.0, "insurance_rate": 0.05},
    {"plate_no": "WXY2345", "brand": "Perodua", "model": "Axia", "vehicle_type": VehicleType.HATCHBACK, "color": "White", "year": 2023, "daily_rate": 70.0, "insurance_rate": 0.05},
    {"plate_no": "BKV3456", "brand": "Proton", "model": "Saga", "vehicle_type": VehicleType.SEDAN, "color": "Silver", "year": 2021, "daily_rate": 80.0, "insurance_rate": 0.05},
    # Sedans
    {"plate_no": "BKV4567", "brand": "Honda", "model": "City", "vehicle_type": VehicleType.SEDAN, "color": "Grey", "year": 2023, "daily_rate": 140.0, "insurance_rate": 0.06},
    {"plate_no": "VFD5678", "brand": "Toyota", "model": "Vios", "vehicle_type": VehicleType.SEDAN, "color": "Black", "year": 2022, "daily_rate": 130.0, "insurance_rate": 0.06},
    {"plate_no": "VFD6789", "brand": "Toyota", "model": "Camry", "vehicle_type": VehicleType.SEDAN, "fuel_type": FuelType.HYBRID, "color": "White", "year": 2024, "daily_rate": 260.0, "insurance_rate": 0.08},
    # SUVs and MPVs
    {"plate_no": "JQR7890", "brand": "Proton", "model": "X70", "vehicle_type": VehicleType.SUV, "color": "Blue", "year": 2023, "daily_rate": 180.0, "insurance_rate": 0.07},
    {"plate_no": "JQR8901", "brand": "Perodua", "model": "Alza", "vehicle_type": VehicleType.MPV, "color": "Silver", "year": 2023, "daily_rate": 150.0, "insurance_rate": 0.06},
    # Utility
    {"plate_no": "PNB9012", "brand": "Toyota", "model": "Hilux", "vehicle_type": VehicleType.PICKUP, "fuel_type": FuelType.DIESEL, "color": "White", "year": 2021, "daily_rate": 220.0, "insurance_rate": 0.08},
    {"plate_no": "PNB0123", "brand": "BYD", "model": "Atto 3", "vehicle_type": VehicleType.SUV, "fuel_type": FuelType.ELECTRIC, "color": "Green", "year": 2024, "daily_rate": 240.0, "insurance_rate": 0.07},
]


async def seed():
    engine = create_engine(settings.database_url)
    await init_db(engine)
    store = SqlSnapshotStore(create_session_factory(engine))

    try:
        # Check if already seeded
        if await store.load_vehicles():
            print("Database already seeded. Skipping.")
            return

        # ── Accounts ──────────────────────────────────────────────────
        for account in ACCOUNTS:
            outcome = await store.save_account(account)
            if not outcome.ok:
                raise SystemExit(f"Seeding accounts failed: {outcome.detail}")
        print(f"  Created {len(ACCOUNTS)} accounts")

        # ── Vehicles ──────────────────────────────────────────────────
        vehicles = [
            Vehicle(id=i, discount_tiers=dict(STANDARD_TIERS), **v)
            for i, v in enumerate(VEHICLES, start=1)
        ]
        outcome = await store.save_vehicles(vehicles)
        if not outcome.ok:
            raise SystemExit(f"Seeding vehicles failed: {outcome.detail}")
        print(f"  Created {len(vehicles)} vehicles")

        print("\nSeed complete!")
    finally:
        await engine.dispose()


async def main():
    print("Seeding database...")
    await seed()


if __name__ == "__main__":
    asyncio.run(main())
