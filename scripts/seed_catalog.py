"""
Seed the rental catalog with categories and a starter set of items.
Rates are derived from the market rate the same way the API does it.

Run from the project root: python scripts/seed_catalog.py
"""
import os
import sys
import uuid

# Add the API directory to path for the pricing rules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'rental-api'))

import psycopg2
from psycopg2.extras import execute_values

from app.services.pricing import derive_rates

DB_CONFIG = {
    'host': os.getenv('DB_HOST', 'localhost'),
    'port': int(os.getenv('DB_PORT', '5432')),
    'database': os.getenv('DB_NAME', 'rental'),
    'user': os.getenv('DB_USER', 'rental'),
    'password': os.getenv('DB_PASSWORD', 'rental'),
}

CATEGORIES = ['Weapons', 'Armor', 'Backpacks', 'Medical', 'Tools']

# Format: (name, category, market_rate, quantity)
STARTER_ITEMS = [
    # === WEAPONS ===
    ('Vortex Rifle', 'Weapons', 100_000, 5),
    ('Kestrel SMG', 'Weapons', 45_000, 4),
    ('Longshot DMR', 'Weapons', 180_000, 2),

    # === ARMOR ===
    ('Plated Vest', 'Armor', 60_000, 6),
    ('Scout Helmet', 'Armor', 30_000, 8),

    # === BACKPACKS ===
    ('Field Pack', 'Backpacks', 25_000, 10),
    ('Hauler Frame', 'Backpacks', 70_000, 3),

    # === MEDICAL ===
    ('Trauma Kit', 'Medical', 12_000, 15),

    # === TOOLS ===
    ('Breach Charge', 'Tools', 20_000, 6),
    ('Signal Scanner', 'Tools', 55_000, 2),
]


def seed_catalog():
    print("Connecting to database...")
    conn = psycopg2.connect(**DB_CONFIG)
    cur = conn.cursor()

    try:
        # Category names are not constrained unique in the table
        cur.execute("SELECT name FROM rental.categories")
        known = {row[0] for row in cur.fetchall()}
        missing = [name for name in CATEGORIES if name not in known]
        if missing:
            execute_values(cur, """
                INSERT INTO rental.categories (id, name, created_at)
                VALUES %s
            """, [(str(uuid.uuid4()), name) for name in missing], template="(%s, %s, NOW())")
        print(f"Categories added: {len(missing)}")

        cur.execute("SELECT name FROM rental.items")
        existing = {row[0] for row in cur.fetchall()}

        rows = []
        for name, category, market_rate, quantity in STARTER_ITEMS:
            if name in existing:
                print(f"  skip {name} (already in catalog)")
                continue
            daily, weekly, collateral = derive_rates(market_rate)
            rows.append((
                str(uuid.uuid4()), name, category, 'available',
                market_rate, daily, weekly, collateral,
                quantity, quantity,
            ))

        if rows:
            execute_values(cur, """
                INSERT INTO rental.items (
                    id, name, category, availability,
                    market_rate, daily_rate, weekly_rate, required_collateral,
                    quantity, available_quantity, created_at, updated_at
                ) VALUES %s
            """, rows, template="(%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, NOW(), NOW())")

        conn.commit()
        print(f"Inserted {len(rows)} item(s)")
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


if __name__ == "__main__":
    seed_catalog()
