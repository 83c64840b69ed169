"""
Grant or revoke the admin role for a clan member, straight in PostgreSQL.
Bootstraps the first admin, since role changes over the API need one.

Run from the project root: python scripts/promote_admin.py <nickname> [user|admin]
"""
import os
import sys

import psycopg2

DB_CONFIG = {
    'host': os.getenv('DB_HOST', 'localhost'),
    'port': int(os.getenv('DB_PORT', '5432')),
    'database': os.getenv('DB_NAME', 'rental'),
    'user': os.getenv('DB_USER', 'rental'),
    'password': os.getenv('DB_PASSWORD', 'rental'),
}

ROLES = ('user', 'admin')


def set_role(nickname, role):
    nickname = nickname.strip().lower()

    print("Connecting to database...")
    conn = psycopg2.connect(**DB_CONFIG)
    cur = conn.cursor()

    try:
        cur.execute("SELECT user_id FROM rental.nicknames WHERE nickname = %s", (nickname,))
        row = cur.fetchone()
        if not row:
            print(f"No account uses the nickname '{nickname}'")
            return False

        user_id = row[0]
        cur.execute("""
            INSERT INTO rental.user_roles (user_id, role, created_at)
            VALUES (%s, %s, NOW())
            ON CONFLICT (user_id) DO UPDATE SET role = EXCLUDED.role
        """, (user_id, role))
        conn.commit()
        print(f"{nickname} ({user_id}) is now '{role}'")
        return True
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    role = sys.argv[2] if len(sys.argv) > 2 else 'admin'
    if role not in ROLES:
        print(f"Role must be one of {', '.join(ROLES)}")
        sys.exit(1)

    sys.exit(0 if set_role(sys.argv[1], role) else 1)
