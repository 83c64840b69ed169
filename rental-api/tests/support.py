import os
import sys
import tempfile
import unittest
import uuid
from pathlib import Path

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "x" * 48)
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("CHAT_POLL_INTERVAL_SECONDS", "0.05")

APP_DIR = Path(__file__).resolve().parents[1]
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core.db import Base, SCHEMA
from app.deps import get_db, get_session_factory
from app.models.user import UserRole

TERMS_TEXT = (
    "IMPORTANT NOTICE - CLAN ITEM SAFETY\n"
    "Any attempt to steal, defraud or refuse to return a rented item is a serious violation."
)


def make_engine(path=None):
    if path:
        # Separate connections per session, for tests that talk to the app from two threads
        engine = create_engine(f"sqlite+pysqlite:///{path}", connect_args={"check_same_thread": False})
    else:
        engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    engine = engine.execution_options(schema_translate_map={SCHEMA: None})
    Base.metadata.create_all(bind=engine)
    return engine


class ApiTestCase(unittest.TestCase):
    database_file = False

    def setUp(self):
        self.db_path = None
        if self.database_file:
            fd, self.db_path = tempfile.mkstemp(suffix=".db")
            os.close(fd)
        self.engine = make_engine(self.db_path)
        self.Session = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

        def _override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = _override_get_db
        app.dependency_overrides[get_session_factory] = lambda: self.Session
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.engine.dispose()
        if self.db_path:
            os.remove(self.db_path)

    # ----- accounts -----

    def register(self, nickname, email=None, password="correct-horse-battery", game_id="4242"):
        return self.client.post(
            "/auth/register",
            json={
                "email": email or f"{nickname.lower()}@valcrest.gg",
                "password": password,
                "game_nickname": nickname,
                "game_id": game_id,
            },
        )

    def login(self, email, password="correct-horse-battery"):
        response = self.client.post("/auth/login", json={"email": email, "password": password})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["access_token"]

    def promote(self, user_id):
        with self.Session() as db:
            db.get(UserRole, uuid.UUID(str(user_id))).role = "admin"
            db.commit()

    def signup(self, nickname, admin=False):
        response = self.register(nickname)
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        if admin:
            self.promote(body["id"])
        token = self.login(body["email"])
        return body["id"], {"Authorization": f"Bearer {token}"}

    # ----- catalog -----

    def create_item(self, headers, **overrides):
        payload = {
            "name": "Vortex Rifle",
            "category": "Weapons",
            "market_rate": 100_000,
            "quantity": 5,
        }
        payload.update(overrides)
        response = self.client.post("/items", json=payload, headers=headers)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def get_item(self, item_id):
        response = self.client.get(f"/items/{item_id}")
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    # ----- rentals -----

    def request_rental(self, headers, lines, **overrides):
        payload = {
            "items": [{"item_id": item_id, "quantity": qty} for item_id, qty in lines],
            "payment_method": "cash",
            "rental_days": 3,
            "delivery_location": "Camp Valcrest",
            "terms_accepted": True,
            "terms_text": TERMS_TEXT,
        }
        payload.update(overrides)
        return self.client.post("/rentals", json=payload, headers=headers)

    def rent(self, headers, lines, **overrides):
        response = self.request_rental(headers, lines, **overrides)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def assert_stock_invariant(self, item_id):
        item = self.get_item(item_id)
        self.assertGreaterEqual(item["available_quantity"], 0)
        self.assertLessEqual(item["available_quantity"], item["quantity"])
        return item
