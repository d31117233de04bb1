"""pytest fixtures: MongoDB en memoria (mongomock), servicios y cliente HTTP."""
from __future__ import annotations

import os

os.environ.setdefault("JWT_SECRET", "tests-secret-key-with-at-least-32-bytes")

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from evcharge.application import create_app
from evcharge.auth.security import hash_password, make_access_token, make_admin_token
from evcharge.database.repositories import Repositories
from evcharge.services.booking import BookingService

PASSWORD = "Password1!"


class FakeBlobStore:
    def __init__(self):
        self.uploads = []
        self.discarded = []

    def upload(self, image) -> str:
        self.uploads.append(image)
        return f"https://blobs.example.com/images/{image.filename}"

    def discard(self, url: str) -> None:
        self.discarded.append(url)


@pytest.fixture()
def db():
    return mongomock.MongoClient()["ev_booking_tests"]


@pytest.fixture()
def repos(db) -> Repositories:
    return Repositories(db)


@pytest.fixture()
def booking(repos: Repositories) -> BookingService:
    return BookingService(repos.users, repos.stations, repos.appointments)


@pytest.fixture()
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture()
def client(db, blob_store):
    app = create_app(database=db, blob_store=blob_store)
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(PASSWORD)


@pytest.fixture()
def user(repos: Repositories, password_hash: str) -> dict:
    return repos.users.create(name="Ana Driver", email="ana@example.com", password_hash=password_hash)


@pytest.fixture()
def other_user(repos: Repositories, password_hash: str) -> dict:
    return repos.users.create(name="Bruno Driver", email="bruno@example.com", password_hash=password_hash)


@pytest.fixture()
def user_id(user: dict) -> str:
    return str(user["_id"])


@pytest.fixture()
def user_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_access_token(user_id)}"}


@pytest.fixture()
def admin_headers() -> dict:
    return {"Authorization": f"Bearer {make_admin_token('admin@example.com')}"}


@pytest.fixture()
def station_data() -> dict:
    return {
        "_id": "S1",
        "name": "Acme",
        "location": "Main St",
        "image": "url",
        "brand": "Tesla",
        "pricing_per_kWh": 0.35,
    }


@pytest.fixture()
def find_appointment(db):
    def _find(appointment_id: str):
        return db["appointments"].find_one({"_id": ObjectId(appointment_id)})

    return _find
