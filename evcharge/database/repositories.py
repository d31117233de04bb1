"""Repositorios sobre las colecciones de MongoDB (usuarios, estaciones, citas)."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_object_id(value: str) -> Optional[ObjectId]:
    """ObjectId a partir de un string; None si no tiene formato válido."""
    if not value:
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class UserRepository:
    """Identity store: colección `users`."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def find_by_id(self, user_id: str, projection: dict | None = None) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid}, projection)

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email.lower().strip()})

    def create(self, name: str, email: str, password_hash: str) -> dict:
        doc = {
            "name": name,
            "email": email.lower().strip(),
            "password_hash": password_hash,
            "created_at": utcnow(),
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def update_profile(self, user_id: str, fields: Dict[str, Any]) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": fields},
            projection={"password_hash": 0},
            return_document=ReturnDocument.AFTER,
        )

    def count(self) -> int:
        return self.collection.count_documents({})

    def ensure_indexes(self) -> None:
        self.collection.create_index("email", unique=True)


class StationRepository:
    """Station directory: colección `stations`. El flujo de reservas sólo lee."""

    PUBLIC_PROJECTION = {"password_hash": 0, "email": 0}
    ADMIN_PROJECTION = {"password_hash": 0}

    def __init__(self, collection: Collection):
        self.collection = collection

    def find_by_email(self, email: str) -> Optional[dict]:
        return self.collection.find_one({"email": email.lower().strip()})

    def create(self, doc: dict) -> dict:
        doc = dict(doc)
        doc["email"] = doc["email"].lower().strip()
        doc.setdefault("date", utcnow())
        doc.setdefault("slots_booked", {})
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def list(self, projection: dict | None = None) -> List[dict]:
        return list(self.collection.find({}, projection or self.PUBLIC_PROJECTION))

    def count(self) -> int:
        return self.collection.count_documents({})

    def ensure_indexes(self) -> None:
        self.collection.create_index("email", unique=True)


class AppointmentRepository:
    """Booking ledger: colección `appointments`."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def insert(self, doc: dict) -> dict:
        doc = dict(doc)
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return doc

    def find_by_user(self, user_id: str) -> List[dict]:
        return list(self.collection.find({"userId": user_id}))

    def find_all(self) -> List[dict]:
        return list(self.collection.find({}))

    def delete_owned(self, appointment_id: str, user_id: str) -> Optional[dict]:
        """Borrado atómico: sólo si el id existe Y pertenece al usuario."""
        oid = to_object_id(appointment_id)
        if oid is None:
            return None
        return self.collection.find_one_and_delete({"_id": oid, "userId": user_id})

    def mark_cancelled(self, appointment_id: str) -> Optional[dict]:
        oid = to_object_id(appointment_id)
        if oid is None:
            return None
        return self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {"isCancelled": True}},
            return_document=ReturnDocument.AFTER,
        )

    def latest(self, limit: int = 5) -> List[dict]:
        cursor = self.collection.find({}).sort([("createdAt", DESCENDING), ("_id", DESCENDING)]).limit(limit)
        return list(cursor)

    def count(self) -> int:
        return self.collection.count_documents({})

    def ensure_indexes(self) -> None:
        self.collection.create_index([("userId", ASCENDING)])
        self.collection.create_index([("createdAt", DESCENDING)])


class Repositories:
    """Agrupa los repositorios construidos sobre una misma base de datos."""

    def __init__(self, db: Database):
        self.db = db
        self.users = UserRepository(db["users"])
        self.stations = StationRepository(db["stations"])
        self.appointments = AppointmentRepository(db["appointments"])

    def ensure_indexes(self) -> None:
        self.users.ensure_indexes()
        self.stations.ensure_indexes()
        self.appointments.ensure_indexes()
