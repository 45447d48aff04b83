from datetime import timedelta

import bcrypt
import mongomock
import pytest
from fastapi.testclient import TestClient
from mongomock.store import ServerStore
from mongomock_motor import AsyncMongoMockClient

from config import DATABASE_NAME
from database import mongodb
from dependencies import get_media_service
from main import app
from models.assignment import FileReference
from services.media import MediaService, MediaServiceError
from utils.dates import utcnow

PASSWORD = "password123"


class FakeMediaService(MediaService):
    """Media delegate that never leaves the process; filenames containing 'fail' error out."""

    def __init__(self):
        self.uploaded = []
        self.deleted = []

    async def upload(self, item, resource_type="auto"):
        if "fail" in item.filename:
            raise MediaServiceError(f"upload of {item.filename} refused")
        self.uploaded.append((item.filename, resource_type))
        stem, _, ext = item.filename.rpartition(".")
        return FileReference(
            url=f"https://res.example.com/{item.filename}",
            public_id=f"submissions/{stem}",
            format=ext,
            resource_type="image" if item.is_image else "raw",
        )

    async def delete(self, public_id, resource_type=None):
        self.deleted.append((public_id, resource_type or "image"))
        return {"result": "ok"}


@pytest.fixture()
def raw_db():
    """A fresh in-memory database for each test, installed as the app's Mongo client."""
    # Motor-shaped client for the app and a plain one for assertions, over one store
    store = ServerStore()
    mongodb.client = AsyncMongoMockClient(_store=store)
    mongo_client = mongomock.MongoClient(_store=store)
    yield mongo_client[DATABASE_NAME]
    mongodb.client = None


@pytest.fixture()
def media():
    return FakeMediaService()


@pytest.fixture()
def client(raw_db, media):
    app.dependency_overrides[get_media_service] = lambda: media
    # Shutdown clears mongodb.client; restore it for raw_db teardown
    mock_client = mongodb.client
    with TestClient(app) as c:
        yield c
    mongodb.client = mock_client
    app.dependency_overrides.clear()


def _insert_user(raw_db, username, role):
    # Low bcrypt cost keeps the suite fast; verification works at any cost
    hashed = bcrypt.hashpw(PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")
    result = raw_db.users.insert_one({
        "username": username,
        "email": f"{username}@example.com",
        "password": hashed,
        "role": role,
        "createdAt": utcnow(),
    })
    return str(result.inserted_id)


@pytest.fixture()
def users(raw_db):
    """Seed one admin and two regular users; returns their ids by name."""
    return {
        "admin": _insert_user(raw_db, "admin1", "admin"),
        "u1": _insert_user(raw_db, "student1", "user"),
        "u2": _insert_user(raw_db, "student2", "user"),
    }


def assignment_payload(admin_id, assigned_to, deadline=None, **overrides):
    deadline = deadline or utcnow() + timedelta(days=1)
    payload = {
        "userId": admin_id,
        "title": "Normalisasi Basis Data",
        "description": "Kerjakan soal 1-5",
        "subject": "Sistem Basis Data",
        "day": "Senin",
        "startTime": "08:00",
        "endTime": "10:00",
        "deadline": deadline.isoformat(),
        "assignedTo": assigned_to,
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def create_assignment(client, users):
    def _create(assigned_to=None, deadline=None, **overrides):
        if assigned_to is None:
            assigned_to = [users["u1"], users["u2"]]
        r = client.post(
            "/api/assignments",
            json=assignment_payload(users["admin"], assigned_to, deadline, **overrides),
        )
        assert r.status_code == 201, r.text
        return r.json()["assignment"]

    return _create
