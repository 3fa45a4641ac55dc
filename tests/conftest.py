"""Shared test fixtures: in-memory stand-ins for MongoDB, Redis and the AI endpoint."""

import asyncio
import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from vidnotes.services.ai_gateway import AIGateway
from vidnotes.services.cloud_notes import CloudNotes
from vidnotes.services.notifier import Notifier
from vidnotes.services.study_manager import StudySessionManager


def _matches(doc, query):
    return all(doc.get(k) == v for k, v in query.items())


class FakeCursor:
    def __init__(self, docs, latency=0):
        self.docs = docs
        self.latency = latency

    def sort(self, key, direction=1):
        self.docs = sorted(self.docs, key=lambda d: d.get(key), reverse=direction == -1)
        return self

    async def to_list(self, length=None):
        if self.latency:
            await asyncio.sleep(self.latency)
        return [dict(d) for d in self.docs]


class FakeCollection:
    """Just enough of a motor collection for the services under test."""

    def __init__(self):
        self.docs = []
        self.calls = []
        self.fail_on = set()
        self.clock = lambda: datetime.now(timezone.utc)
        self.latency = 0

    def _record(self, op):
        self.calls.append(op)
        if op in self.fail_on:
            raise PyMongoError(f"simulated {op} failure")

    def count(self, op):
        return self.calls.count(op)

    def find(self, query):
        self._record("find")
        return FakeCursor([d for d in self.docs if _matches(d, query)], self.latency)

    async def find_one(self, query):
        self._record("find_one")
        for doc in self.docs:
            if _matches(doc, query):
                return dict(doc)
        return None

    async def insert_one(self, doc):
        self._record("insert_one")
        stored = dict(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    async def find_one_and_update(self, query, update, return_document=None):
        self._record("find_one_and_update")
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(update.get("$set", {}))
                for field, amount in update.get("$inc", {}).items():
                    doc[field] = doc.get(field, 0) + amount
                for field in update.get("$currentDate", {}):
                    doc[field] = self.clock()
                return dict(doc)
        return None

    async def delete_one(self, query):
        self._record("delete_one")
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeRedis:
    """Hash and key commands used by the study session manager."""

    def __init__(self):
        self.hashes = {}
        self.expiries = {}

    async def hset(self, key, field=None, value=None, mapping=None):
        h = self.hashes.setdefault(key, {})
        if mapping:
            h.update({k: str(v) for k, v in mapping.items()})
        if field is not None:
            h[field] = str(value)
        return 1

    async def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def expire(self, key, seconds):
        self.expiries[key] = seconds
        return True

    async def delete(self, *keys):
        count = 0
        for key in keys:
            if self.hashes.pop(key, None) is not None:
                count += 1
        return count


class FakeCompletions:
    def __init__(self):
        self.responses = []
        self.requests = []
        self.error = None
        self.before_return = None

    async def create(self, model, messages):
        self.requests.append({"model": model, "messages": messages})
        if self.error is not None:
            raise self.error
        if self.before_return is not None:
            await self.before_return()
        content = self.responses.pop(0) if self.responses else ""
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAI:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)

    def reply_with(self, *contents):
        self.completions.responses.extend(contents)

    def reply_json(self, data):
        self.reply_with(json.dumps(data))


FLASHCARDS = [
    {"question": "What is a closure?", "answer": "A function with captured scope"},
    {"question": "What is a generator?", "answer": "A lazy iterator"},
    {"question": "What does GIL stand for?", "answer": "Global Interpreter Lock"},
]

QUIZ = [
    {"question": "2 + 2?", "options": ["3", "4", "5", "6"], "answer": "4"},
    {"question": "Capital of France?", "options": ["Paris", "Rome", "Oslo", "Bern"], "answer": "Paris"},
]


@pytest.fixture
def notes_collection():
    return FakeCollection()


@pytest.fixture
def folders_collection():
    return FakeCollection()


@pytest.fixture
def notifier():
    return Notifier("user-1")


@pytest.fixture
def cloud(notifier, notes_collection, folders_collection):
    return CloudNotes("user-1", notifier, notes_collection, folders_collection)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_ai():
    return FakeOpenAI()


@pytest.fixture
def gateway(fake_ai):
    return AIGateway(client=fake_ai, model="test-model")


@pytest.fixture
def study_manager(fake_redis, gateway):
    return StudySessionManager(redis=fake_redis, gateway=gateway)
