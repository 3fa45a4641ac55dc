from motor.motor_asyncio import AsyncIOMotorClient
from vidnotes.core.config import MONGODB_URL, MONGODB_DB_NAME

# MongoDB client and database
client = AsyncIOMotorClient(MONGODB_URL, tz_aware=True)
db = client[MONGODB_DB_NAME]

# Collections
notes_collection = db.notes
folders_collection = db.folders
study_sessions_collection = db.study_sessions

# Redis client
import redis.asyncio as redis
from vidnotes.core.config import REDIS_URL
import ssl

# Configure SSL for hosted Redis (rediss:// URLs)
if REDIS_URL.startswith("rediss://"):
    redis_client = redis.from_url(REDIS_URL, decode_responses=True, ssl_cert_reqs=ssl.CERT_NONE)
else:
    redis_client = redis.from_url(REDIS_URL, decode_responses=True)
