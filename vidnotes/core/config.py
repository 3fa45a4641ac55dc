import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# MongoDB configuration
MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
MONGODB_DB_NAME = os.getenv("MONGODB_DB_NAME", "vidnotes")

# Redis configuration
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")

# Study session configuration
STUDY_SESSION_EXPIRY_MINUTES = int(os.getenv("STUDY_SESSION_EXPIRY_MINUTES", "120"))

# Editor configuration
EDITOR_DEBOUNCE_MS = int(os.getenv("EDITOR_DEBOUNCE_MS", "800"))
DEFAULT_FOLDER_COLOR = os.getenv("DEFAULT_FOLDER_COLOR", "#6366f1")
NOTIFICATION_BUFFER_SIZE = int(os.getenv("NOTIFICATION_BUFFER_SIZE", "50"))

# Workspaces idle longer than this are dropped from memory
WORKSPACE_IDLE_MINUTES = int(os.getenv("WORKSPACE_IDLE_MINUTES", "30"))

# Public share links point at the web app
PUBLIC_APP_URL = os.getenv("PUBLIC_APP_URL", "http://localhost:5173").rstrip("/")

# AI gateway configuration (any OpenAI-compatible chat completions endpoint)
AI_BASE_URL = os.getenv("AI_BASE_URL", "https://ai.gateway.lovable.dev/v1")
AI_API_KEY = os.getenv("AI_API_KEY", "")
AI_MODEL = os.getenv("AI_MODEL", "google/gemini-2.5-flash")
AI_MAX_TEXT_LENGTH = int(os.getenv("AI_MAX_TEXT_LENGTH", "10000"))
AI_MAX_CONTEXT_LENGTH = int(os.getenv("AI_MAX_CONTEXT_LENGTH", "5000"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# App configuration
APP_TITLE = "VidNotes API"
APP_VERSION = "1.0"
APP_DESCRIPTION = "FastAPI backend for timestamped YouTube video notes and AI study aids"

# CORS origins
# Note: When allow_credentials=True, you cannot use wildcard "*" for origins
CORS_ORIGINS_ENV = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8080",
    "http://127.0.0.1:5173",
]
# Add any additional origins from environment variable
if CORS_ORIGINS_ENV:
    CORS_ORIGINS.extend([origin.strip() for origin in CORS_ORIGINS_ENV.split(",")])

CORS_CREDENTIALS = True
CORS_METHODS = ["*"]
CORS_HEADERS = ["*"]
