import os
from urllib.parse import quote_plus
from dotenv import load_dotenv

load_dotenv()

# ---------- Database ----------
DB_USER = os.getenv("DB_USER", "")
DB_PASS = os.getenv("DB_PASS", "")
DB_HOST = os.getenv("DB_HOST", "cluster0.czfhh.mongodb.net")
DB_NAME = os.getenv("DB_NAME", "bookDB")
DB_RETRY_ATTEMPTS = int(os.getenv("DB_RETRY_ATTEMPTS", "2"))
DB_RETRY_DELAY = float(os.getenv("DB_RETRY_DELAY", "0.2"))


def build_mongo_url():
    """MONGO_URL wins; otherwise assemble an Atlas SRV string from the credentials."""
    url = os.getenv("MONGO_URL")
    if url:
        return url
    return (
        f"mongodb+srv://{quote_plus(DB_USER)}:{quote_plus(DB_PASS)}@{DB_HOST}/"
        "?retryWrites=true&w=majority&appName=Cluster0"
    )


MONGO_URL = build_mongo_url()

# ---------- Session ----------
ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "supersecretkey")  # set in .env for real deployments
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_HOURS = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "5"))
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() in ("1", "true", "yes")

# ---------- Server ----------
PORT = int(os.getenv("PORT", "5000"))
# comma-separated
ORIGINS = [o.strip() for o in os.getenv("ORIGINS", "http://localhost:5173").split(",") if o.strip()]

# ---------- Logging ----------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "console")
