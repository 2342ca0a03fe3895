import os

from dotenv import load_dotenv

# Load .env from the working directory so local settings are picked up
load_dotenv()

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # json | sqlite | mongo
    STORE_BACKEND = os.environ.get("STORE_BACKEND", "sqlite")
    DATA_DIR = os.environ.get("DATA_DIR", os.path.join(_PROJECT_ROOT, "data"))
    SQLITE_PATH = os.environ.get("SQLITE_PATH", os.path.join(DATA_DIR, "todos.db"))

    MONGO_URI = os.environ.get("MONGO_URI", "mongodb://localhost:27017/?directConnection=true")
    MONGO_DB_NAME = os.environ.get("MONGO_DB_NAME", "todos")

    STATIC_DIR = os.environ.get("STATIC_DIR", os.path.join(_PROJECT_ROOT, "frontend"))

    # Passed straight to werkzeug.security.generate_password_hash
    PASSWORD_HASH_METHOD = os.environ.get("PASSWORD_HASH_METHOD", "scrypt")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE") or None

    HOST = os.environ.get("HOST", "localhost")
    PORT = int(os.environ.get("PORT", "3000"))
    DEBUG = os.environ.get("FLASK_DEBUG", "0") == "1"
    JSON_SORT_KEYS = False
