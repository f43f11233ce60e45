import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- DATABASE ---
DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost") # In Docker, this will be 'postgres'
DB_PORT = os.getenv("POSTGRES_PORT", "5433")
DB_NAME = os.getenv("POSTGRES_DB", "ecommerce")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)
SQL_ECHO = _env_flag("SQL_ECHO", "false")

# --- AUTH ---
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# --- RATE LIMITS (slowapi syntax) ---
RATE_LIMIT_ENABLED = _env_flag("RATE_LIMIT_ENABLED", "true")
LOGIN_RATE_LIMIT = os.getenv("LOGIN_RATE_LIMIT", "10/minute")
ORDER_RATE_LIMIT = os.getenv("ORDER_RATE_LIMIT", "30/minute")
PAYMENT_RATE_LIMIT = os.getenv("PAYMENT_RATE_LIMIT", "10/minute")

# --- PAYMENT GATEWAY ---
# Empty URL selects the in-process simulated gateway
PAYMENT_GATEWAY_URL = os.getenv("PAYMENT_GATEWAY_URL", "")
PAYMENT_GATEWAY_API_KEY = os.getenv("PAYMENT_GATEWAY_API_KEY", "")
PAYMENT_GATEWAY_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_GATEWAY_TIMEOUT_SECONDS", "10"))

# --- OBSERVABILITY ---
OTEL_ENABLED = _env_flag("OTEL_ENABLED", "true")
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "http://localhost:4317")
METRICS_ENABLED = _env_flag("METRICS_ENABLED", "true")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
