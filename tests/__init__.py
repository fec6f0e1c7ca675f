import os

# Settings are read once at import; point them at a throwaway database before any app module loads.
os.environ.setdefault("DATABASE_URL", ":memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("SCHEDULER_ENABLED", "0")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOCAL_TZ", "UTC")
