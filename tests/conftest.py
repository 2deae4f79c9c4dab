import os


os.environ.setdefault("FLASK_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("INVENTORY_ENCRYPTION_KEY", "sqlfleet-test-key-0123456789abcd")
