"""Root conftest — shared test configuration."""

import os
import tempfile

# Never touch a real database or the real temp directory from tests
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault(
    "TEMP_UPLOADS_DIR",
    os.path.join(tempfile.gettempdir(), "storefront-test-temp"),
)
os.environ.setdefault("LOG_FORMAT", "text")
