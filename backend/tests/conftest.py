import sys
from pathlib import Path


# Ensure `backend/` is on sys.path so tests can import local packages
# like `mapconfig.*`, `renderers.*`, and `geo.*` without an install.
BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

from common.logging import configure_logging  # noqa: E402

configure_logging("DEBUG", fmt="console")
