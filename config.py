import os
import tempfile
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

STRIKE_FRAMEWORK = os.getenv("STRIKE_FRAMEWORK", "Express")
STRIKE_DESCRIPTION = os.getenv("STRIKE_DESCRIPTION")
CACHE_DIR = Path(os.getenv("STRIKE_CACHE_DIR") or Path(tempfile.gettempdir()) / "strike_cache")
FETCH_TIMEOUT_MS = int(os.getenv("STRIKE_FETCH_TIMEOUT_MS", "15000"))
LOG_LEVEL = os.getenv("STRIKE_LOG_LEVEL", "INFO")
