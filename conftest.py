# conftest.py  (at repo root)
# Make `import dietplanner` work from any rootdir and point the app at an
# in-memory database before dietplanner.config is imported.
import os
import sys, pathlib

ROOT = pathlib.Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ["DATABASE_URI"] = "sqlite://"
os.environ["APP_ENV"] = "test"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["RATELIMIT_STORAGE_URI"] = "memory://"
