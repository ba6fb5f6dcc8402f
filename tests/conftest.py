import sys
from pathlib import Path


# engine/, config/, providers/ and api/ are top-level packages imported from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
