import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
TESTS = Path(__file__).resolve().parent

# Make the project sources and the shared test doubles importable without an
# editable install.
for entry in (SRC, TESTS):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))
