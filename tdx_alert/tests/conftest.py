import sys
from pathlib import Path

# Ensure repository root is available so tests can import tdx_alert.src.*
REPO_ROOT = Path(__file__).resolve().parents[2]
if str(REPO_ROOT) not in sys.path:
    sys.path.append(str(REPO_ROOT))
