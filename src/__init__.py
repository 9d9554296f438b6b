"""Label Scan - распознавание заводских табличек бытовой техники (model / serial / product code)."""

import sys
from pathlib import Path

# Корень проекта в sys.path: пакеты config и contracts лежат рядом с src
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
