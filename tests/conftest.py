"""Pytest configuration"""

import sys
from pathlib import Path

# Add project root to path for polysearch imports (without pip install -e .)
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
