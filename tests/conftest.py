import os
import sys

import pytest

# Ensure project root and the src/ layout are on sys.path
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
SRC = os.path.join(ROOT, 'src')
for path in (ROOT, SRC):
    if path not in sys.path:
        sys.path.insert(0, path)

from tests.helpers import build_table  # noqa: E402


@pytest.fixture
def abcd():
    """Document, table and rows for a plain A/B/C/D table."""
    return build_table()
