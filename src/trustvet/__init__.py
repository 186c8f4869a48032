"""trustvet: Convert web-of-trust package reviews into a criteria-based audit ledger."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Identifies the tool in every ledger it writes.
_PRODUCT_ID = "trustvet"
