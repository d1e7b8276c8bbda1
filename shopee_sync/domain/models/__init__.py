"""
Domain records persisted by the catalog sync.
"""

from .item import ItemRecord
from .model import ModelRecord

__all__ = ["ItemRecord", "ModelRecord"]
