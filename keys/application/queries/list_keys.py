"""
ListKeysQuery.

Query to list key records.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class ListKeysQuery:
    """Query to list keys, optionally filtered."""

    banned: Optional[bool] = None
    bound: Optional[bool] = None
