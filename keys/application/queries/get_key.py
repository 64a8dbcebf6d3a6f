"""
GetKeyQuery.

Query to fetch a single key record.
"""
from dataclasses import dataclass


@dataclass
class GetKeyQuery:
    """Query for one key."""

    key: str
