from enum import Enum


class SnapshotSource(str, Enum):
    """Which data-source strategy produced a snapshot."""

    API = "api"
    SCRAPE = "scrape"
