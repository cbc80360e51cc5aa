from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SyncStatusResponse(BaseModel):
    """
    Public view of a sync domain's tracker row.
    """

    model_config = ConfigDict(populate_by_name=True)

    last_sync_at: Optional[datetime] = Field(
        None, alias="lastSyncAt", description="Set when a run reaches success or error"
    )
    status: str = Field(..., description="never, running, success or error")
    last_error: Optional[str] = Field(None, alias="lastError")
    bookings_count: int = Field(0, alias="bookingsCount")
    listings_count: int = Field(0, alias="listingsCount")
    properties_count: int = Field(0, alias="propertiesCount")
    duration_ms: Optional[int] = Field(None, alias="durationMs")


class SyncTriggerResponse(BaseModel):
    """
    Acknowledgement returned when a manual sync has been queued.
    """

    message: str
    timestamp: datetime


class SyncResult(BaseModel):
    """
    Outcome of one pipeline run, returned by the sync services and the CLI.
    """

    sync_type: str
    status: str = Field(..., description="success, error or skipped")
    bookings_count: int = 0
    listings_count: int = 0
    properties_count: int = 0
    enriched_count: int = 0
    duration_ms: int = 0
    error: Optional[str] = None
