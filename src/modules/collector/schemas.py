"""Pydantic schemas for the collector API."""

from pydantic import BaseModel

from src.modules.collector.user_sync import UserSyncResult


class DatadogServiceResponse(BaseModel):
    service_name: str


class UserSyncResponse(BaseModel):
    """Outcome of mirroring organization members."""

    created: int
    updated: int
    deactivated: int

    @classmethod
    def from_result(cls, result: UserSyncResult) -> "UserSyncResponse":
        return cls(
            created=result.created,
            updated=result.updated,
            deactivated=result.deactivated,
        )
