"""Cache warming request and response models."""

from pydantic import BaseModel, ConfigDict, Field

from halqa.schemas.sync import SecretBody


class WarmCacheRequest(SecretBody):
    paths: list[str] = Field(default_factory=list)
    origin: str | None = None
    max_retries: int | None = Field(default=None, ge=0, le=5, alias="maxRetries")
    concurrent: int | None = Field(default=None, ge=1, le=20)


class ReliableWarmRequest(SecretBody):
    paths: list[str] = Field(default_factory=list)


class WarmResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str
    success: bool
    attempts: int
    status: int = 0
    time_ms: int = Field(default=0, alias="timeMs")
    error: str | None = None


class WarmDiagnosticRequest(SecretBody):
    paths: list[str] = Field(default_factory=list)


class WarmingEntryResponse(BaseModel):
    id: str
    timestamp: str
    paths: list[str]
    status: str
