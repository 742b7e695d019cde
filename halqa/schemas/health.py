from pydantic import BaseModel, ConfigDict, Field


class ComponentStatus(BaseModel):
    status: str = Field(description="pass or fail")
    response_ms: int | None = None
    backend: str | None = None


class HealthCheckResponse(BaseModel):
    """Health check response model."""

    model_config = ConfigDict(ser_json_timedelta="iso8601", ser_json_bytes="utf8")

    version: str = Field(description="API version")
    status: str = Field(description="Overall health status")
    timestamp: str = Field(description="Current timestamp")
    checks: dict[str, ComponentStatus] = Field(description="Status of dependencies")
