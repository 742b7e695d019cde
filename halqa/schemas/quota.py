from pydantic import BaseModel, ConfigDict, Field


class QuotaResponse(BaseModel):
    """Quota check result. ``queryFailed`` is never reported as within quota."""

    model_config = ConfigDict(populate_by_name=True)

    handle: str
    within_quota: bool = Field(alias="withinQuota")
    unlimited: bool = False
    posts_remaining: int | None = Field(default=None, alias="postsRemaining")
    post_count: int | None = Field(default=None, alias="postCount")
    max_posts: int | None = Field(default=None, alias="maxPosts")
    query_failed: bool = Field(default=False, alias="queryFailed")
    error: str | None = None
