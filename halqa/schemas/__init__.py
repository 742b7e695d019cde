from halqa.schemas.author import (
    AuthorCredentials,
    AuthorPublic,
    AuthorRequestResponse,
    AuthorResponse,
    AuthorTokenRequest,
    JoinRequestCreate,
    JoinToggle,
    ListingStatusUpdate,
    RoleUpdate,
    VisibilityUpdate,
)
from halqa.schemas.comment import CommentCreate, CommentResponse
from halqa.schemas.health import ComponentStatus, HealthCheckResponse
from halqa.schemas.media import (
    BlobBatchDeleteRequest,
    BlobDeleteRequest,
    ImageDeleteRequest,
)
from halqa.schemas.post import PostCreate, PostResponse, PostUpdate, dump_post
from halqa.schemas.quota import QuotaResponse
from halqa.schemas.sync import (
    AuthorAuthenticateRequest,
    AuthorPreferencesRequest,
    AuthorRevalidateRequest,
    AuthorSyncRequest,
    PreferencesUpdateRequest,
    RevalidatePostRequest,
    RevalidateRequest,
    SecretBody,
    SettingsSaveRequest,
    SyncContentRequest,
    SyncStats,
)
from halqa.schemas.warming import (
    ReliableWarmRequest,
    WarmCacheRequest,
    WarmDiagnosticRequest,
    WarmingEntryResponse,
    WarmResult,
)

__all__ = [
    "AuthorAuthenticateRequest",
    "AuthorCredentials",
    "AuthorPreferencesRequest",
    "AuthorPublic",
    "AuthorRequestResponse",
    "AuthorResponse",
    "AuthorRevalidateRequest",
    "AuthorSyncRequest",
    "AuthorTokenRequest",
    "BlobBatchDeleteRequest",
    "BlobDeleteRequest",
    "CommentCreate",
    "CommentResponse",
    "ComponentStatus",
    "HealthCheckResponse",
    "ImageDeleteRequest",
    "JoinRequestCreate",
    "JoinToggle",
    "ListingStatusUpdate",
    "PostCreate",
    "PostResponse",
    "PostUpdate",
    "PreferencesUpdateRequest",
    "QuotaResponse",
    "ReliableWarmRequest",
    "RevalidatePostRequest",
    "RevalidateRequest",
    "RoleUpdate",
    "SecretBody",
    "SettingsSaveRequest",
    "SyncContentRequest",
    "SyncStats",
    "VisibilityUpdate",
    "WarmCacheRequest",
    "WarmDiagnosticRequest",
    "WarmResult",
    "WarmingEntryResponse",
    "dump_post",
]
