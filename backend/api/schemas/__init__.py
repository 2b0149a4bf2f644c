"""
API request and response schemas.
"""

from .admin import (
    AdminProfileUpdateRequest,
    AdminUserCreateRequest,
    AdminUserDetailResponse,
    AdminUserListResponse,
    AdminUserResponse,
    MergeUsersRequest,
    MergeUsersResponse,
    TempPasswordResponse,
    TierUpdateRequest,
)
from .contact import ContactRequest, ContactResponse
from .content import (
    ArticleCreatedResponse,
    ArticleCreateRequest,
    ArticleListItemResponse,
    ArticleListResponse,
    ArticleResponse,
    ArticleUpdateRequest,
    PublicArticleResponse,
)
from .faq import FaqCreateRequest, FaqResponse, FaqUpdateRequest
from .issue import (
    BatchArticle,
    BatchImportRequest,
    BatchImportResponse,
    DraftArticleResponse,
    DraftListResponse,
    ImportedArticle,
    IssueArticleResponse,
    IssueDetailResponse,
    IssueFindOrCreateRequest,
    IssueFindOrCreateResponse,
    IssueResponse,
)
from .profile import (
    AvatarUploadResponse,
    LoginHistoryItem,
    LoginRecordedResponse,
    PasswordResetTriggerRequest,
    PasswordResetTriggerResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    SubscriptionStatusResponse,
)
from .taxonomy import (
    CategoryCreateRequest,
    CategoryResponse,
    CategoryUpdateRequest,
    TagCreateRequest,
    TagMergeRequest,
    TagMergeResponse,
    TagResponse,
    TagUpdateRequest,
)

__all__ = [
    "AdminProfileUpdateRequest",
    "AdminUserCreateRequest",
    "AdminUserDetailResponse",
    "AdminUserListResponse",
    "AdminUserResponse",
    "MergeUsersRequest",
    "MergeUsersResponse",
    "TempPasswordResponse",
    "TierUpdateRequest",
    "ContactRequest",
    "ContactResponse",
    "ArticleCreatedResponse",
    "ArticleCreateRequest",
    "ArticleListItemResponse",
    "ArticleListResponse",
    "ArticleResponse",
    "ArticleUpdateRequest",
    "PublicArticleResponse",
    "FaqCreateRequest",
    "FaqResponse",
    "FaqUpdateRequest",
    "BatchArticle",
    "BatchImportRequest",
    "BatchImportResponse",
    "DraftArticleResponse",
    "DraftListResponse",
    "ImportedArticle",
    "IssueArticleResponse",
    "IssueDetailResponse",
    "IssueFindOrCreateRequest",
    "IssueFindOrCreateResponse",
    "IssueResponse",
    "AvatarUploadResponse",
    "LoginHistoryItem",
    "LoginRecordedResponse",
    "PasswordResetTriggerRequest",
    "PasswordResetTriggerResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "SubscriptionStatusResponse",
    "CategoryCreateRequest",
    "CategoryResponse",
    "CategoryUpdateRequest",
    "TagCreateRequest",
    "TagMergeRequest",
    "TagMergeResponse",
    "TagResponse",
    "TagUpdateRequest",
]
