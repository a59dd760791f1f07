"""Data models for the plugin marketplace."""

from marketplace.models.plugin import (
    Plugin,
    PluginChanges,
    PluginDetail,
    PluginDraft,
    PluginFilters,
    PluginSummary,
    PluginVersion,
    Review,
    ReviewCreate,
    ReviewDetail,
    SortOrder,
    VersionDetail,
    VersionDraft,
)
from marketplace.models.purchase import (
    Purchase,
    PurchaseCheckResponse,
    PurchaseCreate,
    PurchaseDetail,
    PurchaseSummary,
)
from marketplace.models.user import (
    AuthResponse,
    LoginRequest,
    PasswordChange,
    ProfileUpdate,
    RegisterRequest,
    User,
    UserSummary,
)

__all__ = [
    # Plugin models
    "Plugin",
    "PluginChanges",
    "PluginDetail",
    "PluginDraft",
    "PluginFilters",
    "PluginSummary",
    "PluginVersion",
    "Review",
    "ReviewCreate",
    "ReviewDetail",
    "SortOrder",
    "VersionDetail",
    "VersionDraft",
    # Purchase models
    "Purchase",
    "PurchaseCheckResponse",
    "PurchaseCreate",
    "PurchaseDetail",
    "PurchaseSummary",
    # User models
    "AuthResponse",
    "LoginRequest",
    "PasswordChange",
    "ProfileUpdate",
    "RegisterRequest",
    "User",
    "UserSummary",
]
