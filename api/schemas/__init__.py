"""
Pydantic schemas for API request/response models.
"""

from .common import (
    ErrorDetail,
    ErrorResponse,
    HealthStatus,
    ComponentHealth,
    HealthCheckResponse,
    StatusResponse,
    MessageResponse,
)

from .auth import (
    UserProfile,
    AppleUserInfo,
    AppleLoginRequest,
    GoogleLoginRequest,
    DevLoginRequest,
    AuthResponse,
    GoogleAuthResponse,
    DevAuthResponse,
    UserResponse,
)

from .generate import (
    GenerationType,
    GenerateImageRequest,
    GenerateImageResponse,
)

from .chat import (
    GenerationSummary,
    ChatMessageInfo,
    CreateMessageRequest,
    MessagesResponse,
    CreateMessageResponse,
    DeleteMessagesResponse,
    ChatSessionInfo,
    ListSessionsResponse,
    PersistentSessionResponse,
)

from .stripe import (
    CheckoutRequest,
    CheckoutResponse,
    CheckoutSessionInfo,
    CheckoutSessionResponse,
    StripeDetails,
    SubscriptionInfo,
    ManagedSubscription,
    ManageSubscriptionRequest,
    ManageSubscriptionResponse,
    PortalResponse,
    WebhookResponse,
)

from .subscription import (
    PlanInfo,
    PurchaseRequest,
    PurchaseResponse,
    SubscriptionStatusResponse,
)

from .user import (
    UpdateProfileRequest,
    CreditTransactionInfo,
    CreditSummary,
    CreditHistoryResponse,
    GenerationInfo,
    GenerationListResponse,
)

from .upload import UploadImageResponse

__all__ = [
    # Common
    "ErrorDetail",
    "ErrorResponse",
    "HealthStatus",
    "ComponentHealth",
    "HealthCheckResponse",
    "StatusResponse",
    "MessageResponse",
    # Auth
    "UserProfile",
    "AppleUserInfo",
    "AppleLoginRequest",
    "GoogleLoginRequest",
    "DevLoginRequest",
    "AuthResponse",
    "GoogleAuthResponse",
    "DevAuthResponse",
    "UserResponse",
    # Generate
    "GenerationType",
    "GenerateImageRequest",
    "GenerateImageResponse",
    # Chat
    "GenerationSummary",
    "ChatMessageInfo",
    "CreateMessageRequest",
    "MessagesResponse",
    "CreateMessageResponse",
    "DeleteMessagesResponse",
    "ChatSessionInfo",
    "ListSessionsResponse",
    "PersistentSessionResponse",
    # Stripe
    "CheckoutRequest",
    "CheckoutResponse",
    "CheckoutSessionInfo",
    "CheckoutSessionResponse",
    "StripeDetails",
    "SubscriptionInfo",
    "ManagedSubscription",
    "ManageSubscriptionRequest",
    "ManageSubscriptionResponse",
    "PortalResponse",
    "WebhookResponse",
    # Subscription
    "PlanInfo",
    "PurchaseRequest",
    "PurchaseResponse",
    "SubscriptionStatusResponse",
    # User
    "UpdateProfileRequest",
    "CreditTransactionInfo",
    "CreditSummary",
    "CreditHistoryResponse",
    "GenerationInfo",
    "GenerationListResponse",
    # Upload
    "UploadImageResponse",
]
