from .ai import (
    BudgetAnalysisRequest,
    BudgetAnalysisResponse,
    GeneratePlanResponse,
    TripExtractionResponse,
    TripRequest,
    VoiceTextRequest,
)
from .auth import AuthResponse, MessageResponse, RefreshResponse, UserResponse
from .plans import (
    Activity,
    BudgetCategory,
    BudgetItem,
    BudgetItemCreate,
    BudgetItemUpdate,
    DaySchedule,
    Destination,
    PlanCreate,
    PlanListResponse,
    PlanOut,
    PlanResponse,
    PlanSummary,
    PlanUpdate,
    ScheduleUpdate,
)
from .user import ApiKeySaveResponse, ApiKeyStatusResponse, ApiKeyUpdate, UserCreate, UserLogin, UserPublic, UserUpdate

__all__ = [
    "BudgetAnalysisRequest",
    "BudgetAnalysisResponse",
    "GeneratePlanResponse",
    "TripExtractionResponse",
    "TripRequest",
    "VoiceTextRequest",
    "AuthResponse",
    "MessageResponse",
    "RefreshResponse",
    "UserResponse",
    "Activity",
    "BudgetCategory",
    "BudgetItem",
    "BudgetItemCreate",
    "BudgetItemUpdate",
    "DaySchedule",
    "Destination",
    "PlanCreate",
    "PlanListResponse",
    "PlanOut",
    "PlanResponse",
    "PlanSummary",
    "PlanUpdate",
    "ScheduleUpdate",
    "ApiKeySaveResponse",
    "ApiKeyStatusResponse",
    "ApiKeyUpdate",
    "UserCreate",
    "UserLogin",
    "UserPublic",
    "UserUpdate",
]
