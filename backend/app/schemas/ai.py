from datetime import date as Date
from typing import Any

from pydantic import Field

from .plans import CamelModel, DateRangeModel


class TripRequest(DateRangeModel):
    """일정 생성 요청 파라미터. 저장되지 않는 입력 전용 모델."""

    destination: str = Field(min_length=1)
    duration: int = Field(..., ge=1, description="여행 일수")
    budget: float = Field(..., ge=0)
    people: int = Field(..., ge=1)
    preferences: str | None = ""
    start_date: Date
    end_date: Date


class GeneratePlanResponse(CamelModel):
    success: bool = True
    plan: dict[str, Any]


class VoiceTextRequest(CamelModel):
    text: str = Field(min_length=1)


class TripExtractionResponse(CamelModel):
    success: bool = True
    data: dict[str, Any]


class BudgetAnalysisRequest(CamelModel):
    destination: str = Field(min_length=1)
    duration: int = Field(..., ge=1)
    people: int = Field(..., ge=1)
    current_items: list[dict[str, Any]] = Field(default_factory=list)


class BudgetAnalysisResponse(CamelModel):
    success: bool = True
    analysis: dict[str, Any]
