from __future__ import annotations

from datetime import date as Date
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """여행 계획 문서는 camelCase 로 저장/전송됩니다."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BudgetCategory(str, Enum):
    FOOD = "식비"
    TRANSPORT = "교통"
    LODGING = "숙박"
    TICKETS = "입장권"
    SHOPPING = "쇼핑"
    LEISURE = "여가"
    OTHER = "기타"


class Destination(CamelModel):
    name: str
    address: str = ""
    coordinates: list[float] | None = Field(default=None, description="[경도, 위도]", min_length=2, max_length=2)
    description: str = ""
    category: str = ""


class Activity(CamelModel):
    time: str = Field(..., description="예: 09:00-11:00")
    activity: str
    destination: Destination
    notes: str = ""


class DaySchedule(CamelModel):
    day: int = Field(..., ge=1)
    date: str
    activities: list[Activity] = Field(default_factory=list)
    accommodation: Destination | None = None


class BudgetItem(CamelModel):
    id: str
    name: str
    category: str
    amount: float = Field(..., ge=0)
    date: str
    notes: str = ""


class BudgetItemCreate(CamelModel):
    name: str = Field(min_length=1)
    category: BudgetCategory
    amount: float = Field(..., ge=0)
    date: Date
    notes: str = ""


class BudgetItemUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    category: BudgetCategory | None = None
    amount: float | None = Field(default=None, ge=0)
    date: Date | None = None
    notes: str | None = None


class DateRangeModel(CamelModel):
    @model_validator(mode="after")
    def _check_date_range(self):
        start = getattr(self, "start_date", None)
        end = getattr(self, "end_date", None)
        if start is not None and end is not None and end < start:
            raise ValueError("종료일은 시작일보다 빠를 수 없습니다.")
        return self


class PlanCreate(DateRangeModel):
    name: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    start_date: Date
    end_date: Date
    duration: int = Field(..., ge=1)
    budget: float = Field(..., ge=0)
    people: int = Field(..., ge=1)
    preferences: str = ""
    schedule: list[DaySchedule] = Field(default_factory=list)
    recommendations: dict[str, Any] | None = None


class PlanUpdate(DateRangeModel):
    name: str | None = Field(default=None, min_length=1)
    destination: str | None = Field(default=None, min_length=1)
    start_date: Date | None = None
    end_date: Date | None = None
    duration: int | None = Field(default=None, ge=1)
    budget: float | None = Field(default=None, ge=0)
    people: int | None = Field(default=None, ge=1)
    preferences: str | None = None
    schedule: list[DaySchedule] | None = None
    recommendations: dict[str, Any] | None = None


class ScheduleUpdate(CamelModel):
    schedule: list[DaySchedule]


class PlanSummary(CamelModel):
    id: str
    name: str
    destination: str
    start_date: str
    end_date: str
    budget: float
    created_at: datetime | None = None


class PlanOut(PlanSummary):
    user: str
    duration: int
    people: int
    preferences: str = ""
    schedule: list[DaySchedule] = Field(default_factory=list)
    recommendations: dict[str, Any] | None = None
    budget_items: list[BudgetItem] = Field(default_factory=list)
    total_spent: float = 0
    remaining_budget: float = 0
    updated_at: datetime | None = None


class PlanListResponse(CamelModel):
    success: bool = True
    count: int
    plans: list[PlanSummary]


class PlanResponse(CamelModel):
    success: bool = True
    plan: PlanOut
