from fastapi import APIRouter, Depends, Path, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from ...core.auth import get_current_user
from ...dependencies import get_mongo_db
from ...schemas import (
    BudgetItemCreate,
    BudgetItemUpdate,
    MessageResponse,
    PlanCreate,
    PlanListResponse,
    PlanOut,
    PlanResponse,
    PlanSummary,
    PlanUpdate,
    ScheduleUpdate,
    UserPublic,
)
from ...services import plans as plan_service

router = APIRouter()


def _dump(payload) -> dict:
    return payload.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.get("", response_model=PlanListResponse)
async def list_my_plans(
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> PlanListResponse:
    plans = await plan_service.list_plans(db, current_user.id)
    return PlanListResponse(count=len(plans), plans=[PlanSummary(**plan) for plan in plans])


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_new_plan(
    payload: PlanCreate,
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> PlanResponse:
    plan = await plan_service.create_plan(db, current_user.id, _dump(payload))
    return PlanResponse(plan=PlanOut(**plan))


@router.get("/{plan_id}", response_model=PlanResponse)
async def get_my_plan(
    plan_id: str = Path(..., description="여행 계획 ID"),
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> PlanResponse:
    plan = await plan_service.get_plan(db, plan_id, current_user.id)
    return PlanResponse(plan=PlanOut(**plan))


@router.put("/{plan_id}", response_model=PlanResponse)
async def update_existing_plan(
    payload: PlanUpdate,
    plan_id: str = Path(..., description="여행 계획 ID"),
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> PlanResponse:
    plan = await plan_service.update_plan(db, plan_id, current_user.id, _dump(payload))
    return PlanResponse(plan=PlanOut(**plan))


@router.delete("/{plan_id}", response_model=MessageResponse)
async def delete_existing_plan(
    plan_id: str = Path(..., description="여행 계획 ID"),
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> MessageResponse:
    await plan_service.delete_plan(db, plan_id, current_user.id)
    return MessageResponse(message="여행 계획이 삭제되었습니다.")


@router.put("/{plan_id}/schedule", response_model=PlanResponse)
async def replace_schedule(
    payload: ScheduleUpdate,
    plan_id: str = Path(..., description="여행 계획 ID"),
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> PlanResponse:
    plan = await plan_service.update_schedule(db, plan_id, current_user.id, _dump(payload)["schedule"])
    return PlanResponse(plan=PlanOut(**plan))


@router.post("/{plan_id}/budget", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def add_budget_item(
    payload: BudgetItemCreate,
    plan_id: str = Path(..., description="여행 계획 ID"),
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> PlanResponse:
    plan = await plan_service.add_budget_item(db, plan_id, current_user.id, _dump(payload))
    return PlanResponse(plan=PlanOut(**plan))


@router.put("/{plan_id}/budget/{item_id}", response_model=PlanResponse)
async def update_budget_item(
    payload: BudgetItemUpdate,
    plan_id: str = Path(..., description="여행 계획 ID"),
    item_id: str = Path(..., description="예산 항목 ID"),
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> PlanResponse:
    plan = await plan_service.update_budget_item(db, plan_id, current_user.id, item_id, _dump(payload))
    return PlanResponse(plan=PlanOut(**plan))


@router.delete("/{plan_id}/budget/{item_id}", response_model=PlanResponse)
async def delete_budget_item(
    plan_id: str = Path(..., description="여행 계획 ID"),
    item_id: str = Path(..., description="예산 항목 ID"),
    current_user: UserPublic = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongo_db),
) -> PlanResponse:
    plan = await plan_service.delete_budget_item(db, plan_id, current_user.id, item_id)
    return PlanResponse(plan=PlanOut(**plan))
