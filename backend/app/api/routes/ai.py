from fastapi import APIRouter, Depends

from ...core.auth import get_current_user, require_dashscope_key
from ...schemas import (
    BudgetAnalysisRequest,
    BudgetAnalysisResponse,
    GeneratePlanResponse,
    MessageResponse,
    TripExtractionResponse,
    TripRequest,
    UserPublic,
    VoiceTextRequest,
)
from ...services import llm as llm_service

router = APIRouter()


@router.post("/generate-plan", response_model=GeneratePlanResponse)
async def generate_plan(
    payload: TripRequest,
    current_user: UserPublic = Depends(get_current_user),
    api_key: str = Depends(require_dashscope_key),
) -> GeneratePlanResponse:
    plan = await llm_service.generate_travel_plan(payload, api_key=api_key, user_id=current_user.id)
    return GeneratePlanResponse(plan=plan)


@router.post("/validate-api-key", response_model=MessageResponse)
async def validate_api_key(api_key: str = Depends(require_dashscope_key)) -> MessageResponse:
    await llm_service.validate_api_key(api_key)
    return MessageResponse(message="API Key 가 유효합니다.")


@router.post("/process-voice", response_model=TripExtractionResponse)
async def process_voice_text(
    payload: VoiceTextRequest,
    api_key: str = Depends(require_dashscope_key),
) -> TripExtractionResponse:
    data = await llm_service.extract_trip_info(payload.text, api_key=api_key)
    return TripExtractionResponse(data=data)


@router.post("/analyze-budget", response_model=BudgetAnalysisResponse)
async def analyze_budget(
    payload: BudgetAnalysisRequest,
    api_key: str = Depends(require_dashscope_key),
) -> BudgetAnalysisResponse:
    analysis = await llm_service.analyze_budget(
        payload.destination,
        payload.duration,
        payload.people,
        payload.current_items,
        api_key=api_key,
    )
    return BudgetAnalysisResponse(analysis=analysis)
