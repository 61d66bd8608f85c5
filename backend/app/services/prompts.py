from __future__ import annotations

import json
from typing import Any

from ..schemas.ai import TripRequest

NO_PREFERENCE = "특별한 선호 없음"

API_KEY_PROBE_PROMPT = '간단한 확인 메시지만 반환하세요: "API Key 유효"'

PLAN_OUTPUT_SCHEMA = """{
  "name": "여행 계획 이름",
  "schedule": [
    {
      "day": 1,
      "date": "YYYY-MM-DD",
      "activities": [
        {
          "time": "09:00-11:00",
          "activity": "활동 이름",
          "destination": {
            "name": "장소 이름",
            "address": "상세 주소",
            "description": "장소 설명",
            "category": "분류 (관광지/식당/숙소 등)"
          },
          "notes": "메모"
        }
      ],
      "accommodation": {
        "name": "숙소 이름",
        "address": "숙소 주소",
        "description": "숙소 설명",
        "category": "숙소"
      }
    }
  ],
  "recommendations": {
    "transportation": "교통 안내",
    "dining": "식사 안내",
    "tips": "여행 팁"
  }
}"""


def format_amount(value: float) -> str:
    """정수로 떨어지는 금액은 소수점 없이 표기합니다."""
    return str(int(value)) if float(value).is_integer() else str(value)


def build_itinerary_prompt(trip: TripRequest) -> str:
    preferences = (trip.preferences or "").strip() or NO_PREFERENCE
    return f"""
당신은 전문 AI 여행 플래너입니다. 사용자가 제공한 정보를 바탕으로 상세한 여행 일정을 작성하세요.
- 목적지: {trip.destination}
- 여행 일수: {trip.duration}일
- 여행 예산: {format_amount(trip.budget)}원
- 동행 인원: {trip.people}명
- 여행 기간: {trip.start_date.isoformat()} ~ {trip.end_date.isoformat()}
- 여행 선호: {preferences}

아래 JSON 형식으로 여행 일정을 출력하세요.
{PLAN_OUTPUT_SCHEMA}

지켜야 할 규칙:
1. 장소 간 거리와 이동 시간을 고려해 일정을 현실적으로 구성하세요.
2. 매일 아침, 점심, 저녁 식사 추천을 포함하세요.
3. 하루 일정을 너무 빽빽하게 채우지 말고 적절한 휴식 시간을 남기세요.
4. 현지 물가를 고려해 예산 안에서 합리적으로 배분하세요.
5. 반드시 JSON 객체만 출력하고 다른 설명은 포함하지 마세요.
"""


def build_trip_extraction_prompt(text: str) -> str:
    return f"""
다음 사용자 음성 입력을 분석해 여행 관련 정보를 JSON 으로 추출하세요.
사용자 입력: \"\"\"{text}\"\"\"

추출할 필드 (있는 경우):
- destination: 목적지
- duration: 여행 일수
- budget: 예산 금액 (원)
- people: 동행 인원
- preferences: 여행 선호 (미식, 쇼핑, 문화, 자연 등)
- startDate: 시작일 (YYYY-MM-DD, 텍스트에서 알 수 있는 경우)
- endDate: 종료일 (YYYY-MM-DD, 텍스트에서 알 수 있는 경우)

출력 예시:
{{
  "destination": "일본 도쿄",
  "duration": 5,
  "budget": 1000000,
  "people": 2,
  "preferences": "미식과 애니메이션",
  "startDate": "",
  "endDate": ""
}}

알 수 없는 필드는 빈 문자열이나 0 을 사용하세요.
반드시 유효한 JSON 객체만 출력하세요.
"""


def build_budget_analysis_prompt(destination: str, duration: int, people: int, items: list[dict[str, Any]]) -> str:
    current_items = json.dumps(items, ensure_ascii=False, indent=2)
    return f"""
당신은 여행 예산 분석가입니다. 아래 정보를 바탕으로 여행 예산을 분석하고 조언하세요.
- 목적지: {destination}
- 여행 일수: {duration}일
- 동행 인원: {people}명
- 현재 예산 항목: {current_items}

분석할 내용:
1. 현재 예산 배분이 합리적인지
2. 빠뜨린 예산 항목
3. 카테고리별 권장 배분 비율
4. 절약 팁

아래 JSON 형식으로 출력하세요.
{{
  "isReasonable": true,
  "missingItems": ["빠진 항목1", "빠진 항목2"],
  "recommendedDistribution": {{
    "교통": "30%",
    "숙박": "40%",
    "식비": "20%",
    "입장권": "5%",
    "쇼핑": "5%"
  }},
  "moneySavingTips": ["팁1", "팁2"]
}}

반드시 유효한 JSON 객체만 출력하세요.
"""
