from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.app.main import app

REQUIRED_OPERATIONS = {
    "/api/health": {"get"},
    "/api/auth/register": {"post"},
    "/api/auth/login": {"post"},
    "/api/auth/me": {"get", "put"},
    "/api/auth/api-keys/dashscope": {"put"},
    "/api/plans": {"get", "post"},
    "/api/plans/{plan_id}": {"get", "put", "delete"},
    "/api/plans/{plan_id}/schedule": {"put"},
    "/api/plans/{plan_id}/budget": {"post"},
    "/api/plans/{plan_id}/budget/{item_id}": {"put", "delete"},
    "/api/ai/generate-plan": {"post"},
    "/api/ai/validate-api-key": {"post"},
    "/api/ai/process-voice": {"post"},
    "/api/ai/analyze-budget": {"post"},
}


def main() -> int:
    paths = app.openapi().get("paths", {})
    problems: list[str] = []
    for path, methods in REQUIRED_OPERATIONS.items():
        missing = methods - set(paths.get(path, {}))
        if missing:
            problems.append(f"{path} ({', '.join(sorted(missing))})")

    if problems:
        for problem in problems:
            print(f"[오류] OpenAPI 스펙에 경로가 없습니다: {problem}", file=sys.stderr)
        return 1

    print("OpenAPI 필수 경로 검증 완료")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
