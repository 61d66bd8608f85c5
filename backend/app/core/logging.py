import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """루트 로거를 한 번만 구성합니다. uvicorn 이 이미 핸들러를 붙였다면 레벨만 맞춥니다."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    root.setLevel(level.upper())
    # httpx 는 요청마다 INFO 로그를 남기므로 한 단계 낮춘다
    logging.getLogger("httpx").setLevel(logging.WARNING)
