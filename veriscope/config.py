"""
VeriScope 분석 서버 설정
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# .env 파일 로드
load_dotenv()

class Config:
    """서버 설정 관리"""

    # 1. 서버 기본 설정
    VERSION = "1.0.0"
    HOST = os.getenv("SERVER_HOST", "0.0.0.0")
    PORT = int(os.getenv("SERVER_PORT", "8000"))
    BASE_DIR = Path(__file__).parent

    # 2. Gemini 설정 (API Key는 호출 시점에 읽음)
    GEMINI_API_KEY_ENV = "GEMINI_API_KEY"
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")

    # 3. 링크 수집 설정
    FETCH_TIMEOUT_SEC = float(os.getenv("FETCH_TIMEOUT_SEC", "10"))
    # inline 첨부 한도 (Gemini inline data 요청 크기 제한)
    MAX_INLINE_MEDIA_BYTES = int(os.getenv("MAX_INLINE_MEDIA_BYTES", str(20 * 1024 * 1024)))
    PLATFORM_DOMAINS = (
        "youtube.com",
        "youtu.be",
        "vimeo.com",
        "twitter.com",
        "x.com",
    )

    # 4. 로그 설정
    LOG_DIR = Path(os.getenv("LOG_DIR", str(BASE_DIR.parent / "logs")))
    EXECUTION_LOG_ENABLED = os.getenv("EXECUTION_LOG_ENABLED", "false").lower() in ("1", "true", "yes")

    @classmethod
    def get_gemini_api_key(cls):
        """Gemini API Key를 환경 변수에서 읽습니다 (없으면 None)."""
        return os.getenv(cls.GEMINI_API_KEY_ENV) or None

    @classmethod
    def validate_config(cls):
        """서버 설정 검증 (경고만 반환, 기동을 막지 않음)"""
        warnings = []
        if not cls.get_gemini_api_key(): warnings.append(f"{cls.GEMINI_API_KEY_ENV} Missing")
        if cls.FETCH_TIMEOUT_SEC <= 0: warnings.append("FETCH_TIMEOUT_SEC must be positive")
        return warnings

    @classmethod
    def print_config(cls):
        print("="*70)
        print(f"VeriScope Server v{cls.VERSION} Configured")
        print(f"Model: {cls.GEMINI_MODEL}")
        for warning in cls.validate_config():
            print(f"Warning: {warning}")
        print("="*70)
