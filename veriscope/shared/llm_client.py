"""
Gemini LLM 클라이언트.
google-genai SDK를 사용한 비동기 호출을 담당합니다.
"""

import logging
from typing import List, Optional
from google import genai
from google.genai import types

from ..config import Config

logger = logging.getLogger(__name__)


class LLMClient:
    """Gemini 비동기 클라이언트."""

    def __init__(self, model: Optional[str] = None):
        """
        Gemini 클라이언트 설정을 초기화합니다.

        API Key는 여기서 검증하지 않고 호출 시점에 환경 변수에서 읽습니다.
        Key가 없거나 잘못된 경우 호출 단계의 실패로 드러납니다.

        Args:
            model (Optional[str]): 사용할 모델명 (기본값: Config 설정).
        """
        self.model = model if model else Config.GEMINI_MODEL
        logger.info(f"LLMClient 초기화 완료 - 모델: {self.model}")

    def _create_client(self) -> genai.Client:
        return genai.Client(api_key=Config.get_gemini_api_key())

    async def generate_content(
        self,
        contents: List[types.Part],
        config: types.GenerateContentConfig
    ) -> types.GenerateContentResponse:
        """
        generate_content API를 한 번 호출합니다.

        Args:
            contents (List[types.Part]): 요청 파트 목록 (미디어 파트, 지시문 파트).
            config (types.GenerateContentConfig): 도구, 응답 스키마 등 생성 설정.

        Returns:
            types.GenerateContentResponse: Provider 원본 응답.

        Raises:
            Exception: 클라이언트 생성 또는 API 호출 실패 시 예외 발생.
        """
        try:
            client = self._create_client()
        except Exception as e:
            logger.error(f"Gemini 클라이언트 생성 실패: {e}")
            raise

        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=types.Content(role="user", parts=contents),
                config=config,
            )
            text = response.text or ""
            logger.debug(f"LLM 응답: {text[:100]}...")
            return response

        except Exception as e:
            logger.error(f"Gemini API 호출 실패: {e}")
            raise

        finally:
            # 호출마다 만든 HTTP 세션 정리
            await client.aio.aclose()


# 싱글톤 인스턴스
_llm_client_instance: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """
    LLMClient의 싱글톤 인스턴스를 반환합니다.

    Returns:
        LLMClient: 초기화된 LLMClient 인스턴스.
    """
    global _llm_client_instance

    if _llm_client_instance is None:
        _llm_client_instance = LLMClient()

    return _llm_client_instance
