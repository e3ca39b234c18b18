"""Gemini 기반 진위/팩트체크 분석"""

import logging
from typing import Any, List, Optional
from google.genai import types

from ..shared.errors import ANALYSIS_FAILED_MESSAGE, AnalysisError
from ..shared.llm_client import LLMClient, get_llm_client
from ..shared.logger_utils import log_execution
from ..shared.schemas import (
    CLAIM_STATUSES,
    DEFAULT_SOURCE_TITLE,
    LINK_ONLY_KINDS,
    ContentKind,
    GroundingSource,
    ProviderAnalysis,
    SubmissionPayload,
    VerificationReport,
)
from ..resources.prompts import (
    get_base_analysis_prompt,
    get_link_research_prompt,
    get_text_verification_prompt,
)

logger = logging.getLogger(__name__)


# Provider 구조화 출력 스키마
RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "aiDetection": {
            "type": "OBJECT",
            "properties": {
                "likelihood": {"type": "NUMBER"},
                "reasoning": {"type": "STRING"},
                "indicators": {"type": "ARRAY", "items": {"type": "STRING"}},
            },
            "required": ["likelihood", "reasoning", "indicators"],
        },
        "claims": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING"},
                    "statement": {"type": "STRING"},
                    "originalSentence": {"type": "STRING"},
                    "timestamp": {"type": "STRING"},
                    "status": {"type": "STRING", "enum": list(CLAIM_STATUSES)},
                    "confidence": {"type": "NUMBER"},
                    "explanation": {"type": "STRING"},
                },
                "required": [
                    "id", "statement", "originalSentence", "timestamp",
                    "status", "confidence", "explanation",
                ],
            },
        },
    },
    "required": ["aiDetection", "claims"],
}


def build_prompt(payload: SubmissionPayload) -> str:
    """입력 종류에 맞는 지시문을 만듭니다."""
    if payload.content_kind == ContentKind.TEXT:
        return get_text_verification_prompt(payload.text_body)
    if payload.content_kind in LINK_ONLY_KINDS:
        return get_link_research_prompt(payload.reference_url)
    return get_base_analysis_prompt()


def build_contents(payload: SubmissionPayload) -> List[types.Part]:
    """
    요청 파트 목록을 만듭니다.

    미디어가 있으면 inline 파트를 지시문 파트보다 앞에 둡니다.
    """
    parts = [types.Part.from_text(text=build_prompt(payload))]
    if payload.has_media:
        parts.insert(0, types.Part.from_bytes(
            data=payload.media_bytes,
            mime_type=payload.media_mime_type,
        ))
    return parts


def build_config() -> types.GenerateContentConfig:
    """웹 검색 도구와 응답 스키마를 포함한 생성 설정"""
    return types.GenerateContentConfig(
        tools=[types.Tool(google_search=types.GoogleSearch())],
        response_mime_type="application/json",
        response_schema=RESPONSE_SCHEMA,
    )


def parse_analysis(text: Optional[str]) -> ProviderAnalysis:
    """
    Provider 응답 텍스트를 엄격하게 검증합니다.

    Raises:
        ValueError: 응답이 비어 있는 경우.
        pydantic.ValidationError: JSON이 아니거나 스키마와 맞지 않는 경우.
    """
    if not text or not text.strip():
        raise ValueError("empty response text")
    return ProviderAnalysis.model_validate_json(text)


def extract_grounding_sources(response: Any) -> List[GroundingSource]:
    """
    첫 번째 후보의 grounding 메타데이터에서 웹 출처를 추출합니다.

    web 참조가 있는 청크만 사용하고, 제목이 없으면 기본 제목을 붙입니다.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []

    metadata = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(metadata, "grounding_chunks", None) or []

    sources = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None:
            continue
        uri = getattr(web, "uri", None)
        if not uri:
            continue
        sources.append(GroundingSource(
            title=getattr(web, "title", None) or DEFAULT_SOURCE_TITLE,
            uri=uri,
        ))
    return sources


class AnalysisClient:
    """제출 데이터를 한 번의 Gemini 호출로 검증 보고서로 변환하는 클래스"""

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm_client = llm_client

    @log_execution("analysis", "analyze")
    async def analyze(self, payload: SubmissionPayload) -> VerificationReport:
        """
        콘텐츠를 분석하여 VerificationReport를 반환합니다.

        Provider 호출은 정확히 한 번이며, 재시도하지 않습니다.

        Args:
            payload (SubmissionPayload): 정규화된 제출 데이터.

        Returns:
            VerificationReport: AI 생성 판단, 주장별 판정, 웹 근거 출처.

        Raises:
            AnalysisError: 호출 실패, 응답 파싱 실패, 스키마 위반 모두 동일한 메시지로 발생.
        """
        try:
            llm_client = self.llm_client or get_llm_client()
            response = await llm_client.generate_content(
                contents=build_contents(payload),
                config=build_config(),
            )

            analysis = parse_analysis(response.text)
            sources = extract_grounding_sources(response)

            report = VerificationReport(
                aiDetection=analysis.aiDetection,
                claims=analysis.claims,
                groundingSources=sources,
            )
        except Exception as e:
            logger.error(f"Gemini Analysis Error ({payload.content_kind.value}): {e}", exc_info=True)
            raise AnalysisError(ANALYSIS_FAILED_MESSAGE) from None

        logger.info(
            f"분석 완료 - AI 가능성: {report.aiDetection.likelihood}, "
            f"주장 {len(report.claims)}개, 출처 {len(report.groundingSources)}개"
        )
        return report


# 싱글톤 인스턴스
_analysis_client_instance: Optional[AnalysisClient] = None


def get_analysis_client() -> AnalysisClient:
    """
    AnalysisClient의 싱글톤 인스턴스를 반환합니다.

    Returns:
        AnalysisClient: 초기화된 AnalysisClient 인스턴스.
    """
    global _analysis_client_instance

    if _analysis_client_instance is None:
        _analysis_client_instance = AnalysisClient()

    return _analysis_client_instance
