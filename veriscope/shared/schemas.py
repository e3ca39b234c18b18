"""분석 요청/결과 공통 데이터 스키마"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional, Dict, Literal

# 주장 판정 상태
ClaimStatus = Literal["Correct", "Wrong", "Unverifiable"]
CLAIM_STATUSES = ("Correct", "Wrong", "Unverifiable")

# Provider가 제목을 주지 않은 출처의 기본 제목
DEFAULT_SOURCE_TITLE = "Reference Source"


class ContentKind(str, Enum):
    """제출 입력의 종류 (프롬프트 구성 방식을 결정)"""
    IMAGE = "Image"
    VIDEO = "Video"
    PLATFORM_LINK = "PlatformLink"
    DIRECT_MEDIA_LINK = "DirectMediaLink"
    METADATA_ONLY_LINK = "MetadataOnlyLink"
    TEXT = "Text"


MEDIA_KINDS = (ContentKind.IMAGE, ContentKind.VIDEO, ContentKind.DIRECT_MEDIA_LINK)
LINK_ONLY_KINDS = (ContentKind.PLATFORM_LINK, ContentKind.METADATA_ONLY_LINK)


def _round_score(value):
    """숫자 점수를 정수로 반올림합니다 (범위 검증은 Field 제약에서 수행)."""
    if isinstance(value, float):
        return int(round(value))
    return value


# ===== 제출 데이터 =====

class SubmissionPayload(BaseModel):
    """
    Normalizer가 만들어 Analysis Client에 전달하는 정규화된 제출 데이터.

    content_kind 별로 채워지는 필드가 정해져 있으며, 생성 시 검증됩니다.
    """
    content_kind: ContentKind = Field(..., description="입력 종류")
    media_bytes: Optional[bytes] = Field(None, description="첨부할 미디어 바이너리")
    media_mime_type: Optional[str] = Field(None, description="미디어 MIME 타입")
    reference_url: Optional[str] = Field(None, description="원본 링크 (링크 기반 입력)")
    text_body: Optional[str] = Field(None, description="검증할 텍스트 (Text 입력)")
    file_name: str = Field("", description="화면 표시용 이름")

    @property
    def has_media(self) -> bool:
        return self.media_bytes is not None

    @model_validator(mode="after")
    def check_kind_fields(self):
        kind = self.content_kind
        has_media = self.media_bytes is not None
        mime = self.media_mime_type or ""

        if has_media and not mime:
            raise ValueError("media_mime_type is required when media_bytes is set")
        if not has_media and self.media_mime_type is not None:
            raise ValueError("media_mime_type is only allowed with media_bytes")

        if kind in MEDIA_KINDS:
            if not has_media or self.text_body is not None:
                raise ValueError(f"{kind.value} requires media bytes only")
            if kind == ContentKind.IMAGE and not mime.startswith("image/"):
                raise ValueError("Image requires an image/* mime type")
            if kind == ContentKind.VIDEO and not mime.startswith("video/"):
                raise ValueError("Video requires a video/* mime type")
            if kind == ContentKind.DIRECT_MEDIA_LINK:
                if not mime.startswith(("image/", "video/")):
                    raise ValueError("DirectMediaLink requires an image/* or video/* mime type")
                if not self.reference_url:
                    raise ValueError("DirectMediaLink requires reference_url")
            elif self.reference_url is not None:
                raise ValueError(f"{kind.value} must not carry reference_url")
        elif kind in LINK_ONLY_KINDS:
            if not self.reference_url or has_media or self.text_body is not None:
                raise ValueError(f"{kind.value} requires reference_url only")
        elif kind == ContentKind.TEXT:
            if not self.text_body or not self.text_body.strip():
                raise ValueError("Text requires a non-blank text_body")
            if has_media or self.reference_url is not None:
                raise ValueError("Text requires text_body only")
        return self


# ===== 분석 결과 =====

class AIDetection(BaseModel):
    """
    AI 생성 가능성 판단 결과.
    """
    likelihood: int = Field(..., ge=0, le=100, description="AI 생성 가능성 (0~100)")
    reasoning: str = Field(..., description="판단 근거")
    indicators: List[str] = Field(..., description="판단에 사용된 징후 목록")

    @field_validator("likelihood", mode="before")
    @classmethod
    def round_likelihood(cls, value):
        return _round_score(value)

    def authenticity_label(self) -> str:
        """점수 구간별 표시 라벨"""
        if self.likelihood > 70:
            return "Likely AI / Fake"
        if self.likelihood > 30:
            return "Suspicious"
        return "Authentic"


class Claim(BaseModel):
    """
    추출된 사실 주장과 판정 결과.
    """
    id: str = Field(..., description="보고서 내 고유 주장 ID")
    statement: str = Field(..., description="주장 요약")
    originalSentence: str = Field(..., description="원문 문장")
    timestamp: str = Field(..., description="등장 시각 (MM:SS) 또는 'N/A'")
    status: ClaimStatus = Field(..., description="판정 (Correct/Wrong/Unverifiable)")
    confidence: int = Field(..., ge=0, le=100, description="판정 신뢰도 (0~100)")
    explanation: str = Field(..., description="판정 이유")

    @field_validator("confidence", mode="before")
    @classmethod
    def round_confidence(cls, value):
        return _round_score(value)


class GroundingSource(BaseModel):
    """웹 검색 근거 출처"""
    title: str = Field(..., description="출처 제목")
    uri: str = Field(..., description="출처 URL")


def _ensure_unique_claim_ids(claims: List[Claim]) -> List[Claim]:
    seen = set()
    for claim in claims:
        if claim.id in seen:
            raise ValueError(f"duplicate claim id: {claim.id}")
        seen.add(claim.id)
    return claims


class ProviderAnalysis(BaseModel):
    """
    Provider 구조화 응답 (응답 스키마와 1:1 대응).
    필수 필드가 없으면 검증 단계에서 실패합니다.
    """
    model_config = ConfigDict(extra="ignore")

    aiDetection: AIDetection
    claims: List[Claim]

    @field_validator("claims")
    @classmethod
    def unique_claim_ids(cls, claims):
        return _ensure_unique_claim_ids(claims)


class VerificationReport(BaseModel):
    """
    최종 검증 보고서.
    """
    aiDetection: AIDetection = Field(..., description="AI 생성 판단")
    claims: List[Claim] = Field(default_factory=list, description="주장별 판정 결과")
    groundingSources: List[GroundingSource] = Field(default_factory=list, description="웹 근거 출처")

    @field_validator("claims")
    @classmethod
    def unique_claim_ids(cls, claims):
        return _ensure_unique_claim_ids(claims)

    def status_counts(self) -> Dict[str, int]:
        """판정 상태별 주장 수"""
        counts = {status: 0 for status in CLAIM_STATUSES}
        for claim in self.claims:
            counts[claim.status] += 1
        return counts


# ===== API 요청/응답 =====

class LinkAnalysisRequest(BaseModel):
    """링크 분석 요청"""
    url: str = Field(..., description="분석할 URL")


class TextAnalysisRequest(BaseModel):
    """텍스트 분석 요청"""
    text: str = Field(..., description="검증할 문장/주장")


class AnalysisResponse(BaseModel):
    """
    분석 API 응답 모델.
    """
    success: bool = Field(..., description="분석 성공 여부")
    state: str = Field(..., description="세션 상태 (COMPLETED/ERROR)")
    contentKind: ContentKind = Field(..., description="입력 종류")
    fileName: str = Field("", description="표시용 이름")
    referenceUrl: Optional[str] = Field(None, description="원본 링크")
    embedUrl: Optional[str] = Field(None, description="YouTube 임베드 URL")
    authenticityLabel: Optional[str] = Field(None, description="AI 생성 판단 라벨")
    statusCounts: Dict[str, int] = Field(default_factory=dict, description="판정 상태별 주장 수")
    report: Optional[VerificationReport] = Field(None, description="검증 보고서")
    error: Optional[str] = Field(None, description="에러 메시지")


class ErrorResponse(BaseModel):
    """
    API 에러 응답 모델.
    """
    success: bool = Field(False, description="성공 여부 (항상 False)")
    error: str = Field(..., description="에러 메시지 요약")
    detail: Optional[str] = Field(None, description="상세 에러 내용")


class HealthResponse(BaseModel):
    """
    서버 상태 확인 응답 모델.
    """
    status: str = Field(..., description="서버 상태 ('healthy' 또는 'unhealthy')")
    version: str = Field(..., description="API 버전")
