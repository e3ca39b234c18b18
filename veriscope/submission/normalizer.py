"""제출 입력 정규화"""

import logging
from typing import Optional
from urllib.parse import urljoin
import requests
from pydantic import BaseModel, Field

from ..config import Config
from ..shared.errors import SubmissionRejected
from ..shared.schemas import ContentKind, SubmissionPayload
from .links import fetch_blocked_reason, file_name_from_url, is_platform_link

logger = logging.getLogger(__name__)

MEDIA_TYPE_PREFIXES = ("image/", "video/")
MAX_REDIRECTS = 5
FETCH_CHUNK_SIZE = 64 * 1024


class FetchOutcome(BaseModel):
    """직접 링크 다운로드 결과"""
    success: bool = Field(..., description="미디어 수집 성공 여부")
    content: Optional[bytes] = Field(None, description="수집된 바이너리")
    content_type: Optional[str] = Field(None, description="응답 Content-Type (파라미터 제외)")
    error: Optional[str] = Field(None, description="실패 원인 (진단용)")


def classify_link(url: str, outcome: Optional[FetchOutcome]) -> ContentKind:
    """
    링크 입력의 종류를 결정합니다.

    플랫폼 링크 판별이 수집 결과보다 우선하며, 수집에 실패한 경우
    실패 원인과 관계없이 MetadataOnlyLink로 분류합니다.

    Args:
        url (str): 제출된 URL.
        outcome (Optional[FetchOutcome]): 수집 결과 (플랫폼 링크면 None).

    Returns:
        ContentKind: PlatformLink / DirectMediaLink / MetadataOnlyLink.
    """
    if is_platform_link(url):
        return ContentKind.PLATFORM_LINK
    if (
        outcome is not None
        and outcome.success
        and outcome.content
        and (outcome.content_type or "").startswith(MEDIA_TYPE_PREFIXES)
    ):
        return ContentKind.DIRECT_MEDIA_LINK
    return ContentKind.METADATA_ONLY_LINK


class SubmissionNormalizer:
    """업로드 파일, 링크, 텍스트 입력을 SubmissionPayload로 변환하는 클래스"""

    def __init__(self, timeout: Optional[float] = None, max_media_bytes: Optional[int] = None):
        self.timeout = timeout if timeout is not None else Config.FETCH_TIMEOUT_SEC
        self.max_media_bytes = max_media_bytes if max_media_bytes is not None else Config.MAX_INLINE_MEDIA_BYTES

    def from_upload(self, content: bytes, mime_type: str, file_name: str = "") -> SubmissionPayload:
        """
        업로드된 파일을 Image 또는 Video 입력으로 변환합니다.

        Args:
            content (bytes): 파일 바이너리.
            mime_type (str): 업로드 시 선언된 MIME 타입.
            file_name (str): 원본 파일 이름.

        Returns:
            SubmissionPayload: Image/Video 입력.

        Raises:
            SubmissionRejected: 파일이 없거나, 이미지/영상이 아니거나, 너무 큰 경우.
        """
        if not content:
            raise SubmissionRejected("No file was provided.")

        mime_type = (mime_type or "").strip()
        if mime_type.startswith("image/"):
            kind = ContentKind.IMAGE
        elif mime_type.startswith("video/"):
            kind = ContentKind.VIDEO
        else:
            raise SubmissionRejected(f"Unsupported file type: {mime_type or 'unknown'}")

        if len(content) > self.max_media_bytes:
            raise SubmissionRejected("The file is too large to analyze.")

        logger.info(f"업로드 입력 정규화: {kind.value} ({mime_type}, {len(content)} bytes)")
        return SubmissionPayload(
            content_kind=kind,
            media_bytes=content,
            media_mime_type=mime_type,
            file_name=file_name or "uploaded-media",
        )

    def from_text(self, text: str) -> SubmissionPayload:
        """
        자유 텍스트를 Text 입력으로 변환합니다 (본문은 그대로 유지).

        Raises:
            SubmissionRejected: 비어 있거나 공백뿐인 텍스트.
        """
        if not text or not text.strip():
            raise SubmissionRejected("Text to verify is empty.")

        logger.info(f"텍스트 입력 정규화: {len(text)}자")
        return SubmissionPayload(
            content_kind=ContentKind.TEXT,
            text_body=text,
            file_name="Text Claim",
        )

    def from_link(self, url: str) -> SubmissionPayload:
        """
        붙여넣은 링크를 PlatformLink / DirectMediaLink / MetadataOnlyLink로 변환합니다.

        플랫폼 링크는 다운로드를 시도하지 않습니다. 그 외 링크는 한 번 다운로드를
        시도하고, 실패하면 링크만 담은 MetadataOnlyLink로 전환합니다.

        Args:
            url (str): 제출된 URL.

        Returns:
            SubmissionPayload: 링크 기반 입력.

        Raises:
            SubmissionRejected: URL이 비어 있는 경우.
        """
        url = (url or "").strip()
        if not url:
            raise SubmissionRejected("URL is required.")

        if is_platform_link(url):
            logger.info(f"플랫폼 링크로 분류 (다운로드 생략): {url}")
            return SubmissionPayload(
                content_kind=ContentKind.PLATFORM_LINK,
                reference_url=url,
                file_name="Platform Video",
            )

        outcome = self.fetch_media(url)
        kind = classify_link(url, outcome)

        if kind == ContentKind.DIRECT_MEDIA_LINK:
            logger.info(f"직접 미디어 링크 수집 완료: {outcome.content_type}, {len(outcome.content)} bytes")
            return SubmissionPayload(
                content_kind=kind,
                media_bytes=outcome.content,
                media_mime_type=outcome.content_type,
                reference_url=url,
                file_name=file_name_from_url(url),
            )

        logger.warning(f"직접 파일 수집 실패, Metadata Analysis로 전환: {url} ({outcome.error})")
        return SubmissionPayload(
            content_kind=ContentKind.METADATA_ONLY_LINK,
            reference_url=url,
            file_name="Metadata Analysis",
        )

    def fetch_media(self, url: str) -> FetchOutcome:
        """
        URL에서 이미지/영상 바이너리를 다운로드합니다. 예외를 발생시키지 않습니다.

        공개 주소가 아닌 호스트는 요청하지 않으며, 리다이렉트도 매 단계 같은 검사를 거칩니다.
        본문은 스트리밍으로 읽고 용량 한도를 넘으면 즉시 중단합니다.

        Returns:
            FetchOutcome: 성공 시 바이너리와 Content-Type, 실패 시 원인.
        """
        current = url
        try:
            for _ in range(MAX_REDIRECTS + 1):
                blocked = fetch_blocked_reason(current)
                if blocked:
                    return FetchOutcome(success=False, error=f"blocked: {blocked}")

                with requests.get(current, timeout=self.timeout, stream=True, allow_redirects=False) as resp:
                    if resp.is_redirect:
                        location = resp.headers.get("Location", "")
                        current = urljoin(current, location)
                        continue
                    return self._read_media(resp)

            return FetchOutcome(success=False, error="too many redirects")

        except Exception as e:
            return FetchOutcome(success=False, error=f"request failed: {type(e).__name__}: {e}")

    def _read_media(self, resp: requests.Response) -> FetchOutcome:
        if not resp.ok:
            return FetchOutcome(success=False, error=f"HTTP {resp.status_code}")

        content_type = resp.headers.get("Content-Type", "").split(";")[0].strip().lower()
        if not content_type.startswith(MEDIA_TYPE_PREFIXES):
            return FetchOutcome(success=False, content_type=content_type or None,
                                error=f"non-media content type: {content_type or 'missing'}")

        declared = resp.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > self.max_media_bytes:
            return FetchOutcome(success=False, content_type=content_type,
                                error=f"media too large: {declared} bytes declared")

        content = bytearray()
        for chunk in resp.iter_content(chunk_size=FETCH_CHUNK_SIZE):
            content.extend(chunk)
            if len(content) > self.max_media_bytes:
                return FetchOutcome(success=False, content_type=content_type,
                                    error=f"media too large: over {self.max_media_bytes} bytes")

        if not content:
            return FetchOutcome(success=False, content_type=content_type, error="empty body")

        return FetchOutcome(success=True, content=bytes(content), content_type=content_type)
