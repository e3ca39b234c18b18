"""VeriScope Backend API"""

import logging
import asyncio
from fastapi import FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from .config import Config
from .shared.errors import SubmissionRejected
from .shared.schemas import (
    AnalysisResponse,
    ErrorResponse,
    HealthResponse,
    LinkAnalysisRequest,
    SubmissionPayload,
    TextAnalysisRequest,
)
from .submission.links import youtube_embed_url
from .submission.normalizer import SubmissionNormalizer
from .analysis.analysis_client import get_analysis_client
from .analysis.session import AnalysisSession, SessionState

# 환경 변수 로드
load_dotenv()

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="VeriScope Analysis Server",
    description="AI-generated media detection and web-grounded fact-check API",
    version=Config.VERSION
)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 모듈 인스턴스 (싱글톤)
normalizer = SubmissionNormalizer()
analysis_client = get_analysis_client()


@app.exception_handler(SubmissionRejected)
async def submission_rejected_handler(request: Request, exc: SubmissionRejected):
    """분석 전에 거부된 입력은 400으로 응답합니다."""
    logger.info(f"입력 거부: {exc}")
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Invalid submission", detail=str(exc)).model_dump()
    )


async def _run_analysis(payload: SubmissionPayload):
    """
    제출 1건을 새 세션에서 분석하고 API 응답으로 변환합니다.

    Args:
        payload (SubmissionPayload): 정규화된 제출 데이터.

    Returns:
        AnalysisResponse | JSONResponse: 성공 시 보고서, 실패 시 502 응답.
    """
    session = AnalysisSession(analysis_client)
    state = await session.submit(payload)

    base = {
        "state": state.value,
        "contentKind": payload.content_kind,
        "fileName": payload.file_name,
        "referenceUrl": payload.reference_url,
        "embedUrl": youtube_embed_url(payload.reference_url),
    }

    if state != SessionState.COMPLETED:
        body = AnalysisResponse(success=False, error=session.error, **base)
        return JSONResponse(status_code=502, content=body.model_dump(mode="json"))

    report = session.report
    return AnalysisResponse(
        success=True,
        authenticityLabel=report.aiDetection.authenticity_label(),
        statusCounts=report.status_counts(),
        report=report,
        **base
    )


@app.post("/api/analyze/upload", response_model=AnalysisResponse)
async def analyze_upload(file: UploadFile = File(...)):
    """
    업로드된 이미지/영상 파일 분석 엔드포인트.

    Args:
        file (UploadFile): 분석할 이미지 또는 영상.

    Returns:
        AnalysisResponse: 분석 결과.
    """
    content = await file.read()
    payload = normalizer.from_upload(content, file.content_type or "", file.filename or "")
    logger.info(f"업로드 분석 요청 수신: {payload.file_name}")
    return await _run_analysis(payload)


@app.post("/api/analyze/link", response_model=AnalysisResponse)
async def analyze_link(request: LinkAnalysisRequest):
    """
    링크 분석 엔드포인트.

    플랫폼 링크는 링크 자체를, 직접 미디어 링크는 다운로드한 파일을 분석하며,
    다운로드에 실패하면 링크 정보만으로 분석합니다.
    """
    payload = await asyncio.to_thread(normalizer.from_link, request.url)
    logger.info(f"링크 분석 요청 수신: {payload.content_kind.value} - {payload.reference_url}")
    return await _run_analysis(payload)


@app.post("/api/analyze/text", response_model=AnalysisResponse)
async def analyze_text(request: TextAnalysisRequest):
    """텍스트(주장) 검증 엔드포인트."""
    payload = normalizer.from_text(request.text)
    logger.info("텍스트 분석 요청 수신")
    return await _run_analysis(payload)


@app.get("/health", response_model=HealthResponse)
async def health():
    """서버 상태 확인"""
    return HealthResponse(status="healthy", version=Config.VERSION)


if __name__ == "__main__":
    import uvicorn
    Config.print_config()
    uvicorn.run(app, host=Config.HOST, port=Config.PORT)
