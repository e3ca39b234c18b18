"""분석 세션 상태 관리"""

import logging
from enum import Enum
from typing import Optional

from ..shared.errors import AnalysisError, SubmissionRejected
from ..shared.schemas import SubmissionPayload, VerificationReport
from .analysis_client import AnalysisClient

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "IDLE"
    ANALYZING = "ANALYZING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


class AnalysisSession:
    """
    제출 1건의 분석 상태 머신.

    IDLE -> ANALYZING -> COMPLETED(report) | ERROR(message)
    진행 중에는 새 제출을 받지 않으며, reset()으로 IDLE로 돌아갑니다.
    """

    def __init__(self, client: AnalysisClient):
        self.client = client
        self.state = SessionState.IDLE
        self.payload: Optional[SubmissionPayload] = None
        self.report: Optional[VerificationReport] = None
        self.error: Optional[str] = None

    async def submit(self, payload: SubmissionPayload) -> SessionState:
        """
        제출 데이터를 분석하고 종료 상태를 반환합니다.

        Raises:
            SubmissionRejected: 이미 분석이 진행 중인 경우.
        """
        if self.state == SessionState.ANALYZING:
            raise SubmissionRejected("An analysis is already in progress.")

        self.payload = payload
        self.report = None
        self.error = None
        self.state = SessionState.ANALYZING

        try:
            self.report = await self.client.analyze(payload)
        except AnalysisError as e:
            self.error = e.message
            self.state = SessionState.ERROR
            logger.info(f"세션 분석 실패: {payload.content_kind.value}")
            return self.state

        self.state = SessionState.COMPLETED
        return self.state

    def reset(self):
        """세션을 초기 상태로 되돌립니다."""
        self.state = SessionState.IDLE
        self.payload = None
        self.report = None
        self.error = None
