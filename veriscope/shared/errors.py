"""분석 파이프라인 예외 정의"""

# 사용자에게 노출되는 유일한 분석 실패 메시지
ANALYSIS_FAILED_MESSAGE = "Failed to analyze content. Please try again."


class SubmissionRejected(ValueError):
    """
    분석 요청 전에 거부된 입력 (빈 텍스트, 파일 없음, 지원하지 않는 형식 등).
    Provider 호출은 발생하지 않습니다.
    """


class AnalysisError(RuntimeError):
    """
    분석 실패를 나타내는 단일 예외.

    Provider 전송 오류, 응답 파싱 실패, 스키마 위반 모두 이 예외 하나로 변환되며,
    메시지는 항상 ANALYSIS_FAILED_MESSAGE 입니다.
    """

    def __init__(self, message: str = ANALYSIS_FAILED_MESSAGE):
        super().__init__(message)
        self.message = message
