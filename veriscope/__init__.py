"""
VeriScope 분석 서버 패키지
"""

from .main import app
from .config import Config
from .analysis.analysis_client import get_analysis_client

__version__ = Config.VERSION
__all__ = ["app", "Config", "get_analysis_client"]
