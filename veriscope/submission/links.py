"""링크 판별 유틸리티"""

import ipaddress
import socket
from typing import Iterable, Optional
from urllib.parse import ParseResult, urlparse, parse_qs

from ..config import Config

FETCHABLE_SCHEMES = ("http", "https")


def _parse(url: str) -> Optional[ParseResult]:
    """URL을 파싱합니다. 스킴이 없으면 호스트로 시작한다고 보고, 깨진 URL은 None."""
    url = (url or "").strip()
    if "://" not in url:
        url = "//" + url
    try:
        parsed = urlparse(url)
        # hostname/port 접근 시점에 발생하는 ValueError까지 여기서 확인
        parsed.hostname
        parsed.port
    except ValueError:
        return None
    return parsed


def _hostname(url: str) -> str:
    parsed = _parse(url)
    if parsed is None:
        return ""
    return (parsed.hostname or "").lower()


def is_platform_link(url: str, domains: Optional[Iterable[str]] = None) -> bool:
    """
    직접 다운로드가 막혀 있는 영상/소셜 플랫폼 링크인지 확인합니다.

    호스트가 허용 목록의 도메인이거나 그 서브도메인이면 플랫폼 링크로 봅니다.

    Args:
        url (str): 검사할 URL.
        domains (Optional[Iterable[str]]): 플랫폼 도메인 목록 (기본값: Config 설정).

    Returns:
        bool: 플랫폼 링크 여부.
    """
    host = _hostname(url)
    if not host:
        return False
    for domain in domains if domains is not None else Config.PLATFORM_DOMAINS:
        if host == domain or host.endswith("." + domain):
            return True
    return False


def youtube_embed_url(url: Optional[str]) -> Optional[str]:
    """YouTube 링크를 임베드 URL로 변환합니다 (YouTube가 아니거나 깨진 URL이면 None)."""
    parsed = _parse(url) if url else None
    if parsed is None:
        return None
    host = (parsed.hostname or "").lower()

    video_id = None
    if host == "youtu.be":
        video_id = parsed.path.lstrip("/").split("/")[0]
    elif host == "youtube.com" or host.endswith(".youtube.com"):
        video_id = parse_qs(parsed.query).get("v", [None])[0]
        if not video_id and parsed.path.startswith(("/shorts/", "/embed/")):
            video_id = parsed.path.split("/")[2]

    if not video_id:
        return None
    return f"https://www.youtube.com/embed/{video_id}"


def file_name_from_url(url: str) -> str:
    """URL 경로의 마지막 조각을 표시용 파일 이름으로 사용합니다."""
    parsed = _parse(url)
    path = parsed.path if parsed is not None else ""
    name = path.rstrip("/").split("/")[-1]
    return name or "remote-content"


def _is_public_ip(address: str) -> bool:
    ip = ipaddress.ip_address(address.split("%")[0])
    return ip.is_global and not ip.is_multicast


def fetch_blocked_reason(url: str) -> Optional[str]:
    """
    서버가 직접 다운로드하면 안 되는 URL인지 확인합니다.

    http(s)가 아닌 스킴, 해석되지 않는 호스트, 사설/루프백/링크로컬 주소로
    해석되는 호스트는 차단 사유를 반환합니다. 다운로드 가능하면 None.
    """
    parsed = _parse(url)
    if parsed is None:
        return "malformed url"
    if parsed.scheme.lower() not in FETCHABLE_SCHEMES:
        return f"unsupported scheme: {parsed.scheme or 'none'}"
    host = parsed.hostname
    if not host:
        return "missing host"

    try:
        infos = socket.getaddrinfo(host, parsed.port or None, proto=socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError, OSError) as e:
        return f"host resolution failed: {e}"

    for info in infos:
        address = info[4][0]
        if not _is_public_ip(address):
            return f"non-public address: {address}"
    return None
