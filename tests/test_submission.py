import socket
import unittest
from unittest.mock import patch, MagicMock

import requests
from pydantic import ValidationError
from urllib3.exceptions import LocationParseError

from veriscope.shared.errors import SubmissionRejected
from veriscope.shared.schemas import ContentKind, SubmissionPayload
from veriscope.submission.links import (
    fetch_blocked_reason,
    file_name_from_url,
    is_platform_link,
    youtube_embed_url,
)
from veriscope.submission.normalizer import FetchOutcome, SubmissionNormalizer, classify_link

PUBLIC_ADDRESS = "93.184.216.34"


def _addrinfo(address, port=443):
    """getaddrinfo 결과 형식의 목 데이터"""
    if ":" in address:
        return [(socket.AF_INET6, socket.SOCK_STREAM, 6, '', (address, port, 0, 0))]
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, '', (address, port))]


def _media_response(content=b'\x89PNG\r\n', content_type="image/png", status_code=200,
                    chunks=None, headers=None):
    """requests.get(stream=True)의 응답 목 객체 (with 블록 지원)"""
    resp = MagicMock()
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    resp.ok = 200 <= status_code < 300
    resp.status_code = status_code
    resp.is_redirect = False
    resp.headers = {"Content-Type": content_type}
    resp.headers.update(headers or {})
    resp.iter_content.return_value = chunks if chunks is not None else [content]
    return resp


def _redirect_response(location, status_code=302):
    resp = MagicMock()
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    resp.status_code = status_code
    resp.is_redirect = True
    resp.headers = {"Location": location}
    return resp


class TestSubmissionNormalizer(unittest.TestCase):

    def setUp(self):
        """테스트 설정"""
        self.normalizer = SubmissionNormalizer(timeout=5, max_media_bytes=1024)
        resolver = patch('veriscope.submission.links.socket.getaddrinfo',
                         return_value=_addrinfo(PUBLIC_ADDRESS))
        self.mock_resolve = resolver.start()
        self.addCleanup(resolver.stop)

    def test_text_keeps_body_verbatim(self):
        """텍스트 입력은 본문을 그대로 유지하고 첨부가 없어야 함"""
        text = "  The Eiffel Tower was completed in 1889.  "
        payload = self.normalizer.from_text(text)

        self.assertEqual(payload.content_kind, ContentKind.TEXT)
        self.assertEqual(payload.text_body, text)
        self.assertFalse(payload.has_media)
        self.assertIsNone(payload.reference_url)

    def test_blank_text_rejected(self):
        for text in ["", "   \n\t", None]:
            with self.assertRaises(SubmissionRejected):
                self.normalizer.from_text(text)

    def test_upload_image_and_video(self):
        image = self.normalizer.from_upload(b'img-bytes', "image/jpeg", "photo.jpg")
        self.assertEqual(image.content_kind, ContentKind.IMAGE)
        self.assertEqual(image.media_bytes, b'img-bytes')
        self.assertEqual(image.media_mime_type, "image/jpeg")
        self.assertEqual(image.file_name, "photo.jpg")
        self.assertIsNone(image.reference_url)

        video = self.normalizer.from_upload(b'vid-bytes', "video/mp4", "clip.mp4")
        self.assertEqual(video.content_kind, ContentKind.VIDEO)
        self.assertEqual(video.media_mime_type, "video/mp4")

    def test_upload_rejections(self):
        """빈 파일, 지원하지 않는 형식, 용량 초과는 분석 전에 거부"""
        with self.assertRaises(SubmissionRejected):
            self.normalizer.from_upload(b'', "image/png", "empty.png")
        with self.assertRaises(SubmissionRejected):
            self.normalizer.from_upload(b'%PDF', "application/pdf", "doc.pdf")
        with self.assertRaises(SubmissionRejected):
            self.normalizer.from_upload(b'x' * 2048, "image/png", "big.png")

    def test_empty_url_rejected(self):
        with self.assertRaises(SubmissionRejected):
            self.normalizer.from_link("   ")

    @patch('veriscope.submission.normalizer.requests.get')
    def test_platform_link_skips_fetch(self, mock_get):
        """플랫폼 링크는 다운로드 없이 PlatformLink로 분류"""
        for url in [
            "https://www.youtube.com/watch?v=abc123",
            "https://youtu.be/abc123",
            "https://vimeo.com/12345",
            "https://twitter.com/user/status/1",
            "https://x.com/user/status/1",
        ]:
            payload = self.normalizer.from_link(url)
            self.assertEqual(payload.content_kind, ContentKind.PLATFORM_LINK)
            self.assertEqual(payload.reference_url, url)
            self.assertFalse(payload.has_media)

        mock_get.assert_not_called()

    @patch('veriscope.submission.normalizer.requests.get')
    def test_direct_image_link(self, mock_get):
        """image/png 응답은 바이너리와 MIME을 그대로 담아야 함"""
        mock_get.return_value = _media_response(content=b'png-data', content_type="image/png")

        payload = self.normalizer.from_link("https://cdn.example.com/media/picture.png")

        self.assertEqual(payload.content_kind, ContentKind.DIRECT_MEDIA_LINK)
        self.assertEqual(payload.media_bytes, b'png-data')
        self.assertEqual(payload.media_mime_type, "image/png")
        self.assertEqual(payload.reference_url, "https://cdn.example.com/media/picture.png")
        self.assertEqual(payload.file_name, "picture.png")
        mock_get.assert_called_once_with(
            "https://cdn.example.com/media/picture.png", timeout=5, stream=True, allow_redirects=False
        )

    @patch('veriscope.submission.normalizer.requests.get')
    def test_content_type_parameters_stripped(self, mock_get):
        mock_get.return_value = _media_response(content=b'mp4', content_type="Video/MP4; codecs=avc1")

        payload = self.normalizer.from_link("https://cdn.example.com/clip")

        self.assertEqual(payload.content_kind, ContentKind.DIRECT_MEDIA_LINK)
        self.assertEqual(payload.media_mime_type, "video/mp4")

    @patch('veriscope.submission.normalizer.requests.get')
    def test_fetch_failures_fall_back_to_metadata(self, mock_get):
        """네트워크 오류, 비미디어 응답, HTTP 오류, 용량 초과 모두 MetadataOnlyLink로 전환"""
        url = "https://news.example.com/article/42"
        cases = [
            requests.exceptions.ConnectionError("connection refused"),
            requests.exceptions.Timeout("timed out"),
            _media_response(content=b'<html></html>', content_type="text/html; charset=utf-8"),
            _media_response(status_code=404),
            _media_response(content=b'x' * 4096),
            _media_response(content=b''),
        ]
        for case in cases:
            if isinstance(case, Exception):
                mock_get.side_effect = case
            else:
                mock_get.side_effect = None
                mock_get.return_value = case

            payload = self.normalizer.from_link(url)

            self.assertEqual(payload.content_kind, ContentKind.METADATA_ONLY_LINK)
            self.assertEqual(payload.reference_url, url)
            self.assertIsNone(payload.media_bytes)
            self.assertIsNone(payload.media_mime_type)
            self.assertIsNone(payload.text_body)
            self.assertEqual(payload.file_name, "Metadata Analysis")

    @patch('veriscope.submission.normalizer.requests.get')
    def test_fetch_media_never_raises(self, mock_get):
        """requests 밖의 예외(urllib3 파싱 오류, ValueError)도 실패 결과로 변환해야 함"""
        url = "http://" + "a" * 70 + ".com/x"
        for error in [LocationParseError(url), ValueError("bad url")]:
            mock_get.side_effect = error

            outcome = self.normalizer.fetch_media(url)

            self.assertFalse(outcome.success)
            self.assertIn("request failed", outcome.error)

    @patch('veriscope.submission.normalizer.requests.get')
    def test_overlong_host_label_falls_back_to_metadata(self, mock_get):
        """호스트 라벨이 63자를 넘는 링크도 MetadataOnlyLink로 전환"""
        url = "http://" + "a" * 70 + ".com/x"
        mock_get.side_effect = LocationParseError(url)

        payload = self.normalizer.from_link(url)

        self.assertEqual(payload.content_kind, ContentKind.METADATA_ONLY_LINK)
        self.assertEqual(payload.reference_url, url)

    @patch('veriscope.submission.normalizer.requests.get')
    def test_declared_length_over_limit_skips_body(self, mock_get):
        """Content-Length가 한도를 넘으면 본문을 읽지 않아야 함"""
        resp = _media_response(headers={"Content-Length": str(10 * 1024 * 1024)})
        mock_get.return_value = resp

        outcome = self.normalizer.fetch_media("https://cdn.example.com/huge.png")

        self.assertFalse(outcome.success)
        self.assertIn("too large", outcome.error)
        resp.iter_content.assert_not_called()
        resp.__exit__.assert_called_once()

    @patch('veriscope.submission.normalizer.requests.get')
    def test_streaming_stops_after_limit(self, mock_get):
        """Content-Length가 없어도 한도 초과 즉시 읽기를 멈춰야 함"""
        consumed = []

        def endless_chunks():
            while True:
                consumed.append(1)
                yield b'x' * 512

        resp = _media_response(chunks=endless_chunks())
        mock_get.return_value = resp

        outcome = self.normalizer.fetch_media("https://cdn.example.com/stream.mp4")

        self.assertFalse(outcome.success)
        self.assertIn("too large", outcome.error)
        # 1024 bytes 한도: 512 bytes 청크 3개째에서 중단
        self.assertEqual(len(consumed), 3)
        resp.__exit__.assert_called_once()

    @patch('veriscope.submission.normalizer.requests.get')
    def test_body_assembled_from_chunks(self, mock_get):
        mock_get.return_value = _media_response(chunks=[b'ab', b'', b'cd'])

        outcome = self.normalizer.fetch_media("https://cdn.example.com/a.png")

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.content, b'abcd')

    @patch('veriscope.submission.normalizer.requests.get')
    def test_redirect_followed_with_host_check(self, mock_get):
        """리다이렉트는 직접 따라가며 매 단계 주소를 검사해야 함"""
        mock_get.side_effect = [
            _redirect_response("/media/final.png"),
            _media_response(content=b'final'),
        ]

        outcome = self.normalizer.fetch_media("https://cdn.example.com/short")

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.content, b'final')
        self.assertEqual(mock_get.call_count, 2)
        self.assertEqual(mock_get.call_args[0][0], "https://cdn.example.com/media/final.png")
        self.assertEqual(self.mock_resolve.call_count, 2)

    @patch('veriscope.submission.normalizer.requests.get')
    def test_redirect_to_internal_host_blocked(self, mock_get):
        def resolve(host, *args, **kwargs):
            if host == "169.254.169.254":
                return _addrinfo("169.254.169.254", 80)
            return _addrinfo(PUBLIC_ADDRESS)

        self.mock_resolve.side_effect = resolve
        mock_get.return_value = _redirect_response("http://169.254.169.254/latest/meta-data/")

        payload = self.normalizer.from_link("https://cdn.example.com/pic.png")

        self.assertEqual(payload.content_kind, ContentKind.METADATA_ONLY_LINK)
        mock_get.assert_called_once()

    @patch('veriscope.submission.normalizer.requests.get')
    def test_endless_redirects_give_up(self, mock_get):
        mock_get.return_value = _redirect_response("https://cdn.example.com/loop")

        outcome = self.normalizer.fetch_media("https://cdn.example.com/loop")

        self.assertFalse(outcome.success)
        self.assertEqual(outcome.error, "too many redirects")


class TestFetchBlocking(unittest.TestCase):
    """서버 측 다운로드 대상 주소 제한 검증"""

    def setUp(self):
        self.normalizer = SubmissionNormalizer(timeout=5, max_media_bytes=1024)

    @patch('veriscope.submission.normalizer.requests.get')
    @patch('veriscope.submission.links.socket.getaddrinfo')
    def test_internal_addresses_not_requested(self, mock_resolve, mock_get):
        """루프백, 링크로컬, 사설 주소로 해석되는 호스트는 요청하지 않아야 함"""
        cases = [
            ("http://127.0.0.1:8000/health", "127.0.0.1"),
            ("http://169.254.169.254/latest/meta-data/", "169.254.169.254"),
            ("http://intranet.example.com/photo.png", "10.0.0.5"),
            ("http://router.example.com/cam.jpg", "192.168.1.1"),
            ("http://[::1]/x.png", "::1"),
            ("http://localhost/x.png", "127.0.0.1"),
        ]
        for url, address in cases:
            mock_resolve.return_value = _addrinfo(address, 80)

            payload = self.normalizer.from_link(url)

            self.assertEqual(payload.content_kind, ContentKind.METADATA_ONLY_LINK)
            self.assertIn("non-public address", fetch_blocked_reason(url))

        mock_get.assert_not_called()

    @patch('veriscope.submission.normalizer.requests.get')
    @patch('veriscope.submission.links.socket.getaddrinfo')
    def test_mixed_resolution_blocked(self, mock_resolve, mock_get):
        """해석 결과 중 하나라도 내부 주소면 차단"""
        mock_resolve.return_value = _addrinfo(PUBLIC_ADDRESS, 80) + _addrinfo("127.0.0.1", 80)

        outcome = self.normalizer.fetch_media("http://split.example.com/a.png")

        self.assertFalse(outcome.success)
        self.assertIn("blocked", outcome.error)
        mock_get.assert_not_called()

    @patch('veriscope.submission.normalizer.requests.get')
    @patch('veriscope.submission.links.socket.getaddrinfo')
    def test_non_http_schemes_not_requested(self, mock_resolve, mock_get):
        for url in ["ftp://example.com/file.png", "file:///etc/passwd", "gopher://example.com/1"]:
            outcome = self.normalizer.fetch_media(url)

            self.assertFalse(outcome.success)
            self.assertIn("unsupported scheme", outcome.error)

        mock_resolve.assert_not_called()
        mock_get.assert_not_called()

    @patch('veriscope.submission.normalizer.requests.get')
    @patch('veriscope.submission.links.socket.getaddrinfo')
    def test_unresolvable_host_not_requested(self, mock_resolve, mock_get):
        mock_resolve.side_effect = socket.gaierror(-2, "Name or service not known")

        outcome = self.normalizer.fetch_media("https://no-such-host.invalid/a.png")

        self.assertFalse(outcome.success)
        self.assertIn("host resolution failed", outcome.error)
        mock_get.assert_not_called()

    @patch('veriscope.submission.normalizer.requests.get')
    def test_malformed_url_not_requested(self, mock_get):
        payload = self.normalizer.from_link("http://[bad-host/img.png")

        self.assertEqual(payload.content_kind, ContentKind.METADATA_ONLY_LINK)
        self.assertEqual(fetch_blocked_reason("http://[bad-host/img.png"), "malformed url")
        mock_get.assert_not_called()


class TestClassifyLink(unittest.TestCase):
    """네트워크 없이 링크 분류 정책 검증"""

    def test_platform_takes_precedence(self):
        outcome = FetchOutcome(success=True, content=b'img', content_type="image/png")
        self.assertEqual(
            classify_link("https://www.youtube.com/watch?v=1", outcome),
            ContentKind.PLATFORM_LINK
        )
        self.assertEqual(classify_link("https://youtu.be/1", None), ContentKind.PLATFORM_LINK)

    def test_successful_media_fetch(self):
        for content_type in ["image/png", "image/webp", "video/mp4"]:
            outcome = FetchOutcome(success=True, content=b'data', content_type=content_type)
            self.assertEqual(
                classify_link("https://example.com/m", outcome),
                ContentKind.DIRECT_MEDIA_LINK
            )

    def test_failed_or_non_media_fetch(self):
        outcomes = [
            None,
            FetchOutcome(success=False, error="timeout"),
            FetchOutcome(success=True, content=b'<html>', content_type="text/html"),
            FetchOutcome(success=True, content=b'', content_type="image/png"),
        ]
        for outcome in outcomes:
            self.assertEqual(
                classify_link("https://example.com/page", outcome),
                ContentKind.METADATA_ONLY_LINK
            )


class TestLinks(unittest.TestCase):

    def test_platform_host_matching(self):
        self.assertTrue(is_platform_link("https://m.youtube.com/watch?v=1"))
        self.assertTrue(is_platform_link("www.x.com/user/status/2"))
        self.assertTrue(is_platform_link("HTTPS://Twitter.com/a"))
        # 도메인 문자열이 포함되기만 한 경우는 제외
        self.assertFalse(is_platform_link("https://dropbox.com/s/file.mp4"))
        self.assertFalse(is_platform_link("https://example.com/?next=youtube.com"))
        self.assertFalse(is_platform_link(""))

    def test_custom_domain_list(self):
        self.assertTrue(is_platform_link("https://www.tiktok.com/@a/video/1", domains=["tiktok.com"]))
        self.assertFalse(is_platform_link("https://youtube.com/watch?v=1", domains=["tiktok.com"]))

    def test_youtube_embed_url(self):
        self.assertEqual(
            youtube_embed_url("https://www.youtube.com/watch?v=abc123&t=30s"),
            "https://www.youtube.com/embed/abc123"
        )
        self.assertEqual(
            youtube_embed_url("https://youtu.be/xyz789?si=share"),
            "https://www.youtube.com/embed/xyz789"
        )
        self.assertEqual(
            youtube_embed_url("https://www.youtube.com/shorts/short1"),
            "https://www.youtube.com/embed/short1"
        )
        self.assertIsNone(youtube_embed_url("https://vimeo.com/12345"))
        self.assertIsNone(youtube_embed_url(None))

    def test_malformed_urls_do_not_raise(self):
        """깨진 URL은 예외 없이 '해당 없음'으로 처리"""
        for url in ["http://[bad-host/img.png", "https://example.com:99999/a", "http://[::1/x"]:
            self.assertIsNone(youtube_embed_url(url))
            self.assertFalse(is_platform_link(url))
            self.assertEqual(file_name_from_url(url), "remote-content")

    def test_file_name_from_url(self):
        self.assertEqual(file_name_from_url("https://a.com/media/cat.jpg?x=1"), "cat.jpg")
        self.assertEqual(file_name_from_url("https://a.com/"), "remote-content")


class TestSubmissionPayload(unittest.TestCase):
    """입력 종류별 필드 규칙 검증"""

    def test_invalid_combinations(self):
        invalid = [
            dict(content_kind=ContentKind.TEXT, text_body="claim", media_bytes=b'x', media_mime_type="image/png"),
            dict(content_kind=ContentKind.TEXT, text_body="   "),
            dict(content_kind=ContentKind.IMAGE, media_bytes=b'x', media_mime_type="video/mp4"),
            dict(content_kind=ContentKind.IMAGE, media_bytes=b'x'),
            dict(content_kind=ContentKind.VIDEO, media_bytes=b'x', media_mime_type="video/mp4", reference_url="https://a"),
            dict(content_kind=ContentKind.PLATFORM_LINK),
            dict(content_kind=ContentKind.METADATA_ONLY_LINK, reference_url="https://a", media_bytes=b'x', media_mime_type="image/png"),
            dict(content_kind=ContentKind.DIRECT_MEDIA_LINK, media_bytes=b'x', media_mime_type="image/png"),
        ]
        for fields in invalid:
            with self.assertRaises(ValidationError):
                SubmissionPayload(**fields)

    def test_direct_media_link_keeps_reference_url(self):
        payload = SubmissionPayload(
            content_kind=ContentKind.DIRECT_MEDIA_LINK,
            media_bytes=b'x',
            media_mime_type="image/gif",
            reference_url="https://a.com/x.gif",
        )
        self.assertTrue(payload.has_media)


if __name__ == '__main__':
    unittest.main()
