"""
Unit tests for HTTP request assembly.
"""

import pytest

from tinyhttpd.http.request import (
    Request,
    RequestParser,
    HTTPParseError,
    parse_request,
    parse_request_line,
    parse_header_line,
    parse_content_length,
    parse_uri_reference,
)


class TestRequestParser:
    """Tests for RequestParser / parse_request."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        request = parse_request(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/api/users"
        assert request.query == "page=1&limit=10"
        assert request.target == "/api/users?page=1&limit=10"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.body == b""

    def test_headers_keep_order_and_case(self, sample_get_request: bytes):
        request = parse_request(sample_get_request)

        assert request.headers == (
            ("Host", "localhost:8080"),
            ("User-Agent", "pytest"),
            ("Accept", "application/json"),
        )

    def test_parse_post_with_body(self, sample_post_request: bytes):
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.body == b'{"name": "John", "email": "john@example.com"}'
        assert request.get_header("content-type") == "application/json"

    @pytest.mark.parametrize("name", ["Content-Length", "CONTENT-LENGTH", "content-length", "cOnTeNt-LeNgTh"])
    def test_content_length_any_case(self, name: str):
        raw = f"POST / HTTP/1.1\r\n{name}: 5\r\n\r\nhello".encode()
        request = parse_request(raw)

        assert request.body == b"hello"
        assert request.headers == ((name, "5"),)

    def test_body_ignored_without_content_length(self):
        raw = b"POST / HTTP/1.1\r\nHost: x\r\n\r\nthese bytes are not a body"

        assert parse_request(raw).body == b""

    def test_body_reads_only_declared_length(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 3\r\n\r\nabcdef"

        assert parse_request(raw).body == b"abc"

    def test_binary_body_is_byte_identical(self):
        body = bytes(range(256)) + b"\r\n\r\n"
        raw = f"PUT /blob HTTP/1.1\r\nContent-Length: {len(body)}\r\n\r\n".encode() + body

        assert parse_request(raw).body == body

    def test_last_content_length_wins(self):
        raw = (
            b"POST / HTTP/1.1\r\n"
            b"Content-Length: 10\r\n"
            b"Content-Length: 2\r\n"
            b"\r\n"
            b"hi"
        )
        request = parse_request(raw)

        assert request.body == b"hi"
        assert request.get_all_headers("content-length") == ["10", "2"]

    def test_zero_content_length(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 0\r\n\r\n"

        assert parse_request(raw).body == b""

    def test_duplicate_headers_preserved(self):
        raw = b"GET / HTTP/1.1\r\nX-Tag: a\r\nX-Other: b\r\nX-Tag: c\r\n\r\n"
        request = parse_request(raw)

        assert request.get_all_headers("x-tag") == ["a", "c"]
        assert request.get_header("X-TAG") == "a"
        assert request.get_header("missing", "default") == "default"

    def test_value_leading_whitespace_stripped(self):
        raw = b"GET / HTTP/1.1\r\nX-Spaced:   \t value with spaces \r\n\r\n"

        assert parse_request(raw).headers == (("X-Spaced", "value with spaces "),)

    def test_value_split_at_first_colon(self):
        raw = b"GET / HTTP/1.1\r\nHost: example.com:8080\r\n\r\n"

        assert parse_request(raw).headers == (("Host", "example.com:8080"),)

    def test_no_headers(self):
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")

        assert request.headers == ()
        assert request.path == "/"

    def test_any_method_token_accepted(self):
        request = parse_request(b"BREW /pot HTTP/1.1\r\n\r\n")

        assert request.method == "BREW"

    def test_whitespace_runs_in_request_line(self):
        request = parse_request(b"GET \t /x   HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/x"

    def test_absolute_uri_target(self):
        request = parse_request(b"GET http://example.com/a?b=c HTTP/1.1\r\n\r\n")

        assert request.uri.scheme == "http"
        assert request.uri.netloc == "example.com"
        assert request.path == "/a"
        assert request.arguments == [("b", "c")]

    def test_arguments_are_decoded(self):
        request = parse_request(b"GET /search?q=hello%20world&q=again HTTP/1.1\r\n\r\n")

        assert request.arguments == [("q", "hello world"), ("q", "again")]

    def test_parser_reads_from_any_reader(self):
        class ScriptedReader:
            def __init__(self):
                self.lines = ["GET /x HTTP/1.1", "Content-Length: 2", ""]

            def read_line(self):
                return self.lines.pop(0)

            def read_exact(self, count):
                assert count == 2
                return b"ok"

        request = RequestParser().parse(ScriptedReader())

        assert request.body == b"ok"


class TestMalformedRequests:
    """Every malformed input aborts with HTTPParseError or EOFError."""

    @pytest.mark.parametrize("line", [
        b"GET\r\n",
        b"GET /\r\n",
        b"GET / HTTP/1.1 extra\r\n",
        b"\r\n",
    ])
    def test_wrong_token_count(self, line: bytes):
        with pytest.raises(HTTPParseError):
            parse_request(line + b"\r\n")

    @pytest.mark.parametrize("version", [b"HTTP/1.0", b"HTTP/2", b"http/1.1", b"HTTP/1.10"])
    def test_unsupported_version(self, version: bytes):
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(b"GET / " + version + b"\r\n\r\n")

        assert "version" in str(exc_info.value).lower()

    @pytest.mark.parametrize("target", [
        b"/<script>", b"/a%zz", b"/a%2", b"http://[::1/", b"/\"quoted\"",
        b"/a[b]", b"/x?q=[1]", b"/x#[frag]", b"http://ho[st]/", b"//]/",
    ])
    def test_invalid_target(self, target: bytes):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET " + target + b" HTTP/1.1\r\n\r\n")

    def test_header_without_colon(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nHost example.com\r\n\r\n")

    @pytest.mark.parametrize("value", [b"abc", b"-1", b"+5", b"", b"1.5", b"0x10"])
    def test_invalid_content_length(self, value: bytes):
        with pytest.raises(HTTPParseError):
            parse_request(b"POST / HTTP/1.1\r\nContent-Length: " + value + b"\r\n\r\n")

    def test_missing_blank_line(self):
        with pytest.raises(EOFError):
            parse_request(b"GET / HTTP/1.1\r\nHost: x\r\n")

    def test_empty_stream(self):
        with pytest.raises(EOFError):
            parse_request(b"")

    def test_short_body(self):
        with pytest.raises(EOFError):
            parse_request(b"POST / HTTP/1.1\r\nContent-Length: 10\r\n\r\nabc")


class TestLineParsers:
    """Tests for the standalone line parsing helpers."""

    def test_parse_request_line(self):
        method, target, uri = parse_request_line("POST /items?x=1 HTTP/1.1")

        assert method == "POST"
        assert target == "/items?x=1"
        assert uri.path == "/items"
        assert uri.query == "x=1"

    def test_parse_header_line(self):
        assert parse_header_line("Content-Type: text/plain") == ("Content-Type", "text/plain")
        assert parse_header_line("X-Empty:") == ("X-Empty", "")

    def test_parse_content_length_surrounding_whitespace(self):
        assert parse_content_length(" 42 ") == 42

    def test_parse_uri_reference_relative(self):
        uri = parse_uri_reference("../a/b#frag")

        assert uri.path == "../a/b"
        assert uri.fragment == "frag"

    def test_parse_uri_reference_asterisk(self):
        assert parse_uri_reference("*").path == "*"

    @pytest.mark.parametrize("target", ["http://[::1]:8080/a", "//user@[2001:db8::7]/x", "http://[::1]"])
    def test_parse_uri_reference_ip_literal_host(self, target: str):
        uri = parse_uri_reference(target)

        assert uri.hostname in ("::1", "2001:db8::7")


class TestRequest:
    """Tests for the Request value."""

    def test_request_is_immutable(self):
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")

        with pytest.raises(AttributeError):
            request.method = "POST"

    def test_equality_ignores_client_address(self):
        raw = b"GET /a HTTP/1.1\r\nHost: x\r\n\r\n"

        assert parse_request(raw, ("1.2.3.4", 1)) == parse_request(raw, ("5.6.7.8", 2))

    def test_direct_construction(self):
        request = Request(method="GET", uri=parse_uri_reference("/x?a=1"))

        assert request.headers == ()
        assert request.body == b""
        assert request.arguments == [("a", "1")]
