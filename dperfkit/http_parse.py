"""Incremental parsing of HTTP/1.1 responses and quick request classification."""

from __future__ import annotations

import re
from enum import Enum, IntEnum, IntFlag

from dperfkit.net_stats import NetStats

_CR = ord("\r")
_LF = ord("\n")
_COLON = ord(":")

_HEX_DIGITS = {byte: int(chr(byte), 16) for byte in b"0123456789abcdef"}
_LEADING_INTEGER = re.compile(rb"[ \t\n\v\f\r]*([+-]?[0-9]+)")

_CONTENT_LENGTH = b"content-length:"
_TRANSFER_ENCODING = b"transfer-encoding:"
_CONNECTION = b"connection:"
_KEEP_ALIVE = b"keep-alive"


class HttpState(IntEnum):
    """Where the parser stands within a response."""

    INIT = 0
    HEADER_BEGIN = 1
    HEADER_LINE_END = 2
    HEADER_DONE = 3
    CHUNK_SIZE = 4
    CHUNK_SIZE_END = 5
    CHUNK_DATA = 6
    CHUNK_DATA_END = 7
    CHUNK_TRAILER_BEGIN = 8
    CHUNK_TRAILER = 9
    CHUNK_END = 10
    BODY_DONE = 11
    ERROR = 12


class HttpFlags(IntFlag):
    """What the headers said about the body and the connection."""

    CONTENT_LENGTH_AUTO = 0x1
    CONTENT_LENGTH = 0x2
    TRANSFER_ENCODING = 0x4
    CLOSE = 0x8


class ParseResult(Enum):
    """Outcome of feeding data to the parser."""

    CONTINUE = 0
    END = 1


class HttpParseError(ValueError):
    """The response is malformed or contradicts itself."""


def classify_response(data: bytes, stats: NetStats) -> bool:
    """Count a response and whether its status is 2xx; return that."""
    stats.tcp_rsp += 1
    if len(data) > 9 and data[9] == ord("2"):
        stats.http_2xx += 1
        return True
    stats.http_error += 1
    return False


def classify_request(data: bytes, stats: NetStats) -> str | None:
    """Count a request as GET, POST or error; return the method seen."""
    stats.tcp_req += 1
    if len(data) > 18:
        if data[0] == ord("G"):
            stats.http_get += 1
            return "GET"
        if data[1] == ord("O"):
            stats.http_post += 1
            return "POST"
    stats.http_error += 1
    return None


def _leading_integer(data: bytes) -> int:
    match = _LEADING_INTEGER.match(data)
    return int(match.group(1)) if match else 0


def _name_is(line: bytes, name_len: int, name: bytes) -> bool:
    # Only the first letter and the letter before the colon are compared.
    if name_len != len(name):
        return False
    size = len(name)
    return (
        line[:1].lower() == name[:1]
        and line[size - 2:size - 1].lower() == name[size - 2:size - 1]
    )


class HttpParser:
    """Follows one HTTP/1.1 response as it arrives in segments."""

    def __init__(self, stats: NetStats | None = None, keepalive: bool = True) -> None:
        self.stats = stats if stats is not None else NetStats()
        self.state = HttpState.INIT
        self.flags = HttpFlags(0)
        self.length = 0
        self.keepalive = keepalive

    @property
    def done(self) -> bool:
        """True once the whole body has been seen."""
        return self.state == HttpState.BODY_DONE

    def feed(self, data: bytes) -> ParseResult:
        """Consume one segment; tell whether the response is complete.

        Raises HttpParseError on a malformed response.
        """
        data = bytes(data)
        if self.state == HttpState.INIT:
            classify_response(data, self.stats)
            self.state = HttpState.HEADER_BEGIN
        if self.state < HttpState.HEADER_DONE:
            data = data[self._parse_headers(data):]
        return self._parse_body(data)

    def _parse_headers(self, data: bytes) -> int:
        start = 0
        line_len = 0
        name_len = 0
        for consumed, byte in enumerate(data, 1):
            line_len += 1
            if byte == _COLON and name_len == 0:
                name_len = line_len
            elif byte == _CR:
                continue
            elif byte == _LF:
                if self.state == HttpState.HEADER_BEGIN:
                    self._parse_header_line(data, start, name_len, line_len)
                    line_len = 0
                    name_len = 0
                    start = consumed
                    self.state = HttpState.HEADER_LINE_END
                else:
                    self.state = HttpState.HEADER_DONE
                    if not self.flags:
                        self.flags = HttpFlags.CONTENT_LENGTH_AUTO | HttpFlags.CLOSE
                        self.length = -1
                        self.keepalive = False
                    return consumed
            elif self.state != HttpState.HEADER_BEGIN:
                self.state = HttpState.HEADER_BEGIN
        return len(data)

    def _parse_header_line(self, data: bytes, start: int, name_len: int, line_len: int) -> None:
        line = data[start:start + line_len]
        if _name_is(line, name_len, _CONTENT_LENGTH):
            value = _leading_integer(data[start + name_len:])
            if value < 0:
                raise HttpParseError(f"negative Content-Length {value}")
            if self.flags & HttpFlags.TRANSFER_ENCODING:
                raise HttpParseError("Content-Length after chunked Transfer-Encoding")
            self.length = value
            self.flags |= HttpFlags.CONTENT_LENGTH
        elif _name_is(line, name_len, _TRANSFER_ENCODING):
            if b"k" in line[name_len:].lower():
                if self.flags & HttpFlags.CONTENT_LENGTH:
                    raise HttpParseError("chunked Transfer-Encoding after Content-Length")
                self.flags |= HttpFlags.TRANSFER_ENCODING
        elif _name_is(line, name_len, _CONNECTION):
            if line_len < name_len + len(_KEEP_ALIVE) + 1:
                self.flags |= HttpFlags.CLOSE
                self.keepalive = False

    def _parse_body(self, data: bytes) -> ParseResult:
        if self.flags & HttpFlags.CONTENT_LENGTH:
            if len(data) < self.length:
                self.length -= len(data)
                return ParseResult.CONTINUE
            if len(data) == self.length:
                self.length = 0
                self.state = HttpState.BODY_DONE
                return ParseResult.END
            raise HttpParseError("more body data than Content-Length announced")
        if self.flags & HttpFlags.TRANSFER_ENCODING:
            return self._parse_chunks(data)
        return ParseResult.CONTINUE

    def _parse_chunks(self, data: bytes) -> ParseResult:
        pos = 0
        end = len(data)
        while True:
            state = self.state
            if state == HttpState.HEADER_DONE:
                self.state = HttpState.CHUNK_SIZE
            elif state == HttpState.CHUNK_SIZE:
                while pos < end:
                    digit = _HEX_DIGITS.get(data[pos])
                    pos += 1
                    if digit is None:
                        self.state = HttpState.CHUNK_SIZE_END
                        break
                    self.length = (self.length << 4) + digit
                else:
                    return ParseResult.CONTINUE
            elif state == HttpState.CHUNK_SIZE_END:
                newline = data.find(b"\n", pos)
                if newline < 0:
                    return ParseResult.CONTINUE
                pos = newline + 1
                if self.length > 0:
                    self.state = HttpState.CHUNK_DATA
                else:
                    self.state = HttpState.CHUNK_TRAILER_BEGIN
            elif state == HttpState.CHUNK_DATA:
                if pos >= end:
                    return ParseResult.CONTINUE
                remaining = end - pos
                if self.length >= remaining:
                    self.length -= remaining
                    return ParseResult.CONTINUE
                pos += self.length
                self.length = 0
                byte = data[pos]
                pos += 1
                if byte != _CR:
                    raise HttpParseError("chunk data not followed by CRLF")
                self.state = HttpState.CHUNK_DATA_END
            elif state == HttpState.CHUNK_DATA_END:
                if pos >= end:
                    return ParseResult.CONTINUE
                byte = data[pos]
                pos += 1
                if byte != _LF:
                    raise HttpParseError("chunk data not followed by CRLF")
                self.state = HttpState.CHUNK_SIZE
            elif state == HttpState.CHUNK_TRAILER_BEGIN:
                if pos >= end:
                    return ParseResult.CONTINUE
                byte = data[pos]
                pos += 1
                self.state = HttpState.CHUNK_END if byte == _CR else HttpState.CHUNK_TRAILER
            elif state == HttpState.CHUNK_TRAILER:
                newline = data.find(b"\n", pos)
                if newline < 0:
                    return ParseResult.CONTINUE
                pos = newline + 1
                self.state = HttpState.CHUNK_TRAILER_BEGIN
            elif state == HttpState.CHUNK_END:
                if pos >= end:
                    return ParseResult.CONTINUE
                byte = data[pos]
                pos += 1
                if byte != _LF:
                    raise HttpParseError("bad end of chunked body")
                self.state = HttpState.BODY_DONE
                return ParseResult.END
            else:
                raise HttpParseError(f"unexpected data in state {state.name}")