"""Error kinds raised by the rTorrent RPC layer.

Every failure surfaces as an ``RPCError`` subclass so callers can tell
"empty result" apart from "something went wrong" without inspecting text.
"""

from __future__ import annotations

from typing import Any


class RPCError(Exception):
    pass


class EncodingError(RPCError):
    """A parameter has no XML-RPC representation."""


class DecodeError(RPCError):
    """The response body is not a well-formed XML-RPC document."""


class ConnectivityError(RPCError):
    """No response was obtained from the daemon."""


class AlignmentError(RPCError):
    """Decoded result count does not match the submitted command count."""

    def __init__(self, message: str, expected: int = -1, actual: int = -1) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class FaultError(RPCError):
    """The server answered with an XML-RPC fault."""

    def __init__(self, code: Any, message: str) -> None:
        super().__init__(f"<Fault {code}: {message!r}>")
        self.code = code
        self.message = message

    @classmethod
    def from_struct(cls, fault: Any) -> "FaultError":
        if isinstance(fault, dict):
            return cls(fault.get("faultCode", -1), str(fault.get("faultString", "")))
        return cls(-1, str(fault))
