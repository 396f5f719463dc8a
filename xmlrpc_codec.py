"""XML-RPC wire codec.

Pure translation between Python values and the XML-RPC dialect rTorrent
speaks. Nothing here knows about torrents. Parsing uses a fresh
defusedxml ElementTree parser per response, so the module holds no parser
state and entity expansion from the daemon is refused.

Value kinds:

    str                      <string>
    bool                     <boolean>
    int / whole float        <int> (<i8> outside the signed 32-bit range)
    float                    <double>
    datetime                 <dateTime.iso8601>
    bytes                    <base64>
    list / tuple             <array>
    dict                     <struct>
"""

from __future__ import annotations

import base64
import datetime
import logging
import math
import xmlrpc.client
import xml.etree.ElementTree as ET
from typing import Any, Iterable, List, Tuple

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as SafeET

from rpc_errors import DecodeError, EncodingError, FaultError

logger = logging.getLogger(__name__)

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

_XML_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    "'": "&apos;",
    '"': "&quot;",
}
_XML_ESCAPE_TABLE = str.maketrans(_XML_ESCAPES)

# Tags that only wrap one meaningful child element.
_WRAPPER_TAGS = ("methodResponse", "params", "param", "value", "fault", "array")


def escape_xml(text: str) -> str:
    return text.translate(_XML_ESCAPE_TABLE)


def _encode_int(value: int) -> str:
    if INT32_MIN <= value <= INT32_MAX:
        return f"<int>{value}</int>"
    return f"<i8>{value}</i8>"


def _encode_float(value: float) -> str:
    if not math.isfinite(value):
        raise EncodingError(f"cannot encode non-finite double {value!r}")
    if value.is_integer():
        return _encode_int(int(value))
    return f"<double>{value!r}</double>"


def _encode_datetime(value: Any) -> str:
    if isinstance(value, xmlrpc.client.DateTime):
        text = value.value
    else:
        text = value.isoformat()
    return f"<dateTime.iso8601>{escape_xml(text)}</dateTime.iso8601>"


def _encode_binary(value: Any) -> str:
    if isinstance(value, xmlrpc.client.Binary):
        value = value.data
    encoded = base64.b64encode(bytes(value)).decode("ascii")
    return f"<base64>{encoded}</base64>"


def _encode_array(values: Iterable[Any]) -> str:
    items = "".join(f"<value>{encode_value(v)}</value>" for v in values)
    return f"<array><data>{items}</data></array>"


def _encode_struct(mapping: dict) -> str:
    members = []
    for key, value in mapping.items():
        if not isinstance(key, str):
            raise EncodingError(f"struct member names must be str, got {type(key).__name__}")
        members.append(
            f"<member><name>{escape_xml(key)}</name>"
            f"<value>{encode_value(value)}</value></member>"
        )
    return f"<struct>{''.join(members)}</struct>"


def encode_value(value: Any) -> str:
    """Encode one parameter into its typed XML-RPC node."""
    # bool before int: bool is an int subclass.
    if isinstance(value, bool):
        return f"<boolean>{1 if value else 0}</boolean>"
    if isinstance(value, int):
        return _encode_int(value)
    if isinstance(value, float):
        return _encode_float(value)
    if isinstance(value, str):
        return f"<string>{escape_xml(value)}</string>"
    # A bare date would come back as a datetime, so only datetime is accepted.
    if isinstance(value, (datetime.datetime, xmlrpc.client.DateTime)):
        return _encode_datetime(value)
    if isinstance(value, (bytes, bytearray, memoryview, xmlrpc.client.Binary)):
        return _encode_binary(value)
    if isinstance(value, (list, tuple)):
        return _encode_array(value)
    if isinstance(value, dict):
        return _encode_struct(value)
    raise EncodingError(f"cannot encode value of type {type(value).__name__}")


def encode_request(method: str, params: Iterable[Any] = ()) -> str:
    """Build a complete ``methodCall`` document."""
    body = "".join(f"<param><value>{encode_value(p)}</value></param>" for p in params)
    return (
        '<?xml version="1.0"?>'
        "<methodCall>"
        f"<methodName>{escape_xml(method)}</methodName>"
        f"<params>{body}</params>"
        "</methodCall>"
    )


def _first_child(element: ET.Element) -> ET.Element:
    for child in element:
        return child
    raise DecodeError(f"<{element.tag}> has no child element")


def _parse_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise DecodeError(f"invalid integer {text!r}") from None


def _parse_double(text: str) -> float:
    try:
        return float(text.strip())
    except ValueError:
        raise DecodeError(f"invalid double {text!r}") from None


def _parse_datetime(text: str) -> datetime.datetime:
    text = text.strip()
    try:
        return datetime.datetime.strptime(text, "%Y%m%dT%H:%M:%S")
    except ValueError:
        pass
    try:
        return datetime.datetime.fromisoformat(text)
    except ValueError:
        raise DecodeError(f"invalid dateTime.iso8601 {text!r}") from None


def _parse_base64(text: str) -> bytes:
    try:
        return base64.b64decode(text.strip().encode("ascii"), validate=False)
    except (ValueError, UnicodeEncodeError):
        raise DecodeError("invalid base64 payload") from None


def _decode_struct(element: ET.Element) -> dict:
    record: dict = {}
    for member in element:
        for name, value in decode_value(member).items():
            if name in record:
                # Last write wins; the server sent a duplicate member name.
                logger.debug("Duplicate struct member %r overwritten", name)
            record[name] = value
    return record


def decode_value(element: ET.Element) -> Any:
    """Decode an XML-RPC node tree into plain Python values."""
    tag = element.tag
    text = element.text or ""

    if tag == "string":
        return text
    if tag == "boolean":
        return text.strip() in ("true", "1")
    if tag in ("int", "i4", "i8"):
        return _parse_int(text)
    if tag == "double":
        return _parse_double(text)
    if tag == "dateTime.iso8601":
        return _parse_datetime(text)
    if tag == "base64":
        return _parse_base64(text)
    if tag == "nil":
        return None
    if tag == "value" and len(element) == 0:
        # Untyped value defaults to string.
        return text
    if tag in _WRAPPER_TAGS:
        return decode_value(_first_child(element))
    if tag == "data":
        return [decode_value(child) for child in element]
    if tag == "struct":
        return _decode_struct(element)
    if tag == "member":
        name = element.find("name")
        value = element.find("value")
        if name is None or value is None:
            raise DecodeError("<member> needs both <name> and <value>")
        return {name.text or "": decode_value(value)}
    raise DecodeError(f"unexpected element <{tag}>")


def parse_document(body: str) -> ET.Element:
    try:
        return SafeET.fromstring(body)
    except (ET.ParseError, DefusedXmlException) as e:
        raise DecodeError(f"malformed XML-RPC response: {e}") from None


def decode_response(body: str) -> Any:
    """Decode a ``methodResponse`` body.

    A fault envelope is raised as ``FaultError`` before any payload decoding
    takes place, so a fault never comes back as data.
    """
    root = parse_document(body)
    if root.tag != "methodResponse":
        raise DecodeError(f"expected <methodResponse>, got <{root.tag}>")

    fault = root.find("fault")
    if fault is not None:
        raise FaultError.from_struct(decode_value(fault))

    return decode_value(root)


def decode_request(body: str) -> Tuple[str, List[Any]]:
    """Decode a ``methodCall`` body into ``(method, params)``."""
    root = parse_document(body)
    if root.tag != "methodCall":
        raise DecodeError(f"expected <methodCall>, got <{root.tag}>")
    name = root.find("methodName")
    if name is None:
        raise DecodeError("<methodCall> without <methodName>")
    params = root.find("params")
    values = [] if params is None else [decode_value(p) for p in params]
    return (name.text or "").strip(), values


def encode_response(value: Any) -> str:
    """Build a successful ``methodResponse`` document around ``value``."""
    return (
        '<?xml version="1.0"?>'
        "<methodResponse><params><param>"
        f"<value>{encode_value(value)}</value>"
        "</param></params></methodResponse>"
    )


def encode_fault(code: int, message: str) -> str:
    fault = encode_value({"faultCode": code, "faultString": message})
    return (
        '<?xml version="1.0"?>'
        f"<methodResponse><fault><value>{fault}</value></fault></methodResponse>"
    )
