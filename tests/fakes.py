import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from rtorrent_transport import Transport
from xmlrpc_codec import decode_request, encode_fault, encode_response


class Fault:
    def __init__(self, code, message):
        self.code = code
        self.message = message


class FakeTransport(Transport):
    """Answers requests from a queue of canned results.

    Each queued item is either a plain value, a ``Fault``, or a callable
    taking ``(method, params)``. Decoded requests are kept in ``calls``.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.closed = False

    def send(self, body):
        method, params = decode_request(body)
        self.calls.append((method, params))
        if not self.responses:
            raise AssertionError(f"unexpected call to {method}")
        result = self.responses.pop(0)
        if callable(result):
            result = result(method, params)
        if isinstance(result, Fault):
            return encode_fault(result.code, result.message)
        return encode_response(result)

    def close(self):
        self.closed = True
