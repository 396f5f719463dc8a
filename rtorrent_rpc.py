"""Caller facade plus the multicall and batchcall engines.

``RTorrentRPC.call`` is the single place where a request goes out:
encode, send through the transport, decode. ``multicall`` and
``batchcall`` fold many logical field reads into one round trip and turn
the positional results back into named records.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Union

from rpc_errors import AlignmentError, FaultError
from rtorrent_commands import BatchCommand, full_command, multicall_method, to_key
from rtorrent_transport import Transport
from xmlrpc_codec import decode_response, encode_request

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
CommandLike = Union[str, BatchCommand]


def _zip_row(keys: Sequence[str], row: Any, method: str) -> Record:
    if not isinstance(row, list):
        raise AlignmentError(f"{method}: expected a row list, got {type(row).__name__}")
    if len(row) != len(keys):
        raise AlignmentError(
            f"{method}: row has {len(row)} values for {len(keys)} commands",
            expected=len(keys),
            actual=len(row),
        )
    return dict(zip(keys, row))


def _check_unique(keys: Sequence[str], what: str) -> None:
    seen = set()
    for key in keys:
        if key in seen:
            raise ValueError(f"duplicate record key {key!r} in {what}")
        seen.add(key)


class RTorrentRPC:
    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def __enter__(self) -> "RTorrentRPC":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.transport.close()

    def call(self, method: str, *params: Any) -> Any:
        """Invoke one remote method and return its decoded result."""
        body = encode_request(method, params)
        logger.debug("RPC call %s (%d params)", method, len(params))
        response = self.transport.send(body)
        try:
            return decode_response(response)
        except FaultError as e:
            logger.warning("rTorrent fault in %s: %s", method, e)
            raise

    def multicall(self, prefix: str, target: str, view: str, *fields: str) -> List[Record]:
        """Read ``fields`` of every entity matched by ``target``/``view``.

        ``prefix`` is the entity namespace (``"d."``, ``"t."``...). One
        record per entity, keyed by ``to_key(field)``, in server order.
        """
        keys = [to_key(f) for f in fields]
        _check_unique(keys, f"{prefix}multicall")
        method = multicall_method(prefix)
        rows = self.call(method, target, view, *(full_command(prefix, f) for f in fields))
        if not isinstance(rows, list):
            raise AlignmentError(f"{method}: expected a list of rows, got {type(rows).__name__}")
        return [_zip_row(keys, row, method) for row in rows]

    def batchcall(self, *commands: Union[CommandLike, Sequence[CommandLike]]) -> Union[Record, List[Record]]:
        """Run many independently addressed commands in one ``system.multicall``.

        Bare commands form one group and give back one record; lists of
        commands are groups and give back one record per group, in the
        order submitted.
        """
        grouped = any(isinstance(c, (list, tuple)) for c in commands)
        if grouped and not all(isinstance(c, (list, tuple)) for c in commands):
            raise TypeError("batchcall takes either commands or lists of commands, not both")

        raw_groups = commands if grouped else [commands]
        groups = [[BatchCommand.coerce(c) for c in group] for group in raw_groups]
        for group in groups:
            _check_unique([cmd.key for cmd in group], "batchcall group")

        flat = [cmd for group in groups for cmd in group]
        if not flat:
            records: List[Record] = [{} for _ in groups]
            return records if grouped else {}

        results = self.call("system.multicall", [cmd.call_spec() for cmd in flat])
        if not isinstance(results, list) or len(results) != len(flat):
            actual = len(results) if isinstance(results, list) else -1
            raise AlignmentError(
                f"system.multicall returned {actual} results for {len(flat)} calls",
                expected=len(flat),
                actual=actual,
            )

        pending = iter(results)
        records = []
        for group in groups:
            record: Record = {}
            for cmd in group:
                record[cmd.key] = self._unpack(cmd, next(pending))
            records.append(record)
        return records if grouped else records[0]

    def _unpack(self, cmd: BatchCommand, entry: Any) -> Any:
        if isinstance(entry, dict):
            # system.multicall reports a failed call as a fault struct in place.
            fault = FaultError.from_struct(entry)
            logger.warning("rTorrent fault in %s: %s", cmd.method, fault)
            raise fault
        if not isinstance(entry, list):
            raise AlignmentError(f"{cmd.method}: expected a result list, got {type(entry).__name__}")

        if cmd.is_multicall:
            if len(entry) != 1 or not isinstance(entry[0], list):
                raise AlignmentError(f"{cmd.method}: malformed nested multicall result")
            keys = cmd.subkeys
            return [_zip_row(keys, row, cmd.method) for row in entry[0]]

        if len(entry) == 1:
            return entry[0]
        return entry
