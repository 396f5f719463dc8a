"""Command addressing for rTorrent RPC calls.

rTorrent commands are namespaced by entity type (``d.`` downloads,
``t.`` trackers, ``p.`` peers, ``f.`` files). Inside a multicall the
commands travel as strings such as ``d.down.rate=`` or ``d.custom=icon``;
inside ``system.multicall`` each command is addressed to one explicit
entity, written here as ``d.name=<hash>``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

DOWNLOAD = "d."
TRACKER = "t."
PEER = "p."
FILE = "f."

ENTITY_PREFIXES = (DOWNLOAD, TRACKER, PEER, FILE)

_KEY_SEPARATORS_RE = re.compile(r"[.,_=\s]+(.)?")


def full_command(prefix: str, field_name: str) -> str:
    """Return the multicall form of ``field_name`` under ``prefix``.

    Getters get a trailing ``=``; a field that already carries literal
    arguments (``custom=icon``) is passed through as is.
    """
    if "=" in field_name:
        return prefix + field_name
    return prefix + field_name + "="


def to_key(field_name: str) -> str:
    """Derive the camel-case record key of a field, e.g. ``down.rate`` -> ``downRate``."""
    return _KEY_SEPARATORS_RE.sub(
        lambda m: m.group(1).upper() if m.group(1) else "",
        field_name.lower(),
    )


def strip_namespace(method: str) -> str:
    """Drop the leading ``type.`` segment of a method name."""
    _, sep, rest = method.partition(".")
    return rest if sep else method


def multicall_method(prefix: str) -> str:
    # Downloads use the view-aware variant.
    if prefix == DOWNLOAD:
        return "d.multicall2"
    return prefix + "multicall"


@dataclass(frozen=True)
class BatchCommand:
    """One command addressed to one entity inside ``system.multicall``.

    ``target`` is the instance selector (usually an info-hash, empty for
    global commands that still take one). ``None`` means the command is
    sent without any parameters at all.
    """

    method: str
    target: Optional[str] = None
    args: Tuple[Any, ...] = field(default_factory=tuple)

    @classmethod
    def parse(cls, text: str) -> "BatchCommand":
        method, sep, rest = text.partition("=")
        if not sep:
            return cls(method.strip())
        target, *args = rest.split(",")
        return cls(method.strip(), target, tuple(args))

    @classmethod
    def coerce(cls, command: Any) -> "BatchCommand":
        if isinstance(command, cls):
            return command
        if isinstance(command, str):
            return cls.parse(command)
        raise TypeError(f"expected a command string or BatchCommand, got {type(command).__name__}")

    def __str__(self) -> str:
        if self.target is None:
            return self.method
        return self.method + "=" + ",".join(str(p) for p in self.params)

    @property
    def params(self) -> List[Any]:
        if self.target is None:
            return []
        return [self.target, *self.args]

    @property
    def is_multicall(self) -> bool:
        """Per-entity multicalls only; ``system.multicall`` is not a nested row set."""
        namespace, _, name = self.method.rpartition(".")
        return namespace + "." in ENTITY_PREFIXES and name.startswith("multicall")

    @property
    def subcommands(self) -> List[str]:
        """Commands applied per row of a nested multicall (after target and filter)."""
        if not self.is_multicall:
            return []
        return [str(a) for a in self.args[1:]]

    @property
    def subkeys(self) -> List[str]:
        return [to_key(strip_namespace(cmd)) for cmd in self.subcommands]

    @property
    def key(self) -> str:
        """Record key: method without namespace, plus arguments past the selector."""
        name = strip_namespace(self.method)
        if self.is_multicall or not self.args:
            return to_key(name)
        return to_key(name + "=" + ",".join(str(a) for a in self.args))

    def call_spec(self) -> Dict[str, Any]:
        return {"methodName": self.method, "params": self.params}
