"""High-level rTorrent operations used by the panel.

Each method maps one panel action onto ``call``, ``multicall`` or
``batchcall`` and returns plain records.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, unquote

from rtorrent_commands import DOWNLOAD, TRACKER, BatchCommand
from rtorrent_rpc import Record, RTorrentRPC
from rtorrent_transport import make_transport

logger = logging.getLogger(__name__)

TORRENT_FIELDS = (
    "hash", "name", "hashing", "state", "is_active", "complete",
    "size_bytes", "bytes_done", "size_chunks", "wanted_chunks", "completed_chunks", "chunk_size",
    "peers_accounted", "peers_complete", "down.rate", "up.rate", "ratio", "up.total",
    "timestamp.started", "timestamp.finished", "custom1", "custom=icon",
)

TRACKER_FIELDS = (
    "is_enabled", "url", "latest_new_peers", "latest_sum_peers",
    "failed_counter", "success_counter", "success_time_last", "failed_time_last",
    "scrape_complete", "scrape_incomplete", "scrape_downloaded", "scrape_time_last",
)

# Status codes, in the order the panel sorts them.
STATUS_DOWNLOADING = 1
STATUS_STOPPED = 2
STATUS_PAUSED = 3
STATUS_HASHING = 4
STATUS_SEEDING = 5


def torrent_status(row: Record) -> int:
    if row.get("hashing", 0) > 0:
        return STATUS_HASHING
    if row.get("state", 0) == 0:
        return STATUS_STOPPED
    if row.get("isActive", 0) == 0:
        return STATUS_PAUSED
    if row.get("wantedChunks", 0) > 0:
        return STATUS_DOWNLOADING
    return STATUS_SEEDING


class RTorrentClient:
    def __init__(self, rpc: RTorrentRPC) -> None:
        self.rpc = rpc

    @classmethod
    def connect(cls, url: str, username: Optional[str] = None, password: Optional[str] = None, **options: Any) -> "RTorrentClient":
        logger.info("Connecting to rTorrent at %s", url)
        return cls(RTorrentRPC(make_transport(url, username, password, **options)))

    def close(self) -> None:
        self.rpc.close()

    def test_connection(self) -> str:
        return self.rpc.call("system.client_version")

    # --- torrents ---

    def get_torrents(self, view: str = "default") -> List[Record]:
        return self.rpc.multicall(DOWNLOAD, "", view, *TORRENT_FIELDS)

    def get_name(self, h: str) -> str:
        return self.rpc.call("d.name", h)

    def get_torrent_summary(self, h: str) -> Record:
        return self.rpc.batchcall(f"d.name={h}", f"d.state={h}", f"d.is_active={h}")

    def get_torrent_details(self, h: str) -> List[Record]:
        """One record per row of the details table; the first row also carries the name."""
        rows = self.rpc.batchcall(
            [f"d.hash={h}", f"d.name={h}"],
            [f"d.custom={h},url"],
            [f"d.timestamp.started={h}"],
            [f"d.timestamp.finished={h}"],
            [f"d.message={h}"],
            [f"d.custom1={h}"],
            [f"d.custom={h},comment"],
        )
        for row in rows:
            for key in ("customUrl", "customComment"):
                if key in row:
                    row[key] = unquote(row[key])
        return rows

    def get_trackers(self, h: str) -> List[Record]:
        return self.rpc.multicall(TRACKER, h, "", *TRACKER_FIELDS)

    def get_torrent_with_trackers(self, h: str) -> Record:
        """Name, state and tracker rows of one torrent in a single round trip."""
        trackers = BatchCommand("t.multicall", h, ("", *(TRACKER + f + "=" for f in TRACKER_FIELDS)))
        return self.rpc.batchcall(f"d.name={h}", f"d.state={h}", f"d.is_active={h}", trackers)

    # --- control ---

    def start_torrent(self, h: str) -> None:
        self.rpc.batchcall(f"d.open={h}", f"d.start={h}")

    def stop_torrent(self, h: str) -> None:
        self.rpc.batchcall(f"d.stop={h}", f"d.close={h}")

    def pause_torrent(self, h: str) -> None:
        self.rpc.call("d.stop", h)

    def resume_torrent(self, h: str) -> None:
        self.rpc.call("d.start", h)

    def recheck_torrent(self, h: str) -> None:
        self.rpc.call("d.check_hash", h)

    def remove_torrent(self, h: str) -> None:
        self.rpc.batchcall(f"d.stop={h}", f"d.close={h}", f"d.erase={h}")

    def scrape_trackers(self, h: str) -> None:
        self.rpc.batchcall(f"d.tracker.send_scrape={h},0", f"d.save_resume={h}")

    def set_tags(self, h: str, tags: str) -> None:
        self.rpc.call("d.custom1.set", h, tags)

    def set_comment(self, h: str, comment: str) -> None:
        self.rpc.call("d.custom.set", h, "comment", quote(comment))

    def get_comment(self, h: str) -> str:
        return unquote(self.rpc.call("d.custom", h, "comment"))

    def add_torrent_url(self, url: str, start: bool = True) -> None:
        self.rpc.call("load.start" if start else "load.normal", "", url)

    def add_torrent_file(self, data: bytes, start: bool = True) -> None:
        self.rpc.call("load.raw_start" if start else "load.raw", "", bytes(data))

    def get_global_stats(self) -> Tuple[int, int]:
        rates: Dict[str, Any] = self.rpc.batchcall(
            BatchCommand("throttle.global_down.rate"),
            BatchCommand("throttle.global_up.rate"),
        )
        return rates["globalDownRate"], rates["globalUpRate"]
