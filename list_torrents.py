#!/usr/bin/env python3
"""List the torrents of an rTorrent daemon from the command line."""

import argparse
import logging
import math

from config_manager import ConfigManager
from logging_config import setup_logging
from rpc_errors import RPCError
from rtorrent_client import (
    STATUS_DOWNLOADING,
    STATUS_HASHING,
    STATUS_PAUSED,
    STATUS_SEEDING,
    STATUS_STOPPED,
    RTorrentClient,
    torrent_status,
)

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    STATUS_DOWNLOADING: "Downloading",
    STATUS_STOPPED: "Stopped",
    STATUS_PAUSED: "Paused",
    STATUS_HASHING: "Checking",
    STATUS_SEEDING: "Seeding",
}


def format_size(bytes_size):
    """Format bytes to human readable."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_size < 1024.0:
            return f"{bytes_size:.2f} {unit}"
        bytes_size /= 1024.0
    return f"{bytes_size:.2f} PB"


def format_time(seconds):
    """Format seconds to time string."""
    if seconds is None or math.isinf(seconds):
        return "∞"
    seconds = int(seconds)
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    elif hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    elif minutes > 0:
        return f"{minutes}m {secs}s"
    else:
        return f"{secs}s"


def status_label(row):
    return STATUS_LABELS.get(torrent_status(row), "Unknown")


def done_percent(row):
    expected = row["wantedChunks"] + row["completedChunks"]
    if expected == row["sizeChunks"]:
        return 100 * row["bytesDone"] / row["sizeBytes"] if row["sizeBytes"] else 0.0
    return min(100 * row["completedChunks"] / expected, 100.0) if expected else 0.0


def eta_seconds(row):
    """0 when done, infinity when stalled."""
    if row["wantedChunks"] == 0:
        return 0
    if row["downRate"] <= 0:
        return math.inf
    expected = row["wantedChunks"] + row["completedChunks"]
    if expected == row["sizeChunks"]:
        return (row["sizeBytes"] - row["bytesDone"]) / row["downRate"]
    return row["wantedChunks"] * row["chunkSize"] / row["downRate"]


def format_row(row):
    return " | ".join([
        row["name"][:50],
        format_size(row["sizeBytes"]),
        status_label(row),
        f"{done_percent(row):.1f}%",
        format_time(eta_seconds(row)),
        f"{format_size(row['downRate'])}/s",
        f"{format_size(row['upRate'])}/s",
    ])


def build_parser():
    parser = argparse.ArgumentParser(description="List torrents of an rTorrent daemon.")
    parser.add_argument("--profile", help="profile id (default: the configured default profile)")
    parser.add_argument("--url", help="connect to this URL instead of a saved profile")
    parser.add_argument("--user", default="")
    parser.add_argument("--password", default="")
    parser.add_argument("--view", help="rTorrent view to list (default from preferences)")
    parser.add_argument("-v", "--verbose", action="store_true", help="log RPC calls")
    return parser


def main(argv=None, config=None):
    args = build_parser().parse_args(argv)
    config = config or ConfigManager()
    prefs = config.get_preferences()
    setup_logging("DEBUG" if args.verbose else prefs["log_level"])

    if args.url:
        url, user, password = args.url, args.user, args.password
    else:
        profile = config.get_profile(args.profile)
        if not profile:
            print("No default profile set or invalid.")
            return 1
        url, user, password = profile["url"], profile.get("user"), profile.get("password")

    client = RTorrentClient.connect(url, user or None, password or None, **config.transport_options())
    try:
        version = client.test_connection()
        logger.info("Connected to rTorrent %s", version)
        torrents = client.get_torrents(args.view or prefs["view"])
    except RPCError as e:
        print(f"Error: {e}")
        return 1
    finally:
        client.close()

    print(f"Found {len(torrents)} torrents")
    print("Name | Size | Status | Done | ETA | Down | Up")
    print("-" * 80)
    for row in torrents:
        print(format_row(row))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
