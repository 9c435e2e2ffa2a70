#!/usr/bin/env python3
"""Remove qBittorrent torrents whose ratio, projected to one year, is too low.

Meant to run periodically (cron, container scheduler). Each run logs in,
fetches every torrent, and removes the ones older than the age threshold
whose linearly projected one-year ratio stays under the ratio threshold.
"""
import argparse
import logging
import math
import os
import sys
import time
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler

from qb_client import ClientError, QbitClient
from ratio_policy import ONE_DAY_SECONDS, PolicyThresholds, evaluate

__version__ = '0.1.0'

# ==========================================
# Configuration
# ==========================================

# qBittorrent WebUI
QB_ENDPOINT = 'http://127.0.0.1:8080'
QB_USERNAME = 'admin'
QB_PASSWORD = 'adminadmin'

# Removal thresholds
AGE_THRESHOLD_DAYS = 100
RATIO_THRESHOLD = 10.0

# Logging
LOG_LEVEL_ENV = 'QBIT_CLEANUP_LOG'
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3

EXIT_OK = 0
EXIT_FATAL = 1

logger = logging.getLogger(__name__)

# ==========================================
# Logging setup
# ==========================================

def setup_logging(debug=False, log_file=None):
    if debug:
        level = logging.DEBUG
    else:
        level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, 'INFO').upper())
        if not isinstance(level, int):
            level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers = []
    # root handlers are swapped only after every handler has opened
    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)

# ==========================================
# Cleanup loop
# ==========================================

@dataclass
class RunSummary:
    evaluated: int = 0
    flagged: int = 0
    removed: int = 0
    failed: int = 0


def format_seconds_to_ddhhmm(seconds):
    if seconds is None or seconds < 0: return "N/A"
    m, s = divmod(int(seconds), 60)
    h, m = divmod(m, 60)
    d, h = divmod(h, 24)
    if d > 0:
        return f"{d:02d}d{h:02d}h{m:02d}m"
    return f"{h:02d}h{m:02d}m{s:02d}s"


def run_cleanup(client, thresholds, dry_run=False, now=None):
    """Evaluate every torrent from ``client`` and delete the ones flagged.

    ``client`` needs ``fetch_all()`` and ``delete(hash)``. Errors from
    ``fetch_all()`` propagate; a failed ``delete()`` is logged and skipped.
    """
    if now is None:
        now = time.time()
    summary = RunSummary()

    for record in client.fetch_all():
        decision = evaluate(record, thresholds, now)
        summary.evaluated += 1
        age = format_seconds_to_ddhhmm(decision.age_seconds)
        logger.info(f"Checked: {record.name} (hash={record.hash}) age={age} "
                    f"ratio={record.ratio:.2f} predicted={decision.predicted_ratio:.2f} "
                    f"-> {'remove' if decision.should_remove else 'keep'}")

        if not decision.should_remove:
            if decision.age_seconds < thresholds.min_age_seconds:
                logger.debug(f"Too new: {record.name} (hash={record.hash}), "
                             f"age_days={decision.age_seconds / ONE_DAY_SECONDS:.1f}")
            else:
                logger.debug(f"Predicted ratio {decision.predicted_ratio:.2f} >= "
                             f"{thresholds.min_ratio:.2f}: {record.name} (hash={record.hash})")
            continue

        summary.flagged += 1
        if dry_run:
            logger.info(f"Dry run - would remove: {record.name} (hash={record.hash}), "
                        f"predicted_ratio={decision.predicted_ratio:.2f}")
            continue

        logger.info(f"Removing: {record.name} (hash={record.hash}), "
                    f"predicted_ratio={decision.predicted_ratio:.2f}")
        try:
            client.delete(record.hash)
            summary.removed += 1
        except ClientError as e:
            summary.failed += 1
            logger.error(f"Remove failed (hash={record.hash}): {e}")

    return summary

# ==========================================
# Entry point
# ==========================================

def non_negative(cast):
    def parse(value):
        try:
            number = cast(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
        if not math.isfinite(number):
            raise argparse.ArgumentTypeError(f"must be a finite number: {value}")
        if number < 0:
            raise argparse.ArgumentTypeError(f"must not be negative: {value}")
        return number
    return parse


def build_parser():
    p = argparse.ArgumentParser(
        prog='qbit-cleanup',
        description="Clean up qBittorrent torrents by ratio and age (in days).",
    )
    p.add_argument('--age', type=non_negative(int), default=AGE_THRESHOLD_DAYS, metavar='DAYS',
                   help=f"Age threshold in days (default: {AGE_THRESHOLD_DAYS})")
    p.add_argument('--ratio', type=non_negative(float), default=RATIO_THRESHOLD,
                   help=f"Remove torrents whose predicted ratio in a year is below this (default: {RATIO_THRESHOLD:g})")
    p.add_argument('--endpoint', default=QB_ENDPOINT,
                   help=f"qBittorrent WebUI endpoint (default: {QB_ENDPOINT})")
    p.add_argument('--username', default=QB_USERNAME, help="qBittorrent username")
    p.add_argument('--password', default=QB_PASSWORD, help="qBittorrent password")
    p.add_argument('--dry-run', action='store_true', help="Log decisions without deleting anything")
    p.add_argument('--debug', action='store_true', help="Debug logging")
    p.add_argument('--keep-files', action='store_true',
                   help="Remove the torrent only, leave downloaded data on disk")
    p.add_argument('--log-file', default=None, help="Also log to this file (rotated)")
    p.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    return p


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        setup_logging(args.debug, args.log_file)
    except OSError as e:
        print(f"Cannot open log file {args.log_file}: {e}", file=sys.stderr)
        return EXIT_FATAL

    thresholds = PolicyThresholds.from_days(args.age, args.ratio)
    logger.info(f"qbit-cleanup {__version__}: age>={args.age}d, predicted ratio<{args.ratio:g}"
                f"{' [dry run]' if args.dry_run else ''}")

    try:
        client = QbitClient.login(args.endpoint, args.username, args.password,
                                  delete_files=not args.keep_files)
        summary = run_cleanup(client, thresholds, dry_run=args.dry_run)
    except ClientError as e:
        logger.error(str(e))
        return EXIT_FATAL

    logger.info(f"Done: {summary.evaluated} checked, {summary.flagged} flagged, "
                f"{summary.removed} removed, {summary.failed} failed")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
