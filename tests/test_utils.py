"""Tests for request bookkeeping helpers."""

import csv

from option_data_processing.utils import RequestStats, RetryAuditLog


def test_request_stats_keeps_most_recent_rows():
    stats = RequestStats(max_rows=3)

    for status in range(5):
        stats.add_stat("trade", 0.1, 200 + status)

    assert [row[3] for row in stats.rows] == [202, 203, 204]


def test_request_stats_mirrors_every_row_to_csv(tmp_path):
    path = tmp_path / "stats.csv"
    stats = RequestStats(str(path), max_rows=2)

    for status in (200, 404, 500):
        stats.add_stat("chain", 0.2, status)

    with open(path, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == RequestStats.headers
    assert [row[3] for row in rows[1:]] == ["200", "404", "500"]
    assert len(stats.rows) == 2


def test_retry_audit_log_in_memory():
    audit = RetryAuditLog()

    audit.log_retry("chain", 1, "timeout")

    assert audit.filename is None
    assert list(audit.rows)[0][1:] == ["chain", 1, "timeout"]
