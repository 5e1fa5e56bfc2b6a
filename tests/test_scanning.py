"""Tests for scan normalization, matching and effective quantities."""

import pytest

from stock_count.services.scanning import (
    code_variants, difference, effective_qty, lookup, match_row, normalize_code, reconcile, register_scan,
)

from conftest import seed_row


@pytest.mark.parametrize("raw,expected", [
    (" AB-123 ", "AB-123"),
    ("\ufeff4006381333931", "4006381333931"),
    ("12 34\t56", "123456"),
    ("A/B.C*1", "ABC1"),
    ("sku_01", "sku_01"),
    (None, ""),
    (123, "123"),
])
def test_normalize_code(raw, expected):
    assert normalize_code(raw) == expected


def test_numeric_codes_get_zero_stripped_variant():
    assert code_variants("007") == ["007", "7"]
    assert code_variants("700") == ["700"]
    assert code_variants("000") == ["000", "0"]
    assert code_variants("0A7") == ["0A7"]
    assert code_variants("   ") == []


def _rows(*skus, city="Jeddah"):
    return [{"id": i + 1, "sku": s, "city": city, "system_qty": 1, "counted_qty": None} for i, s in enumerate(skus)]


def test_match_tries_original_then_stripped():
    code, row = match_row(_rows("7"), "007")
    assert code == "007"
    assert row["sku"] == "7"

    code, row = match_row(_rows("7", "007"), "007")
    assert row["sku"] == "007"


def test_match_not_found_reports_normalized_code():
    code, row = match_row(_rows("A1"), " zz-9 ")
    assert (code, row) == ("zz-9", None)


def test_match_respects_city():
    rows = _rows("A1", city="Riyadh")
    assert match_row(rows, "A1", city="Jeddah")[1] is None
    assert match_row(rows, "A1", city="Riyadh")[1]["id"] == 1
    assert match_row(rows, "A1")[1]["id"] == 1


@pytest.mark.parametrize("counted,system,destroyed,expected", [
    (None, 10, 0, 10),
    (None, 10, 3, 7),
    (4, 10, 0, 4),
    (1, 10, 1, 0),
    (1, 10, 5, 0),
    (0, 10, 0, 0),
    (None, 0, 2, 0),
])
def test_effective_qty(counted, system, destroyed, expected):
    row = {"counted_qty": counted, "system_qty": system}
    assert effective_qty(row, destroyed) == expected
    assert effective_qty(row, destroyed) >= 0
    assert difference(row, destroyed) == expected - system


def test_reconcile_filters_dedupes_and_totals():
    rows = [
        {"id": 1, "sku": "A1", "city": "Jeddah", "name": "Widget", "system_qty": 10, "committed_qty": 2, "counted_qty": 8},
        {"id": 2, "sku": "B2", "city": "Jeddah", "name": "Gadget", "system_qty": 5, "committed_qty": 0, "counted_qty": None},
        {"id": 3, "sku": "C3", "city": "Riyadh", "name": "Gizmo", "system_qty": 3, "committed_qty": 0, "counted_qty": 3},
        {"id": 4, "sku": "A1", "city": "Jeddah", "name": "dup", "system_qty": 99, "committed_qty": 0, "counted_qty": 0},
    ]
    report = reconcile(rows, {"B2": 1}, city="Jeddah")
    assert [r["id"] for r in report["rows"]] == [1, 2]
    b2 = report["rows"][1]
    assert (b2["destroyed_qty"], b2["effective_qty"], b2["difference"]) == (1, 4, -1)
    assert b2["counted_qty"] is None
    assert report["totals"] == {"lines": 2, "system": 15, "committed": 2, "counted": 12, "difference": -3}

    only_diff = reconcile(rows, {}, city="Jeddah", discrepancies_only=True)
    assert [r["sku"] for r in only_diff["rows"]] == ["A1"]

    one = reconcile(rows, {}, sku="C3")
    assert [r["id"] for r in one["rows"]] == [3]


def test_register_scan_increments(counts):
    counts.seed("S", [seed_row("A1"), seed_row("7")])
    first = register_scan(counts, "S", " A1 ")
    assert first["status"] == "counted"
    assert first["row"]["counted_qty"] == 1
    assert register_scan(counts, "S", "A1")["row"]["counted_qty"] == 2
    assert register_scan(counts, "S", "007")["row"]["sku"] == "7"
    assert [r["counted_qty"] for r in counts.get_all("S")] == [2, 1]


def test_register_scan_unknown_code_changes_nothing(counts):
    counts.seed("S", [seed_row("A1")])
    before = counts.get_all("S")
    assert register_scan(counts, "S", "ZZ") == {"status": "not_found", "code": "ZZ"}
    assert counts.get_all("S") == before


def test_lookup_does_not_count(counts):
    counts.seed("S", [seed_row("A1")])
    res = lookup(counts, "S", "A1")
    assert res["status"] == "found"
    assert counts.get_all("S")[0]["counted_qty"] is None
    assert lookup(counts, "S", "A1", city="Dammam")["status"] == "not_found"


def test_exact_sku_beats_normalized_lookalike():
    rows = _rows("A.1", "A1")
    code, row = match_row(rows, "A1")
    assert code == "A1"
    assert row["id"] == 2


def test_normalized_stored_sku_still_matches_without_exact_hit():
    code, row = match_row(_rows(" A 1 "), "A1")
    assert row["id"] == 1


def test_register_scan_counts_the_exact_product(counts):
    counts.seed("S", [seed_row("A.1"), seed_row("A1")])
    assert register_scan(counts, "S", "A1")["row"]["sku"] == "A1"
    assert [r["counted_qty"] for r in counts.get_all("S")] == [None, 1]
