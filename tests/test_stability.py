from __future__ import annotations

import random

import pytest

from composite_records import Date, FullName, Record
from composite_sorts import heap_sort, two_way_insertion_sort
from sort_bench_core import (
    HEAP_SORT, TWO_WAY_INSERTION, SortInvariantError, analyze_stability,
    find_stability_violation, generate_records, instability_fixture, verify_stability,
)


def test_stable_output_passes():
    fixture = instability_fixture()
    stable = [fixture[3], fixture[1], fixture[0], fixture[2]]
    assert verify_stability(fixture, stable)
    assert find_stability_violation(fixture, stable) is None


def test_inverted_ties_are_reported():
    fixture = instability_fixture()
    inverted = [fixture[3], fixture[1], fixture[2], fixture[0]]
    violation = find_stability_violation(fixture, inverted)
    assert violation is not None
    assert violation.key == fixture[0].key
    assert violation.original_positions == [1, 3]
    assert violation.sorted_positions == [3, 1]
    assert not verify_stability(fixture, inverted)


def test_no_ties_is_always_stable():
    d = Date(1, 1, 2023)
    records = [Record(d, FullName(last, "X", "Y"), i) for i, last in enumerate("ABCD", start=1)]
    assert verify_stability(records, list(reversed(records)))


def test_analyze_returns_one_verdict_per_algorithm():
    fixture = instability_fixture()
    heap_out = list(fixture)
    heap_sort(heap_out)
    two_way_out = list(fixture)
    two_way_insertion_sort(two_way_out)
    verdicts = analyze_stability(fixture, {HEAP_SORT: heap_out, TWO_WAY_INSERTION: two_way_out})
    assert verdicts == {HEAP_SORT: False, TWO_WAY_INSERTION: True}


def test_group_order_follows_input_sequence_not_position_numbers():
    fixture = instability_fixture()
    #Input where the tie with position 3 comes first
    shuffled = [fixture[2], fixture[1], fixture[0], fixture[3]]
    out = list(shuffled)
    two_way_insertion_sort(out)
    assert [r.position for r in out] == [4, 2, 3, 1]
    assert verify_stability(shuffled, out)


def test_missing_record_raises_invariant_error():
    fixture = instability_fixture()
    corrupted = [fixture[3], fixture[1], fixture[0], fixture[0]]
    with pytest.raises(SortInvariantError):
        find_stability_violation(fixture, corrupted)


def test_lost_tied_record_raises_invariant_error():
    fixture = instability_fixture()
    stranger = Record(Date(2, 2, 2022), FullName("Popov", "Oleg", "Ivanovich"), 9)
    corrupted = [fixture[3], fixture[1], fixture[0], stranger]
    with pytest.raises(SortInvariantError):
        verify_stability(fixture, corrupted)


def test_length_mismatch_raises_invariant_error():
    fixture = instability_fixture()
    with pytest.raises(SortInvariantError):
        verify_stability(fixture, fixture[:3])


def test_heap_sort_not_stable_on_larger_sample():
    original = generate_records(2000, random.Random(42), duplicate_ratio=0.3)
    heap_out = list(original)
    heap_sort(heap_out)
    two_way_out = list(original)
    two_way_insertion_sort(two_way_out)
    assert verify_stability(original, two_way_out)
    assert not verify_stability(original, heap_out)
