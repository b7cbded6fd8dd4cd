"""
Composite-Key Sort Suite - Core Module
======================================

Contains: configuration, timing statistics, record and case generators,
algorithm definitions, timing engine, stability verifier, case harness,
scaling analysis, and report formatting.

Nothing in here writes to the console on its own: printers take an
explicit `out` sink and long-running routines take progress callbacks.
"""

from __future__ import annotations
import gc, platform, random, sys, time
from abc import ABC, abstractmethod
from collections import Counter, defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from functools import partial
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from composite_records import Date, FullName, Record, compare_records, sort_key
from composite_sorts import (
    OperationCounts, SortError, heap_sort, two_way_insertion_sort,
)

# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class SortBenchConfig:
    seed: int = 42
    large_size_threshold: int = 1000
    harness_sample_size: int = 1000
    repeats: int = 3
    gc_between_runs: bool = True
    read_limit: int = 100_000
    progress_every: int = 10_000

SCALING_SIZES = [100, 250, 500, 1000, 2500, 5000, 10000, 25000, 50000]

HEAP_SORT = "Heap sort"
TWO_WAY_INSERTION = "Two-way insertion"

class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    END = '\033[0m'

    @classmethod
    def disable(cls):
        for a in ['HEADER','BLUE','CYAN','GREEN','YELLOW','RED','BOLD','END']:
            setattr(cls, a, '')

if not sys.stdout.isatty():
    Colors.disable()

# =============================================================================
# Statistics
# =============================================================================

@dataclass
class TimingStats:
    n: int
    mean: float
    median: float
    std_dev: float
    min_val: float
    max_val: float
    p25: float
    p75: float
    raw_values: List[float] = field(default_factory=list, repr=False)

    @classmethod
    def from_samples(cls, samples: Sequence[float]) -> "TimingStats":
        if not samples:
            return cls(0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, [])

        arr = np.asarray(samples, dtype=float)
        p25, p75 = np.percentile(arr, [25, 75])
        return cls(n=len(arr), mean=float(arr.mean()), median=float(np.median(arr)),
                   std_dev=float(arr.std(ddof=1)) if len(arr) > 1 else 0.0,
                   min_val=float(arr.min()), max_val=float(arr.max()),
                   p25=float(p25), p75=float(p75), raw_values=list(samples))


def estimate_complexity(sizes: List[int], times: List[float]) -> Tuple[str, float]:
    """Estimate Big-O complexity via least-squares curve fitting."""
    if len(sizes) < 3 or len(times) < 3:
        return ("unknown", 0.0)

    x = np.asarray(sizes, dtype=float)
    y = np.asarray(times, dtype=float)
    ss_tot = float(((y - y.mean()) ** 2).sum())
    if ss_tot == 0:
        return ("unknown", 0.0)

    bases = {
        "O(n)": x,
        "O(n log n)": x * np.log(x),
        "O(n^2)": x * x,
    }

    cands = []
    for label, basis in bases.items():
        A = np.column_stack([basis, np.ones_like(basis)])
        coef, *_ = np.linalg.lstsq(A, y, rcond=None)
        ss_res = float(((y - A @ coef) ** 2).sum())
        cands.append((label, 1 - ss_res / ss_tot))

    return max(cands, key=lambda c: c[1])


# =============================================================================
# Record & Case Generators
# =============================================================================

LAST_NAMES = ["Ivanov", "Petrov", "Sidorov", "Smirnov", "Kuznetsov", "Popov",
              "Volkov", "Sokolov", "Lebedev", "Kozlov", "Novikov", "Morozov"]
FIRST_NAMES = ["Aleksei", "Ivan", "Mikhail", "Sergei", "Dmitrii", "Andrei",
               "Nikolai", "Pavel", "Oleg", "Yurii"]
MIDDLE_NAMES = ["Petrovich", "Sergeevich", "Aleksandrovich", "Ivanovich",
                "Mikhailovich", "Nikolaevich", "Pavlovich", "Olegovich"]


def generate_records(n: int, rng: random.Random, duplicate_ratio: float = 0.05,
                     years: Tuple[int, int] = (1990, 2024)) -> List[Record]:
    """
    Random records with positions 1..n.

    About `duplicate_ratio` of them reuse the date and name of an earlier
    record so the sample contains ties.
    """
    records: List[Record] = []
    for pos in range(1, n + 1):
        if records and rng.random() < duplicate_ratio:
            twin = records[rng.randrange(len(records))]
            records.append(Record(twin.date, twin.name, pos))
            continue
        date = Date(rng.randint(1, 28), rng.randint(1, 12), rng.randint(*years))
        name = FullName(rng.choice(LAST_NAMES), rng.choice(FIRST_NAMES),
                        rng.choice(MIDDLE_NAMES))
        records.append(Record(date, name, pos))
    return records


class CaseGenerator(ABC):
    @property
    @abstractmethod
    def name(self) -> str: pass

    @property
    @abstractmethod
    def description(self) -> str: pass

    @abstractmethod
    def build(self, sample: Sequence[Record]) -> List[Record]: pass


class BestCase(CaseGenerator):
    name = "best"
    description = "Best case (already sorted)"
    def build(self, sample):
        return sorted(sample, key=sort_key)

class WorstCase(CaseGenerator):
    name = "worst"
    description = "Worst case (reverse sorted)"
    def build(self, sample):
        return sorted(sample, key=sort_key, reverse=True)

class RepresentativeCase(CaseGenerator):
    name = "representative"
    description = "Representative (input order)"
    def build(self, sample):
        return list(sample)


CASE_GENERATORS: Dict[str, CaseGenerator] = {g.name: g for g in [
    BestCase(), WorstCase(), RepresentativeCase()
]}


# =============================================================================
# Algorithms
# =============================================================================

@dataclass
class AlgorithmInfo:
    name: str
    function: Callable
    expected_complexity: str
    stable: bool
    size_limited: bool
    description: str

    def __call__(self, arr):
        return self.function(arr)


def get_algorithms() -> Dict[str, AlgorithmInfo]:
    return {
        HEAP_SORT: AlgorithmInfo(
            HEAP_SORT, heap_sort, "O(n log n)", False, False,
            "In-place max-heap selection sort"),
        TWO_WAY_INSERTION: AlgorithmInfo(
            TWO_WAY_INSERTION, two_way_insertion_sort, "O(n) .. O(n^2)", True, True,
            "Double-ended insertion through a 2n+1 buffer"),
    }


# =============================================================================
# Result Types
# =============================================================================

OK, FAILED, SKIPPED = "ok", "failed", "skipped"


@dataclass
class SortOutcome:
    algorithm: str
    status: str
    elapsed: Optional[float] = None
    counts: Optional[OperationCounts] = None
    stats: Optional[TimingStats] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OK

    @property
    def elapsed_ms(self) -> Optional[float]:
        return None if self.elapsed is None else self.elapsed * 1000

    @classmethod
    def skipped(cls, algorithm: str, reason: str) -> "SortOutcome":
        return cls(algorithm, SKIPPED, reason=reason)

    @classmethod
    def failed(cls, algorithm: str, reason: str) -> "SortOutcome":
        return cls(algorithm, FAILED, reason=reason)


@dataclass
class CaseResult:
    case: str
    description: str
    n: int
    outcomes: Dict[str, SortOutcome]


@dataclass
class HarnessReport:
    sample_size: int
    threshold: int
    cases: List[CaseResult]


@dataclass
class ScalingResult:
    algorithm: str
    sizes: List[int]
    times: List[Optional[float]]
    estimated_complexity: str
    r_squared: float


@dataclass
class StabilityViolation:
    key: Tuple[Date, FullName]
    original_positions: List[int]
    sorted_positions: List[int]


# =============================================================================
# Timing Engine
# =============================================================================

class SortEngine:
    def __init__(self, config: SortBenchConfig = SortBenchConfig()):
        self.config = config

    @contextmanager
    def _gc_pause(self):
        if self.config.gc_between_runs:
            gc.collect()
            gc.disable()
        try:
            yield
        finally:
            if self.config.gc_between_runs:
                gc.enable()

    def time_once(self, algo: AlgorithmInfo, seq: List[Record]) -> SortOutcome:
        """Sort `seq` in place; only the sort call itself is timed."""
        try:
            with self._gc_pause():
                t0 = time.perf_counter()
                counts = algo(seq)
                t1 = time.perf_counter()
        except SortError as e:
            return SortOutcome.failed(algo.name, str(e))
        return SortOutcome(algo.name, OK, t1 - t0, counts)

    def measure(self, algo: AlgorithmInfo, records: Sequence[Record],
                repeats: Optional[int] = None) -> SortOutcome:
        """Time `repeats` runs, each on a fresh copy, and report the median."""
        repeats = max(1, repeats or self.config.repeats)
        times = []
        last = None
        for _ in range(repeats):
            work = list(records)
            last = self.time_once(algo, work)
            if not last.ok:
                return last
            times.append(last.elapsed)
        stats = TimingStats.from_samples(times)
        return SortOutcome(algo.name, OK, stats.median, last.counts, stats)


def timed_heap_sort(seq: List[Record], config: SortBenchConfig = SortBenchConfig()) -> SortOutcome:
    return SortEngine(config).time_once(get_algorithms()[HEAP_SORT], seq)


def timed_two_way_insertion_sort(seq: List[Record], config: SortBenchConfig = SortBenchConfig(),
                                 on_progress: Optional[Callable[[int, int], None]] = None) -> SortOutcome:
    algo = get_algorithms()[TWO_WAY_INSERTION]
    if on_progress is not None:
        algo = replace(algo, function=partial(
            two_way_insertion_sort, on_progress=on_progress,
            progress_every=config.progress_every))
    return SortEngine(config).time_once(algo, seq)


# =============================================================================
# Verification
# =============================================================================

class SortInvariantError(Exception):
    """A sort lost or duplicated a record; distinct from "not stable"."""


def is_sorted(seq: Sequence[Record]) -> bool:
    return all(compare_records(seq[i], seq[i + 1]) <= 0 for i in range(len(seq) - 1))


def is_permutation(original: Sequence[Record], result: Sequence[Record]) -> bool:
    return Counter(original) == Counter(result)


def find_stability_violation(original: Sequence[Record],
                             sorted_seq: Sequence[Record]) -> Optional[StabilityViolation]:
    """
    First tie group whose relative order changed, or None.

    Records are matched by full identity (date, name and position); a
    key alone cannot tell tied records apart.
    """
    if len(original) != len(sorted_seq):
        raise SortInvariantError(
            f"sorted output has {len(sorted_seq)} records, input had {len(original)}")

    index: Dict[Record, int] = {}
    for i, rec in enumerate(sorted_seq):
        if rec in index:
            raise SortInvariantError(f"record at position {rec.position} appears twice in output")
        index[rec] = i

    groups: Dict[Tuple[Date, FullName], List[Record]] = defaultdict(list)
    for rec in original:
        groups[rec.key].append(rec)

    for key, members in groups.items():
        if len(members) < 2:
            continue
        placed = []
        for rec in members:
            if rec not in index:
                raise SortInvariantError(f"record at position {rec.position} missing from output")
            placed.append(index[rec])
        if any(x > y for x, y in zip(placed, placed[1:])):
            return StabilityViolation(
                key,
                [r.position for r in members],
                [sorted_seq[i].position for i in sorted(placed)],
            )
    return None


def verify_stability(original: Sequence[Record], sorted_seq: Sequence[Record]) -> bool:
    return find_stability_violation(original, sorted_seq) is None


def analyze_stability(original: Sequence[Record],
                      outputs: Dict[str, Sequence[Record]]) -> Dict[str, bool]:
    """One stability verdict per algorithm name."""
    return {name: verify_stability(original, out) for name, out in outputs.items()}


# =============================================================================
# Case Harness
# =============================================================================

def run_case_harness(sample: Sequence[Record], config: SortBenchConfig = SortBenchConfig(),
                     on_case: Optional[Callable[[CaseResult], None]] = None) -> HarnessReport:
    """Time both sorts on best, worst and representative inputs built from `sample`."""
    engine = SortEngine(config)
    algos = get_algorithms()
    cases = []

    for gen in CASE_GENERATORS.values():
        data = gen.build(sample)
        n = len(data)
        outcomes = {}
        for name, algo in algos.items():
            if algo.size_limited and n > config.large_size_threshold:
                outcomes[name] = SortOutcome.skipped(
                    name, f"n={n} exceeds threshold {config.large_size_threshold}")
                continue
            outcomes[name] = engine.measure(algo, data)
        result = CaseResult(gen.name, gen.description, n, outcomes)
        cases.append(result)
        if on_case is not None:
            on_case(result)

    return HarnessReport(len(sample), config.large_size_threshold, cases)


# =============================================================================
# Scaling Analysis
# =============================================================================

def run_scaling_analysis(sizes: List[int], config: SortBenchConfig = SortBenchConfig(),
                         make_sample: Callable[[int, random.Random], List[Record]] = generate_records,
                         on_size: Optional[Callable[[str, int], None]] = None) -> List[ScalingResult]:
    """Median time per size for each algorithm on representative samples."""
    engine = SortEngine(config)
    samples = {n: make_sample(n, random.Random(config.seed + n)) for n in sizes}
    results = []

    for name, algo in get_algorithms().items():
        times: List[Optional[float]] = []
        for n in sizes:
            if on_size is not None:
                on_size(name, n)
            if algo.size_limited and n > config.large_size_threshold:
                times.append(None)
                continue
            outcome = engine.measure(algo, samples[n])
            times.append(outcome.elapsed if outcome.ok else None)

        valid = [(s, t) for s, t in zip(sizes, times) if t is not None]
        if len(valid) >= 3:
            valid_sizes, valid_times = zip(*valid)
            comp, r2 = estimate_complexity(list(valid_sizes), list(valid_times))
        else:
            comp, r2 = ("unknown", 0.0)
        results.append(ScalingResult(name, list(sizes), times, comp, r2))

    return results


# =============================================================================
# Instability Demonstration
# =============================================================================

def instability_fixture() -> List[Record]:
    """Four records on one date; positions 1 and 3 share a key."""
    d = Date(1, 1, 2023)
    return [
        Record(d, FullName("Ivanov", "Aleksei", "Petrovich"), 1),
        Record(d, FullName("Petrov", "Ivan", "Sergeevich"), 2),
        Record(d, FullName("Ivanov", "Aleksei", "Petrovich"), 3),
        Record(d, FullName("Sidorov", "Mikhail", "Aleksandrovich"), 4),
    ]


def demonstrate_heap_instability() -> Tuple[List[Record], List[Record]]:
    fixture = instability_fixture()
    result = list(fixture)
    heap_sort(result)
    return fixture, result


# =============================================================================
# Formatting & Output
# =============================================================================

def fmt_time(t):
    """Format time with appropriate units."""
    if t is None:
        return "skipped"
    if t < 1e-6:
        return f"{t*1e9:.1f}ns"
    if t < 1e-3:
        return f"{t*1e6:.1f}us"
    if t < 1:
        return f"{t*1e3:.2f}ms"
    return f"{t:.3f}s"


def fmt_outcome(o: SortOutcome) -> str:
    if o.status == SKIPPED:
        return f"skipped ({o.reason})"
    if o.status == FAILED:
        return f"{Colors.RED}FAILED{Colors.END} ({o.reason})"
    return fmt_time(o.elapsed)


def get_system_info() -> Dict[str, Any]:
    """Gather system information for reproducibility."""
    return {
        "timestamp": datetime.now().isoformat(),
        "python_version": sys.version,
        "platform": platform.platform(),
        "machine": platform.machine(),
        "numpy_version": np.__version__,
    }


def print_header(text, out=print):
    out(f"\n{Colors.BOLD}{Colors.HEADER}{'='*70}{Colors.END}")
    out(f"{Colors.BOLD}{Colors.HEADER}{text.center(70)}{Colors.END}")
    out(f"{Colors.BOLD}{Colors.HEADER}{'='*70}{Colors.END}\n")


def print_subheader(text, out=print):
    out(f"\n{Colors.BOLD}{Colors.CYAN}{text}{Colors.END}")
    out(f"{Colors.CYAN}{'-'*len(text)}{Colors.END}")


def print_records(records, indent="  ", out=print):
    for r in records:
        out(f"{indent}{r}")


def print_stability_report(verdicts: Dict[str, bool], out=print):
    """Measured verdict per algorithm next to the stability it promises."""
    algos = get_algorithms()
    print_subheader("Stability Analysis", out)
    for name, stable in verdicts.items():
        verdict = f"{Colors.GREEN}STABLE{Colors.END}" if stable else f"{Colors.YELLOW}NOT STABLE{Colors.END}"
        line = f"  {name:<20} {verdict}"
        if name in algos:
            declared = algos[name].stable
            line += f"  (guaranteed: {'yes' if declared else 'no'})"
            if declared and not stable:
                line += f" {Colors.RED}GUARANTEE BROKEN{Colors.END}"
        out(line)


def print_timing_comparison(heap: SortOutcome, two_way: SortOutcome, out=print):
    """Print both timings and which algorithm finished first."""
    print_subheader("Sorting Time Comparison", out)
    out(f"  {heap.algorithm:<20} {fmt_outcome(heap)}")
    out(f"  {two_way.algorithm:<20} {fmt_outcome(two_way)}")
    if not (heap.ok and two_way.ok):
        return
    diff = abs(heap.elapsed - two_way.elapsed)
    faster = heap if heap.elapsed < two_way.elapsed else two_way
    out(f"  {faster.algorithm} faster by {fmt_time(diff)}")


def print_harness_table(report: HarnessReport, out=print):
    algos = list(get_algorithms())
    hdr = f"{'Case':<32} {'n':>7} " + " ".join(f"{a:>20}" for a in algos)
    out(f"{Colors.BOLD}{hdr}{Colors.END}")
    out("-" * len(hdr))
    for c in report.cases:
        cells = []
        for a in algos:
            o = c.outcomes[a]
            cells.append(f"{fmt_time(o.elapsed) if o.status != FAILED else 'FAILED':>20}")
        out(f"{c.description:<32} {c.n:>7} " + " ".join(cells))


def print_scaling_table(results: List[ScalingResult], out=print):
    if not results:
        return

    algos = get_algorithms()
    sizes = results[0].sizes
    hdr = (f"{'Algorithm':<20} " + " ".join(f"{'n='+str(s):>10}" for s in sizes)
           + f" {'Complexity':>14} {'R^2':>7} {'Expected':>16}")
    out(f"{Colors.BOLD}{hdr}{Colors.END}")
    out("-" * len(hdr))

    for sr in results:
        row = f"{sr.algorithm:<20} " + " ".join(f"{fmt_time(t):>10}" for t in sr.times)
        expected = algos[sr.algorithm].expected_complexity if sr.algorithm in algos else "-"
        out(row + f" {sr.estimated_complexity:>14} {sr.r_squared:>7.3f} {expected:>16}")


def print_instability_demo(out=print):
    fixture, result = demonstrate_heap_instability()
    print_subheader("Heap Sort Instability Demonstration", out)
    out("Input order:")
    print_records(fixture, out=out)
    out("After heap sort:")
    print_records(result, out=out)
    violation = find_stability_violation(fixture, result)
    if violation is not None:
        out(f"Tied records {violation.original_positions} came out as {violation.sorted_positions}")
