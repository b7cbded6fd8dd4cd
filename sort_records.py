#!/usr/bin/env python3
"""
Composite-Key Sort Suite - Main Runner
======================================

Sorts date/name records with heap sort and two-way insertion sort,
writes both results, checks stability and times best/worst/representative
cases.

Usage:
    python sort_records.py --generate data.txt --n 20000
    python sort_records.py --input data.txt --output-dir out
    python sort_records.py --harness --input data.txt --threshold 1000
    python sort_records.py --scaling --max-n 10000
    python sort_records.py --demo
"""

import argparse
import random
import sys
from pathlib import Path

from record_io import MalformedRecordError, read_records, write_input_file, write_sorted_output
from sort_bench_core import (
    SortBenchConfig, SCALING_SIZES, HEAP_SORT, TWO_WAY_INSERTION,
    generate_records, get_algorithms, timed_heap_sort, timed_two_way_insertion_sort,
    analyze_stability, run_case_harness, run_scaling_analysis,
    fmt_outcome, get_system_info,
    print_header, print_stability_report, print_timing_comparison,
    print_harness_table, print_scaling_table, print_instability_demo,
    Colors,
)

HEAP_OUTPUT = "heap_sort_output.txt"
TWO_WAY_OUTPUT = "two_way_insertion_output.txt"


def _say(quiet):
    return (lambda *a, **k: None) if quiet else print


def load_records(config: SortBenchConfig, path, strict: bool = False, quiet: bool = False):
    out = _say(quiet)
    out(f"  Reading records from {path}")
    result = read_records(path, limit=config.read_limit, strict=strict,
                          on_progress=lambda c: out(f"    read {c:,} records"),
                          progress_every=config.progress_every)
    out(f"  Read {len(result.records):,} records from {result.lines_read:,} lines")
    if result.skipped:
        out(f"  {Colors.YELLOW}Skipped {len(result.skipped)} malformed lines "
            f"(first at line {result.skipped[0]}){Colors.END}")
    return result.records


def run_sort(config: SortBenchConfig, records, output_dir: Path, quiet: bool = False):
    """Sort independent copies with both algorithms, write both outputs, analyze."""
    out = _say(quiet)
    algos = get_algorithms()
    print_header("Sorting", out)

    heap_data = list(records)
    two_way_data = list(records)

    out(f"  Running {HEAP_SORT} ({algos[HEAP_SORT].description})...")
    heap = timed_heap_sort(heap_data, config)
    path = write_sorted_output(heap_data, output_dir / HEAP_OUTPUT, heap.elapsed_ms)
    out(f"    {fmt_outcome(heap)} -> {path}")

    out(f"  Running {TWO_WAY_INSERTION} ({algos[TWO_WAY_INSERTION].description})...")
    two_way = timed_two_way_insertion_sort(
        two_way_data, config,
        on_progress=lambda i, n: out(f"    processed {i:,}/{n:,}"))
    if two_way.ok:
        path = write_sorted_output(two_way_data, output_dir / TWO_WAY_OUTPUT, two_way.elapsed_ms)
        out(f"    {fmt_outcome(two_way)} -> {path}")
    else:
        out(f"    {fmt_outcome(two_way)}; run aborted, no output written")

    verdicts = None
    if two_way.ok:
        verdicts = analyze_stability(records, {HEAP_SORT: heap_data, TWO_WAY_INSERTION: two_way_data})
        print_stability_report(verdicts, out)
        if not verdicts[HEAP_SORT]:
            print_instability_demo(out)

    print_timing_comparison(heap, two_way, out)
    return heap, two_way, verdicts


def run_harness(config: SortBenchConfig, records, quiet: bool = False):
    out = _say(quiet)
    sample = records[:config.harness_sample_size]
    print_header("Best / Worst Case Analysis", out)
    out(f"  sample n = {len(sample)}, two-way threshold = {config.large_size_threshold}\n")

    def narrate(case):
        out(f"  {case.description}:")
        for o in case.outcomes.values():
            out(f"    {o.algorithm:<20} {fmt_outcome(o)}")

    report = run_case_harness(sample, config, on_case=narrate)
    out()
    print_harness_table(report, out)
    return report


def run_scaling(config: SortBenchConfig, max_n: int, quiet: bool = False):
    out = _say(quiet)
    sizes = [s for s in SCALING_SIZES if s <= max_n]
    if max_n not in sizes:
        sizes.append(max_n)
    sizes = sorted(sizes)

    print_header("Scaling Analysis", out)
    out(f"  Sizes: {sizes}\n")
    results = run_scaling_analysis(
        sizes, config, on_size=lambda name, n: out(f"  {name} n={n}..."))
    out()
    print_scaling_table(results, out)
    return results


def run_generate(path, n: int, seed: int, quiet: bool = False):
    records = generate_records(n, random.Random(seed))
    write_input_file(records, path)
    _say(quiet)(f"  Wrote {n:,} records to {path}")
    return records


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Composite-key record sorting: heap sort vs two-way insertion sort",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --generate data.txt --n 20000     Write a random input file
  %(prog)s --input data.txt                  Sort, analyze and time
  %(prog)s --harness --input data.txt        Best/worst case timings only
  %(prog)s --scaling --max-n 10000           Scaling analysis
  %(prog)s --demo                            Heap sort instability example
        """
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--sort", action="store_true", help="Sort, analyze and time (default)")
    mode.add_argument("--harness", action="store_true", help="Best/worst case analysis only")
    mode.add_argument("--scaling", action="store_true", help="Scaling analysis on generated data")
    mode.add_argument("--demo", action="store_true", help="Show heap sort instability")
    mode.add_argument("--generate", metavar="PATH", help="Write a random input file")

    parser.add_argument("--input", "-i", type=Path, help="Input records file")
    parser.add_argument("--output-dir", "-o", type=Path, default=Path("output"),
                        help="Directory for sorted outputs (default: output)")
    parser.add_argument("--limit", type=int, default=100000, help="Max records to read (default: 100000)")
    parser.add_argument("--n", type=int, default=10000, help="Records to generate (default: 10000)")
    parser.add_argument("--max-n", type=int, default=5000, help="Max size for scaling (default: 5000)")
    parser.add_argument("--sample-size", type=int, default=1000, help="Harness sample size (default: 1000)")
    parser.add_argument("--threshold", type=int, default=1000,
                        help="Largest n timed with two-way insertion in best/worst case and scaling analysis (default: 1000)")
    parser.add_argument("--repeats", type=int, default=3, help="Timed runs per case (default: 3)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--strict", action="store_true", help="Fail on the first malformed input line")
    parser.add_argument("--quiet", "-q", action="store_true", help="Minimal output")

    args = parser.parse_args(argv)

    config = SortBenchConfig(
        seed=args.seed,
        large_size_threshold=args.threshold,
        harness_sample_size=args.sample_size,
        repeats=args.repeats,
        read_limit=args.limit,
    )

    if not args.quiet:
        info = get_system_info()
        print(f"\n{Colors.BOLD}Composite-Key Sort Suite{Colors.END}")
        print(f"Python {info['python_version'].split()[0]} | NumPy {info['numpy_version']} | "
              f"{info['platform']} ({info['machine']})")
        print(f"Started {info['timestamp']}\n")

    if args.generate:
        run_generate(args.generate, args.n, args.seed, args.quiet)
        return 0
    if args.demo:
        print_instability_demo(_say(args.quiet))
        return 0
    if args.scaling:
        run_scaling(config, args.max_n, args.quiet)
        return 0

    if args.input is None:
        parser.error("--input is required for --sort and --harness")

    try:
        records = load_records(config, args.input, strict=args.strict, quiet=args.quiet)
    except FileNotFoundError:
        print(f"{Colors.RED}Input file {args.input} does not exist{Colors.END}", file=sys.stderr)
        return 1
    except (OSError, MalformedRecordError) as e:
        print(f"{Colors.RED}Cannot read {args.input}: {e}{Colors.END}", file=sys.stderr)
        return 1

    if not records:
        print(f"{Colors.YELLOW}No records to process{Colors.END}", file=sys.stderr)
        return 1

    if not args.harness:
        run_sort(config, records, args.output_dir, args.quiet)
    run_harness(config, records, args.quiet)

    if not args.quiet:
        print(f"\n{Colors.CYAN}Done.{Colors.END}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
