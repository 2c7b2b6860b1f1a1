"""Benchmark gar_ndjson streaming throughput for one XML file."""

from __future__ import annotations

import argparse
import io
import statistics
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from gar_ndjson import count_elements, stream_elements  # noqa: E402
from gar_ndjson.tokens import DEFAULT_CHUNK_SIZE  # noqa: E402


class _NullWriter(io.TextIOBase):
    def write(self, s: str) -> int:
        return len(s)


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("xml_path", type=Path, help="Path to GAR XML file")
    parser.add_argument("--element", default=None)
    parser.add_argument("--iterations", type=int, default=5)
    parser.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    parser.add_argument("--count", action="store_true", default=True)
    parser.add_argument("--no-count", dest="count", action="store_false")
    args = parser.parse_args()

    if not args.xml_path.exists():
        print(f"File not found: {args.xml_path}", file=sys.stderr)
        return 2

    size_mb = args.xml_path.stat().st_size / (1024 * 1024)
    timings = []
    processed = 0
    for _ in range(args.iterations):
        start = time.perf_counter()
        expected = None
        if args.count:
            _, expected = count_elements(args.xml_path, args.element, args.chunk_size)
        result = stream_elements(
            args.xml_path,
            _NullWriter(),
            element=args.element,
            expected=expected,
            chunk_size=args.chunk_size,
        )
        timings.append(time.perf_counter() - start)
        processed = result.processed_count

    avg = statistics.mean(timings)
    p95 = statistics.quantiles(timings, n=20)[-1] if len(timings) >= 2 else timings[0]

    print(f"Iterations: {args.iterations}")
    print(f"Records: {processed}, Size: {size_mb:.1f} MiB, Count pass: {args.count}")
    print(f"Avg: {avg:.4f}s, Min: {min(timings):.4f}s, Max: {max(timings):.4f}s, P95: {p95:.4f}s")
    print(f"Throughput: {size_mb / avg:.1f} MiB/s")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
