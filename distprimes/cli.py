#!/usr/bin/env python3
import argparse
import logging
import sys

from pydantic import ValidationError

from distprimes.config import DEFAULT_LIMIT, DEFAULT_MASTER_ADDR, DEFAULT_WORKERS, ClusterConfig
from distprimes.errors import SieveError
from distprimes.orchestrator import Orchestrator
from distprimes.report import format_csv, format_report
from distprimes.tcp import run_worker

logger = logging.getLogger("distprimes")

STRATEGIES = ("threads", "mpi", "tcp", "single")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="distprimes",
        description="Count primes <= LIMIT with a segmented sieve spread over threads, MPI ranks or TCP workers.",
    )
    ap.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help=f"Upper bound, inclusive (default: {DEFAULT_LIMIT:,}).")
    ap.add_argument("--workers", type=int, default=DEFAULT_WORKERS,
                    help=f"Threads, or TCP workers to wait for (default: {DEFAULT_WORKERS}).")
    ap.add_argument("--strategy", dest="strategies", action="append", choices=STRATEGIES,
                    help="Strategy to try, repeat to build a fallback chain (default: threads). "
                         "Single-node is always the last resort.")
    ap.add_argument("--master-addr", default=DEFAULT_MASTER_ADDR,
                    help=f"Coordinator host:port for the tcp strategy (default: {DEFAULT_MASTER_ADDR}).")
    ap.add_argument("--worker", action="store_true", help="Run as a TCP worker connecting to --master-addr.")
    ap.add_argument("--accept-timeout", type=float, default=None,
                    help="Seconds the coordinator waits for all workers (default: forever).")
    ap.add_argument("--io-timeout", type=float, default=None,
                    help="Seconds any single socket read or write may block (default: forever).")
    ap.add_argument("--show", type=int, default=0, help="Print the first and last SHOW primes (threads/single only).")
    ap.add_argument("--csv", action="store_true", help="Print one CSV line: limit,nodes,time_ms,total.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log every segment and message.")
    return ap


def main(argv=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        config = ClusterConfig(
            limit=args.limit,
            workers=args.workers,
            strategies=args.strategies or ["threads"],
            master_addr=args.master_addr,
            worker=args.worker,
            accept_timeout=args.accept_timeout,
            io_timeout=args.io_timeout,
            keep_primes=args.show > 0,
            csv=args.csv,
            verbose=args.verbose,
            show=args.show,
        )
    except ValidationError as exc:
        ap.error(str(exc))

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING if config.csv else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if config.worker:
        try:
            segment, count = run_worker(config.address, timeout=config.io_timeout)
        except SieveError as exc:
            print(f"Worker error: {exc}", file=sys.stderr)
            return 1
        logger.info("Sieved [%d, %d]: %d primes", segment.low, segment.high, count)
        return 0

    try:
        result = Orchestrator(config).run()
    except SieveError as exc:
        print(f"Master error: {exc}", file=sys.stderr)
        return 1

    # non-root MPI ranks have nothing to report
    if result is None:
        return 0
    if config.csv:
        print(format_csv(result))
    else:
        print(format_report(result, show=config.show))
    return 0


if __name__ == "__main__":
    sys.exit(main())
