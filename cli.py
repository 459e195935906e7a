#!/usr/bin/env python3
"""
Monster Sanctuary Seeds - Command Line Interface

Generate, inspect and search Monster Sanctuary randomizer, bravery and
relic seeds.

Usage:
    python cli.py check --seed 1234 --randomizer --relics
    python cli.py random --amount 10 --bravery
    python cli.py find --filter example --randomizer --relics
    python cli.py create-database --workers 8
    python cli.py rng --seed 1234 --count 20
"""

import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sanctuary.bad_seeds import BadSeedLog
from sanctuary.config import Settings, load_settings
from sanctuary.content.tables import ReferenceTables, get_reference_tables
from sanctuary.errors import SanctuaryError
from sanctuary.export import format_report, write_report
from sanctuary.generation.engine import SeedGenerator
from sanctuary.generation.result import GameModes
from sanctuary.simulation.batch import BatchConfig, SeedBatchRunner, iter_mode_combinations
from sanctuary.state.rng import UnityRandom, Xorshift128
from sanctuary.storage.database import SeedDatabase
from sanctuary.storage.filters import parse_filters

logger = logging.getLogger("sanctuary.cli")

FILTERS_DIR = "filters"
MAX_SEED = 1_000_000


# =============================================================================
# HELPERS
# =============================================================================

def _settings(args) -> Settings:
    settings = load_settings(args.env_file)
    overrides = {}
    if args.data_dir is not None:
        overrides["data_dir"] = args.data_dir
    if args.seeds_dir is not None:
        overrides["seeds_dir"] = args.seeds_dir
    if args.database is not None:
        overrides["database"] = args.database
    if getattr(args, "workers", None) is not None:
        overrides["workers"] = args.workers
    if getattr(args, "batch_size", None) is not None:
        overrides["batch_size"] = args.batch_size
    return dataclasses.replace(settings, **overrides)


def _modes(args) -> GameModes:
    return GameModes(randomizer=args.randomizer, bravery=args.bravery, relics=args.relics)


def _tables(settings: Settings) -> ReferenceTables:
    return get_reference_tables(settings.data_dir)


def resolve_filter_path(name: str) -> Path:
    """'example' -> filters/example.json; explicit paths are kept."""
    path = Path(name)
    if path.parent == Path(".") and not path.exists():
        path = Path(FILTERS_DIR) / path
    if path.suffix != ".json":
        path = path.with_suffix(".json")
    return path


def _add_mode_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--randomizer", "-r", action="store_true", help="Randomizer mode")
    parser.add_argument("--bravery", "-b", action="store_true", help="Bravery mode")
    parser.add_argument("--relics", "-l", action="store_true", help="Relics mode")


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_check(args) -> int:
    """Generate one seed and print (or save) its report."""
    settings = args.settings
    modes = _modes(args)
    if not modes.any():
        print("Select at least one mode (--randomizer, --bravery, --relics)", file=sys.stderr)
        return 1

    tables = _tables(settings)
    generator = SeedGenerator(tables, bad_seed_sink=BadSeedLog(settings.bad_seeds_path))
    result = generator.generate(
        args.seed, randomizer=modes.randomizer, bravery=modes.bravery, relics=modes.relics
    )
    if result is None:
        print(f"Could not generate seed {args.seed} ({modes.label})", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_report(result, tables), end="")

    if args.save:
        path = write_report(result, tables, settings.seeds_dir)
        print(f"Saved as {path}")
    return 0


def cmd_random(args) -> int:
    """Generate reports for random seeds."""
    settings = args.settings
    modes = _modes(args)
    if not modes.any():
        print("Select at least one mode (--randomizer, --bravery, --relics)", file=sys.stderr)
        return 1

    tables = _tables(settings)
    generator = SeedGenerator(tables, bad_seed_sink=BadSeedLog(settings.bad_seeds_path))

    exported = 0
    for _ in range(args.amount):
        result = generator.generate_random(
            randomizer=modes.randomizer, bravery=modes.bravery, relics=modes.relics
        )
        if result is None:
            continue
        write_report(result, tables, settings.seeds_dir)
        exported += 1

    print(f"Exported {exported} random seeds to {settings.seeds_dir}.")
    return 0


def cmd_find(args) -> int:
    """Search the seed database with a filter file."""
    settings = args.settings
    modes = _modes(args)
    if not (modes.randomizer or modes.bravery):
        print("Select --randomizer and/or --bravery", file=sys.stderr)
        return 1

    tables = _tables(settings)
    path = resolve_filter_path(args.filter)
    filters = parse_filters(path, modes.randomizer, modes.bravery, modes.relics, tables)

    db = SeedDatabase(settings.database_url, tables)
    games = db.find(filters, modes.randomizer, modes.bravery, modes.relics,
                    limit=args.limit, offset=args.offset)

    for game in games:
        print(f"Found seed: {game.seed}")
        write_report(game, tables, settings.seeds_dir, filter_path=str(path))

    if games:
        print(f"All seeds saved to {Path(settings.seeds_dir) / path.stem}/")
    else:
        print("No seed found")
    return 0


def cmd_create_database(args) -> int:
    """Generate every seed in [start, end) for every stored mode combination."""
    settings = args.settings
    tables = _tables(settings)
    logger.warning("This is a slow process and should only be needed to run once.")

    bad_log = BadSeedLog(settings.bad_seeds_path)
    bad_log.truncate()

    db = SeedDatabase(settings.database_url, tables)
    db.create_schema()
    db.clear()
    db.populate_reference()

    config = BatchConfig(
        n_workers=settings.workers,
        batch_size=settings.batch_size,
        data_dir=settings.data_dir,
    )
    combos = list(iter_mode_combinations())
    step = config.batch_size * config.n_workers

    with SeedBatchRunner(config, bad_seed_log=bad_log) as runner:
        for chunk_start in range(args.start, args.end, step):
            chunk_end = min(chunk_start + step, args.end)
            batch = runner.run(range(chunk_start, chunk_end), combos)
            db.insert_results(batch.results)
            print(f"{chunk_start} -> {chunk_end - 1} "
                  f"({len(batch.results)} games, {len(batch.bad_seeds)} bad)")

    return 0


def cmd_rng(args) -> int:
    """Display the UnityEngine.Random sequence for a seed."""
    raw = Xorshift128(args.seed)
    print(f"Seed: {args.seed}")
    print()
    print("Xorshift128 Initial State:")
    for name, value in zip("xyzw", raw.get_state()):
        print(f"  {name}: {value}")
    print()

    rng = UnityRandom(args.seed)
    print(f"First {args.count} Range(0, 100) values:")
    ints = [rng.range(0, 100) for _ in range(args.count)]
    for i, value in enumerate(ints):
        print(f"  {i}: {value}")
    print(f"\nRNG counter after {args.count} calls: {rng.counter}")

    float_rng = UnityRandom(args.seed)
    floats = [float_rng.next_unit_float() for _ in range(5)]
    print("\nFirst 5 Range(0f, 1f) values:")
    for i, value in enumerate(floats):
        print(f"  {i}: {value:.9f}")

    if args.json:
        print("\nJSON:")
        print(json.dumps({
            "seed": args.seed,
            "state": list(raw.get_state()),
            "range_0_100": ints,
            "unit_floats": floats,
        }, indent=2))
    return 0


# =============================================================================
# MAIN
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Monster Sanctuary seed generator and finder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s check --seed 1234 --randomizer --relics
  %(prog)s check --seed 1234 --bravery --json
  %(prog)s random --amount 10 --bravery --relics
  %(prog)s find --filter example --randomizer --relics
  %(prog)s create-database --start 0 --end 1000000 --workers 8
  %(prog)s rng --seed 1234 --count 20
        """
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--env-file", help="Settings file (default: .env)")
    parser.add_argument("--data-dir", help="Reference data directory")
    parser.add_argument("--seeds-dir", help="Report output directory")
    parser.add_argument("--database", help="SQLite file or SQLAlchemy URL")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser("check", help="Generate one seed")
    check_parser.add_argument("--seed", "-s", type=int, required=True, help="Seed number")
    _add_mode_flags(check_parser)
    check_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")
    check_parser.add_argument("--save", action="store_true", help="Also write the report file")

    random_parser = subparsers.add_parser("random", help="Export reports for random seeds")
    random_parser.add_argument("--amount", "-n", type=int, default=10, help="Number of seeds")
    _add_mode_flags(random_parser)

    find_parser = subparsers.add_parser("find", help="Search the seed database")
    find_parser.add_argument("--filter", "-f", required=True, help="Filter name or path")
    _add_mode_flags(find_parser)
    find_parser.add_argument("--limit", type=int, default=100, help="Maximum seeds returned")
    find_parser.add_argument("--offset", type=int, help="Skip this many matches")

    db_parser = subparsers.add_parser("create-database", help="Generate and store all seeds")
    db_parser.add_argument("--start", type=int, default=0, help="First seed")
    db_parser.add_argument("--end", type=int, default=MAX_SEED, help="Seed after the last one")
    db_parser.add_argument("--workers", "-w", type=int, help="Worker processes (0 = auto)")
    db_parser.add_argument("--batch-size", type=int, help="Seeds per worker task")

    rng_parser = subparsers.add_parser("rng", help="Show the RNG sequence for a seed")
    rng_parser.add_argument("--seed", "-s", type=int, required=True, help="Seed number")
    rng_parser.add_argument("--count", "-n", type=int, default=20, help="Number of values to show")
    rng_parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")

    return parser


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    args.settings = _settings(args)
    level = logging.DEBUG if args.verbose else args.settings.log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "check": cmd_check,
        "random": cmd_random,
        "find": cmd_find,
        "create-database": cmd_create_database,
        "rng": cmd_rng,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except SanctuaryError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
