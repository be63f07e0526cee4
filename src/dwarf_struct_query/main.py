"""Main entry point for the DWARF struct query tool."""

import argparse
import sys
from pathlib import Path
from typing import NoReturn

from .application import StructQuerySession
from .domain.errors import DwarfQueryError
from .infrastructure.config import Config
from .infrastructure.logging import LoggerSetup, get_logger, log_timing


def parse_address(text: str) -> int:
    """Parse an address argument (decimal, or hex with 0x prefix)."""
    try:
        value = int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid address: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"address must not be negative: {text!r}")
    return value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Inspect struct layouts from a dwarf2json schema document and "
        "decode members from a memory image",
        epilog="""
Examples:
  # Show the layout of a struct
  dwarf-struct-query linux.json.xz --struct task_struct

  # Show several layouts
  dwarf-struct-query linux.json.xz --struct task_struct,list_head

  # List every struct and union in the document
  dwarf-struct-query linux.json.xz --list

  # Which function contains an address (ELF symbols supplement the document)
  dwarf-struct-query linux.json.xz --elf vmlinux --function 0xffffffff81000123

  # Decode a whole struct from a memory dump mapped at 0xffff888000000000
  dwarf-struct-query linux.json.xz --image dump.bin --base 0xffff888000000000 \\
      --decode task_struct --at 0xffff888004a2c000

  # Decode one member (verbose mode with debug logs)
  dwarf-struct-query linux.json.xz --image dump.bin --decode task_struct.pid --at 0x1000 -v

  # Using .env file for configuration
  echo 'SCHEMA_PATH=linux.json.xz' > .env
  dwarf-struct-query --list
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "schema",
        type=Path,
        nargs="?",
        help="Path to the schema document, .json or .json.xz (optional if using .env)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output with debug logs",
    )
    parser.add_argument(
        "--struct",
        type=str,
        metavar="NAME",
        help="Print the layout of the named struct(s). "
        "Supports comma-separated list: 'task_struct,list_head'",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List all structs and unions in the document",
    )
    parser.add_argument(
        "--function",
        type=parse_address,
        metavar="ADDR",
        help="Print the function containing the address",
    )
    parser.add_argument(
        "--elf",
        type=Path,
        metavar="FILE",
        help="ELF image whose symbol tables supplement the document's functions",
    )
    parser.add_argument(
        "--image",
        type=Path,
        metavar="FILE",
        help="Flat memory dump to decode from",
    )
    parser.add_argument(
        "--base",
        type=parse_address,
        metavar="ADDR",
        help="Virtual address of the first byte of the memory dump (default: 0)",
    )
    parser.add_argument(
        "--decode",
        type=str,
        metavar="STRUCT[.FIELD]",
        help="Decode a struct, or one of its members, from the memory dump",
    )
    parser.add_argument(
        "--at",
        type=parse_address,
        metavar="ADDR",
        help="Address of the struct to decode",
    )
    return parser.parse_args(argv)


@log_timing
def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for struct layout queries and memory decoding."""
    logger = get_logger(__name__)
    logger.debug("Starting struct query main program")

    args = parse_args(argv)

    # Load configuration
    try:
        config = Config.from_args(
            schema_path=args.schema,
            memory_image=args.image,
            image_base=args.base,
            elf_path=args.elf,
            verbose=args.verbose,
        )
        config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    # Initialize logging
    LoggerSetup.initialize(config.log_dir, verbose=config.verbose)
    logger = get_logger(__name__)

    logger.debug(f"Schema document: {config.schema_path}")
    logger.debug(f"Memory image: {config.memory_image} at 0x{config.image_base:x}")

    if args.decode and args.at is None:
        logger.error("--decode requires --at")
        sys.exit(1)
    if args.decode and config.memory_image is None:
        logger.error("--decode requires --image")
        sys.exit(1)

    structs = [s.strip() for s in args.struct.split(",") if s.strip()] if args.struct else []
    if not (structs or args.list or args.function is not None or args.decode):
        logger.error("Nothing to do: use --struct, --list, --function or --decode")
        sys.exit(1)

    failures: list[tuple[str, str]] = []

    try:
        with StructQuerySession(config) as session:
            stats = session.catalog.stats()
            logger.info(
                f"Catalog: {stats['aggregates']} aggregates, {stats['members']} members "
                f"({stats['invalid_members']} invalid), {stats['functions']} functions"
            )

            if args.list:
                for line in session.list_aggregates():
                    print(line)

            for name in structs:
                try:
                    print(session.describe(name))
                except KeyError as e:
                    logger.error(f"[FAILED] {name}: {e.args[0]}")
                    failures.append((name, e.args[0]))

            if args.function is not None:
                function = session.function_at(args.function)
                if function is None:
                    logger.error(f"[FAILED] No function contains 0x{args.function:x}")
                    failures.append((f"0x{args.function:x}", "no containing function"))
                else:
                    print(f"0x{args.function:x}: {function}")

            if args.decode:
                try:
                    print(session.decode(args.decode, args.at))
                except KeyError as e:
                    logger.error(f"[FAILED] {args.decode}: {e.args[0]}")
                    failures.append((args.decode, e.args[0]))

    except (DwarfQueryError, OSError) as e:
        logger.error(f"Fatal error: {e}")
        if config.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)

    if failures:
        logger.info("=" * 70)
        logger.info(f"{len(failures)} quer{'y' if len(failures) == 1 else 'ies'} failed:")
        for query, error in failures:
            logger.info(f"  - {query}: {error}")

    logger.debug("Main program completed successfully")
    sys.exit(0 if not failures else 1)


if __name__ == "__main__":
    main()
