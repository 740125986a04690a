from __future__ import annotations

import argparse
import json
import logging
import sys

from interconnect_fixture.connections import UserConnection, validate_connections
from interconnect_fixture.errors import ConfigError, FixtureError
from interconnect_fixture.formatter import format_catalogue, format_record_tally, format_summary
from interconnect_fixture.generator import generate_footprint, generate_test_fixture
from interconnect_fixture.layout import DEFAULT_LAYOUT, ChipLayout
from interconnect_fixture.loader import load_chip_file
from interconnect_fixture.nets import get_outer_pin_nets, group_pins_into_nets

logger = logging.getLogger(__name__)


EXAMPLES = """\
Examples:
  interconnect-fixture pins chip.circuit.json                     outer pin catalogue
  interconnect-fixture summary chip.circuit.json                  pin, net and pad counts
  interconnect-fixture fixture chip.circuit.json -c conns.json    test fixture records
  interconnect-fixture footprint chip.circuit.json -c conns.json -o footprint.circuit.json
"""


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="interconnect-fixture",
        description="Generate test fixture and footprint circuits for the 100-pin interconnect chip.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-v info, -vv debug)"
    )
    subparsers = parser.add_subparsers(dest="command")

    pins_parser = subparsers.add_parser(
        "pins",
        help="List the outer pins a connection can use",
        description="Print every outer pin with its kind, pin number and fixture edge.",
    )
    pins_parser.add_argument("chip", help="Path to the chip .circuit.json file")
    pins_parser.add_argument(
        "-c", "--connections", metavar="FILE", help="JSON list of connections to show net names"
    )

    summary_parser = subparsers.add_parser(
        "summary",
        help="Show pin, net, trace and pad counts",
        description="Print a short summary of the chip description.",
    )
    summary_parser.add_argument("chip", help="Path to the chip .circuit.json file")

    for command, help_text in (
        ("fixture", "Generate the bench test fixture circuit"),
        ("footprint", "Generate the bare footprint circuit"),
    ):
        gen_parser = subparsers.add_parser(command, help=help_text, description=help_text + ".")
        gen_parser.add_argument("chip", help="Path to the chip .circuit.json file")
        gen_parser.add_argument(
            "-c", "--connections", metavar="FILE",
            help="JSON list of {id, name, outerPinNames, color} connections",
        )
        gen_parser.add_argument("--layout", metavar="FILE", help="JSON object of layout overrides")
        gen_parser.add_argument("-o", "--output", metavar="FILE", help="Write records here instead of stdout")

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=[logging.WARNING, logging.INFO, logging.DEBUG][min(args.verbose, 2)],
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        _run(args)
    except (FixtureError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


def _run(args):
    layout = _load_layout(getattr(args, "layout", None))
    chip = load_chip_file(args.chip, layout=layout)
    groups = group_pins_into_nets(chip.pins, chip.nets)
    catalogue = get_outer_pin_nets(groups)

    if args.command == "summary":
        print(format_summary(chip, groups, catalogue), end="")
        return

    connections = _load_connections(args.connections) if args.connections else []
    validate_connections(connections, catalogue)

    if args.command == "pins":
        print(format_catalogue(catalogue, chip.pads, connections), end="")
        return

    generate = generate_test_fixture if args.command == "fixture" else generate_footprint
    records = generate(chip, catalogue, connections, layout)
    logger.info("Generated %d %s records", len(records), args.command)

    text = json.dumps(records, indent=2) + "\n"
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(text)
    else:
        sys.stdout.write(text)
    print(format_record_tally(records), end="", file=sys.stderr)


def _read_json(path: str):
    with open(path, encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path}: invalid JSON: {e}") from e


def _load_layout(path: str | None) -> ChipLayout:
    if not path:
        return DEFAULT_LAYOUT
    return ChipLayout.from_dict(_read_json(path))


def _load_connections(path: str) -> list[UserConnection]:
    data = _read_json(path)
    if not isinstance(data, list):
        raise ConfigError(f"{path}: connections must be a JSON list")
    try:
        return [UserConnection.from_dict(item) for item in data]
    except (KeyError, TypeError, AttributeError) as e:
        raise ConfigError(f"{path}: malformed connection: {e}") from e


if __name__ == "__main__":
    main()
