"""Developer command line for Warhost rule packs."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from warhost.config import get_settings
from warhost.domain.glossary import describe_rule
from warhost.errors import RuleValidationError
from warhost.repository.rule_store import load_rule_pack_file


def _validate(paths: Sequence[Path]) -> int:
    failures = 0
    for path in paths:
        try:
            pack = load_rule_pack_file(path)
        except (OSError, RuleValidationError) as exc:
            failures += 1
            print(f"FAIL {path}: {exc}", file=sys.stderr)
            continue
        print(f"ok   {path}: {len(pack.rules)} rules (version {pack.version})")
    return 1 if failures else 0


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="warhost", description="Warhost rules engine tools")
    parser.add_argument("--log-level", default=settings.log_level, help="Root log level")
    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser("validate", help="Validate one or more rule pack files")
    validate.add_argument("paths", nargs="+", type=Path, help="Rule pack JSON files")

    describe = commands.add_parser("describe", help="Explain an ability by name")
    describe.add_argument("name", help='Ability name, e.g. "Sustained Hits 2"')
    describe.add_argument("--description", default=None, help="Fallback text when no pattern matches")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate":
        return _validate(args.paths)
    print(describe_rule(args.name, args.description))
    return 0


if __name__ == "__main__":
    sys.exit(main())
