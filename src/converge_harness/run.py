# run.py
# Entry point for the converge-harness command. Config and wiring only —
# no logic lives here.
#
#   converge-harness ./cookbooks base webserver::nginx --json

import argparse
import json
import sys
from typing import Any

from converge_harness import display
from converge_harness.config import HarnessConfig
from converge_harness.cookbooks import ResolutionError
from converge_harness.engine import InvalidResourceError
from converge_harness.harness import ConvergeHarness


def _attribute(raw: str) -> tuple[str, Any]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    try:
        return key.strip(), json.loads(value)
    except json.JSONDecodeError:
        return key.strip(), value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="converge-harness",
        description="Expand a run-list and show every resource action it would take, without taking any.",
    )
    parser.add_argument("cookbook_path", help="Directory containing cookbooks.")
    parser.add_argument("recipes", nargs="+", help="Run-list items, e.g. base or recipe[web::nginx].")
    parser.add_argument("--json", action="store_true", help="Print recorded resources as JSON.")
    parser.add_argument("--verbose", action="store_true", help="Trace each intercepted action on stderr.")
    parser.add_argument("--node-name", default=None, help="Name of the simulated node.")
    parser.add_argument(
        "--attribute",
        dest="attributes",
        action="append",
        type=_attribute,
        default=[],
        metavar="KEY=VALUE",
        help="Node attribute; VALUE is parsed as JSON when possible. Repeatable.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = HarnessConfig.from_env()
    if args.verbose:
        config = config.model_copy(update={"verbose": True})

    try:
        harness = ConvergeHarness(
            args.cookbook_path,
            node_name=args.node_name,
            attributes=dict(args.attributes),
            config=config,
        )
        harness.converge(*args.recipes)
    except (ResolutionError, InvalidResourceError) as exc:
        display.halt(str(exc))
        return 1

    if args.json:
        payload = [decl.model_dump(mode="json") for decl in harness.resources]
        print(json.dumps(payload, indent=2))
    else:
        display.recorded_summary(list(harness.resources), harness.node.run_list)
    return 0


if __name__ == "__main__":
    sys.exit(main())
