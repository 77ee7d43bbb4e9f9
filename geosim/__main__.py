"""Command line entry point: python -m geosim scenario.json"""

import argparse
import json
import sys
from typing import List, Optional

from geosim.errors import GeofenceSimError
from geosim.scenario import load_scenario, run_scenario
from geosim.utils.logger import configure_logging


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="geosim", description="Geofence simulation scenario runner")
    parser.add_argument("scenario", help="Path to a JSON scenario file")
    parser.add_argument("--tick-ms", type=float, help="Override the tick interval in milliseconds")
    parser.add_argument("--fleet", action="store_true", default=None,
                        help="Drive all agents with one shared tick loop")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    parser.add_argument("--summary", action="store_true", help="Print the final engine summary as JSON")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    overrides = {}
    if args.tick_ms is not None:
        overrides["tick_interval_ms"] = args.tick_ms

    try:
        scenario = load_scenario(args.scenario)
        engine = run_scenario(scenario, overrides, fleet=args.fleet)
    except (GeofenceSimError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for line in engine.activity_log.lines:
        print(line)

    if args.summary:
        print(json.dumps(engine.summary(), indent=2, default=str))

    return 0


if __name__ == "__main__":
    sys.exit(main())
