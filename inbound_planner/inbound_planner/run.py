from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict

from . import data
from .config import Settings
from .replan import project, replan

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Project the inbound truck plan for the bundled sample data")
    ap.add_argument("--sku", type=str, default="20oz")
    ap.add_argument("--today", type=str, default=None, help="planning date, YYYY-MM-DD")
    ap.add_argument("--replan", action="store_true", help="let the solver rebalance the truck plan first")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings = Settings()
    logging.basicConfig(level=settings.log_level)

    specs = data.sample_specs_by_sku()
    if args.sku not in specs:
        raise SystemExit(f"unknown sku {args.sku!r}; choose from {', '.join(specs)}")
    state = data.sample_state(args.sku, today=args.today)

    plan_dict = {"sku": args.sku}
    if args.replan:
        outcome = replan(state, specs, settings)
        state = outcome.state
        result = outcome.result
        plan_dict["replan"] = {
            "iterations": outcome.iterations,
            "converged": outcome.converged,
            "changes": [vars(c) for c in outcome.changes],
        }
    else:
        result = project(state, specs, settings)

    plan_dict["monthly_inbound"] = state.monthly_inbound
    plan_dict["result"] = asdict(result)

    out_dir = settings.output_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    out_file = out_dir / "inbound_plan.json"
    out_file.write_text(json.dumps(plan_dict, indent=2))
    print(f"plan written to {out_file}")


if __name__ == "__main__":
    main()
