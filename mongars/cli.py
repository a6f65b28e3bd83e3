"""Command line entry point.

Usage:
  mongars simulate --steps 50 --inputs 0.2,0.8 --meta 0.1 --stimulus 0.05
  mongars sommeil --config config/mongars.yaml --telemetry-log logs/events.jsonl
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from functools import partial
from typing import Iterable, List, Optional

from mongars.affect import AffectiveDynamicsParameters, AffectiveField, AffectiveFieldSimulator
from mongars.config import MongarsCfg, load_mongars_cfg
from mongars.runtime import CognitiveLoop
from mongars.telemetry import event


def _floats(raw: str) -> List[float]:
    items = [chunk.strip() for chunk in raw.split(",") if chunk.strip()]
    try:
        return [float(item) for item in items]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected comma-separated numbers, got {raw!r}") from exc


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    # accepted before or after the subcommand; SUPPRESS keeps the subparser
    # from overwriting a value given at the top level
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=str, default=argparse.SUPPRESS, help="YAML config path")
    common.add_argument("--log-level", type=str, default=argparse.SUPPRESS, help="logging level")

    parser = argparse.ArgumentParser(description="Affective core tools", parents=[common])
    parser.set_defaults(config="config/mongars.yaml", log_level="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", parents=[common], help="integrate an affect trajectory and print its analysis")
    sim.add_argument("--steps", type=int, default=50)
    sim.add_argument("--initial", type=_floats, default=[0.0, 0.0, 0.0, 0.0], help="v,a,u,m")
    sim.add_argument("--inputs", type=_floats, default=[0.0], help="external input sequence")
    sim.add_argument("--meta", type=_floats, default=[0.0], help="meta feedback sequence")
    sim.add_argument("--stimulus", type=_floats, default=[0.0], help="intrinsic stimulus sequence")
    sim.add_argument("--no-trajectory", action="store_true", help="omit per-step fields from output")

    som = sub.add_parser("sommeil", parents=[common], help="queue the standard maintenance tasks and run one idle cycle")
    som.add_argument("--telemetry-log", type=str, default=None, help="append loop events to this JSONL file")
    return parser.parse_args(argv)


def run_simulate(args: argparse.Namespace, cfg: MongarsCfg) -> dict:
    if len(args.initial) != 4:
        raise SystemExit("--initial needs exactly four values: v,a,u,m")
    simulator = AffectiveFieldSimulator(
        AffectiveDynamicsParameters.from_mapping(cfg.affect.dynamics),
        dt=cfg.affect.dt,
    )
    v, a, u, m = args.initial
    initial = AffectiveField(v, a, u, m).clamped()
    trajectory = simulator.simulate_trajectory(initial, args.steps, args.inputs, args.meta, args.stimulus)
    analysis = simulator.analyze_trajectory(trajectory)
    regime = simulator.regime(trajectory[-1])
    payload = {
        "steps": args.steps,
        "final": trajectory[-1].to_dict(),
        "energy": analysis.energy,
        "entropy": analysis.entropy,
        "stability": analysis.stability,
        "regime": {"name": regime.name, "confidence": regime.confidence},
    }
    if not args.no_trajectory:
        payload["trajectory"] = [f.to_dict() for f in trajectory]
    return payload


def run_sommeil(args: argparse.Namespace, cfg: MongarsCfg) -> dict:
    hook = partial(event, log_path=args.telemetry_log) if args.telemetry_log else None
    loop = CognitiveLoop.from_cfg(cfg, lambda: True, telemetry_hook=hook)
    loop.scheduler.schedule_maintenance_tasks()
    asyncio.run(loop.maintenance())
    return {
        "metrics": loop.scheduler.get_metrics().to_dict(),
        "queued": [task.to_payload() for task in loop.scheduler.get_queued_tasks()],
        "intrinsic_stimulus": loop.pending_stimulus,
    }


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="[%(levelname)s] %(asctime)s %(name)s: %(message)s",
    )
    cfg = load_mongars_cfg(args.config)
    if args.command == "simulate":
        payload = run_simulate(args, cfg)
    else:
        payload = run_sommeil(args, cfg)
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
