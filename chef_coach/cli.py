from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .catalog import DEFAULT_CATALOG, load_catalog
from .coach import CoachOrchestrator
from .config import CoachConfig, get_preset, list_presets
from .harness import run_session
from .learning.persistence_hooks import LearningPersistence
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def _load_config(args: argparse.Namespace) -> Optional[CoachConfig]:
    if args.config:
        config = CoachConfig.load(args.config)
        if config is None:
            print(f"[Could not load config from {args.config}]", file=sys.stderr)
            return None
    else:
        config = get_preset(args.preset)
        if config is None:
            print(f"[Unknown preset '{args.preset}'; choose from {', '.join(list_presets())}]",
                  file=sys.stderr)
            return None

    if args.seed is not None:
        config.prng_seed = args.seed
    return config


def cmd_simulate(args: argparse.Namespace) -> int:
    config = _load_config(args)
    if config is None:
        return 2

    catalog = DEFAULT_CATALOG
    if args.catalog:
        catalog = load_catalog(args.catalog) or DEFAULT_CATALOG

    persistence = LearningPersistence(args.save_dir) if args.save_dir else None
    coach = CoachOrchestrator(config, catalog, session_id=args.session)
    if persistence is not None:
        restored = persistence.restore(args.session)
        if restored is not None:
            coach.import_state(restored)
            print(f"[Restored learned state for session '{args.session}']", file=sys.stderr)

    report = run_session(
        rounds=args.rounds,
        skill=args.skill,
        seed=args.seed,
        catalog=catalog,
        recipes=args.recipe or None,
        persistence=persistence,
        session_id=args.session,
        coach=coach,
    )

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return 0

    for i, r in enumerate(report.rounds, 1):
        status = "completed" if r.completed else "failed"
        extra = f" +{r.bonus} ({r.embellishment})" if r.bonus else ""
        print(f"Round {i:>3}  {r.task_id:<18} {status:<9} score={r.score:<4} "
              f"stars={r.stars} mistakes={r.mistakes} stance={r.stance}{extra}")
    print(f"\nCompletion rate: {report.completion_rate:.0%}")
    print(f"Average score:   {report.average_score:.1f}")
    print(f"Acceptance rate: {report.acceptance_rate:.0%}")
    profile = report.stats.get("profile", {})
    print(f"Trend: {profile.get('improvement_trend', 0):+.1f}  "
          f"Preferred stance: {profile.get('preferred_stance')}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .api import create_app

    uvicorn.run(create_app(preset=args.preset), host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="chef-coach - adaptive Q-learning coach for a cooking game"
    )
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    ap.add_argument("--log-dir", default=None, help="Also write rotating log files here")
    sub = ap.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Run a simulated player against the coach")
    sim.add_argument("--rounds", type=int, default=10, help="Rounds to play")
    sim.add_argument("--skill", type=float, default=0.7, help="Player accuracy (0-1)")
    sim.add_argument("--seed", type=int, default=None, help="PRNG seed")
    sim.add_argument("--preset", default="default", help=f"Coach preset ({', '.join(list_presets())})")
    sim.add_argument("--config", default=None, help="Coach config file (JSON/YAML)")
    sim.add_argument("--catalog", default=None, help="Catalog override file (JSON/YAML)")
    sim.add_argument("--recipe", action="append", help="Recipe to play (repeatable)")
    sim.add_argument("--session", default="simulated", help="Session id")
    sim.add_argument("--save-dir", default=None, help="Snapshot learned state here")
    sim.add_argument("--json", action="store_true", help="Print the report as JSON")
    sim.set_defaults(func=cmd_simulate)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--preset", default="default", help="Preset for new sessions")
    serve.set_defaults(func=cmd_serve)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level="DEBUG" if args.verbose else "INFO", log_dir=args.log_dir)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
