"""
Main entrypoint.

Usage:
    python -m walkie                      # serves the API under uvicorn
    python -m walkie serve --port 8000
    python -m walkie score --age 6 --weight 10 --minutes 60 --bcs 4.5 --sleep 12 --hr 80
    python -m walkie history              # prints saved walks, most recent first
"""
import argparse
import logging
import sys

from walkie.config import get_settings

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _run_serve(args: argparse.Namespace) -> None:
    import uvicorn

    logger.info("Starting Walkie API on %s:%d", args.host, args.port)
    uvicorn.run("walkie.api.main:create_app", factory=True, host=args.host, port=args.port)


def _run_score(args: argparse.Namespace) -> int:
    from walkie.analysis.health import HealthInputs, evaluate, get_profile
    from walkie.errors import InvalidInput

    try:
        inputs = HealthInputs.from_mapping({
            "age": args.age,
            "weight_kg": args.weight,
            "active_minutes": args.minutes,
            "body_condition_score": args.bcs,
            "sleep_hours": args.sleep,
            "resting_heart_rate": args.hr,
        })
        result = evaluate(inputs, profile=get_profile(args.profile))
    except InvalidInput as exc:
        logger.error("Invalid input: %s", exc)
        return 2
    print(f"Health score: {result.score}/100 ({result.label})")
    return 0


def _run_history(args: argparse.Namespace) -> None:
    from walkie.db.engine import get_engine
    from walkie.db.store import KeyValueStore, WalkHistory
    from walkie.render.history import format_history

    history = WalkHistory(KeyValueStore(get_engine()))
    for line in format_history(history.list(limit=args.limit), limit=args.limit):
        print(line)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="walkie", description="Dog walk tracker")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    score = sub.add_parser("score", help="compute the health index")
    # Kept as strings so bad values reach InvalidInput instead of argparse
    score.add_argument("--age", required=True)
    score.add_argument("--weight", required=True)
    score.add_argument("--minutes", required=True)
    score.add_argument("--bcs", required=True)
    score.add_argument("--sleep", required=True)
    score.add_argument("--hr", required=True)
    score.add_argument("--profile", default=settings.health_profile)

    hist = sub.add_parser("history", help="print saved walks")
    hist.add_argument("--limit", type=int, default=settings.history_display_limit)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "score":
        return _run_score(args)
    if args.command == "history":
        _run_history(args)
        return 0
    if args.command is None:
        args = build_parser().parse_args(["serve"])
    _run_serve(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
