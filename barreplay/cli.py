"""barreplay.cli

Command line interface entry point for barreplay.

Design constraints:
- argparse-based.
- Lazy imports: do not import numpy, the engine or the web stack at parse time.
- Every command returns an exit code; library errors print ``error: ...``
  and return 2.
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class CliContext:
    repo_root: Path


def _repo_root_from_cwd() -> Path:
    return Path.cwd()


def _add_candles(p: argparse.ArgumentParser, *, required: bool = True) -> None:
    p.add_argument("--candles", required=required, help="Candle file (.csv or .json).")


def _add_settings(p: argparse.ArgumentParser) -> None:
    p.add_argument("--symbol", default=None)
    p.add_argument("--timeframe", default=None)
    p.add_argument("--market-type", choices=["futures", "spot"], default=None)
    p.add_argument("--initial-balance", type=float, default=None)
    p.add_argument("--equity-percent", type=float, default=None)
    p.add_argument("--leverage", type=float, default=None)
    p.add_argument("--fee-percent", type=float, default=None)
    p.add_argument("--max-concurrent-orders", type=int, default=None)
    p.add_argument("--volume-filter", type=float, default=None)
    p.add_argument("--no-compound", action="store_true", help="Size from the initial balance.")
    p.add_argument("--reverse", action="store_true", help="Flip every entry side.")
    p.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Strategy parameter (repeatable). Values are parsed as YAML scalars.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="barreplay",
        description="Replay candles through a trading strategy and report what would have happened.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )

    sub = parser.add_subparsers(dest="command")

    p_bt = sub.add_parser("backtest", help="Run one backtest")
    _add_candles(p_bt)
    p_bt.add_argument("--strategy", required=True)
    _add_settings(p_bt)
    p_bt.add_argument("--json", action="store_true", help="Print the full report as JSON.")

    p_sw = sub.add_parser("sweep", help="Run a strategy over a parameter grid")
    _add_candles(p_sw)
    p_sw.add_argument("--strategy", required=True)
    p_sw.add_argument(
        "--grid",
        action="append",
        default=[],
        metavar="KEY=V1,V2,...",
        help="Candidate values for one parameter (repeatable).",
    )
    p_sw.add_argument("--workers", type=int, default=None)
    p_sw.add_argument("--top", type=int, default=10)
    _add_settings(p_sw)

    p_wf = sub.add_parser("walkforward", help="Rolling out-of-sample evaluation")
    _add_candles(p_wf)
    p_wf.add_argument("--strategy", required=True)
    p_wf.add_argument("--train", type=int, required=True)
    p_wf.add_argument("--test", type=int, required=True)
    p_wf.add_argument("--step", type=int, default=None, help="Defaults to --test.")
    p_wf.add_argument("--embargo", type=int, default=0)
    _add_settings(p_wf)

    p_ind = sub.add_parser("indicators", help="List indicators, or compute one over a candle file")
    _add_candles(p_ind, required=False)
    p_ind.add_argument("--name", default=None)
    p_ind.add_argument("--param", action="append", default=[], metavar="KEY=VALUE")
    p_ind.add_argument("--tail", type=int, default=5, help="How many trailing values to print.")

    sub.add_parser("strategies", help="List built-in strategies")

    p_api = sub.add_parser("api", help="Start FastAPI server")
    p_api.add_argument("--host", default=None)
    p_api.add_argument("--port", type=int, default=None)

    return parser


def _print_version() -> None:
    from barreplay import __version__

    print(f"barreplay v{__version__}")


def _parse_pairs(items: list[str]) -> dict[str, Any]:
    import yaml

    out: dict[str, Any] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"expected KEY=VALUE, got {item!r}")
        out[key.strip()] = yaml.safe_load(value)
    return out


def _parse_grid(items: list[str]) -> dict[str, list[Any]]:
    import yaml

    grid: dict[str, list[Any]] = {}
    for item in items:
        key, sep, values = item.partition("=")
        if not sep or not key.strip() or not values.strip():
            raise ValueError(f"expected KEY=V1,V2,..., got {item!r}")
        grid[key.strip()] = [yaml.safe_load(v) for v in values.split(",")]
    return grid


def _load_config(ctx: CliContext):
    from barreplay.core.config import Config
    from barreplay.core.logging import configure_logging

    config = Config.load(ctx.repo_root)
    configure_logging(config.logging)
    return config


def _settings(config, args: argparse.Namespace):
    from barreplay.backtest.settings import BacktestSettings

    overrides: dict[str, Any] = {
        "symbol": args.symbol,
        "timeframe": args.timeframe,
        "market_type": args.market_type,
        "initial_balance": args.initial_balance,
        "equity_percent": args.equity_percent,
        "leverage": args.leverage,
        "max_concurrent_orders": args.max_concurrent_orders,
        "volume_filter": args.volume_filter,
        "params": _parse_pairs(args.param),
    }
    if args.fee_percent is not None:
        overrides["fee_percent"] = args.fee_percent
    if args.no_compound:
        overrides["compound"] = False
    if args.reverse:
        overrides["reverse"] = True
    return BacktestSettings.from_config(config.backtest, **overrides)


def _load_validated(path: str):
    from barreplay.backtest.io import load_candles, validate_candles

    candles = load_candles(path)
    validate_candles(candles)
    return candles


def _cmd_backtest(ctx: CliContext, args: argparse.Namespace) -> int:
    from barreplay.backtest.engine import run_backtest
    from barreplay.strategies import build_strategy

    config = _load_config(ctx)
    settings = _settings(config, args)
    decide = build_strategy(args.strategy, settings.params)
    candles = _load_validated(args.candles)

    report = run_backtest(decide, candles, settings)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return 0

    summary = report.summary()
    print(f"{args.strategy} on {summary['symbol']} {summary['timeframe']} ({summary['market_type']})")
    for key in ("roi", "mdd", "win_rate", "total_trades", "avg_duration", "total_fee", "final_balance"):
        print(f"- {key}: {summary[key]}")
    if report.bankrupt:
        print("- bankrupt: equity reached zero")
    return 0


def _cmd_sweep(ctx: CliContext, args: argparse.Namespace) -> int:
    from barreplay.backtest.sweep import run_sweep

    config = _load_config(ctx)
    settings = _settings(config, args)
    grid = _parse_grid(args.grid)
    candles = _load_validated(args.candles)

    result = run_sweep(
        args.strategy,
        candles,
        grid,
        settings,
        max_workers=args.workers or config.sweep.max_workers,
        max_points=config.sweep.max_points,
    )
    for item in result.items[: max(args.top, 0)]:
        print(json.dumps(item))
    return 0


def _cmd_walkforward(ctx: CliContext, args: argparse.Namespace) -> int:
    from barreplay.backtest.walkforward import run_walkforward
    from barreplay.strategies import build_strategy

    config = _load_config(ctx)
    settings = _settings(config, args)
    decide = build_strategy(args.strategy, settings.params)
    candles = _load_validated(args.candles)

    result = run_walkforward(
        decide,
        candles,
        train_size=args.train,
        test_size=args.test,
        step_size=args.step or args.test,
        embargo=args.embargo,
        settings=settings,
    )
    for row in result.window_metrics():
        print(json.dumps(row))
    print(json.dumps({"summary": result.summary}))
    return 0


def _cmd_indicators(ctx: CliContext, args: argparse.Namespace) -> int:
    from barreplay.indicators.registry import get_indicator, list_indicators

    if args.candles is None:
        for name in list_indicators():
            spec = get_indicator(name)
            params = ", ".join(f"{k}={v}" for k, v in spec.params.items())
            print(f"{name:<12} {spec.group:<15} {params}")
        return 0

    if not args.name:
        print("error: --name is required with --candles", file=sys.stderr)
        return 2

    import math

    from barreplay.backtest.io import load_candles
    from barreplay.indicators.precompute import RawSeries
    from barreplay.indicators.registry import compute

    candles = load_candles(args.candles)
    result = compute(args.name, RawSeries.from_candles(candles).as_mapping(), **_parse_pairs(args.param))
    outputs = result if isinstance(result, dict) else {args.name: result}
    tail = max(args.tail, 0)
    for key, values in outputs.items():
        shown = [None if math.isnan(v) else round(v, 6) for v in values[len(values) - tail :].tolist()]
        print(f"{key}: {json.dumps(shown)}")
    return 0


def _cmd_strategies(ctx: CliContext, args: argparse.Namespace) -> int:
    from barreplay.strategies import describe_strategy, list_strategies

    for name in list_strategies():
        info = describe_strategy(name)
        params = ", ".join(f"{k}={v}" for k, v in info["params"].items())
        print(f"{name:<20} {info['description']}")
        if params:
            print(f"{'':<20} {params}")
    return 0


def _cmd_api(ctx: CliContext, args: argparse.Namespace) -> int:
    config = _load_config(ctx)

    host = args.host or config.api.host
    port = args.port or config.api.port

    import uvicorn

    uvicorn.run("api.main:app", host=host, port=port, reload=False)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    ctx = CliContext(repo_root=_repo_root_from_cwd())

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "backtest": _cmd_backtest,
        "sweep": _cmd_sweep,
        "walkforward": _cmd_walkforward,
        "indicators": _cmd_indicators,
        "strategies": _cmd_strategies,
        "api": _cmd_api,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    from barreplay.core.exceptions import BarreplayError

    try:
        return int(fn(ctx, args))
    except (BarreplayError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
