from __future__ import annotations
import argparse, sys, json, logging
from typing import Any, Dict, List

from .catalog import Catalog, CatalogError
from .config import load_settings
from .versus import UnitSelection, compare, stats_for


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="python -m aoe4_versus.cli",
        description="AoE4 unit comparison CLI"
    )
    sub = p.add_subparsers(dest="cmd")

    # units
    un = sub.add_parser("units", help="List units available to a civilization")
    _add_common_args(un)
    un.add_argument("--civ", type=str, default="all")

    # stats
    st = sub.add_parser("stats", help="Print the resolved stats of one unit")
    _add_common_args(st)
    st.add_argument("unit", type=str)
    st.add_argument("--civ", type=str, default="all")
    st.add_argument("--age", type=int, default=None)
    st.add_argument("--tech", type=str, action="append", default=[], help="Active technology id (repeatable)")
    st.add_argument("--ability", type=str, action="append", default=[], help="Active ability id (repeatable)")

    # versus
    vs = sub.add_parser("versus", help="Compare two units")
    _add_common_args(vs)
    vs.add_argument("unit_a", type=str)
    vs.add_argument("unit_b", type=str)
    for side in ("a", "b"):
        vs.add_argument(f"--civ-{side}", type=str, default="all")
        vs.add_argument(f"--age-{side}", type=int, default=None)
        vs.add_argument(f"--tech-{side}", type=str, action="append", default=[])
        vs.add_argument(f"--ability-{side}", type=str, action="append", default=[])
        vs.add_argument(f"--charge-{side}", type=float, default=None, help="Override the first-hit charge bonus")
    vs.add_argument("--equal-cost", action="store_true", help="Compare N vs M units of equal total cost")

    args = p.parse_args(argv)
    if getattr(args, "cmd", None) is None:
        p.print_help()
        sys.exit(2)
    return args


def _add_common_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--data", type=str, default=None, help="Dataset JSON (defaults to the bundled catalog)")
    ap.add_argument("--config", type=str, action="append", default=[], help="YAML/JSON config files (merged)")
    ap.add_argument("--env-prefix", type=str, default="AOE4_VERSUS__", help="Env prefix for overrides")
    ap.add_argument("-v", "--verbose", action="store_true")


def _selection(args: argparse.Namespace, side: str) -> UnitSelection:
    return UnitSelection(
        unit_id=getattr(args, f"unit_{side}"),
        civ=getattr(args, f"civ_{side}"),
        age=getattr(args, f"age_{side}"),
        technologies=tuple(getattr(args, f"tech_{side}")),
        abilities=tuple(getattr(args, f"ability_{side}")),
    )


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cfg, settings = load_settings(args.config, args.env_prefix)
    data_path = args.data or (cfg.get("catalog", {}) or {}).get("path")
    try:
        catalog = Catalog.load(data_path)
    except CatalogError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if args.cmd == "units":
        rows: List[Dict[str, Any]] = [
            {"id": u.id, "name": u.name, "ages": catalog.get_available_ages(u.id, args.civ)}
            for u in catalog.units(args.civ)
        ]
        for row in rows:
            print(f"{row['id']:<24} {row['name']}  ages={row['ages']}")
        return 0

    if args.cmd == "stats":
        selection = UnitSelection(
            unit_id=args.unit,
            civ=args.civ,
            age=args.age,
            technologies=tuple(args.tech),
            abilities=tuple(args.ability),
        )
        stats = stats_for(catalog, selection)
        if stats is None:
            print(f"Unknown unit: {args.unit}", file=sys.stderr)
            return 2
        _print_json(stats.to_dict())
        return 0

    if args.cmd == "versus":
        result = compare(
            catalog,
            _selection(args, "a"),
            _selection(args, "b"),
            equal_cost=args.equal_cost,
            charge_bonus_a=args.charge_a,
            charge_bonus_b=args.charge_b,
            settings=settings,
        )
        if result is None:
            print(f"Unknown unit: {args.unit_a} or {args.unit_b}", file=sys.stderr)
            return 2
        _print_json(result.to_dict())
        return 0

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
