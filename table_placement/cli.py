# ==============================================
# CLI — Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Provides command-line access to the placement-rule client,
#   the key codec and the engine write workload. Defaults come
#   from get_config() (environment / .env), flags override them.
#
# COMMANDS:
# ---------
# 1. Pin a table to an engine label (set group, then set rule):
#    python -m table_placement.cli placement --pd 127.0.0.1:2379
#
# 2. Undo it (each toggle works on its own):
#    python -m table_placement.cli placement --del-rule --del-group
#
# 3. List groups and their rules:
#    python -m table_placement.cli groups
#
# 4. Print a table's key range:
#    python -m table_placement.cli range --table-id 12345
#
# 5. Drive the engine write workload through a raw-KV client:
#    python -m table_placement.cli workload --kv-factory mykv:connect
#    python -m table_placement.cli workload --no-modify
#    python -m table_placement.cli workload --clean-up
#    python -m table_placement.cli workload --show-regions
#
#    The factory is "module:callable". It is called with the PD
#    address and must return a RawKVClient.
#
# EXIT CODES:
# -----------
#   0 on success, 1 on any PlacementError.
#
# ==============================================

import argparse
import importlib
import sys
from typing import Callable, List, Optional

from table_placement.config import PlacementConfig, get_config
from table_placement.codec.table_key import table_range_hex
from table_placement.errors import PlacementError
from table_placement.placement.client import PlacementRuleClient
from table_placement.placement.orchestrator import TablePlacement
from table_placement.workload.engine_writer import EngineWriteWorkload, RawKVClient


KVFactory = Callable[[str], RawKVClient]


def build_parser() -> argparse.ArgumentParser:
    config = get_config()

    parser = argparse.ArgumentParser(
        prog="table_placement",
        description="Pin table key ranges to labelled stores through PD placement rules."
    )
    parser.add_argument("--pd", default=config.pd.pd_address, help="pd address")
    parser.add_argument(
        "--timeout", type=float, default=config.pd.timeout_seconds,
        help="HTTP timeout in seconds"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    placement = sub.add_parser("placement", help="set or delete one table's placement rule")
    placement.add_argument("--group", default=config.rule.group_id, help="group ID")
    placement.add_argument(
        "--rule-table-id", type=int, default=config.rule.table_id,
        help="mock table id for placement rule"
    )
    placement.add_argument(
        "--engine-label", default=config.rule.engine_label,
        help="label of self-defined raftstore"
    )
    placement.add_argument(
        "--replica-cnt", type=int, default=config.rule.replica_count,
        help="max replica count of this rule"
    )
    placement.add_argument("--del-group", action="store_true", help="delete group by ID")
    placement.add_argument("--del-rule", action="store_true", help="delete rule by ID")

    sub.add_parser("groups", help="list placement rule groups")

    key_range = sub.add_parser("range", help="print the hex key range of a table")
    key_range.add_argument("--table-id", type=int, default=config.rule.table_id)

    workload = sub.add_parser("workload", help="run the engine write workload against one table")
    workload.add_argument(
        "--kv-factory", default=config.workload.kv_factory,
        help="raw-KV client factory as module:callable"
    )
    workload.add_argument("--table-id", type=int, default=config.rule.table_id, help="table id")
    workload.add_argument(
        "--column-size", type=int, default=config.workload.column_size,
        help="column size of table, should be (0, 300)"
    )
    workload.add_argument(
        "--modify-round", type=int, default=config.workload.modify_round,
        help="modify round of table, should be (0, inf)"
    )
    workload.add_argument(
        "--column-family", default=config.workload.column_family,
        help="column family the entries are written to"
    )
    mode = workload.add_mutually_exclusive_group()
    mode.add_argument("--no-modify", action="store_true", help="only read column sums back")
    mode.add_argument("--clean-up", action="store_true", help="only delete the table's rows")
    mode.add_argument("--show-regions", action="store_true", help="only print the table's regions")

    return parser


def load_kv_factory(target: str) -> KVFactory:
    """Resolve "module:callable" to the raw-KV client factory it names."""
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise PlacementError(f"invalid raw-KV factory {target!r}, expected module:callable")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise PlacementError(f"cannot import raw-KV factory module {module_name!r}: {e}") from e
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise PlacementError(f"{target!r} is not a callable raw-KV factory")
    return factory


def _run_placement(client: PlacementRuleClient, args: argparse.Namespace) -> None:
    placement = TablePlacement(
        client,
        table_id=args.rule_table_id,
        group_id=args.group,
        engine_label=args.engine_label,
        replica_count=args.replica_cnt
    )

    client.list_groups()
    placement.sync(delete_group=args.del_group, delete_rule=args.del_rule)


def _run_groups(client: PlacementRuleClient) -> None:
    for bundle in client.list_groups():
        print(f"group {bundle.id} (index={bundle.index}, override={bundle.override})")
        for rule in bundle.rules:
            constraints = ", ".join(
                f"{c.key} {c.op} {c.values}" for c in rule.label_constraints
            )
            print(f"   - rule {rule.id}: [{rule.start_key_hex}, {rule.end_key_hex}) "
                  f"{rule.role} x{rule.count} {constraints}")


def _run_workload(args: argparse.Namespace, kv_factory: Optional[KVFactory]) -> None:
    if kv_factory is None:
        if not args.kv_factory:
            raise PlacementError("no raw-KV client factory, pass --kv-factory or set RAW_KV_FACTORY")
        kv_factory = load_kv_factory(args.kv_factory)

    kv = kv_factory(args.pd)
    try:
        workload = EngineWriteWorkload(
            kv,
            table_id=args.table_id,
            column_size=args.column_size,
            modify_round=args.modify_round,
            column_family=args.column_family
        )
        if args.show_regions:
            workload.describe_regions()
        elif args.clean_up:
            workload.clean_up()
        else:
            workload.run(modify=not args.no_modify)
    finally:
        close = getattr(kv, "close", None)
        if close is not None:
            close()


def main(argv: Optional[List[str]] = None, kv_factory: Optional[KVFactory] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "range":
        start_key_hex, end_key_hex = table_range_hex(args.table_id)
        print(f"start_key: {start_key_hex}")
        print(f"end_key:   {end_key_hex}")
        return 0

    try:
        if args.command == "workload":
            _run_workload(args, kv_factory)
            return 0

        pd_config = PlacementConfig(pd_address=args.pd, timeout_seconds=args.timeout)
        with PlacementRuleClient(pd_config) as client:
            if args.command == "placement":
                _run_placement(client, args)
            elif args.command == "groups":
                _run_groups(client)
    except PlacementError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
