"""Command-line access to the capability catalog.

Examples
--------
    catalog-browser summary
    catalog-browser --source csv --data-dir ./data process bp-order-to-cash
    catalog-browser evaluation --vendor v-sap --process bp-order-to-cash
    catalog-browser assign cap-invoicing p-s4hana
    catalog-browser clear cap-invoicing
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .catalog_data import load_catalog
from .config import ConfigError, Settings, load_settings
from .queries import (
    best_product_per_vendor_for_process,
    business_process_evaluation,
    capabilities_for_process,
    capability_count_for_product_in_process,
    find_business_process,
    find_capability,
    find_product,
    product_evaluation,
    resolve_assigned_product,
    vendor_name,
)
from .store import EntityStore

LOGGER = logging.getLogger(__name__)


def _bullets(title: str, items: Sequence[str]) -> None:
    if not items:
        return
    print(f"  {title}:")
    for item in items:
        print(f"    - {item}")


def cmd_summary(store: EntityStore, args: argparse.Namespace) -> int:
    for kind, count in store.counts().items():
        print(f"{kind}: {count}")
    print(f"assignments: {len(store.assignments)}")
    return 0


def cmd_process(store: EntityStore, args: argparse.Namespace) -> int:
    process = find_business_process(store, args.process_id)
    if process is None:
        print(f"Unknown business process: {args.process_id}", file=sys.stderr)
        return 1

    print(f"{process.name} [{process.domain or '-'}]")
    if process.description:
        print(f"  {process.description}")
    print("Capabilities:")
    for cap in capabilities_for_process(store, process.id):
        assigned = resolve_assigned_product(store, cap.id)
        label = assigned.name if assigned else "Unassigned"
        print(f"  {cap.id}: {cap.name} -> {label}")
    print("Best product per vendor:")
    for entry in best_product_per_vendor_for_process(store, process.id):
        total = capability_count_for_product_in_process(store, entry.product.id, process.id)
        print(f"  {vendor_name(store, entry.vendor_id)}: {entry.product.name} ({total} capabilities)")
    return 0


def cmd_evaluation(store: EntityStore, args: argparse.Namespace) -> int:
    if args.product:
        if not args.capability:
            print("--capability is required with --product", file=sys.stderr)
            return 2
        evaluation = product_evaluation(store, args.product, args.capability)
        if evaluation is None:
            print("No evaluation data available for this product and capability.")
            return 0
        print(f"{evaluation.product_id} / {evaluation.capability_id}")
        _bullets("Good for", evaluation.good_for)
        _bullets("Not ideal for", evaluation.not_ideal_for)
        _bullets("Best use cases", evaluation.best_use_cases)
        _bullets("Special features", evaluation.special_features)
        _bullets("Competitive advantages", evaluation.competitive_advantages)
        _bullets("Competitive disadvantages", evaluation.competitive_disadvantages)
    else:
        if not (args.vendor and args.process):
            print("Provide --vendor and --process, or --product and --capability", file=sys.stderr)
            return 2
        evaluation = business_process_evaluation(store, args.vendor, args.process)
        if evaluation is None:
            print("No evaluation data available for this vendor and business process.")
            return 0
        print(f"{vendor_name(store, evaluation.vendor_id)} / {evaluation.business_process_id}: {evaluation.overall_fit or '-'} fit")
        _bullets("Key products", evaluation.key_products)
        _bullets("Strengths", evaluation.strengths)
        _bullets("Weaknesses", evaluation.weaknesses)
        _bullets("Good for", evaluation.good_for)
        _bullets("Not ideal for", evaluation.not_ideal_for)
        _bullets("Best use cases", evaluation.best_use_cases)
        print(f"  Total cost of ownership: {evaluation.total_cost_of_ownership or '-'}")
    print(f"  Implementation complexity: {evaluation.implementation_complexity or '-'}")
    print(f"  Typical implementation time: {evaluation.typical_implementation_time or '-'}")
    print(f"  Confidence: {evaluation.confidence or '-'}")
    return 0


def cmd_assign(store: EntityStore, args: argparse.Namespace) -> int:
    if find_capability(store, args.capability_id) is None:
        LOGGER.warning("Capability %s is not in the catalog", args.capability_id)
    if find_product(store, args.product_id) is None:
        LOGGER.warning("Product %s is not in the catalog", args.product_id)
    store.assign(args.capability_id, args.product_id)
    print(f"Assigned {args.product_id} to {args.capability_id}")
    return 0


def cmd_clear(store: EntityStore, args: argparse.Namespace) -> int:
    store.clear_assignment(args.capability_id)
    print(f"Cleared assignment for {args.capability_id}")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Browse the capability catalog and manage product assignments.")
    parser.add_argument("--config", type=Path, help="Optional YAML settings file.")
    parser.add_argument(
        "--source",
        choices=["bootstrap", "csv"],
        help="Load CSV exports from the data directory instead of the built-in data.",
    )
    parser.add_argument("--data-dir", type=Path, help="Folder holding the CSV exports.")
    parser.add_argument("--storage", type=Path, help="JSON file holding assignments and overlays.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase logging verbosity.")

    sub = parser.add_subparsers(dest="command")

    summary = sub.add_parser("summary", help="Show collection sizes.")
    summary.set_defaults(func=cmd_summary)

    process = sub.add_parser("process", help="Show capabilities and best products for a business process.")
    process.add_argument("process_id")
    process.set_defaults(func=cmd_process)

    evaluation = sub.add_parser("evaluation", help="Show a recorded evaluation.")
    evaluation.add_argument("--vendor")
    evaluation.add_argument("--process")
    evaluation.add_argument("--product")
    evaluation.add_argument("--capability")
    evaluation.set_defaults(func=cmd_evaluation)

    assign = sub.add_parser("assign", help="Assign a product to a capability.")
    assign.add_argument("capability_id")
    assign.add_argument("product_id")
    assign.set_defaults(func=cmd_assign)

    clear = sub.add_parser("clear", help="Remove a capability's assignment.")
    clear.add_argument("capability_id")
    clear.set_defaults(func=cmd_clear)

    return parser


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.source:
        settings.use_external = args.source == "csv"
    if args.data_dir:
        settings.data_dir = args.data_dir
    if args.storage:
        settings.storage_path = args.storage
    return settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    try:
        settings = _apply_overrides(load_settings(args.config), args)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    level = logging.DEBUG if args.verbose > 0 else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    store, _ = load_catalog(settings)
    return args.func(store, args)


if __name__ == "__main__":
    sys.exit(main())
