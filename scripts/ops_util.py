#!/usr/bin/env python3
"""
Command line utilities - ask questions, manage the default dataset, search and curate memory.
"""

import argparse
import json
import sys
from pathlib import Path

# Load environment variables from .env file first
import dotenv
dotenv.load_dotenv()

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from querypilot.agents.ask import AskService
from querypilot.core.errors import QueryPilotError
from querypilot.core.session import SessionState
from querypilot.util.logging import logger


def ask_command(args, service: AskService) -> int:
    """Plan and execute one prompt."""
    dataset_id = args.dataset
    if not dataset_id:
        session = SessionState(service.paths.project_root)
        dataset_id, cleared = session.resolve_default_dataset(service.catalog.list_datasets())
        if cleared:
            print("⚠️  Stored default dataset no longer exists and was cleared.")
    if not dataset_id:
        print("❌ ERROR: No dataset given. Pass --dataset or run 'use <dataset_id>' first.")
        return 1

    try:
        result = service.ask(dataset_id, args.prompt, bypass_approval=args.yolo)
    except QueryPilotError as e:
        print(f"❌ Ask failed: {e.message}")
        logger.error(f"CLI ask failed ({e.code}): {e.message}")
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    print(f"📋 Intent: {result.plan.intent}")
    print(f"   Language: {result.plan.language.upper()}")
    print(f"   Requires approval: {'yes' if result.plan.requires_approval else 'no'}")
    print(f"   Fallback used: {'yes' if result.fallback_used else 'no'}")
    print("\nCommand:")
    print(result.command)
    print("\nResult:")
    print(result.result)
    print(f"\n💡 {result.explanation}")
    print(f"   Source tables: {', '.join(result.source_tables) or '(none)'}")
    if result.memory_hints:
        print(f"   Learnings used: {len(result.memory_hints)}")
    return 0


def datasets_command(args, service: AskService) -> int:
    """List local datasets, marking the default one."""
    datasets = service.catalog.list_datasets()
    if not datasets:
        print("No local datasets found.")
        return 0

    default = SessionState(service.paths.project_root).read_default_dataset()
    for dataset_id in datasets:
        marker = "*" if dataset_id == default else " "
        print(f" {marker} {dataset_id}")
    return 0


def use_command(args, service: AskService) -> int:
    """Set the default dataset for later asks."""
    if not service.catalog.exists(args.dataset_id):
        print(f"❌ ERROR: Dataset '{args.dataset_id}' was not found.")
        return 1
    SessionState(service.paths.project_root).set_default_dataset(args.dataset_id)
    print(f"✅ Default dataset set to {args.dataset_id}")
    return 0


def memory_search_command(args, service: AskService) -> int:
    results = service.search_memory(args.query, args.dataset)
    if not results:
        print("No matching learnings.")
        return 0

    for item in results:
        print(f"[{item.score}] {item.source}")
        print(item.snippet)
        print()
    return 0


def memory_curate_command(args, service: AskService) -> int:
    promoted = service.curate_memory(args.dataset)
    scope = args.dataset or "global"
    print(f"✅ Curated {len(promoted)} learnings ({scope})")
    for fingerprint in promoted[:10]:
        print(f"   - {fingerprint[:12]}")
    if len(promoted) > 10:
        print(f"   ... and {len(promoted) - 10} more")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="QueryPilot command line utilities",
        prog="python scripts/ops_util.py"
    )
    parser.add_argument(
        "--project-root",
        default=None,
        help="Project directory holding .querypilot state (default: QUERYPILOT_HOME or cwd)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ask_parser = subparsers.add_parser("ask", help="Ask a question against a dataset")
    ask_parser.add_argument("--dataset", help="Local dataset id (default: session default)")
    ask_parser.add_argument("--prompt", required=True, help="Question to execute")
    ask_parser.add_argument("--yolo", action="store_true", help="Bypass approval gate for this call")
    ask_parser.add_argument("--json", action="store_true", help="Emit the result as JSON")
    ask_parser.set_defaults(func=ask_command)

    datasets_parser = subparsers.add_parser("datasets", help="List local datasets")
    datasets_parser.set_defaults(func=datasets_command)

    use_parser = subparsers.add_parser("use", help="Set the default dataset")
    use_parser.add_argument("dataset_id", help="Local dataset id")
    use_parser.set_defaults(func=use_command)

    search_parser = subparsers.add_parser("memory-search", help="Search learning memory")
    search_parser.add_argument("query", help="Search terms")
    search_parser.add_argument("--dataset", help="Dataset scope")
    search_parser.set_defaults(func=memory_search_command)

    curate_parser = subparsers.add_parser("memory-curate", help="Promote learnings into MEMORY.md")
    curate_parser.add_argument("--dataset", help="Dataset scope")
    curate_parser.set_defaults(func=memory_curate_command)

    return parser


def main(argv=None, service: AskService = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if service is None:
        service = AskService(project_root=args.project_root)

    # Run the selected command
    return args.func(args, service)


if __name__ == "__main__":
    sys.exit(main())
