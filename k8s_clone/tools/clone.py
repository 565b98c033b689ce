#!/usr/bin/env python3
# Copyright 2025 IBM Corp.
# Licensed under the Apache License, Version 2.0

"""
Copy or delete Kubernetes resources between namespaces and clusters.

Usage:
    # Clone two ConfigMaps and a Deployment to another cluster
    k8s-clone clone --source-context dev --source-namespace team1 \\
        --dest-context prod --dest-namespace team1 \\
        --configmap app-config --configmap feature-flags --deployment web

    # Clone everything in a namespace, reducing replicas on the way
    k8s-clone clone --source-context dev --source-namespace team1 \\
        --dest-context dev --dest-namespace team1-copy --all \\
        --overwrite-file overwrites.json --yes

    # Delete resources from a namespace
    k8s-clone clean --context dev --namespace team1-copy --all

    # List known contexts
    k8s-clone contexts
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from k8s_clone.core.cluster import KubeClient
from k8s_clone.core.config import Settings, get_settings
from k8s_clone.models.resources import (
    OutcomeStatus,
    ResourceKind,
    ResourceOutcome,
    ResourceSelection,
    RunSummary,
)
from k8s_clone.services.catalog import DefaultsCatalog
from k8s_clone.services.cleaner import Cleaner
from k8s_clone.services.migrator import Migrator
from k8s_clone.services.version_check import (
    check_for_update,
    format_update_message,
    get_current_version,
)

logger = logging.getLogger(__name__)

# Command-line flag selecting names of each kind
KIND_FLAGS = {
    ResourceKind.CONFIG_MAP: "configmap",
    ResourceKind.SECRET: "secret",
    ResourceKind.SERVICE: "service",
    ResourceKind.DEPLOYMENT: "deployment",
    ResourceKind.PERSISTENT_VOLUME_CLAIM: "pvc",
}

STATUS_ICONS = {
    OutcomeStatus.MIGRATED: "✅",
    OutcomeStatus.DELETED: "🗑️",
    OutcomeStatus.SKIPPED: "⏭️",
    OutcomeStatus.FAILED: "❌",
}


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    for kind, flag in KIND_FLAGS.items():
        parser.add_argument(
            f"--{flag}",
            dest=flag,
            action="append",
            default=[],
            metavar="NAME",
            help=f"{kind.value} to include (repeatable)",
        )
    parser.add_argument(
        "--all",
        action="store_true",
        default=False,
        help="Select every resource of every kind in the namespace",
    )


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        default=False,
        help="Do not ask for confirmation",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output results as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Enable verbose logging",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="k8s-clone",
        description="Clone and migrate Kubernetes resources across namespaces and clusters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Notes:
  - Resources are created in the order ConfigMaps, Secrets, Services,
    Deployments, then PVCs (including their data).
  - Deletion runs Deployments, Services, PVCs, ConfigMaps, Secrets.
  - PVC data transfer requires kubectl on the PATH.
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_current_version()}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    clone = subparsers.add_parser("clone", help="Copy resources to another namespace")
    clone.add_argument("--source-context", help="Source kubeconfig context (default: current)")
    clone.add_argument("--source-namespace", required=True, help="Namespace to copy from")
    clone.add_argument("--dest-context", help="Destination kubeconfig context (default: current)")
    clone.add_argument("--dest-namespace", required=True, help="Namespace to copy into")
    clone.add_argument(
        "--overwrite-file",
        type=Path,
        help="JSON file mapping resource names to partial specs merged into the copy",
    )
    _add_selection_arguments(clone)
    _add_common_arguments(clone)

    clean = subparsers.add_parser("clean", help="Delete resources from a namespace")
    clean.add_argument("--context", help="Kubeconfig context (default: current)")
    clean.add_argument("--namespace", required=True, help="Namespace to delete from")
    _add_selection_arguments(clean)
    _add_common_arguments(clean)

    contexts = subparsers.add_parser("contexts", help="List available contexts")
    contexts.add_argument("--verbose", "-v", action="store_true", default=False)

    return parser


def resolve_selection(
    args: argparse.Namespace,
    client: KubeClient,
    catalog: DefaultsCatalog,
    namespace: str,
) -> ResourceSelection:
    """Build the selection from command-line flags, or everything with --all.

    With --all, names come from the defaults catalog where it has an entry
    for the namespace and from the cluster otherwise.
    """
    names: Dict[ResourceKind, List[str]] = {}
    for kind, flag in KIND_FLAGS.items():
        if args.all:
            selected = catalog.get_resources(kind, namespace)
            if selected is None:
                selected = client.list_names(kind, namespace)
        else:
            selected = getattr(args, flag)
        # Preserve order, drop repeats
        names[kind] = list(dict.fromkeys(selected))
    return ResourceSelection.from_mapping(names)


def load_overwrites(path: Optional[Path]) -> Dict[str, Dict[str, Any]]:
    """Load per-resource overwrite specs from a JSON file."""
    if path is None:
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not all(isinstance(v, dict) for v in data.values()):
        raise ValueError(f"{path}: expected an object mapping resource names to objects")
    return data


def confirm(prompt: str, stream: Optional[TextIO] = None) -> bool:
    stream = stream or sys.stdout
    print(f"{prompt} [y/N]: ", end="", file=stream, flush=True)
    try:
        answer = input().strip().lower()
    except (EOFError, KeyboardInterrupt):
        print(file=stream)
        return False
    return answer in ("y", "yes")


def print_selection(
    title: str, selection: ResourceSelection, stream: Optional[TextIO] = None
) -> None:
    stream = stream or sys.stdout
    print(f"\n{'=' * 60}", file=stream)
    print(title, file=stream)
    print(f"{'=' * 60}", file=stream)
    for kind, count in selection.counts().items():
        print(f"- {kind.value}: {count}", file=stream)
    print(f"{'=' * 60}\n", file=stream)


def _interactive_stream(args: argparse.Namespace) -> TextIO:
    """Keep stdout for the JSON summary when --json is given."""
    return sys.stderr if args.json else sys.stdout


def show_update_notice(settings: Settings) -> None:
    message = format_update_message(check_for_update(settings))
    if message:
        print(message, file=sys.stderr)


def print_outcomes(outcomes: List[ResourceOutcome], as_json: bool) -> RunSummary:
    summary = RunSummary.from_outcomes(outcomes)
    if as_json:
        print(json.dumps(summary.model_dump(mode="json"), indent=2))
        return summary

    for outcome in outcomes:
        icon = STATUS_ICONS.get(outcome.status, "❓")
        print(f"{icon} {outcome.message}")

    print(f"\n{'=' * 60}")
    print("SUMMARY")
    print(f"{'=' * 60}")
    print(f"Total: {summary.total}")
    print(f"Succeeded: {summary.succeeded}")
    print(f"Skipped (already exists): {summary.skipped}")
    print(f"Failed: {summary.failed}")
    print(f"{'=' * 60}")
    return summary


def run_clone(args: argparse.Namespace, settings: Settings) -> int:
    current = None
    if args.source_context is None or args.dest_context is None:
        current = KubeClient.current_context()
    source_context = args.source_context or current
    dest_context = args.dest_context or current
    if source_context == dest_context and args.source_namespace == args.dest_namespace:
        logger.error(
            "Source and Destination must be different "
            "(either different cluster or different namespace)."
        )
        return 1

    try:
        overwrites = load_overwrites(args.overwrite_file)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load overwrite file: {e}")
        return 1

    try:
        source = KubeClient(args.source_context)
        destination = KubeClient(args.dest_context)
    except Exception as e:
        logger.error(f"Failed to initialize Kubernetes client: {e}")
        return 1

    catalog = DefaultsCatalog(settings.config)
    selection = resolve_selection(args, source, catalog, args.source_namespace)
    if selection.is_empty():
        logger.info(f"Nothing selected in namespace '{args.source_namespace}'")
        return 0

    stream = _interactive_stream(args)
    print_selection("Migration Summary", selection, stream)
    if not args.yes and not confirm(
        "Are you sure you want to migrate these resources from "
        f"{args.source_namespace} to {args.dest_namespace}?",
        stream,
    ):
        print("Migration cancelled.", file=stream)
        return 0

    migrator = Migrator(source, destination, settings)
    outcomes = migrator.migrate_resources(
        args.source_namespace, args.dest_namespace, selection, overwrites
    )
    summary = print_outcomes(outcomes, args.json)
    logger.info("Migration process completed.")
    return 1 if summary.failed else 0


def run_clean(args: argparse.Namespace, settings: Settings) -> int:
    try:
        client = KubeClient(args.context)
    except Exception as e:
        logger.error(f"Failed to initialize Kubernetes client: {e}")
        return 1

    catalog = DefaultsCatalog(settings.config)
    selection = resolve_selection(args, client, catalog, args.namespace)
    if selection.is_empty():
        logger.info(f"Nothing selected in namespace '{args.namespace}'")
        return 0

    stream = _interactive_stream(args)
    print_selection(
        "Deletion Summary (These resources will be PERMANENTLY DELETED)", selection, stream
    )
    if not args.yes and not confirm(
        f"Are you sure you want to DELETE these resources from {args.namespace}?", stream
    ):
        print("Deletion cancelled.", file=stream)
        return 0

    outcomes = Cleaner(client).clean_resources(args.namespace, selection)
    summary = print_outcomes(outcomes, args.json)
    logger.info("Cleanup process completed.")
    return 1 if summary.failed else 0


def run_contexts(settings: Settings) -> int:
    contexts = DefaultsCatalog(settings.config).get_clusters() or KubeClient.list_contexts()
    if not contexts:
        logger.error("No contexts found in kubeconfig.")
        return 1
    for context in contexts:
        print(context)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or settings.debug) else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command in ("clone", "clean"):
        show_update_notice(settings)

    if args.command == "clone":
        return run_clone(args, settings)
    if args.command == "clean":
        return run_clean(args, settings)
    return run_contexts(settings)


if __name__ == "__main__":
    sys.exit(main())
