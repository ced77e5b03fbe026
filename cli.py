#!/usr/bin/env python3
"""
Statecheck CLI

Command-line interface for configuration state checks.
"""
import argparse
import json
import logging
import sys


def compare_files(observed_path: str, declared_path: str, keys: str = None,
                  allowed_keys: str = None, as_json: bool = False) -> int:
    """Compare an observed JSON file with a declared one and print drift."""
    from core import compare_state, load_declared, load_observed, parse_key_list

    observed = load_observed(observed_path)
    declared = load_declared(
        declared_path,
        allowed_keys=parse_key_list(allowed_keys) if allowed_keys else None
    )
    result = compare_state(observed, declared, parse_key_list(keys))

    if as_json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
        return 0 if result.in_desired_state else 1

    print(f"\nComparing: {observed_path} against {declared_path}")
    print("=" * 60)

    if result.in_desired_state:
        print(f"✅ In desired state ({len(result.checked_keys)} key(s) checked)")
        return 0

    print(f"⚠️  {result.diagnostic_count} diagnostic(s) in {len(result.drifted_fields)} field(s):\n")
    for field_name in result.drifted_fields:
        print(f"  Field: {field_name}")
        for diagnostic in result.diagnostics_for(field_name):
            print(f"    [{diagnostic.reason.value}] {diagnostic.message}")
        print()
    return 1


def sync_path(variable: str = None) -> int:
    """Merge the machine module search path into this process."""
    from services import EnvironmentPathStore

    added = EnvironmentPathStore().merge_machine_path(variable)
    if added:
        for entry in added:
            print(f"  + {entry}")
    else:
        print("Nothing to add")
    return 0


def trust_zone(action: str, server: str) -> int:
    """Add, remove or test the trust-zone entries of a server."""
    from services import TrustZoneStore

    store = TrustZoneStore()
    if action == "add":
        changed = store.add_server(server)
        print(f"{server}: {'added to' if changed else 'already in'} trust zone")
        return 0
    if action == "remove":
        removed = store.remove_server(server)
        print(f"{server}: {'removed from' if removed else 'not in'} trust zone")
        return 0

    trusted = store.is_trusted(server)
    print(f"{server}: {'trusted' if trusted else 'not trusted'}")
    return 0 if trusted else 1


def ou_check(desired_ou: str, existing_ou: str) -> int:
    """Check whether an existing OU value points at the named OU."""
    from core import NotFoundError
    from services import OrganizationalUnitLookup

    try:
        match = OrganizationalUnitLookup().check_membership(desired_ou, existing_ou)
    except NotFoundError as e:
        print(f"Error: {e}")
        return 2

    print(f"OU:        {match.distinguished_name}")
    print(f"Relative:  {match.relative_path}")
    print(f"Existing:  {existing_ou}")
    print(f"Matches:   {'yes' if match.matches else 'no'}")
    return 0 if match.matches else 1


def product_version() -> int:
    """Print the installed product version."""
    from services import ProductVersionLookup

    product = ProductVersionLookup().find_product()
    if not product:
        print("No recognized product installed")
        return 1

    print(f"{product.display_name}: {product.version}")
    return 0


def run_server(host: str = "127.0.0.1", port: int = 8000, reload: bool = False, workers: int = 1):
    """Run the FastAPI server."""
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=workers if not reload else 1  # reload mode requires single worker
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Statecheck CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # compare
    compare_parser = subparsers.add_parser("compare", help="Compare observed and declared JSON files")
    compare_parser.add_argument("observed", help="Observed configuration file")
    compare_parser.add_argument("declared", help="Declared configuration file")
    compare_parser.add_argument("--keys", help="Comma-separated keys to check")
    compare_parser.add_argument("--allowed-keys", help="Comma-separated keys visible in the declared file")
    compare_parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    # sync-path
    sync_parser = subparsers.add_parser("sync-path", help="Merge the machine module path into this process")
    sync_parser.add_argument("--variable", help="Environment variable (default PSModulePath)")

    # trust-zone
    zone_parser = subparsers.add_parser("trust-zone", help="Manage trust-zone entries")
    zone_parser.add_argument("action", choices=["add", "remove", "test"])
    zone_parser.add_argument("server", help="Server name")

    # ou-check
    ou_parser = subparsers.add_parser("ou-check", help="Compare an existing OU with a named OU")
    ou_parser.add_argument("ou", help="Name of the desired OU")
    ou_parser.add_argument("existing", help="Existing OU path or DN")

    # product-version
    subparsers.add_parser("product-version", help="Show the installed product version")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.add_argument("--workers", type=int, default=1, help="Number of worker processes")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    from config import settings
    logging.basicConfig(
        level=logging.DEBUG if args.verbose or settings.DEBUG else settings.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "compare":
        return compare_files(args.observed, args.declared, args.keys, args.allowed_keys, args.json)
    elif args.command == "sync-path":
        return sync_path(args.variable)
    elif args.command == "trust-zone":
        return trust_zone(args.action, args.server)
    elif args.command == "ou-check":
        return ou_check(args.ou, args.existing)
    elif args.command == "product-version":
        return product_version()
    elif args.command == "serve":
        return run_server(args.host, args.port, args.reload, args.workers)
    return 0


if __name__ == "__main__":
    sys.exit(main())
