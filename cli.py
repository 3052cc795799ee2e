from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


def _load_project_version(pyproject_path: Path | None = None) -> str:
    """Best-effort loader for the project version from pyproject.toml.

    Avoids importing the server wiring just to answer ``--version``.
    """
    if pyproject_path is None:
        pyproject_path = Path(__file__).with_name("pyproject.toml")

    import tomllib

    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return "0.0.0"

    project = data.get("project") or {}
    version = project.get("version")
    if isinstance(version, str) and version.strip():
        return version.strip()
    return "0.0.0"


def _run_serve(host: str | None, port: int | None) -> int:
    import uvicorn

    from catalog_mcp.catalog import build_catalog
    from catalog_mcp.config import load_settings
    from catalog_mcp.server import create_app

    settings = load_settings()
    app = create_app(settings, build_catalog(settings))
    uvicorn.run(app, host=host or settings.host, port=port or settings.port)
    return 0


def _run_catalog() -> int:
    from catalog_mcp.catalog import build_catalog
    from catalog_mcp.config import load_settings

    settings = load_settings()
    catalog = build_catalog(settings)
    print(f"Mode: {settings.mode} (tool prefix: {settings.tool_prefix})")
    for entry in catalog:
        descriptor = entry.descriptor()
        target = descriptor.specific_file or descriptor.folder or "(repository root)"
        kind = "file" if descriptor.is_file else "folder"
        print(f"- {entry.name}: {descriptor.full_name} {kind} {target}")
        if entry.description:
            print(f"    {entry.description}")
    return 0


def _run_resolve(raw_path: str) -> int:
    from catalog_mcp.exceptions import InvalidPathError
    from catalog_mcp.path_resolver import parse_repo_path

    try:
        descriptor = parse_repo_path(raw_path)
    except InvalidPathError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(
        json.dumps(
            {
                "owner": descriptor.owner,
                "repo": descriptor.repo,
                "folder": descriptor.folder,
                "specific_file": descriptor.specific_file,
                "is_file": descriptor.is_file,
            },
            indent=2,
        )
    )
    return 0


def _run_doctor() -> int:
    """Check settings, tokens and every catalog entry; print a summary."""

    from catalog_mcp.catalog import build_catalog
    from catalog_mcp.config import load_settings
    from catalog_mcp.exceptions import CatalogMCPError

    checks: list[tuple[str, str, str]] = []
    try:
        settings = load_settings()
        catalog = build_catalog(settings)
    except CatalogMCPError as exc:
        print(f"Status: error\n- [error] settings: {exc}")
        return 1

    checks.append(
        (
            "server_token",
            "ok" if settings.server_token else "error",
            "SERVER_TOKEN is set" if settings.server_token else "SERVER_TOKEN is not set",
        )
    )
    for entry in catalog:
        try:
            entry.descriptor()
            catalog.token_for(entry)
        except CatalogMCPError as exc:
            checks.append((f"entry:{entry.name}", "error", str(exc)))
        else:
            checks.append((f"entry:{entry.name}", "ok", entry.github_repo_path))

    errors = sum(1 for _, level, _ in checks if level == "error")
    status = "error" if errors else "ok"
    print(f"Status: {status}")
    print(f"Checks: ok={len(checks) - errors}, error={errors}")
    for name, level, message in checks:
        print(f"- [{level}] {name}: {message}")
    return 1 if errors else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="catalog-mcp",
        description="Repository catalog MCP server helpers.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the server version and exit.",
    )

    subparsers = parser.add_subparsers(dest="command")
    serve = subparsers.add_parser("serve", help="Run the HTTP server with uvicorn.")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    subparsers.add_parser("catalog", help="Print the configured catalog entries.")
    resolve = subparsers.add_parser("resolve", help="Resolve a repository path and print it.")
    resolve.add_argument("path")
    subparsers.add_parser("doctor", help="Check tokens and catalog entries.")

    if argv is None:
        argv = sys.argv[1:]

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        # Return the exit code when used as a library function in tests.
        return int(getattr(exc, "code", 1) or 0)

    if args.version and not args.command:
        print(_load_project_version())
        return 0

    if args.command == "serve":
        return _run_serve(args.host, args.port)
    if args.command == "catalog":
        return _run_catalog()
    if args.command == "resolve":
        return _run_resolve(args.path)
    if args.command == "doctor":
        return _run_doctor()

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
