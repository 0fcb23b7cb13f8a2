"""
Skirmish CLI - Command-line interface for the engine.

Usage:
    skirmish serve                      Run the HTTP API
    skirmish turn <request.json>        Resolve one turn from a request file
    skirmish normalize <card.json>      Print a card's normalized abilities
"""

import argparse
import json
import logging
import os
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Skirmish - Card battler turn engine",
        prog="skirmish",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("SKIRMISH_LOG_LEVEL", "WARNING"),
        help="Logging level (DEBUG shows every resolution event)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Turn command
    turn_parser = subparsers.add_parser("turn", help="Resolve one turn from a JSON request")
    turn_parser.add_argument("request_file", help="Path to turn request JSON ('-' for stdin)")
    turn_parser.add_argument("--seed", type=int, help="Random seed for reproducible rolls")
    turn_parser.add_argument("--catalog", help="Catalog JSON file (defaults to starter content)")
    turn_parser.add_argument("--events", action="store_true", help="Print resolution events")

    # Normalize command
    normalize_parser = subparsers.add_parser("normalize", help="Normalize a card's abilities")
    normalize_parser.add_argument("card_file", help="Path to card JSON")

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "turn":
        cmd_turn(args)
    elif args.command == "normalize":
        cmd_normalize(args)
    else:
        parser.print_help()
        sys.exit(1)


def _load_json(path):
    try:
        if path == "-":
            return json.load(sys.stdin)
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        print(f"Error: File not found: {path}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {path}: {e}")
        sys.exit(1)


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "skirmish.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


def cmd_turn(args):
    """Resolve one turn and print the response."""
    from pydantic import ValidationError

    from .api.schemas import ErrorResponse, TurnRequestBody
    from .api.service import TurnService
    from .catalog import CatalogError, InMemoryCatalog

    payload = _load_json(args.request_file)
    try:
        catalog = InMemoryCatalog.from_json(args.catalog) if args.catalog else InMemoryCatalog.starter()
    except CatalogError as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        body = TurnRequestBody.model_validate(payload)
    except ValidationError as e:
        print(f"Error: Invalid turn request:\n{e}")
        sys.exit(1)

    service = TurnService(catalog=catalog, random_seed=args.seed)
    result = service.resolve_turn(body)
    if isinstance(result, ErrorResponse):
        print(f"Rejected ({result.error_code.value}): {result.error}")
        sys.exit(2)

    data = result.model_dump(by_alias=True, mode="json")
    if not args.events:
        data.pop("events", None)
    print(json.dumps(data, indent=2))


def cmd_normalize(args):
    """Print a card's normalized abilities."""
    from .engine_core.cards import CardSnapshot

    raw = _load_json(args.card_file)
    if not isinstance(raw, dict):
        print("Error: Card file must contain a JSON object")
        sys.exit(1)

    card = CardSnapshot.from_dict(raw)
    primary = card.primary
    print(f"Card: {card.name} ({', '.join(card.types) or 'untyped'})")
    print(f"Primary: {primary.key if primary else '-'}")
    print(json.dumps([a.to_dict() for a in card.abilities], indent=2))


if __name__ == "__main__":
    main()
