"""Composition root for the firemock document store.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Store construction and optional fixture loading
- Adapter instantiation
- Entry point selection (HTTP server or interactive CLI)
"""

import asyncio
import json
import logging
import sys
from typing import Any

from firemock.adapters.cli.commands import CLICommandHandler
from firemock.adapters.fixtures.json_file import JSONFixtureLoader
from firemock.adapters.http.http_server import DocumentHTTPServer
from firemock.adapters.http.receiver import DocumentRequestReceiver
from firemock.config import Settings, load_settings
from firemock.core.store import Store


async def _run_cli_interactive(cli_handler: CLICommandHandler) -> None:
    """Run interactive CLI loop.

    Provides a REPL-like interface for store commands.

    Args:
        cli_handler: CLICommandHandler instance for executing commands.
    """
    logger = logging.getLogger(__name__)
    logger.info("Starting interactive CLI. Type 'help' for available commands or 'exit' to quit.")

    loop = asyncio.get_running_loop()

    while True:
        try:
            # Read command from stdin in a thread to avoid blocking
            command_line = await loop.run_in_executor(None, input, "firemock> ")
            command_line = command_line.strip()

            if not command_line:
                continue

            if command_line.lower() == "exit":
                logger.info("Exiting CLI")
                break

            if command_line.lower() == "help":
                _print_cli_help()
                continue

            parts = command_line.split(maxsplit=1)
            command = parts[0].lower()
            args_str = parts[1] if len(parts) > 1 else ""

            try:
                args = json.loads(args_str) if args_str else {}
            except json.JSONDecodeError:
                logger.error("Invalid JSON arguments. Use 'help' for command syntax.")
                continue
            if not isinstance(args, dict):
                logger.error("Arguments must be a JSON object. Use 'help' for command syntax.")
                continue

            try:
                result = _execute_cli_command(cli_handler, command, args)
                print(json.dumps(result, indent=2, default=str))
            except ValueError as e:
                print(json.dumps({"status": "error", "message": str(e)}, indent=2))
            except Exception as e:
                logger.error(f"Command execution error: {e}", exc_info=True)
                print(json.dumps({"status": "error", "message": str(e)}, indent=2))

        except EOFError:
            # Ctrl+D to exit
            logger.info("EOF received, exiting CLI")
            break
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
            continue
        except Exception as e:
            logger.error(f"CLI error: {e}", exc_info=True)


def _require(args: dict[str, Any], *names: str) -> None:
    for name in names:
        if name not in args:
            raise ValueError(f"Missing required parameter: {name}")


def _execute_cli_command(
    cli_handler: CLICommandHandler,
    command: str,
    args: dict[str, Any],
) -> dict[str, Any]:
    """Execute a CLI command.

    Args:
        cli_handler: CLICommandHandler instance.
        command: Command name.
        args: Command arguments.

    Returns:
        Command result dictionary.

    Raises:
        ValueError: If command is not recognized or a required argument is missing.
    """
    if command == "get":
        _require(args, "path")
        return cli_handler.get_document(args["path"])

    elif command == "exists":
        _require(args, "path")
        return cli_handler.exists(args["path"])

    elif command == "batch_get":
        _require(args, "paths")
        return cli_handler.batch_get(args["paths"])

    elif command == "set":
        _require(args, "path", "data")
        return cli_handler.set_document(args["path"], args["data"], create=args.get("create", False))

    elif command == "update":
        _require(args, "path", "data")
        return cli_handler.update_document(args["path"], args["data"], field_paths=args.get("field_paths"))

    elif command == "query":
        _require(args, "collection")
        return cli_handler.query(
            collection=args["collection"],
            where=args.get("where"),
            order_by=args.get("order_by"),
            limit=args.get("limit"),
            offset=args.get("offset", 0),
        )

    elif command == "reset":
        return cli_handler.reset()

    elif command == "load":
        _require(args, "file_path")
        return cli_handler.load(args["file_path"])

    elif command == "stats":
        return cli_handler.stats()

    else:
        raise ValueError(f"Unknown command: {command}. Use 'help' for available commands.")


def _print_cli_help() -> None:
    """Print CLI help message."""
    help_text = """
Available Commands (JSON format):

  get
    Read one document.
    Required: path

    Example: get {"path": "users/alice"}

  exists
    Check whether a document exists.
    Required: path

    Example: exists {"path": "users/alice"}

  batch_get
    Read several documents; missing ones are reported, not fatal.
    Required: paths

    Example: batch_get {"paths": ["users/alice", "users/bob"]}

  set
    Replace a document's fields, creating it if needed.
    Required: path, data
    Optional: create (fail if the document exists)

    Example: set {"path": "users/alice", "data": {"age": 30}}

  update
    Change selected fields of an existing document.
    Required: path, data
    Optional: field_paths (listed paths absent from data are deleted)

    Example: update {"path": "users/alice", "data": {"address.city": "Oslo"}}

  query
    Run a structured query against one collection.
    Required: collection
    Optional: where, order_by, limit, offset

    Example: query {"collection": "users", "where": [["age", ">=", 18]],
                    "order_by": [["age", "desc"]], "limit": 10}

  reset
    Remove every document.

  load
    Load a JSON fixture file.
    Required: file_path

    Example: load {"file_path": "./fixtures/users.json"}

  stats
    Count collections and documents.

  help
    Show this help message.

  exit
    Exit the CLI.

Note: All commands accept arguments as a single JSON object.
Provide the JSON after the command name on the same line.
    """
    print(help_text)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_store(settings: Settings) -> Store:
    """Create the store and load the configured fixture file, if any.

    Raises:
        OSError: If the fixture file cannot be read.
        FixtureError: If the fixture file is malformed.
    """
    logger = logging.getLogger(__name__)
    store = Store()
    if settings.fixture_path:
        logger.info(f"Loading fixture {settings.fixture_path}")
        store.load(JSONFixtureLoader(settings.fixture_path).load())
    return store


async def bootstrap(settings: Settings | None = None) -> None:
    """Load configuration, wire adapters, and start the application.

    This is the composition root: the single place where all components
    are instantiated and wired together.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Build the store and load fixture data
    4. Select and start run mode

    Raises:
        SystemExit: On an unknown run mode
        asyncio.CancelledError: On graceful shutdown signal
    """
    # Step 1: Load configuration
    if settings is None:
        settings = load_settings()

    # Step 2: Configure logging
    configure_logging("DEBUG" if settings.debug else settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading firemock document store...")

    # Step 3: Build the store
    store = build_store(settings)
    stats = store.stats()
    logger.info(
        f"Store ready with {stats.documents} document(s) in {stats.collections} collection(s)",
        extra={"project_id": settings.project_id, "database_id": settings.database_id},
    )

    # Step 4: Select run mode and start
    logger.info(f"Starting in {settings.run_mode} mode...")

    if settings.run_mode == "cli":
        cli_handler = CLICommandHandler(store)
        await _run_cli_interactive(cli_handler)

    elif settings.run_mode == "server":
        receiver = DocumentRequestReceiver(
            store=store,
            project_id=settings.project_id,
            database_id=settings.database_id,
        )
        http_server = DocumentHTTPServer(
            receiver=receiver,
            host=settings.server_host,
            port=settings.server_port,
            api_key=settings.server_api_key or None,
            require_auth=settings.server_require_auth,
            max_body_bytes=settings.max_body_bytes,
        )
        await http_server.start()

        # Keep the server running until cancelled
        try:
            while True:
                await asyncio.sleep(1)
        finally:
            await http_server.stop()

    else:
        logger.error(f"Unknown run mode: {settings.run_mode}")
        sys.exit(1)


def main() -> None:
    """Application entry point.

    Loads configuration, builds the store, and starts the configured run
    mode (HTTP server or CLI).

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except asyncio.CancelledError:
        logger.info("Graceful shutdown completed")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
