"""
TapMock CLI

Command-line interface for the TapMock server.

Commands:
    serve       - Start the mock HTTP server
    check       - Validate a seed file without starting the server

Examples:
    # Start with seed registrations
    tapmock serve --config mocks.yaml --port 8080

    # Validate a seed file
    tapmock check mocks.yaml
"""

import argparse
import logging
import sys

from .common import ConfigLoader, summarize_entries
from .errors import ConfigurationError
from .mock import MockConfig, MockServer, RegisteredResponse
from .mock.responder import validation_reasons
from .mock.server import resolve_log_level


def cmd_serve(args):
    """
    Start the mock HTTP server.

    Args:
        args: Parsed command-line arguments
    """
    print(f"🎭 TapMock Server")

    config = MockConfig.from_env(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        debug=True if args.debug else None,
        config_file=args.config,
        admin_enabled=False if args.no_admin else None,
        admin_prefix=args.admin_prefix,
        allow_arrays_in_any_order=False if args.strict_arrays else None
    )

    logging.basicConfig(
        level=logging.DEBUG if config.debug else resolve_log_level(config.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if config.config_file:
        print(f"   Config file: {config.config_file}")

    # Create server
    try:
        server = MockServer(config=config)
    except (FileNotFoundError, ConfigurationError) as e:
        print(f"❌ Failed to create mock server: {e}")
        sys.exit(1)

    # Start server (blocking)
    try:
        server.start()
    except KeyboardInterrupt:
        print("\n\n👋 Mock server stopped")


def cmd_check(args):
    """
    Validate a seed file.

    Args:
        args: Parsed command-line arguments
    """
    print(f"🔍 TapMock Config Check")
    print(f"   File: {args.config_file}")

    try:
        data = ConfigLoader(args.config_file).load()
    except (FileNotFoundError, ConfigurationError) as e:
        print(f"❌ {e}")
        sys.exit(1)

    problems = []
    for index, raw in enumerate(data['handlers']):
        try:
            entry = RegisteredResponse.from_dict(raw)
        except ConfigurationError as e:
            problems.append(f"handlers[{index}]: {e.message}")
            continue
        for reason in validation_reasons(entry.to_result()):
            problems.append(f"handlers[{index}] {entry.method} {entry.url}: {reason}")

    if data['default'] is not None:
        for reason in validation_reasons({'statusCode': 200, **data['default']}):
            problems.append(f"default: {reason}")

    print(f"   Handlers: {len(data['handlers'])} ({summarize_entries(data['handlers'])})")
    print(f"   Default response: {'yes' if data['default'] is not None else 'no'}")

    if problems:
        print()
        for problem in problems:
            print(f"❌ {problem}")
        sys.exit(1)

    print()
    print("✅ Config is valid")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='tapmock',
        description='TapMock - programmable HTTP responder for tests',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start the server with seed registrations
  %(prog)s serve --config mocks.yaml --port 8080

  # Log unmatched requests with the available URLs
  %(prog)s serve --debug

  # Validate a seed file
  %(prog)s check mocks.yaml
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # --- SERVE command ---
    serve_parser = subparsers.add_parser('serve', help='Start mock HTTP server')
    serve_parser.add_argument('-c', '--config', help='JSON or YAML seed file with registrations')
    serve_parser.add_argument('--host', help='Host to bind (default: 127.0.0.1)')
    serve_parser.add_argument('-p', '--port', type=int, help='Port to bind (default: 8080)')
    serve_parser.add_argument('--log-level', choices=['debug', 'info', 'warning', 'error'],
                              help='Logging level (default: info)')
    serve_parser.add_argument('--debug', action='store_true', help='Log unmatched requests with available URLs')
    serve_parser.add_argument('--no-admin', action='store_true', help='Disable admin API')
    serve_parser.add_argument('--admin-prefix', help='Admin API path prefix (default: /__admin__)')
    serve_parser.add_argument('--strict-arrays', action='store_true',
                              help='Compare request body arrays in order')

    # --- CHECK command ---
    check_parser = subparsers.add_parser('check', help='Validate a seed file')
    check_parser.add_argument('config_file', help='JSON or YAML seed file')

    return parser


def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Dispatch to command handler
    if args.command == 'serve':
        cmd_serve(args)
    elif args.command == 'check':
        cmd_check(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
