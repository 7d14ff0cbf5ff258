"""CLI entry point for the FSS client."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx

from fssclient.client import FSSClient
from fssclient.config import ClientConfiguration, FSSConfig, load_config
from fssclient.errors import FSSError
from fssclient.logging_config import configure_logging
from fssclient.presign import DEFAULT_EXPIRES, SignatureUrlOptions

logger = logging.getLogger("fssclient")


def _meta_item(item: str) -> tuple[str, str]:
    """Parse one ``--meta name=value`` option."""
    name, sep, value = item.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"metadata must be name=value, got {item!r}")
    return name, value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="fss-client",
        description="Command-line access to an FSS object storage bucket",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("fss.yaml"),
        help="Path to YAML configuration file (default: fss.yaml)",
    )
    parser.add_argument(
        "--internal",
        action="store_true",
        help="Use the internal endpoint (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    get = sub.add_parser("get", help="Download an object")
    get.add_argument("key")
    get.add_argument(
        "-o", "--output", type=Path, default=None, help="File to write (default: stdout)"
    )

    put = sub.add_parser("put", help="Upload a file")
    put.add_argument("key")
    put.add_argument("file", type=Path)
    put.add_argument("--content-type", default=None)
    put.add_argument(
        "--meta", action="append", type=_meta_item, default=[], metavar="NAME=VALUE"
    )

    delete = sub.add_parser("delete", help="Delete an object")
    delete.add_argument("key")

    copy = sub.add_parser("copy", help="Copy an object")
    copy.add_argument("from_key")
    copy.add_argument("to_key")
    copy.add_argument("--source-bucket", default=None)

    head = sub.add_parser("head", help="Show object headers and metadata")
    head.add_argument("key")

    sign = sub.add_parser("sign-url", help="Print a presigned URL")
    sign.add_argument("key")
    sign.add_argument("--method", default="GET", choices=["GET", "PUT", "DELETE", "HEAD"])
    sign.add_argument("--expires", type=int, default=DEFAULT_EXPIRES, help="Lifetime in seconds")

    url = sub.add_parser("url", help="Print the unsigned public object URL")
    url.add_argument("key")

    return parser.parse_args(argv)


async def run_command(args: argparse.Namespace, config: ClientConfiguration) -> int:
    """Execute the parsed subcommand against ``config``.

    Returns:
        The process exit status.
    """
    async with FSSClient(config) as client:
        if args.command == "get":
            async with await client.get(args.key) as stream:
                if args.output is None:
                    async for chunk in stream:
                        sys.stdout.buffer.write(chunk)
                    sys.stdout.buffer.flush()
                else:
                    with open(args.output, "wb") as fh:
                        async for chunk in stream:
                            fh.write(chunk)
        elif args.command == "put":
            with open(args.file, "rb") as fh:
                await client.put(
                    args.key,
                    args.file.name,
                    fh,
                    dict(args.meta),
                    args.content_type,
                )
        elif args.command == "delete":
            await client.delete(args.key)
        elif args.command == "copy":
            await client.copy(args.to_key, args.from_key, args.source_bucket)
        elif args.command == "head":
            info = await client.head(args.key)
            summary = {"status": info.status, "headers": info.headers, "meta": info.meta}
            print(json.dumps(summary, indent=2))
        elif args.command == "sign-url":
            options = SignatureUrlOptions(method=args.method, expires=args.expires)
            print(client.signature_url(args.key, options))
        elif args.command == "url":
            print(client.generate_object_url(args.key))
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the fss-client CLI.

    Loads configuration, applies CLI overrides, configures logging and runs
    the requested subcommand.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)

    # Use a basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    try:
        config: FSSConfig = load_config(args.config, internal=True if args.internal else None)
    except FileNotFoundError:
        logger.error("Config file not found: %s", args.config)
        sys.exit(1)
    except Exception as exc:
        logger.error("Failed to load config: %s", exc)
        sys.exit(1)

    configure_logging(
        level=args.log_level or config.logging.level,
        fmt=args.log_format or config.logging.format,
    )

    try:
        status = asyncio.run(run_command(args, config.fss))
    except (FSSError, httpx.HTTPError) as exc:
        logger.error("%s", exc)
        sys.exit(1)
    sys.exit(status)


if __name__ == "__main__":
    main()
