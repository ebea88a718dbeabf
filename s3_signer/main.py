from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from contextlib import AsyncExitStack

import anyio
from fastapi import FastAPI

from s3_signer import __version__
from s3_signer.api import router, server_router
from s3_signer.config import DEFAULT_EXPIRES_IN, DEFAULT_REGION, MAX_EXPIRES_IN, StoreConfig
from s3_signer.depends import bind
from s3_signer.errors import ConfigurationError
from s3_signer.logging_config import configure_logging
from s3_signer.responses import register_exception_handlers, register_middleware
from s3_signer.storage import StorageBackend

logger = logging.getLogger(__name__)

API_ROOT_PATH = "/api"


def make_app(storage: StorageBackend) -> FastAPI:
    app = FastAPI(
        title="S3 Signer",
        description="S3 Signer for AWS and other S3 compatible storage systems",
        version=__version__,
    )
    app.include_router(server_router)
    app.include_router(router, prefix=API_ROOT_PATH)
    register_exception_handlers(app)
    register_middleware(app)
    bind(app, StorageBackend, storage)
    return app


def parse_args(argv: Sequence[str] | None = None, environ: Mapping[str, str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments, falling back to environment variables.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
        environ: Environment to read fallbacks from. Defaults to os.environ.
    """
    env = os.environ if environ is None else environ
    parser = argparse.ArgumentParser(
        prog="s3-signer",
        description="S3 Signer for AWS and other S3 compatible storage systems",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--aws-access-key-id",
        default=env.get("AWS_ACCESS_KEY_ID"),
        help="Sets the AWS Access Key ID (env: AWS_ACCESS_KEY_ID)",
    )
    parser.add_argument(
        "--aws-secret-access-key",
        default=env.get("AWS_SECRET_ACCESS_KEY"),
        help="Sets the AWS Secret Access Key (env: AWS_SECRET_ACCESS_KEY)",
    )
    parser.add_argument(
        "--aws-region",
        default=env.get("AWS_REGION", DEFAULT_REGION),
        help=f"Sets the AWS Region (env: AWS_REGION, default: {DEFAULT_REGION})",
    )
    parser.add_argument(
        "-H",
        "--aws-hostname",
        default=env.get("AWS_HOSTNAME"),
        help="Sets the AWS Hostname, required for non-AWS S3 endpoints (env: AWS_HOSTNAME)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=int(env.get("PORT", 8000)),
        help="Sets the port number to serve the signer on (env: PORT, default: 8000)",
    )
    parser.add_argument(
        "--expires-in",
        type=int,
        default=int(env.get("PRESIGN_EXPIRES_IN", DEFAULT_EXPIRES_IN)),
        help=f"Validity of signed URLs in seconds (env: PRESIGN_EXPIRES_IN, default: {DEFAULT_EXPIRES_IN})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Sets the level of verbosity, repeat up to four times",
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Serve from an in-memory store instead of S3, for local testing",
    )
    args = parser.parse_args(argv)
    if not args.memory:
        if not args.aws_access_key_id:
            parser.error("--aws-access-key-id or AWS_ACCESS_KEY_ID is required")
        if not args.aws_secret_access_key:
            parser.error("--aws-secret-access-key or AWS_SECRET_ACCESS_KEY is required")
    if args.expires_in < 1:
        parser.error("--expires-in must be a positive number of seconds")
    if args.expires_in > MAX_EXPIRES_IN:
        parser.error(f"--expires-in cannot exceed {MAX_EXPIRES_IN} seconds (7 days)")
    return args


def store_config_from_args(args: argparse.Namespace) -> StoreConfig:
    return StoreConfig(
        access_key_id=args.aws_access_key_id,
        secret_access_key=args.aws_secret_access_key,
        region=args.aws_region,
        endpoint=args.aws_hostname,
        expires_in=args.expires_in,
    )


async def main(args: argparse.Namespace) -> None:
    import uvicorn

    from s3_signer.storage.memory import InMemoryBackend
    from s3_signer.storage.s3 import S3Storage

    async with AsyncExitStack() as stack:
        fs: StorageBackend
        if args.memory:
            fs = InMemoryBackend(expires_in=args.expires_in)
        else:
            fs = await stack.enter_async_context(S3Storage.connect(store_config_from_args(args)))
        app = make_app(fs)

        logger.info("Listening on http://0.0.0.0:%d", args.port)
        config = uvicorn.Config(app, host="0.0.0.0", port=args.port, log_config=None)
        server = uvicorn.Server(config)
        await server.serve()


def run(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        anyio.run(main, args)
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)


if __name__ == "__main__":
    run()
