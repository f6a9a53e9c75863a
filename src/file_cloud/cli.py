from __future__ import annotations

import argparse
from collections.abc import Sequence

from pydantic import ValidationError
import uvicorn
from uvicorn.config import LOG_LEVELS

from file_cloud.__about__ import __version__
from file_cloud.config import ENVIRONMENT, Settings
from file_cloud.server import create_app
from file_cloud.store import MinioBackingStore, ObjectDirectory
from file_cloud.utils import logging


def build_parser() -> argparse.ArgumentParser:
    """Flags left unset fall back to the environment variable named in their help, then the default."""
    parser = argparse.ArgumentParser(prog="file-cloud", description="Upload files and share short links to them.")
    parser.add_argument("--version", action="store_true", help="Print the version and exit")
    parser.add_argument("--bucket", help="S3 bucket to store files in [BUCKET]")
    parser.add_argument("--key", help="S3 access key [KEY]")
    parser.add_argument("--secret", help="S3 secret key [SECRET]")
    parser.add_argument("--endpoint", help="S3 endpoint [S3_ENDPOINT]")
    parser.add_argument("--region", help="S3 region [S3_REGION]")
    parser.add_argument("--secure", help="Use TLS for the S3 endpoint, true or false [S3_SECURE]")
    parser.add_argument("--cdn", help="CDN base URL in front of the bucket. Leave blank to hand out signed URLs [CDN]")
    parser.add_argument("--host", help="Interface to bind [HOST]")
    parser.add_argument("--port", help="Port to listen on [PORT]")
    parser.add_argument("--user", help="A username for basic auth. Leave blank (along with pass) to disable [USERNAME]")
    parser.add_argument(
        "--pass",
        dest="password",
        help="A password for basic auth. Leave blank (along with user) to disable [PASSWORD]",
    )
    parser.add_argument("--plausible", help="Plausible Analytics domain. Leave blank to disable [PLAUSIBLE]")
    parser.add_argument("--log-level", help=f"One of {', '.join(LOG_LEVELS)} [LOG_LEVEL]")
    return parser


def parse_settings(parser: argparse.ArgumentParser, args: argparse.Namespace) -> Settings:
    overrides = {name: getattr(args, name) for name in ENVIRONMENT}
    try:
        return Settings.from_env(**overrides)
    except ValidationError as exc:
        parser.error(f"invalid configuration\n{exc}")


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.version:
        print(f"file-cloud v{__version__}")
        return

    settings = parse_settings(parser, args)
    logging.configure(LOG_LEVELS[settings.log_level])
    logger = logging.get_logger(__name__)
    logger.info("File Cloud starting up...")

    backend = MinioBackingStore(
        settings.bucket,
        endpoint=settings.endpoint,
        access_key=settings.key,
        secret_key=settings.secret,
        region=settings.region,
        secure=settings.secure,
        timeout=settings.timeout,
    )
    directory = ObjectDirectory(
        backend,
        cdn=settings.cdn,
        token_length=settings.token_length,
        cache_size=settings.cache_size,
        timeout=settings.timeout,
        signed_url_ttl=settings.signed_url_expiry,
    )
    app = create_app(directory, settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
