"""
SharpCrop command line interface.

Headless access to the upload core: upload an already encoded capture,
register or clear providers, and inspect the configured ones.

Main entry point: sharpcrop/__main__.py or the 'sharpcrop' console script.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .config import Settings
from .config.constants import SHARED_VERSION
from .core import CaptureSession, ProviderState, UploadOrchestrator
from .errors import LocalIOError
from .providers import ProviderFactory
from .utils.file_utils import get_file_extension

logger = logging.getLogger(__name__)


def _build_orchestrator(args) -> UploadOrchestrator:
    settings = Settings.load(args.settings)
    return UploadOrchestrator(settings)


def cmd_upload(args) -> int:
    """Handle upload command."""
    try:
        with open(args.file, 'rb') as f:
            data = f.read()
    except OSError as e:
        print(f"Error: cannot read {args.file}: {e}")
        return 1

    extension = get_file_extension(args.file).lstrip('.')
    name = os.path.basename(args.file) if args.keep_name else None

    orchestrator = _build_orchestrator(args)
    session = CaptureSession(orchestrator)
    session.start()

    try:
        url = session.complete(data, extension, name=name)
    except LocalIOError as e:
        print(f"Error: {e}")
        return 1

    if url:
        print(url)
        return 0

    if orchestrator.last_local_path:
        print(f"Upload failed, saved locally: {orchestrator.last_local_path}")
    else:
        print("Upload failed")
    return 1


def cmd_register(args) -> int:
    """Handle register command."""
    if not ProviderFactory.is_provider_supported(args.provider):
        print(f"Unknown provider: {args.provider}")
        print(f"Available: {', '.join(ProviderFactory.get_supported_providers())}")
        return 1

    orchestrator = _build_orchestrator(args)
    if orchestrator.register_provider(args.provider):
        print(f"{orchestrator.settings.display_name(args.provider)} registered")
        return 0

    print(f"Failed to register {orchestrator.settings.display_name(args.provider)}")
    return 1


def cmd_clear(args) -> int:
    """Handle clear command."""
    orchestrator = _build_orchestrator(args)
    orchestrator.clear_provider(args.provider)
    print(f"{orchestrator.settings.display_name(args.provider)} cleared")
    return 0


def cmd_list(args) -> int:
    """Handle list command."""
    orchestrator = _build_orchestrator(args)
    settings = orchestrator.settings

    if args.check:
        orchestrator.init_providers()

    for name in ProviderFactory.get_supported_providers():
        if name not in orchestrator.credentials:
            status = "not configured"
        elif not args.check:
            status = "saved"
        else:
            state = orchestrator.get_state(name)
            status = "loaded" if state == ProviderState.LOADED else "failed"

        marker = "*" if name == settings.provider_to_copy else " "
        print(f"{marker} {name:<12} {settings.display_name(name):<14} {status}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sharpcrop",
        description="Upload captures to every configured storage provider",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {SHARED_VERSION}")
    parser.add_argument("--settings", help="Path of the settings file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    upload_parser = subparsers.add_parser("upload", help="Upload an encoded capture")
    upload_parser.add_argument("file", help="Capture file (png, jpg, bmp, gif, mp4)")
    upload_parser.add_argument(
        "--keep-name", action="store_true",
        help="Upload under the file's own name instead of a timestamp",
    )
    upload_parser.set_defaults(func=cmd_upload)

    register_parser = subparsers.add_parser("register", help="Register a provider interactively")
    register_parser.add_argument("provider", help="Provider name (e.g. Dropbox)")
    register_parser.set_defaults(func=cmd_register)

    clear_parser = subparsers.add_parser("clear", help="Forget a provider and its credential")
    clear_parser.add_argument("provider", help="Provider name")
    clear_parser.set_defaults(func=cmd_clear)

    list_parser = subparsers.add_parser("list", help="List providers")
    list_parser.add_argument("--check", action="store_true", help="Try to load saved providers")
    list_parser.set_defaults(func=cmd_list)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
