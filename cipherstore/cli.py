"""
cipherstore CLI.

Usage:
    cipherstore status          # Show configuration and cache state
    cipherstore sync            # Push local changes, pull remote ones
    cipherstore list            # Decrypt and list cached ciphers
    cipherstore version         # Show version
"""

from __future__ import annotations

import argparse
import asyncio
import logging

import httpx

from cipherstore.errors import CipherStoreError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cipherstore",
        description="cipherstore — encrypted cipher records synced with a remote store.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("status", help="Show configuration and cache state")
    subparsers.add_parser("sync", help="Sync the local cache with the remote store")
    list_parser = subparsers.add_parser("list", help="Decrypt and list cached ciphers")
    list_parser.add_argument("--favorites", action="store_true", help="Only favorite ciphers")
    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.version or args.command == "version":
        from cipherstore import __version__

        print(f"cipherstore {__version__}")
        return 0

    try:
        if args.command == "status":
            return _cmd_status()
        elif args.command == "sync":
            return _cmd_sync()
        elif args.command == "list":
            return _cmd_list(args)
    except (CipherStoreError, httpx.HTTPError, ValueError) as e:
        # ValueError covers bad key material and invalid local cache files.
        print(f"Error: {e}")
        return 1

    parser.print_help()
    return 0


def _cmd_status() -> int:
    from cipherstore.cache import CipherCache
    from cipherstore.config import get_config

    cfg = get_config()
    cache = CipherCache.open(cfg.cache_path)
    print(f"API:         {cfg.api_url}")
    print(f"Token:       {'set' if cfg.api_token else 'missing'}")
    print(f"Secret key:  {'set' if cfg.secret_key else 'missing'}")
    print(f"Cache:       {cfg.cache_path}")
    print(f"Ciphers:     {len(cache.ciphers())}")
    print(f"Pending:     {len(cache.pending_updates)} updated, {len(cache.pending_deletes)} deleted")
    print(f"Last sync:   {cache.last_sync or 'never'}")
    return 0


def _cmd_sync() -> int:
    from cipherstore.cache import CipherCache
    from cipherstore.client import CipherClient
    from cipherstore.config import get_config

    cfg = get_config()
    if not cfg.api_token:
        print("CIPHERSTORE_API_TOKEN is not set.")
        return 1

    cache = CipherCache.open(cfg.cache_path)

    async def run() -> None:
        async with CipherClient(cfg.api_url, cfg.api_token, timeout=cfg.timeout) as client:
            response = await cache.sync(client)
        print(f"Synced: {len(response.ciphers)} changed, {len(cache.ciphers())} total")

    asyncio.run(run())
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    from cipherstore.cache import CipherCache
    from cipherstore.config import get_config
    from cipherstore.models import Cipher

    cfg = get_config()
    if not cfg.secret_key:
        print("CIPHERSTORE_SECRET_KEY is not set.")
        return 1

    cache = CipherCache.open(cfg.cache_path)
    for encrypted in cache.ciphers():
        cipher = Cipher.from_encrypted(encrypted, cfg.secret_key)
        if args.favorites and not cipher.favorite:
            continue
        star = "*" if cipher.favorite else " "
        print(f"{star} {cipher.id}  {cipher.type.name:<11}  {cipher.label}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
