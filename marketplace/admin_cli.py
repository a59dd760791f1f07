#!/usr/bin/env python3
"""
Marketplace Admin CLI: direct server-side management tool.

Runs against the marketplace database, no authentication required.
For local admin use only.

Usage:
    marketplace-admin [--db sqlite:///./data/marketplace.db] <command> [args]

Commands:
    plugins                 List plugins
    feature <plugin_id>     Mark a plugin as featured
    unfeature <plugin_id>   Remove the featured mark
    users                   List users
    promote <email>         Grant admin rights
    demote <email>          Revoke admin rights
"""

import argparse
import asyncio
import sys
from typing import Optional

from marketplace.config import get_settings
from marketplace.db.database import Database
from marketplace.db.repositories.plugin_repo import PluginRepository
from marketplace.db.repositories.user_repo import UserRepository
from marketplace.models.plugin import PluginFilters, SortOrder

# =================== Colors ===================


class C:
    R = "\033[0m"
    B = "\033[1m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    CYAN = "\033[96m"
    GREY = "\033[90m"


def colored(text: str, color: str) -> str:
    return f"{color}{text}{C.R}"


# =================== Display Helpers ===================


def print_table(headers: list[str], rows: list[list[str]], widths: list[int]):
    header_line = "  ".join(f"{C.B}{h:<{w}}{C.R}" for h, w in zip(headers, widths))
    print(f"  {header_line}")
    print(f"  {'─' * (sum(widths) + 2 * (len(widths) - 1))}")
    for row in rows:
        print(f"  {'  '.join(f'{val:<{w}}' for val, w in zip(row, widths))}")


def ok(msg: str):
    print(f"  {C.GREEN}✓{C.R} {msg}")


def err(msg: str):
    print(f"  {C.RED}✗{C.R} {msg}")


def info(msg: str):
    print(f"  {C.CYAN}ℹ{C.R} {msg}")


# =================== Commands ===================


async def cmd_list_plugins(db: Database, args: argparse.Namespace) -> int:
    """List all plugins, newest first."""
    repo = PluginRepository(db)
    total = await repo.count(PluginFilters())
    plugins = await repo.list_plugins(PluginFilters(), SortOrder.NEWEST, 1, max(total, 1))
    if not plugins:
        info("No plugins found.")
        return 0

    print(f"\n  {C.B}Plugins ({len(plugins)}){C.R}\n")
    rows = []
    for p in plugins:
        featured = colored("YES", C.GREEN) if p.featured else "—"
        rows.append([
            p.id,
            p.name[:22],
            (p.author_name or "?")[:16],
            f"{p.price:.2f}",
            str(p.download_count),
            featured,
        ])
    print_table(
        ["ID", "Name", "Author", "Price", "DLs", "Featured"],
        rows,
        [32, 24, 18, 8, 6, 8],
    )
    print()
    return 0


async def _set_featured(db: Database, plugin_id: str, featured: bool) -> int:
    if not await PluginRepository(db).set_featured(plugin_id, featured):
        err(f"Plugin not found: {plugin_id}")
        return 1
    ok(f"Plugin {plugin_id} {'featured' if featured else 'unfeatured'}.")
    return 0


async def cmd_feature(db: Database, args: argparse.Namespace) -> int:
    return await _set_featured(db, args.plugin_id, True)


async def cmd_unfeature(db: Database, args: argparse.Namespace) -> int:
    return await _set_featured(db, args.plugin_id, False)


async def cmd_list_users(db: Database, args: argparse.Namespace) -> int:
    """List all users."""
    users = await UserRepository(db).list_all()
    if not users:
        info("No users found.")
        return 0

    print(f"\n  {C.B}Users ({len(users)}){C.R}\n")
    rows = []
    for u in users:
        admin = colored("ADMIN", C.GREEN) if u.is_admin else "—"
        rows.append([u.id, u.username[:18], u.email[:28], admin])
    print_table(["User ID", "Username", "Email", "Admin"], rows, [32, 18, 28, 8])
    print()
    return 0


async def _set_admin(db: Database, email: str, is_admin: bool) -> int:
    repo = UserRepository(db)
    user = await repo.get_by_email(email.strip().lower())
    if not user:
        err(f"User not found: {email}")
        return 1
    await repo.update(user.id, {"is_admin": is_admin})
    ok(f"{user.username} is {'now' if is_admin else 'no longer'} an admin.")
    return 0


async def cmd_promote(db: Database, args: argparse.Namespace) -> int:
    return await _set_admin(db, args.email, True)


async def cmd_demote(db: Database, args: argparse.Namespace) -> int:
    return await _set_admin(db, args.email, False)


# =================== Main ===================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marketplace-admin",
        description="Marketplace Admin CLI: direct server-side management",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Database URL or path (default: database_url setting)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("plugins", help="List plugins").set_defaults(func=cmd_list_plugins)

    for name, func, help_text in (
        ("feature", cmd_feature, "Mark a plugin as featured"),
        ("unfeature", cmd_unfeature, "Remove the featured mark"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("plugin_id")
        p.set_defaults(func=func)

    sub.add_parser("users", help="List users").set_defaults(func=cmd_list_users)

    for name, func, help_text in (
        ("promote", cmd_promote, "Grant admin rights"),
        ("demote", cmd_demote, "Revoke admin rights"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("email")
        p.set_defaults(func=func)

    return parser


async def run(args: argparse.Namespace) -> int:
    """Open the database and run the selected command.

    Args:
        args: Parsed command line.

    Returns:
        Process exit code.
    """
    db = Database(args.db or get_settings().database_url)
    await db.initialize()
    try:
        return await args.func(db, args)
    finally:
        await db.close()


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
