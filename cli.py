#!/usr/bin/env python3
"""
Command-line front end for tag-based email triage.

Usage:
    python cli.py fetch --source fixture --fixture emails.json
    python cli.py views
    python cli.py show --view work
    python cli.py tags list --sort usage
    python cli.py tags add "Receipts"
    python cli.py tag 42 work finance
    python cli.py untag 42 finance --negative

Environment:
    MAIL_TRIAGE_CONFIG, MAIL_TRIAGE_STORE, MAIL_TRIAGE_SOURCE, ...
    (see `python cli.py init-config` for the config file format)
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional

from sources import get_gmail_source
from sources.base import MailSource
from sources.fixture import FixtureSource
from triage.config import Config, create_sample_config, load_config
from triage.models import Email, View
from triage.mutations import (
    add_tags_to_message,
    create_tag_on_message,
    find_email,
    remove_tag_with_negative_example,
)
from triage.registry import TagRegistry
from triage.seed import default_tags, default_views
from triage.store import TAGS_KEY, VIEWS_KEY, JsonStore, open_store
from triage.usage import sort_tags_by_usage, tag_usage_counts
from triage.views import (
    count_all_views,
    filter_by_view,
    find_view,
    views_referencing,
    visible_views,
)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    """Everything a command needs, loaded from the store."""
    store: JsonStore
    registry: TagRegistry
    views: List[View]
    emails: List[Email]

    def save_emails(self, emails: List[Email]) -> None:
        self.emails = emails
        self.store.save_emails(emails)


def load_workspace(config: Config, store_path: Optional[str] = None) -> Workspace:
    """
    Open the store and build a registry over its tags.

    An empty store is seeded with the default tags and views when
    `config.seed_defaults` is set. Tag changes are written through to the
    store automatically.
    """
    store = open_store(store_path or config.store_path)

    tags = store.load_tags()
    if not store.has(TAGS_KEY) and config.seed_defaults:
        tags = default_tags()
        store.save_tags(tags)
        logger.info(f"Seeded {len(tags)} default tags")

    views = store.load_views()
    if not store.has(VIEWS_KEY) and config.seed_defaults:
        views = default_views()
        store.save_views(views)
        logger.info(f"Seeded {len(views)} default views")

    registry = TagRegistry(tags)
    store.attach(registry)
    return Workspace(store=store, registry=registry, views=views, emails=store.load_emails())


def get_source(source_name: str, config: Config, fixture: Optional[str] = None) -> MailSource:
    """
    Factory function to create the appropriate mail source.

    Args:
        source_name: One of 'fixture', 'gmail'
        config: Loaded configuration
        fixture: Fixture path override (for fixture source)

    Returns:
        Configured MailSource instance
    """
    if source_name == "fixture":
        return FixtureSource(fixture or config.fixture_path)

    elif source_name == "gmail":
        GmailSource = get_gmail_source()
        return GmailSource(
            query=config.gmail.query,
            scopes=config.gmail.scopes,
            client_secrets_file=config.gmail.client_secrets_file,
            token_file=config.gmail.token_file,
            batch_size=config.gmail.batch_size,
            batch_delay_seconds=config.gmail.batch_delay_seconds,
        )

    else:
        raise ValueError(f"Unknown source: {source_name}")


def merge_fetched(existing: List[Email], fetched: List[Email]) -> List[Email]:
    """
    Combine freshly fetched messages with stored ones.

    Fetched messages come first in source order; tags already stored for a
    message ID are kept, along with their local-only tags.
    """
    stored = {str(email.id): email for email in existing}
    merged: List[Email] = []
    seen = set()
    for email in fetched:
        key = str(email.id)
        previous = stored.get(key)
        if previous is not None:
            email = replace(email, tags=list(dict.fromkeys(list(previous.tags) + list(email.tags))))
        merged.append(email)
        seen.add(key)
    merged.extend(email for email in existing if str(email.id) not in seen)
    return merged


def _tag_names(workspace: Workspace, tag_ids: List[str]) -> str:
    names = []
    for tag_id in tag_ids:
        tag = workspace.registry.get_tag(tag_id)
        # Dangling references are skipped when rendering.
        if tag is not None:
            names.append(tag.name)
    return ", ".join(names)


def print_emails(workspace: Workspace, emails: List[Email], output_format: str) -> None:
    """Print messages as a table or JSON."""
    if output_format == "json":
        print(json.dumps([email.to_dict() for email in emails], indent=2))
        return

    if not emails:
        print("No messages.")
        return
    for email in emails:
        print(f"{str(email.id):<18} {email.date:<10}  {email.sender[:28]:<28}  {email.subject[:50]}")
        tags = _tag_names(workspace, list(email.tags))
        if tags:
            print(f"{'':<18} tags: {tags}")


# === Commands ===

def cmd_fetch(args: argparse.Namespace) -> int:
    """Handle the 'fetch' subcommand."""
    config = args.config
    workspace = load_workspace(config, args.store)
    source = get_source(args.source or config.default_source, config, fixture=args.fixture)

    limit = args.limit or config.gmail.max_results
    with source:
        fetched = source.fetch_messages(limit=limit)

    merged = merge_fetched(workspace.emails, fetched)
    workspace.save_emails(merged)
    print(f"Fetched {len(fetched)} messages from {source.name}; {len(merged)} stored.")
    return 0


def cmd_views(args: argparse.Namespace) -> int:
    """Handle the 'views' subcommand - list views with match counts."""
    workspace = load_workspace(args.config, args.store)
    views = workspace.views if args.all else visible_views(workspace.views)
    counts = count_all_views(workspace.emails, views)

    print(f"{'Inbox':<30} {len(workspace.emails):>5}")
    for view in views:
        hidden = "" if view.visible else " (hidden)"
        print(f"{view.name + hidden:<30} {counts[view.id]:>5}  [{view.id}]")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Handle the 'show' subcommand - list messages in a view."""
    workspace = load_workspace(args.config, args.store)
    view = None
    if args.view:
        view = find_view(workspace.views, args.view)
        if view is None:
            print(f"Unknown view: {args.view}")
            return 1

    print_emails(workspace, filter_by_view(workspace.emails, view), args.format)
    return 0


def cmd_tags(args: argparse.Namespace) -> int:
    """Handle the 'tags' subcommand and its actions."""
    workspace = load_workspace(args.config, args.store)
    registry = workspace.registry

    if args.action == "list":
        tags = registry.list_tags()
        counts = tag_usage_counts(workspace.emails, tags)
        if args.sort == "usage":
            tags = sort_tags_by_usage(tags, counts)
        for tag in tags:
            print(f"{tag.name:<30} {counts[tag.id]:>5}  [{tag.id}]")
        return 0

    if args.action == "search":
        for tag in registry.search_tags(args.query):
            print(f"{tag.name:<30} [{tag.id}]")
        return 0

    if args.action == "add":
        result = registry.add_tag(args.name, instructions=args.instruction)
        if not result.ok:
            print(f"Error: {result.error.message}")
            return 1
        print(f"Created tag {result.tag.name} [{result.tag.id}]")
        return 0

    if args.action == "rename":
        tag = registry.get_tag(args.tag_id)
        if tag is None:
            print(f"Unknown tag: {args.tag_id}")
            return 1
        result = registry.update_tag(replace(tag, name=args.name))
        if not result.ok:
            print(f"Error: {result.error.message}")
            return 1
        print(f"Renamed tag [{tag.id}] to {result.tag.name}")
        return 0

    if args.action == "delete":
        tag = registry.get_tag(args.tag_id)
        if tag is None:
            print(f"Unknown tag: {args.tag_id}")
            return 1
        used = tag_usage_counts(workspace.emails, [tag])[tag.id]
        referencing = views_referencing(workspace.views, tag.id)
        if (used or referencing) and not args.force:
            print(f"Tag {tag.name} is on {used} message(s) and used by {len(referencing)} view(s).")
            if referencing:
                print("Views: " + ", ".join(view.name for view in referencing))
            print("Re-run with --force to delete it anyway.")
            return 1
        registry.delete_tag(tag.id)
        print(f"Deleted tag {tag.name}")
        return 0

    raise ValueError(f"Unknown tags action: {args.action}")


def cmd_tag(args: argparse.Namespace) -> int:
    """Handle the 'tag' subcommand - attach tags to a message."""
    workspace = load_workspace(args.config, args.store)
    if find_email(workspace.emails, args.message_id) is None:
        print(f"Unknown message: {args.message_id}")
        return 1

    unknown = [tag_id for tag_id in args.tag_ids if workspace.registry.get_tag(tag_id) is None]
    if unknown:
        print("Unknown tag(s): " + ", ".join(unknown))
        return 1

    workspace.save_emails(add_tags_to_message(workspace.emails, args.message_id, args.tag_ids))
    print(f"Tagged {args.message_id}: {_tag_names(workspace, args.tag_ids)}")
    return 0


def cmd_new_tag(args: argparse.Namespace) -> int:
    """Handle the 'new-tag' subcommand - create a tag and attach it."""
    workspace = load_workspace(args.config, args.store)
    result = create_tag_on_message(workspace.emails, workspace.registry, args.message_id, args.name)
    if not result.ok:
        print(f"Error: {result.error.message}")
        return 1
    workspace.save_emails(result.emails)
    print(f"Created tag {result.tag.name} [{result.tag.id}] on {args.message_id}")
    return 0


def cmd_untag(args: argparse.Namespace) -> int:
    """Handle the 'untag' subcommand - remove a tag from a message."""
    workspace = load_workspace(args.config, args.store)
    result = remove_tag_with_negative_example(
        workspace.emails,
        workspace.registry,
        args.message_id,
        args.tag_id,
        record_negative=args.negative,
    )
    if not result.ok:
        print(f"Error: {result.error.message}")
        return 1

    workspace.save_emails(result.emails)
    message = f"Removed {args.tag_id} from {args.message_id}"
    if result.tag is not None:
        message += f" (negative examples: {len(result.tag.negative_examples)})"
    print(message)
    return 0


def cmd_init_config(args: argparse.Namespace) -> int:
    """Handle the 'init-config' subcommand."""
    path = Path(args.path).expanduser() if args.path else None
    sample = create_sample_config(path)
    if path is None:
        print(sample)
    else:
        print(f"Wrote sample config to {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tag-based email triage with saved views",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--config", "-c",
        dest="config_path",
        help="Path to config file (default: search standard locations)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Shared store option
    store_group = argparse.ArgumentParser(add_help=False)
    store_group.add_argument(
        "--store",
        help="Path to the JSON store (overrides config)",
    )

    # Fetch command
    fetch_parser = subparsers.add_parser(
        "fetch",
        parents=[store_group],
        help="Load messages from a mail source into the store",
    )
    fetch_parser.add_argument(
        "--source", "-s",
        choices=["fixture", "gmail"],
        help="Mail source (default: from config)",
    )
    fetch_parser.add_argument(
        "--fixture",
        help="Fixture JSON file for the fixture source",
    )
    fetch_parser.add_argument(
        "--limit", "-l",
        type=int,
        help="Maximum messages to fetch (default: gmail.max_results)",
    )
    fetch_parser.set_defaults(func=cmd_fetch)

    # Views command
    views_parser = subparsers.add_parser(
        "views",
        parents=[store_group],
        help="List views with match counts",
    )
    views_parser.add_argument(
        "--all", "-a",
        action="store_true",
        help="Include hidden views",
    )
    views_parser.set_defaults(func=cmd_views)

    # Show command
    show_parser = subparsers.add_parser(
        "show",
        parents=[store_group],
        help="List messages, optionally through a view",
    )
    show_parser.add_argument(
        "--view",
        help="View ID (default: whole inbox)",
    )
    show_parser.add_argument(
        "--format", "-f",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    show_parser.set_defaults(func=cmd_show)

    # Tags command
    tags_parser = subparsers.add_parser(
        "tags",
        parents=[store_group],
        help="Manage tags",
    )
    tag_actions = tags_parser.add_subparsers(dest="action", required=True)

    list_parser = tag_actions.add_parser("list", help="List tags with usage counts")
    list_parser.add_argument(
        "--sort",
        choices=["registry", "usage"],
        default="registry",
        help="Ordering (default: registry order)",
    )
    search_parser = tag_actions.add_parser("search", help="Search tags by name")
    search_parser.add_argument("query")
    add_parser = tag_actions.add_parser("add", help="Create a tag")
    add_parser.add_argument("name")
    add_parser.add_argument(
        "--instruction", "-i",
        action="append",
        help="Classification instruction (repeatable, max 5)",
    )
    rename_parser = tag_actions.add_parser("rename", help="Rename a tag")
    rename_parser.add_argument("tag_id")
    rename_parser.add_argument("name")
    delete_parser = tag_actions.add_parser("delete", help="Delete a tag")
    delete_parser.add_argument("tag_id")
    delete_parser.add_argument(
        "--force",
        action="store_true",
        help="Delete even if messages or views still use the tag",
    )
    tags_parser.set_defaults(func=cmd_tags)

    # Tag / untag commands
    tag_parser = subparsers.add_parser(
        "tag",
        parents=[store_group],
        help="Attach tags to a message",
    )
    tag_parser.add_argument("message_id")
    tag_parser.add_argument("tag_ids", nargs="+")
    tag_parser.set_defaults(func=cmd_tag)

    new_tag_parser = subparsers.add_parser(
        "new-tag",
        parents=[store_group],
        help="Create a tag and attach it to a message",
    )
    new_tag_parser.add_argument("message_id")
    new_tag_parser.add_argument("name")
    new_tag_parser.set_defaults(func=cmd_new_tag)

    untag_parser = subparsers.add_parser(
        "untag",
        parents=[store_group],
        help="Remove a tag from a message",
    )
    untag_parser.add_argument("message_id")
    untag_parser.add_argument("tag_id")
    untag_parser.add_argument(
        "--negative", "-n",
        action="store_true",
        help="Record the message as a negative example on the tag",
    )
    untag_parser.set_defaults(func=cmd_untag)

    # Init-config command
    init_parser = subparsers.add_parser(
        "init-config",
        help="Print or write a sample config file",
    )
    init_parser.add_argument(
        "--path", "-p",
        help="Write the sample to this path instead of stdout",
    )
    init_parser.set_defaults(func=cmd_init_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = load_config(Path(args.config_path).expanduser() if args.config_path else None)
    args.config = config

    logging.getLogger().setLevel(logging.DEBUG if args.verbose else config.log_level.upper())

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
