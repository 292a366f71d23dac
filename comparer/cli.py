"""
Profile Comparer - Terminal Client

Compares two GitHub profiles against a running server and renders the
narration live, paced word by word the same way the browser does.

Usage:
    profile-comparer octocat torvalds
    profile-comparer octocat torvalds --roast user1 --roast both
    profile-comparer octocat torvalds --server http://localhost:5000 --cadence-ms 10
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import Settings
from .client.session import ComparisonSession, SessionSnapshot
from .core.models import GenerationMode, Profile
from .observability.logging import setup_logging

console = Console()

_TITLES = {
    GenerationMode.NEUTRAL: "AI Comparison",
    GenerationMode.ROAST_USER1: "Roast: user 1",
    GenerationMode.ROAST_USER2: "Roast: user 2",
    GenerationMode.ROAST_BOTH: "Roast: both",
}


class SessionView:
    """Renders session snapshots into a Rich Live region."""

    def __init__(self, live: Optional[Live] = None) -> None:
        self.live = live
        self.snapshot: Optional[SessionSnapshot] = None

    def update(self, snapshot: SessionSnapshot) -> None:
        self.snapshot = snapshot
        if self.live is not None:
            self.live.update(self.render())

    def render(self) -> Group:
        snapshot = self.snapshot
        if snapshot is None:
            return Group(Text("Waiting...", style="dim"))

        parts = []
        if snapshot.loading:
            parts.append(Text("Fetching GitHub profiles...", style="yellow"))

        if snapshot.profile1 is not None and snapshot.profile2 is not None:
            parts.append(_profile_table(snapshot.profile1, snapshot.profile2))

        if snapshot.mode is not None:
            status = "[yellow]streaming[/yellow]" if snapshot.streaming else "[green]done[/green]"
            parts.append(Panel(
                Text(snapshot.text or "..."),
                title=f"{_TITLES[snapshot.mode]} ({status})",
                border_style="yellow" if snapshot.streaming else "green",
            ))

        if snapshot.error:
            parts.append(Text(f"✗ {snapshot.error}", style="bold red"))

        return Group(*parts)


def _profile_table(profile1: Profile, profile2: Profile) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("")
    table.add_column(profile1.username)
    table.add_column(profile2.username)

    rows = [
        ("Followers", profile1.followers, profile2.followers),
        ("Repositories", profile1.public_repos, profile2.public_repos),
        ("Stars", profile1.total_stars, profile2.total_stars),
        ("Forks", profile1.total_forks, profile2.total_forks),
        ("Commits", profile1.total_commits, profile2.total_commits),
    ]
    for label, value1, value2 in rows:
        table.add_row(label, str(value1), str(value2))

    table.add_row(
        "Languages",
        ", ".join(profile1.top_language_names(5)) or "None",
        ", ".join(profile2.top_language_names(5)) or "None",
    )
    return table


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="profile-comparer",
        description="Compare two GitHub profiles with a streamed AI narration",
    )
    parser.add_argument("username1", help="First GitHub username")
    parser.add_argument("username2", help="Second GitHub username")
    parser.add_argument(
        "--server",
        default=os.getenv("COMPARER_SERVER_URL", "http://localhost:5000"),
        help="Base URL of the comparer server (default: %(default)s)",
    )
    parser.add_argument(
        "--roast",
        action="append",
        default=[],
        choices=GenerationMode.roast_types(),
        help="Roast to run after the comparison; repeat for several",
    )
    parser.add_argument(
        "--cadence-ms",
        type=float,
        default=Settings.from_env().pacing_cadence * 1000,
        help="Delay between rendered words in milliseconds (default: %(default)s)",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    view = SessionView()

    async with ComparisonSession(
        base_url=args.server,
        cadence=args.cadence_ms / 1000.0,
        on_update=view.update,
    ) as session:
        with Live(view.render(), console=console, refresh_per_second=20) as live:
            view.live = live

            await session.compare(args.username1, args.username2)
            if session.profile1 is None:
                return 1

            for roast_type in args.roast:
                if not await session.roast(roast_type):
                    console.print(f"[dim]Skipping roast {roast_type}: already shown[/dim]")

    return 1 if session.error else 0


def configure_logging() -> None:
    """Plain-text logs on stderr, kept out of the live view."""
    setup_logging(
        level=os.getenv("LOG_LEVEL", "ERROR"),
        json_output=False,
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging()
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
