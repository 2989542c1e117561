"""
Print a player's Memory Match statistics fetched from the statistics server.

Usage: python show_remote_stats.py <username> [server_url]
"""
import logging
import sys

import requests

from scoreboard import format_time
from settings import configure_logging, load_settings

logger = logging.getLogger(__name__)


class StatsUnavailable(Exception):
    """Raised when the server cannot provide the requested statistics."""


def normalize_url(server_url):
    """Ensure server_url has an http:// prefix and no trailing slash."""
    if not server_url.startswith(('http://', 'https://')):
        server_url = 'http://' + server_url
    return server_url.rstrip('/')


def fetch_player_summary(server_url, username, limit=10, timeout=5):
    """
    Fetch the statistics summary of a player.

    Args:
        server_url: Address of the statistics server
        username: Player to look up
        limit: Number of recent games to include
        timeout: Request timeout in seconds

    Returns:
        The summary dictionary returned by the server

    Raises:
        StatsUnavailable: if the server is unreachable, the player is unknown
            or the response is not valid JSON
    """
    url = f"{normalize_url(server_url)}/api/stats/{username}"
    logger.debug(f"Fetching player summary from {url}")
    try:
        response = requests.get(url, params={'limit': limit}, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise StatsUnavailable(f"Could not reach the server at {server_url}: {e}") from e

    if response.status_code == 404:
        raise StatsUnavailable(f"No player named {username} on the server")
    if response.status_code != 200:
        raise StatsUnavailable(f"Server error: {response.status_code}")
    try:
        return response.json()
    except ValueError as e:
        raise StatsUnavailable(f"Invalid response from server: {e}") from e


def format_summary(summary):
    """Render a summary as printable text."""
    lines = [f"===== {summary.get('player', 'Player')} ====="]

    stats = summary.get('stats')
    if stats:
        lines.append(f"Games played:   {stats['total_games_played']}")
        lines.append(f"Games won:      {stats['total_games_won']} ({summary.get('win_rate', 0)}%)")
        lines.append(f"Time played:    {format_time(stats['total_time_played'])}")
        lines.append(f"Total moves:    {stats['total_moves']}")
        lines.append(f"Current streak: {stats['current_streak']}")
        lines.append(f"Best streak:    {stats['best_streak']}")
    else:
        lines.append("No games played yet.")

    lines.append("")
    lines.append("Records")
    records = summary.get('records') or []
    if not records:
        lines.append("  No records yet. Clear a level in normal mode!")
    for record in records:
        lines.append(f"  Level {record['level']}: {format_time(record['best_time'])}, "
                     f"{record['best_moves']} moves, cleared {record['times_completed']}x")

    lines.append("")
    lines.append("Recent games")
    history = summary.get('recent_history') or []
    if not history:
        lines.append("  None")
    for entry in history:
        result = "Won" if entry['completed'] else "Lost"
        mode = " (relax)" if entry['relax_mode'] else ""
        lines.append(f"  Level {entry['level']}{mode}: {result}, {entry['moves']} moves, "
                     f"{format_time(entry['time_spent'])}")

    return "\n".join(lines)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    settings = load_settings()
    configure_logging(settings)

    if not argv:
        print(__doc__.strip())
        return 2

    username = argv[0]
    server_url = argv[1] if len(argv) > 1 else settings["server_url"]
    try:
        summary = fetch_player_summary(server_url, username)
    except StatsUnavailable as e:
        print(e)
        return 1

    print(format_summary(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
