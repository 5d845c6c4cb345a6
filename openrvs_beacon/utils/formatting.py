"""
Formatting utilities for server reports
"""

import json

from openrvs_beacon.protocol.report import ServerReport


def format_report(report: ServerReport) -> str:
    """
    Format a report in full, including connected players.

    Example:
        Server: Classic Maps | Terrorist Hunt
        Address: 127.0.0.1:6776
        ...
        Active Players: 1 out of 8
        - Rook (Kills: 12, Ping: 48ms)
    """
    lines = [
        f"Server: {report.server_name}",
        f"Address: {report.ip_address}:{report.port}",
        f"Game Version: {report.game_version}",
        f"Mod Name: {report.mod_name}",
        f"MOTD: {report.motd}",
        f"Current Map: {report.current_map}",
        f"Current Game Mode: {report.current_mode}",
    ]
    if report.num_terrorists > 0:
        lines.append(f"Number of Terrorists: {report.num_terrorists}")
    lines.append(f"Friendly Fire: {report.friendly_fire}")
    lines.append(f"Active Players: {report.num_players} out of {report.max_players}")

    for player in report.players():
        lines.append(f"- {player.name} (Kills: {player.kills}, Ping: {player.latency}ms)")

    if report.data_loss:
        lines.append("Warning: response was truncated, mode rotation and MOTD may be incomplete")

    return '\n'.join(lines)


def format_summary(report: ServerReport) -> str:
    """Format the short view used for server lists"""
    lines = [
        f"Server: {report.server_name}",
        f"Address: {report.ip_address}:{report.port}",
        f"Game Version: {report.game_version}",
        f"Mod Name: {report.mod_name}",
        f"Current Map: {report.current_map}",
        f"Current Game Mode: {report.current_mode}",
    ]
    if report.num_terrorists > 0:
        lines.append(f"Number of Terrorists: {report.num_terrorists}")
    lines.append(f"Friendly Fire: {report.friendly_fire}")
    lines.append(
        f"Active Players: {len(report.connected_player_names)} out of {report.max_players}"
    )
    return '\n'.join(lines)


def format_json(report: ServerReport) -> str:
    return json.dumps(report.to_dict(), indent=2)
