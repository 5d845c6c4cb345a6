"""
Server report model

A ServerReport is the decoded response from a game server's beacon port.
Every attribute defaults to its zero value, so keys missing from a beacon
(or present with an empty value) simply leave the default in place.
"""

from dataclasses import asdict, dataclass, field
from typing import List, NamedTuple


class PlayerInfo(NamedTuple):
    """One connected player, assembled from the parallel roster lists."""
    name: str
    time: str
    latency: int
    kills: int


@dataclass(frozen=True)
class ServerReport:
    """Response object from the game server's beacon port."""

    # Server settings
    server_name: str = ""
    ip_address: str = ""
    port: int = 0
    beacon_port: int = 0
    internet_server: bool = False
    dedicated: bool = False
    punkbuster_enabled: bool = False
    locked: bool = False
    max_players: int = 0
    num_players: int = 0
    game_version: str = ""
    mod_name: str = ""
    options_list: str = ""  # Servers do not seem to send this value.
    lobby_server_id: int = 0  # Ubisoft-specific, observed as 0.
    group_id: int = 0  # Ubisoft-specific, observed as 0.

    # Game settings
    ai_backup: bool = False
    auto_team_balance: bool = False
    bomb_timer: int = 0
    connected_player_kills: List[int] = field(default_factory=list)
    connected_player_latencies: List[int] = field(default_factory=list)
    connected_player_names: List[str] = field(default_factory=list)
    connected_player_times: List[str] = field(default_factory=list)
    current_map: str = ""
    current_mode: str = ""
    force_first_person: bool = False
    friendly_fire: bool = False
    map_rotation: List[str] = field(default_factory=list)
    mode_rotation: List[str] = field(default_factory=list)
    num_terrorists: int = 0
    radar_allowed: bool = False
    rotate_map_on_success: bool = False
    rounds_per_match: int = 0
    team_names_visible: bool = False
    teamkill_penalty: bool = False
    time_between_rounds: int = 0
    time_per_round: int = 0

    # OpenRVS custom fields
    motd: str = ""

    # Set when the mode rotation arrived with missing slots
    data_loss: bool = False

    def players(self) -> List[PlayerInfo]:
        """
        Zip the roster lists into one record per connected player.

        Names drive the count. A latency or kill count the server did not
        send for a name reads as 0, a missing time as an empty string.
        """
        players = []
        for i, name in enumerate(self.connected_player_names):
            players.append(PlayerInfo(
                name=name,
                time=_at(self.connected_player_times, i, ""),
                latency=_at(self.connected_player_latencies, i, 0),
                kills=_at(self.connected_player_kills, i, 0),
            ))
        return players

    def to_dict(self) -> dict:
        """Plain dict suitable for JSON output"""
        return asdict(self)


def _at(values, index, default):
    return values[index] if index < len(values) else default
