"""
OpenRVS beacon protocol utilities

Handles validating, parsing and building Raven Shield beacon responses.

A beacon is a stream of text separated by named markers containing pilcrow
signs. Each segment follows a specific marker, so the format is similar to an
ordered map of string keys to string values:

    rvnshld <port> KEYWORD ¶P1 6776 ¶E1 Streets ¶I1 My Server ...

Each marker is a 2-character key followed by a filler byte. Values are padded
with trailing spaces. List values are slash-delimited and always start with a
slash.

UDP data loss may occur on responses above 512-1024 bytes depending on the
network and OS. The mode rotation arrives last (before the MOTD), so missing
placeholder slots in the mode rotation are the signal that data was lost.
"""

import logging
import re
from enum import Enum
from types import MappingProxyType

from openrvs_beacon.protocol.report import ServerReport

logger = logging.getLogger(__name__)


# =============================================================================
# Protocol constants
# =============================================================================

SEPARATOR = '\xb6'  # "Pilcrow Sign". Red Storm used this as a field separator.
BEACON_HEADER = b'rvnshld'  # Start of the header line in a UDP response.
REPORT_COMMAND = b'REPORT'
ENCODING = 'latin-1'  # Single-byte extended ASCII

ENABLED = '1'
DISABLED = '0'

LIST_SEPARATOR = '/'
MODE_ROTATION_SLOTS = 32  # Mode rotation always carries 32 slots.

MINIMUM_REPORT_SIZE = len(BEACON_HEADER)
MINIMUM_LINE_SIZE = 3  # Key plus filler byte; the value can be empty.
KEY_SIZE = 2

_INTEGER_RE = re.compile(r'[+-]?[0-9]+')


# =============================================================================
# Errors
# =============================================================================

class BeaconError(Exception):
    """Base class for beacon decoding errors"""


class NotABeaconError(BeaconError):
    """A UDP response which is not an OpenRVS beacon"""

    def __init__(self, message='response was not an openrvs beacon'):
        super().__init__(message)


class InvalidLineError(BeaconError):
    """A report line too short to hold a key"""

    def __init__(self, line: str, index: int):
        super().__init__(f'invalid report line {index}: {line!r}')
        self.line = line
        self.index = index


class FieldParseError(BeaconError, ValueError):
    """A numeric field whose value is not a base-10 integer"""

    def __init__(self, key: str, value: str):
        super().__init__(f'invalid integer for key {key}: {value!r}')
        self.key = key
        self.value = value


# =============================================================================
# Field table
# =============================================================================

class FieldKind(Enum):
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    STRING = 'string'
    SPARSE_LIST = 'sparse_list'
    PADDED_LIST = 'padded_list'
    INTEGER_LIST = 'integer_list'


# Key -> (ServerReport attribute, value shape). The key space is sparse:
# there is no C1, D1, U1 or V1. O2 and above are OpenRVS custom fields.
FIELDS = MappingProxyType({
    'A1': ('max_players', FieldKind.INTEGER),
    'B1': ('num_players', FieldKind.INTEGER),
    'E1': ('current_map', FieldKind.STRING),
    'F1': ('current_mode', FieldKind.STRING),
    'G1': ('locked', FieldKind.BOOLEAN),
    'H1': ('dedicated', FieldKind.BOOLEAN),
    'I1': ('server_name', FieldKind.STRING),
    'J1': ('mode_rotation', FieldKind.PADDED_LIST),
    'K1': ('map_rotation', FieldKind.SPARSE_LIST),
    'L1': ('connected_player_names', FieldKind.SPARSE_LIST),
    'M1': ('connected_player_times', FieldKind.SPARSE_LIST),
    'N1': ('connected_player_latencies', FieldKind.INTEGER_LIST),
    'O1': ('connected_player_kills', FieldKind.INTEGER_LIST),
    'P1': ('port', FieldKind.INTEGER),
    'Q1': ('rounds_per_match', FieldKind.INTEGER),
    'R1': ('time_per_round', FieldKind.INTEGER),
    'S1': ('time_between_rounds', FieldKind.INTEGER),
    'T1': ('bomb_timer', FieldKind.INTEGER),
    'W1': ('team_names_visible', FieldKind.BOOLEAN),
    'X1': ('internet_server', FieldKind.BOOLEAN),
    'Y1': ('friendly_fire', FieldKind.BOOLEAN),
    'Z1': ('auto_team_balance', FieldKind.BOOLEAN),
    'A2': ('teamkill_penalty', FieldKind.BOOLEAN),
    'B2': ('radar_allowed', FieldKind.BOOLEAN),
    'C2': ('options_list', FieldKind.STRING),
    'D2': ('game_version', FieldKind.STRING),
    'E2': ('lobby_server_id', FieldKind.INTEGER),
    'F2': ('group_id', FieldKind.INTEGER),
    'G2': ('beacon_port', FieldKind.INTEGER),
    'H2': ('num_terrorists', FieldKind.INTEGER),
    'I2': ('ai_backup', FieldKind.BOOLEAN),
    'J2': ('rotate_map_on_success', FieldKind.BOOLEAN),
    'K2': ('force_first_person', FieldKind.BOOLEAN),
    'L2': ('mod_name', FieldKind.STRING),
    'L3': ('punkbuster_enabled', FieldKind.BOOLEAN),
    'O2': ('motd', FieldKind.STRING),
})


# =============================================================================
# Value parsers
# =============================================================================

def parse_bool(value: str) -> bool:
    return value == ENABLED


def parse_int(key: str, value: str) -> int:
    """
    Parse a base-10 integer field.

    Only an optional sign followed by ASCII digits is accepted.

    Raises:
        FieldParseError: value is not an integer, chained to the ValueError
    """
    try:
        if not _INTEGER_RE.fullmatch(value):
            raise ValueError(f"invalid literal for int() with base 10: {value!r}")
        return int(value)
    except ValueError as e:
        raise FieldParseError(key, value) from e


def split_list(value: str) -> list:
    """
    Split a slash-delimited list value.

    Lists always start with a separator, so the first segment is empty and
    dropped. Empty entries after it are kept.
    """
    return value.split(LIST_SEPARATOR)[1:]


def parse_padded_list(value: str) -> tuple:
    """
    Split a fixed-slot list and drop the empty slots.

    Returns:
        Tuple of (entries, slot_count)
    """
    slots = split_list(value)
    return [s for s in slots if s != ''], len(slots)


def parse_int_list(value: str) -> list:
    """
    Parse a slash-delimited list of integers.

    Partial roster data is expected while a server changes rounds, so a bad
    entry does not fail the decode: parsing stops there and the remaining
    entries stay 0.
    """
    entries = split_list(value)
    result = [0] * len(entries)
    for i, entry in enumerate(entries):
        if not _INTEGER_RE.fullmatch(entry):
            break
        result[i] = int(entry)
    return result


# Padded lists are handled inline since they also check for data loss.
_HANDLERS = MappingProxyType({
    FieldKind.BOOLEAN: lambda key, value: parse_bool(value),
    FieldKind.INTEGER: parse_int,
    FieldKind.STRING: lambda key, value: value,
    FieldKind.SPARSE_LIST: lambda key, value: split_list(value),
    FieldKind.INTEGER_LIST: lambda key, value: parse_int_list(value),
})


# =============================================================================
# Validation and line splitting
# =============================================================================

def validate_beacon(data: bytes):
    """
    Validate that data is an OpenRVS beacon

    Args:
        data: Raw bytes from the beacon port

    Raises:
        NotABeaconError: data is too short or lacks the beacon header
    """
    if len(data) < MINIMUM_REPORT_SIZE or not data.startswith(BEACON_HEADER):
        raise NotABeaconError()


def is_beacon(data: bytes) -> bool:
    """
    Check whether data is an OpenRVS beacon

    Args:
        data: Raw bytes to validate

    Returns:
        True if valid beacon
    """
    try:
        validate_beacon(data)
    except NotABeaconError:
        return False
    return True


def line_to_key_value(line: str, index: int = 0) -> tuple:
    """
    Split a report line into its key and value.

    Only trailing space padding is removed from the value.

    Raises:
        InvalidLineError: line is too short to hold a key and filler byte
    """
    if len(line) < MINIMUM_LINE_SIZE:
        raise InvalidLineError(line, index)
    return line[:KEY_SIZE], line[KEY_SIZE + 1:].rstrip(' ')


def split_lines(data: bytes):
    """
    Yield (key, value) pairs from a validated beacon.

    The header line is skipped without being parsed. A line that is too
    short aborts with InvalidLineError; no line is skipped silently.
    """
    lines = data.decode(ENCODING).split(SEPARATOR)
    for index, line in enumerate(lines[1:], start=1):
        yield line_to_key_value(line, index)


# =============================================================================
# Decoding
# =============================================================================

def parse_server_report(ip: str, data: bytes) -> ServerReport:
    """
    Parse a beacon into a ServerReport

    Args:
        ip: Source address label, attached to the report as-is
        data: Raw bytes from the beacon port

    Returns:
        Decoded ServerReport

    Raises:
        NotABeaconError: data is not a beacon
        InvalidLineError: a line is too short to hold a key
        FieldParseError: a numeric field is not an integer
    """
    validate_beacon(data)

    values = {}
    for key, value in split_lines(data):
        # If there is no value, keep the default.
        if not value:
            continue

        entry = FIELDS.get(key)
        if entry is None:
            logger.debug(f"[BEACON] Unknown key from {ip}: {key}")
            continue

        attribute, kind = entry
        if kind is FieldKind.PADDED_LIST:
            entries, slots = parse_padded_list(value)
            values[attribute] = entries
            # An unset port means the packet never got this far.
            port = values.get('port', 0)
            if slots != MODE_ROTATION_SLOTS and port != 0:
                logger.warning(
                    f"[BEACON] Data loss occurred for server {ip}:{port} "
                    f"(received {len(data)} bytes, {slots}/{MODE_ROTATION_SLOTS} mode slots)"
                )
                values['data_loss'] = True
        else:
            values[attribute] = _HANDLERS[kind](key, value)

    return ServerReport(ip_address=ip, **values)


def build_beacon(fields: dict, header: str = 'rvnshld 0 KEYWORD') -> bytes:
    """
    Build a beacon response

    Args:
        fields: Ordered mapping of 2-character keys to values
        header: Header line; must start with the beacon header literal

    Returns:
        Encoded beacon

    Example:
        >>> build_beacon({'P1': '6776', 'I1': 'My Server'})
        b'rvnshld 0 KEYWORD\\xb6P1 6776\\xb6I1 My Server'
    """
    msg = header
    for key, value in fields.items():
        msg += f'{SEPARATOR}{key} {value}'

    return msg.encode(ENCODING)


class BeaconProtocol:
    """OpenRVS beacon protocol handler"""

    @staticmethod
    def parse(ip: str, data: bytes) -> ServerReport:
        """Parse beacon"""
        return parse_server_report(ip, data)

    @staticmethod
    def build(fields: dict) -> bytes:
        """Build beacon"""
        return build_beacon(fields)

    @staticmethod
    def validate(data: bytes) -> bool:
        """Validate beacon"""
        return is_beacon(data)


if __name__ == '__main__':
    # Decode a sample beacon
    print("OpenRVS Beacon Protocol Test")
    print("=" * 60)

    sample = build_beacon({
        'P1': '6776 ',
        'E1': 'Streets ',
        'I1': 'Classic Maps | Terrorist Hunt ',
        'A1': '8 ',
        'K1': '/Streets/Training/Island_Dawn ',
        'J1': '/RGM_TerroristHuntCoopMode' + '/' * 31,
    })
    print(f"\nOriginal: {sample}")
    report = parse_server_report('127.0.0.1', sample)
    print(f"Parsed: {report}")
