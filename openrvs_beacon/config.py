"""
Configuration for the OpenRVS beacon client
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Client configuration"""

    # Default target for single reports (beacon port, not game port)
    BEACON_HOST = os.getenv('BEACON_HOST', '127.0.0.1')
    BEACON_PORT = int(os.getenv('BEACON_PORT', '7776'))

    # Seconds to wait for a beacon response before moving on
    BEACON_TIMEOUT = float(os.getenv('BEACON_TIMEOUT', '5.0'))

    # Beacon port is usually the game server port plus 1000
    BEACON_PORT_OFFSET = int(os.getenv('BEACON_PORT_OFFSET', '1000'))

    # Server lists
    SERVER_LIST_FILE: str = os.getenv('SERVER_LIST_FILE', 'servers.txt')
    SERVER_LIST_URL: str = os.getenv('SERVER_LIST_URL', 'http://64.225.54.237/servers')
    HTTP_TIMEOUT = float(os.getenv('HTTP_TIMEOUT', '5'))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def from_env(cls):
        """Create config from environment"""
        return cls()

    def __repr__(self):
        return (
            f"<Config beacon={self.BEACON_HOST}:{self.BEACON_PORT} "
            f"timeout={self.BEACON_TIMEOUT}s offset={self.BEACON_PORT_OFFSET}>"
        )


# Singleton instance
config = Config.from_env()
