"""
Purpose: Central configuration for reaching the Valhalla server.
What it does:

Reads the connection settings from the environment (.env supported):

VALHALLA_HOST=localhost

VALHALLA_PORT=8002

VALHALLA_PATH=

VALHALLA_PROFILE=truck

VALHALLA_TIMEOUT=10

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from routing.models import Server

load_dotenv()


@dataclass(frozen=True)
class ValhallaSettings:
    """
    Connection + profile settings for one Valhalla backend.
    """

    host: str = "localhost"
    port: str = "8002"
    path: str = ""

    # costing model identifier sent as "costing"
    profile: str = "truck"

    # seconds to wait for Valhalla before giving up
    timeout: float = 10.0

    def validate(self) -> None:
        """
        Basic sanity checks. Call once at startup.
        """
        if not self.host:
            raise ValueError("Valhalla host not set. Please set VALHALLA_HOST in the .env file.")

        if not str(self.port).isdigit():
            raise ValueError(f"VALHALLA_PORT must be numeric, got {self.port!r}")

        if not self.profile:
            raise ValueError("VALHALLA_PROFILE must not be empty")

        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")

    @property
    def server(self) -> Server:
        return Server.new(self.host, self.port, self.path)


def settings_from_env() -> ValhallaSettings:
    """
    Build settings from environment variables, falling back to defaults.
    """
    s = ValhallaSettings(
        host=os.getenv("VALHALLA_HOST", "localhost"),
        port=os.getenv("VALHALLA_PORT", "8002"),
        path=os.getenv("VALHALLA_PATH", ""),
        profile=os.getenv("VALHALLA_PROFILE", "truck"),
        timeout=float(os.getenv("VALHALLA_TIMEOUT", "10")),
    )
    s.validate()
    return s
