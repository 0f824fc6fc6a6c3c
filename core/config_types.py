"""
Shared configuration types for mcstat
"""

from dataclasses import dataclass

@dataclass
class QueryConfig:
    timeout: float = 10.0
    connect_timeout: float = 5.0
    protocol_version: int = 770  # 1.21.5, servers answer status regardless of match
    legacy_support: bool = True
    max_packet_length: int = 2 * 1024 * 1024

@dataclass
class ResolverConfig:
    srv_enabled: bool = True
    dns_timeout: float = 5.0
    default_port: int = 25565

@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: str = ""

@dataclass
class OutputConfig:
    show_player_sample: bool = True
    show_mods: bool = False
