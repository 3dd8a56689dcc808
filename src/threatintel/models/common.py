"""
Shared enumerations and the caller identity.

Every closed vocabulary in the data model is a str Enum here so that pydantic
rejects unknown values at the storage boundary instead of casting them.

Import hierarchy (no circular dependencies):
  common.py       <- no internal imports
  ioc.py, logs.py, analysis.py, incident.py, correlation.py, mitre.py
                  <- common.py
  insights.py     <- common.py
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# low < medium < high < critical
SEVERITY_ORDER: dict[Severity, int] = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class IocType(str, Enum):
    IP = "ip"
    DOMAIN = "domain"
    URL = "url"
    HASH = "hash"
    EMAIL = "email"
    FILE = "file"


class LogLevel(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    CRITICAL = "critical"


class IncidentStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class EntityKind(str, Enum):
    """Entity kinds a correlation can link."""

    IOC = "ioc"
    LOG = "log"
    INCIDENT = "incident"
    ANALYSIS = "analysis"


class EvidenceKind(str, Enum):
    IOC = "ioc"
    LOG = "log"
    ANALYSIS = "analysis"


class Role(str, Enum):
    ADMIN = "admin"
    ANALYST = "analyst"
    USER = "user"


class Identity(BaseModel):
    """The current caller, as supplied by the external auth layer."""

    user_id: str
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


# Acts on behalf of unauthenticated callers for the operations that allow it
# (IOC status updates, incident creation). Never persisted as a user row.
SYSTEM_IDENTITY = Identity(user_id="system", role=Role.ANALYST)

# Sentinel accepted by enum-typed list filters; equivalent to "no filter".
ALL = "all"


def log_level_severity(level: LogLevel) -> Severity:
    """Severity shown for a log event in hunt results and the threat feed."""
    if level == LogLevel.CRITICAL:
        return Severity.CRITICAL
    if level == LogLevel.ERROR:
        return Severity.HIGH
    return Severity.MEDIUM
