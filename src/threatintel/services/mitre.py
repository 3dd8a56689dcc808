"""
MITRE ATT&CK reference table and detection coverage.

Techniques are tagged manually on IOCs, analyses and incidents
(mitre_techniques). A technique counts as detected if any of those records
references its id.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from threatintel.db.rows import to_records
from threatintel.db.tables import AnalysisRow, IncidentRow, IocRow, MitreTechniqueRow
from threatintel.models.mitre import CoverageStats, MitreTechnique, TacticCoverage
from threatintel.services.query import text_filter

logger = logging.getLogger(__name__)


def list_techniques(db: Session, tactic: Optional[str] = None) -> list[MitreTechnique]:
    stmt = select(MitreTechniqueRow)
    t = text_filter(tactic)
    if t is not None:
        stmt = stmt.where(MitreTechniqueRow.tactic == t)
    stmt = stmt.order_by(MitreTechniqueRow.technique_id)
    return to_records(MitreTechnique, db.scalars(stmt).all())


def list_tactics(db: Session) -> list[str]:
    return sorted(db.scalars(select(MitreTechniqueRow.tactic).distinct()).all())


def detected_technique_ids(db: Session) -> set[str]:
    """Union of technique ids referenced by IOCs, analyses and incidents."""
    detected: set[str] = set()
    for column in (IocRow.mitre_techniques, AnalysisRow.mitre_techniques, IncidentRow.mitre_techniques):
        for techniques in db.scalars(select(column)):
            detected.update(techniques or [])
    return detected


def coverage_percent(detected: int, total: int) -> int:
    if total == 0:
        return 0
    return round(100 * detected / total)


def coverage_stats(db: Session) -> CoverageStats:
    techniques = db.scalars(select(MitreTechniqueRow)).all()
    detected = detected_technique_ids(db)

    by_tactic: dict[str, TacticCoverage] = {}
    for tech in techniques:
        entry = by_tactic.setdefault(tech.tactic, TacticCoverage())
        entry.total += 1
        if tech.technique_id in detected:
            entry.detected += 1

    return CoverageStats(
        total_techniques=len(techniques),
        detected_techniques=len(detected),
        coverage_percent=coverage_percent(len(detected), len(techniques)),
        by_tactic=by_tactic,
    )


_SEED_TECHNIQUES: list[MitreTechnique] = [
    MitreTechnique(
        technique_id="T1566",
        name="Phishing",
        tactic="Initial Access",
        description="Adversaries may send phishing messages to gain access to victim systems.",
        platforms=["Linux", "macOS", "Windows"],
        url="https://attack.mitre.org/techniques/T1566/",
    ),
    MitreTechnique(
        technique_id="T1190",
        name="Exploit Public-Facing Application",
        tactic="Initial Access",
        description="Adversaries may attempt to exploit a weakness in an Internet-facing host or system.",
        platforms=["Linux", "Windows", "macOS", "Network"],
        url="https://attack.mitre.org/techniques/T1190/",
    ),
    MitreTechnique(
        technique_id="T1059",
        name="Command and Scripting Interpreter",
        tactic="Execution",
        description="Adversaries may abuse command and script interpreters to execute commands, scripts, or binaries.",
        platforms=["Linux", "macOS", "Windows"],
        url="https://attack.mitre.org/techniques/T1059/",
    ),
    MitreTechnique(
        technique_id="T1110",
        name="Brute Force",
        tactic="Credential Access",
        description="Adversaries may use brute force techniques to gain access to accounts.",
        platforms=["Linux", "macOS", "Windows", "Office 365", "Azure AD"],
        url="https://attack.mitre.org/techniques/T1110/",
    ),
    MitreTechnique(
        technique_id="T1071",
        name="Application Layer Protocol",
        tactic="Command and Control",
        description="Adversaries may communicate using application layer protocols to avoid detection.",
        platforms=["Linux", "macOS", "Windows"],
        url="https://attack.mitre.org/techniques/T1071/",
    ),
    MitreTechnique(
        technique_id="T1048",
        name="Exfiltration Over Alternative Protocol",
        tactic="Exfiltration",
        description=(
            "Adversaries may steal data by exfiltrating it over a different protocol "
            "than the existing command and control channel."
        ),
        platforms=["Linux", "macOS", "Windows"],
        url="https://attack.mitre.org/techniques/T1048/",
    ),
]


def seed_techniques(db: Session) -> int:
    """Load the reference techniques. No-op if the table is already populated."""
    if db.scalars(select(MitreTechniqueRow).limit(1)).first() is not None:
        return 0
    for tech in _SEED_TECHNIQUES:
        db.add(MitreTechniqueRow(**tech.model_dump()))
    db.commit()
    logger.info("mitre_store.seeded", extra={"techniques": len(_SEED_TECHNIQUES)})
    return len(_SEED_TECHNIQUES)
