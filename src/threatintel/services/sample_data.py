"""
Demo data loader for a fresh dashboard.

Seeds IOCs, security logs, analyses, one raw threat log and the MITRE
reference table. All IOCs are attributed to SYSTEM_IDENTITY.
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from threatintel.db.tables import IocRow, utcnow
from threatintel.models.common import SYSTEM_IDENTITY, IocType, Severity
from threatintel.models.logs import ThreatLogCreate, ThreatLogMetadata
from threatintel.services import analyses, logs, mitre, threat_logs

logger = logging.getLogger(__name__)


def _sample_iocs() -> list[IocRow]:
    now = utcnow()
    return [
        IocRow(
            type=IocType.IP.value,
            value="192.168.1.100",
            severity=Severity.HIGH.value,
            description="Known malicious IP from botnet C&C",
            source="threat_intel_feed",
            tags=["botnet", "c2", "malware"],
            is_active=True,
            first_seen=now - timedelta(days=1),
            last_seen=now - timedelta(hours=1),
            confidence=95,
            created_by=SYSTEM_IDENTITY.user_id,
            mitre_techniques=["T1071"],
        ),
        IocRow(
            type=IocType.DOMAIN.value,
            value="malicious-site.com",
            severity=Severity.CRITICAL.value,
            description="Phishing domain targeting financial institutions",
            source="phishing_tracker",
            tags=["phishing", "financial", "credential_theft"],
            is_active=True,
            first_seen=now - timedelta(days=2),
            last_seen=now - timedelta(minutes=30),
            confidence=98,
            created_by=SYSTEM_IDENTITY.user_id,
            mitre_techniques=["T1566"],
        ),
        IocRow(
            type=IocType.HASH.value,
            value="d41d8cd98f00b204e9800998ecf8427e",
            severity=Severity.MEDIUM.value,
            description="Suspicious file hash detected in email attachment",
            source="email_security",
            tags=["malware", "email", "attachment"],
            is_active=True,
            first_seen=now - timedelta(days=3),
            last_seen=now - timedelta(hours=2),
            confidence=87,
            created_by=SYSTEM_IDENTITY.user_id,
        ),
    ]


def load_sample_data(db: Session) -> dict[str, int]:
    """Insert the demo dataset. Returns the number of records created per kind."""
    iocs = _sample_iocs()
    db.add_all(iocs)
    db.commit()

    created_logs = logs.create_sample_logs(db)
    created_analyses = analyses.create_sample_analyses(db)

    threat_logs.insert_threat_log(
        db,
        ThreatLogCreate(
            raw_data=json.dumps(
                {
                    "event": "login_attempt",
                    "user": "admin",
                    "ip": "192.168.1.100",
                    "success": False,
                    "attempts": 15,
                }
            ),
            source="auth_system",
            event_type="authentication",
            metadata=ThreatLogMetadata(
                source_ip="192.168.1.100",
                user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
            ),
        ),
    )
    created_techniques = mitre.seed_techniques(db)

    counts = {
        "iocs": len(iocs),
        "logs": created_logs,
        "analyses": created_analyses,
        "threat_logs": 1,
        "mitre_techniques": created_techniques,
    }
    logger.info("sample_data.loaded", extra=counts)
    return counts
