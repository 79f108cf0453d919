"""Audit trail logging for document examinations.

Every comparison, single-document analysis, report export and failure can be
recorded to a rotating JSON Lines file plus a human-readable text log, so an
examiner can later show which files were analysed, when, and with what result.
"""

import json
import logging
import logging.handlers
import os
import platform
import socket
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class AuditLevel(str, Enum):
    """Audit event severity levels."""
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class AuditLogger:
    """Audit logger writing JSONL and text trails with rotation."""

    def __init__(
        self,
        log_dir: Path,
        log_name: str = "pdf_forensic_audit",
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 5,
    ):
        self.log_dir = Path(log_dir)
        self.log_name = log_name
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self._lock = threading.Lock()

        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.json_path = self.log_dir / f"{self.log_name}.jsonl"
        self.text_path = self.log_dir / f"{self.log_name}.log"
        self.json_logger = self._make_logger("json", self.json_path)
        self.text_logger = self._make_logger("text", self.text_path)

    def _make_logger(self, suffix: str, path: Path) -> logging.Logger:
        """Create a non-propagating logger bound to one rotating file."""
        logger = logging.getLogger(f"{self.log_name}_{suffix}")
        logger.setLevel(logging.INFO)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(logging.INFO)
        logger.addHandler(handler)
        logger.propagate = False
        return logger

    def _get_system_info(self) -> dict:
        try:
            hostname = socket.gethostname()
        except OSError:
            hostname = "unknown"

        return {
            "workstation": hostname,
            "user": os.environ.get("USERNAME") or os.environ.get("USER", "unknown"),
            "pid": os.getpid(),
            "platform": platform.system(),
        }

    def _format_text_entry(self, entry: dict) -> str:
        status = "[OK]" if entry.get("success", True) else "[FAIL]"
        parts = [
            entry["timestamp"],
            entry["level"],
            status,
            f"User: {entry['system_info']['user']}",
            f"Action: {entry['action']}",
        ]
        details = entry.get("details") or {}
        for key in ("file", "original", "comparison", "risk_level"):
            if key in details:
                parts.append(f"{key}: {details[key]}")
        return " | ".join(parts)

    def log(
        self,
        level: AuditLevel,
        action: str,
        details: dict = None,
        success: bool = True,
    ) -> None:
        """Record one audit event in both trails."""
        with self._lock:
            entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "level": level.value,
                "action": action,
                "success": success,
                "system_info": self._get_system_info(),
            }
            if details:
                entry["details"] = details

            self.json_logger.info(json.dumps(entry, ensure_ascii=False, default=str))
            self.text_logger.info(self._format_text_entry(entry))

    def log_comparison(
        self,
        original: str,
        comparison: str,
        risk_score: float,
        risk_level: str,
        finding_count: int,
    ) -> None:
        """Log a completed two-document comparison."""
        self.log(
            level=AuditLevel.INFO,
            action="DOCUMENT_COMPARISON",
            details={
                "original": str(original),
                "comparison": str(comparison),
                "risk_score": risk_score,
                "risk_level": risk_level,
                "finding_count": finding_count,
            },
        )

    def log_analysis(self, file_path: str, risk_score: float, risk_level: str, sha256: str) -> None:
        """Log a completed single-document analysis."""
        self.log(
            level=AuditLevel.INFO,
            action="DOCUMENT_ANALYSIS",
            details={
                "file": str(file_path),
                "sha256": sha256,
                "risk_score": risk_score,
                "risk_level": risk_level,
            },
        )

    def log_export(self, export_path: str, export_format: str) -> None:
        """Log a report export."""
        self.log(
            level=AuditLevel.INFO,
            action="REPORT_EXPORT",
            details={"export_path": str(export_path), "export_format": export_format},
        )

    def log_error(self, action: str, error: Exception) -> None:
        """Log a failed action with its exception."""
        self.log(
            level=AuditLevel.ERROR,
            action=action,
            details={"error_type": type(error).__name__, "error_message": str(error)},
            success=False,
        )

    def get_audit_trail(self, action: str = None, level: AuditLevel = None) -> List[Dict]:
        """Read back entries from the JSON trail, optionally filtered."""
        if not self.json_path.exists():
            return []

        entries = []
        with open(self.json_path, "r", encoding="utf-8") as f:
            for line in f:
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if action and entry.get("action") != action:
                    continue
                if level and entry.get("level") != level.value:
                    continue
                entries.append(entry)
        return entries

    def close(self) -> None:
        """Flush and detach the rotating file handlers."""
        for logger in (self.json_logger, self.text_logger):
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)


_global_audit_logger: Optional[AuditLogger] = None
_logger_lock = threading.Lock()


def get_audit_logger(log_dir: Path = None) -> AuditLogger:
    """Get or create the process-wide audit logger."""
    global _global_audit_logger

    with _logger_lock:
        if _global_audit_logger is None:
            if log_dir is None:
                log_dir = Path.cwd() / "logs"
            _global_audit_logger = AuditLogger(log_dir)

        return _global_audit_logger
