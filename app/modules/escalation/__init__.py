"""Escalation module - alert stage notifications."""

from modules.escalation.notifications import (
    AlertSeverity,
    AlertSnapshot,
    AlertStage,
    build_stage_intent,
    notify_stage_transition,
)

__all__ = [
    "AlertSeverity",
    "AlertSnapshot",
    "AlertStage",
    "build_stage_intent",
    "notify_stage_transition",
]
