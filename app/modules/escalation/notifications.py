"""Escalation Notifications Module

Turns alert workflow stage transitions into dispatch intents for the
notification engine. The workflow itself (who can move an alert, and when)
belongs to the hosting application; this module only decides who hears about
a transition and what they are told.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from infrastructure.logging import get_module_logger
from infrastructure.notifications import (
    DispatchIntent,
    Notification,
    NotificationData,
    NotificationPriority,
    NotificationService,
    NotificationType,
)

logger = get_module_logger()


class AlertStage(Enum):
    EMO_CREATED = "emo_created"
    SENT_TO_CLINICIAN = "sent_to_clinician"
    CLINICIAN_REVIEWING = "clinician_reviewing"
    SENT_TO_RADIOLOGIST = "sent_to_radiologist"
    RADIOLOGIST_REVIEWING = "radiologist_reviewing"
    SENT_BACK_TO_CLINICIAN = "sent_back_to_clinician"
    FINAL_RECORD_ENTERED = "final_record_entered"
    COMPLETED = "completed"


class AlertSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertSnapshot(BaseModel):
    """The alert fields needed to address and word a stage notification."""

    alert_id: str
    patient_name: str
    severity: AlertSeverity
    emo_id: str
    clinician_id: Optional[str] = None
    radiologist_id: Optional[str] = None


def _handoff_priority(alert: AlertSnapshot) -> NotificationPriority:
    if alert.severity is AlertSeverity.CRITICAL:
        return NotificationPriority.URGENT
    return NotificationPriority.HIGH


def build_stage_intent(
    alert: AlertSnapshot, new_stage: AlertStage
) -> Optional[DispatchIntent]:
    """Build the intent announcing ``alert`` entering ``new_stage``.

    Returns None for stages that notify nobody, or when the stage's
    recipient is not assigned on the alert.
    """
    severity = alert.severity.value
    patient = alert.patient_name

    if new_stage is AlertStage.SENT_TO_CLINICIAN:
        recipient_id = alert.clinician_id
        notification_type = NotificationType.ASSIGNED
        title = "New Emergency Alert"
        message = f"Emergency alert for {patient} ({severity} severity)"
        action_required = "Review patient and provide initial assessment"
        priority = _handoff_priority(alert)
    elif new_stage is AlertStage.SENT_TO_RADIOLOGIST:
        recipient_id = alert.radiologist_id
        notification_type = NotificationType.FORWARDED
        title = "Alert Forwarded for Radiology Review"
        message = f"Please review imaging for {patient} ({severity} severity)"
        action_required = "Review imaging and provide radiological assessment"
        priority = _handoff_priority(alert)
    elif new_stage is AlertStage.SENT_BACK_TO_CLINICIAN:
        recipient_id = alert.clinician_id
        notification_type = NotificationType.RETURNED
        title = "Radiology Review Completed"
        message = f"Radiology review completed for {patient}"
        action_required = "Review radiology findings and enter final record"
        priority = _handoff_priority(alert)
    elif new_stage is AlertStage.COMPLETED:
        recipient_id = alert.emo_id
        notification_type = NotificationType.COMPLETED
        title = "Alert Completed"
        message = f"Alert for {patient} has been completed"
        action_required = "Review completed case"
        priority = NotificationPriority.MEDIUM
    else:
        return None

    if not recipient_id:
        logger.warning(
            "stage_notification_recipient_missing",
            alert_id=alert.alert_id,
            stage=new_stage.value,
        )
        return None

    return DispatchIntent(
        recipient_id=recipient_id,
        alert_id=alert.alert_id,
        type=notification_type,
        title=title,
        message=message,
        priority=priority,
        data=NotificationData(
            alert_id=alert.alert_id,
            patient_name=patient,
            severity=severity,
            stage=new_stage.value,
            action_required=action_required,
        ),
    )


def notify_stage_transition(
    service: NotificationService, alert: AlertSnapshot, new_stage: AlertStage
) -> Optional[Notification]:
    """Dispatch the notification for a stage transition, if there is one."""
    intent = build_stage_intent(alert, new_stage)
    if intent is None:
        return None
    notification = service.dispatch(intent)
    logger.info(
        "stage_notification_sent",
        alert_id=alert.alert_id,
        stage=new_stage.value,
        notification_id=notification.notification_id,
    )
    return notification
