"""Background job scheduling settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class JobSettings(InfrastructureSettings):
    """Cadence of the periodic notification jobs.

    Environment Variables:
        JOBS_ENABLED: Start the scheduler thread at boot (default: True)
        JOBS_RETRY_INTERVAL_MINUTES: Failed notification retry cadence (default: 5)
        JOBS_RECEIPT_INTERVAL_MINUTES: Push receipt polling cadence (default: 15)
        JOBS_CLEANUP_INTERVAL_MINUTES: Expired notification sweep cadence (default: 60)
        JOBS_POLL_INTERVAL_SECONDS: Scheduler thread tick (default: 1)
    """

    enabled: bool = Field(default=True, alias="JOBS_ENABLED")
    retry_interval_minutes: int = Field(
        default=5, ge=1, alias="JOBS_RETRY_INTERVAL_MINUTES"
    )
    receipt_interval_minutes: int = Field(
        default=15, ge=1, alias="JOBS_RECEIPT_INTERVAL_MINUTES"
    )
    cleanup_interval_minutes: int = Field(
        default=60, ge=1, alias="JOBS_CLEANUP_INTERVAL_MINUTES"
    )
    poll_interval_seconds: int = Field(
        default=1, ge=1, alias="JOBS_POLL_INTERVAL_SECONDS"
    )
