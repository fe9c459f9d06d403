from dotenv import load_dotenv

load_dotenv()

from infrastructure.logging import get_module_logger  # noqa: E402
from infrastructure.services import (  # noqa: E402
    get_notification_dispatcher,
    get_settings,
)
from jobs import scheduled_tasks  # noqa: E402

logger = get_module_logger()


def main(block=True):
    """Start the notification engine background jobs.

    Returns the Event that stops the scheduler thread.
    """
    logger.info("application_startup")
    settings = get_settings()
    list_configs(settings)

    if not settings.jobs.enabled:
        logger.info("scheduled_tasks_disabled")
        return None

    scheduled_tasks.init(settings.jobs)
    scheduled_tasks.run_startup_jobs()
    stop_run_continuously = scheduled_tasks.run_continuously(
        interval=settings.jobs.poll_interval_seconds
    )

    if block:
        try:
            while not stop_run_continuously.wait(60):
                pass
        except KeyboardInterrupt:
            logger.info("application_shutdown")
        finally:
            stop_run_continuously.set()
            get_notification_dispatcher().shutdown()
    return stop_run_continuously


def list_configs(settings):
    """List all configuration settings keys"""
    config_settings = {"settings": []}

    for key, value in settings.model_dump().items():
        if isinstance(value, dict):
            config_settings[key] = list(value.keys())
        else:
            config_settings["settings"].append({key: value})

    logger.info("configuration_initialized", base_settings=config_settings["settings"])
    for key, value in config_settings.items():
        if key != "settings":
            logger.info("configuration_loaded", config_setting=key, keys=value)


if __name__ == "__main__":
    main()
