"""Service assembly.

Builds a scheduler from settings and runs it until SIGTERM/SIGINT.
"""

import logging
from typing import Optional

from src.digest_scheduler.config import Settings, load_settings
from src.digest_scheduler.scheduler import DigestScheduler
from src.digest_scheduler.shutdown import ShutdownSignals
from src.digest_scheduler.storage import InMemoryStorage, Storage
from src.logging_config import LoggingConfig, configure_logging
from src.weather_alerts.channels import (
    DeliveryChannel,
    InAppChannel,
    SlackChannel,
    TelegramChannel,
)
from src.weather_alerts.exceptions import ConfigurationError, SchedulerError
from src.weather_alerts.providers import OpenWeatherProvider, WeatherProvider

logger = logging.getLogger(__name__)


def build_channels(settings: Settings) -> list[DeliveryChannel]:
    """Configured outbound channels; falls back to the in-app inbox.

    Raises:
        ConfigurationError: If the Slack webhook URL is set but malformed.
    """
    webhook_url = settings.slack.webhook_url
    if webhook_url and not SlackChannel.validate_recipient(webhook_url):
        raise ConfigurationError(
            "Slack webhook URL is not an incoming-webhook URL", field="slack.webhook_url"
        )

    channels: list[DeliveryChannel] = []
    telegram = TelegramChannel(settings.telegram)
    if telegram.is_configured:
        channels.append(telegram)
    slack = SlackChannel(settings.slack)
    if slack.is_configured:
        channels.append(slack)

    if not channels:
        logger.warning("No Telegram or Slack credentials configured, using in-app delivery only")
        channels.append(InAppChannel())
    return channels


def build_scheduler(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    weather: Optional[WeatherProvider] = None,
    channels: Optional[list[DeliveryChannel]] = None,
) -> DigestScheduler:
    """Assemble a scheduler, filling unspecified collaborators from settings."""
    settings = settings or load_settings()
    if weather is None:
        if not settings.openweather.api_key:
            raise ConfigurationError(
                "OpenWeather API key is required", field="openweather.api_key"
            )
        weather = OpenWeatherProvider(settings.openweather)

    return DigestScheduler(
        storage=storage if storage is not None else InMemoryStorage(),
        weather=weather,
        channels=channels if channels is not None else build_channels(settings),
        config=settings.scheduler,
    )


def close_collaborators(scheduler: DigestScheduler) -> None:
    """Close the HTTP clients held by the weather provider and channels."""
    for resource in [scheduler.weather, *scheduler.channels]:
        close = getattr(resource, "close", None)
        if close is not None:
            close()


def run_service(
    scheduler: Optional[DigestScheduler] = None,
    logging_config: Optional[LoggingConfig] = None,
    signals: Optional[ShutdownSignals] = None,
    stop_timeout: float = 30.0,
) -> int:
    """Run the scheduler until a shutdown signal arrives.

    Returns:
        Process exit code: 0 on clean shutdown, 1 if the scheduler could
        not be configured or started.
    """
    configure_logging(logging_config)

    if scheduler is None:
        try:
            scheduler = build_scheduler()
        except ConfigurationError as exc:
            logger.error("Invalid configuration: %s", exc)
            return 1

    signals = signals or ShutdownSignals()
    signals.on_shutdown(scheduler.request_stop)
    signals.install()

    try:
        scheduler.start()
    except SchedulerError as exc:
        logger.critical("Scheduler failed to start: %s", exc)
        signals.restore()
        return 1

    try:
        scheduler.wait()
        if not scheduler.stop(timeout=stop_timeout):
            logger.warning("Scheduler did not stop within %ss", stop_timeout)
    finally:
        signals.restore()
        close_collaborators(scheduler)

    logger.info("Service shut down", extra={"extra_data": scheduler.get_stats()})
    return 0
