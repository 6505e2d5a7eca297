"""Abstract base for delivery channels."""

from abc import ABC, abstractmethod

from src.weather_alerts.config import SubscriptionKind
from src.weather_alerts.models import Alert, MetricSample, User


class DeliveryChannel(ABC):
    """Abstract delivery channel interface.

    Sends are best-effort. Implementations raise ``DeliveryError`` on
    failure; an unconfigured channel is a silent no-op.
    """

    name: str = "channel"

    @abstractmethod
    def send_alert(self, alert: Alert, user: User) -> None:
        """Deliver a triggered alert to a user.

        Raises:
            DeliveryError: If delivery failed.
        """

    @abstractmethod
    def send_digest(
        self,
        sample: MetricSample,
        user: User,
        kind: SubscriptionKind = SubscriptionKind.DAILY,
    ) -> None:
        """Deliver a scheduled digest to a user.

        Raises:
            DeliveryError: If delivery failed.
        """

    @property
    def is_configured(self) -> bool:
        return True
