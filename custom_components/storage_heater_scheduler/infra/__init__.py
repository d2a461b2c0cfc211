"""Infrastructure module - external collaborators.

Contains:
- OpenMeteoClient: hourly temperature forecast
- ShellyRpcClient: device clock and timed-action store
- Notifier: notification formatting and sending
"""

from .device import ShellyRpcClient
from .notifier import Notifier
from .weather import OpenMeteoClient

__all__ = ["Notifier", "OpenMeteoClient", "ShellyRpcClient"]
