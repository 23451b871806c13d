"""driversync - sync driver home addresses from ADP Workforce Now to Mike Albert."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("driversync")
except PackageNotFoundError:
    __version__ = "0+local"
from driversync.config import FleetConfig, HrConfig, SyncConfig
from driversync.engine import SyncEngine, needs_update, normalize_employee_number
from driversync.exceptions import (
    AuthenticationError,
    BusinessRejectionError,
    ConfigurationError,
    DriverSyncError,
    ProtocolError,
    TransportError,
)
from driversync.fleet import FleetClient
from driversync.hr import HrClient
from driversync.models import (
    AccessToken,
    Driver,
    DriverSelection,
    FleetAddress,
    FleetDriverRecord,
    RunReport,
    SyncOutcome,
)
from driversync.runner import DriverSync
from driversync.token import TokenCache

__all__ = [
    "__version__",
    "AccessToken",
    "AuthenticationError",
    "BusinessRejectionError",
    "ConfigurationError",
    "Driver",
    "DriverSelection",
    "DriverSync",
    "DriverSyncError",
    "FleetAddress",
    "FleetClient",
    "FleetConfig",
    "FleetDriverRecord",
    "HrClient",
    "HrConfig",
    "ProtocolError",
    "RunReport",
    "SyncConfig",
    "SyncEngine",
    "SyncOutcome",
    "TokenCache",
    "TransportError",
    "needs_update",
    "normalize_employee_number",
]
