"""Run configuration for driversync.

The configuration is loaded once at startup and passed explicitly to the
adapter constructors; nothing re-reads it mid-run.
"""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

import yaml

from driversync.exceptions import ConfigurationError

_MISSING_FIELD = "required configuration missing {}"

DEFAULT_TOKEN_SAFETY_MARGIN: float = 5 * 60
DEFAULT_PAGE_SIZE: int = 100
DEFAULT_REQUEST_TIMEOUT: float = 30.0


def _require(value: str, label: str) -> None:
    if not value or not value.strip():
        raise ConfigurationError(_MISSING_FIELD.format(label))


def _normalize_key(key: Any) -> str:
    return str(key).replace("_", "").replace("-", "").lower()


def _pick(section: dict[str, Any], *names: str) -> Any:
    """Return the first value whose key matches one of *names*, ignoring case and ``_``/``-``."""
    normalized = {_normalize_key(k): v for k, v in section.items()}
    for name in names:
        value = normalized.get(_normalize_key(name))
        if value is not None:
            return value
    return None


def _str(value: Any) -> str:
    return "" if value is None else str(value).strip()


@dataclasses.dataclass(frozen=True)
class HrConfig:
    """ADP Workforce Now credentials.

    Parameters
    ----------
    client_id : str
        OAuth2 client identifier.
    client_secret : str
        OAuth2 client secret.
    base_url : str
        API base URL, e.g. ``https://api.adp.com``.
    cert_file : str
        Path to the PEM client certificate used for mutual TLS.
    key_file : str
        Path to the PEM private key matching *cert_file*.
    """

    client_id: str
    client_secret: str
    base_url: str
    cert_file: str
    key_file: str

    def validate(self) -> None:
        _require(self.client_id, "ADP ClientId")
        _require(self.client_secret, "ADP ClientSecret")
        _require(self.base_url, "ADP BaseURL")
        _require(self.cert_file, "ADP CertFile")
        _require(self.key_file, "ADP KeyFile")

    @property
    def token_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/auth/oauth/v2/token"


@dataclasses.dataclass(frozen=True)
class FleetConfig:
    """Mike Albert fleet API credentials.

    Parameters
    ----------
    client_id : str
        Client identifier for the token exchange.
    client_secret : str
        Client secret for the token exchange.
    endpoint : str
        API root, e.g. ``https://api.mikealbert.com/v1``.
    """

    client_id: str
    client_secret: str
    endpoint: str

    def validate(self) -> None:
        _require(self.client_id, "Mike Albert ClientId")
        _require(self.client_secret, "Mike Albert ClientSecret")
        _require(self.endpoint, "Mike Albert Endpoint")

    @property
    def token_url(self) -> str:
        return f"{self.endpoint.rstrip('/')}/token"


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Complete configuration for one reconciliation run.

    Parameters
    ----------
    hr : HrConfig
        HR (ADP) upstream settings.
    fleet : FleetConfig
        Fleet (Mike Albert) upstream settings.
    token_safety_margin : float
        Seconds before a token's expiry at which it is proactively
        refreshed.  Defaults to 5 minutes.
    page_size : int
        ``$top`` used when paging through HR workers.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    max_concurrency : int
        Number of drivers reconciled at once.  ``1`` keeps the run
        strictly sequential.
    run_timeout : float or None
        Optional deadline in seconds for the fleet-side phase of a run.
        When it elapses the run stops issuing requests and reports what
        it has accumulated so far.
    """

    hr: HrConfig
    fleet: FleetConfig
    token_safety_margin: float = DEFAULT_TOKEN_SAFETY_MARGIN
    page_size: int = DEFAULT_PAGE_SIZE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_concurrency: int = 1
    run_timeout: float | None = None

    def validate(self) -> None:
        self.hr.validate()
        self.fleet.validate()
        if self.token_safety_margin < 0:
            raise ConfigurationError("token_safety_margin must not be negative")
        if self.page_size <= 0:
            raise ConfigurationError("page_size must be positive")
        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")
        if self.max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")
        if self.run_timeout is not None and self.run_timeout <= 0:
            raise ConfigurationError("run_timeout must be positive when set")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        """Build and validate a configuration from a parsed YAML document.

        Section names ``adp``/``hr`` and ``mikealbert``/``fleet`` are
        accepted.  Keys are matched ignoring case, ``_`` and ``-`` so that
        ``clientid``, ``ClientId`` and ``client_id`` are equivalent.
        """
        if not isinstance(data, dict):
            raise ConfigurationError("configuration document must be a mapping")

        hr_section = _pick(data, "adp", "hr") or {}
        fleet_section = _pick(data, "mikealbert", "fleet") or {}
        if not isinstance(hr_section, dict) or not isinstance(fleet_section, dict):
            raise ConfigurationError("configuration sections 'adp' and 'mikealbert' must be mappings")

        hr = HrConfig(
            client_id=_str(_pick(hr_section, "client_id")),
            client_secret=_str(_pick(hr_section, "client_secret")),
            base_url=_str(_pick(hr_section, "base_url")).rstrip("/"),
            cert_file=_str(_pick(hr_section, "cert_file")),
            key_file=_str(_pick(hr_section, "key_file")),
        )
        fleet = FleetConfig(
            client_id=_str(_pick(fleet_section, "client_id")),
            client_secret=_str(_pick(fleet_section, "client_secret")),
            endpoint=_str(_pick(fleet_section, "endpoint")).rstrip("/"),
        )

        kwargs: dict[str, Any] = {"hr": hr, "fleet": fleet}
        sync_section = _pick(data, "sync") or {}
        if not isinstance(sync_section, dict):
            raise ConfigurationError("configuration section 'sync' must be a mapping")
        try:
            for field_name, cast in (
                ("token_safety_margin", float),
                ("page_size", int),
                ("request_timeout", float),
                ("max_concurrency", int),
                ("run_timeout", float),
            ):
                value = _pick(sync_section, field_name)
                if value is not None:
                    kwargs[field_name] = cast(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid sync setting: {exc}") from exc

        config = cls(**kwargs)
        config.validate()
        return config

    @classmethod
    def from_file(cls, path: str | Path) -> SyncConfig:
        """Read and validate a YAML configuration file."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"cannot read configuration file {path}: {exc}") from exc
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from ``DRIVERSYNC_*`` environment variables.

        Explicit keyword arguments override environment values.  ``hr``
        and ``fleet`` overrides may be dataclass instances or dicts of
        field values.
        """
        env = os.environ

        _ENV_HR_MAP = {
            "DRIVERSYNC_ADP_CLIENT_ID": "client_id",
            "DRIVERSYNC_ADP_CLIENT_SECRET": "client_secret",
            "DRIVERSYNC_ADP_BASE_URL": "base_url",
            "DRIVERSYNC_ADP_CERT_FILE": "cert_file",
            "DRIVERSYNC_ADP_KEY_FILE": "key_file",
        }
        _ENV_FLEET_MAP = {
            "DRIVERSYNC_FLEET_CLIENT_ID": "client_id",
            "DRIVERSYNC_FLEET_CLIENT_SECRET": "client_secret",
            "DRIVERSYNC_FLEET_ENDPOINT": "endpoint",
        }

        hr_kwargs = {field_name: env.get(key, "") for key, field_name in _ENV_HR_MAP.items()}
        fleet_kwargs = {field_name: env.get(key, "") for key, field_name in _ENV_FLEET_MAP.items()}

        hr_override = overrides.pop("hr", None)
        if isinstance(hr_override, HrConfig):
            hr_kwargs = dataclasses.asdict(hr_override)
        elif isinstance(hr_override, dict):
            hr_kwargs.update(hr_override)

        fleet_override = overrides.pop("fleet", None)
        if isinstance(fleet_override, FleetConfig):
            fleet_kwargs = dataclasses.asdict(fleet_override)
        elif isinstance(fleet_override, dict):
            fleet_kwargs.update(fleet_override)

        config_kwargs: dict[str, Any] = {
            "hr": HrConfig(**hr_kwargs),
            "fleet": FleetConfig(**fleet_kwargs),
        }

        _ENV_SYNC_MAP = {
            "DRIVERSYNC_TOKEN_SAFETY_MARGIN": ("token_safety_margin", float),
            "DRIVERSYNC_MAX_CONCURRENCY": ("max_concurrency", int),
            "DRIVERSYNC_RUN_TIMEOUT": ("run_timeout", float),
        }
        for env_key, (field_name, cast) in _ENV_SYNC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = cast(val)
            except ValueError as exc:
                raise ConfigurationError(f"invalid {env_key}={val!r}: {exc}") from exc

        config_kwargs.update(overrides)

        config = cls(**config_kwargs)
        config.validate()
        return config

    def to_file(self, path: str | Path) -> None:
        """Write this configuration as YAML, readable only by the owner."""
        self.validate()
        document = {
            "adp": {
                "clientid": self.hr.client_id,
                "clientsecret": self.hr.client_secret,
                "baseurl": self.hr.base_url,
                "certfile": self.hr.cert_file,
                "keyfile": self.hr.key_file,
            },
            "mikealbert": {
                "clientid": self.fleet.client_id,
                "clientsecret": self.fleet.client_secret,
                "endpoint": self.fleet.endpoint,
            },
        }
        target = Path(path)
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            yaml.safe_dump(document, handle, sort_keys=False)
        # An existing file keeps its mode under O_CREAT.
        target.chmod(0o600)
