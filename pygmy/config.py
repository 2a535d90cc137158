# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Configuration for pygmy.

Configuration is loaded from a YAML file (``~/.config/pygmy/pygmy.yaml``)
with support for ``!env`` tags that resolve values from environment
variables.  A ``.env`` file next to the config is loaded first if present.

Every key is optional; a missing default config file means built-in
defaults::

    domain: docker.amazee.io
    docker_command: docker
    network: amazeeio-network

    resolv:
      enabled: true
      nameserver: 127.0.0.1
      common_file: /etc/resolv.conf
      ubuntu_file: /etc/resolvconf/resolv.conf.d/head
      update_resolvconf: true

    traefik:
      image: traefik:2.0
      container_name: traefik.docker.amazee.io

    dnsmasq:
      image: andyshinn/dnsmasq:2.78
      container_name: amazeeio-dnsmasq
      port: 53
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar, overload

import yaml
from platformdirs import user_config_path

from pygmy import dnsmasq as dnsmasq_defaults
from pygmy import resolv as resolv_defaults
from pygmy import traefik as traefik_defaults
from pygmy.dnsmasq import Dnsmasq
from pygmy.docker import DEFAULT_DOCKER_COMMAND
from pygmy.dotenv_loader import load_dotenv_once
from pygmy.platform import PlatformProbe
from pygmy.resolv import Resolv
from pygmy.sh import Runner, run_command
from pygmy.traefik import Traefik


logger = logging.getLogger(__name__)

_APP_NAME = "pygmy"

_BOOL_TRUTHY = frozenset({"true", "1", "yes", "on"})
_BOOL_FALSY = frozenset({"false", "0", "no", "off"})


class ConfigError(Exception):
    """Base exception for configuration errors."""


def get_config_path() -> Path:
    """Return the default config file path.

    Uses XDG: ``$XDG_CONFIG_HOME/pygmy/pygmy.yaml`` (typically
    ``~/.config/pygmy/pygmy.yaml``).
    """
    return user_config_path(_APP_NAME) / "pygmy.yaml"


def get_dotenv_path() -> Path:
    """Return the ``.env`` file path inside the XDG config directory."""
    return user_config_path(_APP_NAME) / ".env"


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)  # type: ignore[arg-type]
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _coerce_bool(value: object) -> bool:
    """Coerce a value to bool, handling string representations."""
    if isinstance(value, bool):
        return value
    s = str(value).lower().strip()
    if s in _BOOL_TRUTHY:
        return True
    if s in _BOOL_FALSY:
        return False
    raise ConfigError(f"Cannot convert {value!r} to bool")


def _raw_resolve(value: object) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is unset/empty.
    """
    if isinstance(value, _EnvVar):
        return os.environ.get(value.var_name) or None
    if value is None:
        return None
    return str(value)


T = TypeVar("T")


@overload
def _resolve(value: object, coerce: type[T], *, default: T) -> T: ...


@overload
def _resolve(value: object, coerce: type[T]) -> T | None: ...


_MISSING = object()


def _resolve(
    value: object,
    coerce: type[Any],
    *,
    default: object = _MISSING,
) -> Any:
    """Resolve a YAML value, handling ``!env`` tags and type coercion.

    Args:
        value: Raw value from YAML (may be ``_EnvVar``, None, or a
            literal already parsed by PyYAML).
        coerce: Target type (``str``, ``int``, ``bool``, ``Path``).
        default: Default when value is absent.

    Returns:
        The resolved, coerced value, or None when absent without default.

    Raises:
        ConfigError: If the value cannot be coerced.
    """
    if not isinstance(value, _EnvVar) and value is not None:
        if coerce is bool:
            return _coerce_bool(value)
        # bool is an int subclass; "port: true" must not become port 1.
        if coerce is int and isinstance(value, bool):
            raise ConfigError(f"Cannot convert {value!r} to int")
        if isinstance(value, coerce):
            return value

    resolved = _raw_resolve(value)
    if resolved is None:
        if default is not _MISSING:
            return default
        return None

    if coerce is bool:
        return _coerce_bool(resolved)
    if coerce is Path:
        return Path(resolved).expanduser()
    try:
        return coerce(resolved)
    except ValueError as e:
        raise ConfigError(
            f"Cannot convert {resolved!r} to {coerce.__name__}"
        ) from e


def _section(raw: dict, name: str) -> dict:
    """Return the mapping under *name*, or an empty one if absent."""
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a YAML mapping")
    return value


# ---------------------------------------------------------------------------
# Config objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvConfig:
    """Host resolver file settings."""

    enabled: bool = True
    nameserver: str = resolv_defaults.DEFAULT_NAMESERVER
    common_file: Path = resolv_defaults.COMMON_RESOLV_FILE
    ubuntu_file: Path = resolv_defaults.UBUNTU_RESOLV_FILE
    update_resolvconf: bool = True


@dataclass(frozen=True)
class TraefikConfig:
    """Reverse proxy container settings."""

    image: str = traefik_defaults.IMAGE_NAME
    container_name: str = traefik_defaults.CONTAINER_NAME


@dataclass(frozen=True)
class DnsmasqConfig:
    """DNS resolver container settings."""

    image: str = dnsmasq_defaults.IMAGE_NAME
    container_name: str = dnsmasq_defaults.CONTAINER_NAME
    port: int = dnsmasq_defaults.DEFAULT_PORT


@dataclass(frozen=True)
class PygmyConfig:
    """Complete pygmy configuration.

    Attributes:
        domain: Suffix under which containers are reachable.
        docker_command: Container runtime binary.
        network: Shared docker network Traefik routes into.
        resolv: Host resolver file settings.
        traefik: Reverse proxy container settings.
        dnsmasq: DNS resolver container settings.
    """

    domain: str = traefik_defaults.DOMAIN
    docker_command: str = DEFAULT_DOCKER_COMMAND
    network: str = traefik_defaults.NETWORK_NAME
    resolv: ResolvConfig = field(default_factory=ResolvConfig)
    traefik: TraefikConfig = field(default_factory=TraefikConfig)
    dnsmasq: DnsmasqConfig = field(default_factory=DnsmasqConfig)

    def __post_init__(self) -> None:
        if not 0 < self.dnsmasq.port < 65536:
            raise ConfigError(
                f"dnsmasq.port must be between 1 and 65535, "
                f"got {self.dnsmasq.port}"
            )
        if not self.resolv.nameserver:
            raise ConfigError("resolv.nameserver must not be empty")

    @classmethod
    def from_yaml(cls, config_path: Path) -> "PygmyConfig":
        """Load configuration from a YAML file.

        Values tagged with ``!env VAR_NAME`` are resolved from the
        environment at load time.  A ``.env`` file is loaded first if
        present.

        Args:
            config_path: Path to YAML config file.

        Returns:
            PygmyConfig instance.

        Raises:
            ConfigError: If the file is missing, unreadable or invalid.
        """
        load_dotenv_once(get_dotenv_path())

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path) as f:
                raw = yaml.load(f, Loader=_make_loader())
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file must be a YAML mapping: {config_path}"
            )

        config = cls._from_raw(raw)
        logger.debug("Config loaded from %s", config_path)
        return config

    @classmethod
    def _from_raw(cls, raw: dict) -> "PygmyConfig":
        """Build config from parsed (but unresolved) YAML dict."""
        resolv_raw = _section(raw, "resolv")
        traefik_raw = _section(raw, "traefik")
        dnsmasq_raw = _section(raw, "dnsmasq")

        return cls(
            domain=_resolve(
                raw.get("domain"), str, default=traefik_defaults.DOMAIN
            ),
            docker_command=_resolve(
                raw.get("docker_command"), str, default=DEFAULT_DOCKER_COMMAND
            ),
            network=_resolve(
                raw.get("network"),
                str,
                default=traefik_defaults.NETWORK_NAME,
            ),
            resolv=ResolvConfig(
                enabled=_resolve(resolv_raw.get("enabled"), bool, default=True),
                nameserver=_resolve(
                    resolv_raw.get("nameserver"),
                    str,
                    default=resolv_defaults.DEFAULT_NAMESERVER,
                ),
                common_file=_resolve(
                    resolv_raw.get("common_file"),
                    Path,
                    default=resolv_defaults.COMMON_RESOLV_FILE,
                ),
                ubuntu_file=_resolve(
                    resolv_raw.get("ubuntu_file"),
                    Path,
                    default=resolv_defaults.UBUNTU_RESOLV_FILE,
                ),
                update_resolvconf=_resolve(
                    resolv_raw.get("update_resolvconf"), bool, default=True
                ),
            ),
            traefik=TraefikConfig(
                image=_resolve(
                    traefik_raw.get("image"),
                    str,
                    default=traefik_defaults.IMAGE_NAME,
                ),
                container_name=_resolve(
                    traefik_raw.get("container_name"),
                    str,
                    default=traefik_defaults.CONTAINER_NAME,
                ),
            ),
            dnsmasq=DnsmasqConfig(
                image=_resolve(
                    dnsmasq_raw.get("image"),
                    str,
                    default=dnsmasq_defaults.IMAGE_NAME,
                ),
                container_name=_resolve(
                    dnsmasq_raw.get("container_name"),
                    str,
                    default=dnsmasq_defaults.CONTAINER_NAME,
                ),
                port=_resolve(
                    dnsmasq_raw.get("port"),
                    int,
                    default=dnsmasq_defaults.DEFAULT_PORT,
                ),
            ),
        )

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    def make_resolv(
        self,
        platform: PlatformProbe | None = None,
        runner: Runner = run_command,
    ) -> Resolv:
        return Resolv(
            platform,
            nameserver=self.resolv.nameserver,
            common_resolv_file=self.resolv.common_file,
            ubuntu_resolv_file=self.resolv.ubuntu_file,
            runner=runner,
            update_resolvconf=self.resolv.update_resolvconf,
        )

    def make_traefik(self, runner: Runner = run_command) -> Traefik:
        return Traefik(
            image_name=self.traefik.image,
            container_name=self.traefik.container_name,
            network_name=self.network,
            domain=self.domain,
            docker_command=self.docker_command,
            runner=runner,
        )

    def make_dnsmasq(self, runner: Runner = run_command) -> Dnsmasq:
        return Dnsmasq(
            image_name=self.dnsmasq.image,
            container_name=self.dnsmasq.container_name,
            domain=self.domain,
            port=self.dnsmasq.port,
            docker_command=self.docker_command,
            runner=runner,
        )


def load_config(config_path: Path | None = None) -> PygmyConfig:
    """Load the config, falling back to defaults when there is none.

    Args:
        config_path: Explicit config file.  Must exist when given.  If
            None, the XDG default is used when present.

    Raises:
        ConfigError: If an explicit file is missing or any file is invalid.
    """
    if config_path is not None:
        return PygmyConfig.from_yaml(config_path)

    default_path = get_config_path()
    if default_path.exists():
        return PygmyConfig.from_yaml(default_path)

    logger.debug("No config at %s, using defaults", default_path)
    return PygmyConfig()
