# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Pygmy CLI: multi-command entry point.

Provides ``pygmy <command>`` with subcommands for bringing the local
environment up and down and for editing the host resolver file directly.
Running ``pygmy`` with no arguments prints version and usage information.

Subcommands:

* ``init``: create a stub config file
* ``up``: start dnsmasq and Traefik, point the resolver at them
* ``down``: undo ``up``
* ``status``: show container, network and resolver state
* ``configure``: add the pygmy nameserver to the resolver file
* ``clean``: remove the pygmy nameserver from the resolver file
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from pygmy import __version__
from pygmy.config import ConfigError, PygmyConfig, get_config_path, load_config
from pygmy.docker import DockerError, ServiceStatus
from pygmy.logging import configure_logging
from pygmy.resolv import ResolvError


logger = logging.getLogger(__name__)

# Known subcommand names.
_SUBCOMMANDS = frozenset(
    {
        "init",
        "up",
        "down",
        "status",
        "configure",
        "clean",
    }
)

_USAGE = """\
usage: pygmy <command> [--config PATH] [--debug]

commands:
  init       Create a stub config file
  up         Start dnsmasq and Traefik, point the resolver at them
  down       Stop and remove the containers, restore the resolver
  status     Show container, network and resolver state
  configure  Add the pygmy nameserver to the resolver file
  clean      Remove the pygmy nameserver from the resolver file

Run 'pygmy <command> --help' for command-specific help.\
"""


# ── Terminal colors ─────────────────────────────────────────────────


def _use_color() -> bool:
    """Determine whether to use ANSI color codes in output.

    Returns True when stdout is a TTY and the ``NO_COLOR`` environment
    variable is not set.  ``TERM=dumb`` also disables color.
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return sys.stdout.isatty()


class _Style:
    """ANSI escape helpers.  All methods return plain text when color is off."""

    def __init__(self, color: bool) -> None:
        self._on = color

    def _wrap(self, code: str, text: str) -> str:
        if not self._on:
            return text
        return f"\033[{code}m{text}\033[0m"

    def bold(self, text: str) -> str:
        return self._wrap("1", text)

    def green(self, text: str) -> str:
        return self._wrap("32", text)

    def red(self, text: str) -> str:
        return self._wrap("31", text)

    def yellow(self, text: str) -> str:
        return self._wrap("33", text)

    def dim(self, text: str) -> str:
        return self._wrap("2", text)


# ── Shared option handling ──────────────────────────────────────────


def _parse_args(command: str, argv: list[str]) -> argparse.Namespace:
    """Parse the options every subcommand accepts."""
    parser = argparse.ArgumentParser(prog=f"pygmy {command}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Config file (default: {get_config_path()})",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    return parser.parse_args(argv)


def _setup(command: str, argv: list[str]) -> PygmyConfig:
    """Parse options, configure logging and load the config.

    Raises:
        ConfigError: If the config file is missing or invalid.
    """
    args = _parse_args(command, argv)
    configure_logging(level=logging.DEBUG if args.debug else logging.INFO)
    return load_config(args.config)


# ── init subcommand ─────────────────────────────────────────────────


def cmd_init(argv: list[str]) -> int:
    """Create a stub configuration file.

    Creates ``~/.config/pygmy/pygmy.yaml`` (or the ``--config`` path) with
    the default settings commented out, if the file does not exist yet.

    Returns:
        Exit code (0 on success or if the file exists, 1 on error).
    """
    args = _parse_args("init", argv)
    config_path = args.config or get_config_path()

    if config_path.exists():
        print(f"Config already exists: {config_path}")
        return 0

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(_STUB_CONFIG)
    except OSError as e:
        logger.error("Failed to create config %s: %s", config_path, e)
        return 1
    print(f"Created stub config: {config_path}")
    return 0


# ── up / down subcommands ───────────────────────────────────────────


def cmd_up(argv: list[str]) -> int:
    """Start the local environment.

    Creates the shared network, starts dnsmasq and Traefik, connects
    Traefik to the network and adds the pygmy nameserver to the resolver
    file.  Every step is idempotent, so ``up`` can be re-run to repair a
    partially started environment.

    Returns:
        Exit code (0 on success, 1 on error).
    """
    try:
        config = _setup("up", argv)
        dnsmasq = config.make_dnsmasq()
        traefik = config.make_traefik()

        traefik.network.create()
        dnsmasq.start()
        traefik.start()
        traefik.connect()
        if config.resolv.enabled:
            config.make_resolv().configure()
    except (ConfigError, DockerError, ResolvError) as e:
        logger.error("%s", e)
        return 1

    logger.info(
        "Containers on %s are reachable at http://<name>.%s",
        config.network,
        config.domain,
    )
    return 0


def cmd_down(argv: list[str]) -> int:
    """Stop the local environment.

    Removes the pygmy nameserver first so name resolution never points at
    a stopped resolver, then removes the Traefik and dnsmasq containers.
    The shared network is left alone because project containers may still
    be attached to it.

    Returns:
        Exit code (0 on success, 1 on error).
    """
    try:
        config = _setup("down", argv)
        if config.resolv.enabled:
            config.make_resolv().clean()
        config.make_traefik().delete()
        config.make_dnsmasq().delete()
    except (ConfigError, DockerError, ResolvError) as e:
        logger.error("%s", e)
        return 1
    return 0


# ── status subcommand ───────────────────────────────────────────────


def cmd_status(argv: list[str]) -> int:
    """Print container, network and resolver state.

    Returns:
        0 if everything is up and configured, 1 otherwise.
    """
    try:
        config = _setup("status", argv)
    except ConfigError as e:
        logger.error("%s", e)
        return 1

    s = _Style(_use_color())
    all_ok = True

    print(s.bold(f"Pygmy {__version__}"))
    print()

    print(s.bold("Containers"))
    traefik = config.make_traefik()
    for service in (config.make_dnsmasq(), traefik):
        status = service.status()
        if status is ServiceStatus.RUNNING:
            label = s.green(status.value)
        else:
            label = s.yellow(status.value)
            all_ok = False
        print(f"  {service.container_name}: {label}")
    print()

    print(s.bold("Network"))
    if traefik.network.exists():
        if traefik.is_connected():
            label = s.green(f"{traefik.container_name} connected")
        else:
            label = s.yellow(f"{traefik.container_name} not connected")
            all_ok = False
    else:
        label = s.yellow("not created")
        all_ok = False
    print(f"  {config.network}: {label}")
    print()

    print(s.bold("Resolver"))
    if not config.resolv.enabled:
        print(f"  {s.dim('disabled in config')}")
    else:
        resolv = config.make_resolv()
        try:
            path = resolv.resolv_file()
            if resolv.has_our_nameserver():
                label = s.green(f"nameserver {resolv.nameserver} configured")
            else:
                label = s.yellow("not configured")
                all_ok = False
            print(f"  {path}: {label}")
        except ResolvError as e:
            print(f"  {s.red('error')}: {e}")
            all_ok = False
    print()

    if all_ok:
        print(s.green(f"Pygmy is running for *.{config.domain}."))
    else:
        print(s.yellow("Pygmy is not fully running."))
    return 0 if all_ok else 1


# ── configure / clean subcommands ───────────────────────────────────


def cmd_configure(argv: list[str]) -> int:
    """Add the pygmy nameserver to the resolver file.

    Returns:
        Exit code (0 on success or if already configured, 1 on error).
    """
    try:
        config = _setup("configure", argv)
        config.make_resolv().configure()
    except (ConfigError, ResolvError) as e:
        logger.error("%s", e)
        return 1
    return 0


def cmd_clean(argv: list[str]) -> int:
    """Remove the pygmy nameserver from the resolver file.

    Returns:
        Exit code (0 on success or if nothing to remove, 1 on error).
    """
    try:
        config = _setup("clean", argv)
        config.make_resolv().clean()
    except (ConfigError, ResolvError) as e:
        logger.error("%s", e)
        return 1
    return 0


# ── CLI plumbing ────────────────────────────────────────────────────


_DISPATCH: dict[str, str] = {
    "init": "cmd_init",
    "up": "cmd_up",
    "down": "cmd_down",
    "status": "cmd_status",
    "configure": "cmd_configure",
    "clean": "cmd_clean",
}


def _print_info() -> None:
    """Print version information and available commands."""
    s = _Style(_use_color())
    print(s.bold(f"Pygmy {__version__}"))
    print()
    print(_USAGE)


def cli() -> None:
    """Entry point for ``pygmy``.

    When no arguments are given, prints version and usage information.
    Requires an explicit subcommand for all operations.
    """
    argv = sys.argv[1:]

    if not argv or argv[0] in ("--help", "-h"):
        _print_info()
        sys.exit(0)

    if argv[0] == "--version":
        print(__version__)
        sys.exit(0)

    if argv[0] not in _SUBCOMMANDS:
        print(f"pygmy: unknown command '{argv[0]}'", file=sys.stderr)
        print(_USAGE, file=sys.stderr)
        sys.exit(2)

    command = argv[0]
    rest = argv[1:]

    # Look up handler by name so tests can mock individual commands.
    import pygmy.cli as _self

    handler = getattr(_self, _DISPATCH[command])
    sys.exit(handler(rest))


#: Stub configuration template written by ``pygmy init``.
_STUB_CONFIG = """\
# Pygmy Configuration
#
# Every setting is optional.  Values can be read from the environment
# with the !env tag, e.g.  nameserver: !env PYGMY_NAMESERVER

# domain: docker.amazee.io
# docker_command: docker
# network: amazeeio-network

# resolv:
#   enabled: true
#   nameserver: 127.0.0.1
#   common_file: /etc/resolv.conf
#   ubuntu_file: /etc/resolvconf/resolv.conf.d/head
#   update_resolvconf: true

# traefik:
#   image: traefik:2.0
#   container_name: traefik.docker.amazee.io

# dnsmasq:
#   image: andyshinn/dnsmasq:2.78
#   container_name: amazeeio-dnsmasq
#   port: 53
"""
