# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Local Docker development environment helper.

Runs a Traefik reverse proxy and a dnsmasq resolver container, and points
the host resolver at them so ``*.docker.amazee.io`` hostnames reach local
containers.
"""

__version__ = "0.1.0"
