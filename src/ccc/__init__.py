"""
ccc -- Coding Container CLI.

Sets up AI coding agents inside a Docker container with an egress
allowlist firewall, and drives that container locally or over SSH.
"""

__version__ = "0.4.0"
__author__ = "Phoenix Link"
