"""Jetson kernel source provisioning.

Fetches and prepares the NVIDIA Jetson Linux kernel sources for native
kernel builds.
"""

__version__ = "1.0.0"
