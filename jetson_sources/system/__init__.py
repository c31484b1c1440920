"""System integration for Jetson kernel source provisioning.

This module wraps the host system:
- CommandRunner: sudo-aware command execution
- Privileges: Verify or obtain elevated privileges
- Version: L4T release detection and download URL templating
- Kernel release: Running kernel identification
"""
