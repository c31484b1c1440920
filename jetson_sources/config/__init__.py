"""Configuration module for Jetson kernel source provisioning.

This module handles tool settings:
- Paths: Fixed system locations, download layout and log locations
- ProvisionerSettings: Settings dataclass
- SettingsManager: Optional JSON overrides
"""
