"""Source acquisition for Jetson kernel builds.

This module handles the provisioning pipeline steps:
- InstallationResolver: Keep, replace or back up existing sources
- SourceDownloader: Fetch public_sources.tbz2
- ArchiveExtractor: Unpack the nested kernel archives
- KernelConfigurator: Seed .config and set LOCALVERSION
- DependencyInstaller: Install build prerequisites
"""
