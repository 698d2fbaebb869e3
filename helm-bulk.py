#!/usr/bin/env -S uv run --quiet --script
# /// script
# dependencies = [
#   "pyyaml",
#   "click>=8.0",
#   "kubernetes",
#   "urllib3",
# ]
# ///
"""
helm-bulk - Install or uninstall a list of Helm releases from one manifest.
Usage: helm-bulk.py <install|uninstall|help> [-f config.yaml]
"""

from helm_bulk import cli

if __name__ == "__main__":
    cli()
