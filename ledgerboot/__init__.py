# MIT License
# Copyright (c) 2025 Hashborn

"""
ledgerboot: rebuilds a bootable genesis + snapshot pair for a single
bootstrap validator from a remote cluster's latest snapshot.
"""

__version__ = "0.1.0"
