# MIT License
# Copyright (c) 2025 Hashborn

"""
Bootstrap validator preparation pipeline.
"""

from .pipeline import BootstrapPipeline, load_manifest
from .slot import extract_slot, find_snapshot
from .workspace import WorkspaceConfig

__all__ = ["BootstrapPipeline", "load_manifest", "extract_slot", "find_snapshot", "WorkspaceConfig"]
