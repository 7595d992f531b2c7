# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Ancestor AGENTS.md discovery.

Given a file inside the project root, PathResolver finds every AGENTS.md in
the directories between the root (exclusive) and the file's own directory
(inclusive), shallowest first. The root's AGENTS.md is never returned; the
host loads it on its own.
"""

import logging
import os
from typing import List, Optional

from agents_md_injector.models import MARKER_FILENAME
from agents_md_injector.storage import FileSystemStorage, MarkerStorage

logger = logging.getLogger(__name__)


class PathResolver:
    """Resolves file paths to the ancestor marker files that apply to them."""

    def __init__(
        self,
        project_root: str,
        storage: Optional[MarkerStorage] = None,
        marker_filename: str = MARKER_FILENAME,
    ):
        """Initialize the resolver.

        Args:
            project_root: Project root directory. Made absolute once here.
            storage: Storage used for existence checks (default: local filesystem).
            marker_filename: Name of the marker file.
        """
        self.project_root = os.path.abspath(project_root)
        self._storage = storage if storage is not None else FileSystemStorage()
        self._marker_filename = marker_filename

    def resolve_to_absolute(self, file_path: str) -> str:
        """Return file_path unchanged if absolute, else joined onto the project root."""
        if os.path.isabs(file_path):
            return file_path
        return os.path.join(self.project_root, file_path)

    def relative_to_root(self, path: str) -> Optional[str]:
        """Return path relative to the project root, or None if it lies outside.

        The root itself maps to ".".
        """
        try:
            relative_path = os.path.relpath(path, self.project_root)
        except ValueError:
            # Different drive on Windows
            return None

        if relative_path == os.pardir or relative_path.startswith(os.pardir + os.sep):
            return None
        return relative_path

    @staticmethod
    def split_segments(relative_path: str) -> List[str]:
        """Split a relative path into its non-empty, non-"." segments."""
        if relative_path in ("", os.curdir):
            return []
        return [
            segment
            for segment in relative_path.split(os.sep)
            if segment != "" and segment != os.curdir
        ]

    def find_ancestor_markers(self, absolute_file_path: str) -> List[str]:
        """Find existing marker files above a file, shallowest first.

        Args:
            absolute_file_path: Absolute path of the file being read.

        Returns:
            Absolute marker paths ordered root-to-leaf. Empty when the file is
            outside the project root or directly inside it.
        """
        file_directory = os.path.dirname(absolute_file_path)
        relative_directory = self.relative_to_root(file_directory)
        if relative_directory is None:
            logger.debug(f"{absolute_file_path} is outside {self.project_root}, no markers")
            return []

        segments = self.split_segments(relative_directory)
        marker_paths: List[str] = []

        # Depth 0 (the root's own marker) is never visited
        for depth in range(1, len(segments) + 1):
            marker_path = os.path.join(self.project_root, *segments[:depth], self._marker_filename)
            if self._storage.exists(marker_path):
                marker_paths.append(marker_path)

        return marker_paths
