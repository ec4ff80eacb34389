# jdocgen/config.py
"""Generator configuration."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from jdocgen.resolver import ResolutionMode

DEFAULT_OUTPUT = "API_Documentation.md"


# ===================================================================== #
#  Generator Configuration                                               #
# ===================================================================== #

@dataclass(frozen=True)
class GeneratorConfig:
    """Knobs shared by the collector, the resolver and the renderer."""
    source_dir: str = "."
    output: str = DEFAULT_OUTPUT
    include_rfc: bool = True
    resolution_mode: ResolutionMode = ResolutionMode.STRICT
    skip_dirs: Tuple[str, ...] = ("vendor",)
    include_tests: bool = False

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty if valid)."""
        problems: List[str] = []
        if not self.source_dir:
            problems.append("source directory must not be empty")
        elif not os.path.isdir(self.source_dir):
            problems.append(f"source directory not found: {self.source_dir}")
        if not self.output:
            problems.append("output path must not be empty")
        if not isinstance(self.resolution_mode, ResolutionMode):
            problems.append(f"unknown resolution mode: {self.resolution_mode!r}")
        return problems

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "GeneratorConfig":
        """Build a config from parsed CLI arguments; absent options keep defaults."""
        mode: Optional[str] = getattr(args, "resolution", None)
        return cls(
            source_dir=getattr(args, "source_dir", cls.source_dir),
            output=getattr(args, "output", None) or DEFAULT_OUTPUT,
            include_rfc=not getattr(args, "omit_rfc", False),
            resolution_mode=ResolutionMode(mode) if mode else ResolutionMode.STRICT,
            include_tests=getattr(args, "include_tests", False),
        )
