"""
Base renderer class with common functionality
"""

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class RendererKind(Enum):
    """Output formats a run can produce"""

    TABLE = "table"
    CSV = "csv"
    JSON = "json"
    CHART = "chart"


@dataclass(frozen=True)
class RenderResult:
    """What a renderer produced: files written and/or text emitted"""

    kind: RendererKind
    paths: tuple = ()
    output: str | None = None


class BaseRenderer(ABC):
    """Base class for all renderers

    Renderers only read the Report; they never change it.
    """

    kind = None

    def __init__(self, config, stream=None):
        self.config = config
        self.stream = stream

    @abstractmethod
    def render(self, report):
        """
        Render a finished report

        Args:
            report: Report to render

        Returns:
            RenderResult
        """

    def write(self, text=""):
        print(text, file=self.stream or sys.stdout)

    def print_section_header(self, title):
        """Print a formatted section header"""
        self.write("\n" + "=" * 60)
        self.write(title)
        self.write("=" * 60)
