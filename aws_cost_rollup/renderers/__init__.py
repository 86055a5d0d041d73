"""
Output renderers for finished cost reports
"""

from .base import BaseRenderer, RendererKind, RenderResult
from .chart import ChartRenderer
from .csv_export import CsvRenderer
from .json_export import JsonRenderer
from .table import TableRenderer


def create_renderers(kinds, config, csv_prefix=None):
    """
    Instantiate renderers for the selected output kinds

    Args:
        kinds: Iterable of RendererKind
        config: Config
        csv_prefix: File prefix, required when RendererKind.CSV is selected

    Returns:
        list of renderers in the order given
    """
    renderers = []
    for kind in kinds:
        if kind is RendererKind.TABLE:
            renderers.append(TableRenderer(config))
        elif kind is RendererKind.JSON:
            renderers.append(JsonRenderer(config))
        elif kind is RendererKind.CSV:
            if not csv_prefix:
                raise ValueError("CSV output needs a file prefix")
            renderers.append(CsvRenderer(config, csv_prefix))
        elif kind is RendererKind.CHART:
            renderers.append(ChartRenderer(config))
    return renderers


__all__ = [
    "BaseRenderer",
    "ChartRenderer",
    "CsvRenderer",
    "JsonRenderer",
    "RenderResult",
    "RendererKind",
    "TableRenderer",
    "create_renderers",
]
