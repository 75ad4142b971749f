"""manifests/v1beta1 manifest schema."""

from ..base import ManifestVersion
from .model import Chart, ChartSource, ChartSourceType, Manifest
from .schema import API_VERSION, SCHEMA
from .sources import available_chart_versions

VERSION = ManifestVersion(api_version=API_VERSION, model=Manifest, schema=SCHEMA)

__all__ = [
    "API_VERSION",
    "SCHEMA",
    "VERSION",
    "Chart",
    "ChartSource",
    "ChartSourceType",
    "Manifest",
    "available_chart_versions",
]
