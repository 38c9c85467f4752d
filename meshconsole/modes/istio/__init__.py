"""
Istio Configuration Catalog

This module provides the typed model of Istio configuration objects
(Gateway, VirtualService, DestinationRule, ServiceEntry and the Mixer kinds),
the transformations used by the console list pages, and the API serving them.
"""

from .utils.istio_parser import IstioParser
from .config_list import (
    filter_by_config_validation,
    filter_by_name,
    to_istio_items,
)

__all__ = [
    "IstioParser",
    "filter_by_config_validation",
    "filter_by_name",
    "to_istio_items",
]
