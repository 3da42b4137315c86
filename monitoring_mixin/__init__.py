"""
monitoring-mixin

Compiles declarative SLI specifications into Prometheus recording rules,
SLO alerting rules and Grafana dashboards.
"""
from .builder import MixinArtifacts, MixinBuilder, build_mixin
from .config import MixinConfig, SliSpec, load_mixin_definition
from .errors import MixinError

__version__ = "1.0.0"

__all__ = [
    "MixinArtifacts",
    "MixinBuilder",
    "build_mixin",
    "MixinConfig",
    "SliSpec",
    "load_mixin_definition",
    "MixinError",
]
