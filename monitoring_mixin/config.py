"""
Mixin definition schema

Pydantic models for the product configuration record and SLI specs, plus
the loader for mixin definition files. Field names follow the camelCase
used in mixin definition files; snake_case names are accepted as well.
"""
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union
import logging

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import MalformedSpecError, MixinConfigurationError
from .selectors import LABEL_NAME_PATTERN, parse_duration


logger = logging.getLogger(__name__)

DEFAULT_DATASOURCE = "${DS_PROMETHEUS}"


class SliType(str, Enum):
    AVAILABILITY = "availability"
    LATENCY = "latency"


class Comparison(str, Enum):
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    EQ = "=="
    NE = "!="


class Severity(str, Enum):
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class SliSpec(BaseModel):
    """One declared service level indicator."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: str = Field(..., min_length=1, description="Panel and alert title")
    sli_description: str = Field(default="", alias="sliDescription")
    metric_type: str = Field(..., min_length=1, alias="metricType")
    selectors: Dict[str, str] = Field(default_factory=dict)
    metric_target: float = Field(..., alias="metricTarget")
    comparison: Optional[Comparison] = None
    latency_percentile: Optional[float] = Field(default=None, alias="latencyPercentile", gt=0, lt=1)
    eval_interval: str = Field(default="1m", alias="evalInterval")
    period: str = Field(default="30d")
    slo_target: float = Field(..., alias="sloTarget", gt=0, lt=100)
    sli_type: SliType = Field(default=SliType.AVAILABILITY, alias="sliType")

    @field_validator("selectors")
    @classmethod
    def validate_selector_labels(cls, v: Dict[str, str]) -> Dict[str, str]:
        for label in v:
            if not LABEL_NAME_PATTERN.match(label):
                raise ValueError(f"invalid label name {label!r}")
        return v

    @field_validator("eval_interval", "period")
    @classmethod
    def validate_duration(cls, v: str) -> str:
        parse_duration(v)
        return v


class MixinConfig(BaseModel):
    """Static product metadata threaded into rule labels and dashboards."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    product: str = Field(..., min_length=1, description="Mixin identifier")
    display_name: str = Field(..., min_length=1, alias="displayName")
    alert_routing_target: str = Field(..., min_length=1, alias="alertRoutingTarget")
    max_alert_severity: Severity = Field(default=Severity.WARNING, alias="maxAlertSeverity")
    grafana_url: str = Field(..., alias="grafanaUrl")
    alertmanager_url: str = Field(..., alias="alertmanagerUrl")
    environment: Optional[str] = None
    datasource: str = DEFAULT_DATASOURCE
    runbook_url: Optional[str] = Field(default=None, alias="runbookUrl")

    @field_validator("grafana_url", "alertmanager_url", "runbook_url")
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        return v.rstrip("/") if v else v


SliSpecMap = Dict[str, Dict[str, SliSpec]]


def parse_sli_spec(raw: Union[SliSpec, Mapping[str, Any]], product: str, sli_id: str) -> SliSpec:
    """Validate one raw SLI spec, reporting failures against product/SLI id."""
    if isinstance(raw, SliSpec):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedSpecError(
            f"SLI spec must be a mapping, got {type(raw).__name__}",
            product=product,
            sli_id=sli_id
        )
    try:
        return SliSpec.model_validate(dict(raw))
    except ValidationError as e:
        raise MalformedSpecError(_format_validation_error(e), product=product, sli_id=sli_id) from e


def parse_sli_specs(raw: Mapping[str, Mapping[str, Any]]) -> SliSpecMap:
    """Validate a product -> SLI id -> spec mapping, keeping insertion order."""
    if not isinstance(raw, Mapping):
        raise MixinConfigurationError("SLI definitions must be a mapping of product to SLIs")

    specs: SliSpecMap = {}
    for product, slis in raw.items():
        if not isinstance(slis, Mapping):
            raise MalformedSpecError("SLIs must be a mapping of SLI id to spec", product=product)
        specs[product] = {
            sli_id: parse_sli_spec(spec, product, sli_id)
            for sli_id, spec in slis.items()
        }
    return specs


def parse_mixin_config(raw: Union[MixinConfig, Mapping[str, Any]]) -> MixinConfig:
    if isinstance(raw, MixinConfig):
        return raw
    if not isinstance(raw, Mapping):
        raise MixinConfigurationError("Mixin config must be a mapping")
    try:
        return MixinConfig.model_validate(dict(raw))
    except ValidationError as e:
        raise MixinConfigurationError(f"Invalid mixin config: {_format_validation_error(e)}") from e


def load_mixin_definition(path: Union[str, Path]) -> Tuple[MixinConfig, SliSpecMap]:
    """
    Load a mixin definition file.

    The file holds a `config` mapping (the product configuration) and a
    `slis` mapping of product -> SLI id -> SLI spec.

    Args:
        path: Path to the YAML definition file

    Returns:
        Tuple of (config, specs by product)

    Raises:
        MixinConfigurationError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    try:
        with path.open() as f:
            document = yaml.safe_load(f)
    except FileNotFoundError:
        raise MixinConfigurationError(f"Mixin definition not found: {path}") from None
    except yaml.YAMLError as e:
        raise MixinConfigurationError(f"Mixin definition {path} is not valid YAML: {e}") from e

    if not isinstance(document, dict):
        raise MixinConfigurationError(f"Mixin definition {path} must be a mapping")

    missing = [key for key in ("config", "slis") if key not in document]
    if missing:
        raise MixinConfigurationError(
            f"Mixin definition {path} is missing keys: {', '.join(missing)}"
        )

    config = parse_mixin_config(document["config"])
    specs = parse_sli_specs(document["slis"])

    sli_count = sum(len(slis) for slis in specs.values())
    logger.info(f"Loaded mixin '{config.product}' from {path}: {len(specs)} products, {sli_count} SLIs")
    return config, specs


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        messages.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(messages)
