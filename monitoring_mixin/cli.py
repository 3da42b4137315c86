"""
Deployment driver

Loads a mixin definition, builds it and writes the artifacts:

    <output>/<mixin>/prometheus-rules/<mixin>-recording-rules.yaml
    <output>/<mixin>/prometheus-rules/<mixin>-alerting-rules.yaml
    <output>/<mixin>/grafana-dashboards/<product>.json
    <output>/<mixin>/grafana-dashboards/<mixin>-summary.json

The mixin output directory is cleared only once the build has succeeded,
so a failed build leaves the previous artifacts in place.
"""
from pathlib import Path
from typing import List, Optional, Sequence
import argparse
import logging
import os
import shutil
import sys

from .builder import MixinArtifacts, build_mixin
from .config import load_mixin_definition
from .errors import MixinError
from .generators.grafana_generator import dump_dashboard_json
from .generators.recording_rule_generator import dump_rules_yaml


logger = logging.getLogger(__name__)

DEFAULT_INPUT_DIR = os.getenv("MIXIN_INPUT_DIR", "monitoring-config")
DEFAULT_OUTPUT_DIR = os.getenv("MIXIN_OUTPUT_DIR")
DEFAULT_LOG_LEVEL = os.getenv("MIXIN_LOG_LEVEL", "INFO")


def write_artifacts(
    artifacts: MixinArtifacts,
    output_dir: Path,
    mixin: str,
    rules: bool = True,
    dashboards: bool = True
) -> List[Path]:
    """
    Replace the mixin output directory with freshly built artifacts.

    Args:
        artifacts: Build output
        output_dir: Root output directory
        mixin: Mixin name (output subdirectory and file prefix)
        rules: Write the Prometheus rule files
        dashboards: Write the Grafana dashboards

    Returns:
        Paths of the written files
    """
    mixin_dir = Path(output_dir) / mixin
    if mixin_dir.exists():
        logger.info(f"Clearing previous output in {mixin_dir}")
        shutil.rmtree(mixin_dir)

    written: List[Path] = []

    if rules:
        rules_dir = mixin_dir / "prometheus-rules"
        rules_dir.mkdir(parents=True, exist_ok=True)
        for name, document in (
            (f"{mixin}-recording-rules.yaml", artifacts.recording_rules),
            (f"{mixin}-alerting-rules.yaml", artifacts.alerting_rules),
        ):
            path = rules_dir / name
            path.write_text(dump_rules_yaml(document))
            written.append(path)

    if dashboards:
        dashboards_dir = mixin_dir / "grafana-dashboards"
        dashboards_dir.mkdir(parents=True, exist_ok=True)
        for product, dashboard in artifacts.dashboards.items():
            path = dashboards_dir / f"{product}.json"
            path.write_text(dump_dashboard_json(dashboard))
            written.append(path)
        summary_path = dashboards_dir / f"{mixin}-summary.json"
        summary_path.write_text(dump_dashboard_json(artifacts.summary_dashboard))
        written.append(summary_path)

    for path in written:
        logger.info(f"Wrote {path}")
    return written


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="monitoring-mixin",
        description="Compile SLI definitions into Prometheus rules and Grafana dashboards"
    )
    parser.add_argument("-m", "--mixin", required=True,
                        help="Mixin name; reads <input>/mixin-defs/<mixin>.yaml")
    parser.add_argument("-i", "--input-dir", default=DEFAULT_INPUT_DIR,
                        help="Directory holding mixin-defs/ (default: %(default)s)")
    parser.add_argument("-o", "--output-dir", default=DEFAULT_OUTPUT_DIR,
                        help="Output directory (default: <input>/output)")
    parser.add_argument("-r", "--rules", action="store_true",
                        help="Write Prometheus rule files")
    parser.add_argument("-d", "--dashboards", action="store_true",
                        help="Write Grafana dashboards")
    parser.add_argument("--log-level", default=DEFAULT_LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: %(default)s)")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    input_dir = Path(args.input_dir)
    output_dir = Path(args.output_dir) if args.output_dir else input_dir / "output"
    # Neither flag means both
    write_rules = args.rules or not args.dashboards
    write_dashboards = args.dashboards or not args.rules

    definition = input_dir / "mixin-defs" / f"{args.mixin}.yaml"
    try:
        config, specs = load_mixin_definition(definition)
        artifacts = build_mixin(config, specs)
    except MixinError as e:
        logger.error(f"Build of mixin '{args.mixin}' failed: {e}")
        return 1

    write_artifacts(
        artifacts,
        output_dir,
        args.mixin,
        rules=write_rules,
        dashboards=write_dashboards
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
