"""Runtime configuration for the ``scope-perf`` tools.

Defaults live in the attrs ``ScopePerfConfig`` class. A YAML file and
``key=value`` dot-list overrides are merged on top with OmegaConf, and the
merged tree is structured back into attrs with the shared cattrs converter::

    cfg = load_config("scope_perf.yaml", ["report.unit=ns", "serve.bind=0.0.0.0:9000"])
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from attrs import define, field
from attrs.validators import in_, instance_of
from omegaconf import OmegaConf  # type: ignore[import-untyped]

from scope_perf.contracts.convert import converter

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@define(kw_only=True)
class LoggingConfig:
    """Root logger setup for CLI runs."""

    level: str = field(default="INFO", validator=[in_(["DEBUG", "INFO", "WARNING", "ERROR"])])
    file: Optional[str] = field(default=None)


@define(kw_only=True)
class ReportConfig:
    """Console/Markdown report options."""

    unit: str = field(default="ms", validator=[in_(["s", "ms", "ns"])])
    float_format: str = field(default=".6f", validator=[instance_of(str)])


@define(kw_only=True)
class ChartConfig:
    """Timings chart geometry (inches/dpi as understood by matplotlib)."""

    width_in: float = field(default=12.0, validator=[instance_of(float)])
    height_in: float = field(default=6.0, validator=[instance_of(float)])
    dpi: int = field(default=100, validator=[instance_of(int)])


@define(kw_only=True)
class ServeConfig:
    """Chart server binding."""

    bind: str = field(default="localhost:8080", validator=[instance_of(str)])


@define(kw_only=True)
class ScopePerfConfig:
    """Top-level configuration."""

    logging: LoggingConfig = field(factory=LoggingConfig)
    report: ReportConfig = field(factory=ReportConfig)
    chart: ChartConfig = field(factory=ChartConfig)
    serve: ServeConfig = field(factory=ServeConfig)


def load_config(path: str | Path | None = None, overrides: Sequence[str] | None = None) -> ScopePerfConfig:
    """Return defaults merged with an optional YAML file and dot-list overrides.

    Parameters
    ----------
    path : str or Path, optional
        YAML file with a subset of the configuration tree.
    overrides : sequence of str, optional
        ``key=value`` strings such as ``report.unit=ns``.

    Raises
    ------
    FileNotFoundError
        If ``path`` is given but does not exist.
    """

    base = OmegaConf.create(converter.unstructure(ScopePerfConfig()))
    layers = [base]
    if path is not None:
        p = Path(path)
        if not p.is_file():
            raise FileNotFoundError(f"Config file not found: {p}")
        layers.append(OmegaConf.load(p))
    if overrides:
        layers.append(OmegaConf.from_dotlist(list(overrides)))
    merged = OmegaConf.to_container(OmegaConf.merge(*layers), resolve=True)
    return converter.structure(merged, ScopePerfConfig)


def setup_logging(cfg: LoggingConfig) -> None:
    """Configure the root logger with a stream handler and optional file handler."""

    logging.captureWarnings(True)
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, cfg.level))
    fmt = logging.Formatter(LOG_FORMAT)
    if not root_logger.handlers:
        sh = logging.StreamHandler()
        sh.setFormatter(fmt)
        root_logger.addHandler(sh)
    if cfg.file:
        fh = logging.FileHandler(cfg.file, encoding="utf-8")
        fh.setFormatter(fmt)
        root_logger.addHandler(fh)
