"""
Global configuration dataclasses for solarmath.

This module defines the configuration objects consulted by the operations
when an optional argument is omitted (tile size, PSF radius, banding passes,
...), plus the worker pool size and the storage used for lazily-stored
images. Configuration is intended to be immutable and provided as Python
objects, optionally loaded from a YAML file.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from solarmath.constants import constants as C
from solarmath.constants.constants import Backend

logger = logging.getLogger(__name__)

NUM_WORKERS_ENV = "SOLARMATH_NUM_WORKERS"


def _default_num_workers() -> int:
    """Worker count from SOLARMATH_NUM_WORKERS, else the CPU count."""
    raw = os.getenv(NUM_WORKERS_ENV)
    if raw:
        try:
            value = int(raw)
            if value > 0:
                return value
        except ValueError:
            pass
        logger.warning(f"Ignoring invalid {NUM_WORKERS_ENV}={raw!r}")
    return os.cpu_count() or 1


@dataclass(frozen=True)
class DeconvolutionConfig:
    """Defaults for Richardson-Lucy deconvolution."""
    radius: float = C.DEFAULT_PSF_RADIUS
    """Radius of the Gaussian point-spread function, in pixels."""

    sigma: float = C.DEFAULT_PSF_SIGMA
    """Gaussian sigma of the point-spread function."""

    iterations: int = C.DEFAULT_RL_ITERATIONS
    """Number of multiplicative update iterations."""


@dataclass(frozen=True)
class ClaheConfig:
    """Defaults for tile-based contrast equalization."""
    tile_size: int = C.DEFAULT_CLAHE_TILE_SIZE
    """Tile edge length in pixels."""

    bins: int = C.DEFAULT_CLAHE_BINS
    """Histogram bin count per tile."""

    clip: float = C.DEFAULT_CLAHE_CLIP
    """Clip factor applied to the average bin population."""


@dataclass(frozen=True)
class BandingConfig:
    """Defaults for horizontal banding reduction."""
    band_size: int = C.DEFAULT_BAND_SIZE
    passes: int = C.DEFAULT_BANDING_PASSES


@dataclass(frozen=True)
class BackgroundConfig:
    """Defaults for background removal and modelling."""
    tolerance: float = C.DEFAULT_BG_TOLERANCE
    """Scale of the subtracted background; 0 disables removal."""

    model_order: int = C.DEFAULT_BG_MODEL_ORDER
    """Polynomial degree of the background model."""

    model_sigma: float = C.DEFAULT_BG_MODEL_SIGMA
    """Sigma-clipping factor for background samples."""

    neutralize_iterations: int = C.DEFAULT_NEUTRALIZE_ITERATIONS
    """Fit-and-subtract rounds of background neutralization."""


@dataclass(frozen=True)
class BlendConfig:
    """Defaults for the radial disk/prominence blend."""
    start: float = C.DEFAULT_BLEND_START
    """Normalized distance where the ramp leaves the disk image."""

    end: float = C.DEFAULT_BLEND_END
    """Normalized distance where the ramp reaches the prominence image."""


@dataclass(frozen=True)
class StorageConfig:
    """Configuration for the storage backing lazily-stored images."""
    backend: Backend = C.DEFAULT_BACKEND
    """Backend of ProcessingContext.storage, where ProcessingContext.store persists images."""

    root: Optional[Path] = None
    """Directory for the disk backend. None uses the XDG cache directory."""


@dataclass(frozen=True)
class SolarMathConfig:
    """
    Root configuration object for a solarmath session.
    This object is intended to be instantiated once per run and treated as immutable.
    """
    num_workers: int = field(default_factory=_default_num_workers)
    """Number of worker threads used to broadcast operations over lists."""

    deconvolution: DeconvolutionConfig = field(default_factory=DeconvolutionConfig)
    clahe: ClaheConfig = field(default_factory=ClaheConfig)
    banding: BandingConfig = field(default_factory=BandingConfig)
    background: BackgroundConfig = field(default_factory=BackgroundConfig)
    blend: BlendConfig = field(default_factory=BlendConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    spectral_rays_file: Optional[Path] = None
    """Optional YAML file adding spectral rays to the built-in table."""


_SECTIONS = {
    "deconvolution": DeconvolutionConfig,
    "clahe": ClaheConfig,
    "banding": BandingConfig,
    "background": BackgroundConfig,
    "blend": BlendConfig,
    "storage": StorageConfig,
}


def get_default_config() -> SolarMathConfig:
    """
    Provides a default instance of SolarMathConfig.

    Used whenever a ProcessingContext is created without an explicit config.
    """
    logger.debug("Initializing with default SolarMathConfig.")
    return SolarMathConfig()


def _build_section(name: str, section_cls, data: Any):
    """Merge a YAML mapping over the defaults of one config section."""
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        logger.warning(f"Config section '{name}' is not a mapping. Using defaults.")
        return section_cls()

    known = {f.name for f in dataclasses.fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown keys in config section '{name}': {sorted(unknown)}")

    values = {k: v for k, v in data.items() if k in known}
    if section_cls is StorageConfig:
        if "backend" in values:
            values["backend"] = Backend(values["backend"])
        if values.get("root") is not None:
            values["root"] = Path(values["root"])
    return section_cls(**{**dataclasses.asdict(section_cls()), **values})


def config_from_dict(loaded_data: Dict[str, Any]) -> SolarMathConfig:
    """
    Construct a SolarMathConfig from a plain mapping (typically parsed YAML).

    Sections that fail to construct fall back to their defaults with a warning.

    Args:
        loaded_data: Mapping with optional 'num_workers', 'spectral_rays_file'
            and one nested mapping per section.

    Returns:
        The resulting configuration.
    """
    loaded_data = dict(loaded_data)
    sections = {}
    for name, section_cls in _SECTIONS.items():
        raw = loaded_data.pop(name, None)
        try:
            sections[name] = _build_section(name, section_cls, raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid config section '{name}': {e}. Using defaults.")
            sections[name] = section_cls()

    num_workers = loaded_data.pop("num_workers", None)
    rays_file = loaded_data.pop("spectral_rays_file", None)
    if loaded_data:
        logger.warning(f"Ignoring unknown top-level config keys: {sorted(loaded_data)}")

    kwargs: Dict[str, Any] = dict(sections)
    if num_workers is not None:
        if isinstance(num_workers, int) and num_workers > 0:
            kwargs["num_workers"] = num_workers
        else:
            logger.warning(f"Invalid num_workers {num_workers!r}. Using default.")
    if rays_file is not None:
        kwargs["spectral_rays_file"] = Path(rays_file)
    return SolarMathConfig(**kwargs)


def load_config(config_file: Optional[Union[str, Path]] = None) -> SolarMathConfig:
    """
    Load configuration from a YAML file with error handling.

    Args:
        config_file: Path to the YAML file. None reads config.yaml from the
            solarmath config directory.

    Returns:
        The loaded configuration, or the default configuration when the file
        is missing, empty or cannot be parsed.
    """
    if config_file is None:
        from solarmath.core.xdg_paths import get_config_file_path
        config_file = get_config_file_path()
    config_file = Path(config_file)

    if not config_file.exists():
        logger.info(f"No config file at {config_file}. Using default config.")
        return get_default_config()

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            loaded_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning(f"Error parsing YAML from {config_file}: {e}. Using default config.")
        return get_default_config()

    if not loaded_data or not isinstance(loaded_data, dict):
        logger.warning(f"Config file {config_file} is empty or not a valid structure. Using default config.")
        return get_default_config()

    config = config_from_dict(loaded_data)
    logger.info(f"Loaded solarmath config from {config_file}")
    return config
