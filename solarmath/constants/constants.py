"""
Consolidated constants for solarmath.

This module defines the pixel range, the default parameters of the numeric
operations and the enums shared by the image model, storage and dispatch.
"""

from enum import Enum

# Pixel range
MAX_PIXEL_VALUE = 65535.0
COLOR_CHANNEL_MAX = 255.0


class ImageKind(Enum):
    MONO = "mono"
    COLOR = "color"
    COLORIZED = "colorized"
    FILE_BACKED = "file_backed"


class MetadataCategory(Enum):
    ELLIPSE = "ellipse"
    PIXEL_SHIFT = "pixel_shift"
    SOURCE_INFO = "source_info"
    PROCESS_PARAMS = "process_params"
    SOLAR_PARAMETERS = "solar_parameters"
    PROPERTIES = "properties"


# Backend-related constants
class Backend(Enum):
    DISK = "disk"
    MEMORY = "memory"


DEFAULT_BACKEND = Backend.MEMORY
STORED_IMAGE_EXTENSION = ".npy"

# Convolution / deconvolution defaults
DEFAULT_KERNEL_SIZE = 3
DEFAULT_UNSHARP_STRENGTH = 1.0
DEFAULT_PSF_RADIUS = 2.5
DEFAULT_PSF_SIGMA = 2.5
DEFAULT_RL_ITERATIONS = 5
RL_EPSILON = 1e-7

# CLAHE defaults
DEFAULT_CLAHE_TILE_SIZE = 16
DEFAULT_CLAHE_BINS = 256
DEFAULT_CLAHE_CLIP = 1.0

# Banding defaults
DEFAULT_BAND_SIZE = 24
DEFAULT_BANDING_PASSES = 4
BANDING_DISK_AVERAGE_WEIGHT = 0.15
BANDING_MAX_CORRECTION = 0.05
BANDING_MIN_SAMPLES = 3

# Background defaults
DEFAULT_BG_TOLERANCE = 0.9
DEFAULT_BG_MODEL_ORDER = 2
DEFAULT_BG_MODEL_SIGMA = 2.5
DEFAULT_NEUTRALIZE_ITERATIONS = 1
NEUTRALIZE_SAMPLE_STEP = 8
BG_MODEL_GRID_DIVISIONS = 32
BG_MODEL_RIDGE = 1e-6
MAX_BG_MODEL_ORDER = 4

# Colorization
COLORIZE_GAMMA = 1.2
COLORIZE_STRETCH_RATIO = 0.9

# Blending defaults
DEFAULT_BLEND_START = 1.0
DEFAULT_BLEND_END = 1.05

# Disk fill sub-pixel sampling
DISK_FILL_SAMPLES = 4
FULL_COVERAGE = 0.999
NO_COVERAGE = 0.001

# Metadata merge
ELLIPSE_MERGE_SAMPLES = 8

# Pixel shift range defaults
DEFAULT_MIN_PIXEL_SHIFT = -15.0
DEFAULT_MAX_PIXEL_SHIFT = 15.0
DEFAULT_PIXEL_SHIFT_STEP = 0.25

# Utilities
DEFAULT_SORT_ORDER = "date"
DEFAULT_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
PROGRESS_LABEL_PREFIX = "ImageMath"
