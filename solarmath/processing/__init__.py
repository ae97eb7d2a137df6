"""
Image math operations for solarmath.

Operations live in the backends subpackages and are marked with the
@image_function decorator. They are discovered on first lookup and invoked by
name through invoke() or the ImageMath facade, which take care of argument
validation and list broadcasting.
"""

from solarmath.processing.dispatch import ImageMath, apply_bound, invoke
from solarmath.processing.func_registry import (
    FUNC_REGISTRY,
    FunctionSpec,
    get_function,
    image_function,
    initialize_registry,
    list_functions,
)

__all__ = [
    "FUNC_REGISTRY",
    "FunctionSpec",
    "ImageMath",
    "apply_bound",
    "get_function",
    "image_function",
    "initialize_registry",
    "invoke",
    "list_functions",
]
