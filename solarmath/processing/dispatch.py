"""
Dispatch and broadcasting of image math operations.

invoke() is the single entry point used by callers (script engines, tests,
the ImageMath facade). For every call it:

1. validates and names the arguments (FunctionSpec.bind);
2. broadcasts the operation when a broadcast argument holds a list, running
   one unit per element on the context's executor and keeping input order;
3. materializes lazily-stored images passed as broadcast arguments;
4. calls the implementation with the resolved arguments and the context.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from solarmath.core.context.processing_context import ProcessingContext
from solarmath.core.exceptions import InvalidArgumentsError, UnknownFunctionError
from solarmath.core.image.model import FileBackedImage
from solarmath.processing.func_registry import FunctionSpec, get_function

logger = logging.getLogger(__name__)

Arguments = Union[Sequence[Any], Mapping[str, Any], None]


def invoke(name: str, args: Arguments = None, context: Optional[ProcessingContext] = None) -> Any:
    """
    Invoke an operation by name.

    Args:
        name: Operation name.
        args: Positional values (list/tuple) or named values (mapping).
        context: Context of the current run. When omitted a temporary
            context with the default configuration is used for this call.

    Returns:
        The operation result: an image, a list (mirroring list inputs), a
        number or a string.

    Raises:
        UnknownFunctionError: If the operation does not exist.
        InvalidArgumentsError: If the arguments do not match the operation.
    """
    spec = get_function(name)
    bound = spec.bind(args)
    if context is None:
        with ProcessingContext() as temporary:
            return apply_bound(spec, bound, temporary)
    return apply_bound(spec, bound, context)


def apply_bound(spec: FunctionSpec, bound: Dict[str, Any], context: ProcessingContext) -> Any:
    """Broadcast, unwrap and call an operation whose arguments are already bound."""
    if spec.aggregate:
        return spec(bound, context)

    list_args = {p: bound[p] for p in spec.broadcast if isinstance(bound[p], (list, tuple))}
    if list_args:
        sizes = {p: len(v) for p, v in list_args.items()}
        if len(set(sizes.values())) > 1:
            detail = ", ".join(f"{p}={n}" for p, n in sizes.items())
            raise InvalidArgumentsError(
                f"Function '{spec.name}' requires list arguments of the same size, got {detail}"
            )
        count = next(iter(sizes.values()))

        def unit(index: int) -> Any:
            element_args = dict(bound)
            for param, values in list_args.items():
                element_args[param] = values[index]
            return apply_bound(spec, element_args, context)

        logger.debug(f"Broadcasting {spec.name} over {count} elements")
        return context.executor.map(unit, range(count), label=spec.name, progress=context.progress)

    for param in spec.broadcast:
        value = bound[param]
        if isinstance(value, FileBackedImage):
            bound = dict(bound)
            bound[param] = value.unwrap_to_memory()
    return spec(bound, context)


class ImageMath:
    """
    Programmatic facade over the operation catalog.

    Operations are reachable as methods: ``ImageMath(ctx).clahe(img, 8)`` is
    ``invoke("clahe", [img, 8], ctx)``. Positional and keyword arguments may
    be mixed; positional ones bind first.
    """

    def __init__(self, context: Optional[ProcessingContext] = None):
        self.context = context or ProcessingContext()

    def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        if not kwargs:
            return invoke(name, list(args), self.context)
        spec = get_function(name)
        names = [p.name for p in spec.params]
        if spec.max_args is not None and len(args) > spec.max_args:
            raise InvalidArgumentsError(spec.arity_message())
        named: Dict[str, Any] = dict(zip(names, args))
        if spec.variadic and len(args) > len(names):
            named[spec.variadic] = list(args[len(names):])
        duplicated = sorted(set(named) & set(kwargs))
        if duplicated:
            raise InvalidArgumentsError(
                f"Function '{spec.name}' got multiple values for: {', '.join(duplicated)}"
            )
        named.update(kwargs)
        return invoke(name, named, self.context)

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            get_function(name)
        except UnknownFunctionError as e:
            raise AttributeError(str(e)) from e
        return lambda *args, **kwargs: self.call(name, *args, **kwargs)

    def close(self) -> None:
        self.context.close()
