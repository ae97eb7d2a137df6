"""
Function registry for image math operations.

Operations are plain functions marked with the @image_function decorator. The
decorator derives the argument rules (required, optional and variadic
parameters) from the function signature and attaches a FunctionSpec to it.
The registry scans the processing.backends package on first use and records
every marked function by name.

Thread Safety:
    All functions in this module are thread-safe and use a lock to ensure
    consistent access to the global registry.
"""
from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from solarmath.core.exceptions import InvalidArgumentsError, UnknownFunctionError

logger = logging.getLogger(__name__)

# Thread-safe lock for registry access
_registry_lock = threading.RLock()

# Global registry of operations by name
FUNC_REGISTRY: Dict[str, "FunctionSpec"] = {}

# Flag to track if the registry has been initialized
_registry_initialized = False

SPEC_ATTRIBUTE = "__image_function__"
CONTEXT_PARAMETER = "context"


@dataclass(frozen=True)
class ParamSpec:
    """One named argument of an operation."""
    name: str
    required: bool
    default: Any = None

    def describe(self) -> str:
        return self.name if self.required else f"{self.name} (optional)"


@dataclass(frozen=True)
class FunctionSpec:
    """
    Argument rules and dispatch flags of an operation.

    Attributes:
        name: Name the operation is invoked by.
        func: Implementation; receives the bound arguments plus context=.
        params: Named parameters in positional order.
        variadic: Name of the *args parameter, if any.
        broadcast: Parameters whose list values trigger element-wise application.
        aggregate: Whether list arguments are passed whole instead of broadcast.
        description: First line of the implementation's docstring.
    """
    name: str
    func: Callable[..., Any]
    params: Tuple[ParamSpec, ...]
    variadic: Optional[str]
    broadcast: Tuple[str, ...]
    aggregate: bool
    description: str = ""

    @property
    def min_args(self) -> int:
        return sum(1 for p in self.params if p.required)

    @property
    def max_args(self) -> Optional[int]:
        return None if self.variadic else len(self.params)

    def describe(self) -> str:
        parts = [p.describe() for p in self.params]
        if self.variadic:
            parts.append(f"{self.variadic}...")
        return ", ".join(parts)

    def arity_message(self) -> str:
        if self.max_args is None:
            expected = f"expects at least {self.min_args} arguments"
        elif self.min_args == self.max_args:
            expected = f"expects {self.min_args} arguments"
        else:
            expected = f"expects between {self.min_args} and {self.max_args} arguments"
        return f"Function '{self.name}' {expected}: [{self.describe()}]"

    def bind(self, args: Union[Sequence[Any], Mapping[str, Any], None]) -> Dict[str, Any]:
        """
        Validate arguments and map them to parameter names.

        Args:
            args: Positional values (sequence) or named values (mapping).

        Returns:
            Mapping of every parameter name to its value, defaults filled in.
            The variadic parameter, if any, maps to a list.

        Raises:
            InvalidArgumentsError: On wrong arity, unknown or missing arguments.
        """
        if args is None:
            args = ()
        names = [p.name for p in self.params]
        bound: Dict[str, Any] = {}

        if isinstance(args, Mapping):
            allowed = set(names)
            if self.variadic:
                allowed.add(self.variadic)
            unknown = [k for k in args if k not in allowed]
            if unknown:
                raise InvalidArgumentsError(
                    f"Function '{self.name}' does not accept arguments: {', '.join(map(str, unknown))}. "
                    f"Expected: [{self.describe()}]"
                )
            bound.update(args)
            if self.variadic and self.variadic in bound:
                value = bound[self.variadic]
                bound[self.variadic] = list(value) if isinstance(value, (list, tuple)) else [value]
        elif isinstance(args, (list, tuple)):
            if self.max_args is not None and len(args) > self.max_args:
                raise InvalidArgumentsError(self.arity_message())
            bound.update(zip(names, args))
            if self.variadic:
                bound[self.variadic] = list(args[len(names):])
        else:
            raise InvalidArgumentsError(
                f"Function '{self.name}' expects a list or a mapping of arguments, got {type(args).__name__}"
            )

        missing = [p.name for p in self.params if p.required and p.name not in bound]
        if missing:
            if isinstance(args, Mapping):
                raise InvalidArgumentsError(
                    f"Function '{self.name}' is missing required arguments: {', '.join(missing)}"
                )
            raise InvalidArgumentsError(self.arity_message())

        for param in self.params:
            if param.name not in bound:
                bound[param.name] = param.default
        if self.variadic and self.variadic not in bound:
            bound[self.variadic] = []
        return bound

    def __call__(self, bound: Mapping[str, Any], context) -> Any:
        positional = [bound[p.name] for p in self.params]
        if self.variadic:
            positional.extend(bound[self.variadic])
        return self.func(*positional, context=context)


def _build_spec(func: Callable, name: str, broadcast: Tuple[str, ...], aggregate: bool) -> FunctionSpec:
    signature = inspect.signature(func)
    params: List[ParamSpec] = []
    variadic = None
    has_context = False
    for parameter in signature.parameters.values():
        if parameter.kind is inspect.Parameter.KEYWORD_ONLY:
            if parameter.name != CONTEXT_PARAMETER:
                raise TypeError(f"Operation '{name}': keyword-only parameter '{parameter.name}' is not supported")
            has_context = True
        elif parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            variadic = parameter.name
        elif parameter.kind is inspect.Parameter.VAR_KEYWORD:
            raise TypeError(f"Operation '{name}': **kwargs is not supported")
        else:
            required = parameter.default is inspect.Parameter.empty
            params.append(ParamSpec(parameter.name, required, None if required else parameter.default))
    if not has_context:
        raise TypeError(f"Operation '{name}' must accept a keyword-only 'context' parameter")

    known = {p.name for p in params} | ({variadic} if variadic else set())
    for target in broadcast:
        if target not in known:
            raise TypeError(f"Operation '{name}': broadcast parameter '{target}' is not a parameter")

    doc = inspect.getdoc(func) or ""
    return FunctionSpec(
        name=name,
        func=func,
        params=tuple(params),
        variadic=variadic,
        broadcast=tuple(broadcast),
        aggregate=aggregate,
        description=doc.splitlines()[0] if doc else "",
    )


def image_function(name: Optional[str] = None, broadcast: Sequence[str] = ("img",),
                   aggregate: bool = False) -> Callable[[Callable], Callable]:
    """
    Mark a function as an image math operation.

    Args:
        name: Operation name; defaults to the function name.
        broadcast: Parameters broadcast element-wise when given a list.
        aggregate: Pass list arguments whole instead of broadcasting.

    Returns:
        Decorator attaching a FunctionSpec to the function.
    """
    def decorator(func: Callable) -> Callable:
        spec = _build_spec(func, name or func.__name__, tuple(() if aggregate else broadcast), aggregate)
        setattr(func, SPEC_ATTRIBUTE, spec)
        return func
    return decorator


def register_function(spec: FunctionSpec) -> None:
    """
    Add an operation to the registry.

    Raises:
        ValueError: If another implementation is already registered under the name.
    """
    with _registry_lock:
        existing = FUNC_REGISTRY.get(spec.name)
        if existing is not None and existing.func is not spec.func:
            raise ValueError(f"Operation '{spec.name}' is already registered by {existing.func.__module__}")
        FUNC_REGISTRY[spec.name] = spec


def _scan_and_register_functions() -> None:
    """Import every module of processing.backends and register the marked functions."""
    from solarmath.processing import backends

    package = backends.__name__
    for _, module_name, is_pkg in pkgutil.walk_packages(backends.__path__, f"{package}."):
        module = importlib.import_module(module_name)
        if is_pkg:
            continue
        function_count = 0
        for _, obj in inspect.getmembers(module, inspect.isfunction):
            spec = getattr(obj, SPEC_ATTRIBUTE, None)
            if spec is not None and obj.__module__ == module.__name__:
                register_function(spec)
                function_count += 1
        logger.debug(f"Module {module_name}: registered {function_count} operations")


def initialize_registry() -> None:
    """
    Populate the registry. Called automatically on first lookup.

    Thread-safe: Uses a lock to ensure consistent access to the global registry.
    """
    global _registry_initialized
    with _registry_lock:
        if _registry_initialized:
            return
        _scan_and_register_functions()
        _registry_initialized = True
        logger.info(f"Function registry initialized with {len(FUNC_REGISTRY)} operations")


def get_function(name: str) -> FunctionSpec:
    """
    Look up an operation by name (case-insensitive).

    Raises:
        UnknownFunctionError: If no operation has this name.
    """
    initialize_registry()
    with _registry_lock:
        spec = FUNC_REGISTRY.get(name) or FUNC_REGISTRY.get(str(name).lower())
    if spec is None:
        raise UnknownFunctionError(f"Unknown function '{name}'")
    return spec


def list_functions() -> List[str]:
    """Sorted names of every registered operation."""
    initialize_registry()
    with _registry_lock:
        return sorted(FUNC_REGISTRY)
