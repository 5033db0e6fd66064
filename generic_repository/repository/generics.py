"""
Resolve the type arguments a class binds to a generic ancestor.

    class AuditedRepository(Repository[T, ShopContext]): ...
    class OrderRepository(AuditedRepository[Order]): ...

    resolve_type_arguments(OrderRepository, Repository) == (Order, ShopContext)
"""

from typing import Any, Dict, Optional, Tuple, TypeVar, get_args, get_origin


def resolve_type_arguments(cls: type, target: type) -> Optional[Tuple[Any, ...]]:
    """Return the arguments bound to target's parameters along cls's bases, or None."""
    return _resolve(cls, target, {})


def _resolve(cls: type, target: type, substitutions: Dict[Any, Any]) -> Optional[Tuple[Any, ...]]:
    for base in cls.__dict__.get("__orig_bases__", cls.__bases__):
        origin = get_origin(base) or base
        if not isinstance(origin, type) or not issubclass(origin, target):
            continue
        args = tuple(substitutions.get(arg, arg) for arg in get_args(base))
        if origin is target:
            return args
        found = _resolve(origin, target, dict(zip(getattr(origin, "__parameters__", ()), args)))
        if found is not None:
            return found
    return None


def is_bound(args: Optional[Tuple[Any, ...]]) -> bool:
    """True when every argument is a concrete type rather than a TypeVar."""
    return bool(args) and not any(isinstance(arg, TypeVar) for arg in args)


def is_generic_definition(cls: type) -> bool:
    """True for classes that still declare unbound type parameters."""
    return bool(getattr(cls, "__parameters__", ()))
