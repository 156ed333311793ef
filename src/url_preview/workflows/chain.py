"""Ordered callback chains that thread one evolving value."""

from __future__ import annotations

from typing import Any, List

from .module import Handler, Handlers, PreviewModule


def normalize_handlers(functions: Handlers) -> List[Handler]:
    """Return ``functions`` as a list: None -> [], callable -> [callable]."""

    if functions is None:
        return []
    if callable(functions):
        return [functions]
    return list(functions)


def run_chain(functions: Handlers, module: PreviewModule, *initial: Any) -> Any:
    """Run ``functions`` in order and return the last result.

    The first handler gets ``(module, initial)`` when an initial value is
    given, otherwise just ``(module)``; every later handler gets
    ``(module, previous_result)``.
    """

    handlers = normalize_handlers(functions)
    if len(initial) > 1:
        raise TypeError("run_chain takes at most one initial value")
    if not handlers:
        return initial[0] if initial else None
    result = handlers[0](module, *initial)
    for handler in handlers[1:]:
        result = handler(module, result)
    return result


__all__ = ["normalize_handlers", "run_chain"]
