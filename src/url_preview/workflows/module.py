"""Preview module records."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Optional, Sequence, Union

Handler = Callable[..., Any]
Handlers = Union[Handler, Sequence[Handler], None]


@dataclass
class PreviewModule:
    """A named handler that previews URLs matching ``pattern``.

    Every callable field is optional; ``None`` selects the default behaviour
    implemented by the dispatcher. Fields below the divider are per-dispatch
    state and are only ever set on a private copy (see :meth:`copy`).
    """

    name: str
    pattern: str
    on_success: Handlers = None
    on_error: Handlers = None
    enabled: bool = True
    # Render at the end of this named buffer instead of next to the URL.
    buffer: Optional[str] = None

    # retrieve(module, url, anchor) replaces the whole retrieval strategy.
    retrieve: Optional[Handler] = None
    # retrieve_url(url) -> url | None; a falsy result declines the URL.
    retrieve_url: Optional[Handler] = None
    # retrieve_args(module) adds request options/extras to the copy before fetch.
    retrieve_args: Optional[Handler] = None
    # retrieve_error/retrieve_success(error | None, module, anchor)
    retrieve_error: Optional[Handler] = None
    retrieve_success: Optional[Handler] = None
    # display_at(buffer, anchor) -> Anchor
    display_at: Optional[Handler] = None
    # display(module, message_or_renderer, anchor)
    display: Optional[Handler] = None

    # -- per-dispatch state --
    url: Optional[str] = None
    content: Optional[bytes] = field(default=None, repr=False)
    request_options: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("module name cannot be empty")
        re.compile(self.pattern)

    def matches(self, url: str) -> bool:
        return re.search(self.pattern, url or "") is not None

    def copy(self) -> "PreviewModule":
        """Copy for a single dispatch; callables are shared, mutable state is not."""

        return replace(
            self,
            request_options=copy.deepcopy(self.request_options),
            extra=copy.deepcopy(self.extra),
        )


__all__ = ["Handler", "Handlers", "PreviewModule"]
