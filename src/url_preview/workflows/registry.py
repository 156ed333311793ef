"""Registry of preview modules keyed by unique name."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from .module import PreviewModule

logger = logging.getLogger(__name__)


class ModuleRegistry:
    """Ordered collection of modules; the first registration of a name wins."""

    def __init__(self) -> None:
        self._modules: Dict[str, PreviewModule] = {}

    def define(self, module: PreviewModule) -> bool:
        """Register ``module`` unless its name is taken. Returns True if added."""

        if module.name in self._modules:
            logger.debug("module %s already defined; keeping the first", module.name)
            return False
        self._modules[module.name] = module
        return True

    def find_by_name(self, name: str) -> Optional[PreviewModule]:
        return self._modules.get(name)

    def enabled_list(self) -> List[PreviewModule]:
        return [module for module in self._modules.values() if module.enabled]

    def enable(self, name: str) -> None:
        module = self._modules.get(name)
        if module is not None:
            module.enabled = True

    def disable(self, name: str) -> None:
        module = self._modules.get(name)
        if module is not None:
            module.enabled = False

    def names(self) -> List[str]:
        return list(self._modules)

    def __contains__(self, name: object) -> bool:
        return name in self._modules

    def __iter__(self) -> Iterator[PreviewModule]:
        return iter(list(self._modules.values()))

    def __len__(self) -> int:
        return len(self._modules)


__all__ = ["ModuleRegistry"]
