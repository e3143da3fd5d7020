from __future__ import annotations
import bisect
from typing import Dict, List, Type

from .loader_base import StreamLoaderBase
from .model import LoaderNotSupportedError


class LoaderRegistry:
    def __init__(self) -> None:
        self._by_name: Dict[str, Type[StreamLoaderBase]] = {}
        self._loaders: List[tuple[int, str, Type[StreamLoaderBase]]] = []   # sorted by priority

    # called from StreamLoaderBase.__init_subclass__
    def register(self, loader_cls: Type[StreamLoaderBase]) -> None:
        previous = self._by_name.get(loader_cls.type_name)
        if previous is not None:
            self._loaders = [e for e in self._loaders if e[2] is not previous]
        # Use (priority, type_name, loader_cls) to ensure stable sorting
        bisect.insort(self._loaders, (loader_cls.priority, loader_cls.type_name, loader_cls))
        self._by_name[loader_cls.type_name] = loader_cls

    def names(self) -> list[str]:
        return [name for _, name, _ in self._loaders]

    def get(self, name: str) -> Type[StreamLoaderBase]:
        try:
            return self._by_name[name]
        except KeyError:
            raise LoaderNotSupportedError(f"Unknown loader: {name}") from None

    def choose(self, name: str | None = None) -> Type[StreamLoaderBase]:
        # 1) explicit request still has to pass the capability probe
        if name is not None:
            loader_cls = self.get(name)
            if not loader_cls.is_supported():
                raise LoaderNotSupportedError(f"Loader {name!r} is not supported in this environment")
            return loader_cls
        # 2) first supported by priority
        for _, _, loader_cls in self._loaders:
            if loader_cls.is_supported():
                return loader_cls
        raise LoaderNotSupportedError("No supported loader backend available")


# singleton used project-wide
_REGISTRY = LoaderRegistry()
