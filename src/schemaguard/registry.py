"""Type registry and exclusion set.

Some named types are deliberately left unmodeled: any value is accepted for
them. They are declared once, before the schema store is built, and the
resulting :class:`ExclusionSet` is immutable.

Example:
    >>> registry = TypeRegistry()
    >>> registry.register("RawPayload")
    >>> exclusions = registry.freeze()
    >>> exclusions.is_excluded("RawPayload")
    True
"""

import logging
import threading
from collections.abc import Iterable, Iterator

from .errors import RegistryFrozenError

logger = logging.getLogger(__name__)


class ExclusionSet:
    """Immutable set of type names excluded from validation.

    Safe for unsynchronized concurrent reads.
    """

    __slots__ = ("_names",)

    def __init__(self, names: Iterable[str] = ()):
        self._names = frozenset(names)

    def is_excluded(self, name: str) -> bool:
        return name in self._names

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"ExclusionSet({sorted(self._names)!r})"


class TypeRegistry:
    """Collects excluded type names during the build step.

    ``register`` may be called until ``freeze`` is; afterwards the registry
    only answers lookups.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._names: set[str] = set()
        self._frozen: ExclusionSet | None = None
        self._lock = threading.Lock()
        for name in names:
            self.register(name)

    @property
    def frozen(self) -> bool:
        return self._frozen is not None

    def register(self, name: str) -> None:
        """Exclude ``name`` from validation.

        Raises:
            RegistryFrozenError: If the registry has already been frozen
        """
        with self._lock:
            if self._frozen is not None:
                raise RegistryFrozenError(
                    f"Cannot register type '{name}': the exclusion registry is frozen"
                )
            if name in self._names:
                logger.debug(f"Type {name} already excluded")
                return
            self._names.add(name)
            logger.debug(f"Excluded type {name} from validation")

    def is_excluded(self, name: str) -> bool:
        if self._frozen is not None:
            return self._frozen.is_excluded(name)
        with self._lock:
            return name in self._names

    def freeze(self) -> ExclusionSet:
        """Stop accepting registrations and return the immutable set."""
        with self._lock:
            if self._frozen is None:
                self._frozen = ExclusionSet(self._names)
                logger.info(f"Exclusion registry frozen with {len(self._names)} type(s)")
            return self._frozen
