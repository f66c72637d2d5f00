"""Immutable query builder for chained find operations.

A QueryChain accumulates a filter, sort keys, a result limit and a projection. Every clause method returns a new
chain and leaves the receiver untouched; nothing is sent to the store until :meth:`QueryChain.exec` is awaited.

Example:
    .. code-block:: python

        chain = backend.query({"favoriteFoods": "burrito"}).sort("name").limit(2).select({"age": 0})
        people = await chain.exec()
"""

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Type

from beanie import SortDirection
from pydantic import BaseModel, ConfigDict, create_model

if TYPE_CHECKING:
    from rolodex.database.backends.rolodex_odm_backend import RolodexODMBackend

# Bookkeeping fields that never belong in a projection
_INTERNAL_FIELDS = {"revision_id"}
_ID_FIELD = "id"

SortKey = str | Tuple[str, int | SortDirection]


def _parse_sort_key(key: SortKey) -> Tuple[str, SortDirection]:
    if isinstance(key, tuple):
        name, direction = key
        return name, SortDirection(int(direction))
    if key.startswith("-"):
        return key[1:], SortDirection.DESCENDING
    if key.startswith("+"):
        return key[1:], SortDirection.ASCENDING
    return key, SortDirection.ASCENDING


@dataclass(frozen=True)
class QueryChain:
    """A pending find query. Build it with clause methods, run it with ``await chain.exec()``."""

    backend: Optional["RolodexODMBackend"] = field(default=None, compare=False, repr=False)
    filter: Mapping[str, Any] = field(default_factory=dict)
    sort_keys: Tuple[Tuple[str, SortDirection], ...] = ()
    max_results: Optional[int] = None
    included: FrozenSet[str] = frozenset()
    excluded: FrozenSet[str] = frozenset()

    def where(self, filter: Mapping[str, Any]) -> "QueryChain":
        """Return a chain whose filter also requires the given conditions."""
        return replace(self, filter={**self.filter, **filter})

    def sort(self, *keys: SortKey) -> "QueryChain":
        """Return a chain sorted by the given keys, applied after any existing sort keys.

        Keys may be ``"name"``, ``"+name"``, ``"-name"`` or ``("name", 1)`` / ``("name", -1)``.
        """
        return replace(self, sort_keys=self.sort_keys + tuple(_parse_sort_key(k) for k in keys))

    def limit(self, max_results: int) -> "QueryChain":
        if max_results < 0:
            raise ValueError(f"limit must be non-negative, got {max_results}")
        return replace(self, max_results=max_results)

    def select(self, projection: Mapping[str, int]) -> "QueryChain":
        """Return a chain with a projection applied, mongoose style: ``0`` hides a field, ``1`` keeps it.

        Raises:
            ValueError: If the projection mixes inclusion and exclusion.
        """
        included = self.included | {k for k, v in projection.items() if v}
        excluded = self.excluded | {k for k, v in projection.items() if not v}
        if included and excluded:
            raise ValueError("Projection cannot mix inclusion and exclusion")
        return replace(self, included=frozenset(included), excluded=frozenset(excluded))

    @property
    def has_projection(self) -> bool:
        return bool(self.included or self.excluded)

    def projection_model(self, model_cls: Type[BaseModel]) -> Optional[Type[BaseModel]]:
        """Build the model that results are parsed into, holding only the projected fields.

        Field names in the projection are store keys (aliases), matched against each field's alias or name. The
        document id is always kept.
        """
        if not self.has_projection:
            return None

        fields: Dict[str, Any] = {}
        for name, info in model_cls.model_fields.items():
            if name in _INTERNAL_FIELDS:
                continue
            key = info.alias or name
            if name != _ID_FIELD:
                if self.included and key not in self.included:
                    continue
                if key in self.excluded:
                    continue
            fields[name] = (info.annotation, info)

        return create_model(
            f"{model_cls.__name__}Projection",
            __config__=ConfigDict(populate_by_name=True),
            **fields,
        )

    async def exec(self) -> List[Any]:
        """Send the query to the store and return the matching documents."""
        if self.backend is None:
            raise RuntimeError("QueryChain is not bound to a backend")
        return await self.backend.run_query(self)
