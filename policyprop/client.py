"""An in-memory object store and event recorder used by the controllers."""

from __future__ import annotations

import copy
from typing import Any, Iterable, Mapping, Optional, Union

KindLike = Union[str, type]


class NotFoundError(LookupError):
    """Raised when an object does not exist."""

    def __init__(self, kind: str, name: str, namespace: str = "", api_group: str = "") -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.api_group = api_group
        resource = f"{kind}.{api_group}" if api_group else kind
        super().__init__(f'{resource} "{name}" not found')


def _kind_of(kind: KindLike) -> tuple[str, str]:
    if isinstance(kind, str):
        return kind, ""
    return kind.kind, getattr(kind, "api_group", "")


def _key(obj: Any) -> tuple[str, str, str]:
    return obj.kind, obj.namespace, obj.name


class ObjectStore:
    """Keeps objects by kind, namespace and name; hands out copies."""

    def __init__(self, objects: Iterable[Any] = ()) -> None:
        self._objects: dict[tuple[str, str, str], Any] = {}
        for obj in objects:
            self.add(obj)

    def add(self, obj: Any) -> None:
        """Store an object, replacing any with the same identity."""
        self._objects[_key(obj)] = copy.deepcopy(obj)

    def get(self, kind: KindLike, name: str, namespace: str = "") -> Any:
        """Return a copy of the named object or raise NotFoundError."""
        kind_name, group = _kind_of(kind)
        try:
            stored = self._objects[(kind_name, namespace, name)]
        except KeyError:
            raise NotFoundError(kind_name, name, namespace, group) from None
        return copy.deepcopy(stored)

    def list(
        self,
        kind: KindLike,
        namespace: Optional[str] = None,
        labels: Optional[Mapping[str, str]] = None,
    ) -> list[Any]:
        """Return copies of the matching objects, ordered by namespace and name."""
        kind_name, _ = _kind_of(kind)
        wanted = dict(labels or {})
        found = [
            obj
            for (obj_kind, obj_ns, _), obj in self._objects.items()
            if obj_kind == kind_name
            and (namespace is None or obj_ns == namespace)
            and all(obj.labels.get(k) == v for k, v in wanted.items())
        ]
        found.sort(key=lambda obj: (obj.namespace, obj.name))
        return [copy.deepcopy(obj) for obj in found]

    def delete(self, obj: Any) -> None:
        """Remove an object or raise NotFoundError."""
        try:
            del self._objects[_key(obj)]
        except KeyError:
            raise NotFoundError(obj.kind, obj.name, obj.namespace, obj.api_group) from None

    def update_status(self, obj: Any) -> None:
        """Copy the status fields of an object onto the stored one."""
        try:
            stored = self._objects[_key(obj)]
        except KeyError:
            raise NotFoundError(obj.kind, obj.name, obj.namespace, obj.api_group) from None
        for name in obj.status_fields:
            setattr(stored, name, copy.deepcopy(getattr(obj, name)))

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, obj: Any) -> bool:
        return _key(obj) in self._objects


class EventRecorder:
    """Records events about objects as (kind, namespace, name, type, reason, message)."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, str, str, str, str]] = []

    def event(self, obj: Any, event_type: str, reason: str, message: str) -> None:
        self.events.append((obj.kind, obj.namespace, obj.name, event_type, reason, message))