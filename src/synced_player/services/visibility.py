"""Viewport visibility sensing for the main surface.

Observers report how much of the registered main-surface element is inside the
viewport. A missing observer only disables mini-player auto-promotion.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class VisibilitySample:
    """Intersection reading for an observed element."""

    ratio: float
    is_intersecting: bool = True

    def is_visible(self, threshold: float) -> bool:
        return self.is_intersecting and self.ratio >= threshold


VisibilityCallback = Callable[[VisibilitySample], Awaitable[None]]


class ObservationHandle(Protocol):
    def close(self) -> None: ...


class VisibilityObserver(Protocol):
    """Starts sampling an element; samples are delivered asynchronously."""

    def observe(self, element: Any, callback: VisibilityCallback) -> ObservationHandle: ...


class Viewport(Protocol):
    """Host viewport: size for mini-player placement and scroll requests."""

    def viewport_size(self) -> tuple[int, int]: ...

    def scroll_into_view(self, element: Any) -> None: ...


def visible_fraction(
    element: tuple[int, int, int, int], viewport: tuple[int, int, int, int]
) -> float:
    """Fraction of `element` (x, y, width, height) inside `viewport`."""
    ex, ey, ew, eh = element
    vx, vy, vw, vh = viewport
    area = ew * eh
    if area <= 0:
        return 0.0
    overlap_w = min(ex + ew, vx + vw) - max(ex, vx)
    overlap_h = min(ey + eh, vy + vh) - max(ey, vy)
    if overlap_w <= 0 or overlap_h <= 0:
        return 0.0
    return (overlap_w * overlap_h) / area


class _Observation:
    def __init__(self, observer: ManualVisibilityObserver, element: Any) -> None:
        self._observer = observer
        self._element = element

    def close(self) -> None:
        self._observer.targets.pop(id(self._element), None)


class ManualVisibilityObserver:
    """Observer driven explicitly by the host (or a test) via `report`."""

    def __init__(self) -> None:
        self.targets: dict[int, tuple[Any, VisibilityCallback]] = {}

    def observe(self, element: Any, callback: VisibilityCallback) -> _Observation:
        self.targets[id(element)] = (element, callback)
        return _Observation(self, element)

    async def report(self, ratio: float, *, is_intersecting: bool | None = None) -> None:
        intersecting = ratio > 0 if is_intersecting is None else is_intersecting
        sample = VisibilitySample(ratio=ratio, is_intersecting=intersecting)
        for _element, callback in list(self.targets.values()):
            await callback(sample)
