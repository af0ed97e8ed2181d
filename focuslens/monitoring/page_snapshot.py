# monitoring/page_snapshot.py

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Rect:
    """Viewport-relative bounds, like getBoundingClientRect()."""
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.left + self.width / 2.0, self.top + self.height / 2.0)

    def intersection_area(self, other: "Rect") -> float:
        w = min(self.right, other.right) - max(self.left, other.left)
        h = min(self.bottom, other.bottom) - max(self.top, other.top)
        if w <= 0 or h <= 0:
            return 0.0
        return w * h

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    @classmethod
    def from_dict(cls, data: dict) -> "Rect":
        return cls(
            left=float(data.get("left", 0.0)),
            top=float(data.get("top", 0.0)),
            width=float(data.get("width", 0.0)),
            height=float(data.get("height", 0.0)),
        )


@dataclass(frozen=True)
class ContentNode:
    """
    One text-bearing element of the observed page.

    `key` is a stable identity supplied by the page side (a DOM path, for
    example). Without one, identity falls back to a hash of tag and text so
    that equality across ticks never depends on object identity.
    """
    tag: str
    text: str
    rect: Rect
    key: Optional[str] = None
    ancestors: Tuple[str, ...] = ()      # ancestor tag names, nearest first
    roles: Tuple[str, ...] = ()          # ARIA roles on the node and ancestors
    class_tokens: Tuple[str, ...] = ()   # class / id tokens on the node and ancestors
    font_weight: int = 400

    @property
    def identity(self) -> str:
        if self.key:
            return self.key
        digest = hashlib.sha1(f"{self.tag.lower()}\x00{self.text}".encode("utf-8"))
        return "sha1:" + digest.hexdigest()

    @classmethod
    def from_dict(cls, data: dict) -> "ContentNode":
        return cls(
            tag=str(data.get("tag", "div")).lower(),
            text=str(data.get("text", "")),
            rect=Rect.from_dict(data.get("rect") or {}),
            key=data.get("key"),
            ancestors=tuple(str(a).lower() for a in data.get("ancestors", ())),
            roles=tuple(str(r).lower() for r in data.get("roles", ())),
            class_tokens=tuple(str(c).lower() for c in data.get("classes", ())),
            font_weight=int(data.get("fontWeight", 400)),
        )


@dataclass
class PageSnapshot:
    """What the page looked like at one instant."""
    url: str
    viewport_width: float
    viewport_height: float
    nodes: List[ContentNode] = field(default_factory=list)
    scroll_y: float = 0.0
    is_visible: bool = True
    has_focus: bool = True
    pointer: Optional[Tuple[float, float]] = None

    @property
    def viewport(self) -> Rect:
        return Rect(0.0, 0.0, self.viewport_width, self.viewport_height)

    @classmethod
    def from_dict(cls, data: dict) -> "PageSnapshot":
        """
        Build from the JSON payload the page side posts. Raises KeyError /
        ValueError on missing or malformed required fields.
        """
        viewport = data["viewport"]
        pointer = data.get("pointer")
        return cls(
            url=str(data["url"]),
            viewport_width=float(viewport["width"]),
            viewport_height=float(viewport["height"]),
            nodes=[ContentNode.from_dict(n) for n in data.get("nodes", [])],
            scroll_y=float(data.get("scrollY", 0.0)),
            is_visible=bool(data.get("visible", True)),
            has_focus=bool(data.get("focused", True)),
            pointer=(float(pointer["x"]), float(pointer["y"])) if pointer else None,
        )
