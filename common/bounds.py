from typing import Iterable, List

from .geometry import Point


class Bounds:
    def __init__(self, left, top, width, height):
        self.left = left
        self.top = top
        self.width = width
        self.height = height

    def __str__(self) -> str:
        return f"Bounds({self.left}, {self.top}, {self.width}, {self.height})"

    def __repr__(self) -> str:
        return str(self)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Bounds):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    @classmethod
    def from_points(cls, points: Iterable[Point]) -> "Bounds":
        """
        Smallest Bounds enclosing all points.

        Raises:
            ValueError: if no points are given.
        """
        points = list(points)
        if not points:
            raise ValueError("Cannot compute bounds of an empty point set")

        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))

    @classmethod
    def around(cls, center: Point, half_size) -> "Bounds":
        """Square of side 2 * half_size centred on a point."""
        return cls(center[0] - half_size, center[1] - half_size, 2 * half_size, 2 * half_size)

    @property
    def right(self):
        return self.left + self.width

    @property
    def bottom(self):
        return self.top + self.height

    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)

    def as_tuple(self):
        return (self.left, self.top, self.width, self.height)

    def as_xyxy(self) -> List[float]:
        """[x1, y1, x2, y2] as box prompts expect it."""
        return [self.left, self.top, self.right, self.bottom]

    def corners(self) -> List[Point]:
        """Corners as a closed polygon in top-left, top-right, bottom-right, bottom-left order."""
        return [
            Point(self.left, self.top),
            Point(self.right, self.top),
            Point(self.right, self.bottom),
            Point(self.left, self.bottom),
        ]

    def contains(self, point: Point) -> bool:
        return self.left <= point[0] <= self.right and self.top <= point[1] <= self.bottom

    def is_inside(self, other: "Bounds", check_center_only=False) -> bool:
        """
        Check if the current Bounds object is completely inside another Bounds object.

        Parameters:
        - other (Bounds): The other Bounds object to compare against.
        - check_center_only (bool): Only require the centre point to be inside.

        Returns:
        - bool: True if the current Bounds object is inside the other Bounds object, False otherwise.
        """
        if check_center_only:
            return other.contains(self.center())

        return (
            self.left >= other.left and self.right <= other.right
            and self.top >= other.top and self.bottom <= other.bottom
        )
