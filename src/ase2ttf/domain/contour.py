"""Core geometric types for contour representation.

This module defines the integer geometry produced by outline tracing:
- Point: A 2D point in font design units
- Contour: A closed rectilinear polygon
- WindingDirection: Enum for contour winding direction
"""

from dataclasses import dataclass
from enum import Enum, auto


class WindingDirection(Enum):
    """Contour winding direction.

    In TrueType convention (y axis pointing up):
    - Outer contours wind clockwise
    - Inner contours (holes) wind counter-clockwise
    """

    CLOCKWISE = auto()
    COUNTER_CLOCKWISE = auto()


@dataclass(frozen=True, slots=True)
class Point:
    """A point in 2D space.

    Attributes:
        x: X coordinate
        y: Y coordinate
    """

    x: int
    y: int

    def to_tuple(self) -> tuple[int, int]:
        """Convert to simple (x, y) tuple."""
        return (self.x, self.y)


@dataclass(frozen=True)
class Contour:
    """A closed contour representing a shape boundary.

    The last point connects back to the first; the closing point is not
    repeated.

    Attributes:
        points: Points forming the contour, all on-curve
    """

    points: tuple[Point, ...]

    def signed_area(self) -> float:
        """Calculate signed area using shoelace formula.

        The sign of the area indicates winding direction:
        - Positive area: counter-clockwise winding
        - Negative area: clockwise winding

        Returns:
            Signed area of the contour
        """
        n = len(self.points)
        if n < 3:
            return 0.0

        area = 0
        for i in range(n):
            j = (i + 1) % n
            area += self.points[i].x * self.points[j].y
            area -= self.points[j].x * self.points[i].y

        return area / 2.0

    @property
    def direction(self) -> WindingDirection:
        """Winding direction in y-up coordinates."""
        if self.signed_area() < 0:
            return WindingDirection.CLOCKWISE
        return WindingDirection.COUNTER_CLOCKWISE

    def bounding_box(self) -> tuple[int, int, int, int]:
        """Calculate bounding box of the contour.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        if not self.points:
            return (0, 0, 0, 0)

        xs = [p.x for p in self.points]
        ys = [p.y for p in self.points]
        return (min(xs), min(ys), max(xs), max(ys))

    def __len__(self) -> int:
        return len(self.points)
