"""Raster-to-polygon tracing.

This module turns a binary pixel mask into closed rectilinear contours:
- boundary_edges: directed unit edges between filled and empty pixels
- link_edges: chain edges into closed loops
- simplify_loop: drop collinear vertices so each straight run is one segment
- trace_contours: the three steps above, in order

Coordinates are pixel-grid corners with y pointing down, so the corner
(x, y) is the top-left of pixel (x, y). Edges are directed so the filled
side is always on the right when walking in screen space: outer loops get a
positive shoelace area, holes a negative one. Flipping y for font space
turns outer loops clockwise and holes counter-clockwise, which is the
TrueType convention.

All functions are pure and safe for use in worker processes.
"""

from collections import defaultdict

Vertex = tuple[int, int]


def boundary_edges(mask: list[list[bool]]) -> dict[Vertex, list[Vertex]]:
    """Collect directed boundary edges of the filled pixels.

    Args:
        mask: Rows of booleans, top row first

    Returns:
        Mapping of start vertex to the end vertices of edges leaving it
    """
    height = len(mask)
    width = len(mask[0]) if height else 0

    def filled(x: int, y: int) -> bool:
        return 0 <= x < width and 0 <= y < height and mask[y][x]

    outgoing: dict[Vertex, list[Vertex]] = defaultdict(list)
    for y in range(height):
        row = mask[y]
        for x in range(width):
            if not row[x]:
                continue
            if not filled(x, y - 1):
                outgoing[(x, y)].append((x + 1, y))
            if not filled(x + 1, y):
                outgoing[(x + 1, y)].append((x + 1, y + 1))
            if not filled(x, y + 1):
                outgoing[(x + 1, y + 1)].append((x, y + 1))
            if not filled(x - 1, y):
                outgoing[(x, y + 1)].append((x, y))
    return outgoing


def _next_vertex(
    outgoing: dict[Vertex, list[Vertex]],
    vertex: Vertex,
    heading: Vertex | None,
) -> Vertex:
    candidates = outgoing[vertex]
    if not candidates:
        raise ValueError(f"Boundary is not closed at {vertex}")

    # Two diagonal pixels touching at a corner give that corner two exits.
    # Turning right keeps the walk on the pixel it arrived along.
    if heading is not None and len(candidates) > 1:
        right = (vertex[0] - heading[1], vertex[1] + heading[0])
        if right in candidates:
            candidates.remove(right)
            return right

    return candidates.pop(0)


def _walk(outgoing: dict[Vertex, list[Vertex]], start: Vertex) -> list[list[Vertex]]:
    loops: list[list[Vertex]] = []
    loop = [start]
    seen = {start: 0}
    current = _next_vertex(outgoing, start, None)
    heading = (current[0] - start[0], current[1] - start[1])
    while current != start:
        index = seen.get(current)
        if index is None:
            seen[current] = len(loop)
            loop.append(current)
        else:
            # Reaching a vertex twice closes an inner loop at a pinch corner.
            loops.append(loop[index:])
            for vertex in loop[index + 1 :]:
                del seen[vertex]
            del loop[index + 1 :]
        following = _next_vertex(outgoing, current, heading)
        heading = (following[0] - current[0], following[1] - current[1])
        current = following
    loops.append(loop)
    return loops


def link_edges(outgoing: dict[Vertex, list[Vertex]]) -> list[list[Vertex]]:
    """Chain directed edges into closed loops.

    Loops start at the first vertex in (x, y) order that has a single exit,
    so walks never begin on an ambiguous diagonal corner. A walk that
    passes a corner twice, where a hole touches the outside diagonally, is
    split there so every loop is a simple polygon. The mapping is consumed.

    Args:
        outgoing: Edges as returned by boundary_edges

    Returns:
        Closed loops of unit-step vertices, no vertex repeated
    """
    loops: list[list[Vertex]] = []
    vertices = sorted(outgoing)

    for start in vertices:
        if len(outgoing[start]) == 1:
            loops.extend(_walk(outgoing, start))

    for start in vertices:
        while outgoing[start]:
            loops.extend(_walk(outgoing, start))

    return loops


def simplify_loop(loop: list[Vertex]) -> list[Vertex]:
    """Remove vertices that lie on a straight run.

    Args:
        loop: Closed loop of axis-aligned steps

    Returns:
        Corner vertices only, in the same order
    """
    n = len(loop)
    corners = []
    for i in range(n):
        prev = loop[i - 1]
        here = loop[i]
        nxt = loop[(i + 1) % n]
        incoming = (_sign(here[0] - prev[0]), _sign(here[1] - prev[1]))
        leaving = (_sign(nxt[0] - here[0]), _sign(nxt[1] - here[1]))
        if incoming != leaving:
            corners.append(here)
    return corners


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def trace_contours(mask: list[list[bool]]) -> list[list[Vertex]]:
    """Trace a binary mask into minimal rectilinear polygons.

    Adjacent filled pixels merge into one polygon; enclosed empty areas
    become separate hole loops. Pixels touching only at a corner stay
    separate polygons.

    Args:
        mask: Rows of booleans, top row first

    Returns:
        Closed loops of corner vertices in pixel-grid coordinates

    Examples:
        >>> trace_contours([[True, True], [True, True]])
        [[(0, 0), (2, 0), (2, 2), (0, 2)]]
    """
    loops = link_edges(boundary_edges(mask))
    return [simplify_loop(loop) for loop in loops]


def signed_area(points: list[Vertex]) -> float:
    """Calculate signed area of a polygon using the shoelace formula.

    Args:
        points: Polygon vertices

    Returns:
        Signed area; 0.0 for degenerate polygons
    """
    n = len(points)
    if n < 3:
        return 0.0

    area = 0
    for i in range(n):
        j = (i + 1) % n
        area += points[i][0] * points[j][1]
        area -= points[j][0] * points[i][1]

    return area / 2.0
