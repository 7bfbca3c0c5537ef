"""Local closed-loop TSP solver used when no directions service is reachable.

Nearest-neighbour construction followed by first-improvement 2-opt. Inputs are
a handful of waypoints, so everything runs inline with plain lists.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ...models.domain import Point
from ..geospatial import haversine_km

# Upper bound on 2-opt scans; guarantees termination on degenerate inputs.
MAX_TWO_OPT_ITERATIONS = 100

Tour = list[int]
DistanceMatrix = list[list[float]]

logger = logging.getLogger(__name__)


def build_distance_matrix(points: Sequence[Point]) -> DistanceMatrix:
    if len(points) < 1:
        raise ValueError("At least one point is required to build a distance matrix.")

    n = len(points)
    matrix: DistanceMatrix = [[0.0] * n for _ in range(n)]
    for i in range(n):
        for j in range(n):
            if i != j:
                matrix[i][j] = haversine_km(points[i], points[j])
    return matrix


def _validate_matrix(matrix: DistanceMatrix) -> int:
    n = len(matrix)
    for row in matrix:
        if len(row) != n:
            raise ValueError(f"Distance matrix must be square, got a row of {len(row)} for {n} points.")
    return n


def nearest_neighbor_tour(matrix: DistanceMatrix) -> Tour:
    """Greedy tour from index 0; equidistant candidates resolve to the lowest index."""

    n = _validate_matrix(matrix)
    if n <= 1:
        return [0]

    visited = [False] * n
    visited[0] = True
    tour: Tour = [0]
    for _ in range(1, n):
        last = tour[-1]
        nearest = -1
        nearest_distance = float("inf")
        for candidate in range(n):
            if not visited[candidate] and matrix[last][candidate] < nearest_distance:
                nearest_distance = matrix[last][candidate]
                nearest = candidate
        tour.append(nearest)
        visited[nearest] = True
    return tour


def tour_distance(tour: Sequence[int], matrix: DistanceMatrix) -> float:
    """Length of the closed loop, including the edge back to the first index."""

    if not tour:
        return 0.0
    distance = 0.0
    for a, b in zip(tour, tour[1:]):
        distance += matrix[a][b]
    distance += matrix[tour[-1]][tour[0]]
    return distance


def two_opt_swap(tour: Sequence[int], i: int, j: int) -> Tour:
    """Reverse the segment tour[i+1..j] (inclusive)."""
    return [*tour[: i + 1], *reversed(tour[i + 1 : j + 1]), *tour[j + 1 :]]


def two_opt_improve(
    tour: Sequence[int],
    matrix: DistanceMatrix,
    max_iterations: int = MAX_TWO_OPT_ITERATIONS,
) -> Tour:
    """First-improvement 2-opt.

    Each scan walks the pairs (i, j) with j >= i + 2 in order, skipping the
    pair that would touch the closing edge (i == 0, j == n - 1). The first
    swap that strictly shortens the loop is committed and the scan restarts.
    Stops when a full scan finds nothing or after `max_iterations` scans.
    """

    n = len(tour)
    if sorted(tour) != list(range(n)):
        raise ValueError("Tour must be a permutation of the matrix indices.")
    if n != _validate_matrix(matrix):
        raise ValueError("Tour length does not match the distance matrix size.")

    best = list(tour)
    best_distance = tour_distance(best, matrix)
    iterations = 0
    improved = True
    while improved and iterations < max_iterations:
        improved = False
        iterations += 1
        for i in range(n - 2):
            for j in range(i + 2, n):
                if i == 0 and j == n - 1:
                    continue
                candidate = two_opt_swap(best, i, j)
                candidate_distance = tour_distance(candidate, matrix)
                if candidate_distance < best_distance:
                    best = candidate
                    best_distance = candidate_distance
                    improved = True
                    break
            if improved:
                break

    if improved:
        logger.debug("2-opt stopped at the %d scan cap with distance %.4f km", max_iterations, best_distance)
    return best


def solve_tsp(points: Sequence[Point]) -> Tour:
    """Visiting order for a closed loop over `points`, starting at index 0."""

    if not points:
        return []
    if len(points) == 1:
        return [0]
    matrix = build_distance_matrix(points)
    tour = nearest_neighbor_tour(matrix)
    return two_opt_improve(tour, matrix)
