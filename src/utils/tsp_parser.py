import csv

import numpy as np


class MatrixDimensionsError(ValueError):
    def __init__(self, message="Matrix must be nxn i.e. equal number of columns and rows."):
        super().__init__(message)


class CityFileError(ValueError):
    pass


def read_cities(path: str):
    """
    Reads `<label>,<x>,<y>` records, one city per line.
    City id is the position of the record in the file (1-based).
    """
    cities = []
    with open(path, newline="") as f:
        for lineno, row in enumerate(csv.reader(f), start=1):
            row = [tok.strip() for tok in row]
            if not any(row):
                continue
            if len(row) < 3:
                raise CityFileError(f"{path}:{lineno}: expected <label>,<x>,<y>, got {row!r}")
            try:
                x, y = float(row[1]), float(row[2])
            except ValueError as e:
                raise CityFileError(f"{path}:{lineno}: bad coordinate ({e})") from e
            cities.append((row[0], x, y))

    if not cities:
        raise CityFileError(f"{path}: no cities found")
    return cities


def distance_matrix(points) -> np.ndarray:
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"expected a sequence of (x, y) pairs, got shape {pts.shape}")
    dx = pts[:, 0][None, :] - pts[:, 0][:, None]
    dy = pts[:, 1][None, :] - pts[:, 1][:, None]
    dist = np.sqrt(dx ** 2 + dy ** 2)
    np.fill_diagonal(dist, 0.0)
    return dist


def check_square(matrix) -> np.ndarray:
    """Fails fast on anything that is not an n x n table of numbers."""
    n = len(matrix)
    for row in matrix:
        if np.ndim(row) != 1 or len(row) != n:
            raise MatrixDimensionsError(
                "n x n Matrix required i.e. equal number of columns and rows.")
    dist = np.asarray(matrix, dtype=float)
    if dist.ndim != 2 or dist.shape[0] != dist.shape[1]:
        raise MatrixDimensionsError()
    return dist


def read_tsp(path: str):
    cities = read_cities(path)
    labels = {i: label for i, (label, _, _) in enumerate(cities, start=1)}
    coords = {i: (x, y) for i, (_, x, y) in enumerate(cities, start=1)}

    dist = check_square(distance_matrix([coords[i] for i in sorted(coords)]))

    return {
        "labels": labels,
        "coords": coords,
        "dist_matrix": dist,
        "dimension": len(coords),
    }
