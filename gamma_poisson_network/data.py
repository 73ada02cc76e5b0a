"""Loading, validation and dyad extraction for interaction matrices.

Interaction-count (X) and sampling-time (D) matrices are square n x n arrays
indexed by individual. Files in the wild vary in whether they carry a header
row of individual names and/or a first column of row names; the delimited
loader (CSV/TSV/TXT) detects both so that a real column is never dropped.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np


# =============================================================================
# DELIMITED FILE PARSING UTILITIES
# =============================================================================

def _is_float_token(token: str) -> bool:
    """Check if a string token can be parsed as a float."""
    token = token.strip().strip('"').strip("'")
    if token == "":
        return False
    try:
        float(token)
        return True
    except ValueError:
        return False


def _first_nonempty_line(handle) -> str:
    while True:
        line = handle.readline()
        if line == "":
            return ""
        if line.strip() != "":
            return line


# -----------------------------------------------------------------------------
# Layout Detection:
# -----------------------------------------------------------------------------
#   - A header row exists if the first non-empty line is NOT fully numeric.
#   - Row names exist if the first token of the first data row is non-numeric.
#   - With a header, row names also exist if the corner cell is blank (R's
#     write.csv) or the header is one field short (R's write.table). R writes
#     default row names as quoted numbers, so these cannot be told apart from
#     data by the token alone.
# -----------------------------------------------------------------------------

def _detect_delimited_layout(filepath: Path, delimiter: str) -> tuple[bool, bool, int]:
    """Detect (has_header, has_row_names, n_cols_data) for a delimited file."""
    with filepath.open("r", encoding="utf-8") as f:
        first_line = _first_nonempty_line(f)
        if first_line == "":
            raise ValueError(f"Empty delimited file: {filepath}")

        first_tokens = [t.strip() for t in first_line.strip().split(delimiter)]
        has_header = not all(_is_float_token(tok) for tok in first_tokens)

        data_line = _first_nonempty_line(f) if has_header else first_line
        if data_line == "":
            raise ValueError(f"Delimited file has header but no data rows: {filepath}")

    data_tokens = [t.strip() for t in data_line.strip().split(delimiter)]
    has_row_names = not _is_float_token(data_tokens[0])
    if has_header:
        corner = first_tokens[0].strip('"').strip("'")
        has_row_names = has_row_names or corner == "" or len(first_tokens) == len(data_tokens) - 1
    return has_header, has_row_names, len(data_tokens)


def _load_delimited(filepath: Path, delimiter: str) -> np.ndarray:
    has_header, has_row_names, n_cols_data = _detect_delimited_layout(filepath, delimiter)
    return np.loadtxt(
        filepath,
        delimiter=delimiter,
        skiprows=1 if has_header else 0,
        usecols=range(1 if has_row_names else 0, n_cols_data),
        ndmin=2,
    )


# =============================================================================
# MATRIX LOADING
# =============================================================================

def load_matrix(filepath: str | Path, key: str | None = None) -> np.ndarray:
    """
    Load a square interaction or sampling-time matrix from disk.

    Supports CSV, TSV/TXT, NPY and NPZ formats.

    Args:
        filepath: Path to the matrix file.
        key: Array name to read from an NPZ archive. An archive holding a
             single array is read regardless; otherwise defaults to "X" or
             "D" when present.

    Returns:
        np.ndarray: Float matrix of shape (n, n).
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"Matrix file not found: {filepath}")

    suffix = filepath.suffix.lower()

    if suffix == ".npy":
        data = np.load(filepath)
    elif suffix == ".npz":
        with np.load(filepath) as archive:
            keys = list(archive.keys())
            if len(keys) == 1:
                key = keys[0]
            elif key is None:
                key = next((k for k in ("X", "D") if k in keys), keys[0])
            if key not in keys:
                raise KeyError(f"Array '{key}' not found in {filepath} (available: {keys})")
            data = archive[key]
    elif suffix == ".csv":
        data = _load_delimited(filepath, delimiter=",")
    elif suffix in (".tsv", ".txt"):
        data = _load_delimited(filepath, delimiter="\t")
    else:
        raise ValueError(f"Unsupported file format: {suffix}")

    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 2 or data.shape[0] != data.shape[1]:
        raise ValueError(f"Expected a square matrix in {filepath}, got shape {data.shape}")
    return data


# =============================================================================
# VALIDATION AND DYAD EXTRACTION
# =============================================================================

def check_square(M, name: str) -> np.ndarray:
    """Return ``M`` as a float array, checking it is a finite n x n matrix with n >= 2."""
    M = np.asarray(M, dtype=np.float64)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise ValueError(f"{name} must be a square matrix, got shape {M.shape}")
    if M.shape[0] < 2:
        raise ValueError(f"{name} must have at least 2 rows, got {M.shape[0]}")
    if not np.all(np.isfinite(M)):
        raise ValueError(f"{name} contains non-finite values")
    return M


def validate_interaction_data(X, D, directed: bool = False) -> tuple[np.ndarray, np.ndarray]:
    """
    Validate an interaction-count matrix and its sampling-time matrix.

    Args:
        X: Count matrix (n, n) of non-negative integers.
        D: Sampling-time matrix (n, n) of non-negative reals.
        directed: If False, both matrices must be symmetric.

    Returns:
        (X, D) as float64 arrays.
    """
    X = check_square(X, "X")
    D = check_square(D, "D")
    if X.shape != D.shape:
        raise ValueError(f"X and D must have the same shape, got {X.shape} and {D.shape}")
    if np.any(X < 0) or not np.all(X == np.round(X)):
        raise ValueError("X must contain non-negative integer counts")
    if np.any(D < 0):
        raise ValueError("D must contain non-negative sampling times")
    if not directed:
        if not np.array_equal(X, X.T):
            raise ValueError("X must be symmetric when directed=False")
        if not np.allclose(D, D.T):
            raise ValueError("D must be symmetric when directed=False")
    return X, D


def extract_dyads(X, D, directed: bool = False) -> tuple[np.ndarray, np.ndarray]:
    """
    Extract the independent (count, sampling time) observations from X and D.

    Upper-triangle entries are always used. For directed networks the
    lower-triangle entries follow, since each direction is an independent
    observation. The diagonal is never used.

    Returns:
        (x, d): 1D arrays of counts and sampling times, in the same order.
    """
    X, D = validate_interaction_data(X, D, directed)
    upper = np.triu_indices_from(X, k=1)
    x, d = X[upper], D[upper]
    if directed:
        lower = np.tril_indices_from(X, k=-1)
        x = np.concatenate([x, X[lower]])
        d = np.concatenate([d, D[lower]])
    if np.any(d <= 0):
        raise ValueError(
            "D must be positive for every dyad: a dyad with zero sampling time "
            "carries no information about its interaction rate"
        )
    return x, d
