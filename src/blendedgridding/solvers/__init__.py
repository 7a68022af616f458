"""
Numerical solvers: the time marker (eikonal) and the local smoothing filter.

Note: This package should be pure NumPy/SciPy and should NOT import matplotlib.
"""
