import numpy as np
import pytest

from blendedgridding import Sampling


@pytest.fixture
def samplings():
    return Sampling(20, 1.0, 0.0), Sampling(15, 1.0, 0.0)


@pytest.fixture
def scattered(samplings):
    """Twelve samples placed exactly on distinct grid samples."""
    s1, s2 = samplings
    rng = np.random.default_rng(1234)
    flat = rng.choice(s1.count * s2.count, size=12, replace=False)
    i2, i1 = np.divmod(flat, s1.count)
    f = rng.uniform(0.0, 1.0, size=12)
    x1 = s1.first + s1.delta * i1
    x2 = s2.first + s2.delta * i2
    return f, x1.astype(np.float64), x2.astype(np.float64), i1, i2
