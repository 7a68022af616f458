"""
Test Suite: Grid Inputs

Covers samplings, tensor fields and rasterization of scattered samples.
"""
import numpy as np
import pytest

from blendedgridding import ArrayTensors, EigenTensors2, IsotropicTensors, Sampling, SimpleGridder2, Tensors2


class TestSampling:
    def test_uniform(self):
        s = Sampling(5, 0.5, 1.0)
        assert s.is_uniform
        assert np.allclose(s.values, [1.0, 1.5, 2.0, 2.5, 3.0])
        assert s.last == pytest.approx(3.0)

    def test_from_values_uniform(self):
        s = Sampling.from_values([0.0, 0.5, 1.0])
        assert s.is_uniform
        assert s.delta == pytest.approx(0.5)
        assert s.count == 3

    def test_from_values_non_uniform(self):
        s = Sampling.from_values([0.0, 1.0, 3.0])
        assert not s.is_uniform

    def test_from_values_not_increasing(self):
        with pytest.raises(ValueError):
            Sampling.from_values([0.0, 2.0, 1.0])

    @pytest.mark.parametrize("count, delta", [(0, 1.0), (3, 0.0), (3, -1.0)])
    def test_invalid(self, count, delta):
        with pytest.raises(ValueError):
            Sampling(count, delta)

    def test_index_of_nearest(self):
        s = Sampling(5, 1.0, 0.0)
        assert list(s.index_of_nearest([0.4, 0.6, -1.0, 4.2])) == [0, 1, -1, 4]

    def test_index_of_nearest_ties_round_up(self):
        s = Sampling(4, 1.0, 0.0)
        assert list(s.index_of_nearest([-0.5, 0.5, 1.5, 2.5, 3.5])) == [0, 1, 2, 3, 4]


class RampTensors(Tensors2):
    def get_tensor(self, i1, i2):
        return float(i1 + 1), 0.0, float(i2 + 1)


class TestTensors:
    def test_isotropic(self):
        tensors = IsotropicTensors()
        assert tensors.get_tensor(3, 4) == (1.0, 0.0, 1.0)
        d0, d1, d2 = tensors.get_tensor_arrays(4, 3)
        assert d0.shape == (3, 4)
        assert np.all(d0 == 1.0) and np.all(d1 == 0.0) and np.all(d2 == 1.0)

    def test_default_arrays_use_get_tensor(self):
        d0, d1, d2 = RampTensors().get_tensor_arrays(3, 2)
        assert np.array_equal(d0, [[1.0, 2.0, 3.0], [1.0, 2.0, 3.0]])
        assert np.array_equal(d2, [[1.0, 1.0, 1.0], [2.0, 2.0, 2.0]])
        assert np.all(d1 == 0.0)

    def test_array_tensors_not_positive_definite(self):
        with pytest.raises(ValueError):
            ArrayTensors(np.ones((2, 2)), np.ones((2, 2)), np.ones((2, 2)))

    def test_array_tensors_wrong_grid(self):
        tensors = ArrayTensors(np.ones((2, 3)), np.zeros((2, 3)), np.ones((2, 3)))
        assert tensors.get_tensor(2, 1) == (1.0, 0.0, 1.0)
        with pytest.raises(ValueError):
            tensors.get_tensor_arrays(2, 3)

    def test_eigen_tensors(self):
        tensors = EigenTensors2(np.ones((2, 2)), np.zeros((2, 2)), 1.0, 0.25)
        assert tensors.get_tensor(0, 0) == pytest.approx((1.0, 0.0, 0.25))

    def test_eigen_tensors_equal_eigenvalues(self):
        tensors = EigenTensors2(np.ones((2, 2)), np.ones((2, 2)), 2.0, 2.0)
        d0, d1, d2 = tensors.get_tensor_arrays(2, 2)
        assert np.allclose(d0, 2.0)
        assert np.allclose(d1, 0.0)
        assert np.allclose(d2, 2.0)


class TestSimpleGridder:
    def test_grid(self):
        f = np.array([1.0, 3.0, 5.0, 7.0])
        x1 = np.array([1.1, 0.9, 3.0, 10.0])
        x2 = np.array([0.0, 0.2, 2.1, 0.0])
        sg = SimpleGridder2(f, x1, x2)
        sg.set_null_value(-99.0)
        p = sg.grid(Sampling(4, 1.0, 0.0), Sampling(3, 1.0, 0.0))

        assert p.shape == (3, 4)
        # Two samples share a cell and are averaged
        assert p[0, 1] == pytest.approx(2.0)
        assert p[2, 3] == 5.0
        # The sample at x1 = 10 is outside and ignored
        assert np.count_nonzero(p != -99.0) == 2

    def test_grid_half_sample_ties(self):
        sg = SimpleGridder2(np.array([1.0, 2.0]), np.array([0.5, 1.5]), np.array([0.0, 0.0]))
        sg.set_null_value(-99.0)
        p = sg.grid(Sampling(4, 1.0, 0.0), Sampling(1, 1.0, 0.0))
        assert np.array_equal(p, [[-99.0, 1.0, 2.0, -99.0]])

    def test_grid_without_samples(self):
        with pytest.raises(RuntimeError):
            SimpleGridder2().grid(Sampling(2), Sampling(2))
