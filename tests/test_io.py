"""
Test Suite: Settings, Persistence, Plotting and Logging
"""
import logging
import math

import matplotlib
import numpy as np
import pytest

matplotlib.use("Agg")

from blendedgridding import BlendedGridder2, GridderSettings, Stencil  # noqa: E402
from blendedgridding.logging_config import setup_logging  # noqa: E402
from blendedgridding.model.io import load_result, save_result  # noqa: E402
from blendedgridding.utils import block_average, neighborhood_max  # noqa: E402
from blendedgridding.view.plot import plot_result  # noqa: E402


@pytest.fixture
def result(scattered, samplings):
    f, x1, x2, _, _ = scattered
    return BlendedGridder2(f=f, x1=x1, x2=x2).grid_result(*samplings)


class TestSettings:
    def test_json_round_trip(self):
        settings = GridderSettings(blending=False, smoothness=1.5, stencil=Stencil.D21, niter=50)
        restored = GridderSettings.from_json(settings.to_json())
        assert restored == settings
        assert math.isinf(restored.time_max)

    def test_from_dict_ignores_unknown_keys(self):
        settings = GridderSettings.from_dict({"time_max": 4.0, "stencil": "D22", "colour": "red"})
        assert settings.time_max == 4.0
        assert settings.stencil == Stencil.D22

    @pytest.mark.parametrize("kwargs", [
        {"smoothness": 0.0},
        {"time_max": -1.0},
        {"small": 0.0},
        {"niter": 0},
        {"stencil": "D99"},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            GridderSettings(**kwargs)


class TestIO:
    def test_round_trip(self, result, tmp_path):
        settings = GridderSettings(time_max=7.0)
        path = str(tmp_path / "result.h5")
        save_result(result, path, settings)

        loaded, loaded_settings = load_result(path)
        assert np.array_equal(loaded.q, result.q)
        assert np.array_equal(loaded.t, result.t)
        assert np.array_equal(loaded.p, result.p)
        assert loaded.s1 == result.s1
        assert loaded.s2 == result.s2
        assert loaded_settings == settings

    def test_without_settings(self, result, tmp_path):
        path = str(tmp_path / "result.h5")
        save_result(result, path)
        _, loaded_settings = load_result(path)
        assert loaded_settings is None

    def test_not_hdf5(self, tmp_path):
        path = tmp_path / "result.txt"
        path.write_text("not hdf5")
        with pytest.raises(ValueError):
            load_result(str(path))


class TestPlot:
    @pytest.mark.parametrize("field", ["blended", "nearest", "time"])
    def test_plot_result(self, result, field):
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots()
        image = plot_result(result, field=field, ax=ax)
        assert image.get_array().shape == result.shape
        plt.close(fig)

    def test_unknown_field(self, result):
        with pytest.raises(ValueError):
            plot_result(result, field="velocity")


class TestUtils:
    def test_neighborhood_max(self):
        a = np.array([[0.0, 1.0, 0.0], [0.0, 0.0, 0.0], [5.0, 0.0, 0.0]])
        out = neighborhood_max(a)
        assert out[1, 1] == 5.0
        assert out[0, 0] == 1.0
        assert out[0, 2] == 1.0

    def test_block_average(self):
        s = np.array([[0.0, 4.0], [8.0, 12.0]])
        out = block_average(s)
        assert np.allclose(out, 6.0)

    def test_block_average_edges_reuse_interior(self):
        s = np.arange(9.0).reshape(3, 3)
        out = block_average(s)
        # Mean of the 2x2 block ending at (i2, i1)
        assert out[1, 1] == pytest.approx((0.0 + 1.0 + 3.0 + 4.0) / 4)
        assert out[2, 2] == pytest.approx((4.0 + 5.0 + 7.0 + 8.0) / 4)
        assert np.array_equal(out[0, :], out[1, :])
        assert np.array_equal(out[:, 0], out[:, 1])
        assert np.allclose(out, [[2.0, 2.0, 3.0], [2.0, 2.0, 3.0], [5.0, 5.0, 6.0]])

    def test_block_average_single_row(self):
        out = block_average(np.array([[0.0, 2.0, 6.0]]))
        assert np.allclose(out, [[1.0, 1.0, 4.0]])


@pytest.fixture
def package_logger():
    logger = logging.getLogger("blendedgridding")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestLogging:
    def test_repeated_setup_keeps_handlers(self, package_logger, tmp_path):
        log_file = tmp_path / "gridding.log"
        setup_logging(logging.INFO, str(log_file))
        handlers = list(package_logger.handlers)
        setup_logging(logging.DEBUG, str(log_file))

        assert package_logger.handlers == handlers
        assert len(handlers) == 2
        assert all(h.level == logging.DEBUG for h in handlers)

    def test_records_carry_stage(self, package_logger, tmp_path):
        log_file = tmp_path / "gridding.log"
        setup_logging(logging.INFO, str(log_file))
        logging.getLogger("blendedgridding.analysis.gridder").info("blending 4x3 grid")

        text = log_file.read_text(encoding="utf-8")
        assert "[gridder] blending 4x3 grid" in text

    def test_replace_keeps_application_handlers(self, package_logger, tmp_path):
        other = logging.NullHandler()
        package_logger.addHandler(other)
        setup_logging(logging.INFO, str(tmp_path / "first.log"))
        setup_logging(logging.INFO, replace=True)

        assert other in package_logger.handlers
        assert not any(isinstance(h, logging.FileHandler) for h in package_logger.handlers)
        assert len(package_logger.handlers) == 2
