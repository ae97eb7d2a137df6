"""Global pytest configuration for solarmath tests."""
import os

import numpy as np
import pytest

from solarmath.core.config import SolarMathConfig
from solarmath.core.context.processing_context import ProcessingContext
from solarmath.core.geometry.ellipse import Ellipse
from solarmath.core.image.model import ColorImage, MonoImage

STORAGE_BACKENDS = ["memory", "disk"]


def pytest_addoption(parser):
    """Add command-line options for test configuration."""

    def env_default(env_var, default_value):
        return os.getenv(env_var, default_value)

    parser.addoption(
        "--sm-backends",
        action="store",
        default=env_default("SM_BACKENDS", "memory,disk"),
        help="Comma-separated list of storage backends to test (default: memory,disk). Use 'all' for full coverage."
    )

    parser.addoption(
        "--sm-workers",
        action="store",
        default=env_default("SM_WORKERS", "4"),
        help="Worker threads used by the processing context fixture (default: 4)."
    )


def pytest_configure(config):
    """Validate configuration options."""
    option_value = config.getoption("--sm-backends")
    if option_value != "all":
        for value in (v.strip() for v in option_value.split(",")):
            if value not in STORAGE_BACKENDS:
                raise pytest.UsageError(
                    f"Invalid value '{value}' for --sm-backends. "
                    f"Valid choices: {', '.join(STORAGE_BACKENDS)} or 'all'"
                )

    workers = config.getoption("--sm-workers")
    if not workers.isdigit() or int(workers) < 1:
        raise pytest.UsageError(f"Invalid value '{workers}' for --sm-workers. Expected a positive integer")


def pytest_generate_tests(metafunc):
    """Parametrize storage_backend_name from the --sm-backends option."""
    if "storage_backend_name" in metafunc.fixturenames:
        option_value = metafunc.config.getoption("--sm-backends")
        if option_value == "all":
            selected = STORAGE_BACKENDS
        else:
            wanted = [v.strip() for v in option_value.split(",")]
            selected = [b for b in STORAGE_BACKENDS if b in wanted]
        metafunc.parametrize("storage_backend_name", selected, ids=selected)


@pytest.fixture
def num_workers(pytestconfig):
    return int(pytestconfig.getoption("--sm-workers"))


@pytest.fixture
def context(num_workers):
    """Processing context with a bounded pool, closed after the test."""
    ctx = ProcessingContext(config=SolarMathConfig(num_workers=num_workers))
    yield ctx
    ctx.close()


@pytest.fixture
def disk_ellipse():
    """Circle of radius 20 centered in a 64x64 frame."""
    return Ellipse.circle(32.0, 32.0, 20.0)


@pytest.fixture
def gradient_image():
    """64x64 mono image with a smooth horizontal gradient."""
    data = np.tile(np.linspace(1000.0, 40000.0, 64, dtype=np.float32), (64, 1))
    return MonoImage(data)


@pytest.fixture
def random_image():
    rng = np.random.default_rng(42)
    return MonoImage(rng.uniform(0.0, 60000.0, size=(48, 40)).astype(np.float32))


@pytest.fixture
def color_image():
    rng = np.random.default_rng(7)
    r, g, b = (rng.uniform(0.0, 60000.0, size=(32, 32)).astype(np.float32) for _ in range(3))
    return ColorImage(r, g, b)
