import sys

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def _reset_loguru():
    # The CLI callback rebinds loguru to the (temporary) stderr of CliRunner.
    yield
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
