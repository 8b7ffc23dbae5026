"""Helper script to run pytest with coverage programmatically."""

import sys
from pathlib import Path
import coverage
import pytest

# Add project root to Python path to ensure modules are found
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Measure the capture package and the step definitions
cov = coverage.Coverage(source=["fsm_capture", "tests.step_defs"])
cov.start()

# Browser-free unit tests only
exit_code = pytest.main(["tests/unit/"])

cov.stop()
cov.save()

cov.report(show_missing=True)
sys.exit(exit_code)
