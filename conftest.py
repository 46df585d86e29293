import sys
import pytest
from pathlib import Path

# Add the src directory to Python path for imports
project_dir = Path(__file__).parent
src_dir = project_dir / "src"
sys.path.insert(0, str(src_dir))


def pytest_configure(config):
    """
    Register custom markers
    """
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )


@pytest.fixture(autouse=True)
def _no_recurring_table(monkeypatch):
    """Keep tests away from any real DynamoDB table configured in the shell."""
    monkeypatch.delenv("RECURRING_PATTERNS_TABLE", raising=False)
