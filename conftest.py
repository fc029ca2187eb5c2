import pytest

from test_multiqr import TestResult


@pytest.fixture
def r(request):
    """Result object the harness tests write their summary message to."""
    return TestResult(request.node.name)
