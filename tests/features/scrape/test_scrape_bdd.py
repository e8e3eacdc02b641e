"""BDD tests for scrape failure isolation."""

import pytest
from pytest_bdd import scenarios

scenarios("scrape_failures.feature")

pytestmark = [pytest.mark.asgi, pytest.mark.tier(2)]
