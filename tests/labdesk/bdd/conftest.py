"""Shared BDD fixtures and step definitions for LabDesk."""

import pytest
from pytest_bdd import parsers, then

from labdesk.errors import Conflict, Forbidden, InvalidState, Unavailable, Unprocessable

_ERROR_CLASSES = {
    "forbidden": Forbidden,
    "an invalid state": InvalidState,
    "unprocessable": Unprocessable,
    "a conflict": Conflict,
    "unavailable": Unavailable,
}


@pytest.fixture()
def error():
    """Container for the business failure raised by a When step."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the action is rejected as {kind}"))
def action_rejected(error, kind):
    expected = _ERROR_CLASSES[kind]
    assert error["exc"] is not None, f"Expected {expected.__name__} but nothing was raised"
    assert isinstance(error["exc"], expected), f"Got {type(error['exc']).__name__}"
