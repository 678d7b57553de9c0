"""Every exported error type maps to a specific result code."""

import pytest

from langfactory.core import errors
from langfactory.ops.result import error_code

_EXPORTED_ERRORS = [
    getattr(errors, name)
    for name in errors.__all__
    if isinstance(getattr(errors, name), type)
    and issubclass(getattr(errors, name), errors.FactoryError)
    and getattr(errors, name) is not errors.FactoryError
]


@pytest.mark.parametrize("error_cls", _EXPORTED_ERRORS, ids=lambda c: c.__name__)
def test_exported_error_has_specific_code(error_cls):
    error = error_cls.__new__(error_cls)
    assert error_code(error) != "INTERNAL"


def test_base_error_is_internal():
    assert error_code(errors.FactoryError("boom")) == "INTERNAL"
