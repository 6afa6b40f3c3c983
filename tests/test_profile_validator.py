import pytest
from fastapi import HTTPException

from dietcraft.models import ClientProfile
from dietcraft.services.profile_validator import ClientProfileValidator


@pytest.fixture
def validator():
    return ClientProfileValidator()


def test_missing_client(validator):
    with pytest.raises(HTTPException) as exc:
        validator.validate(None)
    assert exc.value.status_code == 400
    assert exc.value.detail["error_code"] == "CLIENT_DATA_REQUIRED"


@pytest.mark.parametrize("name", ["", "   "])
def test_blank_name(validator, name):
    with pytest.raises(HTTPException) as exc:
        validator.validate(ClientProfile(full_name=name))
    assert exc.value.detail["error_code"] == "CLIENT_NAME_REQUIRED"


@pytest.mark.parametrize("age", ["abc", "0", "121", "-4", "34.5"])
def test_invalid_age(validator, age):
    with pytest.raises(HTTPException) as exc:
        validator.validate(ClientProfile(full_name="Maria", age=age))
    assert exc.value.detail["error_code"] == "INVALID_AGE"
    assert "suggestion" in exc.value.detail


@pytest.mark.parametrize("age", [None, "", "1", "34", "120"])
def test_valid_profiles_pass_through(validator, age):
    client = ClientProfile(full_name="Maria", age=age)
    assert validator.validate(client) is client
