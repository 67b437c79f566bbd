from contextlib import contextmanager

import pytest
from sqlalchemy.exc import OperationalError

from hermes.core.errors import TransientLookupError
from hermes.features.users import service as users_service
from hermes.features.users.service import get_or_create_user, get_user
from hermes.models.user import User


@contextmanager
def broken_session():
    raise OperationalError("SELECT", {}, Exception("connection refused"))
    yield


def test_get_or_create_user_is_idempotent():
    first = get_or_create_user("seeker-1")
    second = get_or_create_user("seeker-1", display_name="Ignored")
    assert first.user_id == second.user_id
    assert second.display_name == first.display_name


def test_fallback_display_name_is_deterministic():
    name = User.fallback_display_name("seeker-1")
    assert name.startswith("seeker_")
    assert name == User.fallback_display_name("seeker-1")
    assert User.fallback_display_name("seeker-1", "  Luna ") == "Luna"


def test_get_user_missing():
    assert get_user("nobody") is None


def test_database_failure_is_transient_error(monkeypatch):
    monkeypatch.setattr(users_service, "get_db_session", broken_session)

    with pytest.raises(TransientLookupError) as excinfo:
        get_or_create_user("seeker-1")
    assert excinfo.value.status_code == 503
    assert isinstance(excinfo.value.__cause__, OperationalError)
