import pytest

from lms.auth import authenticate_user, create_user, get_user_by_email
from lms.errors import Conflict, ValidationError


def test_create_and_authenticate():
    user = create_user('auth_ok@example.com', 's3cret', full_name='Auth', role='educator')
    assert user.password_hash != 's3cret'
    assert user.role == 'educator'

    assert authenticate_user('auth_ok@example.com', 's3cret').id == user.id
    assert authenticate_user('auth_ok@example.com', 'wrong') is None
    assert authenticate_user('missing@example.com', 's3cret') is None
    assert get_user_by_email('auth_ok@example.com').id == user.id


def test_duplicate_email():
    create_user('auth_dup@example.com', 'pw')
    with pytest.raises(Conflict):
        create_user('auth_dup@example.com', 'pw')


def test_bad_input():
    with pytest.raises(ValidationError):
        create_user('', 'pw')
    with pytest.raises(ValidationError):
        create_user('auth_role@example.com', 'pw', role='guest')
