# tests/test_exceptions.py
from vault_app.exceptions import (
    InvalidArgument, InvalidQuota, OperationFailure, QuotaExceeded, StorageNotFound, VaultError,
)


def test_quota_exceeded_carries_counts():
    e = QuotaExceeded("acc1", 500000, 448576)
    assert e.required == 500000 and e.available == 448576
    assert "acc1" in str(e) and "448576" in str(e)
    assert isinstance(e, VaultError)


def test_storage_not_found_messages():
    assert "acc1" in str(StorageNotFound("acc1"))
    assert "/x/y.zip" in str(StorageNotFound("acc1", path="/x/y.zip"))


def test_invalid_quota_constructors():
    assert "negative" in str(InvalidQuota.negative(-1))
    assert "greater than zero" in str(InvalidQuota.zero())
    assert "exceeds maximum" in str(InvalidQuota.exceeds_maximum(200, 100))
    assert isinstance(InvalidQuota.zero(), ValueError)


def test_kinds_map_to_builtin_families():
    assert issubclass(InvalidArgument, ValueError)
    assert issubclass(OperationFailure, RuntimeError)
    try:
        try:
            raise OSError("io")
        except OSError as cause:
            raise OperationFailure("wrapped") from cause
    except OperationFailure as e:
        assert isinstance(e.__cause__, OSError)
