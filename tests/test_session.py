import pytest
from pymongo.errors import DuplicateKeyError, PyMongoError

from spendshare.core.config import settings
from spendshare.core.errors import TransientError
from spendshare.db.session import as_transient, run_in_transaction


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(settings, "TRANSACTION_RETRY_BACKOFF_SECONDS", 0)


@pytest.mark.asyncio
async def test_work_runs_inside_session(mock_db):
    async def work(session):
        assert session is mock_db.session
        return "done"

    assert await run_in_transaction(mock_db, work) == "done"
    mock_db.session.start_transaction.assert_called_once()


@pytest.mark.asyncio
async def test_transient_label_retries_whole_unit(mock_db):
    calls = []

    async def work(session):
        calls.append(session)
        if len(calls) == 1:
            raise PyMongoError("write conflict", error_labels=["TransientTransactionError"])
        return len(calls)

    assert await run_in_transaction(mock_db, work) == 2
    assert mock_db.client.start_session.await_count == 2


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(mock_db):
    async def work(session):
        raise PyMongoError("write conflict", error_labels=["TransientTransactionError"])

    with pytest.raises(TransientError) as exc:
        await run_in_transaction(mock_db, work, max_attempts=2)

    assert exc.value.code == "storage_contention"
    assert mock_db.client.start_session.await_count == 2


@pytest.mark.asyncio
async def test_non_transient_storage_error_not_retried(mock_db):
    async def work(session):
        raise DuplicateKeyError("E11000 duplicate key")

    with pytest.raises(DuplicateKeyError):
        await run_in_transaction(mock_db, work)
    assert mock_db.client.start_session.await_count == 1


def test_plain_storage_error_is_not_transient():
    assert as_transient(PyMongoError("bad query")) is None
