import json
import time

from budget_planner.errors import StorageError
from budget_planner.models import BudgetState, default_state
from budget_planner.normalizer import apply_update
from budget_planner.storage import SAVE_FAILED_NOTICE, BudgetStateStore, DebouncedSaver


class _FailingStore:
    def upsert(self, user_id, state):
        raise StorageError("disk full")


def test_upsert_then_load(tmp_path):
    store = BudgetStateStore(tmp_path)
    state = apply_update(default_state(), {"scheduleBias": 2})

    path = store.upsert("user-1", state)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert set(payload) == {"user_id", "data", "updated_at"}
    assert payload["user_id"] == "user-1"
    assert store.load("user-1") == state
    assert not list(tmp_path.glob("*.tmp"))


def test_user_ids_are_made_filename_safe(tmp_path):
    store = BudgetStateStore(tmp_path)
    assert store.get_path("user 1/../x").name == "user_1x.json"


def test_missing_or_corrupt_documents_load_as_none(tmp_path):
    store = BudgetStateStore(tmp_path)
    assert store.load("nobody") is None

    store.get_path("broken").write_text("{not json", encoding="utf-8")
    store.get_path("odd").write_text(json.dumps({"data": []}), encoding="utf-8")

    assert store.load("broken") is None
    assert store.load("odd") is None


def test_load_or_create_seeds_and_persists(tmp_path):
    store = BudgetStateStore(tmp_path)

    state = store.load_or_create("new-user")

    assert state == default_state()
    assert store.get_path("new-user").exists()


def test_iter_documents_skips_unreadable_files(tmp_path):
    store = BudgetStateStore(tmp_path)
    store.upsert("alice", default_state())
    store.upsert("bob", BudgetState())
    store.get_path("broken").write_text("nope", encoding="utf-8")

    documents = list(store.iter_documents())

    assert [doc["user_id"] for doc in documents] == ["alice", "bob"]
    assert documents[0]["data"]["incomePerPaycheck"] == 2100


def test_saver_writes_latest_state_on_flush(tmp_path):
    store = BudgetStateStore(tmp_path)
    saver = DebouncedSaver(store, "alice", delay=60)

    saver.schedule(apply_update(BudgetState(), {"monthlyBuffer": 100}))
    saver.schedule(apply_update(BudgetState(), {"monthlyBuffer": 300}))
    assert store.load("alice") is None

    assert saver.flush() is True
    assert saver.status == DebouncedSaver.SAVED
    assert store.load("alice").monthly_buffer == 300
    assert saver.flush() is False


def test_saver_fires_after_quiet_period(tmp_path):
    store = BudgetStateStore(tmp_path)
    saver = DebouncedSaver(store, "alice", delay=0.01)

    saver.schedule(default_state())

    deadline = time.monotonic() + 5
    while saver.status != DebouncedSaver.SAVED and time.monotonic() < deadline:
        time.sleep(0.01)
    assert store.load("alice") == default_state()


def test_disabled_auto_save_cancels_pending_write(tmp_path):
    store = BudgetStateStore(tmp_path)
    saver = DebouncedSaver(store, "alice", delay=60)

    saver.schedule(default_state())
    saver.schedule(BudgetState(auto_save_enabled=False))

    assert saver.status == DebouncedSaver.IDLE
    assert saver.flush() is False
    assert store.load("alice") is None


def test_cancel_drops_pending_write(tmp_path):
    store = BudgetStateStore(tmp_path)
    saver = DebouncedSaver(store, "alice", delay=60)
    saver.schedule(default_state())

    saver.cancel()

    assert saver.flush() is False


def test_failed_save_notifies_and_returns_to_idle():
    notices = []
    saver = DebouncedSaver(_FailingStore(), "alice", delay=60, on_notice=notices.append)
    saver.schedule(default_state())

    assert saver.flush() is False
    assert saver.status == DebouncedSaver.IDLE
    assert notices == [SAVE_FAILED_NOTICE]
