import orjson

from betterbet.core.wallet import InMemoryBalanceStore, JsonFileBalanceStore


def test_in_memory_store():
    store = InMemoryBalanceStore(25)
    store.set_balance(30.5)
    assert store.get_balance() == 30.5


def test_json_store_is_created_lazily(tmp_path):
    path = tmp_path / "data" / "wallet.json"
    store = JsonFileBalanceStore(path, starting_balance=1000)
    assert not path.exists()

    assert store.get_balance() == 1000.0
    assert orjson.loads(path.read_bytes()) == {"balance": 1000.0}


def test_json_store_persists_between_instances(tmp_path):
    path = tmp_path / "wallet.json"
    JsonFileBalanceStore(path).set_balance(42.25)
    assert JsonFileBalanceStore(path).get_balance() == 42.25


def test_json_store_sees_external_writes(tmp_path):
    path = tmp_path / "wallet.json"
    store = JsonFileBalanceStore(path)
    store.get_balance()
    path.write_bytes(orjson.dumps({"balance": 7.0}))
    assert store.get_balance() == 7.0


def test_corrupt_file_restores_starting_balance(tmp_path):
    path = tmp_path / "wallet.json"
    path.write_text("{not json")
    store = JsonFileBalanceStore(path, starting_balance=500)
    assert store.get_balance() == 500.0
    assert orjson.loads(path.read_bytes())["balance"] == 500.0


def test_failing_listener_does_not_block_others():
    store = InMemoryBalanceStore(10)
    seen = []

    def broken(old, new):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda old, new: seen.append(new))
    store.set_balance(20)
    assert seen == [20]
