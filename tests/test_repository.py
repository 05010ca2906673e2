from paperpilot.database.repository import StateRepository


def test_missing_key_returns_default(repo):
    assert repo.get("nothing") is None
    assert repo.get("nothing", []) == []


def test_values_round_trip_as_json(repo):
    repo.set("topic", "transformers")
    repo.set("selected", ["a", "b"])
    repo.set("models", {"gemini": "gemini-2.5-flash"})
    assert repo.get("topic") == "transformers"
    assert repo.get("selected") == ["a", "b"]
    assert repo.get("models") == {"gemini": "gemini-2.5-flash"}


def test_set_replaces_whole_value(repo):
    repo.set("selected", ["a", "b"])
    repo.set("selected", ["c"])
    assert repo.get("selected") == ["c"]


def test_state_survives_reopen(settings):
    StateRepository(settings.db_path).set_many({"page": 3, "total": 40})
    reopened = StateRepository(settings.db_path)
    assert reopened.get("page") == 3
    assert reopened.keys() == ["page", "total"]


def test_delete_and_clear(repo):
    repo.set_many({"a": 1, "b": 2, "c": 3})
    assert repo.delete("a") is True
    assert repo.delete("a") is False
    assert repo.clear() == 2
    assert repo.keys() == []
