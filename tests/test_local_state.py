from utils.local_state import REMEMBERED_EMAIL, THEME, LocalState, get_storage_dir


def test_values_survive_a_new_instance(tmp_path):
    LocalState("a@example.com", storage_dir=tmp_path).set(THEME, "light")
    assert LocalState("a@example.com", storage_dir=tmp_path).get(THEME) == "light"


def test_namespaces_are_separate(tmp_path):
    LocalState("a@example.com", storage_dir=tmp_path).set(THEME, "light")
    assert LocalState("b@example.com", storage_dir=tmp_path).get(THEME) is None


def test_delete_and_default(local_state):
    local_state.set(REMEMBERED_EMAIL, "a@example.com")
    local_state.delete(REMEMBERED_EMAIL)
    local_state.delete("missing")
    assert local_state.get(REMEMBERED_EMAIL, "none") == "none"


def test_corrupt_file_reads_as_empty(local_state):
    local_state.path.write_text("{not json", encoding="utf-8")
    assert local_state.get(THEME) is None
    local_state.set(THEME, "dark")
    assert local_state.get(THEME) == "dark"


def test_storage_dir_override(tmp_path):
    target = tmp_path / "state"
    assert get_storage_dir(str(target)) == target
    assert target.is_dir()
