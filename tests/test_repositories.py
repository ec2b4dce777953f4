"""Test suite for local persistence."""

import json

import pytest

from avan_studio.domain.errors import CorruptProjectError, DataImportError, ProjectNotFound
from avan_studio.domain.models import AccessibilitySettings, ChatMessage, Language, Project, new_project
from avan_studio.repositories.file import JsonFileStore
from avan_studio.repositories.preferences import LANGUAGE_KEY, SETTINGS_KEY
from avan_studio.repositories.projects import SAVED_PROJECTS_KEY, code_key, messages_key


def make_project(project_id: str, name: str = "Site") -> Project:
    return Project(id=project_id, name=name, created_at=1700000000000)


def test_transcript_keys(project_store, store):
    """Test transcripts and code are stored under per-project keys."""
    project = make_project("42")
    project.append(ChatMessage(id="1", role="user", text="Hi", timestamp=1))
    project.current_code = "<html></html>"

    project_store.save_transcript(project)

    assert json.loads(store.get(messages_key("42"))) == [
        {"id": "1", "role": "user", "text": "Hi", "timestamp": 1}
    ]
    assert store.get(code_key("42")) == "<html></html>"


def test_save_new_project_is_prepended(project_store):
    """Test saving a new id puts it first and keeps the others."""
    project_store.save_project(make_project("1"), "First")
    project_store.save_project(make_project("2"), "Second")

    saved = project_store.list_saved_projects()
    assert [p.id for p in saved] == ["2", "1"]
    assert [p.name for p in saved] == ["Second", "First"]


def test_save_existing_project_moves_to_front(project_store):
    """Test re-saving replaces the old entry and moves it first."""
    for project_id in ("1", "2", "3"):
        project_store.save_project(make_project(project_id), f"Site {project_id}")

    project_store.save_project(make_project("1"), "Renamed")

    saved = project_store.list_saved_projects()
    assert [p.id for p in saved] == ["1", "3", "2"]
    assert saved[0].name == "Renamed"


def test_save_blank_name_defaults(project_store):
    """Test a blank display name becomes Untitled Project."""
    assert project_store.save_project(make_project("1"), "   ").name == "Untitled Project"
    assert project_store.save_project(make_project("2", "Kept name")).name == "Kept name"


def test_saved_list_uses_camel_case(project_store, store):
    """Test the saved list is stored with camelCase fields."""
    project = make_project("7")
    project.current_code = "<p>x</p>"
    project_store.save_project(project, "Seven")

    entry = json.loads(store.get(SAVED_PROJECTS_KEY))[0]
    assert entry["createdAt"] == 1700000000000
    assert entry["currentCode"] == "<p>x</p>"


def test_open_prefers_stored_transcript(project_store):
    """Test a saved snapshot is overlaid with the latest stored transcript."""
    project = new_project("Landing page")
    project_store.create(project)
    project_store.save_project(project, "Landing")

    project.append(ChatMessage(role="model", text="Done"))
    project.current_code = "<html>new</html>"
    project_store.save_transcript(project)

    snapshot = project_store.list_saved_projects()[0]
    assert len(snapshot.messages) == 1
    opened = project_store.open(snapshot)
    assert [m.text for m in opened.messages] == ["Landing page", "Done"]
    assert opened.current_code == "<html>new</html>"


def test_get_unknown_project(project_store):
    """Test loading an unknown id raises ProjectNotFound."""
    with pytest.raises(ProjectNotFound):
        project_store.get("missing")


def test_corrupt_transcript_is_not_replaced(project_store, store):
    """Test an unreadable transcript raises and stays in storage."""
    project = new_project("Landing page")
    project_store.create(project)
    store.set(messages_key(project.id), "[{broken")

    with pytest.raises(CorruptProjectError):
        project_store.get(project.id)
    assert store.get(messages_key(project.id)) == "[{broken"


def test_stored_transcript_omits_display_text(project_store, store):
    """Test the derived display text is not written to storage."""
    project = make_project("9")
    project.append(ChatMessage(role="user", text="Hi\n\n[FILE CONTENT: a.css]\nx\n[/FILE]\n"))
    project_store.save_transcript(project)
    project_store.save_project(project, "Nine")

    assert "displayText" not in store.get(messages_key("9"))
    assert "displayText" not in store.get(SAVED_PROJECTS_KEY)
    assert project_store.get("9").messages[0].display_text == "Hi\n\n\n[File Attached]"


def test_corrupt_saved_list_reads_empty(project_store, store):
    """Test a corrupt saved list does not break listing."""
    store.set(SAVED_PROJECTS_KEY, "{not json")
    assert project_store.list_saved_projects() == []


def test_settings_defaults_and_merge(preference_store, store):
    """Test stored settings override defaults field by field."""
    assert preference_store.load_settings() == AccessibilitySettings()

    store.set(SETTINGS_KEY, json.dumps({"theme": "light", "largeText": True}))
    settings = preference_store.load_settings()
    assert settings.theme == "light"
    assert settings.large_text is True
    assert settings.sound_enabled is True


@pytest.mark.parametrize("raw", ["{broken", "[1, 2]", '{"theme": "purple"}'])
def test_corrupt_settings_fall_back_to_defaults(preference_store, store, raw):
    """Test unreadable settings silently give the defaults."""
    store.set(SETTINGS_KEY, raw)
    assert preference_store.load_settings() == AccessibilitySettings()


def test_reset_accessibility_keeps_theme():
    """Test resetting clears aids but keeps theme and sound."""
    settings = AccessibilitySettings(theme="light", sound_enabled=False, grayscale=True, big_cursor=True)
    reset = settings.reset_accessibility()
    assert reset.grayscale is False
    assert reset.big_cursor is False
    assert reset.theme == "light"
    assert reset.sound_enabled is False


def test_language_round_trip(preference_store, store):
    """Test the language preference is stored as its code."""
    assert preference_store.load_language() == Language.EN
    preference_store.save_language(Language.HE)
    assert store.get(LANGUAGE_KEY) == "he"
    assert preference_store.load_language().direction == "rtl"

    store.set(LANGUAGE_KEY, "klingon")
    assert preference_store.load_language() == Language.EN


def test_import_overwrites_keys(preference_store, store):
    """Test importing writes every key, encoding non-string values."""
    store.set("keep", "me")
    count = preference_store.import_data(json.dumps({"avan_language": "es", "savedProjects": []}))

    assert count == 2
    assert store.get("avan_language") == "es"
    assert store.get("savedProjects") == "[]"
    assert store.get("keep") == "me"


@pytest.mark.parametrize("payload", ["not json at all", "[1, 2, 3]", '"text"'])
def test_corrupt_import_aborts(preference_store, store, payload):
    """Test a bad import file changes nothing."""
    store.set("avan_language", "de")
    with pytest.raises(DataImportError):
        preference_store.import_data(payload)
    assert store.items() == {"avan_language": "de"}


def test_export_round_trip(preference_store, store):
    """Test an export can be imported into an empty store."""
    store.set("avan_language", "nl")
    store.set("project_1_code", "<html></html>")
    exported = preference_store.export_data()

    store.clear()
    preference_store.import_data(exported)
    assert store.items() == {"avan_language": "nl", "project_1_code": "<html></html>"}


def test_file_store_persists(tmp_path):
    """Test values survive reopening the file store."""
    path = tmp_path / "studio.json"
    first = JsonFileStore(path)
    first.set("avan_language", "it")
    first.set("project_9_code", "<p>ciao</p>")
    first.remove("avan_language")

    reopened = JsonFileStore(path)
    assert reopened.items() == {"project_9_code": "<p>ciao</p>"}
    assert not (tmp_path / "studio.json.tmp").exists()


def test_file_store_corrupt_file_starts_empty(tmp_path):
    """Test a corrupt store file is treated as empty."""
    path = tmp_path / "studio.json"
    path.write_text("{{{", encoding="utf-8")
    assert JsonFileStore(path).items() == {}
