import pytest

from gh_issue_viewer.actions import (
    InputEvent,
    LabelEditErrored,
    LabelMissing,
    LabelsUpdated,
    SelectedIssueLabels,
)
from gh_issue_viewer.canvas import Canvas
from gh_issue_viewer.components.base import compute_layout
from gh_issue_viewer.components.labels import (
    MODE_ADD,
    MODE_CONFIRM,
    MODE_IDLE,
    MODE_PENDING,
    ColorPicker,
    LabelEditor,
    normalize_color,
)
from gh_issue_viewer.errors import GithubError
from gh_issue_viewer.models import Label


def key(name):
    return InputEvent(name, name if len(name) == 1 else "")


def type_text(editor, text):
    for ch in text:
        editor.handle_input(InputEvent(ch, ch))


def ask_to_create(editor, name):
    editor.mode = MODE_PENDING
    editor.pending_name = name
    assert editor.handle_action(LabelMissing(name=name, number=editor.number)) is True


@pytest.fixture
def editor(fake_client, app_state, queue):
    ed = LabelEditor(fake_client, app_state)
    ed.register_dispatcher(queue)
    fake_client.repo_labels["bug"] = {"name": "bug", "color": "d73a4a"}
    fake_client.issue_labels[42] = ["bug"]
    ed.handle_action(SelectedIssueLabels(number=42, labels=(Label("bug", "d73a4a"),)))
    return ed


def test_add_requires_selected_issue(fake_client, app_state, queue):
    ed = LabelEditor(fake_client, app_state)
    ed.register_dispatcher(queue)
    ed.handle_input(key("a"))
    assert ed.mode == MODE_IDLE
    assert ed.status == "No issue selected"


def test_add_existing_label(editor, fake_client, scheduled_tasks, queue, deliver):
    fake_client.repo_labels["docs"] = {"name": "docs", "color": "0075ca"}
    editor.handle_input(key("a"))
    assert editor.mode == MODE_ADD
    type_text(editor, "docs")
    editor.handle_input(key("enter"))
    assert editor.mode == MODE_PENDING
    assert scheduled_tasks.names() == ["add_label_task"]
    scheduled_tasks.run_pending()
    deliver(queue, editor)
    assert [label.name for label in editor.labels] == ["bug", "docs"]
    assert editor.mode == MODE_IDLE
    assert editor.status == "Labels updated"
    assert fake_client.calls_to("add_labels") == [("add_labels", "octo", "hello", 42, ["docs"])]


def test_missing_label_asks_for_confirmation(editor, fake_client, scheduled_tasks, queue, deliver):
    editor.handle_input(key("a"))
    type_text(editor, "needs triage")
    editor.handle_input(key("enter"))
    scheduled_tasks.run_pending()
    actions = deliver(queue, editor)
    assert actions == [LabelMissing(name="needs triage", number=42)]
    assert editor.mode == MODE_CONFIRM
    assert editor.pending_name == "needs triage"
    assert fake_client.calls_to("add_labels") == []


def test_other_lookup_failure_is_an_error(editor, fake_client, scheduled_tasks, queue, deliver):
    fake_client.failures["get_label"] = GithubError("Label lookup failed (500):\nServer Error", status=500)
    editor.handle_input(key("a"))
    type_text(editor, "docs")
    editor.handle_input(key("enter"))
    scheduled_tasks.run_pending()
    deliver(queue, editor)
    assert editor.mode == MODE_IDLE
    assert editor.status == "Label lookup failed (500): Server Error"
    assert editor.status_is_error


def test_blank_name_rejected_without_remote_call(editor, fake_client, scheduled_tasks):
    editor.handle_input(key("a"))
    type_text(editor, "   ")
    editor.handle_input(key("enter"))
    assert editor.status == "Label name cannot be empty"
    assert editor.mode == MODE_ADD
    assert editor.name_input == "   "
    assert scheduled_tasks.pending == []
    assert fake_client.calls_to("get_label") == []


def test_invalid_color_keeps_input(editor, scheduled_tasks):
    ask_to_create(editor, "new")
    editor.color_input = "12345"
    editor.handle_input(key("y"))
    assert editor.status == "Invalid color: 12345"
    assert editor.mode == MODE_CONFIRM
    assert editor.color_input == "12345"
    assert scheduled_tasks.pending == []


def test_create_with_picked_color(editor, fake_client, scheduled_tasks, queue, deliver):
    ask_to_create(editor, "new label")
    assert editor.color_input == "d0d7de"
    editor.handle_input(key("right"))
    assert editor.color_input == "8c959f"
    editor.handle_input(key("enter"))
    assert editor.mode == MODE_PENDING
    scheduled_tasks.run_pending()
    deliver(queue, editor)
    assert fake_client.calls_to("create_label") == [
        ("create_label", "octo", "hello", "new label", "8c959f", ""),
    ]
    assert [label.name for label in editor.labels] == ["bug", "new label"]
    assert editor.mode == MODE_IDLE


def test_typed_hex_replaces_picked_color(editor, fake_client, scheduled_tasks, queue, deliver):
    ask_to_create(editor, "x")
    type_text(editor, "#ABC123")
    assert editor.color_input == "#ABC123"
    editor.handle_input(key("y"))
    scheduled_tasks.run_pending()
    deliver(queue, editor)
    assert fake_client.calls_to("create_label")[0][4] == "abc123"


def test_cancel_creation(editor, scheduled_tasks):
    ask_to_create(editor, "x")
    editor.handle_input(key("n"))
    assert editor.mode == MODE_IDLE
    assert editor.status == "Label creation cancelled"
    assert scheduled_tasks.pending == []


def test_remove_selected_label(editor, fake_client, scheduled_tasks, queue, deliver):
    editor.handle_input(key("d"))
    scheduled_tasks.run_pending()
    deliver(queue, editor)
    assert editor.labels == []
    assert fake_client.calls_to("remove_label") == [("remove_label", "octo", "hello", 42, "bug")]


def test_update_for_other_issue_is_ignored(editor):
    assert editor.handle_action(LabelsUpdated(number=7, labels=())) is False
    assert [label.name for label in editor.labels] == ["bug"]


def test_capture_only_while_typing(editor):
    assert editor.capture_focus_event(key("q")) is False
    editor.handle_input(key("a"))
    assert editor.capture_focus_event(key("q")) is True
    editor.handle_input(key("escape"))
    assert editor.mode == MODE_IDLE


def test_color_helpers():
    assert normalize_color("#D73A4A") == "d73a4a"
    assert normalize_color("d73a4") is None
    assert normalize_color("gggggg") is None
    picker = ColorPicker.with_initial_hex("0969DA")
    assert (picker.row, picker.col) == (5, 4)
    assert ColorPicker.with_initial_hex("123456").selected_hex() == "d0d7de"


def test_render_confirm_mode(editor):
    ask_to_create(editor, "x")
    canvas = Canvas(100, 30)
    editor.render(canvas, compute_layout(100, 30))
    painted = "".join(text for _, text in canvas.to_fragments())
    assert "Labels #42" in painted
    assert "#d0d7de" in painted


def test_missing_label_for_previous_issue_is_ignored(editor, fake_client, scheduled_tasks, queue, deliver):
    editor.handle_action(SelectedIssueLabels(number=1, labels=()))
    editor.handle_input(key("a"))
    type_text(editor, "triage")
    editor.handle_input(key("enter"))
    editor.handle_action(SelectedIssueLabels(number=2, labels=()))
    scheduled_tasks.run_pending()
    assert deliver(queue, editor) == [LabelMissing(name="triage", number=1)]
    assert editor.mode == MODE_IDLE
    editor.handle_input(key("y"))
    assert scheduled_tasks.pending == []
    assert fake_client.calls_to("create_label") == []
    assert fake_client.calls_to("add_labels") == []


def test_missing_label_for_other_name_is_ignored(editor):
    editor.mode = MODE_PENDING
    editor.pending_name = "docs"
    assert editor.handle_action(LabelMissing(name="triage", number=42)) is False
    assert editor.mode == MODE_PENDING


def test_error_for_previous_issue_is_ignored(editor):
    editor.mode = MODE_PENDING
    assert editor.handle_action(LabelEditErrored(message="boom", number=7)) is False
    assert editor.mode == MODE_PENDING
    assert editor.status == ""
