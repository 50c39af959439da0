import pytest

from src.workhub.workhub.core.exceptions import ValidationError
from src.workhub.workhub.ui_state.stores import FilterState, UIState, decode_cookie, encode_cookie


def test_ui_state_defaults_and_actions():
    state = UIState()
    assert state.to_dict() == {"sidebarOpen": True, "sidebarCollapsed": False, "theme": "system", "activeModal": None}

    state = state.toggle_sidebar().set_theme(" Dark ").open_modal("new-task")
    assert (state.sidebar_open, state.theme, state.active_modal) == (False, "dark", "new-task")
    assert state.close_modal().active_modal is None


def test_apply_patch():
    state = UIState().apply({"sidebarCollapsed": True, "theme": "light", "activeModal": ""})

    assert state.persisted() == {"sidebar_collapsed": True, "theme": "light"}
    assert state.session_part() == {"sidebar_open": True, "active_modal": None}


@pytest.mark.parametrize(
    "patch",
    [{"theme": "neon"}, {"sidebarOpen": "yes"}, {"fontSize": 12}],
)
def test_apply_rejects_bad_patches(patch):
    with pytest.raises(ValidationError):
        UIState().apply(patch)


def test_only_the_persisted_part_survives_sign_out():
    state = UIState().apply({"sidebarCollapsed": True, "theme": "dark", "sidebarOpen": False, "activeModal": "x"})
    cookie = encode_cookie(state.persisted())

    restored = UIState.load(decode_cookie(cookie), None)

    assert restored == UIState(sidebar_collapsed=True, theme="dark")


def test_load_tolerates_garbage():
    assert UIState.load({"theme": "neon", "bogus": 1}, {"sidebar_open": False}) == UIState(sidebar_open=False)
    assert decode_cookie("not json") == {}
    assert decode_cookie("[1, 2]") == {}
    assert decode_cookie(None) == {}


def test_filters_merge_drop_and_reset():
    state = FilterState().update({"projects": {"status": "ACTIVE"}, "tasks": {"priority": "HIGH", "q": "bug"}})
    state = state.update({"tasks": {"q": None}})

    assert state.to_dict() == {"projects": {"status": "ACTIVE"}, "tasks": {"priority": "HIGH"}}
    assert FilterState.load(state.to_session()) == state
    assert state.reset("tasks").to_dict() == {"projects": {"status": "ACTIVE"}, "tasks": {}}
    assert state.reset() == FilterState()


@pytest.mark.parametrize("patch", [{"users": {}}, {"tasks": ["HIGH"]}])
def test_filters_reject_bad_patches(patch):
    with pytest.raises(ValidationError):
        FilterState().update(patch)
