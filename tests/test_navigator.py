from __future__ import annotations

import pytest

from authgate.models import Page
from authgate.navigator import InMemoryPresenter, InvalidTransition, PageNavigator


def _navigator() -> tuple[PageNavigator, InMemoryPresenter]:
    presenter = InMemoryPresenter()
    return PageNavigator(presenter), presenter


def test_starts_on_splash():
    nav, presenter = _navigator()
    assert nav.page is Page.splash
    assert presenter.views == []


def test_privacy_round_trip_keeps_register_fields():
    nav, presenter = _navigator()
    nav.show_register()
    nav.update_fields(username="dana", password="hunter22")
    nav.show_message("Password must be at least 6 characters.")

    nav.show_privacy()
    assert nav.page is Page.privacy
    nav.back()

    assert nav.page is Page.register
    assert nav.fields() == {"username": "dana", "password": "hunter22"}
    assert nav.message == "Password must be at least 6 characters."
    assert presenter.current is not None and presenter.current.page is Page.register


def test_privacy_returns_to_login_when_opened_from_login():
    nav, _ = _navigator()
    nav.show_login()
    nav.show_privacy()
    nav.back()
    assert nav.page is Page.login


def test_login_to_register_clears_message():
    nav, _ = _navigator()
    nav.show_login()
    nav.show_message("Invalid email or password.")
    nav.show_register()
    assert nav.message is None
    assert nav.view().message is None


def test_entering_page_clears_its_stale_fields():
    nav, _ = _navigator()
    nav.show_login()
    nav.update_fields(email="a@app.com", password="pw")
    nav.show_register()
    nav.show_login()
    assert nav.fields() == {"email": "", "password": ""}


@pytest.mark.parametrize(
    "setup, action",
    [
        ([], "show_privacy"),
        ([], "back"),
        (["show_login"], "back"),
        (["show_login"], "show_login"),
        (["show_login", "show_privacy"], "show_register"),
        (["show_register", "show_privacy"], "show_privacy"),
    ],
)
def test_disallowed_transitions(setup, action):
    nav, _ = _navigator()
    for step in setup:
        getattr(nav, step)()
    before = nav.page
    with pytest.raises(InvalidTransition):
        getattr(nav, action)()
    assert nav.page is before


def test_update_fields_validates_names():
    nav, _ = _navigator()
    nav.show_login()
    with pytest.raises(ValueError):
        nav.update_fields(username="x")
    nav.show_privacy()
    with pytest.raises(InvalidTransition):
        nav.update_fields(email="x")


def test_exit_is_terminal():
    nav, presenter = _navigator()
    nav.show_login()
    nav.update_fields(email="a@app.com", password="secret1")
    nav.exit_auth_flow()

    assert presenter.entered_application
    assert nav.exited
    assert nav.fields(Page.login) == {"email": "", "password": ""}
    for action in ("show_login", "show_register", "exit_auth_flow"):
        with pytest.raises(InvalidTransition):
            getattr(nav, action)()
    with pytest.raises(InvalidTransition):
        nav.show_message("late")


def test_every_change_is_presented():
    nav, presenter = _navigator()
    nav.show_login()
    nav.update_fields(email="e")
    nav.show_register()
    assert [v.page for v in presenter.views] == [Page.login, Page.login, Page.register]
    assert presenter.views[1].fields == {"email": "e", "password": ""}
