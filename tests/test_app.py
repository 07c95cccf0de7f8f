"""
Tests for the Streamlit front end, run headlessly with ``AppTest``.
"""

from streamlit.testing.v1 import AppTest

APP_PATH = "../app.py"


class TestSidebarSettings:

    def test_bad_environment_value_shows_error(self, monkeypatch):
        monkeypatch.setenv("LINKCRAWLER_MAX_LINKS", "lots")
        at = AppTest.from_file(APP_PATH, default_timeout=30).run()

        assert not at.exception
        assert any("LINKCRAWLER_MAX_LINKS" in e.value for e in at.error)
        assert at.number_input[0].value == 100

    def test_environment_defaults_fill_the_form(self, monkeypatch):
        monkeypatch.setenv("LINKCRAWLER_MAX_LINKS", "25")
        at = AppTest.from_file(APP_PATH, default_timeout=30).run()

        assert not at.exception
        assert len(at.error) == 0
        assert at.number_input[0].value == 25
