"""Tests for interactive UI helpers."""

from prompt_toolkit.document import Document

from group_ledger.ui import CategoryCompleter, confirm, fuzzy_match


class TestFuzzyMatch:
    def test_characters_in_order(self):
        assert fuzzy_match("gro", "groceries")
        assert fuzzy_match("ent", "entertainment")
        assert fuzzy_match("", "food")

    def test_out_of_order_does_not_match(self):
        assert not fuzzy_match("dof", "food")


class TestCategoryCompleter:
    """Completions offered while typing a category."""

    def completions(self, categories, text):
        completer = CategoryCompleter(categories)
        return [c.text for c in completer.get_completions(Document(text), None)]

    def test_empty_query_lists_everything(self):
        assert self.completions(["food", "travel"], "") == ["food", "travel"]

    def test_fuzzy_filtering(self):
        categories = ["food", "groceries", "transport", "travel"]

        assert self.completions(categories, "tr") == ["transport", "travel"]
        assert self.completions(categories, "GRO") == ["groceries"]

    def test_completion_replaces_typed_text(self):
        completer = CategoryCompleter(["groceries"])

        completion = next(completer.get_completions(Document("gro"), None))

        assert completion.start_position == -3


class TestConfirm:
    def test_yes(self, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda _: " Y ")
        assert confirm("Delete?")

    def test_default_is_no(self, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda _: "")
        assert not confirm("Delete?")
