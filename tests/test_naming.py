"""Tests for specflow.lib.naming module."""

from specflow.lib.naming import slugify, branch_name_for, worktree_dir_name


class TestSlugify:
    """Test slug generation."""

    def test_drops_punctuation(self):
        assert slugify("Fix login bug!!") == "fix-login-bug"

    def test_collapses_whitespace_and_dashes(self):
        assert slugify("  Add   dark -- mode ") == "add-dark-mode"

    def test_drops_non_ascii_letters(self):
        assert slugify("Créer un compte") == "crer-un-compte"

    def test_caps_length(self):
        slug = slugify("word " * 30)
        assert len(slug) == 48

    def test_empty(self):
        assert slugify("!!!") == ""


class TestBranchName:
    """Test branch and worktree naming."""

    def test_branch_name(self):
        assert branch_name_for(42, "Fix login bug") == "issue/42-fix-login-bug"

    def test_worktree_dir_name(self):
        assert worktree_dir_name(42, "Fix login bug") == "42-fix-login-bug"

    def test_same_input_same_name(self):
        assert branch_name_for(7, "Add SSO!") == branch_name_for(7, "Add SSO!")
