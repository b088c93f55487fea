"""Tests for UserRepo."""

import pytest

from app.core.enums import UserStatus


class TestUserRepo:
    """Test cases for UserRepo."""

    def test_create_user_success(self, user_repo):
        """Test successful user creation."""
        user = user_repo.create_user(
            "jane@acme.test", {"email": "jane@acme.test", "first_name": "Jane"}
        )

        assert user.id is not None
        assert user.username == "jane@acme.test"
        assert user.first_name == "Jane"
        assert user.is_member is False

    def test_create_user_strips_username(self, user_repo):
        user = user_repo.create_user("  jane@acme.test  ")
        assert user.username == "jane@acme.test"

    @pytest.mark.parametrize("username", ["", "   "])
    def test_create_user_empty_username(self, user_repo, username):
        """Test user creation with empty username fails."""
        with pytest.raises(ValueError, match="cannot be empty"):
            user_repo.create_user(username)

    def test_create_user_username_too_long(self, user_repo):
        with pytest.raises(ValueError, match="cannot exceed 255"):
            user_repo.create_user("a" * 256)

    def test_create_duplicate_user(self, user_repo):
        user_repo.create_user("jane@acme.test")

        with pytest.raises(ValueError, match="already exists"):
            user_repo.create_user("jane@acme.test")

    def test_create_revives_soft_deleted_user(self, user_repo):
        original = user_repo.create_user("jane@acme.test", {"first_name": "Jane"})
        user_repo.soft_delete("jane@acme.test")

        revived = user_repo.create_user("jane@acme.test", {"first_name": "Janet"})

        assert revived.id == original.id
        assert revived.deleted_at is None
        assert revived.first_name == "Janet"

    def test_revived_user_drops_old_profile(self, user_repo):
        user_repo.create_user(
            "jane@acme.test",
            {
                "first_name": "Jane",
                "designation": "CFO",
                "member_id": "MEMBER-004",
                "entra_user_id": "entra-old",
                "is_member": True,
            },
        )
        user_repo.soft_delete("jane@acme.test")

        revived = user_repo.create_user("jane@acme.test", {"email": "jane@acme.test"})

        assert revived.email == "jane@acme.test"
        assert revived.first_name is None
        assert revived.designation is None
        assert revived.member_id is None
        assert revived.entra_user_id is None
        assert revived.is_member is False
        assert revived.status == UserStatus.ACTIVE

    def test_get_by_login_matches_email_case_insensitively(self, user_repo):
        user_repo.create_user("jdoe", {"email": "Jane.Doe@Acme.test"})

        user = user_repo.get_by_login("jane.doe@acme.TEST")

        assert user is not None
        assert user.username == "jdoe"

    def test_get_by_login_unknown(self, user_repo):
        assert user_repo.get_by_login("nobody@acme.test") is None

    def test_search_users_by_username_and_type(self, user_repo):
        user_repo.create_user("alice@wfzo.test", {"user_type": "Internal"})
        user_repo.create_user("bob@wfzo.test", {"user_type": "Internal"})
        user_repo.create_user("alice@acme.test", {"user_type": "Primary"})

        users, total = user_repo.search_users(username="alice", user_type="Internal")

        assert total == 1
        assert users[0].username == "alice@wfzo.test"

    def test_update_user(self, user_repo):
        user_repo.create_user("jane@acme.test")

        user = user_repo.update_user("jane@acme.test", {"designation": "CEO"})

        assert user.designation == "CEO"

    def test_update_user_unknown_field(self, user_repo):
        user_repo.create_user("jane@acme.test")

        with pytest.raises(ValueError, match="Unknown user field"):
            user_repo.update_user("jane@acme.test", {"password": "x"})

    def test_update_missing_user(self, user_repo):
        with pytest.raises(ValueError, match="not found"):
            user_repo.update_user("ghost@acme.test", {"designation": "CEO"})

    def test_soft_delete(self, user_repo):
        user_repo.create_user("jane@acme.test")

        assert user_repo.soft_delete("jane@acme.test") is True
        assert user_repo.get_by_username("jane@acme.test") is None
        assert user_repo.soft_delete("jane@acme.test") is False
