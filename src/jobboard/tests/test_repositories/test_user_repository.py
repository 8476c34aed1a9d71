import datetime

import pytest

from jobboard.exceptions.base import ConflictError, InternalError, NotFoundError
from jobboard.models.user import User
from jobboard.repositories.sqlalchemy_delegate import SQLAlchemyDelegate
from jobboard.repositories.user_repository import UserRepository


class TestUserRepositoryCreate:
    """
    Tests covering creation of users through UserRepository.create().

    Fixtures used:
      - user_repository: UserRepository over a SQLAlchemyDelegate on a per-test in-memory DB.
      - sample_user_data: canonical payload ("a@x.com", ...).

    Rationale:
      - The delegate flushes and refreshes inside its transaction, so server-side
        defaults (id, timestamps) must already be populated on the returned User.
      - Unique keys (email, external_auth_id) must surface as ConflictError naming the column.
    """

    async def test_create_user_success(self, user_repository: UserRepository, sample_user_data: dict):
        """
        Behavior:
          - Create a new user from sample_user_data.
          - Assert a persisted User is returned with generated id and timestamps.
        """
        user = await user_repository.create(sample_user_data)

        assert isinstance(user, User)
        assert user.email == "a@x.com"
        assert user.first_name == "Ada"
        assert isinstance(user.id, int)
        assert isinstance(user.created_at, datetime.datetime)
        assert isinstance(user.updated_at, datetime.datetime)

    async def test_duplicate_email_raises_conflict_naming_email(self, user_repository: UserRepository, created_user):
        """
        Behavior:
          - A second create with the same email collides with the unique index on `email`.
          - ConflictError names `email`; SQLite reports it as "UNIQUE constraint failed: users.email".
        """
        with pytest.raises(ConflictError) as exc_info:
            await user_repository.create({"email": created_user.email})

        assert exc_info.value.fields == ["email"]
        assert exc_info.value.message == "Unique constraint violation: email"

    async def test_duplicate_external_auth_id_raises_conflict(self, user_repository, created_user, create_user):
        with pytest.raises(ConflictError) as exc_info:
            await create_user(external_auth_id=created_user.external_auth_id)

        assert exc_info.value.fields == ["external_auth_id"]

    async def test_failed_create_leaves_no_row_behind(self, user_repository, created_user):
        with pytest.raises(ConflictError):
            await user_repository.create({"email": created_user.email, "first_name": "Dup"})

        assert await user_repository.count() == 1

    async def test_missing_required_field_is_internal(self, user_repository: UserRepository):
        """
        Behavior:
          - NOT NULL violations are integrity failures the repository does not recognize.
          - They surface as InternalError with the fixed create message.
        """
        with pytest.raises(InternalError) as exc_info:
            await user_repository.create({"first_name": "NoEmail"})

        assert exc_info.value.message == "Error creating the record."

    async def test_unknown_field_is_internal(self, user_repository: UserRepository, repo_logger):
        with pytest.raises(InternalError):
            await user_repository.create({"email": "a@x.com", "unknown_field": "bad"})

        extra = repo_logger.error.call_args.kwargs["extra"]
        assert extra["code"] == "invalid_query"


class TestUserRepositoryRead:

    async def test_find_unique_by_id(self, user_repository, created_user):
        found = await user_repository.find_unique({"id": created_user.id})

        assert found is not None
        assert found.id == created_user.id
        assert found.email == created_user.email

    async def test_find_unique_returns_none_for_zero_matches(self, user_repository):
        assert await user_repository.find_unique({"id": 999}) is None

    async def test_find_unique_with_select_returns_projection(self, user_repository, created_user):
        found = await user_repository.find_unique({"id": created_user.id}, select={"id": True, "email": True})

        assert found == {"id": created_user.id, "email": created_user.email}

    async def test_find_by_email_normalizes_input(self, user_repository, created_user):
        found = await user_repository.find_by_email("  A@X.COM ")

        assert found is not None
        assert found.id == created_user.id

    async def test_find_by_external_auth_id(self, user_repository, created_user):
        found = await user_repository.find_by_external_auth_id("auth0|sample")

        assert found is not None
        assert found.id == created_user.id

    async def test_where_none_matches_null(self, user_repository, create_user):
        await create_user(external_auth_id=None, last_name="anon")
        await create_user(last_name="linked")

        rows = await user_repository.find_many(where={"external_auth_id": None})

        assert [u.last_name for u in rows] == ["anon"]

    async def test_count_with_and_without_filter(self, user_repository, multiple_users):
        assert await user_repository.count() == 5
        assert await user_repository.count({"last_name": "user_3"}) == 1


class TestUserRepositoryFindMany:
    """
    Ordering, pagination and cursor semantics of the SQLAlchemy delegate.

    Fixtures:
      - multiple_users: five users, last names user_0..user_4, ids ascending in that order.
    """

    async def test_order_by_desc(self, user_repository, multiple_users):
        rows = await user_repository.find_many(order_by={"last_name": "desc"})

        assert [u.last_name for u in rows] == ["user_4", "user_3", "user_2", "user_1", "user_0"]

    async def test_order_by_list_of_fields(self, user_repository, multiple_users):
        rows = await user_repository.find_many(order_by=[{"first_name": "asc"}, {"id": "desc"}])

        assert [u.id for u in rows] == sorted((u.id for u in multiple_users), reverse=True)

    async def test_skip_and_take(self, user_repository, multiple_users):
        rows = await user_repository.find_many(order_by={"id": "asc"}, skip=1, take=2)

        assert [u.last_name for u in rows] == ["user_1", "user_2"]

    async def test_cursor_starts_at_cursor_record(self, user_repository, multiple_users):
        """
        Behavior:
          - With ascending order, the page starts at the cursor record itself (inclusive).
        """
        cursor_id = multiple_users[2].id

        rows = await user_repository.find_many(cursor={"id": cursor_id}, take=2, order_by={"id": "asc"})

        assert [u.last_name for u in rows] == ["user_2", "user_3"]

    async def test_cursor_with_descending_order(self, user_repository, multiple_users):
        cursor_id = multiple_users[2].id

        rows = await user_repository.find_many(cursor={"id": cursor_id}, order_by={"id": "desc"})

        assert [u.last_name for u in rows] == ["user_2", "user_1", "user_0"]

    async def test_cursor_without_order_orders_by_cursor_field(self, user_repository, multiple_users):
        cursor_id = multiple_users[3].id

        rows = await user_repository.find_many(cursor={"id": cursor_id})

        assert [u.last_name for u in rows] == ["user_3", "user_4"]

    async def test_cursor_follows_ordering_on_another_column(self, user_repository, create_user):
        """
        Behavior:
          - Emails are inserted as c, a, b, d, so id order differs from email order.
          - A cursor on `id` with order_by email asc starts at the cursor record and
            continues in email order, including rows with a lower id than the cursor.
        """
        for letter in "cabd":
            await create_user(email=f"{letter}@x.com")
        cursor_user = await user_repository.find_by_email("b@x.com")

        rows = await user_repository.find_many(order_by={"email": "asc"}, cursor={"id": cursor_user.id})

        assert [u.email for u in rows] == ["b@x.com", "c@x.com", "d@x.com"]

    async def test_cursor_follows_descending_ordering_on_another_column(self, user_repository, create_user):
        for letter in "cabd":
            await create_user(email=f"{letter}@x.com")
        cursor_user = await user_repository.find_by_email("b@x.com")

        rows = await user_repository.find_many(order_by={"email": "desc"}, cursor={"id": cursor_user.id})

        assert [u.email for u in rows] == ["b@x.com", "a@x.com"]

    async def test_cursor_breaks_ties_with_cursor_field(self, user_repository, multiple_users):
        """
        Behavior:
          - Every fixture user shares first_name "Test"; the cursor field orders
            within the tie, so the page is the cursor record and the ids after it.
        """
        cursor_id = multiple_users[2].id

        rows = await user_repository.find_many(order_by={"first_name": "asc"}, cursor={"id": cursor_id}, take=2)

        assert [u.last_name for u in rows] == ["user_2", "user_3"]

    async def test_cursor_with_nulls_in_ordered_column(self, user_repository, create_user):
        """
        Behavior:
          - NULL sorts as the smallest value: first ascending, last descending.
          - Pages continue correctly from a record whose ordered column is NULL.
        """
        b = await create_user(last_name="B")
        null_1 = await create_user(last_name=None)
        a = await create_user(last_name="A")
        null_2 = await create_user(last_name=None)

        ascending = await user_repository.find_many(order_by={"last_name": "asc"}, cursor={"id": null_2.id})
        descending = await user_repository.find_many(order_by={"last_name": "desc"}, cursor={"id": a.id})
        from_null = await user_repository.find_many(order_by={"last_name": "desc"}, cursor={"id": null_1.id})

        assert [u.id for u in ascending] == [null_2.id, a.id, b.id]
        assert [u.id for u in descending] == [a.id, null_1.id, null_2.id]
        assert [u.id for u in from_null] == [null_1.id, null_2.id]

    async def test_cursor_with_skip_excludes_cursor_record(self, user_repository, multiple_users):
        cursor_id = multiple_users[1].id

        rows = await user_repository.find_many(order_by={"id": "asc"}, cursor={"id": cursor_id}, skip=1, take=2)

        assert [u.last_name for u in rows] == ["user_2", "user_3"]

    async def test_missing_cursor_record_returns_empty_page(self, user_repository, multiple_users):
        assert await user_repository.find_many(cursor={"id": 10_000}, order_by={"id": "asc"}) == []

    async def test_select_returns_dicts(self, user_repository, multiple_users):
        rows = await user_repository.find_many(take=2, order_by={"id": "asc"}, select={"last_name": True})

        assert rows == [{"last_name": "user_0"}, {"last_name": "user_1"}]

    async def test_empty_result_is_empty_list(self, user_repository):
        assert await user_repository.find_many(where={"last_name": "nobody"}) == []

    @pytest.mark.parametrize(
        "options",
        [
            {"where": {"nope": 1}},
            {"order_by": {"nope": "asc"}},
            {"order_by": {"id": "sideways"}},
            {"cursor": {"id": 1, "email": "a@x.com"}},
            {"include": {"applications": True}},
            {"take": -1},
            {"skip": -1},
        ],
    )
    async def test_invalid_query_is_internal(self, user_repository, options):
        with pytest.raises(InternalError) as exc_info:
            await user_repository.find_many(**options)

        assert exc_info.value.message == "Error retrieving records."


class TestUserRepositoryUpdate:

    async def test_update_changes_only_given_fields(self, user_repository, created_user):
        updated = await user_repository.update({"id": created_user.id}, {"first_name": "X"})

        assert updated.first_name == "X"
        assert updated.last_name == created_user.last_name
        assert updated.email == created_user.email

        reloaded = await user_repository.find_unique({"id": created_user.id})
        assert reloaded.first_name == "X"

    async def test_update_missing_record_raises_not_found(self, user_repository):
        with pytest.raises(NotFoundError) as exc_info:
            await user_repository.update({"id": 42}, {"first_name": "X"})

        assert exc_info.value.message == "Record to update not found."

    async def test_update_into_existing_email_raises_conflict(self, user_repository, created_user, create_user):
        other = await create_user()

        with pytest.raises(ConflictError) as exc_info:
            await user_repository.update({"id": other.id}, {"email": created_user.email})

        assert exc_info.value.fields == ["email"]


class TestUserRepositoryDelete:

    async def test_delete_returns_deleted_record(self, user_repository, created_user):
        deleted = await user_repository.delete({"id": created_user.id})

        assert deleted.id == created_user.id
        assert deleted.email == created_user.email
        assert await user_repository.find_unique({"id": created_user.id}) is None

    async def test_delete_missing_record_raises_not_found(self, user_repository):
        with pytest.raises(NotFoundError) as exc_info:
            await user_repository.delete({"id": 42})

        assert exc_info.value.message == "Record to delete not found."

    async def test_delete_with_select_projects_deleted_record(self, user_repository, created_user):
        deleted = await user_repository.delete({"id": created_user.id}, select={"email": True})

        assert deleted == {"email": created_user.email}


class TestSQLAlchemyDelegateDirect:
    """The delegate raises storage errors; only the repository translates them."""

    async def test_update_missing_raises_record_not_found(self, session_factory):
        from jobboard.exceptions.storage import RecordNotFoundError

        delegate = SQLAlchemyDelegate(User, session_factory)

        with pytest.raises(RecordNotFoundError):
            await delegate.update(where={"id": 42}, data={"first_name": "X"})

    async def test_duplicate_raises_unique_violation_with_target(self, session_factory):
        from jobboard.exceptions.storage import UniqueConstraintViolation

        delegate = SQLAlchemyDelegate(User, session_factory)
        await delegate.create(data={"email": "a@x.com"})

        with pytest.raises(UniqueConstraintViolation) as exc_info:
            await delegate.create(data={"email": "a@x.com"})

        assert exc_info.value.target == ["email"]

    @pytest.mark.parametrize("window", [{"take": -1}, {"skip": -3}])
    async def test_negative_window_raises_invalid_query(self, session_factory, window):
        from jobboard.exceptions.storage import InvalidQueryError

        delegate = SQLAlchemyDelegate(User, session_factory)
        await delegate.create(data={"email": "a@x.com"})

        with pytest.raises(InvalidQueryError):
            await delegate.find_many(**window)

    async def test_zero_take_returns_empty_page(self, session_factory):
        delegate = SQLAlchemyDelegate(User, session_factory)
        await delegate.create(data={"email": "a@x.com"})

        assert await delegate.find_many(take=0) == []

    async def test_model_name(self, session_factory):
        assert SQLAlchemyDelegate(User, session_factory).model_name == "User"
