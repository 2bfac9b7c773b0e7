"""Tests for services.journal_service."""

from datetime import date, datetime

import pytest
from sqlalchemy import text

from models.enums import EntryCategory, Mood
from models.journal import JournalEntry, count_words, journal_entry_tags
from models.tag import Tag
from services.journal_service import EntryDraft, JournalService, SearchFilters
from services.result import Err, ErrorKind, Ok
from services.tag_service import TagService


def draft(day, content="Wrote some things down today", **kwargs):
    return EntryDraft(content=content, date=day, **kwargs)


@pytest.fixture()
def writer(make_user):
    return make_user("alice")


def test_create_then_read_back_by_id_and_date(db, writer, make_tag):
    walk = make_tag(writer, "walk")
    result = JournalService.create(db, writer.id, draft(
        date(2024, 1, 3),
        title="Park",
        primary_mood=Mood.HAPPY,
        secondary_moods=[Mood.NEUTRAL],
        category=EntryCategory.HEALTH,
        is_favorite=True,
        tag_ids=[walk.id],
    ))
    assert isinstance(result, Ok)
    created = result.value
    assert created.created_at is not None

    by_id = JournalService.get_by_id(db, writer.id, created.id).value
    by_date = JournalService.get_by_date(db, writer.id, date(2024, 1, 3)).value
    for entry in (by_id, by_date):
        assert entry.id == created.id
        assert entry.title == "Park"
        assert entry.primary_mood is Mood.HAPPY
        assert entry.secondary_mood_1 is Mood.NEUTRAL
        assert entry.secondary_mood_2 is None
        assert entry.category is EntryCategory.HEALTH
        assert entry.is_favorite is True
        assert [t.name for t in entry.tags] == ["walk"]


def test_second_entry_for_same_day_is_rejected(db, writer):
    assert JournalService.create(db, writer.id, draft(date(2024, 1, 3))).is_ok
    result = JournalService.create(db, writer.id, draft(date(2024, 1, 3), content="again"))
    assert result == Err(ErrorKind.DUPLICATE_DATE, "An entry already exists for this date.")
    assert db.query(JournalEntry).count() == 1


def test_same_day_allowed_for_different_users(db, make_user):
    a, b = make_user(), make_user()
    assert JournalService.create(db, a.id, draft(date(2024, 1, 3))).is_ok
    assert JournalService.create(db, b.id, draft(date(2024, 1, 3))).is_ok


def test_time_of_day_is_ignored(db, writer):
    JournalService.create(db, writer.id, draft(datetime(2024, 2, 1, 23, 59)))
    assert JournalService.get_by_date(db, writer.id, datetime(2024, 2, 1, 6, 0)).is_ok
    result = JournalService.create(db, writer.id, draft(datetime(2024, 2, 1, 8, 0)))
    assert result.kind is ErrorKind.DUPLICATE_DATE


def test_get_by_date_missing(db, writer):
    result = JournalService.get_by_date(db, writer.id, date(2024, 1, 1))
    assert result == Err(ErrorKind.NOT_FOUND, "No entry found for this date.")


def test_get_by_id_never_leaks_another_users_entry(db, make_user):
    owner, intruder = make_user(), make_user()
    entry = JournalService.create(db, owner.id, draft(date(2024, 1, 3))).value
    result = JournalService.get_by_id(db, intruder.id, entry.id)
    assert result == Err(ErrorKind.NOT_FOUND, "Entry not found.")


def test_update_and_delete_respect_ownership(db, make_user):
    owner, intruder = make_user(), make_user()
    entry = JournalService.create(db, owner.id, draft(date(2024, 1, 3))).value
    assert JournalService.update(db, intruder.id, entry.id, draft(date(2024, 1, 4))).kind is ErrorKind.NOT_FOUND
    assert JournalService.delete(db, intruder.id, entry.id).kind is ErrorKind.NOT_FOUND
    assert JournalService.get_by_id(db, owner.id, entry.id).value.date == date(2024, 1, 3)


def test_update_onto_occupied_date_fails(db, writer):
    JournalService.create(db, writer.id, draft(date(2024, 1, 1)))
    second = JournalService.create(db, writer.id, draft(date(2024, 1, 2))).value
    result = JournalService.update(db, writer.id, second.id, draft(date(2024, 1, 1)))
    assert result == Err(ErrorKind.DUPLICATE_DATE, "Another entry already exists for this date.")
    assert JournalService.get_by_id(db, writer.id, second.id).value.date == date(2024, 1, 2)


def test_update_keeping_own_date_is_allowed(db, writer):
    entry = JournalService.create(db, writer.id, draft(date(2024, 1, 1))).value
    result = JournalService.update(db, writer.id, entry.id, draft(date(2024, 1, 1), content="edited text"))
    assert result.is_ok
    assert result.value.content == "edited text"
    assert result.value.updated_at is not None


def test_update_missing_entry(db, writer):
    result = JournalService.update(db, writer.id, 999, draft(date(2024, 1, 1)))
    assert result == Err(ErrorKind.NOT_FOUND, "Entry not found.")


def test_update_replaces_tag_set_without_deleting_tags(db, writer, make_tag):
    work, gym, family = make_tag(writer, "work"), make_tag(writer, "gym"), make_tag(writer, "family")
    entry = JournalService.create(db, writer.id, draft(date(2024, 1, 1), tag_ids=[work.id, gym.id])).value

    updated = JournalService.update(
        db, writer.id, entry.id, draft(date(2024, 1, 1), tag_ids=[gym.id, family.id])
    ).value

    assert sorted(t.name for t in updated.tags) == ["family", "gym"]
    assert db.query(Tag).filter_by(user_id=writer.id).count() == 3


def test_delete_removes_entry_and_associations_only(db, writer, make_tag):
    work = make_tag(writer, "work")
    entry = JournalService.create(db, writer.id, draft(date(2024, 1, 1), tag_ids=[work.id])).value

    assert JournalService.delete(db, writer.id, entry.id).is_ok
    assert JournalService.delete(db, writer.id, entry.id).kind is ErrorKind.NOT_FOUND
    assert db.query(JournalEntry).count() == 0
    assert db.execute(journal_entry_tags.select()).fetchall() == []
    assert db.get(Tag, work.id) is not None


def test_extra_secondary_moods_are_dropped(db, writer):
    entry = JournalService.create(db, writer.id, draft(
        date(2024, 1, 1), secondary_moods=[Mood.SAD, Mood.HAPPY, Mood.VERY_SAD],
    )).value
    assert entry.secondary_mood_1 is Mood.SAD
    assert entry.secondary_mood_2 is Mood.HAPPY


def test_moods_accept_string_values(db, writer):
    entry = JournalService.create(db, writer.id, draft(
        date(2024, 1, 1), primary_mood="very_happy", category="travel",
    )).value
    assert entry.primary_mood is Mood.VERY_HAPPY
    assert entry.category is EntryCategory.TRAVEL


@pytest.mark.parametrize("bad, message", [
    (dict(content="   "), "Content is required."),
    (dict(title="x" * 201), "Title must be at most 200 characters."),
    (dict(primary_mood="ecstatic"), "Unknown mood: 'ecstatic'."),
])
def test_invalid_drafts(db, writer, bad, message):
    fields = dict(content="fine", date=date(2024, 1, 1))
    fields.update(bad)
    result = JournalService.create(db, writer.id, EntryDraft(**fields))
    assert result == Err(ErrorKind.VALIDATION, message)


def test_tags_must_belong_to_the_user(db, make_user, make_tag):
    owner, other = make_user(), make_user()
    foreign = make_tag(other, "secret")
    result = JournalService.create(db, owner.id, draft(date(2024, 1, 1), tag_ids=[foreign.id]))
    assert result == Err(ErrorKind.VALIDATION, f"Unknown tag id(s): {foreign.id}.")
    assert db.query(JournalEntry).count() == 0


def test_missing_user_id_is_unauthorized(db):
    assert JournalService.create(db, 0, draft(date(2024, 1, 1))).kind is ErrorKind.UNAUTHORIZED
    assert JournalService.list_paged(db, None).kind is ErrorKind.UNAUTHORIZED


def test_default_date_is_today(db, writer):
    from services.streak_service import utc_today

    entry = JournalService.create(db, writer.id, EntryDraft(content="no date given")).value
    assert entry.date == utc_today()


def test_word_count_is_derived_from_content(db, writer):
    entry = JournalService.create(db, writer.id, draft(date(2024, 1, 1), content="  hello   world  ")).value
    assert entry.word_count == 2


class TestListPaged:
    @pytest.fixture()
    def entries(self, db, writer):
        for day in range(1, 8):
            JournalService.create(db, writer.id, draft(date(2024, 1, day)))

    def test_newest_first_with_offset(self, db, writer, entries):
        first = JournalService.list_paged(db, writer.id, page=1, page_size=3).value
        third = JournalService.list_paged(db, writer.id, page=3, page_size=3).value
        assert [e.date.day for e in first] == [7, 6, 5]
        assert [e.date.day for e in third] == [1]

    def test_only_own_entries(self, db, writer, entries, make_user):
        other = make_user()
        JournalService.create(db, other.id, draft(date(2024, 1, 9)))
        listed = JournalService.list_paged(db, writer.id, page=1, page_size=50).value
        assert len(listed) == 7

    def test_bad_page_arguments(self, db, writer):
        assert JournalService.list_paged(db, writer.id, page=0).kind is ErrorKind.VALIDATION
        assert JournalService.list_paged(db, writer.id, page_size=0).kind is ErrorKind.VALIDATION


class TestSearch:
    @pytest.fixture()
    def seeded(self, db, writer, make_tag):
        work, gym = make_tag(writer, "work"), make_tag(writer, "gym")
        JournalService.create(db, writer.id, draft(
            date(2024, 3, 1), title="Deadline", content="Shipped the release", primary_mood=Mood.HAPPY,
            tag_ids=[work.id]))
        JournalService.create(db, writer.id, draft(
            date(2024, 3, 2), title="Leg day", content="Squats at the gym", primary_mood=Mood.SAD,
            tag_ids=[gym.id]))
        JournalService.create(db, writer.id, draft(
            date(2024, 3, 3), title="Quiet", content="Read a book, 100% relaxed", primary_mood=Mood.HAPPY))
        return {"work": work, "gym": gym}

    def search(self, db, user, **filters):
        return [e.title for e in JournalService.search(db, user.id, SearchFilters(**filters)).value]

    def test_no_filters_returns_everything_newest_first(self, db, writer, seeded):
        assert self.search(db, writer) == ["Quiet", "Leg day", "Deadline"]

    def test_text_matches_title_or_content_case_insensitively(self, db, writer, seeded):
        assert self.search(db, writer, text="deadline") == ["Deadline"]
        assert self.search(db, writer, text="GYM") == ["Leg day"]

    def test_text_wildcards_are_literal(self, db, writer, seeded):
        assert self.search(db, writer, text="100%") == ["Quiet"]
        assert self.search(db, writer, text="%") == ["Quiet"]

    def test_date_range_is_inclusive(self, db, writer, seeded):
        assert self.search(db, writer, start_date=date(2024, 3, 2), end_date=date(2024, 3, 3)) == ["Quiet", "Leg day"]
        assert self.search(db, writer, start_date=date(2024, 3, 3)) == ["Quiet"]
        assert self.search(db, writer, end_date=date(2024, 3, 1)) == ["Deadline"]

    def test_mood_exact_match(self, db, writer, seeded):
        assert self.search(db, writer, mood=Mood.SAD) == ["Leg day"]

    def test_tag_ids_match_any(self, db, writer, seeded):
        ids = [seeded["work"].id, seeded["gym"].id]
        assert self.search(db, writer, tag_ids=ids) == ["Leg day", "Deadline"]

    def test_filters_combine_conjunctively(self, db, writer, seeded):
        ids = [seeded["work"].id, seeded["gym"].id]
        assert self.search(db, writer, tag_ids=ids, mood=Mood.HAPPY) == ["Deadline"]
        assert self.search(db, writer, text="squats", mood=Mood.HAPPY) == []

    def test_other_users_entries_are_invisible(self, db, writer, seeded, make_user):
        other = make_user()
        assert self.search(db, other, text="Deadline") == []


@pytest.mark.parametrize("content, expected", [
    ("", 0),
    (None, 0),
    ("   \n\t ", 0),
    ("one", 1),
    ("one\ttwo\nthree", 3),
])
def test_count_words(content, expected):
    assert count_words(content) == expected


def test_update_without_a_date_keeps_the_entry_on_its_day(db, writer):
    entry = JournalService.create(db, writer.id, draft(date(2020, 1, 1))).value
    updated = JournalService.update(db, writer.id, entry.id, EntryDraft(content="edited later")).value
    assert updated.date == date(2020, 1, 1)
    assert updated.content == "edited later"


class TestStorageFailures:
    def test_unique_day_constraint_on_commit_reads_as_duplicate(self, db, writer, monkeypatch):
        JournalService.create(db, writer.id, draft(date(2024, 1, 1)))
        # Another writer got there between the check and the commit
        monkeypatch.setattr(JournalService, "_date_taken", staticmethod(lambda *args, **kwargs: False))

        result = JournalService.create(db, writer.id, draft(date(2024, 1, 1), content="second"))

        assert result == Err(ErrorKind.DUPLICATE_DATE, "An entry already exists for this date.")
        assert db.query(JournalEntry).count() == 1

    def test_update_racing_onto_a_taken_day_reads_as_duplicate(self, db, writer, monkeypatch):
        JournalService.create(db, writer.id, draft(date(2024, 1, 1)))
        second = JournalService.create(db, writer.id, draft(date(2024, 1, 2))).value
        monkeypatch.setattr(JournalService, "_date_taken", staticmethod(lambda *args, **kwargs: False))

        result = JournalService.update(db, writer.id, second.id, draft(date(2024, 1, 1)))

        assert result == Err(ErrorKind.DUPLICATE_DATE, "Another entry already exists for this date.")
        assert JournalService.get_by_id(db, writer.id, second.id).value.date == date(2024, 1, 2)

    def test_broken_store_returns_storage_error(self, db, writer):
        db.execute(text("DROP TABLE journal_entry_tags"))
        db.execute(text("DROP TABLE journal_entries"))
        db.commit()

        result = JournalService.list_paged(db, writer.id)

        assert isinstance(result, Err)
        assert result.kind is ErrorKind.STORAGE
        assert result.message.startswith("Error listing entries: ")
        assert "journal_entries" in result.message
        # The session was rolled back and keeps working
        assert TagService.create(db, writer.id, "still-here").is_ok
