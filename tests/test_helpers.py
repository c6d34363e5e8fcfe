from datetime import datetime, timedelta, timezone

from utils.auth import hash_password, verify_password
from utils.dates import to_db_datetime
from utils.recurrence import RECURRING_OCCURRENCES, expand_occurrences
from utils.serialize import camelize, to_api
from utils.uploads import generate_filename


def test_password_hash_verifies_only_the_right_password():
    stored = hash_password("secret123")

    assert stored.startswith("pbkdf2_sha256$")
    assert "secret123" not in stored
    assert verify_password("secret123", stored)
    assert not verify_password("secret124", stored)
    assert not verify_password("secret123", "")
    assert not verify_password("secret123", "md5$1$salt$digest")


def test_weekly_recurrence_writes_initial_plus_eight():
    start = datetime(2030, 1, 7, 18, 0)
    end = start + timedelta(hours=2)

    occurrences = expand_occurrences(start, end, True, "weekly")

    assert len(occurrences) == RECURRING_OCCURRENCES + 1
    assert [s for s, _ in occurrences] == [start + timedelta(days=7 * i) for i in range(9)]
    assert all(e - s == timedelta(hours=2) for s, e in occurrences)


def test_monthly_recurrence_uses_thirty_day_steps():
    start = datetime(2030, 1, 1, 9, 0)

    occurrences = expand_occurrences(start, None, True, "monthly")

    assert occurrences[1][0] == start + timedelta(days=30)
    assert occurrences[-1][0] == start + timedelta(days=240)
    assert all(e is None for _, e in occurrences)


def test_non_recurring_or_missing_pattern_is_single_occurrence():
    start = datetime(2030, 1, 1, 9, 0)

    assert expand_occurrences(start, None, False, "weekly") == [(start, None)]
    assert expand_occurrences(start, None, True, None) == [(start, None)]


def test_to_db_datetime_normalizes_to_naive_utc():
    aware = datetime(2030, 5, 1, 12, 30, 15, 999, tzinfo=timezone(timedelta(hours=2)))

    assert to_db_datetime(aware) == "2030-05-01T10:30:15"
    assert to_db_datetime("2030-05-01T10:30:15Z") == "2030-05-01T10:30:15"
    assert to_db_datetime(None) is None


def test_to_api_camelizes_nested_keys_and_drops_password():
    payload = {
        "first_name": "Ada",
        "password": "hash",
        "last_message": {"sender_id": 1, "file_url": None},
        "participants": [{"profile_picture": None, "password": "x"}],
    }

    assert to_api(payload) == {
        "firstName": "Ada",
        "lastMessage": {"senderId": 1, "fileUrl": None},
        "participants": [{"profilePicture": None}],
    }
    assert camelize("is_completed") == "isCompleted"


def test_generate_filename_keeps_safe_stem_when_asked():
    random_name = generate_filename("notes.pdf")
    chat_name = generate_filename("../lab report (final).pdf", keep_stem=True)

    assert len(random_name) == 32
    assert "/" not in chat_name
    assert chat_name.startswith("lab_report_final-")
    assert chat_name.endswith(".pdf")
