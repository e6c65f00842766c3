import json

import pytest

from eldercare.auth import AuthContext, AuthStatus
from eldercare.database import InMemoryKeyValueDatabase, JsonFileKeyValueDatabase
from eldercare.models import Role, Session
from eldercare.session_store import DEFAULT_SESSION_KEY, SessionStore
from tests.helpers import _banner, _p, make_user

KEY = DEFAULT_SESSION_KEY


def _tiers(short_lived, long_lived) -> tuple[str | None, str | None]:
    return short_lived.get(KEY), long_lived.get(KEY)


def test_load_returns_none_when_nothing_stored(short_lived, long_lived) -> None:
    store = SessionStore(short_lived, long_lived)
    assert store.load() is None


def test_save_remember_writes_long_lived_only(short_lived, long_lived, patient) -> None:
    store = SessionStore(short_lived, long_lived)
    store.save(Session(user=patient), remember=True)

    short, long = _tiers(short_lived, long_lived)
    assert short is None
    assert json.loads(long) == {
        "user": {
            "id": "patient-1",
            "name": "Maria Lopez",
            "email": "patient-1@example.com",
            "role": "patient",
            "dateOfBirth": "1950-03-14",
        }
    }


def test_save_without_remember_writes_short_lived_only(
    short_lived, long_lived, patient
) -> None:
    store = SessionStore(short_lived, long_lived)
    store.save(Session(user=patient), remember=False)

    short, long = _tiers(short_lived, long_lived)
    assert short is not None
    assert long is None


def test_load_prefers_long_lived_tier(short_lived, long_lived) -> None:
    store = SessionStore(short_lived, long_lived)
    short_lived.put(KEY, Session(user=make_user(id="short")).model_dump_json(by_alias=True))
    long_lived.put(KEY, Session(user=make_user(id="long")).model_dump_json(by_alias=True))

    session = store.load()
    assert session is not None
    assert session.user.id == "long"
    assert session.remember_me is True


def test_load_falls_back_to_short_lived_tier(short_lived, long_lived, patient) -> None:
    store = SessionStore(short_lived, long_lived)
    store.save(Session(user=patient), remember=False)

    session = store.load()
    assert session is not None
    assert session.user == patient
    assert session.remember_me is False


def test_load_accepts_underscore_id_and_numeric_id(short_lived, long_lived) -> None:
    store = SessionStore(short_lived, long_lived)
    short_lived.put(
        KEY,
        json.dumps(
            {"user": {"_id": 99, "name": "Wei", "email": "w@x.io", "role": "family"}}
        ),
    )

    session = store.load()
    assert session is not None
    assert session.user.id == "99"
    assert session.user.role is Role.FAMILY


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        "",
        "[]",
        '"just a string"',
        "{}",
        '{"user": null}',
        '{"user": "patient-1"}',
        '{"user": {"id": "", "name": "x", "email": "x@y.z", "role": "patient"}}',
        '{"user": {"name": "no id", "email": "x@y.z", "role": "patient"}}',
        '{"user": {"id": "1", "name": "x", "email": "x@y.z", "role": "admin"}}',
    ],
)
@pytest.mark.parametrize("tier", ["short", "long"])
def test_corrupt_record_wipes_both_tiers(short_lived, long_lived, raw, tier) -> None:
    _banner(f"corrupt {tier}-lived record {raw!r} is discarded")
    store = SessionStore(short_lived, long_lived)
    target = short_lived if tier == "short" else long_lived
    target.put(KEY, raw)
    if tier == "long":
        # a valid short-lived record behind a corrupt long-lived one goes too
        short_lived.put(KEY, Session(user=make_user()).model_dump_json(by_alias=True))

    assert store.load() is None
    _p(f"tiers after load: {_tiers(short_lived, long_lived)}")
    assert _tiers(short_lived, long_lived) == (None, None)


def test_clear_wipes_both_tiers(short_lived, long_lived, patient) -> None:
    short_lived.put(KEY, "left over")
    long_lived.put(KEY, "left over")

    SessionStore(short_lived, long_lived).clear()

    assert _tiers(short_lived, long_lived) == (None, None)


def test_remember_me_survives_reload_from_long_lived_tier(
    short_lived, long_lived, patient
) -> None:
    _banner("login(remember=True) survives a reload")
    auth = AuthContext(SessionStore(short_lived, long_lived))
    auth.start()
    auth.login(Session(user=patient), remember=True)

    # reload: new process memory, same disk file
    fresh_short: InMemoryKeyValueDatabase[str, str] = InMemoryKeyValueDatabase()
    fresh_long = JsonFileKeyValueDatabase(long_lived.path)
    reloaded = AuthContext(SessionStore(fresh_short, fresh_long))
    assert reloaded.status is AuthStatus.LOADING

    reloaded.start()
    _p(f"status after reload: {reloaded.status}")
    assert reloaded.is_authenticated()
    assert reloaded.user == patient
    assert fresh_short.get(KEY) is None
    assert short_lived.get(KEY) is None


def test_session_only_login_does_not_survive_restart(
    short_lived, long_lived, patient
) -> None:
    auth = AuthContext(SessionStore(short_lived, long_lived))
    auth.start()
    auth.login(Session(user=patient), remember=False)

    fresh_short: InMemoryKeyValueDatabase[str, str] = InMemoryKeyValueDatabase()
    restarted = AuthContext(SessionStore(fresh_short, long_lived))
    restarted.start()
    assert restarted.status is AuthStatus.ANONYMOUS


def test_switching_to_remember_leaves_exactly_one_tier(
    short_lived, long_lived, patient
) -> None:
    auth = AuthContext(SessionStore(short_lived, long_lived))
    auth.start()

    auth.login(Session(user=patient), remember=False)
    assert _tiers(short_lived, long_lived)[0] is not None

    auth.login(Session(user=patient), remember=True)
    short, long = _tiers(short_lived, long_lived)
    assert short is None
    assert long is not None

    auth.login(Session(user=patient), remember=False)
    short, long = _tiers(short_lived, long_lived)
    assert short is not None
    assert long is None


def test_json_file_tier_ignores_unreadable_file(tmp_path) -> None:
    path = tmp_path / "session.json"
    path.write_text("{ this is not json", encoding="utf-8")
    tier = JsonFileKeyValueDatabase(path)

    assert tier.get(KEY) is None
    tier.put(KEY, "value")
    assert JsonFileKeyValueDatabase(path).get(KEY) == "value"
    assert len(tier) == 1
