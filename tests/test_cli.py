"""
End-to-end tests for the command-line front end
"""

import json
from pathlib import Path

import pytest

import cli
from triage.models import Email
from triage.store import JsonStore


@pytest.fixture
def run(tmp_path: Path, monkeypatch, capsys):
    """Run the CLI against a throwaway store; returns (exit_code, stdout)."""
    for name in ("MAIL_TRIAGE_STORE", "MAIL_TRIAGE_SEED_DEFAULTS", "MAIL_TRIAGE_SOURCE"):
        monkeypatch.delenv(name, raising=False)
    config_path = str(tmp_path / "no-config.yaml")
    store_path = str(tmp_path / "store.json")

    def _run(*argv):
        command, rest = argv[0], list(argv[1:])
        code = cli.main(["-c", config_path, command, "--store", store_path, *rest])
        return code, capsys.readouterr().out

    _run.store_path = store_path
    return _run


@pytest.fixture
def fixture_file(tmp_path: Path) -> str:
    path = tmp_path / "emails.json"
    path.write_text(json.dumps({"emails": [
        {"id": 1, "sender": "boss@corp.com", "subject": "Standup", "tags": ["work"]},
        {"id": 2, "sender": "bank@bank.com", "subject": "Statement", "tags": ["banking", "work"]},
        {"id": 3, "sender": "friend@mail.com", "subject": "Hi", "tags": []},
    ]}))
    return str(path)


@pytest.fixture
def fetched(run, fixture_file):
    code, _ = run("fetch", "--source", "fixture", "--fixture", fixture_file)
    assert code == 0
    return run


def stored_email(store_path: str, email_id) -> Email:
    for email in JsonStore(store_path).load_emails():
        if str(email.id) == str(email_id):
            return email
    raise AssertionError(f"message {email_id} not stored")


def test_fetch_seeds_defaults_and_stores_messages(run, fixture_file):
    code, out = run("fetch", "--source", "fixture", "--fixture", fixture_file)

    assert code == 0
    assert "Fetched 3 messages from fixture" in out
    store = JsonStore(run.store_path)
    assert len(store.load_emails()) == 3
    assert any(tag.id == "work" for tag in store.load_tags())
    assert any(view.id == "banking" for view in store.load_views())


def test_refetch_keeps_local_tags(fetched, fixture_file):
    fetched("tag", "3", "finance")
    fetched("fetch", "--source", "fixture", "--fixture", fixture_file)

    assert stored_email(fetched.store_path, 3).tags == ["finance"]


def test_views_show_counts(fetched):
    code, out = fetched("views")

    assert code == 0
    lines = {line.split("[")[-1].rstrip("]"): line for line in out.splitlines() if "[" in line}
    assert lines["work"].split()[-2] == "2"
    assert lines["banking"].split()[-2] == "1"
    assert lines["docs"].split()[-2] == "0"
    assert "Inbox" in out


def test_show_view_as_json(fetched):
    code, out = fetched("show", "--view", "banking", "--format", "json")

    assert code == 0
    assert [e["id"] for e in json.loads(out)] == [2]


def test_show_unknown_view(fetched):
    code, out = fetched("show", "--view", "nope")
    assert code == 1
    assert "Unknown view" in out


def test_tags_add_rejects_duplicate(fetched):
    code, out = fetched("tags", "add", "work")
    assert code == 1
    assert "already exists" in out


def test_tags_add_and_list_by_usage(fetched):
    code, _ = fetched("tags", "add", "Receipts", "-i", "order confirmations")
    assert code == 0

    code, out = fetched("tags", "list", "--sort", "usage")
    assert code == 0
    assert out.splitlines()[0].startswith("Work")
    assert "Receipts" in out


def test_untag_with_negative_example(fetched):
    code, out = fetched("untag", "1", "work", "--negative")

    assert code == 0
    assert "negative examples: 1" in out
    assert stored_email(fetched.store_path, 1).tags == []
    work = [t for t in JsonStore(fetched.store_path).load_tags() if t.id == "work"][0]
    assert work.negative_examples[0].subject == "Standup"


def test_new_tag_on_message(fetched):
    code, out = fetched("new-tag", "3", "Friends")

    assert code == 0
    tag = [t for t in JsonStore(fetched.store_path).load_tags() if t.name == "Friends"][0]
    assert stored_email(fetched.store_path, 3).tags == [tag.id]


def test_tag_rejects_unknown_tag(fetched):
    code, out = fetched("tag", "1", "ghost")
    assert code == 1
    assert "ghost" in out


def test_delete_in_use_tag_needs_force(fetched):
    code, out = fetched("tags", "delete", "banking")
    assert code == 1
    assert "--force" in out

    code, _ = fetched("tags", "delete", "banking", "--force")
    assert code == 0
    assert all(t.id != "banking" for t in JsonStore(fetched.store_path).load_tags())
    # Messages keep the dangling reference
    assert "banking" in stored_email(fetched.store_path, 2).tags


def test_init_config_writes_file(tmp_path: Path, capsys):
    path = tmp_path / "config.yaml"
    code = cli.main(["init-config", "--path", str(path)])

    assert code == 0
    assert path.exists()
    assert "Wrote sample config" in capsys.readouterr().out


def test_get_source_builds_configured_gmail_source():
    config = cli.load_config(Path("/nonexistent/config.yaml"))
    config.gmail.query = "label:work"
    config.gmail.batch_size = 3

    source = cli.get_source("gmail", config)

    assert source.name == "gmail"
    assert source.query == "label:work"
    assert source.batch_size == 3


def test_get_source_rejects_unknown_name():
    with pytest.raises(ValueError):
        cli.get_source("pop3", cli.Config())
