from typer.testing import CliRunner

from ziphub import config
from ziphub.cli import app
from ziphub.models import FileUpload, RegisterRequest
from ziphub.services import content, identity, social
from ziphub.storage import CollectionStore

runner = CliRunner()


def _invoke(store: CollectionStore, *args: str, **kwargs):
    return runner.invoke(app, ["--data-dir", str(store.data_dir), *args], **kwargs)


def test_bootstrap_and_stats(store):
    result = _invoke(store, "bootstrap")
    assert result.exit_code == 0, result.output
    assert config.CREATOR_USERNAME in result.output

    result = _invoke(store, "stats")
    assert result.exit_code == 0
    assert "users" in result.output
    assert "| 1 " in result.output


def test_approve_and_verify_developer(store):
    account, _ = identity.register(store, RegisterRequest(username="clidev", password="pw", role="developer"))

    assert _invoke(store, "approve", account.id).exit_code == 0
    assert _invoke(store, "verify", account.id).exit_code == 0

    profile = social.get_profile(store, account.id)
    assert profile.approved and profile.verified
    assert "clidev" in _invoke(store, "developers").output


def test_domain_errors_exit_nonzero(store):
    result = _invoke(store, "approve", "ghost")
    assert result.exit_code == 1
    assert "NoSuchDeveloper" in result.output


def test_create_verified_prompts_for_password(store):
    result = _invoke(store, "create-verified", "partner", "--boost", "30", input="pw\npw\n")
    assert result.exit_code == 0, result.output
    account = identity.find_account(store, "partner")
    assert social.follower_count(store, account.id) == 30


def test_delete_file_and_sweep(store, developer):
    record = content.create_file(store, developer, FileUpload(title="t", description="d"))
    content.comment(store, "u1", record.id, "hi")

    result = _invoke(store, "delete-file", record.id)
    assert result.exit_code == 0, result.output
    assert store.get("comments") == []

    result = _invoke(store, "sweep")
    assert result.exit_code == 0
    assert "likes" in result.output
