"""
pspk - Integration tests.

End-to-end workflows through PspkClient and the command line, with an
in-memory directory standing in for the HTTP service.
"""

import pytest

from pspk import main as cli
from pspk.cipher import decode, encode
from pspk.client import PspkClient
from pspk.directory import MemoryDirectory
from pspk.errors import (
    AuthenticationFailedError,
    DecodeError,
    DirectoryError,
    DirectoryNotFoundError,
    ErrorCode,
    IdentityNotFoundError,
)
from pspk.keys import generate_fingerprint


def test_pairwise_messaging(client, store):
    """Two identities exchange messages through their published keys."""
    client.publish("alice")
    client.publish("bob")

    assert client.secret("alice", "bob") == client.secret("bob", "alice")
    assert store.load_peer_secret("alice", "bob") == store.load_peer_secret("bob", "alice")

    ciphertext = client.encrypt("alice", "bob", "hello bob")
    assert client.decrypt("bob", "alice", ciphertext) == "hello bob"


def test_ephemeral_messaging(client):
    client.publish("bob")

    first = client.ephemeral_encrypt("bob", "anonymous note")
    second = client.ephemeral_encrypt("bob", "anonymous note")

    assert first != second
    assert client.ephemeral_decrypt("bob", first) == "anonymous note"
    assert client.ephemeral_decrypt("bob", second) == "anonymous note"


def test_tampered_message_rejected(client):
    client.publish("alice")
    client.publish("bob")
    raw = bytearray(decode(client.encrypt("alice", "bob", "hello")))
    raw[0] ^= 0x80

    with pytest.raises(AuthenticationFailedError):
        client.decrypt("bob", "alice", encode(bytes(raw)))


def test_republish_invalidates_old_messages(client):
    client.publish("alice")
    client.publish("bob")
    ciphertext = client.encrypt("alice", "bob", "before rotation")

    client.publish("bob")

    with pytest.raises(AuthenticationFailedError):
        client.decrypt("bob", "alice", ciphertext)


def test_unpublished_peer(client):
    client.publish("alice")
    with pytest.raises(DirectoryNotFoundError):
        client.encrypt("alice", "nobody", "hi")


def test_missing_identity(client):
    with pytest.raises(IdentityNotFoundError):
        client.encrypt("ghost", "bob", "hi")


def test_group_convergence(client, store):
    """A creates G1 and contributes for B and C; everyone resolves."""
    for name in ("A", "B", "C"):
        client.publish(name)

    client.group("G1")
    client.start_group("C", "G1", [])
    client.start_group("B", "G1", ["C"])
    client.start_group("A", "G1", ["B", "C"])

    client.secret_group("A", "G1", ["B", "C"])
    client.secret_group("B", "G1", ["A", "C"])
    client.secret_group("C", "G1", ["A", "B"])

    secret = store.load_group_secret("A", "G1")
    assert store.load_group_secret("B", "G1") == secret
    assert store.load_group_secret("C", "G1") == secret
    assert (store.data_dir / "A" / "G1.secret").read_bytes() == secret


def test_group_messaging(client):
    for name in ("A", "B", "C"):
        client.publish(name)
    client.group("G1")
    client.start_group("C", "G1", [])
    client.start_group("B", "G1", ["C"])
    client.start_group("A", "G1", ["B", "C"])
    for name, peers in (("A", ["B", "C"]), ("B", ["A", "C"]), ("C", ["A", "B"])):
        client.secret_group(name, "G1", peers)

    ciphertext = client.encrypt_group("A", "G1", "hello group")
    assert client.decrypt_group("B", "G1", ciphertext) == "hello group"
    assert client.decrypt_group("C", "G1", ciphertext) == "hello group"

    ephemeral = client.ephemeral_encrypt_group("C", "G1", "quiet hello")
    assert client.ephemeral_decrypt_group("A", "G1", ephemeral) == "quiet hello"


def test_group_out_of_order(client):
    """Contributing before the peers' composites exist aborts the round."""
    client.publish("A")
    client.group("G1")
    with pytest.raises(DirectoryNotFoundError) as exc:
        client.start_group("A", "G1", ["B", "C"])
    assert exc.value.name == "CG1"


def test_group_message_without_secret(client):
    client.publish("A")
    client.group("G1")
    with pytest.raises(IdentityNotFoundError):
        client.encrypt_group("A", "G1", "hi")


def test_decrypt_bad_base64(client):
    client.publish("alice")
    client.publish("bob")
    with pytest.raises(DecodeError):
        client.decrypt("bob", "alice", "***")


class TestCommandLine:
    """Run commands through main() against a shared in-memory directory."""

    @pytest.fixture
    def run(self, temp_dir, config_env, capsys):
        directory = MemoryDirectory()
        config_env.setattr(cli, "HttpDirectory", lambda *args, **kwargs: directory)
        base = ["--config", str(temp_dir / "config.toml"), "--data-dir", str(temp_dir / "keys")]

        def _run(*argv):
            code = cli.main(base + list(argv))
            captured = capsys.readouterr()
            return code, captured.out.strip(), captured.err

        _run.directory = directory
        return _run

    def test_encrypt_decrypt(self, run):
        assert run("--name", "alice", "publish")[0] == 0
        assert run("--name", "bob", "publish")[0] == 0

        code, ciphertext, _ = run("--name", "alice", "encrypt", "bob", "hello", "there")
        assert code == 0

        code, plaintext, _ = run("--name", "bob", "d", "alice", ciphertext)
        assert code == 0
        assert plaintext == "hello there"

    def test_ephemeral(self, run):
        run("--name", "bob", "publish")
        code, payload, _ = run("ee", "bob", "[bold]not markup[/bold]")
        assert code == 0
        assert len(decode(payload)) == 32 + len("[bold]not markup[/bold]") + 16

        code, plaintext, _ = run("--name", "bob", "ephemeral-decrypt", payload)
        assert plaintext == "[bold]not markup[/bold]"

    def test_secret_prints_base64(self, run, temp_dir):
        run("--name", "alice", "publish")
        run("--name", "bob", "publish")
        code, out, _ = run("--name", "alice", "secret", "bob")
        assert code == 0
        assert decode(out) == (temp_dir / "keys" / "alice" / "bob.secret.bin").read_bytes()

    def test_use_current(self, run):
        run("--name", "alice", "publish")
        run("--name", "bob", "publish")
        assert run("--name", "alice", "use-current")[0] == 0

        code, ciphertext, _ = run("encrypt", "bob", "via default name")
        assert code == 0
        assert run("--name", "bob", "decrypt", "alice", ciphertext)[1] == "via default name"

    def test_missing_name(self, run):
        code, _, err = run("encrypt", "bob", "hi")
        assert code == 1
        assert "E701" in err

    def test_use_current_requires_name(self, run):
        assert run("use-current")[0] == 1

    def test_group_flow(self, run, temp_dir):
        for name in ("A", "B", "C"):
            run("--name", name, "publish")

        assert run("group", "G1")[0] == 0
        assert run("--name", "C", "start-group", "G1")[0] == 0
        assert run("--name", "B", "start-group", "G1", "C")[0] == 0
        code, out, _ = run("--name", "A", "start-group", "G1", "B", "C")
        assert code == 0
        assert "ABCG1" in out

        assert run("--name", "A", "secret-group", "G1", "B", "C")[0] == 0
        assert run("--name", "B", "secret-group", "G1", "A", "C")[0] == 0
        assert run("--name", "C", "secret-group", "G1", "A", "B")[0] == 0

        secrets = {(temp_dir / "keys" / n / "G1.secret").read_bytes() for n in ("A", "B", "C")}
        assert len(secrets) == 1

        code, ciphertext, _ = run("--name", "A", "eg", "G1", "group", "hello")
        assert run("--name", "C", "dg", "G1", ciphertext)[1] == "group hello"

        code, payload, _ = run("--name", "B", "eeg", "G1", "ephemeral")
        assert run("--name", "A", "edg", "G1", payload)[1] == "ephemeral"

    def test_group_name_from_name_flag(self, run):
        assert run("--name", "G2", "group")[0] == 0
        assert "G2" in run.directory

    def test_out_of_order_round(self, run):
        run("--name", "A", "publish")
        run("group", "G1")
        code, _, err = run("--name", "A", "start-group", "G1", "B", "C")
        assert code == 1
        assert "CG1" in err

    def test_finish_group(self, run):
        for name in ("A", "B", "C"):
            run("--name", name, "publish")
        run("group", "G1")
        run("--name", "B", "start-group", "G1")
        run("--name", "C", "start-group", "G1")
        code, out, _ = run("--name", "A", "finish-group", "G1", "B", "C")
        assert code == 0
        assert "ACG1" in out and "ABG1" in out
        assert "ABCG1" not in run.directory

    def test_group_requires_name(self, run):
        code, _, err = run("group")
        assert code == 1
        assert "E501" in err

    @pytest.mark.parametrize("source", ["env", "file"])
    def test_unknown_log_level(self, run, temp_dir, config_env, source):
        if source == "env":
            config_env.setenv("PSPK_LOGGING_LEVEL", "loud")
        else:
            (temp_dir / "config.toml").write_text('[logging]\nlevel = "loud"\n')

        code, _, err = run("--name", "alice", "publish")
        assert code == 1
        assert "E703" in err
        assert not (temp_dir / "keys" / "alice").exists()

    def test_log_level_case_insensitive(self, run, config_env):
        config_env.setenv("PSPK_LOGGING_LEVEL", "info")
        assert run("--name", "alice", "publish")[0] == 0


class FailingDirectory(MemoryDirectory):
    """Directory that refuses every publish."""

    def publish(self, name, value):
        raise DirectoryError(ErrorCode.E202_PUBLISH_FAILED, f"Publishing '{name}' refused")


def test_failed_publish_keeps_local_keys(store):
    client = PspkClient(MemoryDirectory(), store)
    client.publish("alice")
    private_scalar = store.load_private("alice")
    public_point = store.load_public("alice")

    with pytest.raises(DirectoryError):
        PspkClient(FailingDirectory(), store).publish("alice")

    assert store.load_private("alice") == private_scalar
    assert store.load_public("alice") == public_point


def test_publish_fingerprint_matches_stored_key(client, store):
    fingerprint = client.publish("alice")
    assert fingerprint == store.load("alice").fingerprint
    assert fingerprint == generate_fingerprint(client.directory.load("alice"))
