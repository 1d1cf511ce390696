"""Tests for the otpvault command line."""

import pytest
from otpvault import cli
from otpvault.account import Account
from otpvault.cli import main
from otpvault.factor import Counter, Timer
from otpvault.store import FileSecretStore

# base32 of b"12345678901234567890"
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "store.json")


def run(store_path, *args):
    return main(["--store", store_path, *args])


class TestCLI:
    """Test CLI commands."""

    def test_no_command(self, capsys):
        """No command prints help."""
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_add_hotp_and_code(self, store_path, capsys):
        """HOTP codes advance on each call."""
        assert run(store_path, "add", "alice", "--secret", RFC_SECRET_B32, "--counter", "0") == 0
        capsys.readouterr()

        assert run(store_path, "code", "alice") == 0
        assert capsys.readouterr().out.strip() == "755224"

        assert run(store_path, "code", "alice") == 0
        assert capsys.readouterr().out.strip() == "287082"

        [account] = Account.load_all(FileSecretStore(store_path))
        assert account.generator.factor == Counter(2)

    def test_add_totp(self, store_path, capsys):
        """TOTP accounts print the code and time left."""
        assert run(store_path, "add", "bob", "--issuer", "GitHub", "--digits", "8") == 0
        out = capsys.readouterr().out
        assert "Added TOTP account" in out
        assert "Secret (Base32):" in out

        [account] = Account.load_all(FileSecretStore(store_path))
        assert account.generator.factor == Timer(30)
        assert account.issuer == "GitHub"

        assert run(store_path, "code", "bob") == 0
        code = capsys.readouterr().out.split()[0]
        assert len(code) == 8 and code.isdigit()

    def test_totp_code_and_time_left_share_clock(self, store_path, capsys, monkeypatch):
        """Code and time left come from one clock reading."""
        run(store_path, "add", "alice", "--secret", RFC_SECRET_B32)
        capsys.readouterr()

        readings = iter([89.5, 90.5])
        monkeypatch.setattr(cli.time, "time", lambda: next(readings, 90.5))

        assert run(store_path, "code", "alice") == 0
        # 89.5 falls in step 2 with half a second to go
        assert capsys.readouterr().out.strip() == "359152 (0s left)"

    def test_add_with_secret_hides_it(self, store_path, capsys):
        """A supplied secret is not echoed back."""
        run(store_path, "add", "alice", "--secret", RFC_SECRET_B32)
        assert RFC_SECRET_B32 not in capsys.readouterr().out

    def test_add_invalid_secret(self, store_path, capsys):
        """Bad secrets fail with exit code 1."""
        assert run(store_path, "add", "alice", "--secret", "!!!") == 1
        assert "Error:" in capsys.readouterr().err

    def test_add_invalid_digits(self, store_path, capsys):
        """Unsupported digit counts fail with exit code 1."""
        assert run(store_path, "add", "alice", "--digits", "12") == 1
        assert "Digits" in capsys.readouterr().err

    def test_list(self, store_path, capsys):
        """List shows every account."""
        run(store_path, "add", "alice", "--counter", "0")
        run(store_path, "add", "bob", "--issuer", "GitHub")
        capsys.readouterr()

        assert run(store_path, "list") == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 2
        assert "HOTP" in lines[0] and lines[0].endswith("alice")
        assert "GitHub" in lines[1] and lines[1].endswith("bob")

    def test_remove(self, store_path, capsys):
        """Removed accounts disappear from the store."""
        run(store_path, "add", "alice")
        assert run(store_path, "remove", "alice") == 0
        assert Account.load_all(FileSecretStore(store_path)) == []

    def test_unknown_account(self, store_path, capsys):
        """Unknown accounts fail with exit code 1."""
        assert run(store_path, "code", "nobody") == 1
        assert "No account matches" in capsys.readouterr().err

    def test_ambiguous_label(self, store_path, capsys):
        """Duplicate labels must be addressed by id."""
        run(store_path, "add", "alice")
        run(store_path, "add", "alice")
        capsys.readouterr()
        assert run(store_path, "code", "alice") == 1
        assert "use the id" in capsys.readouterr().err

    def test_lookup_by_id(self, store_path, capsys):
        """Accounts can be addressed by id."""
        run(store_path, "add", "alice", "--secret", RFC_SECRET_B32, "--counter", "0")
        [account] = Account.load_all(FileSecretStore(store_path))
        capsys.readouterr()

        assert run(store_path, "code", str(account.id)) == 0
        assert capsys.readouterr().out.strip() == "755224"

    def test_store_from_environment(self, store_path, monkeypatch):
        """OTPVAULT_STORE selects the store file."""
        monkeypatch.setenv("OTPVAULT_STORE", store_path)
        assert main(["add", "alice"]) == 0
        assert len(Account.load_all(FileSecretStore(store_path))) == 1
