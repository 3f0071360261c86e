"""bcrypt hashing tests."""

from erm.auth.password import hash_password, verify_password


def test_hash_and_verify():
    hashed = hash_password("correct horse", rounds=4)
    assert hashed.startswith("$2")
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_hashes_are_salted():
    assert hash_password("same", rounds=4) != hash_password("same", rounds=4)


def test_work_factor_is_embedded():
    assert hash_password("pw", rounds=5).split("$")[2] == "05"


def test_malformed_hash_never_matches():
    assert not verify_password("anything", "not-a-bcrypt-hash")
    assert not verify_password("anything", "")


def test_passwords_truncated_at_72_bytes():
    long_pw = "x" * 72
    hashed = hash_password(long_pw + "tail-one", rounds=4)
    assert verify_password(long_pw + "tail-two", hashed)
