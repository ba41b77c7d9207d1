import pytest

from nekovm.fields import FieldConflictError, field_id, field_name, hash_field


def test_hash_of_empty_name_is_zero():
    assert hash_field("") == 0


def test_hash_of_single_character_is_its_code():
    assert hash_field("a") == ord("a")


def test_hash_str_and_bytes_agree():
    assert hash_field("loadmodule") == hash_field(b"loadmodule")


def test_hash_stays_in_31_bit_signed_range():
    for name in ("x" * 50, "zzzzzzzzzzzzzzzzzzzz", "__compare", "some_long_field_name"):
        h = hash_field(name)
        assert -(2**30) <= h < 2**30


def test_field_id_matches_hash_and_registers_name():
    fid = field_id("test_fields_registered")
    assert fid == hash_field("test_fields_registered")
    assert field_name(fid) == "test_fields_registered"


def test_field_id_is_idempotent():
    first = field_id("again_and_again")
    second = field_id("again_and_again")
    assert first == hash_field("again_and_again")
    assert second == first
    assert field_name(second) == "again_and_again"


def test_unknown_field_name_is_none():
    assert field_name(hash_field("never_registered_in_these_tests")) is None


def test_conflicting_names_raise():
    first = b"A\xe0"
    second = b"B\x01"
    assert hash_field(first) == hash_field(second)
    field_id(first)
    with pytest.raises(FieldConflictError):
        field_id(second)