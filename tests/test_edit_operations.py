"""
Unit Tests for Password Edit Operations

Insert, erase, replace, resize and the wiping and failure behaviour
shared by every reallocating mutation.
"""

import pytest

from securepwd import (
    NPOS,
    InvalidArgumentError,
    Password,
    PasswordLengthError,
    PasswordRangeError,
)


class TestInsert:
    """Test cases for insertion and appending."""

    def test_insert_in_middle(self, make_password):
        """Scenario: insert(3, "XY") and the old position goes stale."""
        pwd = make_password("hunter2")
        stale = pwd.begin()

        pwd.insert(3, "XY")

        assert pwd == "hunXYter2"
        assert len(pwd) == 9
        assert not stale.is_valid()
        with pytest.raises(InvalidArgumentError):
            stale.get()

    def test_insert_at_end_appends(self, make_password):
        pwd = make_password("abc")

        pwd.insert(3, "def")

        assert pwd == "abcdef"

    def test_insert_past_end(self, make_password):
        with pytest.raises(PasswordRangeError):
            make_password("abc").insert(4, "x")

    def test_insert_source_window(self, make_password):
        pwd = make_password("AB")

        pwd.insert(1, "abcdef", 2, 2)

        assert pwd == "AcdB"

    def test_insert_source_count_is_clamped(self, make_password):
        pwd = make_password("AB")

        pwd.insert(2, "abcdef", 4, 100)

        assert pwd == "ABef"

    def test_insert_source_position_out_of_range(self, make_password):
        with pytest.raises(PasswordRangeError):
            make_password("AB").insert(0, "abc", 4)

    def test_insert_nothing_keeps_storage(self, make_password):
        pwd = make_password("abc")
        epoch = pwd.epoch

        pwd.insert(1, "")

        assert pwd.epoch == epoch

    def test_insert_fill(self, make_password):
        pwd = make_password("ab")

        pwd.insert_fill(1, 3, "-")

        assert pwd == "a---b"

    def test_insert_from_other_password(self, make_password):
        pwd = make_password("ab")

        pwd.insert(1, make_password("XYZ"), 1)

        assert pwd == "aYZb"

    def test_append_variants(self, make_password):
        pwd = make_password()

        pwd.append("hun")
        pwd.append_fill(2, "t")
        pwd.push_back("e")
        pwd += b"r2"

        assert pwd == "huntter2"

    def test_add_builds_new_password(self, make_password):
        pwd = make_password("abc")

        joined = pwd + "def"
        prefixed = "xy" + pwd

        assert isinstance(joined, Password)
        assert joined == "abcdef"
        assert prefixed == "xyabc"
        assert pwd == "abc"

    def test_add_rejects_unsupported_operand(self, make_password):
        with pytest.raises(TypeError):
            make_password("abc") + 1.5


class TestErase:
    """Test cases for erasing units."""

    def test_erase_count_is_clamped(self, make_password):
        """Scenario: erase(1, 100) leaves the first unit."""
        pwd = make_password("hunter2")

        pwd.erase(1, 100)

        assert pwd == "h"
        assert len(pwd) == 1

    def test_erase_to_end_by_default(self, make_password):
        pwd = make_password("hunter2")

        pwd.erase(4)

        assert pwd == "hunt"

    def test_erase_everything(self, make_password):
        pwd = make_password("hunter2")

        pwd.erase()

        assert pwd.is_empty

    def test_erase_zero_is_noop(self, make_password):
        pwd = make_password("abc")
        epoch = pwd.epoch

        pwd.erase(1, 0)

        assert pwd == "abc"
        assert pwd.epoch == epoch

    def test_erase_past_end(self, make_password):
        with pytest.raises(PasswordRangeError):
            make_password("abc").erase(4)

    def test_npos_count_erases_to_end(self, make_password):
        pwd = make_password("hunter2")

        pwd.erase(1, NPOS)

        assert pwd == "h"

    def test_npos_counts_mean_to_the_end(self, make_password):
        pwd = make_password("hunter2")

        assert pwd.substr(3, NPOS) == "ter2"
        pwd.insert(0, "abc", 1, NPOS)
        assert pwd == "bchunter2"
        pwd.replace(2, NPOS, "!")
        assert pwd == "bc!"

    def test_negative_count(self, make_password):
        with pytest.raises(InvalidArgumentError):
            make_password("abc").erase(0, -2)

    def test_pop_back(self, make_password):
        pwd = make_password("ab")

        assert pwd.pop_back() == ord("b")
        assert pwd == "a"

    def test_pop_back_on_empty(self, make_password):
        with pytest.raises(PasswordRangeError):
            make_password().pop_back()

    def test_erase_value(self, make_password):
        pwd = make_password("a-b-c")

        assert pwd.erase_value("-") == 2
        assert pwd == "abc"

    def test_erase_if(self, make_password):
        pwd = make_password("h1u2n3")

        removed = pwd.erase_if(lambda unit: ord("0") <= unit <= ord("9"))

        assert removed == 3
        assert pwd == "hun"

    def test_erase_if_calls_predicate_once_per_unit(self, make_password, allocator):
        pwd = make_password("a1b2")
        block = allocator.allocated[-1]
        seen = []

        def is_digit(unit):
            seen.append(unit)
            return ord("0") <= unit <= ord("9")

        assert pwd.erase_if(is_digit) == 2
        assert pwd == "ab"
        assert seen == [ord(c) for c in "a1b2"]
        assert block.is_retired
        assert not any(block.raw)

    def test_erase_if_failing_predicate_leaves_content(self, make_password, allocator):
        pwd = make_password("hunter2")
        epoch = pwd.epoch
        allocated = len(allocator.allocated)

        def explode(unit):
            if unit == ord("t"):
                raise RuntimeError("predicate failed")
            return False

        with pytest.raises(RuntimeError):
            pwd.erase_if(explode)

        assert pwd == "hunter2"
        assert pwd.epoch == epoch
        assert len(allocator.allocated) == allocated

    def test_erase_if_nothing_matches(self, make_password):
        pwd = make_password("abc")
        epoch = pwd.epoch

        assert pwd.erase_if(lambda unit: False) == 0
        assert pwd.epoch == epoch


class TestReplace:
    """Test cases for replacement."""

    def test_replace_shrinking(self, make_password):
        """Scenario: replace(0, 6, "abc") on "hunter2"."""
        pwd = make_password("hunter2")

        pwd.replace(0, 6, "abc")

        assert pwd == "abc2"
        assert len(pwd) == 4

    def test_replace_growing(self, make_password):
        pwd = make_password("hunter2")

        pwd.replace(6, 1, "123")

        assert pwd == "hunter123"

    def test_equal_length_replace_is_in_place(self, make_password, allocator):
        pwd = make_password("hunter2")
        epoch = pwd.epoch
        position = pwd.position(2)
        allocated = len(allocator.allocated)

        pwd.replace(0, 3, "HUN")

        assert pwd == "HUNter2"
        assert pwd.epoch == epoch
        assert position.is_valid()
        assert len(allocator.allocated) == allocated

    def test_replace_with_nothing_erases(self, make_password):
        pwd = make_password("hunter2")

        pwd.replace(1, 3, "")

        assert pwd == "her2"

    def test_replace_nothing_inserts(self, make_password):
        pwd = make_password("hunter2")

        pwd.replace(3, 0, "--")

        assert pwd == "hun--ter2"

    def test_replace_at_end(self, make_password):
        pwd = make_password("abc")

        pwd.replace(3, 5, "d")

        assert pwd == "abcd"

    def test_replace_past_end(self, make_password):
        with pytest.raises(PasswordRangeError):
            make_password("abc").replace(4, 1, "x")

    def test_replace_with_self(self, make_password):
        pwd = make_password("hunter2")

        pwd.replace(0, 2, pwd)

        assert pwd == "hunter2nter2"

    def test_replace_with_self_window(self, make_password):
        pwd = make_password("abcdef")

        pwd.replace(0, 3, pwd, 3, 3)

        assert pwd == "defdef"

    def test_replace_fill(self, make_password):
        pwd = make_password("hunter2")

        pwd.replace_fill(0, 3, 1, "*")

        assert pwd == "*ter2"

    def test_assign_and_assign_fill(self, make_password):
        pwd = make_password("hunter2")

        pwd.assign("new")
        assert pwd == "new"

        pwd.assign_fill(3, "x")
        assert pwd == "xxx"

    def test_assign_self_keeps_storage(self, make_password):
        pwd = make_password("abc")
        epoch = pwd.epoch

        pwd.assign(pwd)

        assert pwd.epoch == epoch


class TestResize:
    """Test cases for resizing."""

    def test_grow_with_fill(self, make_password):
        pwd = make_password("ab")

        pwd.resize(5, "z")

        assert pwd == "abzzz"

    def test_grow_with_zero_units(self, make_password):
        pwd = make_password("ab")

        pwd.resize(4)

        assert list(pwd) == [97, 98, 0, 0]

    def test_shrink_wipes_discarded_tail(self, make_password, allocator):
        pwd = make_password("hunter2")
        block = allocator.allocated[-1]

        pwd.resize(3)

        assert pwd == "hun"
        assert block.is_retired
        assert not any(block.raw)

    def test_same_size_is_noop(self, make_password):
        pwd = make_password("abc")
        epoch = pwd.epoch

        pwd.resize(3)

        assert pwd.epoch == epoch

    def test_negative_size(self, make_password):
        with pytest.raises(InvalidArgumentError):
            make_password("abc").resize(-1)


class TestWiping:
    """Every reallocating mutation wipes the block it discards."""

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda pwd: pwd.insert(2, "XY"),
            lambda pwd: pwd.erase(1, 2),
            lambda pwd: pwd.replace(0, 2, "abc"),
            lambda pwd: pwd.assign("other"),
            lambda pwd: pwd.resize(10, "z"),
            lambda pwd: pwd.clear(),
            lambda pwd: pwd.push_back("!"),
        ],
        ids=["insert", "erase", "replace", "assign", "resize", "clear", "push_back"],
    )
    def test_old_block_is_zeroed(self, make_password, allocator, mutate):
        pwd = make_password("hunter2")
        block = allocator.allocated[-1]
        epoch = pwd.epoch

        mutate(pwd)

        assert pwd.epoch != epoch
        assert block.is_retired
        assert block.raw == bytearray(len(block.raw))

    def test_every_discarded_block_is_retired(self, make_password, allocator):
        pwd = make_password()
        for unit in "hunter2":
            pwd.push_back(unit)
        pwd.clear()

        live = [block for block in allocator.allocated if not block.is_retired]

        assert len(live) == 1
        assert live[0].epoch == pwd.epoch
        for block in allocator.retired:
            assert not any(block.raw)


class TestFailureLeavesContainerUnchanged:
    """A failed operation leaves size, content and epoch as they were."""

    def test_allocation_failure(self, make_password, allocator):
        pwd = make_password("hunter2")
        epoch = pwd.epoch
        position = pwd.position(3)
        allocator.fail_next = True

        with pytest.raises(MemoryError):
            pwd.insert(3, "XY")

        assert pwd == "hunter2"
        assert pwd.epoch == epoch
        assert position.is_valid()

    def test_bad_unit_in_source(self, make_password, allocator):
        pwd = make_password("hunter2")
        epoch = pwd.epoch
        allocated = len(allocator.allocated)

        with pytest.raises(InvalidArgumentError):
            pwd.append([ord("a"), 256])

        assert pwd == "hunter2"
        assert pwd.epoch == epoch
        assert len(allocator.allocated) == allocated

    def test_failed_in_place_replace(self, make_password):
        pwd = make_password("hunter2")

        with pytest.raises(InvalidArgumentError):
            pwd.replace(0, 2, ["a", "€"])

        assert pwd == "hunter2"

    def test_length_error(self, monkeypatch):
        monkeypatch.setenv("SECUREPWD_MEMORY__MAX_SIZE", "8")
        pwd = Password("hunter2")
        epoch = pwd.epoch

        pwd.append("!")
        with pytest.raises(PasswordLengthError) as exc_info:
            pwd.append("!")

        assert exc_info.value.max_size == 8
        assert pwd == "hunter2!"
        assert pwd.epoch != epoch

    def test_length_error_is_overflow_error(self, monkeypatch):
        monkeypatch.setenv("SECUREPWD_MEMORY__MAX_SIZE", "4")

        with pytest.raises(OverflowError):
            Password("hunter2")
        with pytest.raises(PasswordLengthError):
            Password().resize(5)
        with pytest.raises(PasswordLengthError):
            Password().assign_fill(5, "x")
