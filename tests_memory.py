import pytest

import ram_alu
from ram_exceptions import DivisionByZero, InvalidIndex
from ram_memory import ACC, RegisterFile


def test_untouched_registers_read_zero():
    registers = RegisterFile()
    assert registers.get(0) == 0
    assert registers.get(12345) == 0
    assert registers.size == 0


def test_read_beyond_backing_store_does_not_grow():
    registers = RegisterFile()
    registers.set(3, 7)
    size = registers.size
    assert registers.get(10 ** 9) == 0
    assert registers.size == size


def test_sparse_write_fills_gap_with_zeros():
    registers = RegisterFile()
    registers.set(1_000_000, 42)
    assert registers.get(5) == 0
    assert registers.get(999_999) == 0
    assert registers.get(1_000_000) == 42
    assert registers.used == 1_000_001


def test_last_write_wins_in_any_order():
    registers = RegisterFile()
    writes = [(9, 1), (2, 5), (9, -3), (0, 8), (40, 2), (2, 6)]
    for index, value in writes:
        registers.set(index, value)
    assert registers.get(9) == -3
    assert registers.get(2) == 6
    assert registers.get(0) == 8
    assert registers.get(40) == 2
    assert registers.get(3) == 0


def test_distinct_indices_never_alias():
    registers = RegisterFile()
    indices = [0, 1, 2 ** 16, 2 ** 20 + 1, 7, 2 ** 20]
    for value, index in enumerate(indices, start=1):
        registers.set(index, value)
    for value, index in enumerate(indices, start=1):
        assert registers.get(index) == value


def test_growth_is_amortized():
    registers = RegisterFile()
    registers.set(0, 1)
    sizes = set()
    for i in range(1, 1000):
        registers.set(i, i)
        sizes.add(registers.size)
    # doubling means only a handful of distinct backing sizes
    assert len(sizes) <= 11
    assert registers.size >= 1000


@pytest.mark.parametrize("index", [-1, -100])
def test_negative_index_is_rejected(index):
    registers = RegisterFile()
    with pytest.raises(InvalidIndex):
        registers.get(index)
    with pytest.raises(InvalidIndex):
        registers.set(index, 1)


def test_accumulator_and_snapshot():
    registers = RegisterFile()
    registers.acc = 4
    registers[2] = 9
    assert registers.get(ACC) == 4
    assert registers[2] == 9
    assert registers.snapshot(4) == (4, 0, 9, 0)
    registers.reset()
    assert registers.snapshot(3) == (0, 0, 0)
    assert registers.used == 0


def test_alu_operations_mutate_in_place():
    registers = RegisterFile()
    ram_alu.assign(registers, ACC, 10)
    ram_alu.add(registers, ACC, 5)
    ram_alu.subtract(registers, ACC, 3)
    ram_alu.multiply(registers, ACC, 2)
    assert registers.acc == 24
    ram_alu.divide(registers, ACC, 5)
    assert registers.acc == 4


@pytest.mark.parametrize("dividend, divisor, quotient", [
    (7, 2, 3),
    (-7, 2, -3),
    (7, -2, -3),
    (-7, -2, 3),
    (0, 5, 0),
])
def test_divide_truncates_toward_zero(dividend, divisor, quotient):
    registers = RegisterFile()
    registers.set(4, dividend)
    ram_alu.divide(registers, 4, divisor)
    assert registers.get(4) == quotient


def test_divide_by_zero_leaves_register():
    registers = RegisterFile()
    registers.acc = 10
    with pytest.raises(DivisionByZero):
        ram_alu.divide(registers, ACC, 0)
    assert registers.acc == 10
