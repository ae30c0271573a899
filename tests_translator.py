import os

import pytest

from ram_exceptions import (
    EmptyProgram, OutOfProgram, RAMCompileException, RAMParsingException,
    UnknownLabel)
from ram_translator import Addressing, Instruction, Opcode, RAMProgram

root = os.path.join(os.path.dirname(__file__), "train_ram")


def test_operand_forms():
    program = RAMProgram("""
        LOAD =-5
        store 3
        add *4
        jump next
next:   halt
    """)
    load, store, add, jump, halt = list(program)
    assert (load.opcode, load.addressing, load.operand) == \
        (Opcode.LOAD, Addressing.CONSTANT, -5)
    assert (store.opcode, store.addressing, store.operand) == \
        (Opcode.STORE, Addressing.DIRECT, 3)
    assert (add.addressing, add.operand) == (Addressing.INDIRECT, 4)
    assert (jump.addressing, jump.operand) == (Addressing.TAG, "next")
    assert halt.opcode is Opcode.HALT and halt.label == "next"
    assert [i.index for i in program] == [0, 1, 2, 3, 4]


def test_comments_and_blank_lines_are_skipped():
    program = RAMProgram([
        "# header comment",
        "",
        "   load =1   ; set ACC",
        "; another",
        "halt",
    ])
    assert len(program) == 2
    assert program.instruction_at(1).opcode is Opcode.HALT


def test_label_on_its_own_line_marks_next_instruction():
    program = RAMProgram(["load =1", "Start:", "  # note", "halt"])
    assert program.line_of_label("start") == 1
    assert program.line_of_label("START") == 1


def test_store_contract():
    program = RAMProgram(["a: load =1", "halt"])
    assert program.first_index() == 0
    assert program.next_index(0) == 1
    assert program.next_index(1) is None
    with pytest.raises(OutOfProgram):
        program.instruction_at(2)
    with pytest.raises(UnknownLabel):
        program.line_of_label("b")


def test_empty_program():
    with pytest.raises(EmptyProgram):
        RAMProgram("# nothing here\n").first_index()


@pytest.mark.parametrize("line", [
    "load",
    "load =x",
    "store -1",
    "load *=3",
    "mov 1 2",
    "jump",
    "1abc: halt",
])
def test_malformed_lines(line):
    with pytest.raises(RAMParsingException) as e:
        RAMProgram(["halt", line])
    assert "line 2" in str(e.value)


def test_duplicate_label():
    with pytest.raises(RAMCompileException):
        RAMProgram(["x: load =1", "x: halt"])


def test_undefined_label():
    with pytest.raises(RAMCompileException):
        RAMProgram(["jump nowhere", "halt"])


def test_two_labels_on_one_instruction():
    with pytest.raises(RAMCompileException):
        RAMProgram(["first:", "second: halt"])
    with pytest.raises(RAMCompileException):
        RAMProgram(["first:", "second:", "halt"])


def test_dangling_label():
    with pytest.raises(RAMCompileException):
        RAMProgram(["halt", "last:"])


def test_from_instructions_skips_label_check():
    program = RAMProgram.from_instructions([
        Instruction(0, Opcode.JUMP, Addressing.TAG, "missing"),
        Instruction(1, Opcode.HALT),
    ])
    assert len(program) == 2
    with pytest.raises(UnknownLabel):
        program.line_of_label("missing")


def test_from_instructions_requires_dense_indices():
    with pytest.raises(RAMCompileException):
        RAMProgram.from_instructions([Instruction(1, Opcode.HALT)])


def test_instruction_text():
    program = RAMProgram(["loop: read *2", "write =0", "jgtz loop", "halt"])
    assert [str(i) for i in program] == [
        "loop: READ *2", "WRITE =0", "JGTZ loop", "HALT"]
    listing = program.listing().split("\n")
    assert listing[0].split() == ["0", "loop:", "READ", "*2"]
    assert listing[3].split() == ["3", "HALT"]


def test_from_file():
    program = RAMProgram.from_file(os.path.join(root, "reverse.txt"))
    assert program.labels == {"fill": 5, "dump": 15, "end": 23}
    assert program.instruction_at(15).label == "dump"


def test_labels_from_instructions_ignore_case():
    program = RAMProgram.from_instructions([
        Instruction(0, Opcode.JUMP, Addressing.TAG, "Target"),
        Instruction(1, Opcode.HALT, label="Target"),
    ])
    assert program.labels == {"target": 1}
    assert program.line_of_label("Target") == 1
    with pytest.raises(RAMCompileException):
        RAMProgram.from_instructions([
            Instruction(0, Opcode.LOAD, Addressing.CONSTANT, 1, label="A"),
            Instruction(1, Opcode.HALT, label="a"),
        ])


def test_from_instructions_requires_addressing():
    with pytest.raises(RAMCompileException):
        RAMProgram.from_instructions([Instruction(0, Opcode.LOAD)])
    program = RAMProgram.from_instructions([Instruction(0, Opcode.HALT)])
    assert len(program) == 1
