import io
import os

import pytest

from ram_exceptions import (
    AccumulatorAccessDenied, DivisionByZero, EmptyProgram,
    IllegalAddressingMode, InvalidIndex, IterationLimitExceeded,
    TapeExhausted, TapeWriteError, UnknownLabel)
from ram_io import InputTape, OutputTape
from ram_machine import (
    LEGAL_ADDRESSING, Faulted, Halted, RAMMachine, get_machine,
    get_test_result, main, run)
from ram_translator import Addressing, Instruction, Opcode, RAMProgram

root = os.path.join(os.path.dirname(__file__), "train_ram")


def execute(source, tape=()):
    machine = get_machine(source, list(tape))
    return machine, machine.execute()


def test_every_opcode_has_a_handler():
    assert set(RAMMachine.HANDLERS) == set(Opcode)
    assert set(LEGAL_ADDRESSING) == set(Opcode) - {Opcode.HALT}


def test_indirection_is_exactly_one_level():
    machine, result = execute("""
        load =7
        store 3
        load =42
        store 7
        load =0
        load *3
        halt
    """)
    assert isinstance(result, Halted)
    assert machine.registers.acc == 42


def test_store_indirect():
    machine, result = execute(["load =20", "store 1", "load =5", "store *1"])
    assert isinstance(result, Halted)
    assert machine.registers.get(20) == 5
    assert machine.registers.get(1) == 20


def test_arithmetic():
    machine, result = execute("""
        load =6
        store 1
        load =10
        add 1
        sub =4
        mul =3
        div =-5
    """)
    assert isinstance(result, Halted)
    assert machine.registers.acc == -7


ILLEGAL = [
    (opcode, addressing)
    for opcode in Opcode if opcode is not Opcode.HALT
    for addressing in Addressing
    if addressing not in LEGAL_ADDRESSING[opcode]
]


@pytest.mark.parametrize("opcode, addressing", ILLEGAL)
@pytest.mark.parametrize("operand", [0, 5])
def test_illegal_addressing_is_rejected(opcode, addressing, operand):
    if addressing is Addressing.TAG:
        operand = "target"
    program = RAMProgram.from_instructions([
        Instruction(0, opcode, addressing, operand),
        Instruction(1, Opcode.HALT, label="target"),
    ])
    machine = RAMMachine(program, InputTape([1]))
    result = machine.execute()
    assert isinstance(result, Faulted)
    assert result.kind is IllegalAddressingMode
    assert result.index == 0
    assert machine.registers.used == 0
    assert machine.input_tape.position == 0


def test_store_constant_faults():
    machine, result = execute(["store =5", "halt"])
    assert result.kind is IllegalAddressingMode
    assert result.index == 0


@pytest.mark.parametrize("source", [
    ["read 0", "halt"],
    ["write 0", "halt"],
    ["read *1", "halt"],
    ["write *1", "halt"],
])
def test_accumulator_protection(source):
    machine, result = execute(source, [9])
    assert isinstance(result, Faulted)
    assert result.kind is AccumulatorAccessDenied
    assert machine.output_tape.values == ()
    assert machine.input_tape.position == 0


def test_read_then_load_round_trips():
    machine, result = execute(["read 1", "load 1", "write =0", "halt"], [17])
    assert isinstance(result, Halted)
    assert machine.registers.acc == 17
    assert machine.output_tape.values == (0,)


def test_division_by_zero_keeps_prior_load():
    machine, result = execute(["load =10", "div =0", "halt"])
    assert isinstance(result, Faulted)
    assert result.kind is DivisionByZero
    assert result.index == 1
    assert machine.registers.acc == 10
    assert result.steps == 1


def test_control_flow_scenario():
    machine, result = execute("""
        load =5
        jzero l1
        sub =1
        jump l2
l1:     write =0
l2:     halt
    """)
    assert isinstance(result, Halted)
    assert machine.registers.acc == 4
    assert machine.output_tape.values == ()
    assert result.steps == 5


def test_jzero_and_jgtz_taken():
    machine, result = execute("""
        jzero zero
        write =1
zero:   load =-1
        jgtz pos
        load =2
        jgtz pos
        write =2
pos:    write =3
    """)
    assert isinstance(result, Halted)
    assert machine.output_tape.values == (3,)


def test_implicit_halt_at_end_of_program():
    machine, result = execute(["load =1", "write =1"])
    assert isinstance(result, Halted)
    assert machine.ip is None
    assert machine.output_tape.values == (1,)


def test_jump_to_unknown_label_faults():
    program = RAMProgram.from_instructions([
        Instruction(0, Opcode.LOAD, Addressing.CONSTANT, 1),
        Instruction(1, Opcode.JUMP, Addressing.TAG, "missing"),
    ])
    result = run(program)
    assert result.kind is UnknownLabel
    assert result.index == 1


def test_tape_exhausted_faults():
    machine, result = execute(["read 1", "read 2", "halt"], [4])
    assert result.kind is TapeExhausted
    assert result.index == 1
    assert machine.registers.get(1) == 4


def test_negative_indirect_index_faults():
    machine, result = execute(["load =-3", "store 1", "load *1"])
    assert result.kind is InvalidIndex
    assert result.index == 2


def test_output_write_failure_faults():
    class BrokenStream:
        closed = False

        def write(self, text):
            raise OSError("broken pipe")

    result = run(["write =1"], output_tape=OutputTape(BrokenStream()))
    assert result.kind is TapeWriteError


def test_empty_program_faults():
    machine = RAMMachine(RAMProgram(""))
    result = machine.execute()
    assert isinstance(result, Faulted)
    assert result.kind is EmptyProgram
    assert result.index is None


def test_faulted_machine_stays_faulted():
    machine, result = execute(["div =0", "write =1"])
    assert machine.step() is result
    assert machine.output_tape.values == ()


def test_iteration_limit():
    result = run(["loop: jump loop"], max_iterations=50)
    assert result.kind is IterationLimitExceeded
    assert result.steps == 50
    assert result.index == 0


def test_step_by_step():
    machine = get_machine(["load =2", "add =3", "halt"])
    assert machine.step() is None
    assert machine.ip == 1
    assert machine.step() is None
    assert machine.registers.acc == 5
    assert isinstance(machine.step(), Halted)
    assert machine.finished


def test_reset():
    machine, result = execute(["load =2", "store 4"])
    machine.reset()
    assert machine.registers.get(4) == 0
    assert machine.ip == 0
    assert not machine.finished


def test_trace_results():
    machine, result = execute("""
        load =2
loop:   sub =1
        jgtz loop
        store 3
    """)
    trace = result.trace
    assert trace["commands_executed"] == 6
    assert trace["command_exec_count"]["1 SUB =1"] == 2
    assert trace["command_exec_count"]["2 JGTZ loop"] == 2
    assert trace["initial_reg"] == (0,) * 10
    assert trace["final_reg"][:4] == (0, 0, 0, 0)
    assert trace["used_registers"] == 4


def test_debug_prints():
    out = io.StringIO()
    result = run(["load =3", "store 2", "halt"], trace_enabled=True,
                 trace_window=3, file=out)
    assert isinstance(result, Halted)
    lines = out.getvalue().splitlines()
    assert lines[0] == "IP: 0 Instruction: LOAD =3"
    assert lines[1] == "R0: 3 | R1: 0 | R2: 0"
    assert lines[3] == "R0: 3 | R1: 0 | R2: 3"
    assert lines[4] == "IP: 2 Instruction: HALT"


def test_sum_program():
    program = RAMProgram.from_file(os.path.join(root, "sum.txt"))
    machine = RAMMachine(
        program, InputTape.from_file(os.path.join(root, "sum_input.txt")))
    result = machine.execute()
    assert isinstance(result, Halted)
    assert machine.output_tape.values == (11,)
    assert result.steps == 23


@pytest.mark.parametrize("n, expected", [(0, 1), (1, 1), (5, 120)])
def test_factorial_program(n, expected):
    program = RAMProgram.from_file(os.path.join(root, "factorial.txt"))
    machine = RAMMachine(program, InputTape([n]))
    assert isinstance(machine.execute(), Halted)
    assert machine.output_tape.values == (expected,)


def test_reverse_program_uses_indirect_addressing():
    program = RAMProgram.from_file(os.path.join(root, "reverse.txt"))
    machine = RAMMachine(program, InputTape([4, 1, 2, 3, 4]))
    assert isinstance(machine.execute(), Halted)
    assert machine.output_tape.values == (4, 3, 2, 1)
    assert machine.registers.get(13) == 4


def test_get_test_result():
    program = RAMProgram.from_file(os.path.join(root, "sum.txt"))
    assert get_test_result([0], program) == 5
    assert get_test_result([1, 5], program) == 14


def test_cli_execute(capsys):
    code = main(["execute", os.path.join(root, "reverse.txt"),
                 "-i", os.path.join(root, "reverse_input.txt")])
    assert code == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "9 8 7"


def test_cli_execute_to_file(tmp_path, capsys):
    output = tmp_path / "out.txt"
    code = main(["execute", os.path.join(root, "sum.txt"),
                 "-i", os.path.join(root, "sum_input.txt"),
                 "-o", str(output), "--notrace"])
    assert code == 0
    assert output.read_text(encoding="utf-8") == "11\n"
    assert capsys.readouterr().out == ""


def test_cli_reports_fault(tmp_path, capsys):
    source = tmp_path / "bad.txt"
    source.write_text("load =1\ndiv =0\n", encoding="utf-8")
    code = main(["execute", str(source), "--notrace"])
    assert code == 1
    assert "ERROR in line 1" in capsys.readouterr().err


def test_cli_reports_load_error(tmp_path, capsys):
    source = tmp_path / "bad.txt"
    source.write_text("jump nowhere\n", encoding="utf-8")
    assert main(["view", str(source)]) == 1
    assert "nowhere" in capsys.readouterr().err


def test_cli_view(capsys):
    assert main(["view", os.path.join(root, "factorial.txt")]) == 0
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 13
    assert out[3].split() == ["3", "loop:", "LOAD", "1"]


def test_mixed_case_label_jump():
    program = RAMProgram.from_instructions([
        Instruction(0, Opcode.JUMP, Addressing.TAG, "Target"),
        Instruction(1, Opcode.WRITE, Addressing.CONSTANT, 1),
        Instruction(2, Opcode.HALT, label="Target"),
    ])
    machine = RAMMachine(program)
    assert isinstance(machine.execute(), Halted)
    assert machine.output_tape.values == ()


def test_read_negative_index_keeps_tape():
    machine, result = execute(["load =-2", "store 1", "read *1"], [5])
    assert result.kind is InvalidIndex
    assert result.index == 2
    assert machine.input_tape.position == 0


def test_execute_again_keeps_initial_registers():
    machine, result = execute(["load =3", "store 1"])
    assert result.trace["initial_reg"] == (0,) * 10
    assert machine.execute() is result
    assert result.trace["initial_reg"] == (0,) * 10
    assert result.trace["final_reg"][:2] == (3, 3)
