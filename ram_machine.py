import argparse
import sys
from dataclasses import dataclass, field
from typing import Optional

import ram_alu
from ram_exceptions import (
    AccumulatorAccessDenied, EmptyProgram, IllegalAddressingMode,
    IterationLimitExceeded, RAMException, RAMRuntimeError)
from ram_io import InputTape, OutputTape
from ram_memory import ACC, RegisterFile
from ram_translator import Addressing, JUMPS, Opcode, RAMProgram


VALUE_ADDRESSING = frozenset(
    (Addressing.CONSTANT, Addressing.DIRECT, Addressing.INDIRECT))
REGISTER_ADDRESSING = frozenset((Addressing.DIRECT, Addressing.INDIRECT))
TAG_ADDRESSING = frozenset((Addressing.TAG,))

LEGAL_ADDRESSING = {
    Opcode.LOAD: VALUE_ADDRESSING,
    Opcode.STORE: REGISTER_ADDRESSING,
    Opcode.ADD: VALUE_ADDRESSING,
    Opcode.SUB: VALUE_ADDRESSING,
    Opcode.MUL: VALUE_ADDRESSING,
    Opcode.DIV: VALUE_ADDRESSING,
    Opcode.READ: REGISTER_ADDRESSING,
    Opcode.WRITE: VALUE_ADDRESSING,
    Opcode.JUMP: TAG_ADDRESSING,
    Opcode.JZERO: TAG_ADDRESSING,
    Opcode.JGTZ: TAG_ADDRESSING,
}

CONTROL = JUMPS | {Opcode.HALT}


@dataclass(frozen=True)
class Fault:
    kind: type
    reason: str


@dataclass(frozen=True)
class Halted:
    steps: int
    trace: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Faulted:
    index: Optional[int]
    kind: type
    reason: str
    steps: int = 0
    trace: dict = field(default_factory=dict, compare=False)

    def __str__(self):
        return f"ERROR in line {self.index}: {self.reason}"


class RAMMachine:
    """Random Access Machine: accumulator, indirect addressing, two tapes.

    Handlers get the current instruction after its addressing mode passed the
    legality table. They return a Fault for expected failures and None
    otherwise. Errors raised by registers, tapes, the ALU or the program
    store become faults in step().
    """

    def __init__(self, program, input_tape=None, output_tape=None):
        self._program = program
        self._registers = RegisterFile()
        self.input_tape = input_tape if input_tape is not None \
            else InputTape()
        self.output_tape = output_tape if output_tape is not None \
            else OutputTape()
        self.reset()

    @property
    def program(self):
        return self._program

    @program.setter
    def program(self, object):
        if isinstance(object, RAMProgram):
            self._program = object
            self.reset()
        else:
            raise TypeError("RAMProgram required, not {}".format(
                type(object).__name__))

    @property
    def registers(self):
        return self._registers

    @property
    def ip(self):
        return self._ip

    @property
    def result(self):
        return self._result

    @property
    def finished(self):
        return self._result is not None

    def reset(self):
        self._registers.reset()
        self._steps = 0
        self._result = None
        self._trace = {"command_exec_count": {}, "commands_executed": 0}
        try:
            self._ip = self._program.first_index()
        except EmptyProgram as e:
            self._ip = None
            self._result = Faulted(None, EmptyProgram, str(e), 0, self._trace)

    def _effective_index(self, instruction):
        if instruction.addressing is Addressing.INDIRECT:
            return self._registers.get(instruction.operand)
        return instruction.operand

    def _effective_value(self, instruction):
        if instruction.addressing is Addressing.CONSTANT:
            return instruction.operand
        return self._registers.get(self._effective_index(instruction))

    @staticmethod
    def _check_addressing(instruction):
        legal = LEGAL_ADDRESSING.get(instruction.opcode)
        if legal is None or instruction.addressing in legal:
            return None
        return Fault(
            IllegalAddressingMode,
            f"{instruction.opcode.name.capitalize()} can't have "
            f"{instruction.addressing.name} addressing")

    def _load(self, instruction):
        ram_alu.assign(
            self._registers, ACC, self._effective_value(instruction))

    def _store(self, instruction):
        ram_alu.assign(
            self._registers, self._effective_index(instruction),
            self._registers.acc)

    def _add(self, instruction):
        ram_alu.add(self._registers, ACC, self._effective_value(instruction))

    def _sub(self, instruction):
        ram_alu.subtract(
            self._registers, ACC, self._effective_value(instruction))

    def _mul(self, instruction):
        ram_alu.multiply(
            self._registers, ACC, self._effective_value(instruction))

    def _div(self, instruction):
        ram_alu.divide(
            self._registers, ACC, self._effective_value(instruction))

    def _read(self, instruction):
        index = self._effective_index(instruction)
        if index == ACC:
            return Fault(AccumulatorAccessDenied,
                         "The read value can't be assigned to the ACC")
        self._registers.check(index)
        ram_alu.assign(self._registers, index, self.input_tape.read())

    def _write(self, instruction):
        if instruction.addressing is not Addressing.CONSTANT and \
                self._effective_index(instruction) == ACC:
            return Fault(AccumulatorAccessDenied,
                         "The ACC value can't be written to the output tape")
        self.output_tape.write(self._effective_value(instruction))

    def _jump(self, instruction):
        self._ip = self._program.line_of_label(instruction.operand)

    def _jzero(self, instruction):
        if self._registers.acc == 0:
            self._ip = self._program.line_of_label(instruction.operand)
        else:
            self._ip = self._program.next_index(instruction.index)

    def _jgtz(self, instruction):
        if self._registers.acc > 0:
            self._ip = self._program.line_of_label(instruction.operand)
        else:
            self._ip = self._program.next_index(instruction.index)

    def _halt(self, instruction):
        self._ip = None

    HANDLERS = {
        Opcode.LOAD: _load,
        Opcode.STORE: _store,
        Opcode.ADD: _add,
        Opcode.SUB: _sub,
        Opcode.MUL: _mul,
        Opcode.DIV: _div,
        Opcode.READ: _read,
        Opcode.WRITE: _write,
        Opcode.JUMP: _jump,
        Opcode.JZERO: _jzero,
        Opcode.JGTZ: _jgtz,
        Opcode.HALT: _halt,
    }

    def step(self):
        """Execute one instruction, return the RunResult once terminal."""
        if self.finished:
            return self._result
        index = self._ip
        try:
            instruction = self._program.instruction_at(index)
            fault = self._check_addressing(instruction)
            if fault is None:
                fault = self.HANDLERS[instruction.opcode](self, instruction)
        except RAMRuntimeError as e:
            fault = Fault(type(e), str(e))
        if fault is not None:
            self._result = Faulted(
                index, fault.kind, fault.reason, self._steps, self._trace)
            return self._result

        self._steps += 1
        cmd = f"{index} {instruction.command}"
        self._trace["command_exec_count"].setdefault(cmd, 0)
        self._trace["command_exec_count"][cmd] += 1
        self._trace["commands_executed"] = self._steps

        if instruction.opcode not in CONTROL:
            self._ip = self._program.next_index(index)
        if self._ip is None:
            self._result = Halted(self._steps, self._trace)
        return self._result

    def _show_registers(self, window, file):
        print(" | ".join(
            f"R{i}: {value}" for i, value in enumerate(
                self._registers.snapshot(window))), file=file)

    def execute(self,
                max_iterations=None,
                debug_prints=False,
                trace_window=10,
                file=None):
        file = file or sys.stdout
        self._trace.setdefault(
            "initial_reg", self._registers.snapshot(trace_window))
        while not self.finished:
            if max_iterations is not None and self._steps >= max_iterations:
                self._result = Faulted(
                    self._ip, IterationLimitExceeded,
                    "Max iteration limit has reached. "
                    "Maybe, machine execution is infinite",
                    self._steps, self._trace)
                break
            if debug_prints:
                instruction = self._program.instruction_at(self._ip)
                print(f"IP: {self._ip} Instruction: {instruction}", file=file)
            self.step()
            if debug_prints:
                self._show_registers(trace_window, file)
        if debug_prints and isinstance(self._result, Faulted):
            print(self._result, file=file)
        self._trace["final_reg"] = self._registers.snapshot(trace_window)
        self._trace["used_registers"] = self._registers.used
        return self._result


def get_machine(lines, input_tape=None, output_tape=None):
    program = lines if isinstance(lines, RAMProgram) else RAMProgram(lines)
    if input_tape is not None and not isinstance(input_tape, InputTape):
        input_tape = InputTape(input_tape)
    return RAMMachine(program, input_tape, output_tape)


def run(program, input_tape=None, output_tape=None, trace_enabled=False,
        **kwargs):
    machine = get_machine(program, input_tape, output_tape)
    return machine.execute(debug_prints=trace_enabled, **kwargs)


def get_test_result(tape, program, criteria="commands_executed", **kwargs):
    result = run(program, tape, **kwargs)
    if isinstance(result, Faulted):
        raise RAMRuntimeError(str(result))
    return result.trace[criteria]


def execute_file(args):
    program = RAMProgram.from_file(args.path)
    input_tape = InputTape.from_file(args.input) if args.input \
        else InputTape()
    if args.output:
        output_tape = OutputTape.to_file(args.output)
    else:
        output_tape = OutputTape()
    with output_tape:
        result = run(program, input_tape, output_tape,
                     trace_enabled=args.debug,
                     max_iterations=args.max_iterations)
    if not args.output:
        print(" ".join(map(str, output_tape.values)))
    if not args.notrace:
        print("Всего команд выполнено:", result.trace["commands_executed"])
        print("Использовано регистров:", result.trace["used_registers"])
        print("Статистика выполненных команд:")
        for key in result.trace["command_exec_count"]:
            print(key, result.trace["command_exec_count"][key])
    if isinstance(result, Faulted):
        print("Error:", str(result), file=sys.stderr)
        return 1
    return 0


def analyze_file(args):
    import asymptotic

    program = RAMProgram.from_file(args.path)
    tapes = [InputTape.from_file(path).values for path in args.tapes]
    results = asymptotic.measure_steps(
        tapes, get_test_result, program, max_iterations=args.max_iterations)
    print("Test results:", results)
    order, coefs = asymptotic.estimate_order(results)
    if order is None:
        print("Complexity is undefined")
    else:
        print(f"Complexity: O(n^{order})")
        print("Function:", asymptotic.format_polynomial(coefs))
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Машина с произвольным доступом к памяти (RAM): "
                    "аккумулятор, косвенная адресация, ленты ввода и вывода",
        prog="RAM Machine"
    )

    parser.add_argument("action", help="Основное действие: execute, view, analyze")
    parser.add_argument("path", help="Путь к файлу программы")
    parser.add_argument("tapes", nargs="*", help="Входные ленты (для analyze)")
    parser.add_argument("-i", "--input", action="store", help="Файл входной ленты")
    parser.add_argument("-o", "--output", action="store", help="Файл выходной ленты")
    parser.add_argument("--max-iterations", type=int, default=None,
                        help="Ограничение числа шагов")
    parser.add_argument("--notrace", action="store_true",
                        help="Вывести только результат, без статистики")
    parser.add_argument("-d", "--debug", action="store_true", default=False,
                        help="Включить пошаговое отображение")

    args = parser.parse_args(argv)

    try:
        if args.action == "execute":
            return execute_file(args)
        elif args.action == "view":
            print(RAMProgram.from_file(args.path).listing())
            return 0
        elif args.action == "analyze":
            return analyze_file(args)
        parser.error(f"Unknown action: {args.action}")
    except RAMException as e:
        print("Error:", str(e), file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
