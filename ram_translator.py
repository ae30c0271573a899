import enum
from dataclasses import dataclass
from typing import Optional, Union

import pyparsing as pp

from ram_exceptions import (
    EmptyProgram, OutOfProgram, RAMCompileException, RAMParsingException,
    UnknownLabel)


class Opcode(enum.Enum):
    LOAD = "load"
    STORE = "store"
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    READ = "read"
    WRITE = "write"
    JUMP = "jump"
    JZERO = "jzero"
    JGTZ = "jgtz"
    HALT = "halt"


class Addressing(enum.Enum):
    CONSTANT = "="
    DIRECT = ""
    INDIRECT = "*"
    TAG = "tag"


JUMPS = frozenset((Opcode.JUMP, Opcode.JZERO, Opcode.JGTZ))


cmdparser = pp.Forward()

comment = pp.Suppress(pp.Regex(r"[#;].*"))

integer = pp.Regex(r"[+-]?\d+").setParseAction(lambda toks: int(toks[0]))
reg = pp.Word(pp.nums).setParseAction(lambda toks: int(toks[0]))

tag = pp.Word(pp.alphas + "_", pp.alphanums + "_").setParseAction(
    lambda toks: str(toks[0]).lower())
tag_prefix = pp.Optional(tag("label") + pp.Suppress(":"))

operand = (pp.Suppress("=") + integer("constant")) | \
    (pp.Suppress("*") + reg("indirect")) | \
    reg("direct") | \
    tag("tag")

mnemonic = pp.MatchFirst([
    pp.CaselessKeyword(op.value) for op in Opcode if op is not Opcode.HALT
])("opcode")

halt = pp.CaselessKeyword(Opcode.HALT.value)("opcode") + \
    pp.Optional(pp.Suppress(operand))
instruction = tag_prefix + (halt | (mnemonic + operand))
label_only = tag("label") + pp.Suppress(":")

cmdparser <<= pp.Optional(instruction | label_only) + pp.Optional(comment)


@dataclass(frozen=True)
class Instruction:
    index: int
    opcode: Opcode
    addressing: Optional[Addressing] = None
    operand: Union[int, str, None] = None
    label: Optional[str] = None

    def operand_text(self):
        if self.addressing is None:
            return ""
        if self.addressing is Addressing.TAG:
            return str(self.operand)
        return f"{self.addressing.value}{self.operand}"

    @property
    def command(self):
        if self.operand_text():
            return f"{self.opcode.name} {self.operand_text()}"
        return self.opcode.name

    def __str__(self):
        if self.label:
            return f"{self.label}: {self.command}"
        return self.command


class RAMProgram:
    """Ordered, zero-based store of instructions with label lookup."""

    def __init__(self, object):
        if isinstance(object, str):
            object = object.split("\n")
        self._labels = {}
        self._instructions = []
        self._parse(object)

    @classmethod
    def from_file(cls, source):
        with open(source, "r", encoding="utf-8") as fobj:
            return cls(fobj.read().split("\n"))

    @classmethod
    def from_instructions(cls, instructions):
        # no undefined label check here, unknown tags fault at run time
        program = cls([])
        for instruction in instructions:
            program._append(instruction)
        return program

    def _append(self, instruction):
        if instruction.index != len(self._instructions):
            raise RAMCompileException(
                f"Instruction index {instruction.index} is out of order")
        if instruction.opcode is not Opcode.HALT and \
                instruction.addressing is None:
            raise RAMCompileException(
                f"Instruction {instruction.index}: {instruction.opcode.name} "
                f"needs an operand")
        if instruction.label:
            label = instruction.label.lower()
            if label in self._labels:
                raise RAMCompileException(f"Duplicate tag '{label}'")
            self._labels[label] = instruction.index
        self._instructions.append(instruction)

    def _parse(self, lines):
        pending_label = None
        for i, line in enumerate(lines):
            line = line.strip()
            if not line:
                continue
            try:
                cmds = cmdparser.parseString(line, parse_all=True)
            except pp.ParseException as e:
                raise RAMParsingException(
                    "Invalid command on line {}: {}. Parser message: {}".format(
                        i + 1, line, str(e)))
            label = cmds.get("label")
            if "opcode" not in cmds:
                if label is None:
                    continue
                if pending_label is not None:
                    raise RAMCompileException(
                        f"Line {i + 1}: tag '{pending_label}' already "
                        f"marks the next instruction")
                pending_label = label
                continue
            if pending_label is not None:
                if label is not None:
                    raise RAMCompileException(
                        f"Line {i + 1}: instruction has two tags "
                        f"'{pending_label}' and '{label}'")
                label = pending_label
                pending_label = None
            self._append(self._build(cmds, label))
        if pending_label is not None:
            raise RAMCompileException(
                f"Tag '{pending_label}' doesn't mark any instruction")
        for instruction in self._instructions:
            if instruction.addressing is Addressing.TAG and \
                    instruction.operand not in self._labels:
                raise RAMCompileException(
                    f"Parse failed. Tag '{instruction.operand}' wasn't found")

    def _build(self, cmds, label):
        opcode = Opcode(str(cmds["opcode"]).lower())
        index = len(self._instructions)
        if opcode is Opcode.HALT:
            return Instruction(index, opcode, label=label)
        if "constant" in cmds:
            addressing, value = Addressing.CONSTANT, cmds["constant"]
        elif "indirect" in cmds:
            addressing, value = Addressing.INDIRECT, cmds["indirect"]
        elif "direct" in cmds:
            addressing, value = Addressing.DIRECT, cmds["direct"]
        else:
            addressing, value = Addressing.TAG, cmds["tag"]
        return Instruction(index, opcode, addressing, value, label)

    def first_index(self):
        if not self._instructions:
            raise EmptyProgram("Program has no instructions")
        return 0

    def instruction_at(self, index):
        if index is None or not 0 <= index < len(self._instructions):
            raise OutOfProgram(f"No instruction at index {index}")
        return self._instructions[index]

    def next_index(self, current):
        if current + 1 < len(self._instructions):
            return current + 1
        return None

    def line_of_label(self, label):
        try:
            return self._labels[label.lower()]
        except KeyError:
            raise UnknownLabel(f"Tag '{label}' wasn't found")

    @property
    def labels(self):
        return dict(self._labels)

    def __len__(self):
        return len(self._instructions)

    def __iter__(self):
        return iter(self._instructions)

    def listing(self):
        lines = []
        for instruction in self._instructions:
            label = f"{instruction.label}:" if instruction.label else ""
            lines.append(
                f"{instruction.index:>4} {label:<10} {instruction.command}")
        return "\n".join(lines)
