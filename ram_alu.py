from ram_exceptions import DivisionByZero


def assign(registers, index, value):
    registers.set(index, value)


def add(registers, index, value):
    registers.set(index, registers.get(index) + value)


def subtract(registers, index, value):
    registers.set(index, registers.get(index) - value)


def multiply(registers, index, value):
    registers.set(index, registers.get(index) * value)


def divide(registers, index, value):
    """Integer division truncated toward zero, -7 / 2 gives -3."""
    if value == 0:
        raise DivisionByZero("Division by zero")
    dividend = registers.get(index)
    quotient = abs(dividend) // abs(value)
    if (dividend < 0) != (value < 0):
        quotient = -quotient
    registers.set(index, quotient)
