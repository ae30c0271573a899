class RAMException(Exception):
    pass


class RAMLoadException(RAMException):
    pass


class RAMParsingException(RAMLoadException):
    pass


class RAMCompileException(RAMLoadException):
    pass


class RAMRuntimeError(RAMException):
    pass


class InvalidIndex(RAMRuntimeError):
    pass


class EmptyProgram(RAMRuntimeError):
    pass


class OutOfProgram(RAMRuntimeError):
    pass


class UnknownLabel(RAMRuntimeError):
    pass


class IllegalAddressingMode(RAMRuntimeError):
    pass


class AccumulatorAccessDenied(RAMRuntimeError):
    pass


class DivisionByZero(RAMRuntimeError):
    pass


class TapeExhausted(RAMRuntimeError):
    pass


class TapeWriteError(RAMRuntimeError):
    pass


class IterationLimitExceeded(RAMRuntimeError):
    pass
