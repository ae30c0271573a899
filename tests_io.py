import io

import pytest

from ram_exceptions import RAMParsingException, TapeExhausted, TapeWriteError
from ram_io import InputTape, OutputTape


def test_input_tape_reads_in_order():
    tape = InputTape.from_string("3 -4\n 5")
    assert len(tape) == 3
    assert [tape.read(), tape.read()] == [3, -4]
    assert tape.remaining == 1
    assert tape.read() == 5
    with pytest.raises(TapeExhausted):
        tape.read()
    tape.rewind()
    assert tape.position == 0


def test_input_tape_rejects_garbage():
    with pytest.raises(RAMParsingException):
        InputTape.from_string("1 two 3")


def test_input_tape_from_file(tmp_path):
    path = tmp_path / "input.txt"
    path.write_text("10 20\n30\n", encoding="utf-8")
    assert InputTape.from_file(str(path)).values == (10, 20, 30)


def test_output_tape_writes_to_stream():
    stream = io.StringIO()
    tape = OutputTape(stream)
    tape.write(1)
    tape.write(-2)
    assert tape.values == (1, -2)
    assert stream.getvalue() == "1\n-2\n"


def test_output_tape_to_file(tmp_path):
    path = tmp_path / "output.txt"
    with OutputTape.to_file(str(path)) as tape:
        tape.write(7)
    assert path.read_text(encoding="utf-8") == "7\n"


class BrokenStream:
    closed = False

    def write(self, text):
        raise OSError("disk full")


def test_output_tape_write_failure():
    tape = OutputTape(BrokenStream())
    with pytest.raises(TapeWriteError):
        tape.write(1)
