from ram_exceptions import RAMParsingException, TapeExhausted, TapeWriteError


class InputTape:
    def __init__(self, values=()):
        self._values = list(values)
        self._position = 0

    @classmethod
    def from_string(cls, text):
        values = []
        for token in text.split():
            try:
                values.append(int(token))
            except ValueError:
                raise RAMParsingException(
                    f"Invalid input tape value: {token}")
        return cls(values)

    @classmethod
    def from_file(cls, source):
        with open(source, "r", encoding="utf-8") as fobj:
            return cls.from_string(fobj.read())

    @property
    def values(self):
        return tuple(self._values)

    @property
    def position(self):
        return self._position

    @property
    def remaining(self):
        return len(self._values) - self._position

    def __len__(self):
        return len(self._values)

    def read(self):
        if self._position >= len(self._values):
            raise TapeExhausted(
                f"Input tape is exhausted after {len(self._values)} values")
        value = self._values[self._position]
        self._position += 1
        return value

    def rewind(self):
        self._position = 0


class OutputTape:
    def __init__(self, stream=None):
        self._values = []
        self._stream = stream
        self._owns_stream = False

    @classmethod
    def to_file(cls, path):
        tape = cls(open(path, "w", encoding="utf-8"))
        tape._owns_stream = True
        return tape

    @property
    def values(self):
        return tuple(self._values)

    def __len__(self):
        return len(self._values)

    def write(self, value):
        self._values.append(value)
        if self._stream is not None:
            try:
                self._stream.write(f"{value}\n")
            except OSError as e:
                raise TapeWriteError(f"Output tape write failed: {e}")

    def close(self):
        if self._owns_stream and not self._stream.closed:
            self._stream.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
