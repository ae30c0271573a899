from ram_exceptions import InvalidIndex


ACC = 0


class RegisterFile:
    """Unbounded set of integer registers, register 0 is the accumulator.

    Backed by a list that grows on writes only. Untouched registers read as 0.
    """

    def __init__(self):
        self._registers = []
        self._used = 0

    @staticmethod
    def check(index):
        if index < 0:
            raise InvalidIndex(f"Register index can't be negative: {index}")

    def get(self, index):
        self.check(index)
        if index < len(self._registers):
            return self._registers[index]
        return 0

    def set(self, index, value):
        self.check(index)
        if index >= len(self._registers):
            self._grow(index)
        self._registers[index] = value
        self._used = max(self._used, index + 1)

    def _grow(self, index):
        # doubling keeps growth amortized
        new_size = max(index + 1, 2 * len(self._registers))
        self._registers.extend([0] * (new_size - len(self._registers)))

    def __getitem__(self, index):
        return self.get(index)

    def __setitem__(self, index, value):
        self.set(index, value)

    @property
    def acc(self):
        return self.get(ACC)

    @acc.setter
    def acc(self, value):
        self.set(ACC, value)

    @property
    def size(self):
        return len(self._registers)

    @property
    def used(self):
        return self._used

    def snapshot(self, count=10):
        return tuple(self.get(i) for i in range(count))

    def reset(self):
        self._registers = []
        self._used = 0

    def __repr__(self):
        return "RegisterFile({})".format(
            ", ".join(f"R{i}={v}" for i, v in enumerate(
                self._registers[:self._used]) if v))
