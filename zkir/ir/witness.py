"""
위트니스(Witness)
==================

한 번의 실행에 대한 변수 → 필드 값 할당. 외부 제약 솔버가 채운다.

텍스트 형식 (한 줄에 하나, 변수 순서):

    ~out_0 35
    _1 3
    _2 9
"""

import json

from zkir.ir.field import FR, coerce, parse_element, to_dec_string
from zkir.ir.variable import Variable


class Witness:
    """Variable → 필드 값 사상."""

    def __init__(self, values=None):
        self.values = dict(values or {})

    def insert(self, variable, value):
        self.values[variable] = value

    def get(self, variable, default=None):
        return self.values.get(variable, default)

    def __getitem__(self, variable):
        return self.values[variable]

    def __contains__(self, variable):
        return variable in self.values

    def __len__(self):
        return len(self.values)

    def __iter__(self):
        return iter(sorted(self.values))

    def items(self):
        return [(v, self.values[v]) for v in sorted(self.values)]

    def return_values(self, return_count):
        """반환값들을 반환 순서대로.

        Raises:
            KeyError: 반환 변수 값이 없을 때
        """
        return [self.values[Variable.public(i)] for i in range(return_count)]

    def format_outputs(self, return_count):
        """반환값을 10진수 문자열의 JSON 배열로."""
        return json.dumps([to_dec_string(v) for v in self.return_values(return_count)])

    def write(self, stream):
        for variable, value in self.items():
            stream.write(f"{variable} {to_dec_string(value)}\n")

    @classmethod
    def read(cls, stream, field=FR):
        """write 형식을 읽는다.

        Raises:
            ValueError: 줄 형식이 맞지 않거나 같은 변수가 두 번 나올 때
        """
        witness = cls()
        for lineno, line in enumerate(stream, start=1):
            line = line.strip()
            if not line:
                continue
            parts = line.split()
            if len(parts) != 2:
                raise ValueError(f"{lineno}번째 줄 형식이 잘못되었습니다: {line!r}")
            variable = Variable.parse(parts[0])
            if variable in witness:
                raise ValueError(f"{lineno}번째 줄: 변수 {variable}가 중복되었습니다")
            witness.insert(variable, parse_element(field, parts[1]))
        return witness

    def __eq__(self, other):
        if not isinstance(other, Witness):
            return NotImplemented
        return {v: int(x) for v, x in self.values.items()} == {
            v: int(x) for v, x in other.values.items()
        }

    __hash__ = None

    def __str__(self):
        return "\n".join(f"{v} {to_dec_string(x)}" for v, x in self.items())


def witness_from_ints(assignments, field=FR):
    """{Variable: int} → Witness (테스트/예제용)."""
    return Witness({v: coerce(field, x) for v, x in assignments.items()})
