"""
Label & field selectors: immutable conjunctive filters over key-value pairs.

Only the equality-based syntax is supported, as understood by the API servers
for both labels and fields::

    app=web,tier!=cache,release==stable

Every term is either an equality (``=`` or ``==``, which are the same)
or an inequality (``!=``). All terms must match for the selector to match
(a conjunction). An empty selector has no terms and matches everything.

The selectors are encoded into the query parameters as their string form,
with the terms in the same order as they were given.
"""
import dataclasses
import enum
from typing import Iterable, Iterator, Mapping, Optional, Tuple, Union


class Operator(str, enum.Enum):
    EQUALS = '='
    NOT_EQUALS = '!='


@dataclasses.dataclass(frozen=True)
class Requirement:
    """ A single term of a selector. """
    key: str
    operator: Operator
    value: str

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError(f"A selector term must have a key: {self!r}")
        if any(char in self.key for char in ',=! '):
            raise ValueError(f"A selector key contains forbidden characters: {self.key!r}")
        if any(char in self.value for char in ',=!'):
            raise ValueError(f"A selector value contains forbidden characters: {self.value!r}")

    def __str__(self) -> str:
        return f'{self.key}{self.operator.value}{self.value}'

    def matches(self, values: Mapping[str, str]) -> bool:
        # A missing key equals to nothing, and so it is never equal, but always unequal.
        if self.operator is Operator.EQUALS:
            return self.key in values and values[self.key] == self.value
        else:
            return self.key not in values or values[self.key] != self.value

    @classmethod
    def parse(cls, text: str) -> "Requirement":
        text = text.strip()
        if '!=' in text:
            key, value = text.split('!=', 1)
            operator = Operator.NOT_EQUALS
        elif '==' in text:
            key, value = text.split('==', 1)
            operator = Operator.EQUALS
        elif '=' in text:
            key, value = text.split('=', 1)
            operator = Operator.EQUALS
        else:
            raise ValueError(f"Unsupported selector term (only =, ==, != are allowed): {text!r}")
        return cls(key=key.strip(), operator=operator, value=value.strip())


@dataclasses.dataclass(frozen=True)
class Selector:
    """
    An immutable conjunction of zero or more requirements.

    Usage::

        Selector.parse('app=web,tier!=cache')
        Selector.from_mapping({'app': 'web'})
        Selector.everything()
    """
    requirements: Tuple[Requirement, ...] = ()

    def __str__(self) -> str:
        return ','.join(str(requirement) for requirement in self.requirements)

    def __bool__(self) -> bool:
        return bool(self.requirements)

    def __iter__(self) -> Iterator[Requirement]:
        return iter(self.requirements)

    def __len__(self) -> int:
        return len(self.requirements)

    def __and__(self, other: "Selector") -> "Selector":
        if not isinstance(other, Selector):
            return NotImplemented
        return Selector(self.requirements + other.requirements)

    @property
    def empty(self) -> bool:
        return not self.requirements

    def matches(self, values: Optional[Mapping[str, str]]) -> bool:
        values = values if values is not None else {}
        return all(requirement.matches(values) for requirement in self.requirements)

    @classmethod
    def everything(cls) -> "Selector":
        return cls()

    @classmethod
    def parse(cls, text: Optional[str]) -> "Selector":
        terms = [term for term in (text or '').split(',') if term.strip()]
        return cls(tuple(Requirement.parse(term) for term in terms))

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "Selector":
        return cls(tuple(Requirement(key=key, operator=Operator.EQUALS, value=value)
                         for key, value in values.items()))

    @classmethod
    def from_requirements(cls, requirements: Iterable[Requirement]) -> "Selector":
        return cls(tuple(requirements))


# Whatever the users may pass where a selector is expected.
SelectorLike = Union[None, str, Mapping[str, str], Selector]


def as_selector(value: SelectorLike) -> Selector:
    if value is None:
        return Selector.everything()
    elif isinstance(value, Selector):
        return value
    elif isinstance(value, str):
        return Selector.parse(value)
    elif isinstance(value, Mapping):
        return Selector.from_mapping(value)
    else:
        raise TypeError(f"Unsupported selector: {value!r}")
