'''
Hand written ergonomic rules that frequency data cannot teach the optimizer, for example
that the arrow keys belong together, or that the two shift keys should mirror each other.

Each intuition is satisfied or not by a layout; the model awards one point per satisfied
intuition. And / Or combine two intuitions into one, they never award partial points.
'''

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from math import dist

from keys import FunctionKey, LogicalKey, Printable
from layout import Layout

# neighbouring keys, including diagonal neighbours
CLOSE_DISTANCE = 1.5


class Relation(Enum):
    CLOSE = 'close'
    SYMMETRIC = 'symmetric'
    SAME_ROW = 'same_row'
    SAME_COLUMN = 'same_column'
    LEFT_OF = 'left_of'
    RIGHT_OF = 'right_of'
    ABOVE = 'above'
    BELOW = 'below'


@dataclass(frozen=True)
class Rule:
    '''
    `a` stands in `relation` to `b`, e.g. Rule(Relation.LEFT_OF, a, b) reads "a is left of b".
    '''
    relation: Relation
    a: LogicalKey
    b: LogicalKey


@dataclass(frozen=True)
class And:
    left: Intuition
    right: Intuition


@dataclass(frozen=True)
class Or:
    left: Intuition
    right: Intuition


Intuition = Rule | And | Or


def _rule_holds(rule: Rule, layout: Layout) -> bool:
    hardware = layout.hardware
    a = hardware.slots[layout.slot_of[rule.a]]
    b = hardware.slots[layout.slot_of[rule.b]]

    match rule.relation:
        case Relation.CLOSE:
            return dist(a.position, b.position) <= CLOSE_DISTANCE
        case Relation.SYMMETRIC:
            return a.y == b.y and a.x != b.x and abs(a.x + b.x - 2 * hardware.center_x) < 1e-9
        case Relation.SAME_ROW:
            return a.y == b.y
        case Relation.SAME_COLUMN:
            return a.x == b.x
        case Relation.LEFT_OF:
            return a.x < b.x
        case Relation.RIGHT_OF:
            return a.x > b.x
        case Relation.ABOVE:
            return a.y < b.y
        case Relation.BELOW:
            return a.y > b.y
    raise ValueError(f"Unknown relation {rule.relation}")


def satisfied(intuition: Intuition, layout: Layout) -> bool:
    match intuition:
        case Rule():
            return _rule_holds(intuition, layout)
        case And(left=left, right=right):
            return satisfied(left, layout) and satisfied(right, layout)
        case Or(left=left, right=right):
            return satisfied(left, layout) or satisfied(right, layout)
    raise TypeError(f"Not an intuition: {intuition!r}")


def keys_of(intuition: Intuition) -> frozenset[LogicalKey]:
    '''every logical key the intuition looks at'''
    match intuition:
        case Rule(a=a, b=b):
            return frozenset((a, b))
        case And(left=left, right=right) | Or(left=left, right=right):
            return keys_of(left) | keys_of(right)
    raise TypeError(f"Not an intuition: {intuition!r}")


def _key(key: str | LogicalKey) -> LogicalKey:
    if isinstance(key, str):
        return Printable.of(key)
    return key


def close(a, b) -> Rule:
    return Rule(Relation.CLOSE, _key(a), _key(b))

def symmetric(a, b) -> Rule:
    return Rule(Relation.SYMMETRIC, _key(a), _key(b))

def same_row(a, b) -> Rule:
    return Rule(Relation.SAME_ROW, _key(a), _key(b))

def same_column(a, b) -> Rule:
    return Rule(Relation.SAME_COLUMN, _key(a), _key(b))

def left_of(a, b) -> Rule:
    return Rule(Relation.LEFT_OF, _key(a), _key(b))

def right_of(a, b) -> Rule:
    return Rule(Relation.RIGHT_OF, _key(a), _key(b))

def above(a, b) -> Rule:
    return Rule(Relation.ABOVE, _key(a), _key(b))

def below(a, b) -> Rule:
    return Rule(Relation.BELOW, _key(a), _key(b))


def _next_to(a, b) -> Intuition:
    '''a sits right before b on the same row'''
    return And(close(a, b), And(same_row(a, b), left_of(a, b)))


INTUITIONS: tuple[Intuition, ...] = (
    # arrows as an inverted T
    _next_to(FunctionKey.LEFT, FunctionKey.DOWN),
    _next_to(FunctionKey.DOWN, FunctionKey.RIGHT),
    And(same_column(FunctionKey.UP, FunctionKey.DOWN), And(close(FunctionKey.UP, FunctionKey.DOWN), above(FunctionKey.UP, FunctionKey.DOWN))),
    Or(_next_to(FunctionKey.LEFT, FunctionKey.RIGHT), above(FunctionKey.UP, FunctionKey.LEFT)),

    # modifiers mirror each other
    symmetric(FunctionKey.L_SHIFT, FunctionKey.R_SHIFT),
    symmetric(FunctionKey.L_CTRL, FunctionKey.R_CTRL),
    symmetric(FunctionKey.L_ALT, FunctionKey.R_ALT),
    symmetric(FunctionKey.L_META, FunctionKey.R_META),

    # paging keys pair up vertically
    And(close(FunctionKey.HOME, FunctionKey.END), above(FunctionKey.HOME, FunctionKey.END)),
    And(close(FunctionKey.PAGE_UP, FunctionKey.PAGE_DOWN), above(FunctionKey.PAGE_UP, FunctionKey.PAGE_DOWN)),
    Or(same_row(FunctionKey.HOME, FunctionKey.PAGE_UP), close(FunctionKey.HOME, FunctionKey.PAGE_UP)),

    # digits in numeric order
    *(_next_to(str(d), str(d + 1)) for d in range(1, 9)),
    _next_to('9', '0'),

    # brackets and punctuation pairs
    _next_to('[', ']'),
    _next_to(',', '.'),
    close(FunctionKey.BACKSPACE, FunctionKey.DELETE),
)
