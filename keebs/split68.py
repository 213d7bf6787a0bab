'''
The 68 key split keyboard: a 6 column block per hand, a shared thumb cluster in the middle.

-----------------------------------------------------------------
| = | 1 | 2 | 3 | 4 | 5 |   |   |   |   | 6 | 7 | 8 | 9 | 0 | - |
|Tab| Q | W | E | R | T |   |   |   |   | Y | U | I | O | P | \\ |
|Esc| A | S | D | F | G |   |   |   |   | H | J | K | L | ; | ' |
|LSh| Z | X | C | V | B |LCt|LAt|LMt|RCt| N | M | , | . | / |RSh|
|   | ~ |Cap|<--|-->|Bks|Del|Hom|PUp|Etr|Spc| Up| Dn| [ | ] |   |
|   |   |   |   |   |   |   |End|PDn|   |   |   |   |   |   |   |
-----------------------------------------------------------------
'''

from hardware import KeyboardHardware

FINGER_SCORES = {
    'LP': 70,
    'LR': 50,
    'LM': 80,
    'LI': 100,
    'LT': 100,
    'RT': 100,
    'RI': 100,
    'RM': 80,
    'RR': 50,
    'RP': 70,
}

LEFT_HAND_FINGERS = ['LP', 'LP', 'LR', 'LM', 'LI', 'LI']
RIGHT_HAND_FINGERS = ['RI', 'RI', 'RM', 'RR', 'RP', 'RP']
GAP = [None] * 4


def _hand_row(left_keys, right_keys, left_scores, right_scores):
    return (
        list(zip(left_keys, LEFT_HAND_FINGERS, left_scores))
        + GAP
        + list(zip(right_keys, RIGHT_HAND_FINGERS, right_scores))
    )


ROWS = [
    _hand_row(
        ['Equal', 'Key1', 'Key2', 'Key3', 'Key4', 'Key5'],
        ['Key6', 'Key7', 'Key8', 'Key9', 'Key0', 'Minus'],
        [25, 35, 45, 50, 50, 50],
        [50, 50, 50, 45, 35, 25],
    ),
    _hand_row(
        ['Tab', 'Q', 'W', 'E', 'R', 'T'],
        ['Y', 'U', 'I', 'O', 'P', 'BackSlash'],
        [35, 75, 75, 75, 75, 75],
        [75, 75, 75, 75, 75, 35],
    ),
    _hand_row(
        ['Escape', 'A', 'S', 'D', 'F', 'G'],
        ['H', 'J', 'K', 'L', 'Semicolon', 'Apostrophe'],
        [75, 100, 100, 100, 100, 100],
        [100, 100, 100, 100, 100, 75],
    ),
    [
        ('LShift', 'LP', 65), ('Z', 'LP', 85), ('X', 'LR', 85), ('C', 'LM', 85),
        ('V', 'LI', 85), ('B', 'LI', 85), ('LControl', 'LT', 70), ('LAlt', 'LT', 50),
        ('LMeta', 'RT', 50), ('RControl', 'RT', 70), ('N', 'RI', 85), ('M', 'RI', 85),
        ('Comma', 'RM', 85), ('Dot', 'RR', 85), ('Slash', 'RP', 85), ('RShift', 'RP', 65),
    ],
    [
        None, ('Grave', 'LP', 50), ('CapsLock', 'LR', 50), ('Left', 'LM', 50),
        ('Right', 'LI', 50), ('Backspace', 'LT', 100), ('Delete', 'LT', 100), ('Home', 'LT', 70),
        ('PageUp', 'RT', 70), ('Enter', 'RT', 70), ('Space', 'RT', 100), ('Up', 'RI', 100),
        ('Down', 'RI', 50), ('LeftBracket', 'RP', 50), ('RightBracket', 'RP', 50), None,
    ],
    [None] * 7 + [('End', 'LT', 80), ('PageDown', 'RT', 80)] + [None] * 7,
]

KEYBOARD = KeyboardHardware.from_rows('split68', FINGER_SCORES, ROWS)

if __name__ == "__main__":
    print(KEYBOARD.str())
