from ..buttons import AXES

TURN_RIGHT = -1
TURN_NONE = 0
TURN_LEFT = 1

# ---------------------------------------------------------------------------- #
#                                 Input Helpers                                #
# ---------------------------------------------------------------------------- #


def is_overlapping(buttons: int, axis: tuple[int, int]) -> bool:
    """Takes a button mask and an opposing key pair, returns True if both keys are held"""
    first, second = axis
    return buttons & first != 0 and buttons & second != 0


def just_reversed(prev_buttons: int, curr_buttons: int, released: int, pressed: int) -> bool:
    """Takes previous and current button masks, returns True if `released` went from held -> not held while `pressed`
    went from not held -> held, without both ever being held on either side of the change"""
    return (
        prev_buttons & released != 0  # Used to press it
        and curr_buttons & released == 0  # Not anymore
        and prev_buttons & pressed == 0  # Did not press the other one
        and curr_buttons & pressed != 0  # Now do though
    )


def is_good_switch(prev_buttons: int, curr_buttons: int) -> bool:
    """Returns True if the change from `prev_buttons` to `curr_buttons` is a direct reversal on any axis"""
    for first, second in AXES:
        if just_reversed(prev_buttons, curr_buttons, first, second):
            return True
        if just_reversed(prev_buttons, curr_buttons, second, first):
            return True
    return False


# ---------------------------------------------------------------------------- #
#                                 View Helpers                                 #
# ---------------------------------------------------------------------------- #


def get_turn_direction(prev_yaw: float, curr_yaw: float) -> int:
    """Takes previous and current view yaw in degrees, returns TURN_RIGHT, TURN_LEFT or TURN_NONE.

    Works on either [-180, 180] or [0, 360) yaw. Any change shorter than half a rotation one way is treated as a turn
    that way, so 170 -> -170 is a 20 degree turn rather than a 340 degree one."""
    if curr_yaw == prev_yaw:
        return TURN_NONE
    if curr_yaw < prev_yaw - 180 or (prev_yaw < curr_yaw < prev_yaw + 180):
        return TURN_RIGHT
    return TURN_LEFT


def get_yaw_delta(prev_yaw: float, curr_yaw: float, direction: int) -> float:
    """Returns the unsigned rotation from `prev_yaw` to `curr_yaw` in the given turn direction, wrapped to [0, 360)"""
    if direction == TURN_LEFT:
        diff = prev_yaw - curr_yaw
    elif direction == TURN_RIGHT:
        diff = curr_yaw - prev_yaw
    else:
        return 0.0

    if diff < 0:
        diff += 360
    return diff


def is_turn_reversal(prev_direction: int, curr_direction: int) -> bool:
    """True if the turn direction flipped sign between two ticks. Starting or stopping a turn does not count."""
    return prev_direction != TURN_NONE and prev_direction + curr_direction == 0
