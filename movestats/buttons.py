from __future__ import annotations

from enum import IntFlag


class Buttons(IntFlag):
    """CS2 player input bitmask, as stored in the pawn's movement services (`m_nButtonDownMaskPrev`)."""

    ATTACK = 0x1
    JUMP = 0x2
    DUCK = 0x4
    FORWARD = 0x8
    BACK = 0x10
    USE = 0x20
    TURNLEFT = 0x80
    TURNRIGHT = 0x100
    MOVELEFT = 0x200
    MOVERIGHT = 0x400
    ATTACK2 = 0x800
    RELOAD = 0x2000
    SPEED = 0x10000
    NONE = 0

    def pressed(self):
        """Returns a list of all buttons being pressed."""
        pressed = []
        for button in self.__class__:
            if button and self & button == button:
                pressed.append(button)
        return pressed


#: Every bit that counts as "attempting to move". Nothing else is kept between events.
MOVEMENT = int(Buttons.FORWARD | Buttons.BACK | Buttons.MOVELEFT | Buttons.MOVERIGHT)

#: Opposing key pairs, W/S first then A/D
WS_AXIS = (int(Buttons.FORWARD), int(Buttons.BACK))
AD_AXIS = (int(Buttons.MOVELEFT), int(Buttons.MOVERIGHT))
AXES = (WS_AXIS, AD_AXIS)
