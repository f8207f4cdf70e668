# Board registry mapping supported evaluation boards to their bus presets
from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class BoardPreset:
    name: str
    i2c_address: int
    shunt_resistor: float  # ohms


class BoardRegistry:
    """Registry for boards that carry a MAX40080 with a known shunt"""

    _boards: Dict[str, BoardPreset] = {
        "mikroe-current-6-click": BoardPreset("mikroe-current-6-click", 0x21, 0.010),
        "MAX40080EVSYS": BoardPreset("MAX40080EVSYS", 0x21, 0.050),
    }

    @classmethod
    def get_board(cls, board_name: str) -> BoardPreset:
        """Get board preset by exact board name"""
        if board_name not in cls._boards:
            raise ValueError(f"Unknown board: {board_name}")
        return cls._boards[board_name]

    @classmethod
    def list_available_boards(cls) -> List[str]:
        """List all supported board names"""
        return list(cls._boards.keys())

