"""
User selections accumulated across an identification session.

Selections are owned by the caller and passed by value into every
evaluation. The engine interprets them against the matrix: entries that do
not fit their trait's kind are ignored rather than rejected.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Selection(BaseModel):
    """
    Per-trait user input.

    - selected: binary/derived traits take -1 (No), 0 (unset) or 1 (Yes);
      continuous traits take the measured value (presence means observed)
    - selected_multi: chosen categorical states (empty list means unset)
    - selected_na: traits explicitly observed as indeterminate
    """

    model_config = ConfigDict(populate_by_name=True)

    selected: Dict[str, float] = Field(default_factory=dict)
    selected_multi: Dict[str, List[str]] = Field(default_factory=dict, alias="selectedMulti")
    selected_na: Dict[str, bool] = Field(default_factory=dict, alias="selectedNA")

    def is_na(self, trait_id: str) -> bool:
        return bool(self.selected_na.get(trait_id, False))
